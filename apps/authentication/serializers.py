from django.db import transaction
from rest_framework import serializers
from .models import User


class UserSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8)
    role = serializers.ChoiceField(choices=['user', 'mess-owner'], default='user', required=False)
    mess_name = serializers.CharField(write_only=True, required=False, max_length=100)

    class Meta:
        model = User
        fields = ('id', 'email', 'username', 'first_name', 'last_name', 'role',
                  'gender', 'dob', 'password', 'mess_name')

    def validate(self, data):
        if data.get('role') == 'mess-owner' and not data.get('mess_name'):
            raise serializers.ValidationError({'mess_name': 'Mess owners must name their mess.'})
        return data

    def create(self, validated_data):
        from apps.messes.services import register_mess

        mess_name = validated_data.pop('mess_name', None)
        password = validated_data.pop('password')
        with transaction.atomic():
            user = User.objects.create_user(password=password, **validated_data)
            if user.role == 'mess-owner':
                register_mess(owner=user, name=mess_name)
        return user


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField()

    def validate(self, data):
        try:
            user = User.objects.get(email=data['email'])
        except User.DoesNotExist:
            raise serializers.ValidationError('Invalid credentials')

        if not user.check_password(data['password']):
            raise serializers.ValidationError('Invalid credentials')
        if not user.is_active:
            raise serializers.ValidationError('User account is disabled')
        data['user'] = user
        return data
