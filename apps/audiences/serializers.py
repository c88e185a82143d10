from rest_framework import serializers


class AgeRangeSerializer(serializers.Serializer):
    min = serializers.IntegerField(min_value=0, max_value=150, required=False)
    max = serializers.IntegerField(min_value=0, max_value=150, required=False)

    def validate(self, data):
        if 'min' in data and 'max' in data and data['min'] > data['max']:
            raise serializers.ValidationError('age_range.min cannot exceed age_range.max')
        return data


class AudienceFiltersSerializer(serializers.Serializer):
    mess_ids = serializers.ListField(child=serializers.IntegerField(), required=False)
    roles = serializers.ListField(
        child=serializers.ChoiceField(choices=['user', 'mess-owner', 'admin']), required=False
    )
    genders = serializers.ListField(
        child=serializers.ChoiceField(choices=['male', 'female', 'other']), required=False
    )
    age_range = AgeRangeSerializer(required=False)
    membership_status = serializers.ListField(
        child=serializers.ChoiceField(choices=['active', 'pending', 'inactive', 'cancelled']),
        required=False
    )


class AudienceMemberSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    name = serializers.CharField(source='full_name')
