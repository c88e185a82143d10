from rest_framework import serializers
from .models import CreditSlab, CreditPurchasePlan, MessCredits, CreditTransaction, FreeTrialSettings


class CreditSlabSerializer(serializers.ModelSerializer):
    class Meta:
        model = CreditSlab
        fields = ('id', 'min_users', 'max_users', 'credits_per_user', 'is_active',
                  'created_by', 'updated_by', 'created_at', 'updated_at')
        read_only_fields = ('created_by', 'updated_by', 'created_at', 'updated_at')

    def validate(self, data):
        min_users = data.get('min_users', getattr(self.instance, 'min_users', None))
        max_users = data.get('max_users', getattr(self.instance, 'max_users', None))
        if min_users is not None and max_users is not None and max_users < min_users:
            raise serializers.ValidationError({'max_users': 'max_users must be greater than or equal to min_users'})
        return data


class CreditPurchasePlanSerializer(serializers.ModelSerializer):
    total_credits = serializers.IntegerField(read_only=True)

    class Meta:
        model = CreditPurchasePlan
        fields = ('id', 'name', 'description', 'base_credits', 'bonus_credits', 'total_credits',
                  'price', 'currency', 'is_active', 'is_popular', 'features', 'validity_days',
                  'created_at', 'updated_at')
        read_only_fields = ('created_at', 'updated_at')


class MessCreditsSerializer(serializers.ModelSerializer):
    available_credits = serializers.IntegerField(read_only=True)
    is_low_on_credits = serializers.BooleanField(read_only=True)
    is_trial_expired = serializers.SerializerMethodField()
    can_access_paid_features = serializers.SerializerMethodField()

    class Meta:
        model = MessCredits
        exclude = ('created_at',)

    def get_is_trial_expired(self, obj):
        return obj.is_trial_expired()

    def get_can_access_paid_features(self, obj):
        return obj.can_access_paid_features()


class CreditTransactionSerializer(serializers.ModelSerializer):
    plan_name = serializers.CharField(source='plan.name', read_only=True, default=None)

    class Meta:
        model = CreditTransaction
        fields = ('id', 'mess', 'type', 'amount', 'description', 'reference_id', 'plan',
                  'plan_name', 'billing_period_start', 'billing_period_end', 'user_count',
                  'credits_per_user', 'metadata', 'processed_by', 'status', 'created_at')
        read_only_fields = fields


class FreeTrialSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = FreeTrialSettings
        exclude = ('created_at',)
        read_only_fields = ('updated_by', 'updated_at')

    def validate(self, data):
        candidate = FreeTrialSettings(**{
            field: data.get(field, getattr(self.instance, field))
            for field in ('default_trial_duration_days', 'max_trials_per_mess')
        })
        candidate.clean()
        return data


class PurchaseSerializer(serializers.Serializer):
    plan_id = serializers.PrimaryKeyRelatedField(
        queryset=CreditPurchasePlan.objects.filter(is_active=True), source='plan'
    )
    payment_reference = serializers.CharField(max_length=100)


class OfflinePurchaseSerializer(PurchaseSerializer):
    mess_id = serializers.IntegerField()
    payment_reference = serializers.CharField(max_length=100, required=False)


class CreditAdjustmentSerializer(serializers.Serializer):
    TYPE_CHOICES = ['adjustment', 'refund', 'bonus']

    mess_id = serializers.IntegerField()
    amount = serializers.IntegerField()
    description = serializers.CharField(max_length=500)
    type = serializers.ChoiceField(choices=TYPE_CHOICES, default='adjustment')

    def validate(self, data):
        if data['type'] != 'adjustment' and data['amount'] <= 0:
            raise serializers.ValidationError({'amount': 'Refunds and bonuses must be positive'})
        return data


class SettlementSerializer(serializers.Serializer):
    payment_reference = serializers.CharField(max_length=100)
    success = serializers.BooleanField()
