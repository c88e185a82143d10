from rest_framework import serializers

from apps.audiences.serializers import AudienceFiltersSerializer
from .models import AdCampaign, AdSettings


class AdCampaignSerializer(serializers.ModelSerializer):
    mess_name = serializers.CharField(source='mess.name', read_only=True)

    class Meta:
        model = AdCampaign
        fields = '__all__'
        read_only_fields = [
            field.name for field in AdCampaign._meta.fields
        ]


class AdCampaignCreateSerializer(serializers.Serializer):
    campaign_type = serializers.ChoiceField(choices=AdCampaign.TYPE_CHOICES)
    title = serializers.CharField(max_length=100)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True)
    image_url = serializers.URLField(required=False, allow_blank=True)
    video_url = serializers.URLField(required=False, allow_blank=True)
    link_url = serializers.URLField(required=False, allow_blank=True)
    call_to_action = serializers.CharField(max_length=50, required=False, allow_blank=True)
    audience_filters = AudienceFiltersSerializer(required=False)
    start_date = serializers.DateTimeField()
    end_date = serializers.DateTimeField()

    def validate(self, data):
        if data['start_date'] >= data['end_date']:
            raise serializers.ValidationError({'end_date': 'End date must be after start date'})
        return data


class CostEstimateSerializer(serializers.Serializer):
    campaign_type = serializers.ChoiceField(choices=AdCampaign.TYPE_CHOICES)
    audience_filters = AudienceFiltersSerializer(required=False)


class RejectionSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class AdSettingsSerializer(serializers.ModelSerializer):
    class Meta:
        model = AdSettings
        exclude = ('created_at',)
        read_only_fields = ('updated_by', 'updated_at')

    def validate(self, data):
        candidate = AdSettings(**{
            field: data.get(field, getattr(self.instance, field))
            for field in ('ad_card_delay_seconds', 'max_ad_duration_days', 'default_messaging_window_hours')
        })
        candidate.clean()
        return data
