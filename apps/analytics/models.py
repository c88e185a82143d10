from django.conf import settings
from django.db import models


class AdAnalytics(models.Model):
    """One row per (campaign, user, event type); repeats are ignored."""

    class Meta:
        verbose_name_plural = 'ad analytics'
        constraints = [
            models.UniqueConstraint(
                fields=['campaign', 'user', 'event_type'],
                name='unique_analytics_event_per_user',
            ),
        ]
        indexes = [
            models.Index(fields=['campaign', 'event_type'], name='analytics_campaign_event_idx'),
            models.Index(fields=['user', 'timestamp'], name='analytics_user_time_idx'),
        ]

    EVENT_CHOICES = [
        ('impression', 'Impression'),
        ('click', 'Click'),
        ('message_sent', 'Message Sent'),
    ]
    AD_TYPE_CHOICES = [
        ('ad_card', 'Ad Card'),
        ('messaging', 'Messaging'),
    ]
    # Campaign counter bumped for each event type
    COUNTER_FIELDS = {
        'impression': 'impressions',
        'click': 'clicks',
        'message_sent': 'messages_sent',
    }

    campaign = models.ForeignKey('campaigns.AdCampaign', on_delete=models.CASCADE, related_name='analytics')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='ad_events')
    event_type = models.CharField(max_length=20, choices=EVENT_CHOICES)
    ad_type = models.CharField(max_length=20, choices=AD_TYPE_CHOICES)
    metadata = models.JSONField(default=dict, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.event_type} campaign={self.campaign_id} user={self.user_id}"
