from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class AdSettings(models.Model):
    """Platform-wide ad pricing and policy. The most recent row is current."""

    class Meta:
        verbose_name_plural = 'ad settings'

    credit_price_per_user_ad_card = models.PositiveIntegerField(default=1)
    credit_price_per_user_messaging = models.PositiveIntegerField(default=2)
    ad_card_delay_seconds = models.PositiveIntegerField(default=3)
    default_ad_card_display_duration = models.PositiveIntegerField(default=5)
    default_messaging_window_hours = models.PositiveIntegerField(default=24)
    max_ad_duration_days = models.PositiveIntegerField(default=30)
    max_title_length = models.PositiveIntegerField(default=100)
    max_description_length = models.PositiveIntegerField(default=500)
    require_approval = models.BooleanField(default=False)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def clean(self):
        if self.ad_card_delay_seconds > 60:
            raise ValidationError({'ad_card_delay_seconds': 'Cannot exceed 60 seconds'})
        if not 1 <= self.max_ad_duration_days <= 365:
            raise ValidationError({'max_ad_duration_days': 'Must be between 1 and 365 days'})
        if not 1 <= self.default_messaging_window_hours <= 168:
            raise ValidationError({'default_messaging_window_hours': 'Must be between 1 and 168 hours'})

    @classmethod
    def get_current_settings(cls):
        current = cls.objects.order_by('-created_at', '-pk').first()
        if current is None:
            current = cls.objects.create()
        return current

    def cost_per_user(self, campaign_type):
        cost = 0
        if campaign_type in ('ad_card', 'both'):
            cost += self.credit_price_per_user_ad_card
        if campaign_type in ('messaging', 'both'):
            cost += self.credit_price_per_user_messaging
        return cost


class AdCampaignQuerySet(models.QuerySet):
    def expired(self, now=None):
        now = now or timezone.now()
        return self.filter(status__in=AdCampaign.EXPIRABLE_STATUSES, end_date__lt=now)

    def complete_expired(self, now=None):
        return self.expired(now).update(status='completed', updated_at=timezone.now())

    def running(self, now=None):
        now = now or timezone.now()
        return self.filter(status='active', start_date__lte=now, end_date__gte=now)


class AdCampaign(models.Model):
    class Meta:
        indexes = [
            models.Index(fields=['mess', 'status'], name='campaign_mess_status_idx'),
            models.Index(fields=['status', 'start_date', 'end_date'], name='campaign_status_window_idx'),
            models.Index(fields=['campaign_type', 'status'], name='campaign_type_status_idx'),
        ]

    TYPE_CHOICES = [
        ('ad_card', 'Ad Card'),
        ('messaging', 'Messaging'),
        ('both', 'Both'),
    ]
    STATUS_CHOICES = [
        ('draft', 'Draft'),
        ('pending_approval', 'Pending Approval'),
        ('active', 'Active'),
        ('paused', 'Paused'),
        ('completed', 'Completed'),
        ('rejected', 'Rejected'),
    ]
    VALID_TRANSITIONS = {
        'draft': ['pending_approval', 'active'],
        'pending_approval': ['active', 'rejected'],
        'active': ['paused', 'completed'],
        'paused': ['active', 'completed'],
        'completed': [],  # Terminal state
        'rejected': [],  # Terminal state
    }
    EXPIRABLE_STATUSES = ('active', 'paused')

    mess = models.ForeignKey('messes.MessProfile', on_delete=models.CASCADE, related_name='campaigns')
    campaign_type = models.CharField(max_length=20, choices=TYPE_CHOICES)

    title = models.CharField(max_length=100)
    description = models.TextField(max_length=500, blank=True)
    image_url = models.URLField(blank=True)
    video_url = models.URLField(blank=True)
    link_url = models.URLField(blank=True)
    call_to_action = models.CharField(max_length=50, blank=True)

    audience_filters = models.JSONField(default=dict, blank=True)
    target_user_count = models.PositiveIntegerField(default=0)
    actual_reach = models.PositiveIntegerField(default=0)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='draft')
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()

    credits_required = models.PositiveIntegerField()
    credits_used = models.PositiveIntegerField(default=0)
    credit_cost_per_user = models.PositiveIntegerField()

    messaging_window_start = models.DateTimeField(null=True, blank=True)
    messaging_window_end = models.DateTimeField(null=True, blank=True)

    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='+'
    )
    approved_at = models.DateTimeField(null=True, blank=True)
    rejection_reason = models.TextField(blank=True)

    impressions = models.PositiveIntegerField(default=0)
    clicks = models.PositiveIntegerField(default=0)
    messages_sent = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AdCampaignQuerySet.as_manager()

    def __str__(self):
        return f"{self.title} ({self.status})"

    @property
    def has_messaging(self):
        return self.campaign_type in ('messaging', 'both')

    @property
    def has_ad_card(self):
        return self.campaign_type in ('ad_card', 'both')

    def clean(self):
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValidationError("start_date must be before end_date")

    def can_transition_to(self, new_status):
        """Validate status transitions"""
        return new_status in self.VALID_TRANSITIONS.get(self.status, [])

    def is_window_closed(self, now=None):
        return (now or timezone.now()) > self.end_date

    def refresh_status(self, now=None):
        """Complete the campaign if its window has closed. Returns True if it changed."""
        if self.status in self.EXPIRABLE_STATUSES and self.is_window_closed(now):
            self.status = 'completed'
            self.save(update_fields=['status', 'updated_at'])
            return True
        return False

    def save(self, *args, **kwargs):
        if self.pk:  # Updating existing
            old_status = AdCampaign.objects.filter(pk=self.pk).values_list('status', flat=True).first()
            if old_status and old_status != self.status:
                if self.status not in self.VALID_TRANSITIONS.get(old_status, []):
                    raise ValidationError(
                        f"Cannot transition from {old_status} to {self.status}"
                    )
        self.clean()
        super().save(*args, **kwargs)
