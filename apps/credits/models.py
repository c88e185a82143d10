import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Count, F, Sum
from django.utils import timezone

from core.exceptions import InsufficientCreditsError

logger = logging.getLogger(__name__)


class CreditSlab(models.Model):
    """Pricing tier mapping a subscriber-count range to a per-user credit cost."""

    class Meta:
        ordering = ['min_users']
        indexes = [
            models.Index(fields=['is_active', 'min_users'], name='slab_active_min_users_idx'),
        ]

    min_users = models.PositiveIntegerField()
    max_users = models.PositiveIntegerField()
    credits_per_user = models.PositiveIntegerField()
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='+'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.min_users}-{self.max_users} users @ {self.credits_per_user}"

    def clean(self):
        if self.max_users < self.min_users:
            raise ValidationError({'max_users': 'max_users must be greater than or equal to min_users'})


class CreditPurchasePlan(models.Model):
    CURRENCY_CHOICES = [
        ('INR', 'INR'),
        ('USD', 'USD'),
        ('EUR', 'EUR'),
    ]

    name = models.CharField(max_length=100)
    description = models.TextField(max_length=500)
    base_credits = models.PositiveIntegerField()
    bonus_credits = models.PositiveIntegerField(default=0)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default='INR')
    is_active = models.BooleanField(default=True)
    is_popular = models.BooleanField(default=False)
    features = models.JSONField(default=list, blank=True)
    validity_days = models.PositiveIntegerField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='+'
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    @property
    def total_credits(self):
        return self.base_credits + self.bonus_credits


class FreeTrialSettings(models.Model):
    is_globally_enabled = models.BooleanField(default=True)
    default_trial_duration_days = models.PositiveIntegerField(default=7)
    trial_credits = models.PositiveIntegerField(default=100)
    max_trials_per_mess = models.PositiveIntegerField(default=1)
    cooldown_period_days = models.PositiveIntegerField(default=30)
    auto_activate_on_registration = models.BooleanField(default=True)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='+'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def clean(self):
        if not 1 <= self.default_trial_duration_days <= 90:
            raise ValidationError({'default_trial_duration_days': 'Must be between 1 and 90 days'})
        if not 1 <= self.max_trials_per_mess <= 5:
            raise ValidationError({'max_trials_per_mess': 'Must be between 1 and 5'})

    @classmethod
    def get_current_settings(cls):
        current = cls.objects.order_by('-created_at', '-pk').first()
        if current is None:
            current = cls.objects.create()
        return current


class MessCredits(models.Model):
    """Per-mess credit ledger.

    ``available_credits`` is derived from ``total_credits - used_credits`` on
    read and is never stored. Balance changes go through ``add_credits`` and
    ``deduct_credits``, which issue single conditional UPDATE statements so
    concurrent requests cannot overdraw the ledger.
    """

    class Meta:
        verbose_name_plural = 'mess credits'
        indexes = [
            models.Index(fields=['status'], name='credits_status_idx'),
            models.Index(fields=['next_billing_date'], name='credits_next_billing_idx'),
            models.Index(fields=['trial_end_date'], name='credits_trial_end_idx'),
        ]

    STATUS_CHOICES = [
        ('active', 'Active'),
        ('suspended', 'Suspended'),
        ('trial', 'Trial'),
        ('expired', 'Expired'),
    ]

    mess = models.OneToOneField('messes.MessProfile', on_delete=models.CASCADE, related_name='credits')
    total_credits = models.PositiveIntegerField(default=0)
    used_credits = models.PositiveIntegerField(default=0)
    last_billing_date = models.DateTimeField(null=True, blank=True)
    next_billing_date = models.DateTimeField(null=True, blank=True)
    is_trial_active = models.BooleanField(default=False)
    trial_start_date = models.DateTimeField(null=True, blank=True)
    trial_end_date = models.DateTimeField(null=True, blank=True)
    monthly_user_count = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='trial')
    auto_renewal = models.BooleanField(default=False)
    last_billing_amount = models.PositiveIntegerField(default=0)
    pending_bill_amount = models.PositiveIntegerField(default=0)
    low_credit_threshold = models.PositiveIntegerField(default=100)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    BALANCE_FIELDS = ['total_credits', 'used_credits', 'updated_at']

    def __str__(self):
        return f"{self.mess}: {self.available_credits} available"

    @property
    def available_credits(self):
        return max(0, self.total_credits - self.used_credits)

    @property
    def is_low_on_credits(self):
        return self.available_credits <= self.low_credit_threshold

    def add_credits(self, amount):
        if amount <= 0:
            raise ValidationError({'amount': 'Credit amount must be positive'})

        MessCredits.objects.filter(pk=self.pk).update(
            total_credits=F('total_credits') + amount,
            updated_at=timezone.now(),
        )
        self.refresh_from_db(fields=self.BALANCE_FIELDS)
        return self

    def deduct_credits(self, amount):
        if amount <= 0:
            raise ValidationError({'amount': 'Deduction amount must be positive'})

        # Sufficiency check is part of the UPDATE filter
        updated = MessCredits.objects.filter(
            pk=self.pk,
            total_credits__gte=F('used_credits') + amount,
        ).update(
            used_credits=F('used_credits') + amount,
            updated_at=timezone.now(),
        )
        self.refresh_from_db(fields=self.BALANCE_FIELDS)
        if not updated:
            raise InsufficientCreditsError(required=amount, available=self.available_credits)

        if self.is_low_on_credits:
            logger.warning(
                f"Mess {self.mess_id} is low on credits: {self.available_credits} left"
            )
        return self

    def is_trial_expired(self, now=None):
        now = now or timezone.now()
        return bool(self.is_trial_active and self.trial_end_date and now > self.trial_end_date)

    def can_access_paid_features(self, now=None):
        return self.available_credits > 0 or (
            self.is_trial_active and not self.is_trial_expired(now)
        )


class CreditTransactionQuerySet(models.QuerySet):
    def for_mess(self, mess, limit=50):
        return (
            self.filter(mess=mess)
            .select_related('plan', 'processed_by')
            .order_by('-created_at', '-pk')[:limit]
        )

    def monthly_stats(self, mess, year, month):
        """Completed totals grouped by transaction type for one calendar month."""
        return list(
            self.filter(
                mess=mess,
                status='completed',
                created_at__year=year,
                created_at__month=month,
            )
            .values('type')
            .annotate(total_amount=Sum('amount'), count=Count('id'))
            .order_by('type')
        )


class CreditTransactionManager(models.Manager.from_queryset(CreditTransactionQuerySet)):
    def create_purchase_transaction(self, mess, plan, amount, reference_id=None, processed_by=None):
        return self.create(
            mess=mess,
            plan=plan,
            type='purchase',
            amount=amount,
            description=f"Credit purchase - {plan.name}",
            reference_id=reference_id,
            processed_by=processed_by,
            status='completed',
        )

    def create_billing_transaction(self, mess, amount, user_count, credits_per_user,
                                   period_start, period_end):
        return self.create(
            mess=mess,
            type='deduction',
            amount=-abs(amount),
            description=f"Monthly billing for {user_count} users at {credits_per_user} credits/user",
            user_count=user_count,
            credits_per_user=credits_per_user,
            billing_period_start=period_start,
            billing_period_end=period_end,
            status='completed',
        )


class CreditTransaction(models.Model):
    """Append-only credit log entry. Only ``status`` may change, and only out of pending."""

    class Meta:
        indexes = [
            models.Index(fields=['mess', '-created_at'], name='credit_tx_mess_created_idx'),
            models.Index(fields=['type', 'status'], name='credit_tx_type_status_idx'),
            models.Index(fields=['reference_id'], name='credit_tx_reference_idx'),
        ]

    TYPE_CHOICES = [
        ('purchase', 'Purchase'),
        ('deduction', 'Deduction'),
        ('bonus', 'Bonus'),
        ('refund', 'Refund'),
        ('adjustment', 'Adjustment'),
        ('trial', 'Trial'),
    ]
    STATUS_CHOICES = [
        ('pending', 'Pending'),
        ('completed', 'Completed'),
        ('failed', 'Failed'),
        ('cancelled', 'Cancelled'),
    ]
    IMMUTABLE_FIELDS = (
        'mess_id', 'type', 'amount', 'description', 'reference_id', 'plan_id',
        'billing_period_start', 'billing_period_end', 'user_count',
        'credits_per_user', 'metadata', 'processed_by_id',
    )

    mess = models.ForeignKey('messes.MessProfile', on_delete=models.CASCADE, related_name='credit_transactions')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)
    amount = models.IntegerField()
    description = models.CharField(max_length=500)
    reference_id = models.CharField(max_length=100, null=True, blank=True)
    plan = models.ForeignKey(CreditPurchasePlan, on_delete=models.SET_NULL, null=True, blank=True)
    billing_period_start = models.DateTimeField(null=True, blank=True)
    billing_period_end = models.DateTimeField(null=True, blank=True)
    user_count = models.PositiveIntegerField(null=True, blank=True)
    credits_per_user = models.PositiveIntegerField(null=True, blank=True)
    metadata = models.JSONField(default=dict, blank=True)
    processed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='+'
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CreditTransactionManager()

    def __str__(self):
        return f"{self.type} {self.amount:+d} ({self.status})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            old = CreditTransaction.objects.get(pk=self.pk)
            changed = [f for f in self.IMMUTABLE_FIELDS if getattr(old, f) != getattr(self, f)]
            if changed:
                raise ValidationError(f"Credit transactions are immutable (attempted to change {', '.join(changed)})")
            if old.status != self.status and old.status != 'pending':
                raise ValidationError(
                    f"Cannot transition transaction from {old.status} to {self.status}"
                )
        super().save(*args, **kwargs)

    def _set_status(self, new_status):
        self.status = new_status
        self.save(update_fields=['status', 'updated_at'])
        return self

    def mark_completed(self):
        return self._set_status('completed')

    def mark_failed(self):
        return self._set_status('failed')

    def mark_cancelled(self):
        return self._set_status('cancelled')
