import logging
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from django.utils import timezone

from core.exceptions import CreditAccountNotFound, InsufficientCreditsError
from . import slabs
from .models import CreditTransaction, FreeTrialSettings, MessCredits

logger = logging.getLogger(__name__)


def get_ledger(mess, for_update=False):
    queryset = MessCredits.objects.all()
    if for_update:
        queryset = queryset.select_for_update()
    try:
        return queryset.get(mess=mess)
    except MessCredits.DoesNotExist:
        raise CreditAccountNotFound()


def _start_trial(ledger, trial_settings, now):
    ledger.is_trial_active = True
    ledger.trial_start_date = now
    ledger.trial_end_date = now + timedelta(days=trial_settings.default_trial_duration_days)
    ledger.status = 'trial'
    ledger.save(update_fields=['is_trial_active', 'trial_start_date', 'trial_end_date', 'status', 'updated_at'])
    if trial_settings.trial_credits:
        ledger.add_credits(trial_settings.trial_credits)
    CreditTransaction.objects.create(
        mess=ledger.mess,
        type='trial',
        amount=trial_settings.trial_credits,
        description=f"Free trial activated - {trial_settings.default_trial_duration_days} days",
        status='completed',
    )


def initialize_mess_credits(mess, start_trial=True, initial_credits=0):
    """Open the ledger for ``mess``. Returns the existing ledger if there is one."""
    existing = MessCredits.objects.filter(mess=mess).first()
    if existing is not None:
        return existing

    trial_settings = FreeTrialSettings.get_current_settings()
    trial = start_trial and trial_settings.is_globally_enabled
    now = timezone.now()

    with transaction.atomic():
        ledger = MessCredits.objects.create(
            mess=mess,
            status='trial' if trial else 'active',
            next_billing_date=now + timedelta(days=settings.BILLING_CYCLE_DAYS),
        )
        if initial_credits:
            ledger.add_credits(initial_credits)
            CreditTransaction.objects.create(
                mess=mess,
                type='bonus',
                amount=initial_credits,
                description='Initial credits',
                status='completed',
            )
        if trial:
            _start_trial(ledger, trial_settings, now)

    logger.info(f"Credit ledger opened for mess {mess.pk} (trial={trial})")
    return ledger


def activate_free_trial(mess):
    trial_settings = FreeTrialSettings.get_current_settings()
    if not trial_settings.is_globally_enabled:
        raise ValidationError('Free trials are currently disabled')

    now = timezone.now()
    with transaction.atomic():
        ledger = get_ledger(mess, for_update=True)
        if ledger.is_trial_active and not ledger.is_trial_expired(now):
            raise ValidationError('Trial is already active')

        previous_trials = CreditTransaction.objects.filter(mess=mess, type='trial').count()
        if previous_trials >= trial_settings.max_trials_per_mess:
            raise ValidationError('Maximum trial limit reached')

        if ledger.trial_end_date:
            cooldown_ends = ledger.trial_end_date + timedelta(days=trial_settings.cooldown_period_days)
            if now < cooldown_ends:
                raise ValidationError(f"A new trial is available after {cooldown_ends:%Y-%m-%d}")

        _start_trial(ledger, trial_settings, now)

    logger.info(f"Free trial activated for mess {mess.pk}")
    return ledger


def expire_trials(now=None):
    """Close every trial whose end date has passed. Returns the number closed."""
    now = now or timezone.now()
    expired = MessCredits.objects.filter(is_trial_active=True, trial_end_date__lt=now)
    count = 0
    for ledger in expired:
        ledger.is_trial_active = False
        if ledger.status == 'trial':
            ledger.status = 'active' if ledger.available_credits > 0 else 'expired'
        ledger.save(update_fields=['is_trial_active', 'status', 'updated_at'])
        logger.info(f"Trial expired for mess {ledger.mess_id}; status now {ledger.status}")
        count += 1
    return count


def _revive(ledger):
    if ledger.status in ('expired', 'suspended'):
        logger.info(f"Mess {ledger.mess_id} credits reactivated from {ledger.status}")
        ledger.status = 'active'
        ledger.save(update_fields=['status', 'updated_at'])


def purchase_credits(mess, plan, payment_reference=None, processed_by=None):
    if not plan.is_active:
        raise ValidationError('Invalid or inactive credit plan')

    with transaction.atomic():
        ledger = get_ledger(mess, for_update=True)
        ledger.add_credits(plan.total_credits)
        entry = CreditTransaction.objects.create_purchase_transaction(
            mess=mess,
            plan=plan,
            amount=plan.total_credits,
            reference_id=payment_reference,
            processed_by=processed_by,
        )
        _revive(ledger)

    logger.info(f"Mess {mess.pk} purchased {plan.total_credits} credits ({plan.name})")
    return ledger, entry


def record_pending_purchase(mess, plan, payment_reference):
    """Log a purchase awaiting payment-gateway confirmation. The ledger is untouched."""
    if not plan.is_active:
        raise ValidationError('Invalid or inactive credit plan')
    get_ledger(mess)
    if CreditTransaction.objects.filter(type='purchase', reference_id=payment_reference).exists():
        raise ValidationError(f"Payment reference {payment_reference} is already in use")
    return CreditTransaction.objects.create(
        mess=mess,
        plan=plan,
        type='purchase',
        amount=plan.total_credits,
        description=f"Credit purchase - {plan.name}",
        reference_id=payment_reference,
        status='pending',
    )


def settle_purchase(payment_reference, success):
    """Apply a payment-gateway confirmation to its pending purchase."""
    with transaction.atomic():
        entry = (
            CreditTransaction.objects.select_for_update()
            .filter(reference_id=payment_reference, type='purchase')
            .order_by('-created_at')
            .first()
        )
        if entry is None:
            raise ValidationError(f"No purchase found for reference {payment_reference}")
        if entry.status != 'pending':
            raise ValidationError(f"Purchase {payment_reference} is already {entry.status}")

        if not success:
            entry.mark_failed()
            logger.warning(f"Payment {payment_reference} failed for mess {entry.mess_id}")
            return entry

        ledger = get_ledger(entry.mess, for_update=True)
        ledger.add_credits(entry.amount)
        entry.mark_completed()
        _revive(ledger)

    logger.info(f"Payment {payment_reference} settled: {entry.amount} credits to mess {entry.mess_id}")
    return entry


def deduct_credits(mess, amount, description, metadata=None):
    """Deduct from the ledger and log it; both happen or neither does."""
    with transaction.atomic():
        ledger = get_ledger(mess)
        ledger.deduct_credits(amount)
        entry = CreditTransaction.objects.create(
            mess=mess,
            type='deduction',
            amount=-amount,
            description=description,
            metadata=metadata or {},
            status='completed',
        )
    logger.info(f"Deducted {amount} credits from mess {mess.pk}: {description}")
    return ledger, entry


def _credit(mess, amount, tx_type, description, processed_by=None, metadata=None):
    if amount <= 0:
        raise ValidationError({'amount': 'Credit amount must be positive'})
    with transaction.atomic():
        ledger = get_ledger(mess, for_update=True)
        ledger.add_credits(amount)
        entry = CreditTransaction.objects.create(
            mess=mess,
            type=tx_type,
            amount=amount,
            description=description,
            processed_by=processed_by,
            metadata=metadata or {},
            status='completed',
        )
        _revive(ledger)
    logger.info(f"{tx_type.capitalize()} of {amount} credits to mess {mess.pk}: {description}")
    return ledger, entry


def refund_credits(mess, amount, description, processed_by=None, metadata=None):
    return _credit(mess, amount, 'refund', description, processed_by, metadata)


def grant_bonus(mess, amount, description, processed_by=None):
    return _credit(mess, amount, 'bonus', description, processed_by)


def adjust_credits(mess, amount, description, processed_by=None):
    """Signed admin correction: positive adds, negative deducts."""
    if amount == 0:
        raise ValidationError({'amount': 'Adjustment amount cannot be zero'})

    with transaction.atomic():
        ledger = get_ledger(mess)
        if amount > 0:
            ledger.add_credits(amount)
        else:
            ledger.deduct_credits(abs(amount))
        entry = CreditTransaction.objects.create(
            mess=mess,
            type='adjustment',
            amount=amount,
            description=description,
            processed_by=processed_by,
            status='completed',
        )
    logger.info(f"Adjusted mess {mess.pk} credits by {amount:+d}: {description}")
    return ledger, entry


def find_due_billing(now=None):
    now = now or timezone.now()
    return MessCredits.objects.select_related('mess').filter(
        next_billing_date__lte=now,
        status__in=['active', 'trial', 'suspended'],
    )


def bill_mess(mess, period_start=None, period_end=None):
    """Charge ``mess`` for its active subscribers using the slab table."""
    period_end = period_end or timezone.now()
    period_start = period_start or period_end - timedelta(days=settings.BILLING_CYCLE_DAYS)
    user_count = mess.subscriber_count()

    ledger = get_ledger(mess)
    if user_count == 0:
        credits, credits_per_user = 0, 0
    else:
        slab = slabs.resolve(user_count)
        credits_per_user = slab.credits_per_user
        credits = user_count * credits_per_user

    try:
        with transaction.atomic():
            if credits:
                ledger.deduct_credits(credits)
                CreditTransaction.objects.create_billing_transaction(
                    mess=mess,
                    amount=credits,
                    user_count=user_count,
                    credits_per_user=credits_per_user,
                    period_start=period_start,
                    period_end=period_end,
                )
            ledger.monthly_user_count = user_count
            ledger.last_billing_date = period_end
            ledger.next_billing_date = period_end + timedelta(days=settings.BILLING_CYCLE_DAYS)
            ledger.last_billing_amount = credits
            ledger.pending_bill_amount = 0
            if ledger.status == 'suspended':
                ledger.status = 'active'
            ledger.save(update_fields=[
                'monthly_user_count', 'last_billing_date', 'next_billing_date',
                'last_billing_amount', 'pending_bill_amount', 'status', 'updated_at',
            ])
    except InsufficientCreditsError:
        ledger.status = 'suspended'
        ledger.pending_bill_amount = credits
        ledger.monthly_user_count = user_count
        ledger.save(update_fields=['status', 'pending_bill_amount', 'monthly_user_count', 'updated_at'])
        logger.warning(f"Mess {mess.pk} suspended: billing needs {credits}, has {ledger.available_credits}")
        raise

    logger.info(f"Billed mess {mess.pk}: {credits} credits for {user_count} users")
    return {
        'mess_id': mess.pk,
        'status': 'success',
        'credits_deducted': credits,
        'user_count': user_count,
    }


def get_mess_credits_details(mess):
    ledger = get_ledger(mess)
    return {
        'credits': ledger,
        'recent_transactions': list(CreditTransaction.objects.for_mess(mess, limit=10)),
        'next_billing': ledger.next_billing_date,
    }
