from datetime import timedelta

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from apps.credits.models import CreditTransaction, MessCredits
from apps.messes.models import MessProfile
from core.exceptions import InsufficientCreditsError

User = get_user_model()


def make_mess(email='owner@mess.test', name='Annapurna Mess'):
    owner = User.objects.create_user(
        username=email.split('@')[0], email=email, password='pass12345', role='mess-owner'
    )
    return MessProfile.objects.create(owner=owner, name=name)


class MessCreditsLedgerTest(TestCase):
    def setUp(self):
        self.mess = make_mess()
        self.ledger = MessCredits.objects.create(mess=self.mess, total_credits=100, status='active')

    def test_available_is_derived(self):
        self.assertEqual(self.ledger.available_credits, 100)
        self.ledger.used_credits = 130
        self.assertEqual(self.ledger.available_credits, 0)

    def test_overdraw_raises_and_leaves_ledger_unchanged(self):
        with self.assertRaises(InsufficientCreditsError) as ctx:
            self.ledger.deduct_credits(150)
        self.assertEqual(ctx.exception.required, 150)
        self.assertEqual(ctx.exception.available, 100)

        self.ledger.refresh_from_db()
        self.assertEqual((self.ledger.total_credits, self.ledger.used_credits), (100, 0))

    def test_deduct(self):
        self.ledger.deduct_credits(60)
        self.assertEqual(
            (self.ledger.total_credits, self.ledger.used_credits, self.ledger.available_credits),
            (100, 60, 40)
        )

    def test_deduct_uses_current_row_not_stale_instance(self):
        stale = MessCredits.objects.get(pk=self.ledger.pk)
        self.ledger.deduct_credits(80)
        with self.assertRaises(InsufficientCreditsError):
            stale.deduct_credits(30)
        self.ledger.refresh_from_db()
        self.assertEqual(self.ledger.used_credits, 80)

    def test_add_credits(self):
        self.ledger.add_credits(25)
        self.assertEqual(self.ledger.total_credits, 125)

    def test_non_positive_amounts_rejected(self):
        with self.assertRaises(ValidationError):
            self.ledger.add_credits(0)
        with self.assertRaises(ValidationError):
            self.ledger.deduct_credits(-5)

    def test_low_credit_flag(self):
        self.assertTrue(self.ledger.is_low_on_credits)
        self.ledger.add_credits(500)
        self.assertFalse(self.ledger.is_low_on_credits)


class TrialAccessTest(TestCase):
    def setUp(self):
        self.ledger = MessCredits.objects.create(mess=make_mess(), is_trial_active=True)

    def test_trial_in_progress_grants_access(self):
        self.ledger.trial_end_date = timezone.now() + timedelta(days=3)
        self.assertFalse(self.ledger.is_trial_expired())
        self.assertTrue(self.ledger.can_access_paid_features())

    def test_expired_trial_falls_back_to_balance(self):
        self.ledger.trial_end_date = timezone.now() - timedelta(days=1)
        self.assertTrue(self.ledger.is_trial_expired())
        self.assertFalse(self.ledger.can_access_paid_features())

        self.ledger.total_credits = 10
        self.assertTrue(self.ledger.can_access_paid_features())

    def test_inactive_trial_never_expired(self):
        self.ledger.is_trial_active = False
        self.ledger.trial_end_date = timezone.now() - timedelta(days=1)
        self.assertFalse(self.ledger.is_trial_expired())


class CreditTransactionImmutabilityTest(TestCase):
    def setUp(self):
        self.mess = make_mess()
        self.entry = CreditTransaction.objects.create(
            mess=self.mess, type='purchase', amount=500, description='Credit purchase - Starter',
            reference_id='pay_123',
        )

    def test_pending_entry_can_complete_once(self):
        self.entry.mark_completed()
        self.entry.refresh_from_db()
        self.assertEqual(self.entry.status, 'completed')

        with self.assertRaises(ValidationError):
            self.entry.mark_failed()

    def test_content_fields_cannot_change(self):
        self.entry.amount = 5000
        with self.assertRaises(ValidationError):
            self.entry.save()

    def test_billing_factory_stores_negative_amount(self):
        now = timezone.now()
        entry = CreditTransaction.objects.create_billing_transaction(
            mess=self.mess, amount=240, user_count=30, credits_per_user=8,
            period_start=now - timedelta(days=30), period_end=now,
        )
        self.assertEqual(entry.amount, -240)
        self.assertEqual(entry.status, 'completed')

    def test_monthly_stats_only_counts_completed(self):
        CreditTransaction.objects.create(
            mess=self.mess, type='bonus', amount=50, description='Welcome', status='completed'
        )
        now = timezone.now()
        stats = CreditTransaction.objects.monthly_stats(self.mess, now.year, now.month)
        self.assertEqual(stats, [{'type': 'bonus', 'total_amount': 50, 'count': 1}])
