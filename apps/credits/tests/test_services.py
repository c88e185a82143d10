from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.test import TestCase
from django.utils import timezone

from apps.credits import services
from apps.credits.models import (
    CreditPurchasePlan, CreditSlab, CreditTransaction, FreeTrialSettings, MessCredits,
)
from apps.messes.models import MessMembership, MessProfile
from core.exceptions import CreditAccountNotFound, InsufficientCreditsError, NoApplicableSlabError

User = get_user_model()


class CreditServiceTestCase(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(
            username='owner', email='owner@mess.test', password='pass12345', role='mess-owner'
        )
        self.mess = MessProfile.objects.create(owner=self.owner, name='Sai Mess')
        self.plan = CreditPurchasePlan.objects.create(
            name='Starter', description='Starter pack', base_credits=500, bonus_credits=50,
            price=Decimal('499.00'),
        )

    def open_ledger(self, credits=0):
        return services.initialize_mess_credits(self.mess, start_trial=False, initial_credits=credits)


class InitializeCreditsTest(CreditServiceTestCase):
    def test_trial_grants_credits_and_logs_entry(self):
        ledger = services.initialize_mess_credits(self.mess)
        self.assertEqual(ledger.status, 'trial')
        self.assertTrue(ledger.is_trial_active)
        self.assertEqual(ledger.available_credits, 100)
        self.assertEqual(ledger.trial_end_date - ledger.trial_start_date, timedelta(days=7))
        self.assertTrue(CreditTransaction.objects.filter(mess=self.mess, type='trial', amount=100).exists())

    def test_is_idempotent(self):
        first = services.initialize_mess_credits(self.mess)
        second = services.initialize_mess_credits(self.mess)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(CreditTransaction.objects.filter(mess=self.mess).count(), 1)

    def test_disabled_trials_open_active_ledger(self):
        FreeTrialSettings.objects.create(is_globally_enabled=False)
        ledger = services.initialize_mess_credits(self.mess)
        self.assertEqual(ledger.status, 'active')
        self.assertFalse(ledger.is_trial_active)

    def test_missing_ledger(self):
        with self.assertRaises(CreditAccountNotFound):
            services.get_ledger(self.mess)


class FreeTrialTest(CreditServiceTestCase):
    def test_trial_limit(self):
        services.initialize_mess_credits(self.mess)
        MessCredits.objects.filter(mess=self.mess).update(
            is_trial_active=False, trial_end_date=timezone.now() - timedelta(days=60)
        )
        with self.assertRaisesMessage(ValidationError, 'Maximum trial limit reached'):
            services.activate_free_trial(self.mess)

    def test_cooldown(self):
        FreeTrialSettings.objects.create(max_trials_per_mess=2, cooldown_period_days=30)
        services.initialize_mess_credits(self.mess)
        MessCredits.objects.filter(mess=self.mess).update(
            is_trial_active=False, trial_end_date=timezone.now() - timedelta(days=5)
        )
        with self.assertRaises(ValidationError):
            services.activate_free_trial(self.mess)

        MessCredits.objects.filter(mess=self.mess).update(trial_end_date=timezone.now() - timedelta(days=31))
        ledger = services.activate_free_trial(self.mess)
        self.assertTrue(ledger.is_trial_active)
        self.assertEqual(ledger.available_credits, 200)

    def test_expire_trials(self):
        services.initialize_mess_credits(self.mess)
        MessCredits.objects.filter(mess=self.mess).update(
            trial_end_date=timezone.now() - timedelta(hours=1), used_credits=100
        )
        self.assertEqual(services.expire_trials(), 1)
        ledger = services.get_ledger(self.mess)
        self.assertFalse(ledger.is_trial_active)
        self.assertEqual(ledger.status, 'expired')


class PurchaseTest(CreditServiceTestCase):
    def test_purchase_adds_total_credits(self):
        self.open_ledger()
        ledger, entry = services.purchase_credits(self.mess, self.plan, payment_reference='pay_1')
        self.assertEqual(ledger.available_credits, 550)
        self.assertEqual((entry.type, entry.amount, entry.status), ('purchase', 550, 'completed'))

    def test_purchase_revives_expired_ledger(self):
        self.open_ledger()
        MessCredits.objects.filter(mess=self.mess).update(status='expired')
        ledger, _ = services.purchase_credits(self.mess, self.plan)
        self.assertEqual(ledger.status, 'active')

    def test_inactive_plan_rejected(self):
        self.open_ledger()
        self.plan.is_active = False
        with self.assertRaises(ValidationError):
            services.purchase_credits(self.mess, self.plan)

    def test_settle_pending_purchase(self):
        self.open_ledger()
        services.record_pending_purchase(self.mess, self.plan, 'pay_ok')
        self.assertEqual(services.get_ledger(self.mess).available_credits, 0)

        entry = services.settle_purchase('pay_ok', success=True)
        self.assertEqual(entry.status, 'completed')
        self.assertEqual(services.get_ledger(self.mess).available_credits, 550)

        with self.assertRaises(ValidationError):
            services.settle_purchase('pay_ok', success=True)

    def test_failed_payment_adds_nothing(self):
        self.open_ledger()
        services.record_pending_purchase(self.mess, self.plan, 'pay_bad')
        entry = services.settle_purchase('pay_bad', success=False)
        self.assertEqual(entry.status, 'failed')
        self.assertEqual(services.get_ledger(self.mess).available_credits, 0)

    def test_payment_reference_used_once(self):
        self.open_ledger()
        services.record_pending_purchase(self.mess, self.plan, 'pay_dup')
        with self.assertRaises(ValidationError):
            services.record_pending_purchase(self.mess, self.plan, 'pay_dup')


class DeductAndAdjustTest(CreditServiceTestCase):
    def test_deduction_is_logged(self):
        self.open_ledger(100)
        ledger, entry = services.deduct_credits(self.mess, 40, 'Campaign: Lunch offer', {'campaign_id': 7})
        self.assertEqual(ledger.available_credits, 60)
        self.assertEqual(entry.amount, -40)
        self.assertEqual(entry.metadata, {'campaign_id': 7})

    def test_failed_deduction_writes_nothing(self):
        self.open_ledger(100)
        before = CreditTransaction.objects.count()
        with self.assertRaises(InsufficientCreditsError):
            services.deduct_credits(self.mess, 150, 'Too much')
        self.assertEqual(CreditTransaction.objects.count(), before)
        self.assertEqual(services.get_ledger(self.mess).used_credits, 0)

    def test_signed_adjustment(self):
        self.open_ledger(100)
        ledger, _ = services.adjust_credits(self.mess, -30, 'Correction')
        self.assertEqual(ledger.available_credits, 70)
        ledger, entry = services.adjust_credits(self.mess, 10, 'Goodwill')
        self.assertEqual(ledger.available_credits, 80)
        self.assertEqual(entry.type, 'adjustment')

        with self.assertRaises(ValidationError):
            services.adjust_credits(self.mess, 0, 'Nothing')

    def test_refund_and_bonus(self):
        self.open_ledger()
        services.refund_credits(self.mess, 20, 'Campaign refund')
        ledger, entry = services.grant_bonus(self.mess, 5, 'Loyalty')
        self.assertEqual(ledger.available_credits, 25)
        self.assertEqual(entry.type, 'bonus')

    def test_details(self):
        self.open_ledger(100)
        details = services.get_mess_credits_details(self.mess)
        self.assertEqual(details['credits'].available_credits, 100)
        self.assertEqual(len(details['recent_transactions']), 1)


class BillingTest(CreditServiceTestCase):
    def setUp(self):
        super().setUp()
        CreditSlab.objects.create(min_users=1, max_users=50, credits_per_user=10)
        for i in range(3):
            member = User.objects.create_user(
                username=f'member{i}', email=f'member{i}@mess.test', password='pass12345'
            )
            MessMembership.objects.create(user=member, mess=self.mess, status='active')

    def test_bill_mess(self):
        self.open_ledger(100)
        result = services.bill_mess(self.mess)
        self.assertEqual(result['credits_deducted'], 30)
        self.assertEqual(result['user_count'], 3)

        ledger = services.get_ledger(self.mess)
        self.assertEqual(ledger.available_credits, 70)
        self.assertEqual(ledger.last_billing_amount, 30)
        self.assertGreater(ledger.next_billing_date, ledger.last_billing_date)
        entry = CreditTransaction.objects.get(mess=self.mess, type='deduction')
        self.assertEqual((entry.amount, entry.user_count, entry.credits_per_user), (-30, 3, 10))

    def test_insufficient_credits_suspends(self):
        self.open_ledger(10)
        with self.assertRaises(InsufficientCreditsError):
            services.bill_mess(self.mess)
        ledger = services.get_ledger(self.mess)
        self.assertEqual(ledger.status, 'suspended')
        self.assertEqual(ledger.pending_bill_amount, 30)
        self.assertEqual(ledger.used_credits, 0)

    def test_trial_sweep_keeps_billing_suspension(self):
        services.initialize_mess_credits(self.mess)
        MessCredits.objects.filter(mess=self.mess).update(used_credits=90)
        with self.assertRaises(InsufficientCreditsError):
            services.bill_mess(self.mess)

        self.assertEqual(services.expire_trials(timezone.now() + timedelta(days=8)), 1)
        ledger = services.get_ledger(self.mess)
        self.assertFalse(ledger.is_trial_active)
        self.assertEqual(ledger.status, 'suspended')
        self.assertEqual(ledger.pending_bill_amount, 30)

    def test_no_slab(self):
        self.open_ledger(100)
        CreditSlab.objects.all().delete()
        with self.assertRaises(NoApplicableSlabError):
            services.bill_mess(self.mess)

    def test_due_billing_selection(self):
        self.open_ledger(100)
        self.assertFalse(services.find_due_billing().exists())
        MessCredits.objects.filter(mess=self.mess).update(next_billing_date=timezone.now() - timedelta(days=1))
        self.assertEqual(list(services.find_due_billing().values_list('mess_id', flat=True)), [self.mess.pk])
