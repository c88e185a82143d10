from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.utils import timezone

from apps.credits import services, tasks
from apps.credits.models import CreditSlab, MessCredits
from apps.messes.models import MessMembership, MessProfile

User = get_user_model()


class BillingTaskTest(TestCase):
    def setUp(self):
        CreditSlab.objects.create(min_users=1, max_users=100, credits_per_user=5)
        self.messes = []
        for i, credits in enumerate([100, 0]):
            owner = User.objects.create_user(
                username=f'owner{i}', email=f'owner{i}@mess.test', password='pass12345', role='mess-owner'
            )
            mess = MessProfile.objects.create(owner=owner, name=f'Mess {i}')
            services.initialize_mess_credits(mess, start_trial=False, initial_credits=credits)
            member = User.objects.create_user(
                username=f'member{i}', email=f'member{i}@mess.test', password='pass12345'
            )
            MessMembership.objects.create(user=member, mess=mess, status='active')
            self.messes.append(mess)
        MessCredits.objects.update(next_billing_date=timezone.now() - timedelta(minutes=1))

    def test_run_due_billing_reports_each_mess(self):
        results = tasks.run_due_billing.delay().get()
        by_mess = {r['mess_id']: r for r in results}

        self.assertEqual(by_mess[self.messes[0].pk]['status'], 'success')
        self.assertEqual(by_mess[self.messes[0].pk]['credits_deducted'], 5)
        self.assertEqual(by_mess[self.messes[1].pk]['status'], 'suspended')
        self.assertEqual(by_mess[self.messes[1].pk]['required_credits'], 5)

    def test_expire_trials_task(self):
        MessCredits.objects.filter(mess=self.messes[0]).update(
            is_trial_active=True, trial_end_date=timezone.now() - timedelta(days=1)
        )
        self.assertEqual(tasks.expire_trials.delay().get(), {'expired_trials': 1})
        self.assertEqual(services.get_ledger(self.messes[0]).status, 'active')
