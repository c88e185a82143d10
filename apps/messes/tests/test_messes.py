from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.test import TestCase

from apps.credits.models import FreeTrialSettings
from apps.messes.models import MessMembership
from apps.messes.services import register_mess

User = get_user_model()


class RegisterMessTest(TestCase):
    def setUp(self):
        self.owner = User.objects.create_user(
            username='owner', email='owner@mess.test', password='pass12345', role='mess-owner'
        )

    def test_register_opens_trial_ledger(self):
        mess = register_mess(self.owner, 'Sai Mess')
        self.assertEqual(self.owner.mess_profile, mess)
        self.assertTrue(mess.credits.is_trial_active)

    def test_register_without_auto_trial(self):
        FreeTrialSettings.objects.create(auto_activate_on_registration=False)
        mess = register_mess(self.owner, 'Sai Mess')
        self.assertFalse(mess.credits.is_trial_active)
        self.assertEqual(mess.credits.status, 'active')

    def test_subscriber_count_only_counts_active(self):
        mess = register_mess(self.owner, 'Sai Mess')
        for i, membership_status in enumerate(['active', 'active', 'pending', 'cancelled']):
            user = User.objects.create_user(
                username=f'member{i}', email=f'member{i}@mess.test', password='pass12345'
            )
            MessMembership.objects.create(user=user, mess=mess, status=membership_status)
        self.assertEqual(mess.subscriber_count(), 2)

    def test_one_membership_per_user_and_mess(self):
        mess = register_mess(self.owner, 'Sai Mess')
        user = User.objects.create_user(username='member', email='member@mess.test', password='pass12345')
        MessMembership.objects.create(user=user, mess=mess, status='active')
        with self.assertRaises(IntegrityError), transaction.atomic():
            MessMembership.objects.create(user=user, mess=mess, status='pending')
