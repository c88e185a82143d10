from io import StringIO

from django.core.management import call_command
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.authentication.models import User
from apps.credits.models import CreditTransaction, MessCredits
from apps.messes.models import MessProfile


class JWTAuthTestCase(APITestCase):
    def setUp(self):
        self.user_data = {
            'username': 'testuser',
            'email': 'test@example.com',
            'password': 'testpass123',
        }
        self.user = User.objects.create_user(**self.user_data)

    def test_user_registration(self):
        """Registration returns the user and a JWT pair"""
        response = self.client.post(reverse('register'), {
            'username': 'newuser',
            'email': 'new@example.com',
            'password': 'newpass123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['role'], 'user')

    def test_mess_owner_registration_opens_ledger(self):
        response = self.client.post(reverse('register'), {
            'username': 'owner',
            'email': 'owner@example.com',
            'password': 'ownerpass123',
            'role': 'mess-owner',
            'mess_name': 'Annapurna Mess',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        mess = MessProfile.objects.get(owner__email='owner@example.com')
        ledger = MessCredits.objects.get(mess=mess)
        self.assertEqual(ledger.status, 'trial')
        self.assertEqual(ledger.available_credits, 100)

    def test_mess_owner_needs_mess_name(self):
        response = self.client.post(reverse('register'), {
            'username': 'owner',
            'email': 'owner@example.com',
            'password': 'ownerpass123',
            'role': 'mess-owner',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.filter(email='owner@example.com').exists())

    def test_user_login(self):
        """Login with email and password returns a JWT pair"""
        response = self.client.post(reverse('login'), {
            'email': self.user_data['email'],
            'password': self.user_data['password']
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertIn('refresh', response.data)

    def test_bad_credentials(self):
        response = self.client.post(reverse('login'), {
            'email': self.user_data['email'],
            'password': 'wrong-password'
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_logout_blacklists_refresh_token(self):
        tokens = self.client.post(reverse('login'), {
            'email': self.user_data['email'],
            'password': self.user_data['password']
        }, format='json').data
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")

        self.assertEqual(self.client.post(reverse('logout'), {}, format='json').status_code,
                         status.HTTP_400_BAD_REQUEST)
        response = self.client.post(reverse('logout'), {'refresh': tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_205_RESET_CONTENT)

        response = self.client.post(reverse('token_refresh'), {'refresh': tokens['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class CreateMessOwnerCommandTest(APITestCase):
    def test_creates_owner_mess_and_credits(self):
        out = StringIO()
        call_command(
            'create_mess_owner', '--email=cmd@example.com', '--password=cmdpass123',
            '--username=cmd', '--mess-name=Command Mess', '--credits=250', stdout=out,
        )
        self.assertIn('Successfully created mess owner', out.getvalue())

        user = User.objects.get(email='cmd@example.com')
        self.assertEqual(user.role, 'mess-owner')
        ledger = user.mess_profile.credits
        self.assertEqual(ledger.available_credits, 350)
        self.assertTrue(CreditTransaction.objects.filter(mess=user.mess_profile, type='bonus', amount=250).exists())

    def test_duplicate_email_reported(self):
        User.objects.create_user(username='taken', email='taken@example.com', password='x' * 10)
        out = StringIO()
        call_command(
            'create_mess_owner', '--email=taken@example.com', '--password=cmdpass123',
            '--username=other', '--mess-name=Dup Mess', stdout=out,
        )
        self.assertIn('already exists', out.getvalue())
        self.assertFalse(MessProfile.objects.exists())
