from django.core.management.base import BaseCommand
from django.contrib.auth import get_user_model
from django.db import transaction
from apps.credits.services import grant_bonus
from apps.messes.services import register_mess

User = get_user_model()

class Command(BaseCommand):
    help = 'Create a mess owner together with their mess and credit ledger'

    def add_arguments(self, parser):
        parser.add_argument('--email', type=str, required=True)
        parser.add_argument('--password', type=str, required=True)
        parser.add_argument('--username', type=str, required=True)
        parser.add_argument('--mess-name', type=str, required=True)
        parser.add_argument('--credits', type=int, default=0,
                            help='Bonus credits granted to the new ledger')

    def handle(self, *args, **options):
        email = options['email']
        mess_name = options['mess_name']
        credits = options['credits']

        if User.objects.filter(email=email).exists():
            self.stdout.write(
                self.style.ERROR(f'User with email {email} already exists')
            )
            return

        with transaction.atomic():
            user = User.objects.create_user(
                username=options['username'],
                email=email,
                password=options['password'],
                role='mess-owner'
            )
            mess = register_mess(owner=user, name=mess_name)
            if credits > 0:
                grant_bonus(mess, credits, 'Initial credits (management command)')

        self.stdout.write(
            self.style.SUCCESS(
                f'Successfully created mess owner {email} for mess "{mess_name}" (id {mess.pk})'
            )
        )
