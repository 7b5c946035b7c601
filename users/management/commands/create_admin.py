import os

from django.core.management.base import BaseCommand, CommandError
from users.models import User


class Command(BaseCommand):
    help = 'Creates the initial administrator account from ADMIN_EMAIL / ADMIN_PASSWORD.'

    def add_arguments(self, parser):
        parser.add_argument('--email', default=os.getenv('ADMIN_EMAIL'))
        parser.add_argument('--password', default=os.getenv('ADMIN_PASSWORD'))
        parser.add_argument('--name', default=os.getenv('ADMIN_NAME', 'Administrator'))

    def handle(self, *args, **options):
        email = options['email']
        password = options['password']
        if not email or not password:
            raise CommandError('ADMIN_EMAIL and ADMIN_PASSWORD must be set (or pass --email/--password).')

        existing = User.objects.filter(email__iexact=email).first()
        if existing:
            if existing.role != User.ADMIN:
                existing.role = User.ADMIN
                existing.save(update_fields=['role'])
                self.stdout.write(self.style.WARNING(f'Promoted existing user to admin: {existing.email}'))
            else:
                self.stdout.write(self.style.SUCCESS(f'Admin already exists: {existing.email}'))
            return

        user = User.objects.create_superuser(email, password, name=options['name'])
        self.stdout.write(self.style.SUCCESS(f'Created admin: {user.email}'))
