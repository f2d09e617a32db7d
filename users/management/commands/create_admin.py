# users/management/commands/create_admin.py
import os

from django.core.management.base import BaseCommand, CommandError

from users.models import User


class Command(BaseCommand):
    help = 'Create the platform admin account (values default to ADMIN_* env vars)'

    def add_arguments(self, parser):
        parser.add_argument('--email', default=os.getenv('ADMIN_EMAIL'))
        parser.add_argument('--password', default=os.getenv('ADMIN_PASSWORD'))
        parser.add_argument('--name', default=os.getenv('ADMIN_NAME', 'Administrator'))
        parser.add_argument('--phone', default=os.getenv('ADMIN_PHONE', ''))

    def handle(self, *args, **options):
        email = options['email']
        password = options['password']
        if not email or not password:
            raise CommandError('Provide --email and --password or set ADMIN_EMAIL / ADMIN_PASSWORD')

        existing = User.objects.filter(email=email.lower()).first()
        if existing:
            self.stdout.write(self.style.WARNING(
                f'User {existing.email} already exists (role: {existing.role})'
            ))
            return

        admin = User.objects.create_admin(
            email, password, name=options['name'], phone=options['phone']
        )
        self.stdout.write(self.style.SUCCESS(f'Admin {admin.email} created'))
