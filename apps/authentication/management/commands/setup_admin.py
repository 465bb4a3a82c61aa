"""
Management command to create the first administrator account.
"""

import getpass

from django.contrib.auth import password_validation
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from apps.authentication.models import User


class Command(BaseCommand):
    help = 'Create the initial administrator account'

    def add_arguments(self, parser):
        parser.add_argument('--username', type=str, help='Admin username')
        parser.add_argument('--password', type=str, help='Admin password (prompted when omitted)')
        parser.add_argument('--email', type=str, default='', help='Admin email')
        parser.add_argument('--force', action='store_true', help='Create the account even when users exist')
        parser.add_argument(
            '--no-password-change',
            action='store_true',
            help='Do not require a password change at first login',
        )
        parser.add_argument('--noinput', '--no-input', action='store_false', dest='interactive')

    def handle(self, *args, **options):
        if User.objects.exists() and not options['force']:
            raise CommandError('Users already exist. Re-run with --force to add another administrator.')

        username = options['username']
        password = options['password']
        if not username:
            if not options['interactive']:
                raise CommandError('--username is required with --noinput.')
            username = input('Username: ').strip()
        if not username:
            raise CommandError('A username is required.')
        if User.objects.filter(username__iexact=username).exists():
            raise CommandError(f'User "{username}" already exists.')

        if not password:
            if not options['interactive']:
                raise CommandError('--password is required with --noinput.')
            password = getpass.getpass('Password: ')
            if password != getpass.getpass('Password (again): '):
                raise CommandError('Passwords do not match.')

        candidate = User(username=username, email=options['email'])
        try:
            password_validation.validate_password(password, user=candidate)
        except ValidationError as exc:
            raise CommandError('Password rejected: ' + ' '.join(exc.messages))

        with transaction.atomic():
            user = User.objects.create_superuser(
                username=username,
                password=password,
                email=options['email'],
                require_password_change=not options['no_password_change'],
            )

        self.stdout.write(self.style.SUCCESS(f'Successfully created administrator: {user.username}'))
        if user.require_password_change:
            self.stdout.write(self.style.WARNING('The password must be changed at first login.'))
