"""
Invitation and Registration Tests
=================================
Validates:
  1. HR invitations (role limits, duplicate pending invitations, email)
  2. Token lookup for the registration page
  3. Registration is atomic and single-use
  4. Login / logout / password change
  5. setup_admin management command (no default credentials)

Run:
    python manage.py test tests.test_registration -v2
"""

from datetime import timedelta
from io import StringIO
from unittest.mock import patch

from django.core import mail
from django.core.management import CommandError, call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from apps.authentication.models import Invitation, User
from apps.authentication.services import RegistrationService
from apps.core.exceptions import ValidationException
from apps.employees.models import Employee
from tests.factories import EmployeeFactory, HRUserFactory, InvitationFactory, UserFactory

PASSWORD = 'Tidal-Orchard-47'


def _authenticated_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


# ─── 1. Invitations ──────────────────────────────────────────────────────────

class InvitationApiTests(TestCase):

    def setUp(self):
        self.hr = HRUserFactory()
        self.client = _authenticated_client(self.hr)

    def test_create_sends_email(self):
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post('/api/invitations', {
                'email': 'New.Hire@Example.com',
                'first_name': 'New',
                'last_name': 'Hire',
            }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        invitation = Invitation.objects.get()
        self.assertEqual(invitation.email, 'new.hire@example.com')
        self.assertEqual(invitation.intended_role, User.ROLE_PROSPECTIVE)
        self.assertEqual(invitation.invited_by, self.hr)
        self.assertEqual(len(mail.outbox), 1)
        self.assertIn(invitation.token, mail.outbox[0].body)

    def test_admin_role_rejected(self):
        response = self.client.post('/api/invitations', {
            'email': 'boss@example.com', 'first_name': 'B', 'last_name': 'Oss', 'intended_role': 'admin',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Invitation.objects.exists())

    def test_duplicate_pending_rejected(self):
        InvitationFactory(email='dup@example.com')
        response = self.client.post('/api/invitations', {
            'email': 'dup@example.com', 'first_name': 'D', 'last_name': 'Up',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_employee_cannot_invite(self):
        response = _authenticated_client(UserFactory()).post('/api/invitations', {
            'email': 'x@example.com', 'first_name': 'X', 'last_name': 'Y',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_resend_rotates_token(self):
        invitation = InvitationFactory(expires_at=timezone.now() - timedelta(days=1),
                                       status=Invitation.STATUS_EXPIRED)
        old_token = invitation.token
        response = self.client.post(f'/api/invitations/{invitation.pk}/resend')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        invitation.refresh_from_db()
        self.assertNotEqual(invitation.token, old_token)
        self.assertEqual(invitation.status, Invitation.STATUS_PENDING)
        self.assertEqual(invitation.reminders_sent, 1)
        self.assertGreater(invitation.expires_at, timezone.now())


class InvitationLookupTests(TestCase):

    def test_valid_token(self):
        invitation = InvitationFactory()
        response = APIClient().get(f'/api/invitations/{invitation.token}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['data']['email'], invitation.email)
        self.assertNotIn('token', response.json()['data'])

    def test_unknown_token(self):
        response = APIClient().get('/api/invitations/not-a-token')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_expired_token(self):
        invitation = InvitationFactory(expires_at=timezone.now() - timedelta(minutes=1))
        response = APIClient().get(f'/api/invitations/{invitation.token}')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


# ─── 2. Registration ─────────────────────────────────────────────────────────

class RegistrationApiTests(TestCase):

    def _register(self, token, username='jrivera', password=PASSWORD, client=None):
        client = client or APIClient()
        return client.post('/api/register', {
            'token': token, 'username': username, 'password': password,
        }, format='json')

    def test_register_creates_user_and_employee(self):
        invitation = InvitationFactory(intended_role=User.ROLE_EMPLOYEE)
        client = APIClient()
        response = self._register(invitation.token, client=client)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        user = User.objects.get(username='jrivera')
        self.assertEqual(user.role, User.ROLE_EMPLOYEE)
        self.assertTrue(user.password.startswith('scrypt_hex$'))
        employee = Employee.objects.get(user=user)
        self.assertEqual(employee.work_email, invitation.email)
        self.assertEqual(employee.onboarding_status, Employee.ONBOARDING_IN_PROGRESS)
        self.assertEqual(response.json()['data']['employee_id'], employee.pk)

        invitation.refresh_from_db()
        self.assertEqual(invitation.status, Invitation.STATUS_REGISTERED)
        self.assertEqual(invitation.employee, employee)
        self.assertIsNotNone(invitation.registered_at)

        # Registration logs the new user in
        self.assertEqual(client.get('/api/user').status_code, status.HTTP_200_OK)

    def test_token_is_single_use(self):
        invitation = InvitationFactory()
        self.assertEqual(self._register(invitation.token).status_code, status.HTTP_201_CREATED)

        response = self._register(invitation.token, username='someoneelse')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.json()['success'])
        self.assertEqual(Employee.objects.count(), 1)
        self.assertFalse(User.objects.filter(username='someoneelse').exists())

    def test_links_existing_employee(self):
        employee = EmployeeFactory()
        invitation = InvitationFactory(employee=employee, email=employee.work_email)
        self.assertEqual(self._register(invitation.token).status_code, status.HTTP_201_CREATED)
        employee.refresh_from_db()
        self.assertEqual(employee.user.username, 'jrivera')
        self.assertEqual(Employee.objects.count(), 1)

    def test_expired_invitation(self):
        invitation = InvitationFactory(expires_at=timezone.now() - timedelta(seconds=1))
        response = self._register(invitation.token)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.exists())

    def test_weak_password_rolls_back(self):
        invitation = InvitationFactory()
        response = self._register(invitation.token, password='123')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(User.objects.exists())
        invitation.refresh_from_db()
        self.assertEqual(invitation.status, Invitation.STATUS_PENDING)

    def test_duplicate_username(self):
        UserFactory(username='jrivera')
        invitation = InvitationFactory()
        response = self._register(invitation.token)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        invitation.refresh_from_db()
        self.assertEqual(invitation.status, Invitation.STATUS_PENDING)

    def test_failure_after_user_insert_rolls_back(self):
        invitation = InvitationFactory()
        with patch('apps.authentication.services.Employee.objects.create', side_effect=RuntimeError('boom')):
            with self.assertRaises(RuntimeError):
                RegistrationService.register(invitation.token, 'jrivera', PASSWORD)
        self.assertFalse(User.objects.filter(username='jrivera').exists())
        invitation.refresh_from_db()
        self.assertEqual(invitation.status, Invitation.STATUS_PENDING)

    def test_employee_already_linked(self):
        employee = EmployeeFactory(user=UserFactory())
        invitation = InvitationFactory(employee=employee)
        with self.assertRaises(ValidationException):
            RegistrationService.register(invitation.token, 'jrivera', PASSWORD)
        self.assertFalse(User.objects.filter(username='jrivera').exists())

    def test_onboarding_forms_dispatched_after_commit(self):
        invitation = InvitationFactory()
        with patch('apps.onboarding.tasks.send_onboarding_forms.delay') as dispatch:
            with self.captureOnCommitCallbacks(execute=True):
                user, employee = RegistrationService.register(invitation.token, 'jrivera', PASSWORD)
        dispatch.assert_called_once_with(employee.pk, invitation.pk, user.pk)


# ─── 3. Session endpoints ────────────────────────────────────────────────────

class SessionApiTests(TestCase):

    def setUp(self):
        self.user = UserFactory(username='nurse1')

    def test_login_logout(self):
        client = APIClient()
        response = client.post('/api/login', {'username': 'nurse1', 'password': 'Str0ng-Passphrase!'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()['data']['username'], 'nurse1')
        self.assertEqual(client.get('/api/user').status_code, status.HTTP_200_OK)

        self.assertEqual(client.post('/api/logout').status_code, status.HTTP_200_OK)
        self.assertEqual(client.get('/api/user').status_code, status.HTTP_401_UNAUTHORIZED)

    def test_bad_credentials(self):
        response = APIClient().post('/api/login', {'username': 'nurse1', 'password': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.json()['success'])

    def test_change_password(self):
        client = APIClient()
        client.post('/api/login', {'username': 'nurse1', 'password': 'Str0ng-Passphrase!'}, format='json')
        response = client.post('/api/user/change-password', {
            'current_password': 'Str0ng-Passphrase!', 'new_password': PASSWORD,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password(PASSWORD))
        self.assertEqual(client.get('/api/user').status_code, status.HTTP_200_OK)

    def test_change_password_wrong_current(self):
        response = _authenticated_client(self.user).post('/api/user/change-password', {
            'current_password': 'wrong', 'new_password': PASSWORD,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


# ─── 4. setup_admin ──────────────────────────────────────────────────────────

class SetupAdminCommandTests(TestCase):

    def test_creates_admin(self):
        out = StringIO()
        call_command('setup_admin', username='root', password=PASSWORD, interactive=False, stdout=out)
        user = User.objects.get(username='root')
        self.assertTrue(user.is_superuser)
        self.assertEqual(user.role, User.ROLE_ADMIN)
        self.assertTrue(user.require_password_change)
        self.assertTrue(user.check_password(PASSWORD))
        self.assertIn('Successfully created administrator', out.getvalue())

    def test_refuses_when_users_exist(self):
        UserFactory()
        with self.assertRaises(CommandError):
            call_command('setup_admin', username='root', password=PASSWORD, interactive=False)

    def test_force(self):
        UserFactory()
        call_command('setup_admin', username='root', password=PASSWORD, force=True,
                     no_password_change=True, interactive=False, stdout=StringIO())
        self.assertFalse(User.objects.get(username='root').require_password_change)

    def test_noinput_requires_password(self):
        with self.assertRaises(CommandError):
            call_command('setup_admin', username='root', interactive=False)

    def test_weak_password_rejected(self):
        with self.assertRaises(CommandError):
            call_command('setup_admin', username='root', password='admin', interactive=False)
        self.assertFalse(User.objects.exists())

    def test_no_default_admin_account(self):
        self.assertFalse(User.objects.filter(username='admin').exists())
