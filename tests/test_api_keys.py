"""
API Key Tests
=============
Validates:
  1. Key management endpoints (create, list, revoke, rotate, usage)
  2. Bearer and X-API-Key authentication with scope checks
  3. Rotation grace period and the revoke task
  4. Per-key hourly rate limit

Run:
    python manage.py test tests.test_api_keys -v2
"""

from datetime import timedelta
from unittest.mock import MagicMock

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from apps.authentication.models import ApiKey, ApiKeyRotation
from apps.authentication.services import ApiKeyService
from apps.authentication.tasks import revoke_rotated_api_keys
from apps.core.models import AuditLog
from apps.core.throttling import ApiKeyRateThrottle
from tests.factories import EmployeeFactory, HRUserFactory, UserFactory

KEYS_URL = '/api/settings/api-keys'


def _authenticated_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


def _key_client(raw_key, header='bearer'):
    client = APIClient()
    if header == 'bearer':
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {raw_key}')
    else:
        client.credentials(HTTP_X_API_KEY=raw_key)
    return client


# ─── 1. Management endpoints ─────────────────────────────────────────────────

class ApiKeyManagementTests(TestCase):

    def setUp(self):
        self.user = HRUserFactory()
        self.client = _authenticated_client(self.user)

    def test_create_returns_raw_key_once(self):
        response = self.client.post(KEYS_URL, {
            'name': 'Payroll sync', 'permissions': ['read:employees', 'read:employees'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.json()['data']
        self.assertTrue(data['key'].startswith('hrms_live_'))
        self.assertEqual(data['key_prefix'], data['key'][:16])
        self.assertEqual(data['permissions'], ['read:employees'])
        self.assertNotIn('key_hash', data)

        api_key = ApiKey.objects.get()
        self.assertNotEqual(api_key.key_hash, data['key'])
        self.assertTrue(AuditLog.objects.filter(
            table_name='api_keys', record_id=api_key.pk, action=AuditLog.ACTION_CREATE,
        ).exists())

        listed = self.client.get(KEYS_URL).json()['data']
        self.assertEqual(len(listed), 1)
        self.assertNotIn('key', listed[0])
        self.assertNotIn('key_hash', listed[0])

    def test_test_environment_prefix(self):
        response = self.client.post(KEYS_URL, {
            'name': 'Sandbox', 'permissions': ['*'], 'environment': 'test',
        }, format='json')
        self.assertTrue(response.json()['data']['key'].startswith('hrms_test_'))

    def test_create_validation(self):
        bad_payloads = [
            {'name': 'No scopes', 'permissions': []},
            {'name': 'Unknown scope', 'permissions': ['read:payroll']},
            {'name': 'Too long', 'permissions': ['*'], 'expires_in_days': 400},
            {'name': 'Too slow', 'permissions': ['*'], 'rate_limit_per_hour': 5},
        ]
        for payload in bad_payloads:
            response = self.client.post(KEYS_URL, payload, format='json')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, payload['name'])
        self.assertFalse(ApiKey.objects.exists())

    def test_requires_hr(self):
        response = _authenticated_client(UserFactory()).post(KEYS_URL, {
            'name': 'Mine', 'permissions': ['*'],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_other_users_key_not_found(self):
        api_key, _ = ApiKeyService.create(HRUserFactory(), 'Theirs', ['*'])
        response = self.client.delete(f'{KEYS_URL}/{api_key.pk}')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        api_key.refresh_from_db()
        self.assertFalse(api_key.is_revoked)

    def test_revoke(self):
        api_key, raw_key = ApiKeyService.create(self.user, 'Old', ['*'])
        response = self.client.delete(f'{KEYS_URL}/{api_key.pk}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        api_key.refresh_from_db()
        self.assertTrue(api_key.is_revoked)
        self.assertEqual(
            _key_client(raw_key).get('/api/employees').status_code, status.HTTP_401_UNAUTHORIZED,
        )

    def test_usage(self):
        api_key, raw_key = ApiKeyService.create(self.user, 'Reporting', ['read:employees'])
        _key_client(raw_key).get('/api/employees')
        _key_client(raw_key[:-4] + 'xxxx').get('/api/employees')

        response = self.client.get(f'{KEYS_URL}/{api_key.pk}/usage')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()['data']
        self.assertEqual(data['successful_auths'], 1)
        self.assertEqual(data['failed_auths'], 1)
        self.assertEqual(data['auth_attempts'], 2)
        self.assertEqual(data['rotation_count'], 0)
        self.assertIsNotNone(data['last_used_at'])

    def test_key_cannot_manage_keys(self):
        _, raw_key = ApiKeyService.create(self.user, 'Admin', ['*'])
        response = _key_client(raw_key).get(KEYS_URL)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


# ─── 2. Authentication and scopes ────────────────────────────────────────────

class ApiKeyAuthenticationTests(TestCase):

    def setUp(self):
        self.user = HRUserFactory()
        self.employee = EmployeeFactory()
        self.api_key, self.raw_key = ApiKeyService.create(self.user, 'Reader', ['read:employees'])

    def test_bearer_header(self):
        response = _key_client(self.raw_key).get('/api/employees')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['id'] for row in response.json()['data']], [self.employee.pk])
        self.api_key.refresh_from_db()
        self.assertEqual(self.api_key.usage_count, 1)

    def test_x_api_key_header(self):
        response = _key_client(self.raw_key, header='x-api-key').get(f'/api/employees/{self.employee.pk}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_missing_scope(self):
        response = _key_client(self.raw_key).post('/api/employees', {
            'first_name': 'Jamie', 'last_name': 'Rivera', 'work_email': 'jamie@clinic.example.com',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        _, licenses_only = ApiKeyService.create(self.user, 'Licenses', ['read:licenses'])
        response = _key_client(licenses_only).get('/api/employees')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_wildcard_scope(self):
        _, raw_key = ApiKeyService.create(self.user, 'Everything', ['*'])
        response = _key_client(raw_key).delete(f'/api/employees/{self.employee.pk}')
        self.assertIn(response.status_code, (status.HTTP_200_OK, status.HTTP_204_NO_CONTENT))

    def test_rejected_keys(self):
        self.assertEqual(
            _key_client('not-a-key').get('/api/employees').status_code, status.HTTP_401_UNAUTHORIZED,
        )
        self.assertEqual(
            _key_client('hrms_live_unknownkeyvalue').get('/api/employees').status_code,
            status.HTTP_401_UNAUTHORIZED,
        )

        self.api_key.expires_at = timezone.now() - timedelta(minutes=1)
        self.api_key.save()
        response = _key_client(self.raw_key).get('/api/employees')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response['WWW-Authenticate'], 'Bearer')

    def test_inactive_owner(self):
        self.user.is_active = False
        self.user.save()
        response = _key_client(self.raw_key).get('/api/employees')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_wrong_secret_counts_failure(self):
        _key_client(self.raw_key[:-4] + 'xxxx').get('/api/employees')
        self.api_key.refresh_from_db()
        self.assertEqual(self.api_key.failed_auth_count, 1)
        self.assertEqual(self.api_key.usage_count, 0)


# ─── 3. Rotation ─────────────────────────────────────────────────────────────

class ApiKeyRotationTests(TestCase):

    def setUp(self):
        self.user = HRUserFactory()
        self.client = _authenticated_client(self.user)
        self.api_key, self.raw_key = ApiKeyService.create(self.user, 'Sync', ['read:employees'])

    def test_rotate_keeps_old_key_during_grace(self):
        response = self.client.post(f'{KEYS_URL}/{self.api_key.pk}/rotate', {
            'grace_period_hours': 2, 'reason': 'Contractor left',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()['data']
        self.assertEqual(data['name'], 'Sync (Rotated)')
        self.assertEqual(data['permissions'], ['read:employees'])
        self.assertNotEqual(data['key'], self.raw_key)

        self.assertEqual(_key_client(data['key']).get('/api/employees').status_code, status.HTTP_200_OK)
        self.assertEqual(_key_client(self.raw_key).get('/api/employees').status_code, status.HTTP_200_OK)

        self.api_key.refresh_from_db()
        rotation = ApiKeyRotation.objects.get()
        self.assertEqual(rotation.new_key_id, data['id'])
        self.assertEqual(self.api_key.expires_at, rotation.grace_period_ends)

        usage = self.client.get(f'{KEYS_URL}/{self.api_key.pk}/usage').json()['data']
        self.assertEqual(usage['rotation_count'], 1)
        self.assertEqual(usage['rotations'][0]['reason'], 'Contractor left')

    def test_zero_grace_cuts_old_key(self):
        self.client.post(f'{KEYS_URL}/{self.api_key.pk}/rotate', {'grace_period_hours': 0}, format='json')
        response = _key_client(self.raw_key).get('/api/employees')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_cannot_rotate_revoked_key(self):
        ApiKeyService.revoke(self.api_key, self.user)
        response = self.client.post(f'{KEYS_URL}/{self.api_key.pk}/rotate', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(ApiKeyRotation.objects.exists())

    def test_task_revokes_after_grace(self):
        new_key, _, rotation = ApiKeyService.rotate(self.api_key, self.user, grace_period_hours=1)
        self.assertEqual(revoke_rotated_api_keys(), 0)

        rotation.grace_period_ends = timezone.now() - timedelta(minutes=1)
        rotation.save()
        self.assertEqual(revoke_rotated_api_keys(), 1)

        self.api_key.refresh_from_db()
        new_key.refresh_from_db()
        self.assertTrue(self.api_key.is_revoked)
        self.assertFalse(new_key.is_revoked)


# ─── 4. Rate limit ───────────────────────────────────────────────────────────

class ApiKeyRateThrottleTests(TestCase):

    def setUp(self):
        cache.clear()
        self.api_key, _ = ApiKeyService.create(HRUserFactory(), 'Tight', ['*'], rate_limit_per_hour=10)
        self.api_key.rate_limit_per_hour = 2

    def test_limit_comes_from_key(self):
        request = MagicMock(auth=self.api_key)
        results = [ApiKeyRateThrottle().allow_request(request, None) for _ in range(3)]
        self.assertEqual(results, [True, True, False])

    def test_session_requests_not_counted(self):
        request = MagicMock(auth=None)
        self.assertTrue(all(ApiKeyRateThrottle().allow_request(request, None) for _ in range(5)))
