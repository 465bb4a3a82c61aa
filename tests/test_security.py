"""
Security Tests
==============
Validates:
  1. Field encryption format and tamper detection
  2. scrypt password storage
  3. Anonymous requests answer 401, wrong role answers 403
  4. Sensitive employee fields never leave the API in clear text
  5. Upload type sniffing
  6. Health checks, request IDs, base URL resolution and log masking

Run:
    python manage.py test tests.test_security -v2
"""

import io
import logging

from django.contrib.auth.hashers import check_password, make_password
from django.core.exceptions import ValidationError
from django.db import connection
from django.test import RequestFactory, TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient

from apps.authentication.hashers import compare_passwords, hash_password
from apps.core.encryption import (
    EncryptionError, FieldCipher, decrypt, encrypt, is_encrypted, mask, mask_ssn,
)
from apps.core.logging import CorrelationIdFilter, SensitiveDataFilter
from apps.core.utils import generate_full_url, get_base_url
from tests.factories import EmployeeFactory, HRUserFactory, UserFactory


def _authenticated_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


# ─── 1. Encryption ───────────────────────────────────────────────────────────

class FieldEncryptionTests(TestCase):

    def test_round_trip(self):
        sealed = encrypt('123-45-6789')
        self.assertNotIn('6789', sealed)
        self.assertEqual(decrypt(sealed), '123-45-6789')

    def test_stored_iv_is_the_one_used(self):
        iv = bytes(range(12))
        sealed = FieldCipher('key-material')._encrypt_with_iv('secret', iv)
        stored_iv, tag, ciphertext = sealed.split(':')
        self.assertEqual(stored_iv, iv.hex())
        self.assertEqual(len(bytes.fromhex(tag)), 16)
        self.assertEqual(FieldCipher('key-material').decrypt(sealed), 'secret')

    def test_fresh_iv_per_call(self):
        self.assertNotEqual(encrypt('same value'), encrypt('same value'))

    def test_public_encrypt_takes_no_iv(self):
        with self.assertRaises(TypeError):
            encrypt('secret', iv=bytes(12))

    def test_tampered_ciphertext_rejected(self):
        iv, tag, ciphertext = encrypt('secret').split(':')
        flipped = format(int(ciphertext[:2], 16) ^ 0xFF, '02x') + ciphertext[2:]
        with self.assertRaises(EncryptionError):
            decrypt(f"{iv}:{tag}:{flipped}")

    def test_wrong_key_rejected(self):
        sealed = FieldCipher('first-key').encrypt('secret')
        with self.assertRaises(EncryptionError):
            FieldCipher('second-key').decrypt(sealed)

    def test_malformed_value_rejected(self):
        with self.assertRaises(EncryptionError):
            decrypt('not-encrypted')

    def test_is_encrypted_shape(self):
        self.assertTrue(is_encrypted(encrypt('x')))
        self.assertFalse(is_encrypted('123-45-6789'))
        self.assertFalse(is_encrypted(None))

    def test_mask_ssn(self):
        self.assertEqual(mask_ssn('123-45-6789'), '***-**-6789')
        self.assertEqual(mask_ssn(encrypt('123456789')), '***-**-6789')
        self.assertEqual(mask_ssn(''), '')

    def test_model_field_stores_ciphertext(self):
        employee = EmployeeFactory(ssn='123-45-6789', caqh_password='caqh-pass')
        with connection.cursor() as cursor:
            cursor.execute('SELECT ssn, caqh_password FROM employees WHERE id = %s', [employee.pk])
            stored_ssn, stored_caqh = cursor.fetchone()
        self.assertTrue(is_encrypted(stored_ssn))
        self.assertTrue(is_encrypted(stored_caqh))
        employee.refresh_from_db()
        self.assertEqual(employee.ssn, '123-45-6789')
        self.assertEqual(employee.caqh_password, 'caqh-pass')


# ─── 2. Password hashing ─────────────────────────────────────────────────────

class PasswordHashingTests(TestCase):

    def test_hash_format(self):
        stored = hash_password('correct horse battery staple')
        hashed, salt = stored.split('.')
        self.assertEqual(len(hashed), 128)
        self.assertEqual(len(salt), 32)

    def test_compare(self):
        stored = hash_password('correct horse battery staple')
        self.assertTrue(compare_passwords('correct horse battery staple', stored))
        self.assertFalse(compare_passwords('wrong', stored))
        self.assertFalse(compare_passwords('anything', 'no-dot-here'))

    def test_django_hasher_uses_scrypt(self):
        encoded = make_password('Str0ng-Passphrase!')
        self.assertTrue(encoded.startswith('scrypt_hex$'))
        self.assertTrue(check_password('Str0ng-Passphrase!', encoded))
        self.assertTrue(compare_passwords('Str0ng-Passphrase!', encoded.split('$', 1)[1]))


# ─── 3. Authentication and roles ─────────────────────────────────────────────

class AccessControlTests(TestCase):

    def test_anonymous_gets_401(self):
        for url in ('/api/employees', '/api/documents', '/api/reports/expiring', '/api/audits'):
            response = APIClient().get(url)
            self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED, url)
            self.assertFalse(response.json()['success'])

    def test_employee_cannot_list_other_profiles(self):
        own = EmployeeFactory(user=UserFactory())
        EmployeeFactory()
        response = _authenticated_client(own.user).get('/api/employees')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        ids = [row['id'] for row in response.json()['data']]
        self.assertEqual(ids, [own.pk])

    def test_employee_cannot_read_reports(self):
        user = UserFactory()
        response = _authenticated_client(user).get('/api/reports/expiring')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_hr_only_endpoints(self):
        user = UserFactory()
        response = _authenticated_client(user).post('/api/employees', {
            'first_name': 'A', 'last_name': 'B', 'work_email': 'ab@example.com',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_api_path_is_json(self):
        response = _authenticated_client(HRUserFactory()).get('/api/does-not-exist')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(response.json()['success'])


# ─── 4. Sensitive fields over the API ────────────────────────────────────────

class SensitiveFieldApiTests(TestCase):

    def setUp(self):
        self.client = _authenticated_client(HRUserFactory())
        self.employee = EmployeeFactory(ssn='123456789', nppes_password='nppes-secret')

    def test_ssn_and_passwords_masked(self):
        response = self.client.get(f'/api/employees/{self.employee.pk}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()['data']
        self.assertEqual(data['ssn'], '***-**-6789')
        self.assertEqual(data['nppes_password'], '***')
        self.assertIsNone(data['caqh_password'])
        self.assertNotIn('123456789', response.content.decode())

    def test_sending_mask_back_keeps_value(self):
        response = self.client.patch(
            f'/api/employees/{self.employee.pk}',
            {'ssn': '***-**-6789', 'nppes_password': '***', 'job_title': 'Charge Nurse'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.employee.refresh_from_db()
        self.assertEqual(self.employee.ssn, '123456789')
        self.assertEqual(self.employee.nppes_password, 'nppes-secret')
        self.assertEqual(self.employee.job_title, 'Charge Nurse')


# ─── 5. Upload validation ────────────────────────────────────────────────────

class UploadValidatorTests(TestCase):

    def _file(self, content, name, content_type):
        f = io.BytesIO(content)
        f.name = name
        f.size = len(content)
        f.content_type = content_type
        return f

    def test_svg_blocked(self):
        from apps.core.upload_validators import validate_upload
        with self.assertRaises(ValidationError):
            validate_upload(self._file(b'<svg></svg>', 'evil.svg', 'image/svg+xml'))

    def test_spoofed_pdf_blocked(self):
        from apps.core.upload_validators import validate_upload
        with self.assertRaises(ValidationError):
            validate_upload(self._file(b'\x89PNG\r\n\x1a\n', 'license.pdf', 'application/pdf'))

    def test_pdf_accepted(self):
        from apps.core.upload_validators import validate_upload
        validate_upload(self._file(b'%PDF-1.4 test', 'license.pdf', 'application/pdf'))


# ─── 6. Request plumbing ─────────────────────────────────────────────────────

class HealthAndHeaderTests(TestCase):

    def test_health_is_public(self):
        response = self.client.get('/api/health')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_readiness_checks_db_and_cache(self):
        response = self.client.get('/api/readiness')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertEqual(body['status'], 'ready')
        self.assertEqual(body['db'], 'ok')
        self.assertEqual(body['cache'], 'ok')

    def test_request_id_echoed(self):
        response = self.client.get('/api/health', HTTP_X_REQUEST_ID='req-123')
        self.assertEqual(response['X-Request-ID'], 'req-123')

    def test_unsafe_request_id_replaced(self):
        response = self.client.get('/api/health', HTTP_X_REQUEST_ID='bad id\nvalue')
        self.assertNotEqual(response['X-Request-ID'], 'bad id\nvalue')
        self.assertTrue(response['X-Request-ID'])


class BaseUrlTests(TestCase):

    @override_settings(APP_BASE_URL='https://hr.example.com/', REPLIT_DOMAINS=['ignored.example.com'])
    def test_app_base_url_wins(self):
        self.assertEqual(get_base_url(), 'https://hr.example.com')

    @override_settings(APP_BASE_URL='', REPLIT_DOMAINS=['one.example.com', 'two.example.com'])
    def test_first_replit_domain(self):
        self.assertEqual(get_base_url(), 'https://one.example.com')

    @override_settings(APP_BASE_URL='', REPLIT_DOMAINS=[])
    def test_request_host(self):
        request = RequestFactory().get('/')
        self.assertEqual(get_base_url(request), 'http://testserver')

    @override_settings(APP_BASE_URL='', REPLIT_DOMAINS=[], PORT='8080')
    def test_localhost_fallback(self):
        self.assertEqual(get_base_url(), 'http://localhost:8080')
        self.assertEqual(generate_full_url('register?token=abc'), 'http://localhost:8080/register?token=abc')


class LogFilterTests(TestCase):

    def _record(self, msg, *args):
        return logging.LogRecord('apps.test', logging.INFO, __file__, 1, msg, args, None)

    def test_ssn_masked_in_message(self):
        record = self._record('lookup ssn=%s', '123-45-6789')
        SensitiveDataFilter().filter(record)
        self.assertEqual(record.getMessage(), 'lookup ssn=***-**-6789')

    def test_other_messages_untouched(self):
        record = self._record('employee_id=%s', 42)
        SensitiveDataFilter().filter(record)
        self.assertEqual(record.getMessage(), 'employee_id=42')
        self.assertEqual(record.args, (42,))

    def test_correlation_id_default(self):
        record = self._record('hello')
        CorrelationIdFilter().filter(record)
        self.assertEqual(record.correlation_id, '-')

    def test_generic_mask(self):
        self.assertEqual(mask('caqh-login-name'), 'caqh****')
        self.assertEqual(mask('abc'), '****')
