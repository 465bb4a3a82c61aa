"""
Document Tests
==============
Validates:
  1. Upload creates version 1, re-upload of the same type chains version 2
  2. Lists show latest versions unless all_versions=true
  3. Verification is HR-only and audited
  4. Download streams the stored file
  5. Dashboard counts

Run:
    python manage.py test tests.test_documents -v2
"""

from datetime import timedelta

from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from apps.core.models import AuditLog
from apps.documents.models import Document
from apps.documents.services import DocumentService
from tests.factories import EmployeeFactory, HRUserFactory, UserFactory

PDF_BYTES = b'%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n'


def _authenticated_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


def _pdf(name='license.pdf', content=PDF_BYTES):
    return SimpleUploadedFile(name, content, content_type='application/pdf')


# ─── 1. Upload and versioning ────────────────────────────────────────────────

class DocumentUploadTests(TestCase):

    def setUp(self):
        self.user = UserFactory()
        self.employee = EmployeeFactory(user=self.user)
        self.client = _authenticated_client(self.user)

    def _upload(self, document_type='state_license', client=None, **extra):
        payload = {'employee': self.employee.pk, 'document_type': document_type, 'file': _pdf(), **extra}
        return (client or self.client).post('/api/documents/upload', payload, format='multipart')

    def test_first_upload_is_version_one(self):
        response = self._upload(expiration_date='2027-06-30')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.json()['data']
        self.assertEqual(data['version'], 1)
        self.assertIsNone(data['previous_version'])
        self.assertEqual(data['mime_type'], 'application/pdf')
        self.assertEqual(data['file_size'], len(PDF_BYTES))
        self.assertEqual(data['uploaded_by'], self.user.pk)
        self.assertTrue(AuditLog.objects.filter(table_name='documents', action=AuditLog.ACTION_CREATE).exists())

    def test_reupload_chains_versions(self):
        first = self._upload().json()['data']
        second = self._upload().json()['data']
        self.assertEqual(second['version'], 2)
        self.assertEqual(second['previous_version'], first['id'])

        latest = self.client.get('/api/documents').json()['data']
        self.assertEqual([row['id'] for row in latest], [second['id']])
        self.assertTrue(latest[0]['is_latest'])

        history = self.client.get('/api/documents?all_versions=true').json()['data']
        self.assertEqual(sorted(row['version'] for row in history), [1, 2])

    def test_types_version_independently(self):
        self._upload('state_license')
        response = self._upload('w4')
        self.assertEqual(response.json()['data']['version'], 1)

    def test_spoofed_file_rejected(self):
        response = self.client.post('/api/documents/upload', {
            'employee': self.employee.pk, 'document_type': 'w4',
            'file': _pdf(content=b'\x89PNG\r\n\x1a\nnot a pdf'),
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Document.objects.exists())

    def test_cannot_upload_for_someone_else(self):
        other = EmployeeFactory()
        response = self.client.post('/api/documents/upload', {
            'employee': other.pk, 'document_type': 'w4', 'file': _pdf(),
        }, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_hr_uploads_for_anyone(self):
        response = self._upload(client=_authenticated_client(HRUserFactory()))
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_employee_sees_only_own(self):
        other = EmployeeFactory()
        DocumentService.upload(other, 'w4', _pdf())
        self._upload()
        data = self.client.get('/api/documents').json()['data']
        self.assertEqual([row['employee'] for row in data], [self.employee.pk])


# ─── 2. Verify, download, stats ──────────────────────────────────────────────

class DocumentActionTests(TestCase):

    def setUp(self):
        self.user = UserFactory()
        self.employee = EmployeeFactory(user=self.user)
        self.document = DocumentService.upload(self.employee, 'state_license', _pdf('rn.pdf'))

    def test_verify_requires_hr(self):
        response = _authenticated_client(self.user).post(f'/api/documents/{self.document.pk}/verify')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_verify(self):
        hr = HRUserFactory()
        response = _authenticated_client(hr).post(
            f'/api/documents/{self.document.pk}/verify', {'notes': 'Checked with state board'}, format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.document.refresh_from_db()
        self.assertTrue(self.document.is_verified)
        self.assertEqual(self.document.verified_by, hr)
        self.assertIsNotNone(self.document.verification_date)
        self.assertEqual(self.document.notes, 'Checked with state board')
        audit = AuditLog.objects.get(table_name='documents', action=AuditLog.ACTION_UPDATE)
        self.assertFalse(audit.old_data['is_verified'])
        self.assertTrue(audit.new_data['is_verified'])

    def test_download(self):
        response = _authenticated_client(self.user).get(f'/api/documents/{self.document.pk}/download')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Disposition'], 'attachment; filename="rn.pdf"')
        self.assertEqual(b''.join(response.streaming_content), PDF_BYTES)

    def test_download_hidden_from_other_employee(self):
        other = EmployeeFactory(user=UserFactory())
        response = _authenticated_client(other.user).get(f'/api/documents/{self.document.pk}/download')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_stats_counts_latest_versions(self):
        DocumentService.upload(self.employee, 'state_license', _pdf(), expiration_date=timezone.localdate() - timedelta(days=1))
        DocumentService.upload(
            self.employee, 'dea', _pdf(), expiration_date=timezone.localdate() + timedelta(days=10),
        )
        response = _authenticated_client(HRUserFactory()).get('/api/documents/stats')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()['data']
        self.assertEqual(data['total'], 2)
        self.assertEqual(data['expired'], 1)
        self.assertEqual(data['expiring_soon'], 1)
        self.assertEqual(data['by_type'], {'dea': 1, 'state_license': 1})
