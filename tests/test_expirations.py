"""
Credential Expiration and Reporting Tests
==========================================
Validates:
  1. Expiration classification boundaries and windows
  2. Explicit status precedence
  3. /api/reports/expiring window, ordering and terminated-employee exclusion
  4. /api/export/<type> file downloads
  5. The daily expiration check

Run:
    python manage.py test tests.test_expirations -v2
"""

import csv
import io
from datetime import date, timedelta
from unittest.mock import patch

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from apps.authentication.models import Invitation
from apps.core.expiration import (
    PRIORITY_HIGH, PRIORITY_LOW, PRIORITY_MEDIUM, STATUS_ACTIVE, STATUS_EXPIRED,
    STATUS_EXPIRING_SOON, classify_expiration, effective_status,
)
from apps.employees.models import DEALicense, Employee, IncidentLog
from apps.onboarding.models import FormSubmission
from apps.reports.services import ExpirationReportService, ExportService
from apps.reports.tasks import check_expirations, compliance_stats
from tests.factories import (
    EmployeeFactory, FormSubmissionFactory, HRUserFactory, InvitationFactory, StateLicenseFactory,
    UserFactory,
)

TODAY = date(2026, 3, 1)


def _authenticated_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


# ─── 1. Classification ───────────────────────────────────────────────────────

class ClassifyExpirationTests(TestCase):

    def _classify(self, offset, **kwargs):
        return classify_expiration(TODAY + timedelta(days=offset), today=TODAY, **kwargs)

    def test_missing_date(self):
        info = classify_expiration(None, today=TODAY)
        self.assertIsNone(info.status)
        self.assertIsNone(info.priority)
        self.assertIsNone(info.days_remaining)

    def test_past_is_expired(self):
        info = self._classify(-1)
        self.assertEqual((info.status, info.priority, info.days_remaining), (STATUS_EXPIRED, PRIORITY_HIGH, -1))

    def test_today_is_expiring_not_expired(self):
        info = self._classify(0)
        self.assertEqual((info.status, info.priority), (STATUS_EXPIRING_SOON, PRIORITY_HIGH))

    def test_critical_boundary(self):
        self.assertEqual(self._classify(15).priority, PRIORITY_HIGH)
        self.assertEqual(self._classify(16).priority, PRIORITY_MEDIUM)

    def test_warning_boundary(self):
        self.assertEqual(self._classify(30).status, STATUS_EXPIRING_SOON)
        info = self._classify(31)
        self.assertEqual((info.status, info.priority), (STATUS_ACTIVE, PRIORITY_LOW))

    def test_caller_window(self):
        self.assertEqual(self._classify(45, warning_days=60).status, STATUS_EXPIRING_SOON)
        self.assertEqual(self._classify(45, warning_days=30).status, STATUS_ACTIVE)

    def test_critical_never_exceeds_window(self):
        info = self._classify(8, warning_days=7)
        self.assertEqual(info.status, STATUS_ACTIVE)
        self.assertEqual(self._classify(7, warning_days=7).priority, PRIORITY_HIGH)

    @override_settings(EXPIRATION_WARNING_DAYS=60, EXPIRATION_CRITICAL_DAYS=20)
    def test_configured_defaults(self):
        self.assertEqual(self._classify(50).status, STATUS_EXPIRING_SOON)
        self.assertEqual(self._classify(20).priority, PRIORITY_HIGH)

    def test_explicit_status_wins(self):
        past = TODAY - timedelta(days=10)
        self.assertEqual(effective_status('suspended', past, today=TODAY), 'suspended')
        self.assertEqual(effective_status('', past, today=TODAY), STATUS_EXPIRED)

    def test_model_property(self):
        license_ = StateLicenseFactory(expiration_date=timezone.localdate() + timedelta(days=5))
        self.assertEqual(license_.effective_status, STATUS_EXPIRING_SOON)
        license_.status = 'active'
        self.assertEqual(license_.effective_status, 'active')


# ─── 2. Expiring report ──────────────────────────────────────────────────────

class ExpiringReportApiTests(TestCase):

    def setUp(self):
        self.client = _authenticated_client(HRUserFactory())
        self.today = timezone.localdate()

    def test_license_expiring_in_five_days(self):
        license_ = StateLicenseFactory(expiration_date=self.today + timedelta(days=5))
        response = self.client.get('/api/reports/expiring?days=30')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertTrue(body['success'])
        items = [i for i in body['data'] if i['item_type'] == 'state_license']
        self.assertEqual(len(items), 1)
        self.assertEqual(items[0]['id'], license_.pk)
        self.assertEqual(items[0]['status'], STATUS_EXPIRING_SOON)
        self.assertEqual(items[0]['priority'], PRIORITY_HIGH)
        self.assertEqual(items[0]['days_remaining'], 5)
        self.assertEqual(body['days'], 30)

    def test_window_respected(self):
        StateLicenseFactory(expiration_date=self.today + timedelta(days=45))
        response = self.client.get('/api/reports/expiring?days=30')
        self.assertEqual(response.json()['data'], [])
        response = self.client.get('/api/reports/expiring?days=60')
        self.assertEqual(len(response.json()['data']), 1)
        self.assertEqual(response.json()['data'][0]['status'], STATUS_EXPIRING_SOON)

    def test_expired_included_and_sorted(self):
        employee = EmployeeFactory()
        later = StateLicenseFactory(employee=employee, expiration_date=self.today + timedelta(days=20))
        expired = StateLicenseFactory(employee=employee, expiration_date=self.today - timedelta(days=3))
        DEALicense.objects.create(employee=employee, license_number='DEA1', expiration_date=self.today + timedelta(days=1))
        data = self.client.get('/api/reports/expiring').json()['data']
        self.assertEqual([i['item_type'] for i in data], ['state_license', 'dea_license', 'state_license'])
        self.assertEqual(data[0]['id'], expired.pk)
        self.assertEqual(data[0]['status'], STATUS_EXPIRED)
        self.assertEqual(data[2]['id'], later.pk)

    def test_terminated_employees_excluded(self):
        employee = EmployeeFactory(status=Employee.STATUS_TERMINATED)
        StateLicenseFactory(employee=employee, expiration_date=self.today + timedelta(days=2))
        self.assertEqual(self.client.get('/api/reports/expiring').json()['data'], [])

    def test_invalid_days(self):
        for value in ('-1', '366', 'abc'):
            response = self.client.get(f'/api/reports/expiring?days={value}')
            self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST, value)
            self.assertFalse(response.json()['success'])

    def test_viewer_may_read(self):
        viewer = UserFactory(role='viewer')
        response = _authenticated_client(viewer).get('/api/reports/expiring')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_summary(self):
        StateLicenseFactory(expiration_date=self.today - timedelta(days=1))
        StateLicenseFactory(expiration_date=self.today + timedelta(days=25))
        summary = self.client.get('/api/reports/expiring').json()['summary']
        self.assertEqual(summary['total'], 2)
        self.assertEqual(summary['expired'], 1)
        self.assertEqual(summary['expiring_soon'], 1)
        self.assertEqual(summary['medium_priority'], 1)

    def test_stats(self):
        StateLicenseFactory(expiration_date=self.today + timedelta(days=3))
        response = self.client.get('/api/reports/stats')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()['data']
        self.assertEqual(data['licenses']['state'], 1)
        self.assertEqual(data['expirations']['expiring_soon'], 1)


# ─── 3. Exports ──────────────────────────────────────────────────────────────

class ExportApiTests(TestCase):

    def setUp(self):
        self.client = _authenticated_client(HRUserFactory())

    def test_employees_csv(self):
        EmployeeFactory(first_name='Ada', last_name='Lovelace')
        response = self.client.get('/api/export/employees')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response['Content-Type'].startswith('text/csv'))
        filename = f"employees-{timezone.localdate().isoformat()}.csv"
        self.assertEqual(response['Content-Disposition'], f'attachment; filename="{filename}"')
        rows = list(csv.DictReader(io.StringIO(response.content.decode('utf-8'))))
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['first_name'], 'Ada')

    def test_incidents_csv(self):
        employee = EmployeeFactory()
        IncidentLog.objects.create(employee=employee, incident_type='Late', description='Late to shift')
        response = self.client.get('/api/export/incidents?format=csv')
        rows = list(csv.DictReader(io.StringIO(response.content.decode('utf-8'))))
        self.assertEqual(rows[0]['description'], 'Late to shift')
        self.assertEqual(rows[0]['employee_name'], employee.full_name)

    def test_xlsx(self):
        EmployeeFactory()
        response = self.client.get('/api/export/employees?format=xlsx')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.content.startswith(b'PK'))

    def test_pdf(self):
        StateLicenseFactory(expiration_date=timezone.localdate() + timedelta(days=10))
        response = self.client.get('/api/export/licenses?format=pdf')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'application/pdf')
        self.assertTrue(response.content.startswith(b'%PDF'))

    def test_unknown_type(self):
        response = self.client.get('/api/export/payroll')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        body = response.json()
        self.assertFalse(body['success'])
        self.assertIn('employees', body['error']['details']['supported'])

    def test_unknown_format(self):
        response = self.client.get('/api/export/employees?format=docx')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_expiring_table_matches_report(self):
        StateLicenseFactory(expiration_date=timezone.localdate() + timedelta(days=5))
        columns, rows = ExportService.table('expiring', 30)
        self.assertIn('priority', columns)
        self.assertEqual(len(rows), len(ExpirationReportService.expiring_items(30)))


# ─── 4. Daily check ──────────────────────────────────────────────────────────

class CheckExpirationsTaskTests(TestCase):

    def test_expires_stale_invitations_and_forms(self):
        stale = InvitationFactory(expires_at=timezone.now() - timedelta(hours=1))
        fresh = InvitationFactory()
        stale_form = FormSubmissionFactory(expires_at=timezone.now() - timedelta(days=1))
        done_form = FormSubmissionFactory(
            status=FormSubmission.STATUS_COMPLETED, expires_at=timezone.now() - timedelta(days=1),
        )

        result = check_expirations(days=30)

        stale.refresh_from_db()
        fresh.refresh_from_db()
        stale_form.refresh_from_db()
        done_form.refresh_from_db()
        self.assertEqual(stale.status, Invitation.STATUS_EXPIRED)
        self.assertEqual(fresh.status, Invitation.STATUS_PENDING)
        self.assertEqual(stale_form.status, FormSubmission.STATUS_EXPIRED)
        self.assertEqual(done_form.status, FormSubmission.STATUS_COMPLETED)
        self.assertEqual(result['invitations_expired'], 1)
        self.assertEqual(result['forms_expired'], 1)

    @override_settings(EXPIRATION_WARNING_DAYS=45)
    def test_window_defaults_to_warning_setting(self):
        StateLicenseFactory(expiration_date=timezone.localdate() + timedelta(days=40))

        result = check_expirations()

        self.assertEqual(result['days'], 45)
        self.assertEqual(result['total'], 1)

    def test_cron_endpoint_admin_only(self):
        hr = _authenticated_client(HRUserFactory())
        self.assertEqual(hr.post('/api/cron/check-expirations').status_code, status.HTTP_403_FORBIDDEN)

        admin = _authenticated_client(UserFactory(role='admin'))
        with patch('apps.reports.views.check_expirations', return_value={'total': 0}) as task:
            response = admin.post('/api/cron/check-expirations', {'days': 14}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        task.assert_called_once_with(days=14)


class ComplianceStatsTaskTests(TestCase):

    def test_weekly_snapshot(self):
        EmployeeFactory()
        EmployeeFactory(status=Employee.STATUS_TERMINATED)
        StateLicenseFactory(expiration_date=timezone.localdate() + timedelta(days=3))
        InvitationFactory()

        result = compliance_stats()

        self.assertEqual(result['window_days'], 30)
        self.assertEqual(result['employees']['total'], 3)
        self.assertEqual(result['employees']['active'], 2)
        self.assertEqual(result['licenses']['state'], 1)
        self.assertEqual(result['expirations']['expiring_soon'], 1)
        self.assertEqual(result['invitations']['pending'], 1)
