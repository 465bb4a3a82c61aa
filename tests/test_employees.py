"""
Employee Record Tests
=====================
Validates:
  1. HR profile management and termination on DELETE
  2. Employees limited to their own profile and records
  3. Nested credential records and their audit rows
  4. Incident logs are HR-only writes
  5. /api/audits filtering

Run:
    python manage.py test tests.test_employees -v2
"""

from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from apps.core.models import AuditLog
from apps.employees.models import Employee, IncidentLog, StateLicense
from tests.factories import EmployeeFactory, HRUserFactory, StateLicenseFactory, UserFactory


def _authenticated_client(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


# ─── 1. HR management ────────────────────────────────────────────────────────

class EmployeeManagementTests(TestCase):

    def setUp(self):
        self.hr = HRUserFactory()
        self.client = _authenticated_client(self.hr)

    def test_create(self):
        response = self.client.post('/api/employees', {
            'first_name': 'Ada', 'last_name': 'Lovelace', 'work_email': 'ada@clinic.example.com',
            'ssn': '123-45-6789', 'npi_number': '1234567890',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        employee = Employee.objects.get(work_email='ada@clinic.example.com')
        self.assertEqual(employee.ssn, '123-45-6789')
        self.assertEqual(response.json()['data']['ssn'], '***-**-6789')

        audit = AuditLog.objects.get(table_name='employees', record_id=employee.pk)
        self.assertEqual(audit.action, AuditLog.ACTION_CREATE)
        self.assertEqual(audit.changed_by, self.hr)
        self.assertEqual(audit.new_data['ssn'], '***-**-6789')

    def test_invalid_npi(self):
        response = self.client.post('/api/employees', {
            'first_name': 'Ada', 'last_name': 'Lovelace', 'work_email': 'ada@clinic.example.com',
            'npi_number': '123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Employee.objects.exists())

    def test_update_records_old_and_new(self):
        employee = EmployeeFactory(job_title='RN')
        response = self.client.patch(f'/api/employees/{employee.pk}', {'job_title': 'Charge Nurse'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        audit = AuditLog.objects.get(table_name='employees', action=AuditLog.ACTION_UPDATE)
        self.assertEqual(audit.old_data['job_title'], 'RN')
        self.assertEqual(audit.new_data['job_title'], 'Charge Nurse')

    def test_hr_changes_status(self):
        employee = EmployeeFactory(status=Employee.STATUS_TERMINATED)
        response = self.client.patch(f'/api/employees/{employee.pk}', {'status': Employee.STATUS_ACTIVE}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        employee.refresh_from_db()
        self.assertEqual(employee.status, Employee.STATUS_ACTIVE)

    def test_delete_terminates(self):
        employee = EmployeeFactory()
        response = self.client.delete(f'/api/employees/{employee.pk}')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        employee.refresh_from_db()
        self.assertEqual(employee.status, Employee.STATUS_TERMINATED)
        audit = AuditLog.objects.get(table_name='employees', action=AuditLog.ACTION_DELETE)
        self.assertEqual(audit.record_id, employee.pk)
        self.assertEqual(audit.new_data['status'], Employee.STATUS_TERMINATED)

    def test_search_filter(self):
        EmployeeFactory(first_name='Ada', last_name='Lovelace')
        EmployeeFactory(first_name='Grace', last_name='Hopper')
        data = self.client.get('/api/employees?search=lovelace').json()['data']
        self.assertEqual([row['last_name'] for row in data], ['Lovelace'])

    def test_detail_includes_credentials(self):
        license_ = StateLicenseFactory(expiration_date=timezone.localdate() + timedelta(days=10))
        data = self.client.get(f'/api/employees/{license_.employee_id}').json()['data']
        self.assertEqual(data['state_licenses'][0]['id'], license_.pk)
        self.assertEqual(data['state_licenses'][0]['effective_status'], 'expiring_soon')
        self.assertEqual(data['state_licenses'][0]['days_remaining'], 10)


# ─── 2. Self access ──────────────────────────────────────────────────────────

class EmployeeSelfAccessTests(TestCase):

    def setUp(self):
        self.user = UserFactory()
        self.employee = EmployeeFactory(user=self.user)
        self.other = EmployeeFactory()
        self.client = _authenticated_client(self.user)

    def test_read_and_edit_own_profile(self):
        self.assertEqual(self.client.get(f'/api/employees/{self.employee.pk}').status_code, status.HTTP_200_OK)
        response = self.client.patch(f'/api/employees/{self.employee.pk}', {'cell_phone': '555-0100'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_hr_owned_fields_ignored_on_own_profile(self):
        self.employee.terminate()
        response = self.client.patch(f'/api/employees/{self.employee.pk}', {
            'status': Employee.STATUS_ACTIVE,
            'job_title': 'Director of Nursing',
            'work_location': 'Remote',
            'cell_phone': '555-0101',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.employee.refresh_from_db()
        self.assertEqual(self.employee.status, Employee.STATUS_TERMINATED)
        self.assertEqual(self.employee.job_title, 'Registered Nurse')
        self.assertEqual(self.employee.work_location, 'Main Campus')
        self.assertEqual(self.employee.cell_phone, '555-0101')

    def test_other_profile_hidden(self):
        response = self.client.get(f'/api/employees/{self.other.pk}')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_cannot_delete(self):
        response = self.client.delete(f'/api/employees/{self.employee.pk}')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_records_for_other_employee(self):
        response = self.client.post(f'/api/employees/{self.other.pk}/state-licenses', {
            'license_number': 'RN1', 'state': 'NY',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(StateLicense.objects.exists())

    def test_other_record_hidden(self):
        license_ = StateLicenseFactory(employee=self.other)
        self.assertEqual(self.client.get(f'/api/state-licenses/{license_.pk}').status_code, status.HTTP_404_NOT_FOUND)

    def test_viewer_read_only(self):
        viewer = _authenticated_client(UserFactory(role='viewer'))
        self.assertEqual(viewer.get('/api/employees').status_code, status.HTTP_200_OK)
        response = viewer.patch(f'/api/employees/{self.other.pk}', {'job_title': 'X'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


# ─── 3. Nested records ───────────────────────────────────────────────────────

class EmployeeRecordTests(TestCase):

    def setUp(self):
        self.user = UserFactory()
        self.employee = EmployeeFactory(user=self.user)
        self.client = _authenticated_client(self.user)

    def test_create_and_list_own_license(self):
        response = self.client.post(f'/api/employees/{self.employee.pk}/state-licenses', {
            'license_number': 'RN-100', 'state': 'NY',
            'issue_date': '2024-01-01', 'expiration_date': '2028-01-01',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        license_ = StateLicense.objects.get()
        self.assertEqual(license_.employee, self.employee)

        data = self.client.get(f'/api/employees/{self.employee.pk}/state-licenses').json()['data']
        self.assertEqual([row['license_number'] for row in data], ['RN-100'])

        audit = AuditLog.objects.get(table_name='state_licenses')
        self.assertEqual((audit.action, audit.record_id), (AuditLog.ACTION_CREATE, license_.pk))

    def test_expiration_before_issue_rejected(self):
        response = self.client.post(f'/api/employees/{self.employee.pk}/state-licenses', {
            'license_number': 'RN-100', 'state': 'NY',
            'issue_date': '2025-01-01', 'expiration_date': '2024-01-01',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_and_delete_by_pk(self):
        license_ = StateLicenseFactory(employee=self.employee, state='NY')
        response = self.client.patch(f'/api/state-licenses/{license_.pk}', {'state': 'NJ'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        license_.refresh_from_db()
        self.assertEqual(license_.state, 'NJ')

        response = self.client.delete(f'/api/state-licenses/{license_.pk}')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(StateLicense.objects.exists())
        self.assertEqual(
            list(AuditLog.objects.filter(table_name='state_licenses').order_by('id').values_list('action', flat=True)),
            [AuditLog.ACTION_UPDATE, AuditLog.ACTION_DELETE],
        )

    def test_emergency_contact_phone(self):
        response = self.client.post(f'/api/employees/{self.employee.pk}/emergency-contacts', {
            'name': 'Pat', 'phone': 'call me maybe',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


# ─── 4. Incidents ────────────────────────────────────────────────────────────

class IncidentLogTests(TestCase):

    def setUp(self):
        self.user = UserFactory()
        self.employee = EmployeeFactory(user=self.user)
        self.url = f'/api/employees/{self.employee.pk}/incident-logs'
        self.payload = {'incident_type': 'Late', 'severity': 'high', 'description': 'Late to shift'}

    def test_employee_cannot_file(self):
        response = _authenticated_client(self.user).post(self.url, self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_employee_can_read_own(self):
        IncidentLog.objects.create(employee=self.employee, incident_type='Late')
        response = _authenticated_client(self.user).get(self.url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.json()['data']), 1)

    def test_hr_files_and_filters(self):
        hr = _authenticated_client(HRUserFactory())
        self.assertEqual(hr.post(self.url, self.payload, format='json').status_code, status.HTTP_201_CREATED)
        IncidentLog.objects.create(employee=self.employee, incident_type='Other', severity='low')
        data = hr.get(f'{self.url}?severity=high').json()['data']
        self.assertEqual([row['incident_type'] for row in data], ['Late'])


# ─── 5. Audit trail ──────────────────────────────────────────────────────────

class AuditLogApiTests(TestCase):

    def setUp(self):
        self.hr = HRUserFactory()
        self.client = _authenticated_client(self.hr)

    def test_filter_by_table_and_action(self):
        employee = EmployeeFactory()
        self.client.patch(f'/api/employees/{employee.pk}', {'job_title': 'Lead'}, format='json')
        self.client.delete(f'/api/employees/{employee.pk}')

        response = self.client.get(f'/api/audits?table_name=employees&record_id={employee.pk}&action=DELETE')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.json()['data']
        self.assertEqual(len(data), 1)
        self.assertEqual(data[0]['action'], 'DELETE')

        everything = self.client.get(f'/api/audits?record_id={employee.pk}').json()
        self.assertEqual(everything['pagination']['count'], 2)

    def test_employee_forbidden(self):
        response = _authenticated_client(UserFactory()).get('/api/audits')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_read_only(self):
        response = self.client.post('/api/audits', {'table_name': 'x'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
