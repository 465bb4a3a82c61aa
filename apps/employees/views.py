"""
Employee Views
"""

import logging

from django.db import transaction
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, status
from rest_framework.exceptions import PermissionDenied
from rest_framework.filters import OrderingFilter
from rest_framework.response import Response

from apps.core.audit import AuditedViewSetMixin, record_audit, snapshot
from apps.core.models import AuditLog
from apps.core.permissions import HasApiKeyScope, IsHRStaff, IsHRStaffOrSelf, can_read_all, is_hr_staff

from .filters import EmployeeFilter, IncidentLogFilter
from .models import (
    Employee, Education, Employment, PeerReference, StateLicense, DEALicense,
    BoardCertification, EmergencyContact, TaxForm, Training, PayerEnrollment, IncidentLog,
)
from . import serializers as emp_serializers

logger = logging.getLogger(__name__)

DETAIL_PREFETCH = (
    'educations', 'employments', 'peer_references', 'state_licenses', 'dea_licenses',
    'board_certifications', 'emergency_contacts', 'tax_forms', 'trainings',
    'payer_enrollments', 'incident_logs',
)


class EmployeeViewSet(AuditedViewSetMixin, viewsets.ModelViewSet):
    """
    Employee profiles.

    HR staff manage every record, viewers read, employees see and edit only
    their own profile. DELETE terminates instead of removing the row.
    """

    queryset = Employee.objects.select_related('user')
    permission_classes = [HasApiKeyScope, IsHRStaffOrSelf]
    api_key_resource = 'employees'
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = EmployeeFilter
    ordering_fields = ['last_name', 'first_name', 'created_at', 'status', 'job_title']
    ordering = ['last_name', 'first_name']

    def get_permissions(self):
        if self.action in ('create', 'destroy'):
            return [HasApiKeyScope(), IsHRStaff()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'retrieve':
            queryset = queryset.prefetch_related(*DETAIL_PREFETCH)
        if can_read_all(self.request.user):
            return queryset
        return queryset.filter(user=self.request.user)

    def get_serializer_class(self):
        if self.action == 'list':
            return emp_serializers.EmployeeListSerializer
        if self.action == 'retrieve':
            return emp_serializers.EmployeeDetailSerializer
        if self.action in ('update', 'partial_update') and not is_hr_staff(self.request.user):
            return emp_serializers.SelfServiceEmployeeSerializer
        return emp_serializers.EmployeeSerializer

    def destroy(self, request, *args, **kwargs):
        employee = self.get_object()
        old_data = snapshot(employee)
        with transaction.atomic():
            employee.terminate()
            record_audit(AuditLog.ACTION_DELETE, employee, user=request.user,
                         old_data=old_data, new_data=snapshot(employee), request=request)
        logger.info("employee_terminated id=%s by=%s", employee.pk, request.user.pk)
        return Response(
            {'success': True, 'data': {'id': employee.pk, 'status': employee.status},
             'message': 'Employee terminated.'},
            status=status.HTTP_200_OK,
        )


class EmployeeRecordViewSet(AuditedViewSetMixin, viewsets.ModelViewSet):
    """
    Per-employee child records. Routed twice: nested under
    ``employees/<employee_pk>/`` for list/create and flat by primary key for
    retrieve/update/delete.
    """

    permission_classes = [HasApiKeyScope, IsHRStaffOrSelf]
    api_key_resource = 'employees'
    pagination_class = None
    filter_backends = []
    model = None

    def get_queryset(self):
        queryset = self.model.objects.select_related('employee')
        employee_pk = self.kwargs.get('employee_pk')
        if employee_pk is not None:
            queryset = queryset.filter(employee_id=employee_pk)
        if not can_read_all(self.request.user):
            queryset = queryset.filter(employee__user=self.request.user)
        return queryset

    def get_employee(self):
        employee = get_object_or_404(Employee, pk=self.kwargs.get('employee_pk'))
        if not is_hr_staff(self.request.user) and employee.user_id != self.request.user.pk:
            raise PermissionDenied('You can only manage your own records.')
        return employee

    def get_save_kwargs(self):
        return {'employee': self.get_employee()}


class EducationViewSet(EmployeeRecordViewSet):
    model = Education
    serializer_class = emp_serializers.EducationSerializer


class EmploymentViewSet(EmployeeRecordViewSet):
    model = Employment
    serializer_class = emp_serializers.EmploymentSerializer


class PeerReferenceViewSet(EmployeeRecordViewSet):
    model = PeerReference
    serializer_class = emp_serializers.PeerReferenceSerializer


class StateLicenseViewSet(EmployeeRecordViewSet):
    model = StateLicense
    serializer_class = emp_serializers.StateLicenseSerializer
    api_key_resource = 'licenses'


class DEALicenseViewSet(EmployeeRecordViewSet):
    model = DEALicense
    serializer_class = emp_serializers.DEALicenseSerializer
    api_key_resource = 'licenses'


class BoardCertificationViewSet(EmployeeRecordViewSet):
    model = BoardCertification
    serializer_class = emp_serializers.BoardCertificationSerializer
    api_key_resource = 'licenses'


class EmergencyContactViewSet(EmployeeRecordViewSet):
    model = EmergencyContact
    serializer_class = emp_serializers.EmergencyContactSerializer


class TaxFormViewSet(EmployeeRecordViewSet):
    model = TaxForm
    serializer_class = emp_serializers.TaxFormSerializer


class TrainingViewSet(EmployeeRecordViewSet):
    model = Training
    serializer_class = emp_serializers.TrainingSerializer


class PayerEnrollmentViewSet(EmployeeRecordViewSet):
    model = PayerEnrollment
    serializer_class = emp_serializers.PayerEnrollmentSerializer


class IncidentLogViewSet(EmployeeRecordViewSet):
    model = IncidentLog
    serializer_class = emp_serializers.IncidentLogSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_class = IncidentLogFilter

    def get_permissions(self):
        # Incidents are HR-only records; employees cannot file or edit them.
        if self.request.method not in ('GET', 'HEAD', 'OPTIONS'):
            return [HasApiKeyScope(), IsHRStaff()]
        return super().get_permissions()
