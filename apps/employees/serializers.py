"""
Employee Serializers
"""

import re

from rest_framework import serializers
from drf_spectacular.utils import extend_schema_field
from drf_spectacular.types import OpenApiTypes

from apps.core.encryption import mask_ssn

from .models import (
    Employee, Education, Employment, PeerReference, StateLicense, DEALicense,
    BoardCertification, EmergencyContact, TaxForm, Training, PayerEnrollment, IncidentLog,
)

PHONE_RE = re.compile(r'^[\d\s\-\(\)\+]*$')
PASSWORD_MASK = '***'


class EmployeeSerializer(serializers.ModelSerializer):
    """
    Sensitive values are write-through: SSN reads back masked, stored
    service passwords read back as ``***``. Sending the mask back on update
    leaves the stored value unchanged.
    """

    full_name = serializers.CharField(read_only=True)
    username = serializers.CharField(source='user.username', read_only=True, default=None)

    class Meta:
        model = Employee
        exclude = ['onboarding_data']
        read_only_fields = [
            'user', 'onboarding_status', 'onboarding_step', 'onboarding_completed_steps',
            'onboarding_submitted_at', 'onboarding_reviewed_at', 'onboarding_reviewed_by',
            'onboarding_review_notes', 'created_at', 'updated_at',
        ]
        extra_kwargs = {
            'ssn': {'required': False},
            'caqh_password': {'required': False},
            'nppes_password': {'required': False},
        }

    def to_representation(self, instance):
        data = super().to_representation(instance)
        data['ssn'] = mask_ssn(instance.ssn) if instance.ssn else None
        data['caqh_password'] = PASSWORD_MASK if instance.caqh_password else None
        data['nppes_password'] = PASSWORD_MASK if instance.nppes_password else None
        return data

    def validate(self, attrs):
        for field in ('caqh_password', 'nppes_password'):
            if attrs.get(field) == PASSWORD_MASK:
                attrs.pop(field)
        if 'ssn' in attrs and attrs['ssn'] and attrs['ssn'].startswith('***'):
            attrs.pop('ssn')
        if attrs.get('npi_number') == '':
            attrs['npi_number'] = None
        if attrs.get('personal_email') == '':
            attrs['personal_email'] = None
        return attrs

    def validate_ssn(self, value):
        if value and not value.startswith('***'):
            if not re.fullmatch(r'\d{9}', re.sub(r'[\s\-]', '', value)):
                raise serializers.ValidationError('SSN must contain 9 digits')
        return value

    def validate_npi_number(self, value):
        if value and not re.fullmatch(r'\d{10}', value):
            raise serializers.ValidationError('NPI must be exactly 10 digits')
        return value

    def validate_cell_phone(self, value):
        if value and not PHONE_RE.match(value):
            raise serializers.ValidationError('Invalid phone number format')
        return value

    def validate_work_phone(self, value):
        return self.validate_cell_phone(value)


HR_OWNED_FIELDS = ('status', 'job_title', 'work_location', 'work_email')


class SelfServiceEmployeeSerializer(EmployeeSerializer):
    """Profile edits by the employee themselves; HR-owned fields are read-only."""

    class Meta(EmployeeSerializer.Meta):
        read_only_fields = EmployeeSerializer.Meta.read_only_fields + list(HR_OWNED_FIELDS)


class EmployeeListSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Employee
        fields = [
            'id', 'first_name', 'middle_name', 'last_name', 'full_name', 'work_email',
            'cell_phone', 'job_title', 'work_location', 'npi_number', 'status',
            'onboarding_status', 'created_at',
        ]


class _EmployeeRecordSerializer(serializers.ModelSerializer):
    employee = serializers.PrimaryKeyRelatedField(read_only=True)


class _CredentialSerializer(_EmployeeRecordSerializer):
    effective_status = serializers.SerializerMethodField()
    days_remaining = serializers.SerializerMethodField()
    priority = serializers.SerializerMethodField()

    @extend_schema_field(OpenApiTypes.STR)
    def get_effective_status(self, obj):
        return obj.effective_status

    @extend_schema_field(OpenApiTypes.INT)
    def get_days_remaining(self, obj):
        return obj.expiration.days_remaining

    @extend_schema_field(OpenApiTypes.STR)
    def get_priority(self, obj):
        return obj.expiration.priority

    def validate(self, attrs):
        issued = attrs.get('issue_date', getattr(self.instance, 'issue_date', None))
        expires = attrs.get('expiration_date', getattr(self.instance, 'expiration_date', None))
        if issued and expires and expires < issued:
            raise serializers.ValidationError({'expiration_date': 'Expiration date cannot be before issue date.'})
        return attrs


class _DateRangeMixin:
    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('end_date', getattr(self.instance, 'end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'End date cannot be before start date.'})
        return attrs


class EducationSerializer(_DateRangeMixin, _EmployeeRecordSerializer):
    class Meta:
        model = Education
        fields = '__all__'


class EmploymentSerializer(_DateRangeMixin, _EmployeeRecordSerializer):
    class Meta:
        model = Employment
        fields = '__all__'


class PeerReferenceSerializer(_EmployeeRecordSerializer):
    class Meta:
        model = PeerReference
        fields = '__all__'


class StateLicenseSerializer(_CredentialSerializer):
    class Meta:
        model = StateLicense
        fields = '__all__'


class DEALicenseSerializer(_CredentialSerializer):
    class Meta:
        model = DEALicense
        fields = '__all__'


class BoardCertificationSerializer(_CredentialSerializer):
    class Meta:
        model = BoardCertification
        fields = '__all__'


class EmergencyContactSerializer(_EmployeeRecordSerializer):
    class Meta:
        model = EmergencyContact
        fields = '__all__'

    def validate_phone(self, value):
        if value and not PHONE_RE.match(value):
            raise serializers.ValidationError('Invalid phone number format')
        return value


class TaxFormSerializer(_EmployeeRecordSerializer):
    class Meta:
        model = TaxForm
        fields = '__all__'


class TrainingSerializer(_EmployeeRecordSerializer):
    expiration_status = serializers.SerializerMethodField()

    class Meta:
        model = Training
        fields = '__all__'

    @extend_schema_field(OpenApiTypes.STR)
    def get_expiration_status(self, obj):
        return obj.expiration.status


class PayerEnrollmentSerializer(_EmployeeRecordSerializer):
    class Meta:
        model = PayerEnrollment
        fields = '__all__'


class IncidentLogSerializer(_EmployeeRecordSerializer):
    class Meta:
        model = IncidentLog
        fields = '__all__'


class EmployeeDetailSerializer(EmployeeSerializer):
    """Profile page: the employee with every credential record."""

    educations = EducationSerializer(many=True, read_only=True)
    employments = EmploymentSerializer(many=True, read_only=True)
    peer_references = PeerReferenceSerializer(many=True, read_only=True)
    state_licenses = StateLicenseSerializer(many=True, read_only=True)
    dea_licenses = DEALicenseSerializer(many=True, read_only=True)
    board_certifications = BoardCertificationSerializer(many=True, read_only=True)
    emergency_contacts = EmergencyContactSerializer(many=True, read_only=True)
    tax_forms = TaxFormSerializer(many=True, read_only=True)
    trainings = TrainingSerializer(many=True, read_only=True)
    payer_enrollments = PayerEnrollmentSerializer(many=True, read_only=True)
    incident_logs = IncidentLogSerializer(many=True, read_only=True)

    class Meta(EmployeeSerializer.Meta):
        pass
