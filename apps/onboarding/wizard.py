"""
Onboarding wizard steps and their validators.

The draft is one flat dict: scalar profile fields at the top level and
lists (``educations``, ``state_licenses``, ...) for nested records. Each
step validates only the keys its serializer declares.
"""

import re

from rest_framework import serializers

PHONE_RE = re.compile(r'^[\d\s\-\(\)\+]*$')
NPI_RE = re.compile(r'^\d{10}$')


class _Item(serializers.Serializer):
    """Nested record; unknown keys are ignored."""

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'End date cannot be before start date.'})
        issued, expires = attrs.get('issue_date'), attrs.get('expiration_date')
        if issued and expires and expires < issued:
            raise serializers.ValidationError({'expiration_date': 'Expiration date cannot be before issue date.'})
        return attrs


def _optional_char(max_length):
    return serializers.CharField(max_length=max_length, required=False, allow_blank=True)


class BlankableDateField(serializers.DateField):
    """Form drafts send "" for untouched date inputs."""

    def to_internal_value(self, value):
        if value == '':
            return None
        return super().to_internal_value(value)


def _optional_date():
    return BlankableDateField(required=False, allow_null=True)


class EducationItem(_Item):
    education_type = _optional_char(50)
    school_institution = _optional_char(100)
    degree = _optional_char(50)
    specialty_major = _optional_char(100)
    start_date = _optional_date()
    end_date = _optional_date()


class EmploymentItem(_Item):
    employer = serializers.CharField(max_length=100)
    position = _optional_char(100)
    start_date = _optional_date()
    end_date = _optional_date()
    description = serializers.CharField(required=False, allow_blank=True)


class StateLicenseItem(_Item):
    license_number = serializers.CharField(max_length=50)
    state = serializers.CharField(max_length=50)
    issue_date = _optional_date()
    expiration_date = _optional_date()
    status = _optional_char(50)


class DEALicenseItem(_Item):
    license_number = serializers.CharField(max_length=50)
    state = _optional_char(50)
    issue_date = _optional_date()
    expiration_date = _optional_date()
    status = _optional_char(50)


class BoardCertificationItem(_Item):
    board_name = serializers.CharField(max_length=100)
    certification = _optional_char(100)
    issue_date = _optional_date()
    expiration_date = _optional_date()
    status = _optional_char(50)


class PeerReferenceItem(_Item):
    reference_name = serializers.CharField(max_length=100)
    contact_info = _optional_char(100)
    relationship = _optional_char(100)
    comments = serializers.CharField(required=False, allow_blank=True)


class EmergencyContactItem(_Item):
    name = serializers.CharField(max_length=100)
    relationship = _optional_char(50)
    phone = _optional_char(20)
    email = serializers.EmailField(required=False, allow_blank=True)

    def validate_phone(self, value):
        if not PHONE_RE.match(value):
            raise serializers.ValidationError('Invalid phone number format')
        return value


class TaxFormItem(_Item):
    form_type = serializers.CharField(max_length=50)
    year = serializers.IntegerField(min_value=1900, max_value=2100, required=False)
    submitted_date = _optional_date()
    status = _optional_char(50)


class TrainingItem(_Item):
    training_type = serializers.CharField(max_length=100)
    provider = _optional_char(100)
    completion_date = _optional_date()
    expiration_date = _optional_date()
    credits = serializers.DecimalField(max_digits=5, decimal_places=2, required=False, allow_null=True)


class PayerEnrollmentItem(_Item):
    payer_name = serializers.CharField(max_length=100)
    enrollment_id = _optional_char(50)
    enrollment_date = _optional_date()
    status = _optional_char(50)


class PersonalInfoStep(serializers.Serializer):
    first_name = serializers.CharField(max_length=50)
    middle_name = _optional_char(50)
    last_name = serializers.CharField(max_length=50)
    date_of_birth = serializers.DateField()
    gender = _optional_char(20)
    ssn = serializers.CharField(max_length=20)
    personal_email = serializers.EmailField(max_length=100)
    work_email = serializers.EmailField(max_length=100, required=False, allow_blank=True)
    cell_phone = serializers.CharField(max_length=20)
    home_address1 = _optional_char(100)
    home_address2 = _optional_char(100)
    home_city = _optional_char(50)
    home_state = _optional_char(50)
    home_zip = _optional_char(10)

    def validate_cell_phone(self, value):
        if not PHONE_RE.match(value):
            raise serializers.ValidationError('Invalid phone number format')
        return value

    def validate_ssn(self, value):
        digits = re.sub(r'[\s\-]', '', value)
        if not re.fullmatch(r'\d{9}', digits):
            raise serializers.ValidationError('SSN must contain 9 digits')
        return value


class ProfessionalInfoStep(serializers.Serializer):
    job_title = serializers.CharField(max_length=100)
    work_location = serializers.CharField(max_length=100)
    npi_number = serializers.CharField(max_length=20, required=False, allow_blank=True)
    enumeration_date = _optional_date()
    work_phone = _optional_char(20)
    qualification = serializers.CharField(required=False, allow_blank=True)

    def validate_npi_number(self, value):
        if value and not NPI_RE.match(value):
            raise serializers.ValidationError('NPI must be exactly 10 digits')
        return value


class CredentialsStep(serializers.Serializer):
    medical_license_number = _optional_char(50)
    substance_use_license_number = _optional_char(50)
    substance_use_qualification = serializers.CharField(required=False, allow_blank=True)
    mental_health_license_number = _optional_char(50)
    mental_health_qualification = serializers.CharField(required=False, allow_blank=True)
    medicaid_number = _optional_char(50)
    medicare_ptan_number = _optional_char(50)
    caqh_provider_id = _optional_char(50)
    caqh_issue_date = _optional_date()
    caqh_last_attestation_date = _optional_date()
    caqh_enabled = serializers.BooleanField(required=False)
    caqh_reattestation_due_date = _optional_date()
    caqh_login_id = _optional_char(50)
    caqh_password = _optional_char(100)
    nppes_login_id = _optional_char(50)
    nppes_password = _optional_char(100)


class AdditionalInfoStep(serializers.Serializer):
    birth_city = _optional_char(50)
    birth_state = _optional_char(50)
    birth_country = _optional_char(50)
    drivers_license_number = _optional_char(50)
    dl_state_issued = _optional_char(50)
    dl_issue_date = _optional_date()
    dl_expiration_date = _optional_date()

    def validate(self, attrs):
        issued, expires = attrs.get('dl_issue_date'), attrs.get('dl_expiration_date')
        if issued and expires and expires < issued:
            raise serializers.ValidationError({'dl_expiration_date': 'Expiration date cannot be before issue date.'})
        return attrs


class EducationEmploymentStep(serializers.Serializer):
    educations = EducationItem(many=True, required=False)
    employments = EmploymentItem(many=True, required=False)


class LicensesStep(serializers.Serializer):
    state_licenses = StateLicenseItem(many=True, required=False)
    dea_licenses = DEALicenseItem(many=True, required=False)


class CertificationsStep(serializers.Serializer):
    board_certifications = BoardCertificationItem(many=True, required=False)


class ReferencesContactsStep(serializers.Serializer):
    peer_references = PeerReferenceItem(many=True, required=False)
    emergency_contacts = EmergencyContactItem(many=True, required=False)


class TaxDocumentationStep(serializers.Serializer):
    tax_forms = TaxFormItem(many=True, required=False)


class TrainingPayerStep(serializers.Serializer):
    trainings = TrainingItem(many=True, required=False)
    payer_enrollments = PayerEnrollmentItem(many=True, required=False)


class ReviewStep(serializers.Serializer):
    review_confirmed = serializers.BooleanField()

    def validate_review_confirmed(self, value):
        if not value:
            raise serializers.ValidationError('Please confirm the information is accurate.')
        return value


def validate_forms_step(data, employee=None):
    """Required onboarding forms must be signed before submission."""
    if employee is None:
        return {}
    pending = employee.form_submissions.filter(is_onboarding_requirement=True).exclude(status='completed')
    if pending.exists():
        names = sorted(pending.values_list('template__name', flat=True))
        return {'forms': [f"Required forms are not yet signed: {', '.join(names)}"]}
    return {}


STEPS = [
    ('personal_info', 'Personal Information', PersonalInfoStep),
    ('professional_info', 'Professional Information', ProfessionalInfoStep),
    ('credentials', 'Credentials', CredentialsStep),
    ('additional_info', 'Additional Information', AdditionalInfoStep),
    ('education_employment', 'Education & Employment', EducationEmploymentStep),
    ('licenses', 'Licenses', LicensesStep),
    ('certifications', 'Certifications', CertificationsStep),
    ('references_contacts', 'References & Contacts', ReferencesContactsStep),
    ('tax_documentation', 'Tax Documentation', TaxDocumentationStep),
    ('training_payer', 'Training & Payer', TrainingPayerStep),
    ('forms', 'Forms', validate_forms_step),
    ('review', 'Review', ReviewStep),
]

STEP_KEYS = [key for key, _, _ in STEPS]
STEP_TITLES = {key: title for key, title, _ in STEPS}
_VALIDATORS = {key: validator for key, _, validator in STEPS}

PROFILE_STEPS = ('personal_info', 'professional_info', 'credentials', 'additional_info')
NESTED_KEYS = (
    'educations', 'employments', 'state_licenses', 'dea_licenses', 'board_certifications',
    'peer_references', 'emergency_contacts', 'tax_forms', 'trainings', 'payer_enrollments',
)


def step_index(step):
    """Accepts a step key or a 0-based index; raises ValueError otherwise."""
    if isinstance(step, int) or (isinstance(step, str) and step.isdigit()):
        index = int(step)
        if 0 <= index < len(STEPS):
            return index
    elif step in STEP_KEYS:
        return STEP_KEYS.index(step)
    raise ValueError(f"Unknown onboarding step: {step}")


def validate_step(step, data, employee=None):
    """Field errors for one step; an empty dict means the step is valid."""
    key = STEP_KEYS[step_index(step)]
    validator = _VALIDATORS[key]
    if isinstance(validator, type) and issubclass(validator, serializers.Serializer):
        serializer = validator(data=data or {})
        if serializer.is_valid():
            return {}
        return serializer.errors
    return validator(data or {}, employee=employee)


def cleaned_step_data(step, data):
    """Validated values for a serializer-backed step."""
    key = STEP_KEYS[step_index(step)]
    serializer = _VALIDATORS[key](data=data or {})
    serializer.is_valid(raise_exception=True)
    return serializer.validated_data


def validate_all(data, employee=None):
    """Errors keyed by step for every invalid step."""
    errors = {}
    for key in STEP_KEYS:
        step_errors = validate_step(key, data, employee=employee)
        if step_errors:
            errors[key] = step_errors
    return errors
