"""
Employee Models - Healthcare staff profiles and their credential records
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.core.expiration import classify_expiration, effective_status
from apps.core.fields import EncryptedTextField
from apps.core.models import TimeStampedModel


class Employee(TimeStampedModel):
    """
    Employee master record.

    Never hard-deleted through the API: DELETE moves the record to
    ``terminated``. The optional ``user`` link is set when the employee
    registers through an invitation.
    """

    STATUS_ACTIVE = 'active'
    STATUS_INACTIVE = 'inactive'
    STATUS_ON_LEAVE = 'on_leave'
    STATUS_TERMINATED = 'terminated'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_INACTIVE, 'Inactive'),
        (STATUS_ON_LEAVE, 'On Leave'),
        (STATUS_TERMINATED, 'Terminated'),
    ]

    ONBOARDING_NOT_STARTED = 'not_started'
    ONBOARDING_IN_PROGRESS = 'in_progress'
    ONBOARDING_SUBMITTED = 'submitted'
    ONBOARDING_COMPLETED = 'completed'

    ONBOARDING_CHOICES = [
        (ONBOARDING_NOT_STARTED, 'Not Started'),
        (ONBOARDING_IN_PROGRESS, 'In Progress'),
        (ONBOARDING_SUBMITTED, 'Submitted'),
        (ONBOARDING_COMPLETED, 'Completed'),
    ]

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='employee',
    )

    # Personal
    first_name = models.CharField(max_length=50)
    middle_name = models.CharField(max_length=50, blank=True)
    last_name = models.CharField(max_length=50)
    date_of_birth = models.DateField(null=True, blank=True)
    gender = models.CharField(max_length=20, blank=True)
    birth_city = models.CharField(max_length=50, blank=True)
    birth_state = models.CharField(max_length=50, blank=True)
    birth_country = models.CharField(max_length=50, blank=True)

    # Contact
    personal_email = models.EmailField(max_length=100, unique=True, null=True, blank=True)
    work_email = models.EmailField(max_length=100, unique=True)
    cell_phone = models.CharField(max_length=20, blank=True)
    work_phone = models.CharField(max_length=20, blank=True)

    # Home address
    home_address1 = models.CharField(max_length=100, blank=True)
    home_address2 = models.CharField(max_length=100, blank=True)
    home_city = models.CharField(max_length=50, blank=True)
    home_state = models.CharField(max_length=50, blank=True)
    home_zip = models.CharField(max_length=10, blank=True)

    # Driver's license
    drivers_license_number = models.CharField(max_length=50, blank=True)
    dl_state_issued = models.CharField(max_length=50, blank=True)
    dl_issue_date = models.DateField(null=True, blank=True)
    dl_expiration_date = models.DateField(null=True, blank=True, db_index=True)

    ssn = EncryptedTextField(blank=True)

    # NPI
    npi_number = models.CharField(max_length=20, unique=True, null=True, blank=True)
    enumeration_date = models.DateField(null=True, blank=True)

    # Employment
    job_title = models.CharField(max_length=100, blank=True, db_index=True)
    work_location = models.CharField(max_length=100, blank=True, db_index=True)
    qualification = models.TextField(blank=True)

    # Licensing
    medical_license_number = models.CharField(max_length=50, blank=True)
    substance_use_license_number = models.CharField(max_length=50, blank=True)
    substance_use_qualification = models.TextField(blank=True)
    mental_health_license_number = models.CharField(max_length=50, blank=True)
    mental_health_qualification = models.TextField(blank=True)

    # Payer identifiers
    medicaid_number = models.CharField(max_length=50, blank=True)
    medicare_ptan_number = models.CharField(max_length=50, blank=True)

    # CAQH
    caqh_provider_id = models.CharField(max_length=50, blank=True)
    caqh_issue_date = models.DateField(null=True, blank=True)
    caqh_last_attestation_date = models.DateField(null=True, blank=True)
    caqh_enabled = models.BooleanField(default=False)
    caqh_reattestation_due_date = models.DateField(null=True, blank=True, db_index=True)
    caqh_login_id = models.CharField(max_length=50, blank=True)
    caqh_password = EncryptedTextField(blank=True)

    # NPPES
    nppes_login_id = models.CharField(max_length=50, blank=True)
    nppes_password = EncryptedTextField(blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)

    # Onboarding wizard state
    onboarding_status = models.CharField(
        max_length=20, choices=ONBOARDING_CHOICES, default=ONBOARDING_NOT_STARTED, db_index=True
    )
    onboarding_step = models.PositiveSmallIntegerField(default=0)
    onboarding_completed_steps = models.JSONField(default=list, blank=True)
    onboarding_data = models.JSONField(default=dict, blank=True)
    onboarding_submitted_at = models.DateTimeField(null=True, blank=True)
    onboarding_reviewed_at = models.DateTimeField(null=True, blank=True)
    onboarding_reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='reviewed_onboardings',
    )
    onboarding_review_notes = models.TextField(blank=True)

    class Meta:
        db_table = 'employees'
        ordering = ['last_name', 'first_name']

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        parts = [self.first_name]
        if self.middle_name:
            parts.append(self.middle_name)
        parts.append(self.last_name)
        return ' '.join(parts)

    @property
    def invitation(self):
        """Most recent invitation issued for this employee, if any."""
        return self.invitations.order_by('-created_at').first()

    def terminate(self):
        self.status = self.STATUS_TERMINATED
        self.save(update_fields=['status', 'updated_at'])


class EmployeeRecord(models.Model):
    """Base for per-employee child records."""

    class Meta:
        abstract = True

    def __str__(self):
        return f"{self.__class__.__name__} #{self.pk} ({self.employee_id})"


class ExpiringCredential(EmployeeRecord):
    """
    Shared behaviour for records with an expiration date. ``status`` holds an
    explicit user-set value; when blank the status is derived from the date.
    """

    issue_date = models.DateField(null=True, blank=True)
    expiration_date = models.DateField(null=True, blank=True, db_index=True)
    status = models.CharField(max_length=50, blank=True)

    class Meta:
        abstract = True

    @property
    def expiration(self):
        return classify_expiration(self.expiration_date)

    @property
    def effective_status(self):
        return effective_status(self.status, self.expiration_date)


class Education(EmployeeRecord):
    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='educations')
    education_type = models.CharField(max_length=50, blank=True)
    school_institution = models.CharField(max_length=100, blank=True)
    degree = models.CharField(max_length=50, blank=True)
    specialty_major = models.CharField(max_length=100, blank=True)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)

    class Meta:
        db_table = 'educations'
        ordering = ['-end_date', '-id']


class Employment(EmployeeRecord):
    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='employments')
    employer = models.CharField(max_length=100, blank=True)
    position = models.CharField(max_length=100, blank=True)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    description = models.TextField(blank=True)

    class Meta:
        db_table = 'employments'
        ordering = ['-start_date', '-id']


class PeerReference(EmployeeRecord):
    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='peer_references')
    reference_name = models.CharField(max_length=100, blank=True)
    contact_info = models.CharField(max_length=100, blank=True)
    relationship = models.CharField(max_length=100, blank=True)
    comments = models.TextField(blank=True)

    class Meta:
        db_table = 'peer_references'
        ordering = ['id']


class StateLicense(ExpiringCredential):
    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='state_licenses')
    license_number = models.CharField(max_length=50)
    state = models.CharField(max_length=50)

    class Meta:
        db_table = 'state_licenses'
        ordering = ['expiration_date', 'id']


class DEALicense(ExpiringCredential):
    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='dea_licenses')
    license_number = models.CharField(max_length=50)
    state = models.CharField(max_length=50, blank=True)

    class Meta:
        db_table = 'dea_licenses'
        ordering = ['expiration_date', 'id']
        verbose_name = 'DEA license'


class BoardCertification(ExpiringCredential):
    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='board_certifications')
    board_name = models.CharField(max_length=100, blank=True)
    certification = models.CharField(max_length=100, blank=True)

    class Meta:
        db_table = 'board_certifications'
        ordering = ['expiration_date', 'id']


class EmergencyContact(EmployeeRecord):
    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='emergency_contacts')
    name = models.CharField(max_length=100)
    relationship = models.CharField(max_length=50, blank=True)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(max_length=100, blank=True)

    class Meta:
        db_table = 'emergency_contacts'
        ordering = ['id']


class TaxForm(EmployeeRecord):
    STATUS_PENDING = 'pending'
    STATUS_SUBMITTED = 'submitted'
    STATUS_COMPLETED = 'completed'
    STATUS_REQUIRES_UPDATE = 'requires_update'

    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='tax_forms')
    form_type = models.CharField(max_length=50)
    file_path = models.CharField(max_length=255, blank=True)
    submitted_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=50, blank=True, default=STATUS_PENDING)

    class Meta:
        db_table = 'tax_forms'
        ordering = ['-submitted_date', '-id']


class Training(EmployeeRecord):
    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='trainings')
    training_type = models.CharField(max_length=100, blank=True)
    provider = models.CharField(max_length=100, blank=True)
    completion_date = models.DateField(null=True, blank=True)
    expiration_date = models.DateField(null=True, blank=True, db_index=True)
    credits = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    certificate_path = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = 'trainings'
        ordering = ['-completion_date', '-id']

    @property
    def expiration(self):
        return classify_expiration(self.expiration_date)


class PayerEnrollment(EmployeeRecord):
    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='payer_enrollments')
    payer_name = models.CharField(max_length=100, blank=True)
    enrollment_id = models.CharField(max_length=50, blank=True)
    enrollment_date = models.DateField(null=True, blank=True)
    status = models.CharField(max_length=50, blank=True)

    class Meta:
        db_table = 'payer_enrollments'
        ordering = ['payer_name', 'id']


class IncidentLog(EmployeeRecord):
    SEVERITY_LOW = 'low'
    SEVERITY_MEDIUM = 'medium'
    SEVERITY_HIGH = 'high'
    SEVERITY_CRITICAL = 'critical'

    SEVERITY_CHOICES = [
        (SEVERITY_LOW, 'Low'),
        (SEVERITY_MEDIUM, 'Medium'),
        (SEVERITY_HIGH, 'High'),
        (SEVERITY_CRITICAL, 'Critical'),
    ]

    STATUS_OPEN = 'open'
    STATUS_INVESTIGATING = 'investigating'
    STATUS_RESOLVED = 'resolved'
    STATUS_CLOSED = 'closed'

    STATUS_CHOICES = [
        (STATUS_OPEN, 'Open'),
        (STATUS_INVESTIGATING, 'Investigating'),
        (STATUS_RESOLVED, 'Resolved'),
        (STATUS_CLOSED, 'Closed'),
    ]

    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='incident_logs')
    incident_date = models.DateField(default=timezone.localdate)
    incident_type = models.CharField(max_length=50, blank=True)
    severity = models.CharField(max_length=20, choices=SEVERITY_CHOICES, default=SEVERITY_LOW)
    description = models.TextField(blank=True)
    resolution = models.TextField(blank=True)
    reported_by = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_OPEN)

    class Meta:
        db_table = 'incident_logs'
        ordering = ['-incident_date', '-id']
