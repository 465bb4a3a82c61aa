"""
Onboarding Models - DocuSeal form templates, submissions and signers
"""

from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.core.models import TimeStampedModel

from . import submission_state


class FormTemplate(TimeStampedModel):
    """A DocuSeal template mirrored locally."""

    CATEGORY_ONBOARDING = 'onboarding'
    CATEGORY_TAX = 'tax'
    CATEGORY_EMPLOYMENT_AGREEMENT = 'employment_agreement'
    CATEGORY_COMPLIANCE = 'compliance'
    CATEGORY_OTHER = 'other'

    CATEGORY_CHOICES = [
        (CATEGORY_ONBOARDING, 'Onboarding'),
        (CATEGORY_TAX, 'Tax'),
        (CATEGORY_EMPLOYMENT_AGREEMENT, 'Employment Agreement'),
        (CATEGORY_COMPLIANCE, 'Compliance'),
        (CATEGORY_OTHER, 'Other'),
    ]

    template_id = models.CharField(max_length=100, unique=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=50, choices=CATEGORY_CHOICES, default=CATEGORY_OTHER)
    fields = models.JSONField(default=list, blank=True)
    signer_roles = models.JSONField(default=list, blank=True)
    document_count = models.PositiveSmallIntegerField(default=0)
    enabled = models.BooleanField(default=True, db_index=True)
    required_for_onboarding = models.BooleanField(default=False, db_index=True)
    sort_order = models.IntegerField(default=0)
    last_synced_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'form_templates'
        ordering = ['sort_order', 'name']

    def __str__(self):
        return self.name

    @property
    def requires_hr_signature(self):
        name = (self.name or '').lower()
        return (
            self.category == self.CATEGORY_EMPLOYMENT_AGREEMENT
            or 'agreement' in name
            or 'contract' in name
        )

    @property
    def field_names(self):
        fields = self.fields
        if isinstance(fields, dict):
            fields = fields.get('fields') or fields.get('template_fields') or []
        return [f.get('name') for f in fields or [] if isinstance(f, dict) and f.get('name')]

    def _role_names(self):
        names = []
        for entry in self.signer_roles or []:
            if isinstance(entry, str):
                names.append(entry)
            elif isinstance(entry, dict):
                names.append(entry.get('name') or entry.get('role') or '')
        return names

    @property
    def employee_role(self):
        names = self._role_names()
        for name in names:
            if 'employee' in name.lower():
                return name
        return names[0] if names and names[0] else 'Employee'

    @property
    def hr_role(self):
        names = self._role_names()
        for name in names[1:]:
            lowered = name.lower()
            if 'company' in lowered or 'hr' in lowered or 'employer' in lowered:
                return name
        return names[1] if len(names) > 1 and names[1] else 'Company'


def default_submission_expiry():
    return timezone.now() + timedelta(days=getattr(settings, 'FORM_SUBMISSION_EXPIRY_DAYS', 30))


class FormSubmission(TimeStampedModel):
    """One DocuSeal submission of a template to an employee."""

    STATUS_PENDING = 'pending'
    STATUS_SENT = 'sent'
    STATUS_OPENED = 'opened'
    STATUS_COMPLETED = 'completed'
    STATUS_EXPIRED = 'expired'
    STATUS_DECLINED = 'declined'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_SENT, 'Sent'),
        (STATUS_OPENED, 'Opened'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_EXPIRED, 'Expired'),
        (STATUS_DECLINED, 'Declined'),
    ]

    employee = models.ForeignKey(
        'employees.Employee',
        on_delete=models.CASCADE,
        related_name='form_submissions',
    )
    invitation = models.ForeignKey(
        'authentication.Invitation',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='form_submissions',
    )
    template = models.ForeignKey(FormTemplate, on_delete=models.PROTECT, related_name='submissions')
    submission_id = models.CharField(max_length=100, unique=True)

    recipient_email = models.EmailField()
    recipient_name = models.CharField(max_length=200, blank=True)
    recipient_phone = models.CharField(max_length=20, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    sent_at = models.DateTimeField(null=True, blank=True)
    opened_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(default=default_submission_expiry)
    # Set when the employee opens the signing link; cleared by the next
    # authoritative DocuSeal report. Never written into ``status``.
    sign_started_at = models.DateTimeField(null=True, blank=True)

    documents_url = models.URLField(max_length=500, blank=True)
    submission_data = models.JSONField(default=dict, blank=True)

    requires_hr_signature = models.BooleanField(default=False)
    employee_signed = models.BooleanField(default=False)
    hr_signed = models.BooleanField(default=False)
    is_onboarding_requirement = models.BooleanField(default=False)

    reminders_sent = models.PositiveSmallIntegerField(default=0)
    last_reminder_at = models.DateTimeField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_form_submissions',
    )

    class Meta:
        db_table = 'form_submissions'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.template} -> {self.recipient_email} ({self.status})"

    @property
    def can_hr_sign(self):
        return self.requires_hr_signature and self.employee_signed and not self.hr_signed

    @property
    def state(self):
        state = submission_state.from_status(self.status)
        if self.sign_started_at is not None:
            state = submission_state.reduce(state, submission_state.Event(submission_state.SIGN_STARTED))
        return state

    @property
    def display_status(self):
        return self.state.displayed

    @property
    def is_optimistic(self):
        return self.state.optimistic


class SubmissionSigner(models.Model):
    ROLE_EMPLOYEE = 'employee'
    ROLE_HR = 'hr'

    submission = models.ForeignKey(FormSubmission, on_delete=models.CASCADE, related_name='signers')
    role = models.CharField(max_length=100)
    signer_type = models.CharField(
        max_length=20,
        choices=[(ROLE_EMPLOYEE, 'Employee'), (ROLE_HR, 'HR')],
        default=ROLE_EMPLOYEE,
    )
    email = models.EmailField()
    name = models.CharField(max_length=200, blank=True)
    submitter_id = models.BigIntegerField(null=True, blank=True)
    slug = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=20, default=FormSubmission.STATUS_SENT)
    sent_at = models.DateTimeField(null=True, blank=True)
    opened_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    signing_url = models.URLField(max_length=500, blank=True)
    order = models.PositiveSmallIntegerField(default=0)

    class Meta:
        db_table = 'submission_signers'
        ordering = ['order', 'id']

    def __str__(self):
        return f"{self.role} <{self.email}> ({self.status})"
