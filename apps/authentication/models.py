"""
Authentication Models - User accounts with a single role, invitations and API keys
"""

from datetime import timedelta

from django.conf import settings
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin, BaseUserManager
from django.db import models
from django.utils import timezone

from apps.core.models import TimeStampedModel
from apps.core.permissions import ALL_SCOPES
from apps.core.utils import generate_token


class UserManager(BaseUserManager):
    """Custom user manager"""

    def create_user(self, username, password=None, **extra_fields):
        if not username:
            raise ValueError('Username is required')
        email = extra_fields.pop('email', '')
        user = self.model(
            username=username,
            email=self.normalize_email(email) if email else '',
            **extra_fields
        )
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, username, password=None, **extra_fields):
        extra_fields.setdefault('role', User.ROLE_ADMIN)
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        return self.create_user(username, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Login account. HR staff accounts have no Employee profile; employees
    reach theirs through ``user.employee``.
    """

    ROLE_ADMIN = 'admin'
    ROLE_HR = 'hr'
    ROLE_EMPLOYEE = 'employee'
    ROLE_PROSPECTIVE = 'prospective_employee'
    ROLE_VIEWER = 'viewer'

    ROLE_CHOICES = [
        (ROLE_ADMIN, 'Administrator'),
        (ROLE_HR, 'HR'),
        (ROLE_EMPLOYEE, 'Employee'),
        (ROLE_PROSPECTIVE, 'Prospective Employee'),
        (ROLE_VIEWER, 'Viewer'),
    ]

    username = models.CharField(max_length=150, unique=True)
    email = models.EmailField(blank=True, db_index=True)
    role = models.CharField(max_length=30, choices=ROLE_CHOICES, default=ROLE_PROSPECTIVE, db_index=True)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    require_password_change = models.BooleanField(default=False)
    password_changed_at = models.DateTimeField(null=True, blank=True)

    date_joined = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'username'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = ['email']

    class Meta:
        db_table = 'users'
        ordering = ['username']

    def __str__(self):
        return self.username

    @property
    def is_hr_staff(self):
        return self.is_superuser or self.role in (self.ROLE_ADMIN, self.ROLE_HR)

    def set_password(self, raw_password):
        super().set_password(raw_password)
        self.password_changed_at = timezone.now()


def default_invitation_expiry():
    return timezone.now() + timedelta(days=getattr(settings, 'INVITATION_EXPIRY_DAYS', 7))


class Invitation(TimeStampedModel):
    """Single-use registration link sent by HR."""

    STATUS_PENDING = 'pending'
    STATUS_REGISTERED = 'registered'
    STATUS_EXPIRED = 'expired'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_REGISTERED, 'Registered'),
        (STATUS_EXPIRED, 'Expired'),
    ]

    token = models.CharField(max_length=128, unique=True, default=generate_token, editable=False)
    email = models.EmailField(db_index=True)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    intended_role = models.CharField(
        max_length=30, choices=User.ROLE_CHOICES, default=User.ROLE_PROSPECTIVE
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    expires_at = models.DateTimeField(default=default_invitation_expiry)

    employee = models.ForeignKey(
        'employees.Employee',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='invitations',
    )
    invited_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sent_invitations',
    )
    registered_at = models.DateTimeField(null=True, blank=True)
    reminders_sent = models.PositiveSmallIntegerField(default=0)
    last_reminder_at = models.DateTimeField(null=True, blank=True)
    required_form_templates = models.ManyToManyField(
        'onboarding.FormTemplate',
        blank=True,
        related_name='invitations',
    )

    class Meta:
        db_table = 'invitations'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.email} ({self.status})"

    @property
    def is_expired(self):
        return self.expires_at <= timezone.now()

    @property
    def is_redeemable(self):
        return self.status == self.STATUS_PENDING and not self.is_expired


def default_api_key_expiry():
    return timezone.now() + timedelta(days=getattr(settings, 'API_KEY_DEFAULT_EXPIRY_DAYS', 90))


class ApiKey(TimeStampedModel):
    """
    Credential for machine clients. Only a scrypt hash of the key is stored;
    ``key_prefix`` (the first 16 characters) finds the row to check.
    Revocation is a soft delete through ``revoked_at``.
    """

    ENV_LIVE = 'live'
    ENV_TEST = 'test'

    ENVIRONMENT_CHOICES = [
        (ENV_LIVE, 'Live'),
        (ENV_TEST, 'Test'),
    ]

    KEY_PREFIXES = {
        ENV_LIVE: 'hrms_live_',
        ENV_TEST: 'hrms_test_',
    }
    PREFIX_LENGTH = 16

    name = models.CharField(max_length=100)
    key_hash = models.CharField(max_length=255)
    key_prefix = models.CharField(max_length=PREFIX_LENGTH, unique=True)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='api_keys')
    permissions = models.JSONField(default=list)
    environment = models.CharField(max_length=20, choices=ENVIRONMENT_CHOICES, default=ENV_LIVE)
    rate_limit_per_hour = models.PositiveIntegerField(default=1000)
    metadata = models.JSONField(default=dict, blank=True)

    expires_at = models.DateTimeField(default=default_api_key_expiry, db_index=True)
    revoked_at = models.DateTimeField(null=True, blank=True, db_index=True)
    last_used_at = models.DateTimeField(null=True, blank=True)
    usage_count = models.PositiveIntegerField(default=0)
    failed_auth_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'api_keys'
        ordering = ['-created_at']

    def __str__(self):
        return f"{self.name} ({self.key_prefix}...)"

    @property
    def is_revoked(self):
        return self.revoked_at is not None

    @property
    def is_expired(self):
        return self.expires_at <= timezone.now()

    @property
    def is_active(self):
        return not self.is_revoked and not self.is_expired

    def has_scope(self, scope):
        granted = self.permissions or []
        return ALL_SCOPES in granted or scope in granted


class ApiKeyRotation(models.Model):
    """Replacement of one key by another; the old key works until ``grace_period_ends``."""

    TYPE_MANUAL = 'manual'
    TYPE_AUTOMATIC = 'automatic'
    TYPE_EMERGENCY = 'emergency'

    TYPE_CHOICES = [
        (TYPE_MANUAL, 'Manual'),
        (TYPE_AUTOMATIC, 'Automatic'),
        (TYPE_EMERGENCY, 'Emergency'),
    ]

    api_key = models.ForeignKey(ApiKey, on_delete=models.CASCADE, related_name='rotations')
    new_key = models.ForeignKey(
        ApiKey,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='replaced_rotations',
    )
    rotation_type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_MANUAL)
    rotated_at = models.DateTimeField(auto_now_add=True)
    rotated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='api_key_rotations',
    )
    grace_period_ends = models.DateTimeField(db_index=True)
    reason = models.TextField(blank=True)

    class Meta:
        db_table = 'api_key_rotations'
        ordering = ['-rotated_at']

    def __str__(self):
        return f"{self.api_key_id} -> {self.new_key_id} ({self.rotation_type})"
