"""
Authentication Serializers
"""

from rest_framework import serializers

from apps.core.permissions import ALL_SCOPES, API_KEY_SCOPES
from apps.onboarding.models import FormTemplate

from .models import ApiKey, ApiKeyRotation, Invitation, User


class UserSerializer(serializers.ModelSerializer):
    employee_id = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'username', 'email', 'role', 'is_active', 'require_password_change',
            'password_changed_at', 'date_joined', 'employee_id',
        ]
        read_only_fields = fields

    def get_employee_id(self, obj):
        employee = getattr(obj, 'employee', None)
        return employee.pk if employee else None


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(write_only=True, trim_whitespace=False)


class RegisterSerializer(serializers.Serializer):
    token = serializers.CharField(max_length=128)
    username = serializers.RegexField(
        r'^[\w.@+-]+$',
        max_length=150,
        error_messages={'invalid': 'Username may contain only letters, digits and @/./+/-/_ characters.'},
    )
    password = serializers.CharField(write_only=True, trim_whitespace=False)
    email = serializers.EmailField(required=False, allow_blank=True)


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(write_only=True, trim_whitespace=False)
    new_password = serializers.CharField(write_only=True, trim_whitespace=False)


class InvitationSerializer(serializers.ModelSerializer):
    invited_by_username = serializers.CharField(source='invited_by.username', read_only=True, default=None)
    is_expired = serializers.BooleanField(read_only=True)
    required_form_templates = serializers.PrimaryKeyRelatedField(
        queryset=FormTemplate.objects.filter(enabled=True), many=True, required=False,
    )

    class Meta:
        model = Invitation
        fields = [
            'id', 'email', 'first_name', 'last_name', 'intended_role', 'status', 'expires_at',
            'is_expired', 'employee', 'invited_by', 'invited_by_username', 'registered_at',
            'reminders_sent', 'last_reminder_at', 'required_form_templates', 'created_at',
        ]
        read_only_fields = [
            'status', 'expires_at', 'invited_by', 'registered_at', 'reminders_sent',
            'last_reminder_at', 'created_at',
        ]

    def validate_intended_role(self, value):
        if value == User.ROLE_ADMIN:
            raise serializers.ValidationError('Administrators cannot be invited.')
        return value


class InvitationPublicSerializer(serializers.ModelSerializer):
    """What the registration page may see for a token."""

    class Meta:
        model = Invitation
        fields = ['email', 'first_name', 'last_name', 'intended_role', 'expires_at']
        read_only_fields = fields


class ApiKeySerializer(serializers.ModelSerializer):
    """Stored key details; the hash is never exposed."""

    is_expired = serializers.BooleanField(read_only=True)
    is_revoked = serializers.BooleanField(read_only=True)

    class Meta:
        model = ApiKey
        fields = [
            'id', 'name', 'key_prefix', 'permissions', 'environment', 'rate_limit_per_hour',
            'metadata', 'last_used_at', 'expires_at', 'revoked_at', 'is_expired', 'is_revoked',
            'created_at',
        ]
        read_only_fields = fields


class ApiKeyCreateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    permissions = serializers.ListField(
        child=serializers.ChoiceField(choices=[ALL_SCOPES, *API_KEY_SCOPES]),
        allow_empty=False,
    )
    environment = serializers.ChoiceField(choices=ApiKey.ENVIRONMENT_CHOICES, default=ApiKey.ENV_LIVE)
    expires_in_days = serializers.IntegerField(min_value=1, max_value=365, default=90)
    rate_limit_per_hour = serializers.IntegerField(min_value=10, max_value=10000, default=1000)
    metadata = serializers.DictField(required=False, default=dict)

    def validate_permissions(self, value):
        return list(dict.fromkeys(value))


class ApiKeyRotateSerializer(serializers.Serializer):
    grace_period_hours = serializers.IntegerField(min_value=0, max_value=168, default=24)
    reason = serializers.CharField(max_length=500, default='Manual rotation')
    rotation_type = serializers.ChoiceField(choices=ApiKeyRotation.TYPE_CHOICES, default=ApiKeyRotation.TYPE_MANUAL)
