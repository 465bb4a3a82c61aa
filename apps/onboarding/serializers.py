"""Onboarding Serializers"""

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema_field
from rest_framework import serializers

from apps.employees.models import Employee

from .models import FormTemplate, FormSubmission, SubmissionSigner
from .services import OnboardingService


class FormTemplateSerializer(serializers.ModelSerializer):
    requires_hr_signature = serializers.BooleanField(read_only=True)

    class Meta:
        model = FormTemplate
        fields = [
            'id', 'template_id', 'name', 'description', 'category', 'fields', 'signer_roles',
            'document_count', 'enabled', 'required_for_onboarding', 'sort_order',
            'requires_hr_signature', 'last_synced_at', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'template_id', 'fields', 'signer_roles', 'document_count', 'last_synced_at',
            'created_at', 'updated_at',
        ]


class SubmissionSignerSerializer(serializers.ModelSerializer):
    class Meta:
        model = SubmissionSigner
        fields = [
            'id', 'role', 'signer_type', 'email', 'name', 'submitter_id', 'status',
            'sent_at', 'opened_at', 'completed_at', 'order',
        ]


class FormSubmissionSerializer(serializers.ModelSerializer):
    template_name = serializers.CharField(source='template.name', read_only=True)
    employee_name = serializers.CharField(source='employee.full_name', read_only=True)
    signers = SubmissionSignerSerializer(many=True, read_only=True)
    can_hr_sign = serializers.BooleanField(read_only=True)
    display_status = serializers.CharField(read_only=True)
    is_optimistic = serializers.BooleanField(read_only=True)

    class Meta:
        model = FormSubmission
        fields = [
            'id', 'employee', 'employee_name', 'invitation', 'template', 'template_name',
            'submission_id', 'recipient_email', 'recipient_name', 'status', 'display_status', 'is_optimistic',
            'sent_at', 'opened_at', 'completed_at', 'expires_at', 'sign_started_at',
            'requires_hr_signature', 'employee_signed', 'hr_signed', 'can_hr_sign',
            'is_onboarding_requirement', 'reminders_sent', 'last_reminder_at',
            'signers', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class SendFormSerializer(serializers.Serializer):
    template_id = serializers.CharField(help_text='Local FormTemplate id or DocuSeal template id')
    is_onboarding = serializers.BooleanField(default=False)

    def validate_template_id(self, value):
        template = FormTemplate.objects.filter(template_id=value).first()
        if template is None and str(value).isdigit():
            template = FormTemplate.objects.filter(pk=int(value)).first()
        if template is None:
            raise serializers.ValidationError('Form template not found.')
        if not template.enabled:
            raise serializers.ValidationError('Form template is disabled.')
        return template


class SaveDraftSerializer(serializers.Serializer):
    data = serializers.DictField(required=False, default=dict)
    current_step = serializers.JSONField(required=False, allow_null=True)


class ValidateStepSerializer(serializers.Serializer):
    step = serializers.JSONField()
    data = serializers.DictField(required=False, default=dict)


class SubmitOnboardingSerializer(serializers.Serializer):
    data = serializers.DictField(required=False, default=dict)


class ApproveOnboardingSerializer(serializers.Serializer):
    comments = serializers.CharField(max_length=2000, trim_whitespace=True)


class RejectOnboardingSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=2000, trim_whitespace=True)


class PendingApprovalSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    completion = serializers.SerializerMethodField()

    class Meta:
        model = Employee
        fields = [
            'id', 'first_name', 'last_name', 'full_name', 'work_email', 'job_title',
            'work_location', 'status', 'onboarding_status', 'onboarding_submitted_at', 'completion',
        ]
        read_only_fields = fields

    @extend_schema_field(OpenApiTypes.OBJECT)
    def get_completion(self, obj):
        return OnboardingService.completion(obj)
