"""Onboarding Admin"""

from django.contrib import admin

from .models import FormTemplate, FormSubmission, SubmissionSigner


@admin.register(FormTemplate)
class FormTemplateAdmin(admin.ModelAdmin):
    list_display = ['name', 'template_id', 'category', 'enabled', 'required_for_onboarding', 'sort_order', 'last_synced_at']
    list_filter = ['category', 'enabled', 'required_for_onboarding']
    search_fields = ['name', 'template_id']
    list_editable = ['enabled', 'required_for_onboarding', 'sort_order']


class SubmissionSignerInline(admin.TabularInline):
    model = SubmissionSigner
    extra = 0
    readonly_fields = ['role', 'signer_type', 'email', 'name', 'submitter_id', 'slug', 'status', 'sent_at', 'opened_at', 'completed_at']


@admin.register(FormSubmission)
class FormSubmissionAdmin(admin.ModelAdmin):
    list_display = ['submission_id', 'template', 'recipient_email', 'status', 'sent_at', 'completed_at']
    list_filter = ['status', 'is_onboarding_requirement', 'requires_hr_signature']
    search_fields = ['submission_id', 'recipient_email', 'recipient_name']
    raw_id_fields = ['employee', 'invitation', 'template', 'created_by']
    inlines = [SubmissionSignerInline]
