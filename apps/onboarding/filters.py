"""Onboarding Filters"""
import django_filters

from apps.employees.models import Employee

from .models import FormSubmission, FormTemplate


class FormTemplateFilter(django_filters.FilterSet):
    category = django_filters.ChoiceFilter(choices=FormTemplate.CATEGORY_CHOICES)
    required_for_onboarding = django_filters.BooleanFilter()

    class Meta:
        model = FormTemplate
        fields = ['category', 'required_for_onboarding']


class FormSubmissionFilter(django_filters.FilterSet):
    employee = django_filters.NumberFilter(field_name='employee_id')
    status = django_filters.ChoiceFilter(choices=FormSubmission.STATUS_CHOICES)
    template = django_filters.NumberFilter(field_name='template_id')
    is_onboarding_requirement = django_filters.BooleanFilter()

    class Meta:
        model = FormSubmission
        fields = ['employee', 'status', 'template', 'is_onboarding_requirement']


class PendingApprovalFilter(django_filters.FilterSet):
    location = django_filters.CharFilter(field_name='work_location', lookup_expr='icontains')
    submitted_after = django_filters.DateFilter(field_name='onboarding_submitted_at', lookup_expr='date__gte')
    submitted_before = django_filters.DateFilter(field_name='onboarding_submitted_at', lookup_expr='date__lte')

    class Meta:
        model = Employee
        fields = ['location', 'submitted_after', 'submitted_before']
