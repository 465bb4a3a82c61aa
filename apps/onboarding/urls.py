"""Onboarding URLs"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    DocuSealWebhookView, EmployeeFormViewSet, FormSubmissionViewSet,
    FormTemplateViewSet, OnboardingViewSet,
)

router = DefaultRouter(trailing_slash=False)
router.include_root_view = False
router.register('onboarding', OnboardingViewSet, basename='onboarding')
router.register('forms/templates', FormTemplateViewSet, basename='form-template')
router.register('forms/submissions', FormSubmissionViewSet, basename='form-submission')

send_form = EmployeeFormViewSet.as_view({'post': 'send_form'})

urlpatterns = [
    path('employees/<int:pk>/send-form', send_form, name='employee-send-form'),
    path('onboarding/<int:pk>/send-form', send_form, name='onboarding-send-form'),
    path(
        'employees/<int:pk>/form-submissions',
        EmployeeFormViewSet.as_view({'get': 'form_submissions'}),
        name='employee-form-submissions',
    ),
    path('forms/webhook', DocuSealWebhookView.as_view(), name='docuseal-webhook'),
    path('', include(router.urls)),
]
