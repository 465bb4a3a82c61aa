"""
Employee URLs

Child records are listed/created under ``employees/<id>/<resource>`` and
read/updated/deleted at ``<resource>/<pk>``.
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    EmployeeViewSet, EducationViewSet, EmploymentViewSet, PeerReferenceViewSet,
    StateLicenseViewSet, DEALicenseViewSet, BoardCertificationViewSet,
    EmergencyContactViewSet, TaxFormViewSet, TrainingViewSet,
    PayerEnrollmentViewSet, IncidentLogViewSet,
)

router = DefaultRouter(trailing_slash=False)
router.include_root_view = False
router.register('employees', EmployeeViewSet, basename='employee')

RECORD_VIEWSETS = [
    ('educations', EducationViewSet),
    ('employments', EmploymentViewSet),
    ('peer-references', PeerReferenceViewSet),
    ('state-licenses', StateLicenseViewSet),
    ('dea-licenses', DEALicenseViewSet),
    ('board-certifications', BoardCertificationViewSet),
    ('emergency-contacts', EmergencyContactViewSet),
    ('tax-forms', TaxFormViewSet),
    ('trainings', TrainingViewSet),
    ('payer-enrollments', PayerEnrollmentViewSet),
    ('incident-logs', IncidentLogViewSet),
]

urlpatterns = []
for prefix, viewset in RECORD_VIEWSETS:
    urlpatterns += [
        path(
            f'employees/<int:employee_pk>/{prefix}',
            viewset.as_view({'get': 'list', 'post': 'create'}),
            name=f'employee-{prefix}-list',
        ),
        path(
            f'{prefix}/<int:pk>',
            viewset.as_view({'get': 'retrieve', 'put': 'update', 'patch': 'partial_update', 'delete': 'destroy'}),
            name=f'{prefix}-detail',
        ),
    ]

urlpatterns += [
    path('', include(router.urls)),
]
