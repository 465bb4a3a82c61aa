"""Onboarding Views - wizard and DocuSeal form endpoints"""

import hmac
import logging

from django.conf import settings
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.exceptions import ResourceNotFoundException, ValidationException
from apps.core.pagination import StandardResultsPagination
from apps.core.permissions import IsHRStaff, IsHRStaffOrReadOnly, IsHRStaffOrSelf, can_read_all, is_hr_staff
from apps.core.response import attachment_response, failure_response, success_response
from apps.employees.models import Employee

from . import wizard
from .constants import SUBMISSION_POLL_INTERVAL_SECONDS, WATCH_INTERVAL_SECONDS
from .filters import FormSubmissionFilter, FormTemplateFilter, PendingApprovalFilter
from .models import FormSubmission, FormTemplate
from .serializers import (
    ApproveOnboardingSerializer, FormSubmissionSerializer, FormTemplateSerializer,
    PendingApprovalSerializer, RejectOnboardingSerializer, SaveDraftSerializer,
    SendFormSerializer, SubmitOnboardingSerializer, ValidateStepSerializer,
)
from .services import FormSigningService, OnboardingService
from .tasks import watch_submission

logger = logging.getLogger(__name__)

WEBHOOK_SECRET_HEADER = 'HTTP_X_DOCUSEAL_SECRET'


def _own_employee(user):
    employee = getattr(user, 'employee', None)
    if employee is None:
        raise ResourceNotFoundException('Employee profile')
    return employee


class OnboardingViewSet(viewsets.ViewSet):
    """
    Self-service onboarding wizard for the signed-in employee.

    - GET  /api/onboarding/my-onboarding
    - POST /api/onboarding/save-draft
    - POST /api/onboarding/validate-step
    - POST /api/onboarding/submit

    HR review of submitted onboarding:

    - GET  /api/onboarding/pending-approvals
    - POST /api/onboarding/{id}/approve
    - POST /api/onboarding/{id}/reject
    """

    permission_classes = [IsAuthenticated]
    review_actions = ('pending_approvals', 'approve', 'reject')

    def get_permissions(self):
        if self.action in self.review_actions:
            return [IsHRStaff()]
        return super().get_permissions()

    @action(detail=False, methods=['get'], url_path='my-onboarding')
    def my_onboarding(self, request):
        employee = _own_employee(request.user)
        submissions = employee.form_submissions.select_related('template').prefetch_related('signers')
        data = OnboardingService.state(employee)
        data['form_submissions'] = FormSubmissionSerializer(submissions, many=True).data
        data['poll_interval_seconds'] = SUBMISSION_POLL_INTERVAL_SECONDS
        return success_response(data)

    @action(detail=False, methods=['post'], url_path='save-draft')
    def save_draft(self, request):
        employee = _own_employee(request.user)
        serializer = SaveDraftSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            OnboardingService.save_draft(
                employee,
                serializer.validated_data['data'],
                current_step=serializer.validated_data.get('current_step'),
            )
        except ValueError as exc:
            raise ValidationException(str(exc), field='current_step') from exc
        return success_response(OnboardingService.state(employee), 'Draft saved.')

    @action(detail=False, methods=['post'], url_path='validate-step')
    def validate_step(self, request):
        employee = _own_employee(request.user)
        serializer = ValidateStepSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        step = serializer.validated_data['step']
        try:
            errors = OnboardingService.validate_step(employee, step, serializer.validated_data['data'])
            key = wizard.STEP_KEYS[wizard.step_index(step)]
        except ValueError as exc:
            raise ValidationException(str(exc), field='step') from exc
        return success_response({'step': key, 'valid': not errors, 'errors': errors})

    @action(detail=False, methods=['post'])
    def submit(self, request):
        employee = _own_employee(request.user)
        if employee.onboarding_status in (Employee.ONBOARDING_SUBMITTED, Employee.ONBOARDING_COMPLETED):
            raise ValidationException('Onboarding has already been submitted.')
        serializer = SubmitOnboardingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        OnboardingService.submit(employee, serializer.validated_data['data'])
        return success_response(OnboardingService.state(employee), 'Onboarding submitted.')

    @action(detail=False, methods=['get'], url_path='pending-approvals')
    def pending_approvals(self, request):
        queryset = PendingApprovalFilter(request.query_params, queryset=OnboardingService.pending_approvals()).qs
        paginator = StandardResultsPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        return paginator.get_paginated_response(PendingApprovalSerializer(page, many=True).data)

    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        employee = get_object_or_404(Employee, pk=pk)
        serializer = ApproveOnboardingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        OnboardingService.approve(employee, request.user, serializer.validated_data['comments'], request=request)
        return success_response(OnboardingService.state(employee), 'Onboarding approved.')

    @action(detail=True, methods=['post'])
    def reject(self, request, pk=None):
        employee = get_object_or_404(Employee, pk=pk)
        serializer = RejectOnboardingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        OnboardingService.reject(employee, request.user, serializer.validated_data['reason'], request=request)
        return success_response(OnboardingService.state(employee), 'Onboarding returned for changes.')


class EmployeeFormViewSet(viewsets.ViewSet):
    """
    Forms for one employee.

    - POST /api/employees/{id}/send-form (also /api/onboarding/{id}/send-form)
    - GET  /api/employees/{id}/form-submissions
    """

    permission_classes = [IsHRStaffOrSelf]

    def get_permissions(self):
        if self.action == 'send_form':
            return [IsHRStaff()]
        return super().get_permissions()

    def _employee(self, request, pk):
        employee = get_object_or_404(Employee, pk=pk)
        if not can_read_all(request.user) and employee.user_id != request.user.pk:
            raise PermissionDenied('You can only view your own forms.')
        return employee

    def send_form(self, request, pk=None):
        employee = self._employee(request, pk)
        serializer = SendFormSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        submission = FormSigningService.send_form(
            employee,
            serializer.validated_data['template_id'],
            created_by=request.user,
            is_onboarding=serializer.validated_data['is_onboarding'],
            invitation=employee.invitation,
        )
        return Response(
            {'success': True, 'data': FormSubmissionSerializer(submission).data, 'message': 'Form sent successfully.'},
            status=status.HTTP_201_CREATED,
        )

    def form_submissions(self, request, pk=None):
        employee = self._employee(request, pk)
        submissions = employee.form_submissions.select_related('template', 'employee').prefetch_related('signers')
        return success_response(
            FormSubmissionSerializer(submissions, many=True).data,
            poll_interval_seconds=SUBMISSION_POLL_INTERVAL_SECONDS,
        )


class FormTemplateViewSet(mixins.ListModelMixin,
                          mixins.RetrieveModelMixin,
                          mixins.UpdateModelMixin,
                          viewsets.GenericViewSet):
    """
    Locally mirrored DocuSeal templates. HR may toggle ``enabled``,
    ``required_for_onboarding``, ``category`` and ``sort_order``.
    """

    queryset = FormTemplate.objects.all()
    serializer_class = FormTemplateSerializer
    permission_classes = [IsHRStaffOrReadOnly]
    filter_backends = [DjangoFilterBackend]
    filterset_class = FormTemplateFilter
    pagination_class = None

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'list' and self.request.query_params.get('include_disabled', '').lower() not in ('true', '1'):
            queryset = queryset.filter(enabled=True)
        return queryset

    @action(detail=False, methods=['post'], permission_classes=[IsHRStaff])
    def sync(self, request):
        result = FormSigningService.sync_templates()
        return success_response(result, result['message'])


class FormSubmissionViewSet(mixins.ListModelMixin,
                            mixins.RetrieveModelMixin,
                            viewsets.GenericViewSet):
    """
    DocuSeal submissions.

    - GET  /api/forms/submissions
    - POST /api/forms/submissions/{id}/sign
    - POST /api/forms/submissions/{id}/hr-sign
    - POST /api/forms/submissions/{id}/resend
    - POST /api/forms/submissions/{id}/refresh
    - GET  /api/forms/submissions/{id}/download
    """

    queryset = FormSubmission.objects.select_related('template', 'employee').prefetch_related('signers')
    serializer_class = FormSubmissionSerializer
    permission_classes = [IsHRStaffOrSelf]
    filter_backends = [DjangoFilterBackend]
    filterset_class = FormSubmissionFilter

    def get_permissions(self):
        if self.action in ('hr_sign', 'resend'):
            return [IsHRStaff()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        if can_read_all(self.request.user):
            return queryset
        return queryset.filter(employee__user=self.request.user)

    def list(self, request, *args, **kwargs):
        response = super().list(request, *args, **kwargs)
        if isinstance(response.data, dict):
            response.data['poll_interval_seconds'] = SUBMISSION_POLL_INTERVAL_SECONDS
        return response

    @action(detail=True, methods=['post'])
    def sign(self, request, pk=None):
        submission = self.get_object()
        if submission.employee.user_id != request.user.pk and not is_hr_staff(request.user):
            raise PermissionDenied('Only the recipient can sign this form.')
        url = FormSigningService.start_signing(submission)
        watch_submission.apply_async((submission.pk, 1), countdown=WATCH_INTERVAL_SECONDS)
        return success_response({'signing_url': url, 'status': submission.display_status})

    @action(detail=True, methods=['post'], url_path='hr-sign')
    def hr_sign(self, request, pk=None):
        submission = self.get_object()
        url = FormSigningService.hr_signing_url(submission)
        return success_response({'signing_url': url, 'status': submission.display_status})

    @action(detail=True, methods=['post'])
    def resend(self, request, pk=None):
        submission = self.get_object()
        sent, message = FormSigningService.send_reminder(submission)
        if not sent:
            return failure_response(message, details={'submission_id': submission.pk})
        return success_response({'reminders_sent': submission.reminders_sent}, message)

    @action(detail=True, methods=['post'])
    def refresh(self, request, pk=None):
        submission = FormSigningService.refresh(self.get_object())
        return success_response(self.get_serializer(submission).data, 'Status refreshed.')

    @action(detail=True, methods=['get'])
    def download(self, request, pk=None):
        content, filename = FormSigningService.download(self.get_object())
        return attachment_response(content, filename, 'application/pdf')


class DocuSealWebhookView(APIView):
    """
    DocuSeal webhook receiver. Requests must carry the shared secret in the
    ``X-DocuSeal-Secret`` header.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        secret = settings.DOCUSEAL_WEBHOOK_SECRET
        supplied = request.META.get(WEBHOOK_SECRET_HEADER, '')
        if not secret or not hmac.compare_digest(supplied.encode(), secret.encode()):
            logger.warning("docuseal_webhook_rejected ip=%s", request.META.get('REMOTE_ADDR'))
            return failure_response('Invalid webhook secret.', http_status=status.HTTP_403_FORBIDDEN)

        event_type = request.data.get('event_type') or ''
        submission = FormSigningService.handle_webhook(event_type, request.data.get('data'))
        return success_response({
            'event_type': event_type,
            'submission': submission.pk if submission else None,
            'status': submission.status if submission else None,
        }, 'Webhook processed.')
