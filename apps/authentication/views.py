"""
Authentication Views
"""

import logging

from django.contrib.auth import authenticate, login, logout, update_session_auth_hash
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, viewsets, status
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.permissions import IsHRStaff
from apps.core.response import created_response, success_response
from apps.core.throttling import (
    ApiKeyManageThrottle, InvitationLookupThrottle, LoginRateThrottle, RegisterRateThrottle,
)

from .authentication import CsrfExemptSessionAuthentication
from .filters import InvitationFilter
from .models import ApiKey, Invitation, User
from .serializers import (
    ApiKeyCreateSerializer, ApiKeyRotateSerializer, ApiKeySerializer, InvitationPublicSerializer,
    InvitationSerializer, LoginSerializer, PasswordChangeSerializer, RegisterSerializer, UserSerializer,
)
from .services import ApiKeyService, InvitationService, PasswordService, RegistrationService

logger = logging.getLogger(__name__)


# =====================================================
# REGISTER / LOGIN / LOGOUT
# =====================================================

class RegisterView(APIView):
    authentication_classes = [CsrfExemptSessionAuthentication]
    permission_classes = [AllowAny]
    throttle_classes = [RegisterRateThrottle]

    @extend_schema(request=RegisterSerializer, responses=UserSerializer)
    def post(self, request):
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user, employee = RegistrationService.register(**serializer.validated_data)
        login(request, user, backend='django.contrib.auth.backends.ModelBackend')
        data = UserSerializer(user).data
        data['employee_id'] = employee.pk
        return created_response(data, 'Registration successful.')


class LoginView(APIView):
    authentication_classes = [CsrfExemptSessionAuthentication]
    permission_classes = [AllowAny]
    throttle_classes = [LoginRateThrottle]

    @extend_schema(request=LoginSerializer, responses=UserSerializer)
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = authenticate(
            request,
            username=serializer.validated_data['username'],
            password=serializer.validated_data['password'],
        )
        if user is None:
            return Response(
                {
                    'success': False,
                    'error': {'code': 401, 'message': 'Invalid username or password.', 'details': {}},
                },
                status=status.HTTP_401_UNAUTHORIZED,
            )
        login(request, user)
        return success_response(UserSerializer(user).data, 'Login successful.')


class LogoutView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=None, responses=None)
    def post(self, request):
        logout(request)
        return success_response(None, 'Logged out.')


# =====================================================
# CURRENT USER
# =====================================================

class CurrentUserView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(responses=UserSerializer)
    def get(self, request):
        return success_response(UserSerializer(request.user).data)


class PasswordChangeView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(request=PasswordChangeSerializer, responses=None)
    def post(self, request):
        serializer = PasswordChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = PasswordService.change_password(
            request.user,
            serializer.validated_data['current_password'],
            serializer.validated_data['new_password'],
        )
        # Keep the current session valid after the hash changes.
        update_session_auth_hash(request, user)
        return success_response(None, 'Password changed successfully.')


# =====================================================
# INVITATIONS
# =====================================================

class InvitationViewSet(mixins.ListModelMixin,
                        mixins.CreateModelMixin,
                        mixins.RetrieveModelMixin,
                        viewsets.GenericViewSet):
    """
    - GET  /api/invitations: list (HR)
    - POST /api/invitations: invite by email (HR)
    - POST /api/invitations/{id}/resend: new token, email again (HR)
    - GET  /api/invitations/{token}: validate a token (anonymous)
    """

    queryset = Invitation.objects.select_related('invited_by', 'employee')
    serializer_class = InvitationSerializer
    permission_classes = [IsHRStaff]
    filter_backends = [DjangoFilterBackend]
    filterset_class = InvitationFilter
    lookup_value_regex = '[^/]+'

    def get_permissions(self):
        if self.action == 'retrieve':
            return [AllowAny()]
        return super().get_permissions()

    def get_throttles(self):
        if self.action == 'retrieve':
            return [InvitationLookupThrottle()]
        return super().get_throttles()

    def create(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        invitation = InvitationService.create(
            request.user,
            email=data['email'],
            first_name=data['first_name'],
            last_name=data['last_name'],
            intended_role=data.get('intended_role', User.ROLE_PROSPECTIVE),
            employee=data.get('employee'),
            required_form_templates=data.get('required_form_templates') or (),
            request=request,
        )
        return created_response(self.get_serializer(invitation).data, 'Invitation sent.')

    def retrieve(self, request, *args, **kwargs):
        invitation = InvitationService.get_redeemable(kwargs[self.lookup_field])
        return success_response(InvitationPublicSerializer(invitation).data, 'Invitation is valid.')

    @action(detail=True, methods=['post'])
    def resend(self, request, pk=None):
        invitation = self.get_object()
        InvitationService.resend(invitation, request)
        return success_response(self.get_serializer(invitation).data, 'Invitation resent.')


# =====================================================
# API KEYS
# =====================================================

class ApiKeyViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """
    API keys owned by the signed-in user. Session only: requests made with
    an API key are rejected here.

    - GET    /api/settings/api-keys
    - POST   /api/settings/api-keys: the raw key is returned once
    - DELETE /api/settings/api-keys/{id}: revoke
    - POST   /api/settings/api-keys/{id}/rotate
    - GET    /api/settings/api-keys/{id}/usage
    """

    serializer_class = ApiKeySerializer
    permission_classes = [IsHRStaff]
    filter_backends = []
    pagination_class = None

    def get_queryset(self):
        return ApiKey.objects.filter(user=self.request.user)

    def get_throttles(self):
        if self.action in ('create', 'rotate'):
            return [ApiKeyManageThrottle()]
        return super().get_throttles()

    @extend_schema(request=ApiKeyCreateSerializer, responses=ApiKeySerializer)
    def create(self, request):
        serializer = ApiKeyCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        api_key, raw_key = ApiKeyService.create(request.user, request=request, **serializer.validated_data)
        data = ApiKeySerializer(api_key).data
        data['key'] = raw_key
        return created_response(data, 'Save this API key securely. It will not be shown again.')

    def destroy(self, request, pk=None):
        ApiKeyService.revoke(self.get_object(), request.user, request=request)
        return success_response(None, 'API key revoked.')

    @extend_schema(request=ApiKeyRotateSerializer, responses=ApiKeySerializer)
    @action(detail=True, methods=['post'])
    def rotate(self, request, pk=None):
        serializer = ApiKeyRotateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_key, raw_key, rotation = ApiKeyService.rotate(
            self.get_object(), request.user, request=request, **serializer.validated_data,
        )
        data = ApiKeySerializer(new_key).data
        data['key'] = raw_key
        data['grace_period_ends'] = rotation.grace_period_ends
        return success_response(
            data,
            f"Key rotated. The old key stays valid until {rotation.grace_period_ends.isoformat()}.",
        )

    @action(detail=True, methods=['get'])
    def usage(self, request, pk=None):
        return success_response(ApiKeyService.usage(self.get_object()))
