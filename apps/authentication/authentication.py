"""
Session and API key authentication for the API.

DRF's stock ``SessionAuthentication`` has no ``WWW-Authenticate`` challenge,
so anonymous requests are answered with 403. Returning a challenge here makes
DRF answer 401 for "not logged in" and keep 403 for "logged in, not allowed".
"""

import logging

from django.db.models import F
from django.utils import timezone
from rest_framework import authentication, exceptions

from apps.core.utils import get_client_ip

from .hashers import compare_passwords
from .models import ApiKey

security_logger = logging.getLogger('security.audit')


class SessionAuthentication(authentication.SessionAuthentication):

    def authenticate_header(self, request):
        return 'Session'


class CsrfExemptSessionAuthentication(SessionAuthentication):
    """
    Disable CSRF checks ONLY for API views that explicitly use this
    (login and registration, which run before a CSRF cookie exists).
    """

    def enforce_csrf(self, request):
        return


class ApiKeyAuthentication(authentication.BaseAuthentication):
    """
    ``Authorization: Bearer <key>`` or ``X-API-Key: <key>``.

    Requests without a key fall through to session authentication. A key is
    only honoured by views that declare an ``api_key_resource``; anywhere
    else, including key management, it is rejected with 401.
    """

    keyword = 'Bearer'

    def authenticate(self, request):
        raw_key = self.get_raw_key(request)
        if not raw_key:
            return None
        view = (request.parser_context or {}).get('view')
        if getattr(view, 'api_key_resource', None) is None:
            raise exceptions.AuthenticationFailed('API keys are not accepted on this endpoint.')
        return self.authenticate_credentials(raw_key, request)

    def get_raw_key(self, request):
        header = request.META.get('HTTP_AUTHORIZATION', '')
        if header.startswith(f'{self.keyword} '):
            return header[len(self.keyword) + 1:].strip()
        return request.META.get('HTTP_X_API_KEY', '').strip()

    def authenticate_credentials(self, raw_key, request=None):
        if not raw_key.startswith(tuple(ApiKey.KEY_PREFIXES.values())):
            raise exceptions.AuthenticationFailed('Invalid API key format.')

        prefix = raw_key[:ApiKey.PREFIX_LENGTH]
        api_key = ApiKey.objects.select_related('user').filter(key_prefix=prefix).first()
        if api_key is None:
            raise exceptions.AuthenticationFailed('Invalid API key.')
        if not compare_passwords(raw_key, api_key.key_hash):
            ApiKey.objects.filter(pk=api_key.pk).update(failed_auth_count=F('failed_auth_count') + 1)
            security_logger.warning(
                "api_key_auth_failed prefix=%s ip=%s", prefix, get_client_ip(request) if request else None,
            )
            raise exceptions.AuthenticationFailed('Invalid API key.')
        if api_key.is_revoked:
            raise exceptions.AuthenticationFailed('API key has been revoked.')
        if api_key.is_expired:
            raise exceptions.AuthenticationFailed('API key has expired.')
        if not api_key.user.is_active:
            raise exceptions.AuthenticationFailed('User inactive or deleted.')

        now = timezone.now()
        ApiKey.objects.filter(pk=api_key.pk).update(last_used_at=now, usage_count=F('usage_count') + 1)
        api_key.last_used_at = now
        return api_key.user, api_key

    def authenticate_header(self, request):
        return self.keyword
