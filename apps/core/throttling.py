"""
DRF throttles for the anonymous and expensive endpoints.

Rates come from ``REST_FRAMEWORK["DEFAULT_THROTTLE_RATES"]``; the testing
settings raise every scope so suites are not rate limited.
"""

import hashlib

from rest_framework.throttling import SimpleRateThrottle


def _client_ip(request):
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR", "")
    return forwarded.split(",")[0].strip() or request.META.get("REMOTE_ADDR", "unknown")


def _digest(value):
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:16]


class LoginRateThrottle(SimpleRateThrottle):
    """Per IP and username, so one locked-out account does not block a clinic's shared IP."""

    scope = "login"

    def get_cache_key(self, request, view=None):
        username = str(request.data.get("username", "")).strip().lower()
        return f"throttle:login:{_client_ip(request)}:{_digest(username) if username else '-'}"


class RegisterRateThrottle(SimpleRateThrottle):
    scope = "register"

    def get_cache_key(self, request, view=None):
        return f"throttle:register:{_client_ip(request)}"


class InvitationLookupThrottle(SimpleRateThrottle):
    """Anonymous token checks; slows down guessing invitation tokens."""

    scope = "invitation_lookup"

    def get_cache_key(self, request, view=None):
        if request.user and request.user.is_authenticated:
            return None
        return f"throttle:invitation:{_client_ip(request)}"


class BurstRateThrottle(SimpleRateThrottle):
    scope = "burst"

    def get_cache_key(self, request, view=None):
        user = getattr(request, "user", None)
        if user and user.is_authenticated:
            return f"throttle:burst:user:{user.pk}"
        return f"throttle:burst:ip:{_client_ip(request)}"


class ReportExportThrottle(SimpleRateThrottle):
    scope = "report_export"

    def get_cache_key(self, request, view=None):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return None
        return f"throttle:export:user:{user.pk}"


class ApiKeyRateThrottle(SimpleRateThrottle):
    """
    Per-key hourly budget taken from the key's ``rate_limit_per_hour``.
    Session requests are not counted here.
    """

    scope = "api_key"
    rate = "1000/hour"

    def allow_request(self, request, view):
        limit = getattr(request.auth, "rate_limit_per_hour", None)
        if not limit:
            return True
        self.num_requests, self.duration = limit, 3600
        return super().allow_request(request, view)

    def get_cache_key(self, request, view=None):
        return f"throttle:api_key:{request.auth.pk}"


class ApiKeyManageThrottle(SimpleRateThrottle):
    """Creating and rotating keys."""

    scope = "api_key_manage"

    def get_cache_key(self, request, view=None):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return None
        return f"throttle:api_key_manage:user:{user.pk}"
