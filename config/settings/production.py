"""
Django Settings - Production Configuration

Refuses to start with development secrets; employee SSNs and service
passwords depend on ENCRYPTION_KEY staying stable across deploys.
"""

from .base import *  # noqa: F401,F403
from decouple import config, Csv
from django.core.exceptions import ImproperlyConfigured

DEBUG = False

if SECRET_KEY.startswith("django-insecure"):
    raise ImproperlyConfigured("SESSION_SECRET must be set in production")

if ENCRYPTION_KEY == "insecure-development-encryption-key":
    raise ImproperlyConfigured("ENCRYPTION_KEY must be set in production")

if "*" in ALLOWED_HOSTS:
    raise ImproperlyConfigured("ALLOWED_HOSTS must not contain '*' in production.")

if not DOCUSEAL_WEBHOOK_SECRET:
    import warnings
    warnings.warn(
        "DOCUSEAL_WEBHOOK_SECRET is not set. DocuSeal webhooks will be rejected "
        "and form status will only update by polling.",
        stacklevel=1,
    )

# =============================================================================
# SECURITY
# =============================================================================

SECURE_SSL_REDIRECT = config("SECURE_SSL_REDIRECT", default=True, cast=bool)
SECURE_HSTS_SECONDS = config("SECURE_HSTS_SECONDS", default=31536000, cast=int)
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "strict-origin-when-cross-origin"
X_FRAME_OPTIONS = "DENY"

# Sessions hold access to employee PII; keep them short and browser-bound.
SESSION_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = "Lax"
SESSION_COOKIE_AGE = config("SESSION_COOKIE_AGE", default=8 * 60 * 60, cast=int)
SESSION_EXPIRE_AT_BROWSER_CLOSE = True

CSRF_COOKIE_SECURE = True
CSRF_COOKIE_SAMESITE = "Lax"
CSRF_TRUSTED_ORIGINS = config("CSRF_TRUSTED_ORIGINS", default="", cast=Csv())

CORS_ALLOWED_ORIGINS = config("CORS_ALLOWED_ORIGINS", default="", cast=Csv())
CORS_ALLOW_CREDENTIALS = True

ENABLE_API_DOCS = config("ENABLE_API_DOCS", default=False, cast=bool)

# =============================================================================
# EMAIL
# =============================================================================

EMAIL_BACKEND = config("EMAIL_BACKEND", default="django.core.mail.backends.smtp.EmailBackend")
EMAIL_HOST = config("EMAIL_HOST", default="localhost")
EMAIL_PORT = config("EMAIL_PORT", default=587, cast=int)
EMAIL_USE_TLS = config("EMAIL_USE_TLS", default=True, cast=bool)
EMAIL_HOST_USER = config("EMAIL_HOST_USER", default="")
EMAIL_HOST_PASSWORD = config("EMAIL_HOST_PASSWORD", default="")

# =============================================================================
# CELERY
# =============================================================================

CELERY_BROKER_CONNECTION_RETRY_ON_STARTUP = True
CELERY_TASK_ACKS_LATE = True
CELERY_WORKER_PREFETCH_MULTIPLIER = 1

# =============================================================================
# LOGGING (JSON to stdout)
# =============================================================================

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "correlation_id": {"()": "apps.core.logging.CorrelationIdFilter"},
        "sensitive_data": {"()": "apps.core.logging.SensitiveDataFilter"},
    },
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s %(correlation_id)s",
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "filters": ["correlation_id", "sensitive_data"],
        },
    },
    "root": {"handlers": ["console"], "level": "INFO"},
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
        "celery": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "apps": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "apps.integrations.docuseal": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "security.audit": {"handlers": ["console"], "level": "INFO", "propagate": False},
    },
}

# =============================================================================
# SENTRY
# =============================================================================

import sentry_sdk  # noqa: E402
from sentry_sdk.integrations.celery import CeleryIntegration  # noqa: E402
from sentry_sdk.integrations.django import DjangoIntegration  # noqa: E402

SENTRY_DSN = config("SENTRY_DSN", default="")

SCRUBBED_KEYS = {"ssn", "caqh_password", "nppes_password", "password", "token", "current_password", "new_password"}


def _scrub(value):
    if isinstance(value, dict):
        return {k: "[Filtered]" if k in SCRUBBED_KEYS else _scrub(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_scrub(v) for v in value]
    return value


def _before_send(event, hint):
    request = event.get("request") or {}
    if "data" in request:
        request["data"] = _scrub(request["data"])
    return event


if SENTRY_DSN:
    sentry_sdk.init(
        dsn=SENTRY_DSN,
        integrations=[DjangoIntegration(), CeleryIntegration()],
        traces_sample_rate=config("SENTRY_TRACES_SAMPLE_RATE", default=0.1, cast=float),
        send_default_pii=False,
        before_send=_before_send,
        environment=ENVIRONMENT,
    )
