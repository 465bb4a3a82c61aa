"""
Django Settings - Base Configuration
CareStaff HR - Healthcare Staffing HR Platform
"""

from pathlib import Path
from decouple import config, Csv
from django.core.exceptions import ImproperlyConfigured
from celery.schedules import crontab

# =============================================================================
# PATHS
# =============================================================================

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# =============================================================================
# SECURITY
# =============================================================================

DEBUG = config("DEBUG", default=True, cast=bool)

# SESSION_SECRET signs session cookies; SECRET_KEY is accepted as an alias
SECRET_KEY = config(
    "SESSION_SECRET",
    default=config("SECRET_KEY", default="django-insecure-development-key-change-in-production"),
)

# Key material for field-level encryption of SSNs and stored service passwords
ENCRYPTION_KEY = config(
    "ENCRYPTION_KEY",
    default="insecure-development-encryption-key",
)

# Block unsafe production deploys
if not DEBUG and SECRET_KEY.startswith("django-insecure"):
    raise ImproperlyConfigured("SESSION_SECRET must be set in production")

if not DEBUG and ENCRYPTION_KEY == "insecure-development-encryption-key":
    raise ImproperlyConfigured(
        "ENCRYPTION_KEY must be changed from default in production"
    )

# =============================================================================
# ENVIRONMENT
# =============================================================================

ENVIRONMENT = config("ENVIRONMENT", default="development")

# =============================================================================
# HOSTS / BASE URL
# =============================================================================

if DEBUG:
    ALLOWED_HOSTS = ["*"]
else:
    ALLOWED_HOSTS = config(
        "ALLOWED_HOSTS",
        default="localhost,127.0.0.1",
        cast=Csv(),
    )

APP_BASE_URL = config("APP_BASE_URL", default="")
REPLIT_DOMAINS = config("REPLIT_DOMAINS", default="", cast=Csv())
PORT = config("PORT", default="5000")

USE_X_FORWARDED_HOST = True

# =============================================================================
# APPLICATIONS
# =============================================================================

INSTALLED_APPS = [
    # Django
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # Auth
    "apps.authentication",

    # Domain apps
    "apps.core",
    "apps.employees",
    "apps.documents",
    "apps.integrations",
    "apps.onboarding",
    "apps.reports",

    # Third-party
    "rest_framework",
    "corsheaders",
    "django_filters",
    "drf_spectacular",
]

# =============================================================================
# MIDDLEWARE
# =============================================================================

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "whitenoise.middleware.WhiteNoiseMiddleware",
    "corsheaders.middleware.CorsMiddleware",

    # Sessions MUST come before CSRF
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",

    "apps.core.middleware.CorrelationIdMiddleware",

    "django.contrib.messages.middleware.MessageMiddleware",
    "apps.core.middleware.SecurityHeadersMiddleware",
]

# =============================================================================
# URL / WSGI
# =============================================================================

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

# =============================================================================
# TEMPLATES
# =============================================================================

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

# =============================================================================
# DATABASE
# =============================================================================

DATABASE_URL = config("DATABASE_URL", default="sqlite")

if DATABASE_URL.startswith("sqlite"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }
else:
    POSTGRES_PASSWORD = config("POSTGRES_PASSWORD", default=None)

    if not POSTGRES_PASSWORD:
        raise ImproperlyConfigured(
            "PostgreSQL selected but POSTGRES_PASSWORD is missing"
        )

    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": config("POSTGRES_DB"),
            "USER": config("POSTGRES_USER"),
            "PASSWORD": POSTGRES_PASSWORD,
            "HOST": config("DB_HOST", default="localhost"),
            "PORT": config("DB_PORT", default="5432"),
            "CONN_MAX_AGE": 60,
        }
    }

# =============================================================================
# CACHE
# =============================================================================

REDIS_URL = config("REDIS_URL", default=None)
REDIS_CACHE_URL = config("REDIS_CACHE_URL", default=REDIS_URL)

if REDIS_CACHE_URL:
    CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": REDIS_CACHE_URL,
            "OPTIONS": {
                "CLIENT_CLASS": "django_redis.client.DefaultClient",
            },
            "KEY_PREFIX": f"carestaff:{ENVIRONMENT}",
        }
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": f"carestaff-{ENVIRONMENT}-cache",
        }
    }

# =============================================================================
# AUTH / SESSIONS
# =============================================================================

AUTH_USER_MODEL = "authentication.User"

PASSWORD_HASHERS = [
    "apps.authentication.hashers.ScryptPasswordHasher",
    "django.contrib.auth.hashers.PBKDF2PasswordHasher",
]

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

SESSION_ENGINE = "django.contrib.sessions.backends.db"
SESSION_COOKIE_AGE = 60 * 60 * 24
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = "Lax"
SESSION_COOKIE_SECURE = not DEBUG

CSRF_COOKIE_SAMESITE = "Lax"
CSRF_COOKIE_SECURE = not DEBUG

# =============================================================================
# I18N
# =============================================================================

LANGUAGE_CODE = "en-us"
TIME_ZONE = config("TIME_ZONE", default="America/New_York")
USE_I18N = True
USE_TZ = True

# =============================================================================
# STATIC / MEDIA
# =============================================================================

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

MEDIA_URL = "/media/"
MEDIA_ROOT = config("MEDIA_ROOT", default=str(BASE_DIR / "media"))

MAX_UPLOAD_SIZE_MB = config("MAX_UPLOAD_SIZE_MB", default=10, cast=int)

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# =============================================================================
# DRF
# =============================================================================

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "apps.authentication.authentication.ApiKeyAuthentication",
        "apps.authentication.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated"
    ],
    "DEFAULT_RENDERER_CLASSES": [
        "apps.core.renderers.StandardJSONRenderer",
    ],
    # `?format=` selects the export file type, not a renderer.
    "URL_FORMAT_OVERRIDE": None,
    "DEFAULT_THROTTLE_CLASSES": [
        "apps.core.throttling.BurstRateThrottle",
        "apps.core.throttling.ApiKeyRateThrottle",
    ],
    "DEFAULT_THROTTLE_RATES": {
        "burst": config("THROTTLE_BURST_RATE", default="240/minute"),
        "login": config("THROTTLE_LOGIN_RATE", default="10/minute"),
        "register": config("THROTTLE_REGISTER_RATE", default="10/hour"),
        "invitation_lookup": config("THROTTLE_INVITATION_LOOKUP_RATE", default="30/hour"),
        "report_export": config("THROTTLE_REPORT_EXPORT_RATE", default="60/hour"),
        "api_key_manage": config("THROTTLE_API_KEY_MANAGE_RATE", default="10/hour"),
    },
    "DEFAULT_FILTER_BACKENDS": [
        "django_filters.rest_framework.DjangoFilterBackend",
        "rest_framework.filters.SearchFilter",
        "rest_framework.filters.OrderingFilter",
    ],
    "DEFAULT_PAGINATION_CLASS": "apps.core.pagination.StandardResultsPagination",
    "PAGE_SIZE": 20,
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "EXCEPTION_HANDLER": "apps.core.exceptions.custom_exception_handler",
}

# =============================================================================
# CREDENTIAL EXPIRATION WINDOWS
# =============================================================================

EXPIRATION_WARNING_DAYS = config("EXPIRATION_WARNING_DAYS", default=30, cast=int)
EXPIRATION_CRITICAL_DAYS = config("EXPIRATION_CRITICAL_DAYS", default=15, cast=int)

# =============================================================================
# INVITATIONS / ONBOARDING
# =============================================================================

INVITATION_EXPIRY_DAYS = config("INVITATION_EXPIRY_DAYS", default=7, cast=int)
FORM_SUBMISSION_EXPIRY_DAYS = config("FORM_SUBMISSION_EXPIRY_DAYS", default=30, cast=int)

# =============================================================================
# API KEYS
# =============================================================================

API_KEY_DEFAULT_EXPIRY_DAYS = config("API_KEY_DEFAULT_EXPIRY_DAYS", default=90, cast=int)

# =============================================================================
# DOCUSEAL
# =============================================================================

DOCUSEAL_API_KEY = config("DOCUSEAL_API_KEY", default="")
DOCUSEAL_BASE_URL = config("DOCUSEAL_BASE_URL", default="https://api.docuseal.co")
DOCUSEAL_SIGNING_BASE_URL = config("DOCUSEAL_SIGNING_BASE_URL", default="https://docuseal.com")
DOCUSEAL_WEBHOOK_SECRET = config("DOCUSEAL_WEBHOOK_SECRET", default="")
DOCUSEAL_TIMEOUT_SECONDS = config("DOCUSEAL_TIMEOUT_SECONDS", default=15, cast=int)

HR_EMAIL = config("HR_EMAIL", default="hr@company.com")
HR_NAME = config("HR_NAME", default="HR Department")

# =============================================================================
# CELERY
# =============================================================================

CELERY_BROKER_URL = config("CELERY_BROKER_URL", default=REDIS_URL or "redis://127.0.0.1:6379/0")
CELERY_RESULT_BACKEND = config("CELERY_RESULT_BACKEND", default=REDIS_URL or "redis://127.0.0.1:6379/0")
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 600
CELERY_TASK_SOFT_TIME_LIMIT = 540

CELERY_BEAT_SCHEDULE = {
    # -- Credentials --
    "reports.check_expirations": {
        "task": "apps.reports.tasks.check_expirations",
        "schedule": crontab(hour=6, minute=0),                  # 6 AM daily
    },
    "reports.compliance_stats": {
        "task": "apps.reports.tasks.compliance_stats",
        "schedule": crontab(hour=7, minute=0, day_of_week=0),   # Sunday 7 AM
    },
    # -- Invitations --
    "authentication.expire_invitations": {
        "task": "apps.authentication.tasks.expire_invitations",
        "schedule": crontab(minute=15),                         # hourly
    },
    "authentication.revoke_rotated_api_keys": {
        "task": "apps.authentication.tasks.revoke_rotated_api_keys",
        "schedule": crontab(minute=30),                         # hourly
    },
}

# =============================================================================
# EMAIL
# =============================================================================

EMAIL_BACKEND = config(
    "EMAIL_BACKEND",
    default="django.core.mail.backends.console.EmailBackend",
)

DEFAULT_FROM_EMAIL = config("DEFAULT_FROM_EMAIL", default="CareStaff HR <noreply@localhost>")

# =============================================================================
# API DOCS
# =============================================================================

ENABLE_API_DOCS = config("ENABLE_API_DOCS", default=DEBUG, cast=bool)

SPECTACULAR_SETTINGS = {
    "TITLE": "CareStaff HR API",
    "DESCRIPTION": "Healthcare staffing HR: employees, credentials, onboarding and e-signature forms",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
    "SCHEMA_PATH_PREFIX": r"/api",
    "COMPONENT_SPLIT_REQUEST": True,
    "ENUM_NAME_OVERRIDES": {
        "EmployeeStatusEnum": "apps.employees.models.Employee.STATUS_CHOICES",
        "SubmissionStatusEnum": "apps.onboarding.models.FormSubmission.STATUS_CHOICES",
    },
}
