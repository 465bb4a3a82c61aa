"""Authentication app configuration"""
from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.authentication'
    verbose_name = 'Accounts & Invitations'

    def ready(self):
        import apps.authentication.openapi  # noqa: F401
        import apps.authentication.signals  # noqa: F401
