"""Authentication signals: login events go to the security audit log."""
import logging

from django.contrib.auth.signals import user_logged_in, user_logged_out, user_login_failed
from django.dispatch import receiver

from apps.core.utils import get_client_ip

security_logger = logging.getLogger('security.audit')


@receiver(user_logged_in)
def log_login(sender, request, user, **kwargs):
    security_logger.info(
        "login_success user_id=%s username=%s ip=%s",
        user.pk, user.username, get_client_ip(request) if request else None,
    )


@receiver(user_logged_out)
def log_logout(sender, request, user, **kwargs):
    if user is None:
        return
    security_logger.info("logout user_id=%s", user.pk)


@receiver(user_login_failed)
def log_login_failed(sender, credentials, request=None, **kwargs):
    security_logger.warning(
        "login_failed username=%s ip=%s",
        credentials.get('username'), get_client_ip(request) if request else None,
    )
