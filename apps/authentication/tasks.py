"""Authentication tasks: outbound email, invitation and API key housekeeping"""
import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task(
    autoretry_for=(Exception,),
    retry_kwargs={"max_retries": 5, "countdown": 30},
    acks_late=True,
)
def send_email_task(subject, text, html, to_email):
    try:
        email = EmailMultiAlternatives(
            subject=subject,
            body=text,
            from_email=settings.DEFAULT_FROM_EMAIL,
            to=[to_email],
        )
        email.attach_alternative(html, "text/html")
        email.send()

        logger.info("Email sent successfully", extra={"to": to_email})

    except Exception:
        logger.exception("Email sending failed", extra={"to": to_email})
        raise


@shared_task
def expire_invitations():
    """Move pending invitations past their expiry to ``expired``."""
    from .models import Invitation

    count = Invitation.objects.filter(
        status=Invitation.STATUS_PENDING,
        expires_at__lte=timezone.now(),
    ).update(status=Invitation.STATUS_EXPIRED, updated_at=timezone.now())
    if count:
        logger.info("invitations_expired count=%s", count)
    return count


@shared_task
def revoke_rotated_api_keys():
    """Revoke keys whose rotation grace period has ended."""
    from .models import ApiKey

    now = timezone.now()
    count = ApiKey.objects.filter(
        revoked_at__isnull=True,
        rotations__grace_period_ends__lte=now,
    ).update(revoked_at=now, updated_at=now)
    if count:
        logger.info("rotated_api_keys_revoked count=%s", count)
    return count
