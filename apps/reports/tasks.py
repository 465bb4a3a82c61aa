"""Report tasks: scheduled compliance checks"""
import logging

from celery import shared_task
from django.utils import timezone

from apps.core.expiration import default_warning_days

from .services import ComplianceStatsService, ExpirationReportService

logger = logging.getLogger(__name__)


@shared_task
def check_expirations(days=None):
    """
    Daily credential check. Logs what expires within ``days`` (the
    EXPIRATION_WARNING_DAYS setting when omitted), moves
    lapsed invitations and form submissions to ``expired`` and returns the
    counts.
    """
    from apps.authentication.tasks import expire_invitations
    from apps.onboarding.models import FormSubmission
    from apps.onboarding.submission_state import TERMINAL

    days = default_warning_days() if days is None else days
    items = ExpirationReportService.expiring_items(days)
    summary = ExpirationReportService.summarize(items)
    for item in items:
        logger.info(
            "credential_expiring type=%s id=%s employee_id=%s expiration_date=%s status=%s priority=%s",
            item['item_type'], item['id'], item['employee_id'], item['expiration_date'],
            item['status'], item['priority'],
        )

    invitations_expired = expire_invitations()
    forms_expired = (
        FormSubmission.objects.filter(expires_at__lte=timezone.now())
        .exclude(status__in=TERMINAL)
        .update(status=FormSubmission.STATUS_EXPIRED, sign_started_at=None, updated_at=timezone.now())
    )

    logger.info(
        "expiration_check_done days=%s total=%s expired=%s expiring_soon=%s invitations_expired=%s forms_expired=%s",
        days, summary['total'], summary['expired'], summary['expiring_soon'], invitations_expired, forms_expired,
    )
    return {
        'days': days,
        **summary,
        'invitations_expired': invitations_expired,
        'forms_expired': forms_expired,
    }


@shared_task
def compliance_stats():
    """Weekly snapshot of workforce and credential compliance."""
    stats = ComplianceStatsService.stats()
    logger.info(
        "compliance_stats employees=%s active=%s expiring=%s expired=%s open_incidents=%s",
        stats['employees']['total'], stats['employees']['active'],
        stats['expirations']['expiring_soon'], stats['expirations']['expired'],
        stats['incidents']['open'],
    )
    return stats
