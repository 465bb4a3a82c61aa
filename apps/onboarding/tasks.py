"""Onboarding tasks: form dispatch and the post-sign status watcher"""
import logging

from celery import shared_task

from apps.integrations.docuseal import DocuSealError

from .constants import WATCH_INTERVAL_SECONDS, WATCH_MAX_TICKS
from .models import FormSubmission

logger = logging.getLogger(__name__)


@shared_task
def send_onboarding_forms(employee_id, invitation_id=None, created_by_id=None):
    """
    Send the onboarding form set to a newly registered employee. Each form
    is attempted independently; failures are logged and counted.
    """
    from apps.authentication.models import Invitation, User
    from apps.employees.models import Employee

    from .services import FormSigningService

    employee = Employee.objects.filter(pk=employee_id).first()
    if employee is None:
        return {'sent': 0, 'failed': 0}
    invitation = Invitation.objects.filter(pk=invitation_id).first() if invitation_id else None
    created_by = User.objects.filter(pk=created_by_id).first() if created_by_id else None

    sent = failed = 0
    client = FormSigningService.client()
    if not client.is_configured:
        logger.warning("onboarding_forms_skipped employee_id=%s reason=docuseal_not_configured", employee_id)
        return {'sent': 0, 'failed': 0}

    for template in FormSigningService.onboarding_templates(invitation):
        try:
            FormSigningService.send_form(
                employee, template, created_by=created_by,
                is_onboarding=True, invitation=invitation, client=client,
            )
            sent += 1
        except DocuSealError as exc:
            failed += 1
            logger.warning(
                "onboarding_form_failed employee_id=%s template=%s error_type=%s",
                employee_id, template.template_id, exc.error_type,
            )
    logger.info("onboarding_forms_sent employee_id=%s sent=%s failed=%s", employee_id, sent, failed)
    return {'sent': sent, 'failed': failed}


@shared_task
def watch_submission(submission_pk, tick=1):
    """
    Re-poll DocuSeal after a signer opens a form. Reschedules itself every
    WATCH_INTERVAL_SECONDS until the submission is terminal or
    WATCH_MAX_TICKS polls have run.
    """
    from .services import FormSigningService
    from .submission_state import TERMINAL

    submission = FormSubmission.objects.filter(pk=submission_pk).first()
    if submission is None or submission.status in TERMINAL:
        return submission.status if submission else None

    try:
        submission = FormSigningService.refresh(submission)
    except DocuSealError as exc:
        logger.warning(
            "submission_watch_poll_failed submission=%s tick=%s error=%s",
            submission.submission_id, tick, exc.message,
        )

    if submission.status in TERMINAL:
        logger.info("submission_watch_done submission=%s status=%s tick=%s",
                    submission.submission_id, submission.status, tick)
        return submission.status
    if tick >= WATCH_MAX_TICKS:
        logger.info("submission_watch_exhausted submission=%s status=%s", submission.submission_id, submission.status)
        return submission.status

    watch_submission.apply_async((submission_pk, tick + 1), countdown=WATCH_INTERVAL_SECONDS)
    return submission.status
