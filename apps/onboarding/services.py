"""Onboarding Services - Business Logic"""

import logging
import re

from django.conf import settings
from django.db import IntegrityError, transaction
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from apps.authentication.models import User
from apps.authentication.tasks import send_email_task
from apps.core.audit import record_audit, snapshot
from apps.core.exceptions import ConflictException, ValidationException
from apps.core.models import AuditLog
from apps.employees.models import (
    BoardCertification, DEALicense, Education, EmergencyContact, Employee, Employment,
    PayerEnrollment, PeerReference, StateLicense, TaxForm, Training,
)
from apps.integrations.docuseal import DocuSealClient, DocuSealError, INVALID_REQUEST, signing_url_for

from . import submission_state, wizard
from .models import FormSubmission, FormTemplate, SubmissionSigner

logger = logging.getLogger(__name__)

ONBOARDING_MESSAGE = {
    'subject': 'Onboarding Form Completion Required',
    'body': 'Please complete this form as part of your onboarding process. '
            'This is required to complete your employee onboarding.',
}
STANDARD_MESSAGE = {
    'subject': 'Form Completion Required',
    'body': 'Please complete and sign this form at your earliest convenience.',
}


def _parse_timestamp(value):
    if not value:
        return None
    if hasattr(value, 'tzinfo'):
        return value
    return parse_datetime(str(value))


def _submitter_id(remote):
    try:
        return int(remote['id'])
    except (KeyError, TypeError, ValueError):
        return None


def send_decision_email(employee, approved, notes):
    recipient = employee.personal_email or employee.work_email or getattr(employee.user, 'email', '')
    if not recipient:
        return
    context = {
        'employee': employee,
        'approved': approved,
        'notes': notes,
        'company_name': getattr(settings, 'COMPANY_NAME', 'CareStaff HR'),
    }
    send_email_task.delay(
        subject='Onboarding approved' if approved else 'Onboarding needs changes',
        text=render_to_string('emails/onboarding_decision.txt', context),
        html=render_to_string('emails/onboarding_decision.html', context),
        to_email=recipient,
    )


def prefill_values(employee, template, today=None):
    """
    Field values DocuSeal pre-fills for the employee, limited to the fields
    the template actually declares.
    """
    names = set(template.field_names)
    values = {}

    if 'EmpName' in names and (employee.first_name or employee.last_name):
        values['EmpName'] = f"{employee.first_name} {employee.last_name}".strip()
    if 'EmpMedicaid ID' in names and employee.medicaid_number:
        values['EmpMedicaid ID'] = employee.medicaid_number
    if 'EmpNPI' in names and employee.npi_number:
        values['EmpNPI'] = employee.npi_number
    if 'EmpAddress' in names:
        address = ', '.join(p for p in (employee.home_address1, employee.home_address2) if p)
        if address:
            values['EmpAddress'] = address
    if 'EmpCityStateZip' in names:
        city_state_zip = ', '.join(p for p in (employee.home_city, employee.home_state, employee.home_zip) if p)
        if city_state_zip:
            values['EmpCityStateZip'] = city_state_zip
    if names & {'SSN1', 'SSN2', 'SSN3'} and employee.ssn:
        digits = re.sub(r'[\s\-]', '', employee.ssn)
        if len(digits) >= 9 and digits[:9].isdigit():
            values['SSN1'], values['SSN2'], values['SSN3'] = digits[:3], digits[3:5], digits[5:9]
    if 'EmpSignDate' in names:
        values['EmpSignDate'] = (today or timezone.localdate()).strftime('%m/%d/%Y')
    return values


class FormSigningService:
    """DocuSeal-backed form submissions."""

    @staticmethod
    def client():
        return DocuSealClient.from_settings()

    @staticmethod
    def sync_templates(client=None):
        """Upsert templates by external id. New templates start enabled."""
        client = client or FormSigningService.client()
        synced = failed = 0
        now = timezone.now()
        for remote in client.list_templates():
            try:
                FormTemplate.objects.update_or_create(
                    template_id=str(remote['id']),
                    defaults={
                        'name': remote.get('name') or f"Template {remote['id']}",
                        'description': remote.get('description') or '',
                        'fields': remote.get('fields') or [],
                        'signer_roles': remote.get('submitters') or [],
                        'document_count': len(remote.get('documents') or []),
                        'last_synced_at': now,
                    },
                )
                synced += 1
            except (KeyError, IntegrityError):
                logger.exception("template_sync_failed template=%s", remote.get('id'))
                failed += 1
        message = f"Successfully synced {synced} templates"
        if failed:
            message += f", {failed} failed"
        logger.info("docuseal_templates_synced synced=%s failed=%s", synced, failed)
        return {'synced': synced, 'failed': failed, 'message': message}

    @staticmethod
    def send_form(employee, template, created_by=None, is_onboarding=False, invitation=None, client=None):
        """
        Create a DocuSeal submission for ``employee``. Nothing is stored
        unless DocuSeal accepts the request; the stored status is ``sent``.
        """
        if not employee.work_email:
            raise DocuSealError(
                INVALID_REQUEST,
                f"Employee {employee.full_name} does not have a work email address configured.",
            )
        client = client or FormSigningService.client()

        requires_hr = template.requires_hr_signature
        submitters = [{
            'email': employee.work_email,
            'name': f"{employee.first_name} {employee.last_name}",
            'role': template.employee_role,
        }]
        values = prefill_values(employee, template)
        if values:
            submitters[0]['values'] = values
        if requires_hr:
            submitters.append({
                'email': settings.HR_EMAIL,
                'name': settings.HR_NAME,
                'role': template.hr_role,
            })

        submission_id, response = client.create_submission(
            template.template_id,
            submitters,
            send_email=True,
            message=ONBOARDING_MESSAGE if is_onboarding else STANDARD_MESSAGE,
        )

        remote_submitters = response if isinstance(response, list) else (response.get('submitters') or [])
        now = timezone.now()
        with transaction.atomic():
            submission = FormSubmission.objects.create(
                employee=employee,
                invitation=invitation,
                template=template,
                submission_id=submission_id,
                recipient_email=employee.work_email,
                recipient_name=f"{employee.first_name} {employee.last_name}",
                recipient_phone=employee.cell_phone,
                status=FormSubmission.STATUS_SENT,
                sent_at=now,
                requires_hr_signature=requires_hr,
                is_onboarding_requirement=is_onboarding,
                created_by=created_by,
            )
            for order, sent in enumerate(submitters):
                remote = remote_submitters[order] if order < len(remote_submitters) else {}
                SubmissionSigner.objects.create(
                    submission=submission,
                    role=sent['role'],
                    signer_type=SubmissionSigner.ROLE_EMPLOYEE if order == 0 else SubmissionSigner.ROLE_HR,
                    email=sent['email'],
                    name=sent['name'],
                    submitter_id=_submitter_id(remote),
                    slug=remote.get('slug') or '',
                    status=FormSubmission.STATUS_SENT,
                    sent_at=now,
                    signing_url=(signing_url_for(remote) or '') if remote else '',
                    order=order,
                )
            employee_signer = submission.signers.filter(order=0).first()
            if employee_signer and employee_signer.signing_url:
                submission.documents_url = employee_signer.signing_url
                submission.save(update_fields=['documents_url', 'updated_at'])

        logger.info(
            "form_sent submission=%s employee_id=%s template=%s onboarding=%s",
            submission_id, employee.pk, template.template_id, is_onboarding,
        )
        return submission

    @staticmethod
    def onboarding_templates(invitation=None):
        if invitation is not None:
            templates = invitation.required_form_templates.filter(enabled=True)
            if templates.exists():
                return list(templates)
        return list(FormTemplate.objects.filter(required_for_onboarding=True, enabled=True))

    @staticmethod
    def _signer(submission, signer_type):
        return submission.signers.filter(signer_type=signer_type).order_by('order').first()

    @staticmethod
    def signing_url(submission, signer_type=SubmissionSigner.ROLE_EMPLOYEE, client=None):
        """Fresh signing URL for one signer; raises DocuSealError on failure."""
        signer = FormSigningService._signer(submission, signer_type)
        email = signer.email if signer else submission.recipient_email
        client = client or FormSigningService.client()
        url = client.signing_url(submission.submission_id, email)
        if not url:
            raise DocuSealError(INVALID_REQUEST, f"Signer {email} not found in submission")
        if signer and signer.signing_url != url:
            signer.signing_url = url
            signer.save(update_fields=['signing_url'])
        return url

    @staticmethod
    def start_signing(submission, client=None):
        """
        Employee signing: fetch the URL first, then record that signing
        started. The stored status is left for DocuSeal to confirm; only
        ``display_status`` shows the submission as opened. A failed fetch
        records nothing.
        """
        url = FormSigningService.signing_url(submission, SubmissionSigner.ROLE_EMPLOYEE, client=client)
        if not submission.state.is_terminal:
            submission.sign_started_at = timezone.now()
            submission.save(update_fields=['sign_started_at', 'updated_at'])
        return url

    @staticmethod
    def hr_signing_url(submission, client=None):
        if not submission.can_hr_sign:
            raise ValidationException(
                'HR signature is not available for this submission.',
                details={
                    'requires_hr_signature': submission.requires_hr_signature,
                    'employee_signed': submission.employee_signed,
                    'hr_signed': submission.hr_signed,
                },
            )
        return FormSigningService.signing_url(submission, SubmissionSigner.ROLE_HR, client=client)

    @staticmethod
    def send_reminder(submission, client=None):
        """Best effort: returns ``(success, message)`` and never raises."""
        client = client or FormSigningService.client()
        signer = submission.signers.exclude(status=FormSubmission.STATUS_COMPLETED).order_by('order').first()
        try:
            client.remind(submission.submission_id, signer.submitter_id if signer else None)
        except DocuSealError as exc:
            logger.warning("form_reminder_failed submission=%s error=%s", submission.submission_id, exc.message)
            return False, exc.message
        submission.reminders_sent += 1
        submission.last_reminder_at = timezone.now()
        submission.save(update_fields=['reminders_sent', 'last_reminder_at', 'updated_at'])
        return True, 'Reminder sent successfully'

    @staticmethod
    def apply_remote(submission, payload):
        """Merge an authoritative DocuSeal payload into the stored submission."""
        remote_status = submission_state.status_from_docuseal(payload)
        if remote_status:
            submission.status = submission_state.advance_status(submission.status, remote_status)

        by_email = {(s.get('email') or '').lower(): s for s in payload.get('submitters') or []}
        signers = list(submission.signers.all())
        for signer in signers:
            remote = by_email.get(signer.email.lower())
            if not remote:
                continue
            signer_status = submission_state.status_from_docuseal({'submitters': [remote]})
            if signer_status:
                signer.status = submission_state.advance_status(signer.status, signer_status)
            signer.sent_at = _parse_timestamp(remote.get('sent_at')) or signer.sent_at
            signer.opened_at = _parse_timestamp(remote.get('opened_at')) or signer.opened_at
            signer.completed_at = _parse_timestamp(remote.get('completed_at')) or signer.completed_at
            if signer.submitter_id is None:
                signer.submitter_id = _submitter_id(remote)
            signer.save(update_fields=['status', 'sent_at', 'opened_at', 'completed_at', 'submitter_id'])

        employee_signer = next((s for s in signers if s.signer_type == SubmissionSigner.ROLE_EMPLOYEE), None)
        hr_signer = next((s for s in signers if s.signer_type == SubmissionSigner.ROLE_HR), None)
        completed = submission.status == FormSubmission.STATUS_COMPLETED
        submission.requires_hr_signature = hr_signer is not None or submission.requires_hr_signature
        submission.employee_signed = completed or (
            employee_signer is not None and employee_signer.status == FormSubmission.STATUS_COMPLETED
        )
        submission.hr_signed = (completed and submission.requires_hr_signature) or (
            hr_signer is not None and hr_signer.status == FormSubmission.STATUS_COMPLETED
        )

        primary = employee_signer or (signers[0] if signers else None)
        if primary is not None:
            submission.opened_at = submission.opened_at or primary.opened_at
        if completed:
            submission.completed_at = (
                _parse_timestamp(payload.get('completed_at')) or submission.completed_at or timezone.now()
            )
        first_values = (payload.get('submitters') or [{}])[0].get('values')
        if first_values:
            submission.submission_data = {**submission.submission_data, 'values': first_values}
        if payload.get('documents_url'):
            submission.documents_url = payload['documents_url']
        submission.sign_started_at = None
        submission.save()
        return submission

    @staticmethod
    def refresh(submission, client=None):
        client = client or FormSigningService.client()
        payload = client.get_submission(submission.submission_id)
        return FormSigningService.apply_remote(submission, payload)

    @staticmethod
    def download(submission, client=None):
        if submission.status != FormSubmission.STATUS_COMPLETED:
            raise ValidationException('Documents are available once the form is completed.')
        client = client or FormSigningService.client()
        content, name = client.download_documents(submission.submission_id)
        if not name.lower().endswith('.pdf'):
            name = f"{name}.pdf"
        return content, name

    WEBHOOK_STATUS = {
        'form.viewed': submission_state.OPENED,
        'form.started': submission_state.OPENED,
        'form.completed': submission_state.COMPLETED,
        'form.declined': submission_state.DECLINED,
        'submission.expired': submission_state.EXPIRED,
        'submission.completed': submission_state.COMPLETED,
    }

    @staticmethod
    def handle_webhook(event_type, data):
        """Apply a DocuSeal webhook event. Returns the submission or None."""
        data = data or {}
        submission_id = data.get('submission_id') or (data.get('submission') or {}).get('id') or data.get('id')
        submission = FormSubmission.objects.filter(submission_id=str(submission_id)).first() if submission_id else None
        if submission is None:
            logger.info("docuseal_webhook_ignored event=%s submission=%s", event_type, submission_id)
            return None

        event_status = FormSigningService.WEBHOOK_STATUS.get(event_type)
        if event_type.startswith('form.') and data.get('email'):
            signer = submission.signers.filter(email__iexact=data['email']).first()
            if signer and event_status:
                signer.status = submission_state.advance_status(signer.status, event_status)
                signer.opened_at = signer.opened_at or _parse_timestamp(data.get('opened_at'))
                signer.completed_at = signer.completed_at or _parse_timestamp(data.get('completed_at'))
                signer.save(update_fields=['status', 'opened_at', 'completed_at'])
            payload = {
                'submitters': [
                    {'email': s.email, 'status': s.status, 'opened_at': s.opened_at, 'completed_at': s.completed_at}
                    for s in submission.signers.all()
                ],
            }
            if event_status in (submission_state.DECLINED,):
                payload['status'] = event_status
        else:
            payload = {'status': event_status} if event_status else {}

        logger.info("docuseal_webhook event=%s submission=%s", event_type, submission.submission_id)
        return FormSigningService.apply_remote(submission, payload)


class OnboardingService:
    """Wizard draft, step gating and final submission."""

    @staticmethod
    def state(employee):
        return {
            'employee_id': employee.pk,
            'onboarding_status': employee.onboarding_status,
            'current_step': employee.onboarding_step,
            'current_step_key': wizard.STEP_KEYS[min(employee.onboarding_step, len(wizard.STEP_KEYS) - 1)],
            'completed_steps': employee.onboarding_completed_steps,
            'steps': [{'key': key, 'title': title} for key, title, _ in wizard.STEPS],
            'data': employee.onboarding_data,
        }

    @staticmethod
    def save_draft(employee, data, current_step=None):
        """
        Merge partial data into the draft. Moving forward requires every
        step up to the target to validate; moving back only to a completed
        step.
        """
        draft = {**(employee.onboarding_data or {}), **(data or {})}
        employee.onboarding_data = draft
        if employee.onboarding_status == Employee.ONBOARDING_NOT_STARTED:
            employee.onboarding_status = Employee.ONBOARDING_IN_PROGRESS

        if current_step is not None:
            target = wizard.step_index(current_step)
            OnboardingService._move_to(employee, target, draft)

        employee.save(update_fields=[
            'onboarding_data', 'onboarding_status', 'onboarding_step',
            'onboarding_completed_steps', 'updated_at',
        ])
        return employee

    @staticmethod
    def _move_to(employee, target, draft):
        current = employee.onboarding_step
        completed = list(employee.onboarding_completed_steps or [])
        if target > current:
            for index in range(current, target):
                key = wizard.STEP_KEYS[index]
                errors = wizard.validate_step(key, draft, employee=employee)
                if errors:
                    raise ValidationException(
                        f"Complete '{wizard.STEP_TITLES[key]}' before continuing.",
                        details={'step': key, 'errors': errors},
                    )
                if key not in completed:
                    completed.append(key)
        elif target < current:
            if wizard.STEP_KEYS[target] not in completed:
                raise ValidationException(
                    'You can only go back to steps you have already completed.',
                    field='current_step',
                )
        employee.onboarding_step = target
        employee.onboarding_completed_steps = completed

    @staticmethod
    def validate_step(employee, step, data=None):
        draft = {**(employee.onboarding_data or {}), **(data or {})}
        return wizard.validate_step(step, draft, employee=employee)

    @staticmethod
    def submit(employee, data=None):
        draft = {**(employee.onboarding_data or {}), **(data or {})}
        errors = wizard.validate_all(draft, employee=employee)
        if errors:
            raise ValidationException('Onboarding is incomplete.', details={'steps': errors})

        profile = {}
        for key in wizard.PROFILE_STEPS:
            profile.update(wizard.cleaned_step_data(key, draft))
        nested = {}
        for key in ('education_employment', 'licenses', 'certifications',
                    'references_contacts', 'tax_documentation', 'training_payer'):
            nested.update(wizard.cleaned_step_data(key, draft))

        if not profile.get('work_email'):
            profile.pop('work_email', None)
        if not profile.get('npi_number'):
            profile['npi_number'] = None

        try:
            with transaction.atomic():
                for field, value in profile.items():
                    setattr(employee, field, value)
                employee.onboarding_data = draft
                employee.onboarding_status = Employee.ONBOARDING_SUBMITTED
                employee.onboarding_step = len(wizard.STEP_KEYS) - 1
                employee.onboarding_completed_steps = list(wizard.STEP_KEYS)
                employee.onboarding_submitted_at = timezone.now()
                employee.save()
                OnboardingService._replace_nested(employee, nested)
        except IntegrityError as exc:
            logger.warning("onboarding_submit_conflict employee_id=%s error=%s", employee.pk, exc)
            raise ConflictException('NPI number or email is already in use by another employee.') from exc

        logger.info("onboarding_submitted employee_id=%s", employee.pk)
        return employee

    @staticmethod
    def pending_approvals():
        return (
            Employee.objects.filter(onboarding_status=Employee.ONBOARDING_SUBMITTED)
            .select_related('user')
            .order_by('onboarding_submitted_at')
        )

    @staticmethod
    def completion(employee):
        """Onboarding form progress shown to HR before a decision."""
        forms = employee.form_submissions.filter(is_onboarding_requirement=True)
        total = forms.count()
        completed = forms.filter(status=FormSubmission.STATUS_COMPLETED).count()
        return {
            'steps_completed': len(employee.onboarding_completed_steps or []),
            'steps_total': len(wizard.STEP_KEYS),
            'forms_total': total,
            'forms_completed': completed,
            'forms_complete': completed == total,
        }

    @staticmethod
    def _review(employee, reviewer, onboarding_status, notes, request=None):
        if employee.onboarding_status != Employee.ONBOARDING_SUBMITTED:
            raise ValidationException(
                'Onboarding is not awaiting approval.',
                details={'onboarding_status': employee.onboarding_status},
            )
        old_data = snapshot(employee)
        with transaction.atomic():
            employee.onboarding_status = onboarding_status
            employee.onboarding_reviewed_by = reviewer
            employee.onboarding_reviewed_at = timezone.now()
            employee.onboarding_review_notes = notes
            approved = onboarding_status == Employee.ONBOARDING_COMPLETED
            if approved:
                employee.status = Employee.STATUS_ACTIVE
                user = employee.user
                if user is not None and user.role == User.ROLE_PROSPECTIVE:
                    user.role = User.ROLE_EMPLOYEE
                    user.save(update_fields=['role', 'updated_at'])
            employee.save()
            record_audit(AuditLog.ACTION_UPDATE, employee, user=reviewer,
                         old_data=old_data, new_data=snapshot(employee), request=request)
            transaction.on_commit(lambda: send_decision_email(employee, approved, notes))
        logger.info(
            "onboarding_reviewed employee_id=%s decision=%s by=%s",
            employee.pk, 'approved' if approved else 'rejected', reviewer.pk,
        )
        return employee

    @staticmethod
    def approve(employee, reviewer, comments, request=None):
        """
        Finish onboarding: the employee becomes active and a prospective
        account is promoted to a regular employee account.
        """
        return OnboardingService._review(
            employee, reviewer, Employee.ONBOARDING_COMPLETED, comments, request=request,
        )

    @staticmethod
    def reject(employee, reviewer, reason, request=None):
        """Send onboarding back to the employee for changes."""
        return OnboardingService._review(
            employee, reviewer, Employee.ONBOARDING_IN_PROGRESS, reason, request=request,
        )

    NESTED_MODELS = {
        'educations': Education,
        'employments': Employment,
        'state_licenses': StateLicense,
        'dea_licenses': DEALicense,
        'board_certifications': BoardCertification,
        'peer_references': PeerReference,
        'emergency_contacts': EmergencyContact,
        'tax_forms': TaxForm,
        'trainings': Training,
        'payer_enrollments': PayerEnrollment,
    }

    @staticmethod
    def _replace_nested(employee, nested):
        for key, items in nested.items():
            model = OnboardingService.NESTED_MODELS[key]
            model_fields = {f.name for f in model._meta.concrete_fields}
            getattr(employee, key).all().delete()
            model.objects.bulk_create([
                model(employee=employee, **{k: v for k, v in item.items() if k in model_fields})
                for item in items
            ])
