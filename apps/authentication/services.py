"""
Authentication services: invitations, invitation-gated registration,
password changes and API keys.
"""

import logging
from datetime import timedelta

from django.conf import settings
from django.contrib.auth import password_validation
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.template.loader import render_to_string
from django.utils import timezone

from apps.core.audit import record_audit, snapshot
from apps.core.exceptions import ConflictException, ResourceNotFoundException, ValidationException
from apps.core.models import AuditLog
from apps.core.utils import generate_full_url, generate_token
from apps.employees.models import Employee

from .hashers import hash_password
from .models import ApiKey, ApiKeyRotation, Invitation, User, default_invitation_expiry
from .tasks import send_email_task

logger = logging.getLogger(__name__)
security_logger = logging.getLogger('security.audit')


def send_invitation_email(invitation, request=None):
    context = {
        "invitation": invitation,
        "invited_by": getattr(invitation.invited_by, 'username', None) or settings.HR_NAME,
        "registration_url": generate_full_url(f"/register?token={invitation.token}", request),
        "company_name": getattr(settings, "COMPANY_NAME", "CareStaff HR"),
    }

    text = render_to_string("emails/invitation.txt", context)
    html = render_to_string("emails/invitation.html", context)

    send_email_task.delay(
        subject=f"You're invited to join {context['company_name']}",
        text=text,
        html=html,
        to_email=invitation.email,
    )


class InvitationService:

    @staticmethod
    @transaction.atomic
    def create(invited_by, email, first_name, last_name, intended_role=User.ROLE_PROSPECTIVE,
               employee=None, required_form_templates=(), request=None):
        email = email.strip().lower()
        if Invitation.objects.filter(email__iexact=email, status=Invitation.STATUS_PENDING,
                                     expires_at__gt=timezone.now()).exists():
            raise ValidationException('A pending invitation already exists for this email.', field='email')
        if User.objects.filter(email__iexact=email).exists():
            raise ValidationException('A user with this email already exists.', field='email')

        invitation = Invitation.objects.create(
            email=email,
            first_name=first_name,
            last_name=last_name,
            intended_role=intended_role,
            employee=employee,
            invited_by=invited_by,
        )
        if required_form_templates:
            invitation.required_form_templates.set(required_form_templates)

        transaction.on_commit(lambda: send_invitation_email(invitation, request))
        logger.info("invitation_created id=%s email=%s by=%s", invitation.pk, email, invited_by.pk)
        return invitation

    @staticmethod
    def resend(invitation, request=None):
        """New token and expiry; only for invitations not yet redeemed."""
        if invitation.status == Invitation.STATUS_REGISTERED:
            raise ValidationException('This invitation has already been used.')
        invitation.token = generate_token()
        invitation.expires_at = default_invitation_expiry()
        invitation.status = Invitation.STATUS_PENDING
        invitation.reminders_sent += 1
        invitation.last_reminder_at = timezone.now()
        invitation.save()
        send_invitation_email(invitation, request)
        logger.info("invitation_resent id=%s reminders=%s", invitation.pk, invitation.reminders_sent)
        return invitation

    @staticmethod
    def get_redeemable(token):
        """Invitation for the registration page; 404 unknown, 400 not redeemable."""
        invitation = Invitation.objects.filter(token=token).first()
        if invitation is None:
            raise ResourceNotFoundException('Invitation')
        if not invitation.is_redeemable:
            raise ValidationException('This invitation is no longer valid.', field='token')
        return invitation


def _onboarding_dispatch(employee_id, invitation_id, user_id):
    """Runs after the registration commit; failures are logged only."""
    from apps.onboarding.tasks import send_onboarding_forms

    try:
        send_onboarding_forms.delay(employee_id, invitation_id, user_id)
    except Exception:
        logger.exception(
            "onboarding_forms_dispatch_failed employee_id=%s invitation_id=%s", employee_id, invitation_id,
        )


class RegistrationService:

    @staticmethod
    def register(token, username, password, email=None):
        """
        Redeem an invitation: create the user, link or create the employee
        and mark the invitation registered, all in one transaction. The
        invitation row stays locked until commit so a token cannot be
        redeemed twice.
        """
        with transaction.atomic():
            invitation = (
                Invitation.objects.select_for_update()
                .filter(token=token)
                .first()
            )
            if invitation is None or not invitation.is_redeemable:
                raise ValidationException('Invalid or expired invitation.', field='token')

            email = (email or invitation.email).strip().lower()
            if User.objects.filter(username__iexact=username).exists():
                raise ValidationException('Username already exists.', field='username')
            if User.objects.filter(email__iexact=email).exists():
                raise ValidationException('A user with this email already exists.', field='email')

            candidate = User(username=username, email=email)
            try:
                password_validation.validate_password(password, user=candidate)
            except DjangoValidationError as exc:
                raise ValidationException('Password is too weak.', details={'password': exc.messages})

            user = User.objects.create_user(
                username=username,
                password=password,
                email=email,
                role=invitation.intended_role,
            )

            employee = invitation.employee
            if employee is None:
                employee = Employee.objects.filter(work_email__iexact=invitation.email).first()
            if employee is not None and employee.user_id is not None:
                raise ValidationException('This employee already has an account.', field='work_email')
            if employee is None:
                employee = Employee.objects.create(
                    first_name=invitation.first_name,
                    last_name=invitation.last_name,
                    work_email=invitation.email,
                    user=user,
                    onboarding_status=Employee.ONBOARDING_IN_PROGRESS,
                )
            else:
                employee.user = user
                employee.save(update_fields=['user', 'updated_at'])

            invitation.status = Invitation.STATUS_REGISTERED
            invitation.registered_at = timezone.now()
            invitation.employee = employee
            invitation.save(update_fields=['status', 'registered_at', 'employee', 'updated_at'])

            transaction.on_commit(
                lambda: _onboarding_dispatch(employee.pk, invitation.pk, user.pk)
            )

        security_logger.info(
            "registration user_id=%s invitation_id=%s employee_id=%s", user.pk, invitation.pk, employee.pk,
        )
        return user, employee


class PasswordService:

    @staticmethod
    def change_password(user, current_password, new_password):
        if not user.check_password(current_password):
            raise ValidationException('Current password is incorrect.', field='current_password')
        try:
            password_validation.validate_password(new_password, user=user)
        except DjangoValidationError as exc:
            raise ValidationException('Password is too weak.', details={'new_password': exc.messages})
        user.set_password(new_password)
        user.require_password_change = False
        user.save(update_fields=['password', 'password_changed_at', 'require_password_change', 'updated_at'])
        security_logger.info("password_changed user_id=%s", user.pk)
        return user


def generate_api_key(environment=ApiKey.ENV_LIVE):
    """Returns ``(raw_key, key_prefix, key_hash)``; the raw key is never stored."""
    raw_key = f"{ApiKey.KEY_PREFIXES[environment]}{generate_token(32)}"
    return raw_key, raw_key[:ApiKey.PREFIX_LENGTH], hash_password(raw_key)


class ApiKeyService:

    @staticmethod
    def _issue(**fields):
        for _ in range(5):
            raw_key, prefix, key_hash = generate_api_key(fields['environment'])
            if not ApiKey.objects.filter(key_prefix=prefix).exists():
                return ApiKey.objects.create(key_prefix=prefix, key_hash=key_hash, **fields), raw_key
        raise ConflictException('Could not allocate a unique API key prefix, try again.')

    @staticmethod
    @transaction.atomic
    def create(user, name, permissions, environment=ApiKey.ENV_LIVE, expires_in_days=90,
               rate_limit_per_hour=1000, metadata=None, request=None):
        api_key, raw_key = ApiKeyService._issue(
            name=name,
            user=user,
            permissions=list(permissions),
            environment=environment,
            expires_at=timezone.now() + timedelta(days=expires_in_days),
            rate_limit_per_hour=rate_limit_per_hour,
            metadata=metadata or {},
        )
        record_audit(AuditLog.ACTION_CREATE, api_key, user=user, new_data=snapshot(api_key), request=request)
        security_logger.info("api_key_created id=%s prefix=%s user_id=%s", api_key.pk, api_key.key_prefix, user.pk)
        return api_key, raw_key

    @staticmethod
    @transaction.atomic
    def revoke(api_key, user, request=None):
        if api_key.revoked_at is None:
            old_data = snapshot(api_key)
            api_key.revoked_at = timezone.now()
            api_key.save(update_fields=['revoked_at', 'updated_at'])
            record_audit(AuditLog.ACTION_DELETE, api_key, user=user,
                         old_data=old_data, new_data=snapshot(api_key), request=request)
            security_logger.info("api_key_revoked id=%s user_id=%s", api_key.pk, user.pk)
        return api_key

    @staticmethod
    @transaction.atomic
    def rotate(api_key, user, grace_period_hours=24, reason='Manual rotation',
               rotation_type=ApiKeyRotation.TYPE_MANUAL, request=None):
        """
        Issue a replacement with the same scopes, limits and expiry. The old
        key keeps working until the grace period ends.
        """
        if api_key.is_revoked:
            raise ValidationException('Cannot rotate a revoked key.')
        new_key, raw_key = ApiKeyService._issue(
            name=f"{api_key.name} (Rotated)"[:100],
            user=api_key.user,
            permissions=api_key.permissions,
            environment=api_key.environment,
            expires_at=api_key.expires_at,
            rate_limit_per_hour=api_key.rate_limit_per_hour,
            metadata=api_key.metadata,
        )
        grace_period_ends = timezone.now() + timedelta(hours=grace_period_hours)
        rotation = ApiKeyRotation.objects.create(
            api_key=api_key,
            new_key=new_key,
            rotation_type=rotation_type,
            rotated_by=user,
            grace_period_ends=grace_period_ends,
            reason=reason,
        )

        old_data = snapshot(api_key)
        api_key.expires_at = min(api_key.expires_at, grace_period_ends)
        api_key.save(update_fields=['expires_at', 'updated_at'])
        record_audit(AuditLog.ACTION_UPDATE, api_key, user=user,
                     old_data=old_data, new_data=snapshot(api_key), request=request)
        record_audit(AuditLog.ACTION_CREATE, new_key, user=user, new_data=snapshot(new_key), request=request)
        security_logger.info(
            "api_key_rotated old_id=%s new_id=%s grace_until=%s user_id=%s",
            api_key.pk, new_key.pk, grace_period_ends.isoformat(), user.pk,
        )
        return new_key, raw_key, rotation

    @staticmethod
    def usage(api_key):
        rotations = list(api_key.rotations.all())
        return {
            'key_id': api_key.pk,
            'name': api_key.name,
            'created_at': api_key.created_at,
            'last_used_at': api_key.last_used_at,
            'expires_at': api_key.expires_at,
            'is_expired': api_key.is_expired,
            'is_revoked': api_key.is_revoked,
            'rotation_count': len(rotations),
            'rotations': [
                {
                    'rotated_at': rotation.rotated_at,
                    'type': rotation.rotation_type,
                    'reason': rotation.reason,
                    'grace_period_ends': rotation.grace_period_ends,
                }
                for rotation in rotations
            ],
            'successful_auths': api_key.usage_count,
            'failed_auths': api_key.failed_auth_count,
            'auth_attempts': api_key.usage_count + api_key.failed_auth_count,
        }
