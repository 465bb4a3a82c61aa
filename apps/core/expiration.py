"""
Credential expiration classification.

Every screen, report and job that labels a license, certification or
document by its expiration date goes through ``classify_expiration``.
Callers pick their window by passing ``warning_days``; the defaults come
from ``EXPIRATION_WARNING_DAYS`` / ``EXPIRATION_CRITICAL_DAYS``.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from django.conf import settings
from django.utils import timezone

STATUS_ACTIVE = 'active'
STATUS_EXPIRING_SOON = 'expiring_soon'
STATUS_EXPIRED = 'expired'

PRIORITY_HIGH = 'high'
PRIORITY_MEDIUM = 'medium'
PRIORITY_LOW = 'low'


@dataclass(frozen=True)
class ExpirationInfo:
    status: Optional[str]
    priority: Optional[str]
    days_remaining: Optional[int]


def default_warning_days() -> int:
    return getattr(settings, 'EXPIRATION_WARNING_DAYS', 30)


def default_critical_days() -> int:
    return getattr(settings, 'EXPIRATION_CRITICAL_DAYS', 15)


def days_until(expiration_date, today: Optional[date] = None) -> Optional[int]:
    if expiration_date is None:
        return None
    if isinstance(expiration_date, datetime):
        expiration_date = expiration_date.date()
    today = today or timezone.localdate()
    return (expiration_date - today).days


def classify_expiration(
    expiration_date,
    today: Optional[date] = None,
    warning_days: Optional[int] = None,
    critical_days: Optional[int] = None,
) -> ExpirationInfo:
    """
    Label an expiration date.

    past                      -> expired,        high
    <= critical_days          -> expiring_soon,  high
    <= warning_days           -> expiring_soon,  medium
    otherwise                 -> active,         low

    A missing date yields an all-``None`` result.
    """
    remaining = days_until(expiration_date, today)
    if remaining is None:
        return ExpirationInfo(None, None, None)

    if warning_days is None:
        warning_days = default_warning_days()
    if critical_days is None:
        critical_days = default_critical_days()
    critical_days = min(critical_days, warning_days)

    if remaining < 0:
        return ExpirationInfo(STATUS_EXPIRED, PRIORITY_HIGH, remaining)
    if remaining <= critical_days:
        return ExpirationInfo(STATUS_EXPIRING_SOON, PRIORITY_HIGH, remaining)
    if remaining <= warning_days:
        return ExpirationInfo(STATUS_EXPIRING_SOON, PRIORITY_MEDIUM, remaining)
    return ExpirationInfo(STATUS_ACTIVE, PRIORITY_LOW, remaining)


def effective_status(explicit_status, expiration_date, today=None, warning_days=None):
    """An explicitly stored status wins; otherwise derive from the date."""
    if explicit_status:
        return explicit_status
    return classify_expiration(expiration_date, today=today, warning_days=warning_days).status
