"""
Audit trail helpers.

Snapshots are taken from model field values; encrypted columns are masked
before they are written so the audit table never holds plaintext secrets.
"""

import logging
from datetime import date, datetime
from decimal import Decimal

from django.db import models

from .encryption import SENSITIVE_FIELDS, mask_ssn
from .logging import get_correlation_id
from .models import AuditLog
from .utils import get_client_ip

logger = logging.getLogger(__name__)

HASH_FIELDS = ('password', 'key_hash')


def _json_value(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, models.Model):
        return value.pk
    if hasattr(value, 'name') and hasattr(value, 'url'):
        return value.name or None
    return value


def snapshot(instance) -> dict:
    """Serializable dict of concrete field values with secrets masked."""
    data = {}
    for field in instance._meta.concrete_fields:
        value = getattr(instance, field.attname)
        if field.name == 'ssn':
            value = mask_ssn(value) if value else value
        elif field.name in SENSITIVE_FIELDS or field.name in HASH_FIELDS:
            value = '***' if value else value
        data[field.name] = _json_value(value)
    return data


def record_audit(action, instance, user=None, old_data=None, new_data=None, request=None):
    """Write one audit row for ``instance``."""
    entry = AuditLog.objects.create(
        table_name=instance._meta.db_table,
        record_id=instance.pk,
        action=action,
        changed_by=user if user is not None and user.is_authenticated else None,
        old_data=old_data,
        new_data=new_data,
        ip_address=get_client_ip(request) if request is not None else None,
        request_id=get_correlation_id() or '',
    )
    logger.info(
        "audit action=%s table=%s record_id=%s user_id=%s",
        action, entry.table_name, entry.record_id, getattr(entry.changed_by, 'pk', None),
    )
    return entry


class AuditedViewSetMixin:
    """
    Records CREATE / UPDATE / DELETE audit rows around the standard
    ModelViewSet persistence hooks.
    """

    def perform_create(self, serializer):
        instance = serializer.save(**self.get_save_kwargs())
        record_audit(AuditLog.ACTION_CREATE, instance, user=self.request.user,
                     new_data=snapshot(instance), request=self.request)

    def perform_update(self, serializer):
        old_data = snapshot(serializer.instance)
        instance = serializer.save()
        record_audit(AuditLog.ACTION_UPDATE, instance, user=self.request.user,
                     old_data=old_data, new_data=snapshot(instance), request=self.request)

    def perform_destroy(self, instance):
        old_data = snapshot(instance)
        pk = instance.pk
        instance.delete()
        instance.pk = pk
        record_audit(AuditLog.ACTION_DELETE, instance, user=self.request.user,
                     old_data=old_data, request=self.request)

    def get_save_kwargs(self):
        return {}
