"""
Core Models - Base classes and the audit trail
"""

from django.db import models
from django.conf import settings


class TimeStampedModel(models.Model):
    """Abstract base model with timestamps"""
    
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)
    
    class Meta:
        abstract = True


class AuditLog(models.Model):
    """Audit trail for every change to employee data"""

    ACTION_CREATE = 'CREATE'
    ACTION_UPDATE = 'UPDATE'
    ACTION_DELETE = 'DELETE'

    ACTION_CHOICES = [
        (ACTION_CREATE, 'Create'),
        (ACTION_UPDATE, 'Update'),
        (ACTION_DELETE, 'Delete'),
    ]

    table_name = models.CharField(max_length=50, db_index=True)
    record_id = models.PositiveBigIntegerField()
    action = models.CharField(max_length=20, choices=ACTION_CHOICES, db_index=True)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_entries',
    )
    changed_at = models.DateTimeField(auto_now_add=True, db_index=True)
    old_data = models.JSONField(null=True, blank=True)
    new_data = models.JSONField(null=True, blank=True)

    # Request context
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    request_id = models.CharField(max_length=100, blank=True)

    class Meta:
        db_table = 'audits'
        ordering = ['-changed_at']
        indexes = [
            models.Index(fields=['table_name', 'record_id'], name='audits_table_record_idx'),
        ]

    def __str__(self):
        return f"{self.action} {self.table_name}#{self.record_id}"
