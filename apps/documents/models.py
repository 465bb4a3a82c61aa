"""
Document Models - Uploaded employee files with version history
"""

import os
import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

from apps.core.expiration import classify_expiration


def document_upload_path(instance, filename):
    ext = os.path.splitext(filename)[1].lower()
    return f"documents/{instance.employee_id}/{instance.document_type}/{uuid.uuid4().hex}{ext}"


class Document(models.Model):
    """
    Stored file content is immutable: uploading the same ``document_type``
    again for an employee creates a new row with ``version + 1`` that points
    at the row it supersedes.
    """

    employee = models.ForeignKey(
        'employees.Employee',
        on_delete=models.CASCADE,
        related_name='documents',
    )
    document_type = models.CharField(max_length=100, db_index=True)
    document_name = models.CharField(max_length=255, blank=True)
    file_name = models.CharField(max_length=255)
    file = models.FileField(upload_to=document_upload_path, max_length=500)
    file_size = models.PositiveIntegerField(default=0)
    mime_type = models.CharField(max_length=100, blank=True)

    signed_date = models.DateField(null=True, blank=True)
    uploaded_at = models.DateTimeField(default=timezone.now)
    expiration_date = models.DateField(null=True, blank=True, db_index=True)

    is_verified = models.BooleanField(default=False)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='verified_documents',
    )
    verification_date = models.DateTimeField(null=True, blank=True)
    notes = models.TextField(blank=True)

    version = models.PositiveIntegerField(default=1)
    previous_version = models.OneToOneField(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='next_version',
    )
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='uploaded_documents',
    )

    class Meta:
        db_table = 'documents'
        ordering = ['-uploaded_at', '-id']
        indexes = [
            models.Index(fields=['employee', 'document_type', '-version'], name='documents_emp_type_ver_idx'),
        ]

    def __str__(self):
        return f"{self.document_type} v{self.version} ({self.file_name})"

    @property
    def is_latest(self):
        return not Document.objects.filter(previous_version=self).exists()

    @property
    def expiration(self):
        return classify_expiration(self.expiration_date)
