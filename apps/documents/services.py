"""
Document services: versioned upload, verification and dashboard counts.
"""

import logging

from django.db import transaction
from django.db.models import Count
from django.utils import timezone

from apps.core.expiration import classify_expiration, default_warning_days, STATUS_EXPIRED, STATUS_EXPIRING_SOON
from apps.core.upload_validators import guess_content_type

from .models import Document

logger = logging.getLogger(__name__)


class DocumentService:

    @staticmethod
    def latest(queryset=None):
        queryset = Document.objects.all() if queryset is None else queryset
        return queryset.filter(next_version__isnull=True)

    @staticmethod
    @transaction.atomic
    def upload(employee, document_type, file_obj, uploaded_by=None, **metadata):
        """
        Store a new document. When the employee already has a document of
        this type, the new row becomes the next version of the latest one.
        """
        previous = (
            Document.objects.select_for_update()
            .filter(employee=employee, document_type=document_type)
            .order_by('-version')
            .first()
        )
        document = Document(
            employee=employee,
            document_type=document_type,
            document_name=metadata.get('document_name') or file_obj.name,
            file_name=file_obj.name,
            file_size=file_obj.size,
            mime_type=guess_content_type(file_obj),
            signed_date=metadata.get('signed_date'),
            expiration_date=metadata.get('expiration_date'),
            notes=metadata.get('notes') or '',
            version=previous.version + 1 if previous else 1,
            previous_version=previous,
            uploaded_by=uploaded_by if uploaded_by is not None and uploaded_by.is_authenticated else None,
        )
        document.file.save(file_obj.name, file_obj, save=False)
        document.save()
        logger.info(
            "document_uploaded id=%s employee_id=%s type=%s version=%s",
            document.pk, employee.pk, document_type, document.version,
        )
        return document

    @staticmethod
    def verify(document, user, notes=None):
        document.is_verified = True
        document.verified_by = user
        document.verification_date = timezone.now()
        if notes:
            document.notes = notes
        document.save(update_fields=['is_verified', 'verified_by', 'verification_date', 'notes'])
        return document

    @staticmethod
    def stats(queryset=None, warning_days=None):
        documents = DocumentService.latest(queryset)
        warning_days = warning_days or default_warning_days()
        today = timezone.localdate()

        expiring = expired = 0
        for expiration_date in documents.exclude(expiration_date__isnull=True).values_list('expiration_date', flat=True):
            status = classify_expiration(expiration_date, today=today, warning_days=warning_days).status
            if status == STATUS_EXPIRED:
                expired += 1
            elif status == STATUS_EXPIRING_SOON:
                expiring += 1

        by_type = {
            row['document_type']: row['count']
            for row in documents.values('document_type').annotate(count=Count('id')).order_by('document_type')
        }
        total = documents.count()
        verified = documents.filter(is_verified=True).count()
        return {
            'total': total,
            'verified': verified,
            'unverified': total - verified,
            'expiring_soon': expiring,
            'expired': expired,
            'by_type': by_type,
        }
