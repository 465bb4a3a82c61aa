"""Report services: expiring credentials, compliance stats and table exports"""
import logging
from datetime import timedelta
from io import BytesIO
from typing import Dict, List, Optional, Tuple

import pandas as pd
from django.db.models import Count
from django.utils import timezone

from apps.core.exceptions import ValidationException
from apps.core.expiration import (
    PRIORITY_HIGH, PRIORITY_MEDIUM, STATUS_EXPIRED, STATUS_EXPIRING_SOON,
    classify_expiration, default_warning_days,
)
from apps.documents.models import Document
from apps.employees.models import (
    BoardCertification, DEALicense, Employee, IncidentLog, StateLicense, Training,
)

logger = logging.getLogger(__name__)

ITEM_STATE_LICENSE = 'state_license'
ITEM_DEA_LICENSE = 'dea_license'
ITEM_BOARD_CERTIFICATION = 'board_certification'
ITEM_DOCUMENT = 'document'
ITEM_TRAINING = 'training'

MAX_WINDOW_DAYS = 365


def parse_days(value, default=None) -> int:
    """Window in days from a query parameter; 400 on anything but 0..365."""
    if value in (None, ''):
        return default if default is not None else default_warning_days()
    try:
        days = int(value)
    except (TypeError, ValueError):
        raise ValidationException('days must be an integer.', field='days')
    if days < 0 or days > MAX_WINDOW_DAYS:
        raise ValidationException(f'days must be between 0 and {MAX_WINDOW_DAYS}.', field='days')
    return days


def _sources():
    """(item type, queryset, label) for every record that carries an expiration date."""
    return [
        (ITEM_STATE_LICENSE, StateLicense.objects.all(), lambda r: f"{r.state} {r.license_number}".strip()),
        (ITEM_DEA_LICENSE, DEALicense.objects.all(), lambda r: f"DEA {r.license_number}"),
        (ITEM_BOARD_CERTIFICATION, BoardCertification.objects.all(),
         lambda r: ' - '.join(p for p in (r.board_name, r.certification) if p)),
        (ITEM_DOCUMENT, Document.objects.filter(next_version__isnull=True),
         lambda r: r.document_name or r.file_name),
        (ITEM_TRAINING, Training.objects.all(), lambda r: r.training_type or r.provider),
    ]


class ExpirationReportService:

    @staticmethod
    def expiring_items(days=None, today=None) -> List[Dict]:
        """
        Credentials and documents expiring within ``days`` (expired ones
        included), most urgent first. Terminated employees are left out.
        """
        days = default_warning_days() if days is None else days
        today = today or timezone.localdate()
        horizon = today + timedelta(days=days)

        items = []
        for item_type, queryset, label in _sources():
            records = (
                queryset.select_related('employee')
                .exclude(employee__status=Employee.STATUS_TERMINATED)
                .filter(expiration_date__isnull=False, expiration_date__lte=horizon)
            )
            for record in records:
                info = classify_expiration(record.expiration_date, today=today, warning_days=days)
                items.append({
                    'item_type': item_type,
                    'id': record.pk,
                    'employee_id': record.employee_id,
                    'employee_name': record.employee.full_name,
                    'name': label(record),
                    'expiration_date': record.expiration_date,
                    'days_remaining': info.days_remaining,
                    'status': info.status,
                    'priority': info.priority,
                })
        items.sort(key=lambda item: (item['expiration_date'], item['employee_name']))
        return items

    @staticmethod
    def summarize(items) -> Dict:
        return {
            'total': len(items),
            'expired': sum(1 for i in items if i['status'] == STATUS_EXPIRED),
            'expiring_soon': sum(1 for i in items if i['status'] == STATUS_EXPIRING_SOON),
            'high_priority': sum(1 for i in items if i['priority'] == PRIORITY_HIGH),
            'medium_priority': sum(1 for i in items if i['priority'] == PRIORITY_MEDIUM),
        }


class ComplianceStatsService:

    @staticmethod
    def stats(days=None) -> Dict:
        from apps.authentication.models import Invitation
        from apps.onboarding.models import FormSubmission

        days = default_warning_days() if days is None else days
        items = ExpirationReportService.expiring_items(days)

        by_status = {
            row['status']: row['count']
            for row in Employee.objects.values('status').annotate(count=Count('id'))
        }
        by_onboarding = {
            row['onboarding_status']: row['count']
            for row in Employee.objects.values('onboarding_status').annotate(count=Count('id'))
        }
        latest_documents = Document.objects.filter(next_version__isnull=True)

        return {
            'window_days': days,
            'employees': {
                'total': sum(by_status.values()),
                'active': by_status.get(Employee.STATUS_ACTIVE, 0),
                'by_status': by_status,
                'by_onboarding_status': by_onboarding,
            },
            'licenses': {
                'state': StateLicense.objects.count(),
                'dea': DEALicense.objects.count(),
                'board_certifications': BoardCertification.objects.count(),
            },
            'documents': {
                'total': latest_documents.count(),
                'unverified': latest_documents.filter(is_verified=False).count(),
            },
            'expirations': ExpirationReportService.summarize(items),
            'incidents': {
                'open': IncidentLog.objects.filter(
                    status__in=[IncidentLog.STATUS_OPEN, IncidentLog.STATUS_INVESTIGATING]
                ).count(),
                'total': IncidentLog.objects.count(),
            },
            'invitations': {
                'pending': Invitation.objects.filter(status=Invitation.STATUS_PENDING).count(),
            },
            'forms': {
                'outstanding': FormSubmission.objects.filter(
                    status__in=[FormSubmission.STATUS_PENDING, FormSubmission.STATUS_SENT,
                                FormSubmission.STATUS_OPENED]
                ).count(),
                'completed': FormSubmission.objects.filter(status=FormSubmission.STATUS_COMPLETED).count(),
            },
        }


class ExportService:
    """Flat tables for download as CSV, XLSX or PDF."""

    EXPORT_TYPES = ('employees', 'expiring', 'licenses', 'incidents', 'documents')
    FORMAT_CSV = 'csv'
    FORMAT_XLSX = 'xlsx'
    FORMAT_PDF = 'pdf'
    FORMATS = {
        FORMAT_CSV: 'text/csv',
        FORMAT_XLSX: 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        FORMAT_PDF: 'application/pdf',
    }

    @classmethod
    def table(cls, export_type: str, days: Optional[int] = None) -> Tuple[List[str], List[Dict]]:
        if export_type not in cls.EXPORT_TYPES:
            raise ValidationException(
                f"Unsupported export type '{export_type}'.",
                field='type',
                details={'supported': list(cls.EXPORT_TYPES)},
            )
        return getattr(cls, f'_{export_type}_table')(days)

    @staticmethod
    def _employees_table(days):
        columns = ['id', 'first_name', 'last_name', 'work_email', 'cell_phone', 'job_title',
                   'work_location', 'npi_number', 'status', 'onboarding_status']
        rows = list(Employee.objects.order_by('last_name', 'first_name').values(*columns))
        return columns, rows

    @staticmethod
    def _expiring_table(days):
        columns = ['item_type', 'employee_name', 'name', 'expiration_date', 'days_remaining', 'status', 'priority']
        return columns, ExpirationReportService.expiring_items(days)

    @staticmethod
    def _licenses_table(days):
        columns = ['license_type', 'employee_name', 'license_number', 'state', 'issue_date',
                   'expiration_date', 'status']
        rows = []
        for license_type, model in (('state', StateLicense), ('dea', DEALicense)):
            for record in model.objects.select_related('employee'):
                rows.append({
                    'license_type': license_type,
                    'employee_name': record.employee.full_name,
                    'license_number': record.license_number,
                    'state': record.state,
                    'issue_date': record.issue_date,
                    'expiration_date': record.expiration_date,
                    'status': record.effective_status,
                })
        for record in BoardCertification.objects.select_related('employee'):
            rows.append({
                'license_type': 'board_certification',
                'employee_name': record.employee.full_name,
                'license_number': record.certification,
                'state': record.board_name,
                'issue_date': record.issue_date,
                'expiration_date': record.expiration_date,
                'status': record.effective_status,
            })
        return columns, rows

    @staticmethod
    def _incidents_table(days):
        columns = ['incident_date', 'employee_name', 'incident_type', 'severity', 'status',
                   'description', 'resolution', 'reported_by']
        rows = [
            {
                'incident_date': incident.incident_date,
                'employee_name': incident.employee.full_name,
                'incident_type': incident.incident_type,
                'severity': incident.severity,
                'status': incident.status,
                'description': incident.description,
                'resolution': incident.resolution,
                'reported_by': incident.reported_by,
            }
            for incident in IncidentLog.objects.select_related('employee')
        ]
        return columns, rows

    @staticmethod
    def _documents_table(days):
        columns = ['employee_name', 'document_type', 'document_name', 'file_name', 'version',
                   'uploaded_at', 'expiration_date', 'expiration_status', 'is_verified']
        rows = [
            {
                'employee_name': document.employee.full_name,
                'document_type': document.document_type,
                'document_name': document.document_name,
                'file_name': document.file_name,
                'version': document.version,
                'uploaded_at': timezone.localtime(document.uploaded_at).strftime('%Y-%m-%d %H:%M'),
                'expiration_date': document.expiration_date,
                'expiration_status': document.expiration.status,
                'is_verified': document.is_verified,
            }
            for document in Document.objects.filter(next_version__isnull=True).select_related('employee')
        ]
        return columns, rows

    @classmethod
    def export(cls, export_type: str, output_format: str = FORMAT_CSV, days: Optional[int] = None):
        """Returns ``(content bytes, content type, filename)``."""
        if output_format not in cls.FORMATS:
            raise ValidationException(
                f"Unsupported export format '{output_format}'.",
                field='format',
                details={'supported': list(cls.FORMATS)},
            )
        columns, rows = cls.table(export_type, days)
        df = pd.DataFrame(rows, columns=columns)
        filename = f"{export_type}-{timezone.localdate().isoformat()}.{output_format}"

        if output_format == cls.FORMAT_XLSX:
            buffer = BytesIO()
            with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
                df.to_excel(writer, index=False)
            content = buffer.getvalue()
        elif output_format == cls.FORMAT_PDF:
            content = cls._render_pdf(df, export_type.replace('_', ' ').title())
        else:
            content = df.to_csv(index=False).encode('utf-8')

        logger.info("report_exported type=%s format=%s rows=%s", export_type, output_format, len(rows))
        return content, cls.FORMATS[output_format], filename

    @staticmethod
    def _render_pdf(df: pd.DataFrame, title: str) -> bytes:
        from reportlab.lib import colors
        from reportlab.lib.pagesizes import letter, landscape
        from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
        from reportlab.lib.styles import getSampleStyleSheet

        buffer = BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=landscape(letter))
        styles = getSampleStyleSheet()
        elements = [
            Paragraph(f"{title} Report - {timezone.localdate().isoformat()}", styles['Title']),
            Spacer(1, 12),
        ]

        data = [list(df.columns)] + df.fillna('').astype(str).values.tolist()
        table = Table(data, repeatRows=1)
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 8),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 6),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ]))
        elements.append(table)
        doc.build(elements)
        return buffer.getvalue()
