"""
Document Views
"""

import logging

from django.http import FileResponse
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, viewsets, status
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.parsers import MultiPartParser, FormParser
from rest_framework.response import Response

from apps.core.audit import AuditedViewSetMixin, record_audit, snapshot
from apps.core.exceptions import ResourceNotFoundException
from apps.core.models import AuditLog
from apps.core.permissions import HasApiKeyScope, IsHRStaff, IsHRStaffOrSelf, can_read_all, is_hr_staff

from .filters import DocumentFilter
from .models import Document
from .serializers import DocumentSerializer, DocumentUploadSerializer, DocumentVerifySerializer
from .services import DocumentService

logger = logging.getLogger(__name__)


class DocumentViewSet(AuditedViewSetMixin,
                      mixins.ListModelMixin,
                      mixins.RetrieveModelMixin,
                      mixins.UpdateModelMixin,
                      mixins.DestroyModelMixin,
                      viewsets.GenericViewSet):
    """
    Employee documents.

    - GET /api/documents: latest versions (``all_versions=true`` for history)
    - POST /api/documents/upload: upload, versioning by document type
    - GET/PATCH/DELETE /api/documents/{id}
    - GET /api/documents/{id}/download
    - POST /api/documents/{id}/verify
    - GET /api/documents/stats
    """

    queryset = Document.objects.select_related('employee', 'verified_by')
    serializer_class = DocumentSerializer
    permission_classes = [HasApiKeyScope, IsHRStaffOrSelf]
    api_key_resource = 'documents'
    filter_backends = [DjangoFilterBackend]
    filterset_class = DocumentFilter

    def get_permissions(self):
        if self.action in ('verify', 'destroy'):
            return [HasApiKeyScope(), IsHRStaff()]
        return super().get_permissions()

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'list' and self.request.query_params.get('all_versions', '').lower() not in ('true', '1'):
            queryset = queryset.filter(next_version__isnull=True)
        if can_read_all(self.request.user):
            return queryset
        return queryset.filter(employee__user=self.request.user)

    @action(detail=False, methods=['post'], parser_classes=[MultiPartParser, FormParser])
    def upload(self, request):
        serializer = DocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        employee = data.pop('employee')
        if not is_hr_staff(request.user) and employee.user_id != request.user.pk:
            raise PermissionDenied('You can only upload your own documents.')

        document = DocumentService.upload(
            employee, data.pop('document_type'), data.pop('file'), uploaded_by=request.user, **data
        )
        record_audit(AuditLog.ACTION_CREATE, document, user=request.user,
                     new_data=snapshot(document), request=request)
        return Response(DocumentSerializer(document).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['get'])
    def download(self, request, pk=None):
        document = self.get_object()
        if not document.file or not document.file.storage.exists(document.file.name):
            raise ResourceNotFoundException('Document file', document.pk)
        response = FileResponse(
            document.file.open('rb'),
            content_type=document.mime_type or 'application/octet-stream',
        )
        response['Content-Disposition'] = f'attachment; filename="{document.file_name}"'
        return response

    @action(detail=True, methods=['post'])
    def verify(self, request, pk=None):
        """Mark a document as verified"""
        document = self.get_object()
        serializer = DocumentVerifySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        old_data = snapshot(document)
        DocumentService.verify(document, request.user, notes=serializer.validated_data.get('notes'))
        record_audit(AuditLog.ACTION_UPDATE, document, user=request.user,
                     old_data=old_data, new_data=snapshot(document), request=request)
        return Response(self.get_serializer(document).data)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        days = request.query_params.get('days')
        return Response(DocumentService.stats(
            self.get_queryset(), warning_days=int(days) if days and days.isdigit() else None
        ))
