from django.http import JsonResponse
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets, filters

from .filters import AuditLogFilter
from .models import AuditLog
from .pagination import AuditResultsPagination
from .permissions import HasApiKeyScope, IsHRStaffOrReadOnly
from .serializers import AuditLogSerializer


def api_404_view(request, exception=None):
    return JsonResponse(
        {'success': False, 'error': {'code': 404, 'message': 'Endpoint not found', 'details': {}}},
        status=404
    )


class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
    """Read-only access to the employee data audit trail."""

    queryset = AuditLog.objects.select_related('changed_by')
    serializer_class = AuditLogSerializer
    permission_classes = [HasApiKeyScope, IsHRStaffOrReadOnly]
    api_key_resource = 'audits'
    pagination_class = AuditResultsPagination
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = AuditLogFilter
    ordering_fields = ['changed_at', 'table_name']
    ordering = ['-changed_at']
