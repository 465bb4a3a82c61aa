"""Report Views"""

from rest_framework.views import APIView

from apps.core.permissions import HasApiKeyScope, IsAdmin, IsHRStaffOrReadOnly
from apps.core.response import attachment_response, success_response
from apps.core.throttling import ApiKeyRateThrottle, ReportExportThrottle

from .services import ComplianceStatsService, ExpirationReportService, ExportService, parse_days
from .tasks import check_expirations


class ExpiringReportView(APIView):
    """GET /api/reports/expiring?days=N"""

    permission_classes = [HasApiKeyScope, IsHRStaffOrReadOnly]
    api_key_resource = 'reports'

    def get(self, request):
        days = parse_days(request.query_params.get('days'))
        items = ExpirationReportService.expiring_items(days)
        return success_response(
            items,
            summary=ExpirationReportService.summarize(items),
            days=days,
        )


class StatsView(APIView):
    """GET /api/reports/stats"""

    permission_classes = [HasApiKeyScope, IsHRStaffOrReadOnly]
    api_key_resource = 'reports'

    def get(self, request):
        days = parse_days(request.query_params.get('days'))
        return success_response(ComplianceStatsService.stats(days))


class ExportView(APIView):
    """GET /api/export/<type>?days=N&format=csv|xlsx|pdf"""

    permission_classes = [HasApiKeyScope, IsHRStaffOrReadOnly]
    api_key_resource = 'reports'
    throttle_classes = [ReportExportThrottle, ApiKeyRateThrottle]

    def get(self, request, export_type):
        days = parse_days(request.query_params.get('days'))
        output_format = (request.query_params.get('format') or ExportService.FORMAT_CSV).lower()
        content, content_type, filename = ExportService.export(export_type, output_format, days)
        return attachment_response(content, filename, content_type)


class CheckExpirationsView(APIView):
    """POST /api/cron/check-expirations: run the daily check now."""

    permission_classes = [IsAdmin]

    def post(self, request):
        days = parse_days(request.data.get('days') if hasattr(request.data, 'get') else None)
        result = check_expirations(days=days)
        return success_response(result, 'Expiration check completed.')
