"""Report URLs"""
from django.urls import path

from .views import CheckExpirationsView, ExpiringReportView, ExportView, StatsView

urlpatterns = [
    path('reports/expiring', ExpiringReportView.as_view(), name='report-expiring'),
    path('reports/stats', StatsView.as_view(), name='report-stats'),
    path('export/<str:export_type>', ExportView.as_view(), name='report-export'),
    path('cron/check-expirations', CheckExpirationsView.as_view(), name='cron-check-expirations'),
]
