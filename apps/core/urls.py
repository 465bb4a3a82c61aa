"""
Core URLs
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import AuditLogViewSet

router = DefaultRouter(trailing_slash=False)
router.include_root_view = False
router.register('audits', AuditLogViewSet, basename='audit-log')

urlpatterns = [
    path('', include(router.urls)),
]
