"""Integration URLs"""
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import DocuSealConfigurationViewSet

router = DefaultRouter(trailing_slash=False)
router.include_root_view = False
router.register('integrations/docuseal', DocuSealConfigurationViewSet, basename='docuseal-configuration')

urlpatterns = [
    path('', include(router.urls)),
]
