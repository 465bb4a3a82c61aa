"""Integration Views"""
import logging

from django.db import transaction
from rest_framework import viewsets
from rest_framework.decorators import action

from apps.core.permissions import IsAdmin
from apps.core.response import failure_response, success_response

from .docuseal import DocuSealClient
from .models import DocuSealConfiguration
from .serializers import DocuSealConfigurationSerializer

logger = logging.getLogger(__name__)


class DocuSealConfigurationViewSet(viewsets.ModelViewSet):
    """
    Stored DocuSeal credentials (administrators only). At most one
    configuration is enabled at a time.
    """

    queryset = DocuSealConfiguration.objects.all()
    serializer_class = DocuSealConfigurationSerializer
    permission_classes = [IsAdmin]
    pagination_class = None

    def _save_exclusive(self, serializer):
        with transaction.atomic():
            instance = serializer.save()
            if instance.enabled:
                DocuSealConfiguration.objects.exclude(pk=instance.pk).update(enabled=False)
        return instance

    def perform_create(self, serializer):
        self._save_exclusive(serializer)

    def perform_update(self, serializer):
        self._save_exclusive(serializer)

    @action(detail=True, methods=['post'])
    def test(self, request, pk=None):
        configuration = self.get_object()
        client = DocuSealClient(api_key=configuration.api_key, base_url=configuration.base_url)
        success, error = client.test_connection(configuration)
        logger.info("docuseal_connection_test configuration=%s success=%s", configuration.pk, success)
        if not success:
            return failure_response(error)
        return success_response(self.get_serializer(configuration).data, 'Connection successful.')
