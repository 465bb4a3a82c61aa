"""Integration Models"""
from django.db import models

from apps.core.fields import EncryptedTextField
from apps.core.models import TimeStampedModel


class DocuSealConfiguration(TimeStampedModel):
    """
    Stored DocuSeal credentials. The enabled row wins over the
    ``DOCUSEAL_*`` settings.
    """

    name = models.CharField(max_length=100, default='DocuSeal')
    api_key = EncryptedTextField()
    base_url = models.URLField(default='https://api.docuseal.co')
    enabled = models.BooleanField(default=True, db_index=True)

    last_test_at = models.DateTimeField(null=True, blank=True)
    last_test_success = models.BooleanField(null=True, blank=True)
    last_test_error = models.TextField(blank=True)

    class Meta:
        db_table = 'docuseal_configurations'
        ordering = ['-updated_at']

    def __str__(self):
        return f"{self.name} ({'enabled' if self.enabled else 'disabled'})"

    @classmethod
    def active(cls):
        return cls.objects.filter(enabled=True).first()
