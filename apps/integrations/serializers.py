"""Integration Serializers"""
from rest_framework import serializers
from .models import DocuSealConfiguration


class DocuSealConfigurationSerializer(serializers.ModelSerializer):
    has_api_key = serializers.SerializerMethodField()

    class Meta:
        model = DocuSealConfiguration
        fields = [
            'id', 'name', 'api_key', 'has_api_key', 'base_url', 'enabled',
            'last_test_at', 'last_test_success', 'last_test_error', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'last_test_at', 'last_test_success', 'last_test_error', 'created_at', 'updated_at']
        extra_kwargs = {'api_key': {'write_only': True}}

    def get_has_api_key(self, obj) -> bool:
        return bool(obj.api_key)

    def validate_base_url(self, value):
        return value.rstrip('/')
