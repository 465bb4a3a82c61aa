"""
Core Serializers
"""

from rest_framework import serializers

from .models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    changed_by_username = serializers.CharField(source='changed_by.username', read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = [
            'id', 'table_name', 'record_id', 'action', 'changed_by', 'changed_by_username',
            'changed_at', 'old_data', 'new_data', 'ip_address', 'request_id',
        ]
        read_only_fields = fields
