"""
Document Serializers
"""

from rest_framework import serializers
from drf_spectacular.utils import extend_schema_field
from drf_spectacular.types import OpenApiTypes

from apps.core.upload_validators import validate_upload
from apps.employees.models import Employee

from .models import Document


class DocumentSerializer(serializers.ModelSerializer):
    """Read/metadata-update representation; the stored file is never replaced in place."""

    employee_name = serializers.CharField(source='employee.full_name', read_only=True)
    verified_by_username = serializers.CharField(source='verified_by.username', read_only=True, default=None)
    expiration_status = serializers.SerializerMethodField()
    days_remaining = serializers.SerializerMethodField()
    is_latest = serializers.SerializerMethodField()

    class Meta:
        model = Document
        exclude = ['file']
        read_only_fields = [
            'employee', 'document_type', 'file_name', 'file_size', 'mime_type', 'uploaded_at',
            'is_verified', 'verified_by', 'verification_date', 'version', 'previous_version',
            'uploaded_by',
        ]

    @extend_schema_field(OpenApiTypes.STR)
    def get_expiration_status(self, obj):
        return obj.expiration.status

    @extend_schema_field(OpenApiTypes.INT)
    def get_days_remaining(self, obj):
        return obj.expiration.days_remaining

    @extend_schema_field(OpenApiTypes.BOOL)
    def get_is_latest(self, obj):
        return obj.is_latest


class DocumentUploadSerializer(serializers.Serializer):
    employee = serializers.PrimaryKeyRelatedField(queryset=Employee.objects.all())
    document_type = serializers.CharField(max_length=100)
    document_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    file = serializers.FileField(validators=[validate_upload])
    signed_date = serializers.DateField(required=False, allow_null=True)
    expiration_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class DocumentVerifySerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True)
