import django_filters

from .models import Document


class DocumentFilter(django_filters.FilterSet):
    employee = django_filters.NumberFilter(field_name='employee_id')
    document_type = django_filters.CharFilter(lookup_expr='iexact')
    type = django_filters.CharFilter(field_name='document_type', lookup_expr='iexact')
    is_verified = django_filters.BooleanFilter()

    class Meta:
        model = Document
        fields = ['employee', 'document_type', 'is_verified']
