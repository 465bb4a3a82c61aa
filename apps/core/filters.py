import django_filters

from .models import AuditLog


class AuditLogFilter(django_filters.FilterSet):
    table_name = django_filters.CharFilter()
    action = django_filters.ChoiceFilter(choices=AuditLog.ACTION_CHOICES)
    record_id = django_filters.NumberFilter()
    changed_by = django_filters.NumberFilter(field_name='changed_by_id')
    start_date = django_filters.DateFilter(field_name='changed_at', lookup_expr='date__gte')
    end_date = django_filters.DateFilter(field_name='changed_at', lookup_expr='date__lte')

    class Meta:
        model = AuditLog
        fields = ['table_name', 'action', 'record_id', 'changed_by']
