"""Employee app filters."""
import django_filters
from django.db.models import Q

from .models import Employee, IncidentLog


class EmployeeFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method='filter_search')
    department = django_filters.CharFilter(field_name='job_title', lookup_expr='icontains')
    job_title = django_filters.CharFilter(lookup_expr='icontains')
    location = django_filters.CharFilter(field_name='work_location', lookup_expr='icontains')
    status = django_filters.ChoiceFilter(choices=Employee.STATUS_CHOICES)
    onboarding_status = django_filters.ChoiceFilter(choices=Employee.ONBOARDING_CHOICES)

    class Meta:
        model = Employee
        fields = ['status', 'onboarding_status']

    def filter_search(self, queryset, name, value):
        for term in value.split():
            queryset = queryset.filter(
                Q(first_name__icontains=term)
                | Q(last_name__icontains=term)
                | Q(work_email__icontains=term)
                | Q(npi_number__icontains=term)
                | Q(job_title__icontains=term)
            )
        return queryset


class IncidentLogFilter(django_filters.FilterSet):
    severity = django_filters.ChoiceFilter(choices=IncidentLog.SEVERITY_CHOICES)
    status = django_filters.ChoiceFilter(choices=IncidentLog.STATUS_CHOICES)
    start_date = django_filters.DateFilter(field_name='incident_date', lookup_expr='gte')
    end_date = django_filters.DateFilter(field_name='incident_date', lookup_expr='lte')

    class Meta:
        model = IncidentLog
        fields = ['severity', 'status']
