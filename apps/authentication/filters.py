"""Authentication app filters."""
import django_filters

from .models import Invitation, User


class InvitationFilter(django_filters.FilterSet):
    email = django_filters.CharFilter(lookup_expr='icontains')
    status = django_filters.ChoiceFilter(choices=Invitation.STATUS_CHOICES)
    intended_role = django_filters.ChoiceFilter(choices=User.ROLE_CHOICES)
    created_after = django_filters.DateTimeFilter(field_name='created_at', lookup_expr='gte')
    created_before = django_filters.DateTimeFilter(field_name='created_at', lookup_expr='lte')

    class Meta:
        model = Invitation
        fields = ['email', 'status', 'intended_role']
