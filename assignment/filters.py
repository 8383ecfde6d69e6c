import django_filters

from assignment.models import Assignment, Discharge


class AssignmentFilter(django_filters.FilterSet):
    date = django_filters.DateFilter(field_name='date')
    date_from = django_filters.DateFilter(field_name='date', lookup_expr='gte')
    date_to = django_filters.DateFilter(field_name='date', lookup_expr='lte')

    class Meta:
        model = Assignment
        fields = ['driver', 'truck', 'is_completed', 'fuel_type']


class DischargeFilter(django_filters.FilterSet):
    recorded = django_filters.BooleanFilter(method='filter_recorded')

    class Meta:
        model = Discharge
        fields = ['assignment', 'customer']

    def filter_recorded(self, queryset, name, value):
        if value:
            return queryset.filter(total_discharged__gt=0)
        return queryset.filter(total_discharged=0)
