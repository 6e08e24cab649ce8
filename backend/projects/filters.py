import django_filters
from .models import Project


class CharInFilter(django_filters.BaseInFilter, django_filters.CharFilter):
    """Accepts a single value or a comma-separated list"""


class ProjectFilter(django_filters.FilterSet):
    """Filters for the project list"""
    status = CharInFilter(field_name='status', lookup_expr='in')
    start_date_from = django_filters.DateFilter(field_name='start_date', lookup_expr='gte')
    start_date_to = django_filters.DateFilter(field_name='start_date', lookup_expr='lte')
    estimated_end_date_from = django_filters.DateFilter(field_name='estimated_end_date', lookup_expr='gte')
    estimated_end_date_to = django_filters.DateFilter(field_name='estimated_end_date', lookup_expr='lte')

    class Meta:
        model = Project
        fields = ['status', 'start_date_from', 'start_date_to',
                  'estimated_end_date_from', 'estimated_end_date_to']
