import django_filters
from backend.projects.filters import CharInFilter
from .models import Task


class TaskFilter(django_filters.FilterSet):
    """Filters for a project's task list"""
    status = CharInFilter(field_name='status', lookup_expr='in')
    priority = CharInFilter(field_name='priority', lookup_expr='in')
    milestone = django_filters.UUIDFilter(field_name='milestone_id')
    assigned_to = django_filters.UUIDFilter(field_name='assigned_to_id')
    due_date_from = django_filters.DateFilter(field_name='due_date', lookup_expr='gte')
    due_date_to = django_filters.DateFilter(field_name='due_date', lookup_expr='lte')

    class Meta:
        model = Task
        fields = ['status', 'priority', 'milestone', 'assigned_to', 'due_date_from', 'due_date_to']
