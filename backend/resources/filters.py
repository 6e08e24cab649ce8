import django_filters
from backend.projects.filters import CharInFilter
from .models import Resource


class ResourceFilter(django_filters.FilterSet):
    status = CharInFilter(field_name='status', lookup_expr='in')
    type = CharInFilter(field_name='type', lookup_expr='in')
    supplier = django_filters.UUIDFilter(field_name='supplier_id')

    class Meta:
        model = Resource
        fields = ['status', 'type', 'supplier']
