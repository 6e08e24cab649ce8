"""
Resource procurement.

A resource moves needed -> ordered -> received, or to cancelled. Deliveries
are overdue once the expected date is more than DELIVERY_GRACE_DAYS behind.
"""
import logging
from datetime import timedelta

from django.utils import timezone

from backend.core.exceptions import NotFound, ValidationError
from backend.core.utils import apply_filters, parse_date, parse_decimal, parse_list
from backend.parties.models import Supplier
from .filters import ResourceFilter
from .models import Resource

logger = logging.getLogger(__name__)

DELIVERY_GRACE_DAYS = 2

RESOURCE_REQUIRED_FIELDS = ['type', 'name', 'quantity', 'cost']
RESOURCE_FIELDS = ['type', 'name', 'quantity', 'unit', 'cost', 'status', 'notes',
                   'order_date', 'expected_delivery_date', 'actual_delivery_date']
RESOURCE_DATE_FIELDS = ['order_date', 'expected_delivery_date', 'actual_delivery_date']


def _choice_values(choices):
    return [choice[0] for choice in choices]


class ResourceService:

    def create_resource(self, project_id, data, owner=None):
        missing = [f for f in RESOURCE_REQUIRED_FIELDS if data.get(f) in (None, '')]
        if missing:
            raise ValidationError(f'Missing required fields: {", ".join(missing)}')

        resource = Resource(project_id=project_id)
        self._apply(resource, data, owner)
        resource.status = Resource.STATUS_NEEDED
        resource.save()
        logger.info(f"Resource {resource.id} '{resource.name}' created for project {project_id}")
        return resource

    def get_resource(self, resource_id, owner=None):
        queryset = Resource.objects.select_related('project', 'supplier')
        if owner is not None:
            queryset = queryset.filter(project__owner=owner)
        resource = queryset.filter(id=resource_id).first()
        if resource is None:
            raise NotFound('Resource not found')
        return resource

    def list_resources(self, project_id, filters=None):
        filters = filters or {}
        for param, choices in (('status', Resource.STATUS_CHOICES), ('type', Resource.TYPE_CHOICES)):
            invalid = [v for v in parse_list(filters.get(param)) if v not in _choice_values(choices)]
            if invalid:
                raise ValidationError(f'Invalid {param} values: {", ".join(invalid)}')

        queryset = Resource.objects.filter(project_id=project_id).select_related('supplier')
        return apply_filters(ResourceFilter, filters, queryset).order_by('-created_at')

    def update_resource(self, resource_id, data, owner=None):
        resource = self.get_resource(resource_id, owner)
        if 'name' in data and not data['name']:
            raise ValidationError('Resource name cannot be empty')
        self._apply(resource, data, owner)
        resource.save()
        return resource

    def delete_resource(self, resource_id, owner=None):
        resource = self.get_resource(resource_id, owner)
        resource.delete()
        logger.info(f"Resource {resource_id} deleted")

    def mark_as_ordered(self, resource_id, order_date, expected_delivery_date, owner=None):
        order_date = parse_date(order_date, 'order_date')
        expected_delivery_date = parse_date(expected_delivery_date, 'expected_delivery_date')
        if order_date is None or expected_delivery_date is None:
            raise ValidationError('order_date and expected_delivery_date are required')
        if expected_delivery_date < order_date:
            raise ValidationError('Expected delivery date must be on or after order date')

        resource = self.get_resource(resource_id, owner)
        resource.status = Resource.STATUS_ORDERED
        resource.order_date = order_date
        resource.expected_delivery_date = expected_delivery_date
        resource.save(update_fields=['status', 'order_date', 'expected_delivery_date', 'updated_at'])
        logger.info(f"Resource {resource.id} ordered, expected {expected_delivery_date}")
        return resource

    def mark_as_received(self, resource_id, actual_delivery_date, owner=None):
        actual_delivery_date = parse_date(actual_delivery_date, 'actual_delivery_date')
        if actual_delivery_date is None:
            raise ValidationError('actual_delivery_date is required')

        resource = self.get_resource(resource_id, owner)
        resource.status = Resource.STATUS_RECEIVED
        resource.actual_delivery_date = actual_delivery_date
        resource.save(update_fields=['status', 'actual_delivery_date', 'updated_at'])
        logger.info(f"Resource {resource.id} received on {actual_delivery_date}")
        return resource

    def check_overdue_deliveries(self, project_id=None):
        """Ordered resources whose expected delivery is more than two days late"""
        cutoff = timezone.localdate() - timedelta(days=DELIVERY_GRACE_DAYS)
        queryset = Resource.objects.filter(
            status=Resource.STATUS_ORDERED,
            expected_delivery_date__isnull=False,
            expected_delivery_date__lt=cutoff,
        ).select_related('supplier', 'project')
        if project_id is not None:
            queryset = queryset.filter(project_id=project_id)
        return queryset.order_by('expected_delivery_date')

    def group_resources_by_status(self, project_id):
        grouped = {value: [] for value in _choice_values(Resource.STATUS_CHOICES)}
        for resource in self.list_resources(project_id):
            grouped[resource.status].append(resource)
        return grouped

    def _apply(self, resource, data, owner=None):
        for field in RESOURCE_FIELDS:
            if field not in data:
                continue
            value = data[field]
            if field == 'type' and value not in _choice_values(Resource.TYPE_CHOICES):
                raise ValidationError(f'Invalid type. Must be one of: {", ".join(_choice_values(Resource.TYPE_CHOICES))}')
            if field == 'status' and value not in _choice_values(Resource.STATUS_CHOICES):
                raise ValidationError(f'Invalid status. Must be one of: {", ".join(_choice_values(Resource.STATUS_CHOICES))}')
            if field in RESOURCE_DATE_FIELDS:
                value = parse_date(value, field)
            if field == 'quantity':
                value = parse_decimal(value, field)
                if value is None or value <= 0:
                    raise ValidationError('Quantity must be greater than 0')
            if field == 'cost':
                value = parse_decimal(value, field)
                if value is None or value < 0:
                    raise ValidationError('Cost must be a non-negative number')
            if field == 'unit':
                value = value or ''
            setattr(resource, field, value)

        if 'supplier' in data or 'supplier_id' in data:
            value = data.get('supplier', data.get('supplier_id'))
            resource.supplier = self._resolve_supplier(value, owner) if value else None

    @staticmethod
    def _resolve_supplier(value, owner=None):
        if isinstance(value, Supplier):
            supplier_id = value.id
        else:
            supplier_id = value
        queryset = Supplier.objects.filter(id=supplier_id)
        if owner is not None:
            queryset = queryset.filter(owner=owner)
        supplier = queryset.first()
        if supplier is None:
            raise NotFound('Supplier not found')
        return supplier
