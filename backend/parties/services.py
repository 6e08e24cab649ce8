import logging

from backend.core.exceptions import NotFound, ValidationError
from .models import Supplier

logger = logging.getLogger(__name__)

SUPPLIER_FIELDS = ['name', 'contact_name', 'email', 'phone', 'address', 'notes']


class SupplierService:
    """Suppliers are private to the user who created them"""

    def create_supplier(self, owner, data):
        if not data.get('name'):
            raise ValidationError('Missing required field: name')
        supplier = Supplier.objects.create(
            owner=owner,
            **{field: data.get(field) for field in SUPPLIER_FIELDS}
        )
        logger.info(f"Supplier {supplier.id} created by user {owner.id}")
        return supplier

    def get_supplier(self, supplier_id, owner):
        supplier = Supplier.objects.filter(id=supplier_id, owner=owner).first()
        if supplier is None:
            raise NotFound('Supplier not found')
        return supplier

    def list_suppliers(self, owner):
        return Supplier.objects.filter(owner=owner).order_by('name')

    def update_supplier(self, supplier_id, owner, data):
        supplier = self.get_supplier(supplier_id, owner)
        if 'name' in data and not data['name']:
            raise ValidationError('Supplier name cannot be empty')
        for field in SUPPLIER_FIELDS:
            if field in data:
                setattr(supplier, field, data[field])
        supplier.save()
        return supplier

    def delete_supplier(self, supplier_id, owner):
        supplier = self.get_supplier(supplier_id, owner)
        supplier.delete()
        logger.info(f"Supplier {supplier_id} deleted")
