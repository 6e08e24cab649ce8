"""
Tests for suppliers
"""
from django.test import TestCase
from rest_framework import status
from backend.core.exceptions import NotFound, ValidationError
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.parties.models import Supplier
from backend.parties.services import SupplierService


class SupplierServiceTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.service = SupplierService()

    def test_create_requires_name(self):
        """Suppliers need a name"""
        with self.assertRaises(ValidationError) as ctx:
            self.service.create_supplier(self.user, {'email': 'x@test.com'})
        self.assertEqual(ctx.exception.message, 'Missing required field: name')

    def test_suppliers_are_private(self):
        """Other users cannot see or change a supplier"""
        supplier = self.service.create_supplier(self.user, {'name': 'Tile Depot'})
        other = TestDataFactory.create_user()
        self.assertEqual(list(self.service.list_suppliers(other)), [])
        with self.assertRaises(NotFound):
            self.service.update_supplier(supplier.id, other, {'name': 'Mine now'})

    def test_update_rejects_empty_name(self):
        """A supplier name cannot be blanked"""
        supplier = self.service.create_supplier(self.user, {'name': 'Tile Depot'})
        with self.assertRaises(ValidationError):
            self.service.update_supplier(supplier.id, self.user, {'name': ''})


class SupplierAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_and_list(self):
        """Created suppliers belong to the current user"""
        response = self.client.post('/api/v1/suppliers/', {'name': 'Paint Co', 'phone': '+380501112233'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['owner'], self.user.id)

        response = self.client.get('/api/v1/suppliers/')
        self.assertEqual([s['name'] for s in response.data], ['Paint Co'])

    def test_patch_and_delete(self):
        """PATCH updates single fields and DELETE removes the supplier"""
        supplier = TestDataFactory.create_supplier(self.user, name='Lumber')
        response = self.client.patch(f'/api/v1/suppliers/{supplier.id}/', {'contact_name': 'Oksana'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['contact_name'], 'Oksana')

        response = self.client.delete(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Supplier.objects.filter(id=supplier.id).exists())

    def test_other_users_supplier_is_not_found(self):
        """Suppliers owned by someone else return 404"""
        supplier = TestDataFactory.create_supplier(TestDataFactory.create_user())
        response = self.client.get(f'/api/v1/suppliers/{supplier.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'Supplier not found')

    def test_requires_authentication(self):
        """Anonymous requests are rejected"""
        self.client.logout()
        response = self.client.get('/api/v1/suppliers/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
