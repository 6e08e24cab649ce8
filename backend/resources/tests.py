"""
Tests for resources: procurement lifecycle, overdue deliveries and grouping
"""
from datetime import timedelta
from decimal import Decimal

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.exceptions import NotFound, ValidationError
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.resources.models import Resource
from backend.resources.services import ResourceService


class ResourceServiceTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.service = ResourceService()
        self.today = timezone.localdate()

    def test_create_forces_needed_status(self):
        """New resources always start as needed"""
        resource = self.service.create_resource(self.project.id, {
            'type': 'material', 'name': 'Drywall sheets', 'quantity': Decimal('40'),
            'unit': 'pcs', 'cost': Decimal('12.50'), 'status': 'received',
        })
        self.assertEqual(resource.status, Resource.STATUS_NEEDED)

    def test_create_requires_fields(self):
        """type, name, quantity and cost are required"""
        with self.assertRaises(ValidationError) as ctx:
            self.service.create_resource(self.project.id, {'name': 'Drywall'})
        self.assertIn('type', ctx.exception.message)
        self.assertIn('quantity', ctx.exception.message)

    def test_create_rejects_non_positive_quantity(self):
        """Quantity must be greater than zero"""
        with self.assertRaises(ValidationError):
            self.service.create_resource(self.project.id, {
                'type': 'material', 'name': 'Screws', 'quantity': Decimal('0'), 'cost': Decimal('1'),
            })

    def test_create_rejects_negative_cost(self):
        """Cost may be zero but not negative"""
        resource = self.service.create_resource(self.project.id, {
            'type': 'equipment', 'name': 'Borrowed ladder', 'quantity': Decimal('1'), 'cost': Decimal('0'),
        })
        self.assertEqual(resource.cost, Decimal('0'))
        with self.assertRaises(ValidationError):
            self.service.create_resource(self.project.id, {
                'type': 'equipment', 'name': 'Ladder', 'quantity': Decimal('1'), 'cost': Decimal('-1'),
            })

    def test_create_with_foreign_supplier_fails(self):
        """Suppliers must belong to the acting user"""
        other_supplier = TestDataFactory.create_supplier(TestDataFactory.create_user())
        with self.assertRaises(NotFound):
            self.service.create_resource(self.project.id, {
                'type': 'material', 'name': 'Paint', 'quantity': Decimal('2'), 'cost': Decimal('30'),
                'supplier': other_supplier.id,
            }, owner=self.user)

    def test_mark_as_ordered_and_received(self):
        """A resource moves from needed to ordered to received"""
        resource = TestDataFactory.create_resource(self.project)
        resource = self.service.mark_as_ordered(resource.id, self.today, self.today + timedelta(days=5))
        self.assertEqual(resource.status, Resource.STATUS_ORDERED)
        self.assertEqual(resource.expected_delivery_date, self.today + timedelta(days=5))

        resource = self.service.mark_as_received(resource.id, self.today + timedelta(days=4))
        self.assertEqual(resource.status, Resource.STATUS_RECEIVED)
        self.assertEqual(resource.actual_delivery_date, self.today + timedelta(days=4))

    def test_mark_as_ordered_rejects_delivery_before_order(self):
        """Expected delivery cannot precede the order date"""
        resource = TestDataFactory.create_resource(self.project)
        with self.assertRaises(ValidationError):
            self.service.mark_as_ordered(resource.id, self.today, self.today - timedelta(days=1))

    def test_mark_as_ordered_same_day_delivery(self):
        """Delivery on the order date is allowed"""
        resource = TestDataFactory.create_resource(self.project)
        resource = self.service.mark_as_ordered(resource.id, self.today, self.today)
        self.assertEqual(resource.status, Resource.STATUS_ORDERED)

    def test_check_overdue_deliveries(self):
        """Only ordered resources more than two days late are overdue, oldest first"""
        late = TestDataFactory.create_resource(self.project, name='late', status=Resource.STATUS_ORDERED,
                                               expected_delivery_date=self.today - timedelta(days=3))
        later = TestDataFactory.create_resource(self.project, name='later', status=Resource.STATUS_ORDERED,
                                                expected_delivery_date=self.today - timedelta(days=10))
        TestDataFactory.create_resource(self.project, name='grace', status=Resource.STATUS_ORDERED,
                                        expected_delivery_date=self.today - timedelta(days=2))
        TestDataFactory.create_resource(self.project, name='received', status=Resource.STATUS_RECEIVED,
                                        expected_delivery_date=self.today - timedelta(days=10))
        TestDataFactory.create_resource(self.project, name='no date', status=Resource.STATUS_ORDERED)

        overdue = list(self.service.check_overdue_deliveries(self.project.id))
        self.assertEqual([r.id for r in overdue], [later.id, late.id])

    def test_group_resources_by_status(self):
        """Grouping returns every status, including empty ones"""
        TestDataFactory.create_resource(self.project)
        TestDataFactory.create_resource(self.project, status=Resource.STATUS_ORDERED)
        grouped = self.service.group_resources_by_status(self.project.id)
        self.assertEqual(set(grouped), {'needed', 'ordered', 'received', 'cancelled'})
        self.assertEqual(len(grouped['needed']), 1)
        self.assertEqual(len(grouped['ordered']), 1)
        self.assertEqual(grouped['cancelled'], [])

    def test_list_filters(self):
        """Resources can be filtered by status, type and supplier"""
        supplier = TestDataFactory.create_supplier(self.user)
        TestDataFactory.create_resource(self.project, resource_type='equipment', supplier=supplier)
        TestDataFactory.create_resource(self.project, resource_type='material', status=Resource.STATUS_CANCELLED)
        self.assertEqual(self.service.list_resources(self.project.id, {'type': 'equipment'}).count(), 1)
        self.assertEqual(self.service.list_resources(self.project.id, {'status': 'cancelled'}).count(), 1)
        self.assertEqual(self.service.list_resources(self.project.id, {'supplier': str(supplier.id)}).count(), 1)
        with self.assertRaises(ValidationError):
            self.service.list_resources(self.project.id, {'status': 'lost'})


class ResourceAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.today = timezone.localdate()

    def test_create_and_list(self):
        """POST creates a needed resource and GET lists it"""
        supplier = TestDataFactory.create_supplier(self.user)
        response = self.client.post(f'/api/v1/projects/{self.project.id}/resources/', {
            'type': 'material', 'name': 'Oak boards', 'quantity': '25', 'unit': 'm2',
            'cost': '1500.00', 'supplier': str(supplier.id),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'needed')
        self.assertEqual(response.data['supplier_name'], supplier.name)

        response = self.client.get(f'/api/v1/projects/{self.project.id}/resources/')
        self.assertEqual(len(response.data), 1)

    def test_grouped_listing(self):
        """?grouped=true returns resources keyed by status"""
        TestDataFactory.create_resource(self.project)
        response = self.client.get(f'/api/v1/projects/{self.project.id}/resources/', {'grouped': 'true'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['needed']), 1)
        self.assertEqual(response.data['received'], [])

    def test_order_and_receive_endpoints(self):
        """Order and receive endpoints move the resource along"""
        resource = TestDataFactory.create_resource(self.project)
        response = self.client.post(f'/api/v1/resources/{resource.id}/order/', {
            'order_date': self.today.isoformat(),
            'expected_delivery_date': (self.today + timedelta(days=3)).isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'ordered')

        response = self.client.post(f'/api/v1/resources/{resource.id}/receive/', {
            'actual_delivery_date': self.today.isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'received')

    def test_order_with_bad_dates(self):
        """Ordering with delivery before the order date returns 400"""
        resource = TestDataFactory.create_resource(self.project)
        response = self.client.post(f'/api/v1/resources/{resource.id}/order/', {
            'order_date': self.today.isoformat(),
            'expected_delivery_date': (self.today - timedelta(days=3)).isoformat(),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

    def test_overdue_endpoint(self):
        """The overdue endpoint lists late deliveries"""
        TestDataFactory.create_resource(self.project, status=Resource.STATUS_ORDERED,
                                        expected_delivery_date=self.today - timedelta(days=7))
        response = self.client.get(f'/api/v1/projects/{self.project.id}/resources/overdue/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_other_users_resource_not_found(self):
        """Resources in another user's project are hidden"""
        other_project = TestDataFactory.create_project(TestDataFactory.create_user())
        resource = TestDataFactory.create_resource(other_project)
        response = self.client.get(f'/api/v1/resources/{resource.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.delete(f'/api/v1/resources/{resource.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_update_and_delete(self):
        """PATCH updates fields and DELETE removes the resource"""
        resource = TestDataFactory.create_resource(self.project)
        response = self.client.patch(f'/api/v1/resources/{resource.id}/', {'quantity': '12'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data['quantity']), Decimal('12'))

        response = self.client.delete(f'/api/v1/resources/{resource.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Resource.objects.filter(id=resource.id).exists())
