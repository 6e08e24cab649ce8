"""
Test utilities and factories for creating test data
"""
import random
import string
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from backend.budgets.models import Budget, BudgetItem
from backend.core.models import Session
from backend.parties.models import Supplier
from backend.projects.models import Project, Milestone
from backend.resources.models import Resource
from backend.tasks.models import Task, WorkItemTemplate

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', **extra):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username.lower()}@test.com'
        return User.objects.create_user(username=username, email=email, password=password, **extra)

    @staticmethod
    def create_session(user, access_token=None, refresh_token=None, expires_in=3600):
        """Create a login session expiring `expires_in` seconds from now"""
        return Session.objects.create(
            user=user,
            access_token=access_token or f'access_{TestDataFactory.random_string(20)}',
            refresh_token=refresh_token or f'refresh_{TestDataFactory.random_string(20)}',
            expires_at=timezone.now() + timedelta(seconds=expires_in),
        )

    @staticmethod
    def create_project(owner, name=None, status=Project.STATUS_PLANNING, start_date=None, estimated_end_date=None):
        """Create a test project"""
        if not name:
            name = f'Project_{TestDataFactory.random_string(6)}'
        start_date = start_date or timezone.localdate()
        return Project.objects.create(
            owner=owner,
            name=name,
            client_name=f'Client {name}',
            client_email='client@test.com',
            start_date=start_date,
            estimated_end_date=estimated_end_date or start_date + timedelta(days=60),
            status=status,
        )

    @staticmethod
    def create_milestone(project, name=None, target_date=None, status=Milestone.STATUS_NOT_STARTED, order_index=0):
        """Create a test milestone"""
        return Milestone.objects.create(
            project=project,
            name=name or f'Milestone_{TestDataFactory.random_string(6)}',
            target_date=target_date or timezone.localdate() + timedelta(days=14),
            status=status,
            order_index=order_index,
        )

    @staticmethod
    def create_task(project, name=None, price=None, amount=None, status=Task.STATUS_TODO, milestone=None, due_date=None):
        """Create a test task"""
        return Task.objects.create(
            project=project,
            milestone=milestone,
            name=name or f'Task_{TestDataFactory.random_string(6)}',
            status=status,
            price=price,
            amount=amount if amount is not None else Decimal('1.00'),
            due_date=due_date,
        )

    @staticmethod
    def create_template(name=None, category='painting', owner=None, is_default=False, default_price=None):
        """Create a work item template; custom templates belong to an owner"""
        return WorkItemTemplate.objects.create(
            name=name or f'Template_{TestDataFactory.random_string(6)}',
            category=category,
            estimated_duration=8,
            default_price=default_price,
            unit='m2',
            is_default=is_default,
            owner=owner,
        )

    @staticmethod
    def create_budget(project):
        """Create an empty budget for a project"""
        return Budget.objects.create(project=project)

    @staticmethod
    def create_budget_item(budget, name=None, category='materials', estimated_cost=None, actual_cost=None):
        """Create a budget item without recalculating totals"""
        return BudgetItem.objects.create(
            budget=budget,
            name=name or f'Item_{TestDataFactory.random_string(6)}',
            category=category,
            estimated_cost=estimated_cost if estimated_cost is not None else Decimal('100.00'),
            actual_cost=actual_cost if actual_cost is not None else Decimal('0.00'),
        )

    @staticmethod
    def create_supplier(owner, name=None, email=None):
        """Create a test supplier"""
        if not name:
            name = f'Supplier_{TestDataFactory.random_string(6)}'
        return Supplier.objects.create(
            owner=owner,
            name=name,
            email=email or f'{name.lower()}@test.com',
            phone=f'+380{random.randint(100000000, 999999999)}',
        )

    @staticmethod
    def create_resource(project, name=None, resource_type='material', status=Resource.STATUS_NEEDED,
                        quantity=None, cost=None, supplier=None, expected_delivery_date=None):
        """Create a test resource"""
        return Resource.objects.create(
            project=project,
            type=resource_type,
            name=name or f'Resource_{TestDataFactory.random_string(6)}',
            quantity=quantity if quantity is not None else Decimal('10.00'),
            unit='pcs',
            cost=cost if cost is not None else Decimal('50.00'),
            status=status,
            supplier=supplier,
            expected_delivery_date=expected_delivery_date,
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user, bypassing token introspection"""
        self.force_authenticate(user=user)
        return self

    def logout(self):
        """Remove authentication"""
        self.handler._force_user = None
        self.handler._force_token = None
        self.credentials()
