"""
Tests for tasks and work item templates
"""
from datetime import timedelta
from decimal import Decimal
from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.budgets.models import Budget
from backend.core.exceptions import NotFound, PermissionDenied, ValidationError
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.tasks.default_templates import DEFAULT_WORK_ITEM_TEMPLATES
from backend.tasks.models import Task, WorkItemTemplate
from backend.tasks.services import TaskService, WorkItemTemplateService


class TaskPricingTests(TestCase):
    """actual_price is derived from price and amount on save"""

    def setUp(self):
        self.project = TestDataFactory.create_project(TestDataFactory.create_user())

    def test_actual_price_is_price_times_amount(self):
        """Price per unit times amount gives the actual price"""
        task = TestDataFactory.create_task(self.project, price=Decimal('12.50'), amount=Decimal('4'))
        self.assertEqual(task.actual_price, Decimal('50.00'))

    def test_unpriced_task_has_no_actual_price(self):
        """Tasks without a price have no actual price"""
        task = TestDataFactory.create_task(self.project)
        self.assertIsNone(task.actual_price)

    def test_update_fields_include_actual_price(self):
        """Saving only price still persists the recomputed actual price"""
        task = TestDataFactory.create_task(self.project, price=Decimal('10'), amount=Decimal('2'))
        task.price = Decimal('15')
        task.save(update_fields=['price'])
        task.refresh_from_db()
        self.assertEqual(task.actual_price, Decimal('30.00'))


class TaskServiceTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.budget = TestDataFactory.create_budget(self.project)
        self.service = TaskService()

    def _budget(self):
        return Budget.objects.get(id=self.budget.id)

    def test_create_requires_name(self):
        """Tasks need a name"""
        with self.assertRaises(ValidationError) as ctx:
            self.service.create_task(self.project.id, {'price': '10'})
        self.assertEqual(ctx.exception.message, 'Missing required field: name')

    def test_priced_task_updates_budget(self):
        """Creating, repricing and deleting priced tasks keeps the budget in step"""
        task = self.service.create_task(self.project.id, {'name': 'Paint walls', 'price': '20', 'amount': '3'})
        self.assertEqual(self._budget().total_actual_from_tasks, Decimal('60.00'))

        self.service.update_task(task.id, {'amount': '5'})
        self.assertEqual(self._budget().total_actual_from_tasks, Decimal('100.00'))

        self.service.delete_task(task.id)
        self.assertEqual(self._budget().total_actual, Decimal('0.00'))

    def test_negative_price_rejected(self):
        """Negative prices are rejected"""
        with self.assertRaises(ValidationError) as ctx:
            self.service.create_task(self.project.id, {'name': 'Paint', 'price': '-1'})
        self.assertEqual(ctx.exception.message, 'price must be a non-negative number')

    def test_status_transitions_track_completed_date(self):
        """Completing sets the completed date; reopening clears it"""
        task = self.service.create_task(self.project.id, {'name': 'Sand floor'})
        task = self.service.update_task(task.id, {'status': Task.STATUS_COMPLETED})
        self.assertEqual(task.completed_date, timezone.localdate())
        task = self.service.update_task(task.id, {'status': Task.STATUS_IN_PROGRESS})
        self.assertIsNone(task.completed_date)

    def test_milestone_must_belong_to_project(self):
        """A task's milestone must be in the same project"""
        other_project = TestDataFactory.create_project(self.user)
        milestone = TestDataFactory.create_milestone(other_project)
        with self.assertRaises(ValidationError) as ctx:
            self.service.create_task(self.project.id, {'name': 'Wire', 'milestone': milestone.id})
        self.assertEqual(ctx.exception.message, 'Milestone not found in this project')

    def test_notes_and_assignment(self):
        """Notes are appended in order and tasks can be assigned"""
        task = TestDataFactory.create_task(self.project)
        task = self.service.add_task_note(task.id, 'Bought primer')
        task = self.service.add_task_note(task.id, 'Primed north wall')
        self.assertEqual(task.notes, ['Bought primer', 'Primed north wall'])
        with self.assertRaises(ValidationError):
            self.service.add_task_note(task.id, '  ')

        worker = TestDataFactory.create_user()
        task = self.service.assign_task(task.id, worker.id)
        self.assertEqual(task.assigned_to, worker)

    def test_list_filters(self):
        """Tasks filter by status list and milestone; bad values are rejected"""
        milestone = TestDataFactory.create_milestone(self.project)
        blocked = TestDataFactory.create_task(self.project, status=Task.STATUS_BLOCKED, milestone=milestone)
        TestDataFactory.create_task(self.project, status=Task.STATUS_TODO)

        self.assertEqual([t.id for t in self.service.list_tasks(self.project.id, {'status': 'blocked,completed'})], [blocked.id])
        self.assertEqual([t.id for t in self.service.list_tasks(self.project.id, {'milestone': str(milestone.id)})], [blocked.id])
        with self.assertRaises(ValidationError):
            self.service.list_tasks(self.project.id, {'priority': 'someday'})

    def test_overdue_and_total_costs(self):
        """Overdue tasks exclude completed ones and costs sum priced tasks"""
        today = timezone.localdate()
        late = TestDataFactory.create_task(self.project, due_date=today - timedelta(days=1), price=Decimal('5'))
        TestDataFactory.create_task(self.project, due_date=today - timedelta(days=1), status=Task.STATUS_COMPLETED)
        TestDataFactory.create_task(self.project, due_date=today + timedelta(days=1), price=Decimal('7'), amount=Decimal('2'))
        self.assertEqual([t.id for t in self.service.check_overdue_tasks(self.project.id)], [late.id])
        self.assertEqual(self.service.calculate_total_task_costs(self.project.id), Decimal('19.00'))

    def test_bulk_create_from_templates(self):
        """Each template becomes a task priced at its default price"""
        first = TestDataFactory.create_template(is_default=True, default_price=Decimal('100'))
        second = TestDataFactory.create_template(owner=self.user, default_price=Decimal('40'))
        tasks = self.service.bulk_create_from_templates(self.project.id, [first.id, second.id], user=self.user)
        self.assertEqual([t.name for t in tasks], [first.name, second.name])
        self.assertEqual(self._budget().total_actual_from_tasks, Decimal('140.00'))

    def test_bulk_create_with_invisible_template(self):
        """Another user's custom template is treated as missing"""
        foreign = TestDataFactory.create_template(owner=TestDataFactory.create_user())
        with self.assertRaises(NotFound) as ctx:
            self.service.bulk_create_from_templates(self.project.id, [foreign.id], user=self.user)
        self.assertEqual(ctx.exception.message, 'One or more templates not found')


class WorkItemTemplateServiceTests(TestCase):

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.service = WorkItemTemplateService()

    def test_visibility(self):
        """Users see defaults and their own templates"""
        default = TestDataFactory.create_template(is_default=True)
        mine = TestDataFactory.create_template(owner=self.user)
        TestDataFactory.create_template(owner=TestDataFactory.create_user())
        self.assertEqual({t.id for t in self.service.list_templates(self.user)}, {default.id, mine.id})

    def test_defaults_are_read_only(self):
        """Default templates cannot be changed or deleted"""
        default = TestDataFactory.create_template(is_default=True)
        with self.assertRaises(PermissionDenied) as ctx:
            self.service.update_template(default.id, self.user, {'name': 'Mine'})
        self.assertEqual(ctx.exception.message, 'Cannot update default templates')
        with self.assertRaises(PermissionDenied):
            self.service.delete_template(default.id, self.user)

    def test_create_validates_category(self):
        """Unknown categories are rejected"""
        with self.assertRaises(ValidationError):
            self.service.create_template(self.user, {'name': 'Grout', 'category': 'tiles', 'estimated_duration': 2})

    def test_grouped_by_category(self):
        """Grouping lists every category, empty ones included"""
        template = TestDataFactory.create_template(owner=self.user, category='plumbing')
        grouped = self.service.get_templates_by_category(self.user)
        self.assertEqual(grouped['plumbing'], [template])
        self.assertEqual(grouped['painting'], [])

    def test_seed_is_idempotent(self):
        """Seeding twice creates the defaults only once"""
        self.assertEqual(self.service.seed_default_templates(), len(DEFAULT_WORK_ITEM_TEMPLATES))
        self.assertEqual(self.service.seed_default_templates(), 0)
        self.assertEqual(WorkItemTemplate.objects.filter(is_default=True).count(), len(DEFAULT_WORK_ITEM_TEMPLATES))

    def test_seed_command(self):
        """The seed command reports how many templates it created"""
        out = StringIO()
        call_command('seed_work_items', stdout=out)
        self.assertIn(f'Created {len(DEFAULT_WORK_ITEM_TEMPLATES)} default work item templates', out.getvalue())


class TaskAPITests(TestCase):

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_and_list_tasks(self):
        """Created tasks carry their actual price and count toward costs"""
        response = self.client.post(f'/api/v1/projects/{self.project.id}/tasks/', {
            'name': 'Lay tiles', 'price': '30.00', 'amount': '12', 'unit': 'm2',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['actual_price'], '360.00')

        response = self.client.get(f'/api/v1/projects/{self.project.id}/tasks/')
        self.assertEqual(len(response.data), 1)

        response = self.client.get(f'/api/v1/projects/{self.project.id}/tasks/costs/')
        self.assertEqual(response.data['total_task_costs'], Decimal('360.00'))

    def test_tasks_of_foreign_project(self):
        """Tasks of another user's project return 404"""
        project = TestDataFactory.create_project(TestDataFactory.create_user())
        response = self.client.get(f'/api/v1/projects/{project.id}/tasks/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_note_complete_and_delete(self):
        """Empty notes are rejected; tasks can be completed and deleted"""
        task = TestDataFactory.create_task(self.project)
        response = self.client.post(f'/api/v1/tasks/{task.id}/notes/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Note is required')

        response = self.client.post(f'/api/v1/tasks/{task.id}/complete/')
        self.assertEqual(response.data['status'], 'completed')

        response = self.client.delete(f'/api/v1/tasks/{task.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_bulk_create(self):
        """Bulk creation copies the template's default price"""
        template = TestDataFactory.create_template(is_default=True, default_price=Decimal('75'))
        response = self.client.post(f'/api/v1/projects/{self.project.id}/tasks/bulk/', {
            'template_ids': [str(template.id)],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data[0]['price'], '75.00')

    def test_work_item_listing_is_cached_and_invalidated(self):
        """New custom templates show up despite the cached listing"""
        TestDataFactory.create_template(is_default=True)
        response = self.client.get('/api/v1/work-items/')
        self.assertEqual(len(response.data), 1)

        response = self.client.post('/api/v1/work-items/', {
            'name': 'Seal grout', 'category': 'finishing', 'estimated_duration': 2,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get('/api/v1/work-items/')
        self.assertEqual(len(response.data), 2)

    def test_grouped_work_items(self):
        """grouped=true returns templates keyed by category"""
        TestDataFactory.create_template(is_default=True, category='electrical')
        response = self.client.get('/api/v1/work-items/', {'grouped': 'true'})
        self.assertEqual(len(response.data['electrical']), 1)

    def test_cannot_delete_default_template(self):
        """Deleting a default template returns 403"""
        template = TestDataFactory.create_template(is_default=True)
        response = self.client.delete(f'/api/v1/work-items/{template.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Cannot delete default templates')
