"""
Task and work item template services.

Every change to a task's price or amount is followed by a recalculation of
the project budget, so budget totals always include task costs.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Q, Sum
from django.utils import timezone

from backend.budgets.services import BudgetService
from backend.core.cache_utils import invalidate_work_items_cache
from backend.core.exceptions import NotFound, PermissionDenied, ValidationError
from backend.core.models import User
from backend.core.utils import apply_filters, parse_date, parse_decimal, parse_list
from backend.projects.models import Milestone
from .default_templates import DEFAULT_WORK_ITEM_TEMPLATES
from .filters import TaskFilter
from .models import Task, WorkItemTemplate

logger = logging.getLogger(__name__)

TASK_FIELDS = ['name', 'description', 'status', 'priority', 'due_date', 'price', 'amount', 'unit', 'notes']
TEMPLATE_FIELDS = ['name', 'description', 'category', 'estimated_duration', 'default_price', 'unit']


def _choice_values(choices):
    return [choice[0] for choice in choices]


class TaskService:

    def __init__(self, budget_service=None):
        self.budgets = budget_service or BudgetService()

    @transaction.atomic
    def create_task(self, project_id, data):
        if not data.get('name'):
            raise ValidationError('Missing required field: name')

        task = Task(project_id=project_id)
        self._apply(task, data)
        if task.status == Task.STATUS_COMPLETED and not task.completed_date:
            task.completed_date = timezone.localdate()
        task.save()
        logger.info(f"Task {task.id} created for project {project_id}")

        if task.price is not None:
            self.budgets.recalculate_budget_totals_for_project(project_id)
        return task

    def get_task(self, task_id, owner=None):
        queryset = Task.objects.select_related('project', 'milestone', 'assigned_to')
        if owner is not None:
            queryset = queryset.filter(project__owner=owner)
        task = queryset.filter(id=task_id).first()
        if task is None:
            raise NotFound('Task not found')
        return task

    def list_tasks(self, project_id, filters=None):
        filters = filters or {}
        for param, choices in (('status', Task.STATUS_CHOICES), ('priority', Task.PRIORITY_CHOICES)):
            invalid = [v for v in parse_list(filters.get(param)) if v not in _choice_values(choices)]
            if invalid:
                raise ValidationError(f'Invalid {param} values: {", ".join(invalid)}')

        queryset = Task.objects.filter(project_id=project_id).select_related('milestone', 'assigned_to')
        return apply_filters(TaskFilter, filters, queryset).order_by('-created_at')

    @transaction.atomic
    def update_task(self, task_id, data, owner=None):
        task = self.get_task(task_id, owner)
        previous_status = task.status
        previous_cost = task.actual_price

        if 'name' in data and not data['name']:
            raise ValidationError('Task name cannot be empty')
        self._apply(task, data)

        if task.status == Task.STATUS_COMPLETED and previous_status != Task.STATUS_COMPLETED:
            task.completed_date = timezone.localdate()
        elif task.status != Task.STATUS_COMPLETED and previous_status == Task.STATUS_COMPLETED:
            task.completed_date = None
        task.save()

        if 'price' in data or 'amount' in data or task.actual_price != previous_cost:
            self.budgets.recalculate_budget_totals_for_project(task.project_id)
        return task

    @transaction.atomic
    def delete_task(self, task_id, owner=None):
        task = self.get_task(task_id, owner)
        project_id = task.project_id
        had_cost = task.actual_price is not None
        task.delete()
        logger.info(f"Task {task_id} deleted")
        if had_cost:
            self.budgets.recalculate_budget_totals_for_project(project_id)

    def assign_task(self, task_id, user_id, owner=None):
        task = self.get_task(task_id, owner)
        task.assigned_to = self._resolve_user(user_id)
        task.save(update_fields=['assigned_to', 'updated_at'])
        return task

    def add_task_note(self, task_id, note, owner=None):
        if not note or not str(note).strip():
            raise ValidationError('Note is required')
        task = self.get_task(task_id, owner)
        task.notes = list(task.notes or []) + [str(note)]
        task.save(update_fields=['notes', 'updated_at'])
        return task

    def complete_task(self, task_id, owner=None):
        task = self.get_task(task_id, owner)
        task.status = Task.STATUS_COMPLETED
        task.completed_date = timezone.localdate()
        task.save(update_fields=['status', 'completed_date', 'updated_at'])
        logger.info(f"Task {task.id} completed")
        return task

    def calculate_total_task_costs(self, project_id):
        """Sum of actual prices of all priced tasks in the project"""
        total = Task.objects.filter(project_id=project_id, actual_price__isnull=False).aggregate(
            total=Sum('actual_price')
        )['total']
        return total or Decimal('0')

    def check_overdue_tasks(self, project_id):
        """Tasks past their due date that are not completed"""
        return Task.objects.filter(
            project_id=project_id,
            due_date__lt=timezone.localdate(),
        ).exclude(status=Task.STATUS_COMPLETED).order_by('due_date')

    @transaction.atomic
    def bulk_create_from_templates(self, project_id, template_ids, milestone_id=None, user=None):
        """Create one task per work item template"""
        template_ids = [str(t) for t in (template_ids or [])]
        if not template_ids:
            raise ValidationError('template_ids must be a non-empty list')

        templates = WorkItemTemplate.objects.filter(id__in=template_ids)
        if user is not None:
            templates = templates.filter(Q(is_default=True) | Q(owner=user))
        templates_by_id = {str(t.id): t for t in templates}
        if len(templates_by_id) != len(set(template_ids)):
            raise NotFound('One or more templates not found')

        milestone = self._resolve_milestone(project_id, milestone_id) if milestone_id else None
        tasks = []
        for template_id in template_ids:
            template = templates_by_id[template_id]
            task = Task(
                project_id=project_id,
                milestone=milestone,
                name=template.name,
                description=template.description,
                price=template.default_price,
                amount=Decimal('1'),
                unit=template.unit,
            )
            task.save()
            tasks.append(task)

        logger.info(f"Created {len(tasks)} tasks from templates for project {project_id}")
        self.budgets.recalculate_budget_totals_for_project(project_id)
        return tasks

    def _apply(self, task, data):
        for field in TASK_FIELDS:
            if field not in data:
                continue
            value = data[field]
            if field == 'status' and value not in _choice_values(Task.STATUS_CHOICES):
                raise ValidationError(f'Invalid status. Must be one of: {", ".join(_choice_values(Task.STATUS_CHOICES))}')
            if field == 'priority' and value not in _choice_values(Task.PRIORITY_CHOICES):
                raise ValidationError(f'Invalid priority. Must be one of: {", ".join(_choice_values(Task.PRIORITY_CHOICES))}')
            if field == 'due_date':
                value = parse_date(value, field)
            if field in ('price', 'amount'):
                value = parse_decimal(value, field)
                if value is not None and value < 0:
                    raise ValidationError(f'{field} must be a non-negative number')
            if field == 'notes':
                value = list(value or [])
            setattr(task, field, value)

        if 'milestone' in data or 'milestone_id' in data:
            value = data.get('milestone', data.get('milestone_id'))
            task.milestone = self._resolve_milestone(task.project_id, value) if value else None
        if 'assigned_to' in data:
            value = data['assigned_to']
            task.assigned_to = self._resolve_user(value) if value else None

    @staticmethod
    def _resolve_milestone(project_id, value):
        milestone_id = value.pk if isinstance(value, Milestone) else value
        milestone = Milestone.objects.filter(id=milestone_id, project_id=project_id).first()
        if milestone is None:
            raise ValidationError('Milestone not found in this project')
        return milestone

    @staticmethod
    def _resolve_user(value):
        if isinstance(value, User):
            return value
        user = User.objects.filter(id=value).first()
        if user is None:
            raise NotFound('User not found')
        return user


class WorkItemTemplateService:
    """Default templates are visible to everyone; custom ones only to their owner"""

    def _visible(self, user):
        return WorkItemTemplate.objects.filter(Q(is_default=True) | Q(owner=user))

    def list_templates(self, user, category=None):
        queryset = self._visible(user)
        if category:
            self._validate_category(category)
            queryset = queryset.filter(category=category)
        return queryset.order_by('category', 'name')

    def get_template(self, template_id, user):
        template = self._visible(user).filter(id=template_id).first()
        if template is None:
            raise NotFound('Work item template not found')
        return template

    def create_template(self, user, data):
        missing = [f for f in ('name', 'category', 'estimated_duration') if data.get(f) in (None, '')]
        if missing:
            raise ValidationError(f'Missing required fields: {", ".join(missing)}')
        self._validate_category(data['category'])
        if int(data['estimated_duration']) < 0:
            raise ValidationError('estimated_duration must be a non-negative number')

        template = WorkItemTemplate.objects.create(
            owner=user,
            is_default=False,
            **{field: data.get(field) for field in TEMPLATE_FIELDS}
        )
        invalidate_work_items_cache()
        logger.info(f"Work item template {template.id} created by user {user.id}")
        return template

    def update_template(self, template_id, user, data):
        template = self.get_template(template_id, user)
        if template.is_default:
            raise PermissionDenied('Cannot update default templates')
        if 'category' in data:
            self._validate_category(data['category'])
        if 'name' in data and not data['name']:
            raise ValidationError('Template name cannot be empty')
        for field in TEMPLATE_FIELDS:
            if field in data:
                setattr(template, field, data[field])
        template.save()
        invalidate_work_items_cache()
        return template

    def delete_template(self, template_id, user):
        template = self.get_template(template_id, user)
        if template.is_default:
            raise PermissionDenied('Cannot delete default templates')
        template.delete()
        invalidate_work_items_cache()
        logger.info(f"Work item template {template_id} deleted")

    def get_templates_by_category(self, user):
        grouped = {category: [] for category, _ in WorkItemTemplate.CATEGORY_CHOICES}
        for template in self.list_templates(user):
            grouped[template.category].append(template)
        return grouped

    @transaction.atomic
    def seed_default_templates(self):
        """Insert the built-in templates unless defaults already exist; returns how many were created"""
        if WorkItemTemplate.objects.filter(is_default=True).exists():
            logger.info("Default work item templates already exist, skipping seed")
            return 0
        WorkItemTemplate.objects.bulk_create([
            WorkItemTemplate(is_default=True, owner=None, **template)
            for template in DEFAULT_WORK_ITEM_TEMPLATES
        ])
        invalidate_work_items_cache()
        logger.info(f"Seeded {len(DEFAULT_WORK_ITEM_TEMPLATES)} default work item templates")
        return len(DEFAULT_WORK_ITEM_TEMPLATES)

    @staticmethod
    def _validate_category(category):
        valid = _choice_values(WorkItemTemplate.CATEGORY_CHOICES)
        if category not in valid:
            raise ValidationError(f'Invalid category. Must be one of: {", ".join(valid)}')
