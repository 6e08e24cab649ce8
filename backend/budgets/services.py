"""
Budget aggregation and alerting.

A budget's totals are derived values:

    total_estimated         = sum of item.estimated_cost
    total_actual_from_items = sum of item.actual_cost
    total_actual_from_tasks = sum of task.actual_price over priced project tasks
    total_actual            = total_actual_from_items + total_actual_from_tasks

They are recomputed after every budget item mutation and every task price
change, inside the caller's transaction.
"""
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Sum

from backend.core.exceptions import Conflict, NotFound, ValidationError
from backend.core.utils import parse_decimal
from backend.tasks.models import Task
from .models import Budget, BudgetItem

logger = logging.getLogger(__name__)

WARNING_THRESHOLD = Decimal('10')
CRITICAL_THRESHOLD = Decimal('20')

ITEM_FIELDS = ['name', 'category', 'estimated_cost', 'actual_cost', 'notes']
ZERO = Decimal('0.00')


class BudgetService:

    @transaction.atomic
    def create_budget(self, project_id):
        if Budget.objects.filter(project_id=project_id).exists():
            raise Conflict('Budget already exists for this project')
        budget = Budget.objects.create(project_id=project_id)
        logger.info(f"Budget {budget.id} created for project {project_id}")
        # Tasks priced before the budget existed still count
        return self.recalculate_budget_totals(budget.id)

    def get_budget(self, project_id):
        budget = Budget.objects.select_related('project').prefetch_related('items').filter(project_id=project_id).first()
        if budget is None:
            raise NotFound('Budget not found')
        return budget

    def get_budget_by_id(self, budget_id, owner=None):
        queryset = Budget.objects.select_related('project').prefetch_related('items')
        if owner is not None:
            queryset = queryset.filter(project__owner=owner)
        budget = queryset.filter(id=budget_id).first()
        if budget is None:
            raise NotFound('Budget not found')
        return budget

    def get_budget_item(self, item_id, owner=None):
        queryset = BudgetItem.objects.select_related('budget', 'budget__project')
        if owner is not None:
            queryset = queryset.filter(budget__project__owner=owner)
        item = queryset.filter(id=item_id).first()
        if item is None:
            raise NotFound('Budget item not found')
        return item

    @transaction.atomic
    def add_budget_item(self, budget_id, data, owner=None):
        budget = self.get_budget_by_id(budget_id, owner)
        missing = [f for f in ('name', 'category', 'estimated_cost') if data.get(f) in (None, '')]
        if missing:
            raise ValidationError('Missing required fields: name, category, estimated_cost')

        item = BudgetItem(budget=budget)
        self._apply(item, data)
        item.save()
        logger.info(f"Budget item {item.id} added to budget {budget.id}")
        self.recalculate_budget_totals(budget.id)
        return item

    @transaction.atomic
    def update_budget_item(self, item_id, data, owner=None):
        item = self.get_budget_item(item_id, owner)
        if 'name' in data and not data['name']:
            raise ValidationError('Budget item name cannot be empty')
        self._apply(item, data)
        item.save()
        self.recalculate_budget_totals(item.budget_id)
        return item

    @transaction.atomic
    def delete_budget_item(self, item_id, owner=None):
        item = self.get_budget_item(item_id, owner)
        budget_id = item.budget_id
        item.delete()
        logger.info(f"Budget item {item_id} deleted from budget {budget_id}")
        self.recalculate_budget_totals(budget_id)

    @transaction.atomic
    def recalculate_budget_totals(self, budget_id):
        """Recompute and persist the derived totals of a budget"""
        budget = Budget.objects.select_for_update().get(id=budget_id)

        item_totals = BudgetItem.objects.filter(budget_id=budget_id).aggregate(
            estimated=Sum('estimated_cost'),
            actual=Sum('actual_cost'),
        )
        task_total = Task.objects.filter(
            project_id=budget.project_id,
            actual_price__isnull=False,
        ).aggregate(total=Sum('actual_price'))['total']

        budget.total_estimated = item_totals['estimated'] or ZERO
        budget.total_actual_from_items = item_totals['actual'] or ZERO
        budget.total_actual_from_tasks = task_total or ZERO
        budget.total_actual = budget.total_actual_from_items + budget.total_actual_from_tasks
        budget.save(update_fields=[
            'total_estimated', 'total_actual', 'total_actual_from_items',
            'total_actual_from_tasks', 'updated_at',
        ])
        logger.debug(
            f"Budget {budget.id} totals: estimated={budget.total_estimated} actual={budget.total_actual} "
            f"(items={budget.total_actual_from_items}, tasks={budget.total_actual_from_tasks})"
        )
        return budget

    def recalculate_budget_totals_for_project(self, project_id):
        """Recalculate the project's budget, if it has one"""
        budget_id = Budget.objects.filter(project_id=project_id).values_list('id', flat=True).first()
        if budget_id is None:
            return None
        return self.recalculate_budget_totals(budget_id)

    def check_budget_alerts(self, budget_id, owner=None):
        """Classify how far actual spending exceeds the estimate"""
        budget = self.get_budget_by_id(budget_id, owner)
        alerts = []
        if budget.total_estimated <= 0:
            return alerts

        variance = (budget.total_actual - budget.total_estimated) / budget.total_estimated * 100
        if variance > CRITICAL_THRESHOLD:
            alert_type = 'critical'
        elif variance > WARNING_THRESHOLD:
            alert_type = 'warning'
        else:
            return alerts

        alerts.append({
            'type': alert_type,
            'message': f'Budget exceeded by {variance:.1f}%',
            'variance_percentage': float(round(variance, 2)),
            'total_estimated': budget.total_estimated,
            'total_actual': budget.total_actual,
        })
        logger.info(f"Budget {budget.id} {alert_type} alert: variance {variance:.1f}%")
        return alerts

    def get_category_summary(self, budget_id):
        """Estimated, actual and variance per item category, plus a row for priced tasks"""
        budget = self.get_budget_by_id(budget_id)
        rows = (
            BudgetItem.objects.filter(budget_id=budget_id)
            .order_by()
            .values('category')
            .annotate(estimated=Sum('estimated_cost'), actual=Sum('actual_cost'))
        )
        by_category = {row['category']: row for row in rows}

        summary = []
        for category, _ in BudgetItem.CATEGORY_CHOICES:
            row = by_category.get(category)
            if row is None:
                continue
            estimated = row['estimated'] or ZERO
            actual = row['actual'] or ZERO
            summary.append({
                'category': category,
                'estimated': estimated,
                'actual': actual,
                'variance': actual - estimated,
            })

        if budget.total_actual_from_tasks:
            summary.append({
                'category': 'tasks',
                'estimated': ZERO,
                'actual': budget.total_actual_from_tasks,
                'variance': budget.total_actual_from_tasks,
            })
        return summary

    def _apply(self, item, data):
        for field in ITEM_FIELDS:
            if field not in data:
                continue
            value = data[field]
            if field == 'category':
                valid = [choice[0] for choice in BudgetItem.CATEGORY_CHOICES]
                if value not in valid:
                    raise ValidationError(f'Invalid category. Must be one of: {", ".join(valid)}')
            if field in ('estimated_cost', 'actual_cost'):
                value = parse_decimal(value, field)
                if value is None:
                    value = ZERO if field == 'actual_cost' else value
                if value is None or value < 0:
                    raise ValidationError(f'{field} must be a non-negative number')
            setattr(item, field, value)
