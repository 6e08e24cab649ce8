import uuid
from decimal import Decimal

from django.db import models
from backend.projects.models import Project


class Budget(models.Model):
    """Per-project cost totals, derived from budget items and priced tasks"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.OneToOneField(Project, on_delete=models.CASCADE, related_name='budget')
    total_estimated = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_actual = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_actual_from_items = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    total_actual_from_tasks = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Budget - {self.project.name}"

    def get_variance(self):
        """Difference between actual and estimated totals"""
        return self.total_actual - self.total_estimated

    class Meta:
        db_table = 'budgets'


class BudgetItem(models.Model):
    """Estimated and actual cost line of a budget"""
    CATEGORY_CHOICES = [
        ('labor', 'Labor'),
        ('materials', 'Materials'),
        ('equipment', 'Equipment'),
        ('subcontractors', 'Subcontractors'),
        ('permits', 'Permits'),
        ('contingency', 'Contingency'),
        ('other', 'Other'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    budget = models.ForeignKey(Budget, on_delete=models.CASCADE, related_name='items')
    name = models.CharField(max_length=255)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
    estimated_cost = models.DecimalField(max_digits=12, decimal_places=2)
    actual_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.category})"

    def get_variance(self):
        return self.actual_cost - self.estimated_cost

    class Meta:
        db_table = 'budget_items'
        ordering = ['created_at']
