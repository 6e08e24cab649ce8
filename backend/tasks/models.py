import uuid
from decimal import Decimal

from django.db import models
from backend.core.models import User
from backend.projects.models import Project, Milestone


class Task(models.Model):
    """Unit of work on a project, optionally priced per unit"""
    STATUS_TODO = 'todo'
    STATUS_IN_PROGRESS = 'in_progress'
    STATUS_COMPLETED = 'completed'
    STATUS_BLOCKED = 'blocked'

    STATUS_CHOICES = [
        (STATUS_TODO, 'To Do'),
        (STATUS_IN_PROGRESS, 'In Progress'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_BLOCKED, 'Blocked'),
    ]

    PRIORITY_CHOICES = [
        ('low', 'Low'),
        ('medium', 'Medium'),
        ('high', 'High'),
        ('urgent', 'Urgent'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='tasks')
    milestone = models.ForeignKey(Milestone, on_delete=models.SET_NULL, null=True, blank=True, related_name='tasks')
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_TODO)
    priority = models.CharField(max_length=20, choices=PRIORITY_CHOICES, default='medium')
    assigned_to = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_tasks')
    due_date = models.DateField(blank=True, null=True)
    completed_date = models.DateField(blank=True, null=True)
    price = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True, help_text='Price per unit')
    amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('1.00'))
    unit = models.CharField(max_length=50, blank=True, null=True)
    actual_price = models.DecimalField(max_digits=14, decimal_places=2, blank=True, null=True, help_text='price x amount')
    notes = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    def calculate_actual_price(self):
        """Total cost of the task: price per unit times amount, None when unpriced"""
        if self.price is None:
            return None
        amount = self.amount if self.amount is not None else Decimal('1')
        return (Decimal(str(self.price)) * Decimal(str(amount))).quantize(Decimal('0.01'))

    def save(self, *args, **kwargs):
        if self.amount is None:
            self.amount = Decimal('1')
        self.actual_price = self.calculate_actual_price()
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and ('price' in update_fields or 'amount' in update_fields):
            kwargs['update_fields'] = set(update_fields) | {'actual_price'}
        super().save(*args, **kwargs)

    class Meta:
        db_table = 'tasks'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['project', 'status'], name='tasks_project_status_idx'),
        ]


class WorkItemTemplate(models.Model):
    """Reusable task blueprint; defaults are shared, custom ones belong to a user"""
    CATEGORY_CHOICES = [
        ('demolition', 'Demolition'),
        ('framing', 'Framing'),
        ('electrical', 'Electrical'),
        ('plumbing', 'Plumbing'),
        ('hvac', 'HVAC'),
        ('drywall', 'Drywall'),
        ('painting', 'Painting'),
        ('flooring', 'Flooring'),
        ('finishing', 'Finishing'),
        ('cleanup', 'Cleanup'),
        ('inspection', 'Inspection'),
        ('other', 'Other'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, null=True)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES)
    estimated_duration = models.IntegerField(help_text='Estimated duration in hours')
    default_price = models.DecimalField(max_digits=12, decimal_places=2, blank=True, null=True)
    unit = models.CharField(max_length=50, blank=True, null=True)
    is_default = models.BooleanField(default=False)
    owner = models.ForeignKey(User, on_delete=models.CASCADE, null=True, blank=True, related_name='work_item_templates')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.get_category_display()} - {self.name}"

    class Meta:
        db_table = 'work_item_templates'
        ordering = ['category', 'name']
