from django.contrib import admin
from .models import Task, WorkItemTemplate


@admin.register(Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'milestone', 'status', 'priority', 'due_date', 'price', 'amount', 'actual_price']
    list_filter = ['status', 'priority', 'due_date']
    search_fields = ['name', 'description', 'project__name']
    ordering = ['-created_at']
    readonly_fields = ['actual_price', 'completed_date', 'created_at', 'updated_at']


@admin.register(WorkItemTemplate)
class WorkItemTemplateAdmin(admin.ModelAdmin):
    list_display = ['name', 'category', 'estimated_duration', 'default_price', 'unit', 'is_default', 'owner']
    list_filter = ['category', 'is_default']
    search_fields = ['name', 'description']
    ordering = ['category', 'name']
