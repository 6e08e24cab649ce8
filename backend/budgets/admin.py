from django.contrib import admin
from .models import Budget, BudgetItem


class BudgetItemInline(admin.TabularInline):
    model = BudgetItem
    extra = 0


@admin.register(Budget)
class BudgetAdmin(admin.ModelAdmin):
    list_display = ['project', 'total_estimated', 'total_actual', 'total_actual_from_items', 'total_actual_from_tasks']
    search_fields = ['project__name']
    readonly_fields = ['total_estimated', 'total_actual', 'total_actual_from_items', 'total_actual_from_tasks',
                       'created_at', 'updated_at']
    inlines = [BudgetItemInline]


@admin.register(BudgetItem)
class BudgetItemAdmin(admin.ModelAdmin):
    list_display = ['name', 'budget', 'category', 'estimated_cost', 'actual_cost']
    list_filter = ['category']
    search_fields = ['name', 'budget__project__name']
