from django.contrib import admin
from .models import Project, Milestone


class MilestoneInline(admin.TabularInline):
    model = Milestone
    extra = 0
    fields = ['name', 'target_date', 'status', 'completed_date', 'order_index']


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ['name', 'client_name', 'owner', 'status', 'start_date', 'estimated_end_date', 'created_at']
    list_filter = ['status', 'start_date', 'created_at']
    search_fields = ['name', 'client_name', 'client_email', 'owner__email']
    ordering = ['-created_at']
    readonly_fields = ['created_at', 'updated_at']
    inlines = [MilestoneInline]


@admin.register(Milestone)
class MilestoneAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'target_date', 'status', 'completed_date', 'order_index']
    list_filter = ['status', 'target_date']
    search_fields = ['name', 'project__name']
    ordering = ['target_date', 'order_index']
