from django.contrib import admin
from .models import Resource


@admin.register(Resource)
class ResourceAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'type', 'quantity', 'unit', 'cost', 'status', 'supplier', 'expected_delivery_date']
    list_filter = ['type', 'status']
    search_fields = ['name', 'project__name', 'supplier__name']
    ordering = ['-created_at']
