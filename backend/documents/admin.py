from django.contrib import admin
from .models import Document


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ['name', 'project', 'type', 'file_type', 'file_size', 'uploaded_by', 'uploaded_at', 'deleted_at']
    list_filter = ['type', 'uploaded_at', 'deleted_at']
    search_fields = ['name', 'project__name']
    readonly_fields = ['storage_url', 'thumbnail_url', 'file_size', 'uploaded_at']
    ordering = ['-uploaded_at']
