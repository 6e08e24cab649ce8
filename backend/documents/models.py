import uuid

from django.db import models
from backend.core.models import User
from backend.projects.models import Project


class Document(models.Model):
    """Uploaded project file; photos are documents of type photo"""
    TYPE_CONTRACT = 'contract'
    TYPE_INVOICE = 'invoice'
    TYPE_RECEIPT = 'receipt'
    TYPE_PHOTO = 'photo'
    TYPE_PERMIT = 'permit'
    TYPE_WARRANTY = 'warranty'
    TYPE_OTHER = 'other'

    TYPE_CHOICES = [
        (TYPE_CONTRACT, 'Contract'),
        (TYPE_INVOICE, 'Invoice'),
        (TYPE_RECEIPT, 'Receipt'),
        (TYPE_PHOTO, 'Photo'),
        (TYPE_PERMIT, 'Permit'),
        (TYPE_WARRANTY, 'Warranty'),
        (TYPE_OTHER, 'Other'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name='documents')
    name = models.CharField(max_length=255)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_OTHER)
    file_type = models.CharField(max_length=100)
    file_size = models.BigIntegerField()
    storage_url = models.CharField(max_length=500)
    thumbnail_url = models.CharField(max_length=500, blank=True, null=True)
    uploaded_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, related_name='documents')
    uploaded_at = models.DateTimeField(auto_now_add=True)
    deleted_at = models.DateTimeField(blank=True, null=True)
    metadata = models.JSONField(default=dict, blank=True)

    def __str__(self):
        return self.name

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    class Meta:
        db_table = 'documents'
        ordering = ['-uploaded_at']
        indexes = [
            models.Index(fields=['project', 'type'], name='documents_project_type_idx'),
            models.Index(fields=['deleted_at'], name='documents_deleted_at_idx'),
        ]
