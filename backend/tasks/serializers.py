from rest_framework import serializers
from backend.core.models import User
from backend.projects.models import Milestone
from .models import Task, WorkItemTemplate


class TaskSerializer(serializers.ModelSerializer):
    milestone = serializers.PrimaryKeyRelatedField(queryset=Milestone.objects.all(), allow_null=True, required=False)
    assigned_to = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), allow_null=True, required=False)
    milestone_name = serializers.CharField(source='milestone.name', read_only=True, allow_null=True)
    assigned_to_email = serializers.CharField(source='assigned_to.email', read_only=True, allow_null=True)
    notes = serializers.ListField(child=serializers.CharField(), required=False)

    class Meta:
        model = Task
        fields = ['id', 'project', 'milestone', 'milestone_name', 'name', 'description', 'status', 'priority',
                  'assigned_to', 'assigned_to_email', 'due_date', 'completed_date',
                  'price', 'amount', 'unit', 'actual_price', 'notes', 'created_at', 'updated_at']
        read_only_fields = ['id', 'project', 'completed_date', 'actual_price', 'created_at', 'updated_at']
        extra_kwargs = {
            'price': {'min_value': 0},
            'amount': {'min_value': 0},
        }


class BulkTaskCreateSerializer(serializers.Serializer):
    template_ids = serializers.ListField(child=serializers.UUIDField(), allow_empty=False)
    milestone_id = serializers.UUIDField(required=False, allow_null=True)


class WorkItemTemplateSerializer(serializers.ModelSerializer):
    class Meta:
        model = WorkItemTemplate
        fields = ['id', 'name', 'description', 'category', 'estimated_duration', 'default_price', 'unit',
                  'is_default', 'owner', 'created_at', 'updated_at']
        read_only_fields = ['id', 'is_default', 'owner', 'created_at', 'updated_at']
        extra_kwargs = {
            'estimated_duration': {'min_value': 0},
            'default_price': {'min_value': 0},
        }
