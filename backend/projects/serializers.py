from rest_framework import serializers
from .models import Project, Milestone


class ProjectSerializer(serializers.ModelSerializer):
    class Meta:
        model = Project
        fields = ['id', 'name', 'client_name', 'client_email', 'client_phone', 'description',
                  'start_date', 'estimated_end_date', 'actual_end_date', 'status', 'owner',
                  'created_at', 'updated_at']
        read_only_fields = ['id', 'owner', 'created_at', 'updated_at']

    def validate(self, attrs):
        start_date = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        estimated_end_date = attrs.get('estimated_end_date', getattr(self.instance, 'estimated_end_date', None))
        if start_date and estimated_end_date and estimated_end_date < start_date:
            raise serializers.ValidationError({'estimated_end_date': 'Estimated end date must be after start date'})
        return attrs


class MilestoneSerializer(serializers.ModelSerializer):
    class Meta:
        model = Milestone
        fields = ['id', 'project', 'name', 'description', 'target_date', 'completed_date',
                  'status', 'order_index', 'created_at', 'updated_at']
        read_only_fields = ['id', 'project', 'created_at', 'updated_at']


class TimelineSerializer(serializers.Serializer):
    milestones = MilestoneSerializer(many=True)
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    progress = serializers.IntegerField()
