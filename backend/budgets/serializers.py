from rest_framework import serializers
from .models import Budget, BudgetItem


class BudgetItemSerializer(serializers.ModelSerializer):
    variance = serializers.SerializerMethodField()

    class Meta:
        model = BudgetItem
        fields = ['id', 'budget', 'name', 'category', 'estimated_cost', 'actual_cost', 'variance',
                  'notes', 'created_at', 'updated_at']
        read_only_fields = ['id', 'budget', 'created_at', 'updated_at']
        extra_kwargs = {
            'estimated_cost': {'min_value': 0},
            'actual_cost': {'min_value': 0},
        }

    def get_variance(self, obj):
        return str(obj.get_variance())


class BudgetSerializer(serializers.ModelSerializer):
    items = BudgetItemSerializer(many=True, read_only=True)
    variance = serializers.SerializerMethodField()

    class Meta:
        model = Budget
        fields = ['id', 'project', 'total_estimated', 'total_actual', 'total_actual_from_items',
                  'total_actual_from_tasks', 'variance', 'items', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_variance(self, obj):
        return str(obj.get_variance())


class BudgetAlertSerializer(serializers.Serializer):
    type = serializers.CharField()
    message = serializers.CharField()
    variance_percentage = serializers.FloatField()
    total_estimated = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_actual = serializers.DecimalField(max_digits=14, decimal_places=2)


class CategorySummarySerializer(serializers.Serializer):
    category = serializers.CharField()
    estimated = serializers.DecimalField(max_digits=14, decimal_places=2)
    actual = serializers.DecimalField(max_digits=14, decimal_places=2)
    variance = serializers.DecimalField(max_digits=14, decimal_places=2)
