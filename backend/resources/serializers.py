from rest_framework import serializers
from backend.parties.models import Supplier
from .models import Resource


class ResourceSerializer(serializers.ModelSerializer):
    supplier = serializers.PrimaryKeyRelatedField(queryset=Supplier.objects.all(), allow_null=True, required=False)
    supplier_name = serializers.CharField(source='supplier.name', read_only=True, allow_null=True)

    class Meta:
        model = Resource
        fields = ['id', 'project', 'type', 'name', 'quantity', 'unit', 'cost', 'status',
                  'supplier', 'supplier_name', 'order_date', 'expected_delivery_date',
                  'actual_delivery_date', 'notes', 'created_at', 'updated_at']
        read_only_fields = ['id', 'project', 'created_at', 'updated_at']


class MarkOrderedSerializer(serializers.Serializer):
    order_date = serializers.DateField()
    expected_delivery_date = serializers.DateField()


class MarkReceivedSerializer(serializers.Serializer):
    actual_delivery_date = serializers.DateField()
