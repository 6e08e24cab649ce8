from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from .serializers import SupplierSerializer
from .services import SupplierService


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def supplier_list_create(request):
    """List the user's suppliers or create a new supplier"""
    service = SupplierService()
    if request.method == 'GET':
        serializer = SupplierSerializer(service.list_suppliers(request.user), many=True)
        return Response(serializer.data)

    serializer = SupplierSerializer(data=request.data)
    if serializer.is_valid():
        supplier = service.create_supplier(request.user, serializer.validated_data)
        return Response(SupplierSerializer(supplier).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def supplier_detail(request, pk):
    """Retrieve, update or delete a supplier"""
    service = SupplierService()
    supplier = service.get_supplier(pk, request.user)

    if request.method == 'GET':
        return Response(SupplierSerializer(supplier).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = SupplierSerializer(supplier, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            supplier = service.update_supplier(pk, request.user, serializer.validated_data)
            return Response(SupplierSerializer(supplier).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        service.delete_supplier(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)
