from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from backend.core.utils import parse_bool
from backend.projects.services import ProjectService
from .serializers import ResourceSerializer, MarkOrderedSerializer, MarkReceivedSerializer
from .services import ResourceService


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def resource_list_create(request, project_id):
    """List a project's resources, optionally grouped by status, or create one"""
    ProjectService().get_project(project_id, request.user)
    service = ResourceService()
    if request.method == 'GET':
        if parse_bool(request.query_params.get('grouped', 'false')):
            grouped = service.group_resources_by_status(project_id)
            return Response({
                key: ResourceSerializer(resources, many=True).data
                for key, resources in grouped.items()
            })
        resources = service.list_resources(project_id, request.query_params)
        return Response(ResourceSerializer(resources, many=True).data)

    serializer = ResourceSerializer(data=request.data)
    if serializer.is_valid():
        resource = service.create_resource(project_id, serializer.validated_data, owner=request.user)
        return Response(ResourceSerializer(resource).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def resource_overdue(request, project_id):
    """Ordered resources with late deliveries"""
    ProjectService().get_project(project_id, request.user)
    resources = ResourceService().check_overdue_deliveries(project_id)
    return Response(ResourceSerializer(resources, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def resource_detail(request, pk):
    """Retrieve, update or delete a resource"""
    service = ResourceService()
    resource = service.get_resource(pk, owner=request.user)

    if request.method == 'GET':
        return Response(ResourceSerializer(resource).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ResourceSerializer(resource, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            resource = service.update_resource(pk, serializer.validated_data, owner=request.user)
            return Response(ResourceSerializer(resource).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        service.delete_resource(pk, owner=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def resource_order(request, pk):
    serializer = MarkOrderedSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    resource = ResourceService().mark_as_ordered(
        pk,
        serializer.validated_data['order_date'],
        serializer.validated_data['expected_delivery_date'],
        owner=request.user,
    )
    return Response(ResourceSerializer(resource).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def resource_receive(request, pk):
    serializer = MarkReceivedSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    resource = ResourceService().mark_as_received(
        pk, serializer.validated_data['actual_delivery_date'], owner=request.user
    )
    return Response(ResourceSerializer(resource).data)
