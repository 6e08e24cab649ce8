from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from backend.core.cache_utils import get_cached_work_items, cache_work_items
from backend.core.utils import parse_bool
from backend.projects.services import ProjectService
from .serializers import TaskSerializer, BulkTaskCreateSerializer, WorkItemTemplateSerializer
from .services import TaskService, WorkItemTemplateService


# Task views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def task_list_create(request, project_id):
    """List a project's tasks or create a new task"""
    ProjectService().get_project(project_id, request.user)
    service = TaskService()
    if request.method == 'GET':
        tasks = service.list_tasks(project_id, request.query_params)
        return Response(TaskSerializer(tasks, many=True).data)

    serializer = TaskSerializer(data=request.data)
    if serializer.is_valid():
        task = service.create_task(project_id, serializer.validated_data)
        return Response(TaskSerializer(task).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_bulk_create(request, project_id):
    """Create tasks from work item templates"""
    ProjectService().get_project(project_id, request.user)
    serializer = BulkTaskCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    tasks = TaskService().bulk_create_from_templates(
        project_id,
        serializer.validated_data['template_ids'],
        milestone_id=serializer.validated_data.get('milestone_id'),
        user=request.user,
    )
    return Response(TaskSerializer(tasks, many=True).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def task_overdue(request, project_id):
    """Tasks past their due date that are not completed"""
    ProjectService().get_project(project_id, request.user)
    tasks = TaskService().check_overdue_tasks(project_id)
    return Response(TaskSerializer(tasks, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def task_costs(request, project_id):
    """Total cost of the project's priced tasks"""
    ProjectService().get_project(project_id, request.user)
    total = TaskService().calculate_total_task_costs(project_id)
    return Response({'project_id': str(project_id), 'total_task_costs': total})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def task_detail(request, pk):
    """Retrieve, update or delete a task"""
    service = TaskService()
    task = service.get_task(pk, owner=request.user)

    if request.method == 'GET':
        return Response(TaskSerializer(task).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = TaskSerializer(task, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            task = service.update_task(pk, serializer.validated_data, owner=request.user)
            return Response(TaskSerializer(task).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        service.delete_task(pk, owner=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_add_note(request, pk):
    """Append a note to a task"""
    note = request.data.get('note')
    if not note:
        return Response({'error': 'Note is required'}, status=status.HTTP_400_BAD_REQUEST)
    task = TaskService().add_task_note(pk, note, owner=request.user)
    return Response(TaskSerializer(task).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_complete(request, pk):
    """Mark a task as completed today"""
    task = TaskService().complete_task(pk, owner=request.user)
    return Response(TaskSerializer(task).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_assign(request, pk):
    """Assign a task to a user"""
    user_id = request.data.get('user_id')
    if not user_id:
        return Response({'error': 'user_id is required'}, status=status.HTTP_400_BAD_REQUEST)
    task = TaskService().assign_task(pk, user_id, owner=request.user)
    return Response(TaskSerializer(task).data)


# Work item template views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def work_item_list_create(request):
    """List visible work item templates or create a custom one"""
    service = WorkItemTemplateService()
    if request.method == 'GET':
        category = request.query_params.get('category')
        grouped = parse_bool(request.query_params.get('grouped', 'false'))

        cached_data, cache_key = get_cached_work_items(request.user.id, f"{category or ''}:{grouped}")
        if cached_data is not None:
            return Response(cached_data)

        if grouped:
            data = {
                category_key: WorkItemTemplateSerializer(templates, many=True).data
                for category_key, templates in service.get_templates_by_category(request.user).items()
            }
        else:
            data = WorkItemTemplateSerializer(service.list_templates(request.user, category), many=True).data
        cache_work_items(cache_key, data)
        return Response(data)

    serializer = WorkItemTemplateSerializer(data=request.data)
    if serializer.is_valid():
        template = service.create_template(request.user, serializer.validated_data)
        return Response(WorkItemTemplateSerializer(template).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def work_item_detail(request, pk):
    """Retrieve, update or delete a work item template"""
    service = WorkItemTemplateService()
    template = service.get_template(pk, request.user)

    if request.method == 'GET':
        return Response(WorkItemTemplateSerializer(template).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = WorkItemTemplateSerializer(template, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            template = service.update_template(pk, request.user, serializer.validated_data)
            return Response(WorkItemTemplateSerializer(template).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        service.delete_template(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)
