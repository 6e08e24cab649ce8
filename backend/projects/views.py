from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from .serializers import ProjectSerializer, MilestoneSerializer, TimelineSerializer
from .services import ProjectService, MilestoneService


# Project views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def project_list_create(request):
    """List the user's projects or create a new project"""
    service = ProjectService()
    if request.method == 'GET':
        projects = service.list_projects(request.user, request.query_params)
        return Response(ProjectSerializer(projects, many=True).data)

    serializer = ProjectSerializer(data=request.data)
    if serializer.is_valid():
        project = service.create_project(request.user, serializer.validated_data)
        return Response(ProjectSerializer(project).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_search(request):
    """Search projects by name or client name"""
    term = request.query_params.get('q', '').strip()
    if not term:
        return Response({'error': 'Search query is required'}, status=status.HTTP_400_BAD_REQUEST)
    projects = ProjectService().search_projects(request.user, term)
    return Response(ProjectSerializer(projects, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def project_active(request):
    """Projects that are planned, running or on hold"""
    projects = ProjectService().get_active_projects(request.user)
    return Response(ProjectSerializer(projects, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def project_detail(request, pk):
    """Retrieve, update or delete a project"""
    service = ProjectService()
    project = service.get_project(pk, request.user)

    if request.method == 'GET':
        return Response(ProjectSerializer(project).data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = ProjectSerializer(project, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            project = service.update_project(pk, request.user, serializer.validated_data)
            return Response(ProjectSerializer(project).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        service.delete_project(pk, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def project_archive(request, pk):
    """Archive a project"""
    project = ProjectService().archive_project(pk, request.user)
    return Response(ProjectSerializer(project).data)


# Milestone views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def milestone_list_create(request, project_id):
    """List a project's milestones or add a milestone"""
    ProjectService().get_project(project_id, request.user)
    service = MilestoneService()
    if request.method == 'GET':
        milestones = service.list_milestones(project_id)
        return Response(MilestoneSerializer(milestones, many=True).data)

    serializer = MilestoneSerializer(data=request.data)
    if serializer.is_valid():
        milestone = service.create_milestone(project_id, serializer.validated_data)
        return Response(MilestoneSerializer(milestone).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def milestone_timeline(request, project_id):
    """Milestones with the project's date span and completion percentage"""
    ProjectService().get_project(project_id, request.user)
    timeline = MilestoneService().get_timeline(project_id)
    return Response(TimelineSerializer(timeline).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def milestone_overdue(request, project_id):
    """Milestones past their target date that are not completed"""
    ProjectService().get_project(project_id, request.user)
    milestones = MilestoneService().check_overdue_milestones(project_id)
    return Response(MilestoneSerializer(milestones, many=True).data)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def milestone_detail(request, pk):
    """Retrieve, update or delete a milestone"""
    service = MilestoneService()
    milestone = service.get_milestone(pk, owner=request.user)

    if request.method == 'GET':
        data = MilestoneSerializer(milestone).data
        data['progress'] = service.calculate_milestone_progress(pk)
        return Response(data)
    elif request.method in ('PUT', 'PATCH'):
        serializer = MilestoneSerializer(milestone, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            milestone = service.update_milestone(pk, serializer.validated_data, owner=request.user)
            return Response(MilestoneSerializer(milestone).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    else:  # DELETE
        service.delete_milestone(pk, owner=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def milestone_complete(request, pk):
    """Mark a milestone as completed today"""
    milestone = MilestoneService().complete_milestone(pk, owner=request.user)
    return Response(MilestoneSerializer(milestone).data)
