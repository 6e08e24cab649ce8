import logging

from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes, parser_classes
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.permissions import IsAuthenticated, AllowAny
from rest_framework.response import Response
from backend.core.utils import parse_bool
from backend.projects.services import ProjectService, MilestoneService
from .serializers import (
    DocumentSerializer, DocumentDetailSerializer, DocumentUploadSerializer,
    PhotoUploadSerializer, PhotoUpdateSerializer
)
from .services import DocumentService, PhotoService
from .storage import FileStorage

logger = logging.getLogger(__name__)


# Document views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def document_list_create(request, project_id):
    """List or search a project's documents, or upload a new one"""
    ProjectService().get_project(project_id, request.user)
    service = DocumentService()
    if request.method == 'GET':
        query = request.query_params.get('q')
        if query is not None:
            documents = service.search_documents(project_id, query)
        else:
            documents = service.list_documents(project_id, request.query_params)
        return Response(DocumentSerializer(documents, many=True).data)

    serializer = DocumentUploadSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    document = service.upload_document(
        project_id,
        request.user,
        serializer.validated_data['file'],
        doc_type=serializer.validated_data['type'],
        metadata=serializer.validated_data.get('metadata'),
    )
    return Response(DocumentSerializer(document).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def document_trash(request, project_id):
    """Documents in the project's trash"""
    ProjectService().get_project(project_id, request.user)
    return Response(DocumentSerializer(DocumentService().get_trash(project_id), many=True).data)


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def document_detail(request, pk):
    """Retrieve a document with a download link, or delete it"""
    service = DocumentService()
    if request.method == 'GET':
        document = service.get_document(pk, owner=request.user)
        download_url = service.get_download_url(pk, owner=request.user)
        return Response(DocumentDetailSerializer(document, context={'download_url': download_url}).data)

    if parse_bool(request.query_params.get('permanent', 'false')):
        service.permanently_delete_document(pk, owner=request.user)
    else:
        service.delete_document(pk, owner=request.user)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def document_restore(request, pk):
    """Move a document out of the trash"""
    document = DocumentService().restore_document(pk, owner=request.user)
    return Response(DocumentSerializer(document).data)


# Photo views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
@parser_classes([MultiPartParser, FormParser])
def photo_list_create(request, project_id):
    """List a project's photos in capture order, or upload a batch"""
    ProjectService().get_project(project_id, request.user)
    service = PhotoService()
    if request.method == 'GET':
        return Response(DocumentSerializer(service.get_photos(project_id, request.query_params), many=True).data)

    serializer = PhotoUploadSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    metadata = {}
    if serializer.validated_data.get('caption'):
        metadata['caption'] = serializer.validated_data['caption']
    milestone_id = serializer.validated_data.get('milestone_id')
    if milestone_id:
        milestone = MilestoneService().get_milestone(milestone_id, owner=request.user)
        if milestone.project_id != project_id:
            return Response({'error': 'Milestone not found'}, status=status.HTTP_404_NOT_FOUND)
        metadata['associated_milestone_id'] = str(milestone_id)
    photos = service.upload_photos(project_id, request.user, serializer.validated_data['photos'], metadata)
    return Response(DocumentSerializer(photos, many=True).data, status=status.HTTP_201_CREATED)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
@parser_classes([JSONParser, MultiPartParser, FormParser])
def photo_detail(request, pk):
    """Update a photo's caption or milestone"""
    serializer = PhotoUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    service = PhotoService()
    photo = service.get_photo(pk, owner=request.user)
    if 'caption' in serializer.validated_data:
        photo = service.add_caption(pk, serializer.validated_data['caption'], owner=request.user)
    if 'milestone_id' in serializer.validated_data:
        photo = service.associate_with_milestone(pk, serializer.validated_data['milestone_id'], owner=request.user)
    return Response(DocumentSerializer(photo).data)


# File download
@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def file_download(request, key):
    """Serve a stored file for a valid presigned download link"""
    storage = FileStorage()
    operation = request.query_params.get('operation', 'download')
    token = request.query_params.get('token')
    expires = request.query_params.get('expires')
    if operation != 'download' or not storage.validate_presigned_url(key, token, expires):
        logger.warning(f"Rejected download of {key}: invalid or expired link")
        return Response({'error': 'Invalid or expired download link'}, status=status.HTTP_403_FORBIDDEN)

    metadata = storage.get_file_metadata(key)
    response = HttpResponse(storage.read_file(key), content_type=metadata['file_type'])
    response['Content-Length'] = metadata['file_size']
    response['Content-Disposition'] = f'inline; filename="{key}"'
    return response
