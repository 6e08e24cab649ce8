from django.urls import path
from .views import (
    document_list_create, document_trash, document_detail, document_restore,
    photo_list_create, photo_detail, file_download
)

urlpatterns = [
    # Document endpoints
    path('projects/<uuid:project_id>/documents/', document_list_create, name='document-list-create'),
    path('projects/<uuid:project_id>/documents/trash/', document_trash, name='document-trash'),
    path('documents/<uuid:pk>/', document_detail, name='document-detail'),
    path('documents/<uuid:pk>/restore/', document_restore, name='document-restore'),

    # Photo endpoints
    path('projects/<uuid:project_id>/photos/', photo_list_create, name='photo-list-create'),
    path('photos/<uuid:pk>/', photo_detail, name='photo-detail'),

    # Presigned file downloads
    path('files/<str:key>', file_download, name='file-download'),
]
