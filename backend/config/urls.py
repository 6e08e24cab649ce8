"""
URL configuration for the renovation backend.

Every app mounts its routes under /api/v1/.
"""
from django.contrib import admin
from django.urls import path, include, re_path
from django.conf import settings
from django.views.static import serve

admin.site.site_header = "Renovator Admin Panel"
admin.site.site_title = "Renovator Admin Portal"
admin.site.index_title = "Renovation project management"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backend.core.urls')),
    path('api/v1/', include('backend.parties.urls')),
    path('api/v1/', include('backend.projects.urls')),
    path('api/v1/', include('backend.tasks.urls')),
    path('api/v1/', include('backend.budgets.urls')),
    path('api/v1/', include('backend.resources.urls')),
    path('api/v1/', include('backend.documents.urls')),
    re_path(r'^static/(?P<path>.*)$', serve, {'document_root': settings.STATIC_ROOT}),
]
