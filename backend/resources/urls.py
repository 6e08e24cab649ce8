from django.urls import path
from .views import resource_list_create, resource_overdue, resource_detail, resource_order, resource_receive

urlpatterns = [
    path('projects/<uuid:project_id>/resources/', resource_list_create, name='resource-list-create'),
    path('projects/<uuid:project_id>/resources/overdue/', resource_overdue, name='resource-overdue'),
    path('resources/<uuid:pk>/', resource_detail, name='resource-detail'),
    path('resources/<uuid:pk>/order/', resource_order, name='resource-order'),
    path('resources/<uuid:pk>/receive/', resource_receive, name='resource-receive'),
]
