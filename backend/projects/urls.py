from django.urls import path
from .views import (
    project_list_create, project_search, project_active, project_detail, project_archive,
    milestone_list_create, milestone_timeline, milestone_overdue, milestone_detail, milestone_complete
)

urlpatterns = [
    # Project endpoints
    path('projects/', project_list_create, name='project-list-create'),
    path('projects/search/', project_search, name='project-search'),
    path('projects/active/', project_active, name='project-active'),
    path('projects/<uuid:pk>/', project_detail, name='project-detail'),
    path('projects/<uuid:pk>/archive/', project_archive, name='project-archive'),

    # Milestone endpoints
    path('projects/<uuid:project_id>/milestones/', milestone_list_create, name='milestone-list-create'),
    path('projects/<uuid:project_id>/milestones/timeline/', milestone_timeline, name='milestone-timeline'),
    path('projects/<uuid:project_id>/milestones/overdue/', milestone_overdue, name='milestone-overdue'),
    path('milestones/<uuid:pk>/', milestone_detail, name='milestone-detail'),
    path('milestones/<uuid:pk>/complete/', milestone_complete, name='milestone-complete'),
]
