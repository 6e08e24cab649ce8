from django.urls import path
from .views import (
    task_list_create, task_bulk_create, task_overdue, task_costs,
    task_detail, task_add_note, task_complete, task_assign,
    work_item_list_create, work_item_detail
)

urlpatterns = [
    # Project task endpoints
    path('projects/<uuid:project_id>/tasks/', task_list_create, name='task-list-create'),
    path('projects/<uuid:project_id>/tasks/bulk/', task_bulk_create, name='task-bulk-create'),
    path('projects/<uuid:project_id>/tasks/overdue/', task_overdue, name='task-overdue'),
    path('projects/<uuid:project_id>/tasks/costs/', task_costs, name='task-costs'),

    # Task endpoints
    path('tasks/<uuid:pk>/', task_detail, name='task-detail'),
    path('tasks/<uuid:pk>/notes/', task_add_note, name='task-add-note'),
    path('tasks/<uuid:pk>/complete/', task_complete, name='task-complete'),
    path('tasks/<uuid:pk>/assign/', task_assign, name='task-assign'),

    # Work item template endpoints
    path('work-items/', work_item_list_create, name='work-item-list-create'),
    path('work-items/<uuid:pk>/', work_item_detail, name='work-item-detail'),
]
