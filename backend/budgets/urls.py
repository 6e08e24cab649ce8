from django.urls import path
from .views import (
    project_budget, budget_item_create, budget_item_detail,
    budget_alerts, budget_summary, budget_export
)

urlpatterns = [
    path('projects/<uuid:project_id>/budget/', project_budget, name='project-budget'),
    path('budgets/<uuid:pk>/items/', budget_item_create, name='budget-item-create'),
    path('budgets/<uuid:pk>/alerts/', budget_alerts, name='budget-alerts'),
    path('budgets/<uuid:pk>/summary/', budget_summary, name='budget-summary'),
    path('budgets/<uuid:pk>/export/', budget_export, name='budget-export'),
    path('budget-items/<uuid:pk>/', budget_item_detail, name='budget-item-detail'),
]
