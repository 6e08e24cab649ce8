import logging

from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from backend.projects.services import ProjectService
from backend.tasks.services import TaskService
from .pdf_export import generate_budget_report
from .serializers import (
    BudgetSerializer, BudgetItemSerializer, BudgetAlertSerializer, CategorySummarySerializer
)
from .services import BudgetService
from .translations import PDF_TRANSLATIONS, DEFAULT_LANGUAGE

logger = logging.getLogger(__name__)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def project_budget(request, project_id):
    """Get the project's budget or create it"""
    ProjectService().get_project(project_id, request.user)
    service = BudgetService()
    if request.method == 'GET':
        return Response(BudgetSerializer(service.get_budget(project_id)).data)

    budget = service.create_budget(project_id)
    return Response(BudgetSerializer(service.get_budget_by_id(budget.id)).data, status=status.HTTP_201_CREATED)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def budget_item_create(request, pk):
    """Add an item to a budget"""
    serializer = BudgetItemSerializer(data=request.data)
    if serializer.is_valid():
        item = BudgetService().add_budget_item(pk, serializer.validated_data, owner=request.user)
        return Response(BudgetItemSerializer(item).data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def budget_item_detail(request, pk):
    """Update or delete a budget item"""
    service = BudgetService()
    item = service.get_budget_item(pk, owner=request.user)

    if request.method == 'DELETE':
        service.delete_budget_item(pk, owner=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = BudgetItemSerializer(item, data=request.data, partial=request.method == 'PATCH')
    if serializer.is_valid():
        item = service.update_budget_item(pk, serializer.validated_data, owner=request.user)
        return Response(BudgetItemSerializer(item).data)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def budget_alerts(request, pk):
    """Overspending alerts for a budget"""
    alerts = BudgetService().check_budget_alerts(pk, owner=request.user)
    return Response(BudgetAlertSerializer(alerts, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def budget_summary(request, pk):
    """Per-category totals for a budget"""
    service = BudgetService()
    service.get_budget_by_id(pk, owner=request.user)
    return Response(CategorySummarySerializer(service.get_category_summary(pk), many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def budget_export(request, pk):
    """Download the budget report as a PDF"""
    lang = request.query_params.get('lang', DEFAULT_LANGUAGE)
    if lang not in PDF_TRANSLATIONS:
        lang = DEFAULT_LANGUAGE

    service = BudgetService()
    budget = service.get_budget_by_id(pk, owner=request.user)
    tasks = TaskService().list_tasks(budget.project_id, {}).filter(price__isnull=False).order_by('created_at')
    pdf = generate_budget_report(budget, tasks, service.get_category_summary(pk), lang=lang)

    response = HttpResponse(pdf, content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="budget-report-{budget.project_id}-{lang}.pdf"'
    return response
