from django.urls import path
from .views import supplier_list_create, supplier_detail

urlpatterns = [
    # Supplier endpoints
    path('suppliers/', supplier_list_create, name='supplier-list-create'),
    path('suppliers/<uuid:pk>/', supplier_detail, name='supplier-detail'),
]
