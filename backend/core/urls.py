from django.urls import path
from .views import (
    auth_login, auth_callback, auth_refresh, auth_logout, auth_me,
    session_list, session_detail
)

urlpatterns = [
    # Auth endpoints (Keycloak OAuth flow)
    path('auth/login/', auth_login, name='auth-login'),
    path('auth/callback/', auth_callback, name='auth-callback'),
    path('auth/refresh/', auth_refresh, name='auth-refresh'),
    path('auth/logout/', auth_logout, name='auth-logout'),
    path('auth/me/', auth_me, name='auth-me'),

    # Session endpoints
    path('auth/sessions/', session_list, name='session-list'),
    path('auth/sessions/<uuid:pk>/', session_detail, name='session-detail'),
]
