from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User, Session


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ['email', 'first_name', 'last_name', 'company', 'is_active', 'is_staff', 'last_login_at']
    list_filter = ['is_active', 'is_staff', 'is_superuser', 'date_joined']
    search_fields = ['username', 'email', 'first_name', 'last_name', 'company', 'idp_user_id']
    ordering = ['email']
    fieldsets = BaseUserAdmin.fieldsets + (
        ('Identity Provider', {'fields': ('idp_user_id', 'phone', 'company', 'last_login_at')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Additional Info', {'fields': ('email', 'phone', 'company')}),
    )
    readonly_fields = ['idp_user_id', 'last_login_at']


@admin.register(Session)
class SessionAdmin(admin.ModelAdmin):
    list_display = ['id', 'user', 'expires_at', 'created_at']
    list_filter = ['expires_at', 'created_at']
    search_fields = ['user__email']
    ordering = ['-created_at']
    readonly_fields = ['user', 'access_token', 'refresh_token', 'expires_at', 'created_at']
