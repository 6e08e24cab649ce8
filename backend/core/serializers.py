from rest_framework import serializers
from .models import User, Session


class UserSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name', 'phone', 'company', 'last_login_at', 'created_at', 'updated_at']
        read_only_fields = fields


class UserSummarySerializer(serializers.ModelSerializer):
    """Short user representation embedded in other payloads"""
    class Meta:
        model = User
        fields = ['id', 'email', 'first_name', 'last_name']
        read_only_fields = fields


class SessionSerializer(serializers.ModelSerializer):
    is_expired = serializers.BooleanField(read_only=True)

    class Meta:
        model = Session
        fields = ['id', 'user', 'expires_at', 'created_at', 'is_expired']
        read_only_fields = fields


class LogoutSerializer(serializers.Serializer):
    access_token = serializers.CharField(required=False, allow_blank=True)
    session_id = serializers.UUIDField(required=False, allow_null=True)
