import logging

from django.db import IntegrityError
from rest_framework import status
from rest_framework.decorators import api_view, authentication_classes, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from .exceptions import AuthenticationError, NotFound
from .serializers import UserSerializer, UserSummarySerializer, SessionSerializer, LogoutSerializer
from .services import AuthService, SessionService

logger = logging.getLogger(__name__)


def _default_redirect_uri(request):
    return request.build_absolute_uri('/api/v1/auth/callback/')


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def auth_login(request):
    """Return the identity provider URL the client should open to log in"""
    redirect_uri = request.query_params.get('redirect_uri') or _default_redirect_uri(request)
    state = request.query_params.get('state')
    authorization_url = AuthService().get_authorization_url(redirect_uri, state)
    return Response({'authorization_url': authorization_url})


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def auth_callback(request):
    """OAuth callback: exchange the code, sync the user and open a session"""
    code = request.query_params.get('code')
    redirect_uri = request.query_params.get('redirect_uri') or _default_redirect_uri(request)
    if not code:
        return Response({'error': 'Authorization code is required'}, status=status.HTTP_400_BAD_REQUEST)

    auth_service = AuthService()
    try:
        tokens = auth_service.exchange_code_for_tokens(code, redirect_uri)
        user_info = auth_service.get_user_info(tokens.access_token)
        user = auth_service.create_or_update_user(user_info)
        session = auth_service.create_session(user, tokens)
    except (AuthenticationError, KeyError, IntegrityError) as e:
        logger.error(f"OAuth callback failed: {e}")
        return Response({'error': 'Authentication failed'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response({
        'access_token': tokens.access_token,
        'refresh_token': tokens.refresh_token,
        'expires_in': tokens.expires_in,
        'user': UserSummarySerializer(user).data,
        'session_id': str(session.id),
    })


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def auth_refresh(request):
    """Refresh the access token and update the stored session"""
    refresh_token = request.data.get('refresh_token')
    if not refresh_token:
        return Response({'error': 'Refresh token is required'}, status=status.HTTP_400_BAD_REQUEST)

    session_service = SessionService()
    try:
        tokens = AuthService(session_service=session_service).refresh_access_token(refresh_token)
    except AuthenticationError as e:
        logger.warning(f"Token refresh failed: {e.message}")
        return Response({'error': 'Failed to refresh token'}, status=status.HTTP_401_UNAUTHORIZED)

    session = session_service.get_session_by_refresh_token(refresh_token)
    if session:
        session_service.update_session(session.id, tokens)

    return Response({
        'access_token': tokens.access_token,
        'refresh_token': tokens.refresh_token,
        'expires_in': tokens.expires_in,
    })


@api_view(['POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def auth_logout(request):
    """Revoke the access token and drop the session"""
    serializer = LogoutSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    access_token = serializer.validated_data.get('access_token')
    session_id = serializer.validated_data.get('session_id')
    auth_service = AuthService()
    try:
        if access_token:
            auth_service.revoke_token(access_token)
        if session_id:
            auth_service.delete_session(session_id)
    except AuthenticationError as e:
        logger.error(f"Logout failed: {e.message}")
        return Response({'error': 'Logout failed'}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return Response({'message': 'Logged out successfully'})


@api_view(['GET'])
@authentication_classes([])
@permission_classes([AllowAny])
def auth_me(request):
    """Get the user behind the bearer token"""
    header = request.META.get('HTTP_AUTHORIZATION', '')
    if not header.startswith('Bearer '):
        return Response({'error': 'No token provided'}, status=status.HTTP_401_UNAUTHORIZED)

    try:
        user = AuthService().get_user_from_token(header[7:])
    except AuthenticationError:
        user = None
    if user is None:
        return Response({'error': 'Invalid or expired token'}, status=status.HTTP_401_UNAUTHORIZED)
    return Response(UserSerializer(user).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def session_list(request):
    """List the current user's sessions"""
    sessions = SessionService().get_user_sessions(request.user.id)
    return Response(SessionSerializer(sessions, many=True).data)


@api_view(['DELETE'])
@permission_classes([IsAuthenticated])
def session_detail(request, pk):
    """Delete one of the current user's sessions"""
    session_service = SessionService()
    session = session_service.get_session(pk)
    if session is None or session.user_id != request.user.id:
        raise NotFound('Session not found')
    session_service.delete_session(pk)
    return Response(status=status.HTTP_204_NO_CONTENT)
