"""
DRF authentication backed by Keycloak token introspection.

Introspection results are cached so a burst of requests with the same
token hits the identity provider once.
"""
import logging

from django.conf import settings
from django.core.cache import cache
from django.utils import timezone
from rest_framework import authentication, exceptions

from .cache_utils import make_cache_key
from .exceptions import AuthenticationError
from .keycloak import KeycloakProvider
from .models import User

logger = logging.getLogger(__name__)

TOKEN_CACHE_PREFIX = 'token_introspection'


class KeycloakAuthentication(authentication.BaseAuthentication):
    """Authenticate requests carrying `Authorization: Bearer <token>`"""
    keyword = 'Bearer'

    def authenticate(self, request):
        header = request.META.get('HTTP_AUTHORIZATION')
        if not header:
            raise exceptions.AuthenticationFailed('No authorization header provided')

        parts = header.split(' ')
        if len(parts) != 2 or parts[0] != self.keyword or not parts[1]:
            raise exceptions.AuthenticationFailed('Invalid authorization header format. Expected: Bearer <token>')

        token = parts[1]
        user_id = self._introspect(token)
        if not user_id:
            raise exceptions.AuthenticationFailed('Invalid or expired access token')

        user = User.objects.filter(idp_user_id=user_id, is_active=True).first()
        if user is None:
            raise exceptions.AuthenticationFailed('User not found')
        return (user, token)

    def authenticate_header(self, request):
        return f'{self.keyword} realm="api"'

    def _introspect(self, token):
        cache_key = make_cache_key(TOKEN_CACHE_PREFIX, token)
        cached = cache.get(cache_key)
        if cached is not None:
            return cached

        try:
            result = KeycloakProvider().validate_access_token(token)
        except AuthenticationError as e:
            logger.error(f"Token introspection failed: {e.message}")
            raise exceptions.AuthenticationFailed('Authentication failed')

        if not result.valid or not result.user_id:
            return None

        ttl = settings.TOKEN_CACHE_TTL
        if result.expires_at is not None:
            remaining = int((result.expires_at - timezone.now()).total_seconds())
            ttl = min(ttl, remaining)
        if ttl > 0:
            cache.set(cache_key, result.user_id, ttl)
        return result.user_id
