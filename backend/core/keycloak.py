"""Keycloak OpenID Connect provider."""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import requests
from django.conf import settings

from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass
class OAuthTokens:
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = 'Bearer'
    id_token: Optional[str] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> 'OAuthTokens':
        return cls(
            access_token=data.get('access_token'),
            refresh_token=data.get('refresh_token'),
            expires_in=int(data.get('expires_in') or 0),
            token_type=data.get('token_type') or 'Bearer',
            id_token=data.get('id_token'),
        )


@dataclass
class TokenValidation:
    valid: bool
    user_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    scopes: List[str] = field(default_factory=list)


class KeycloakProvider:
    """Handle OAuth against a Keycloak realm."""

    def __init__(self):
        self.keycloak_url = settings.KEYCLOAK_URL.rstrip('/')
        self.realm = settings.KEYCLOAK_REALM
        self.client_id = settings.KEYCLOAK_CLIENT_ID
        self.client_secret = settings.KEYCLOAK_CLIENT_SECRET
        self.timeout = getattr(settings, 'KEYCLOAK_TIMEOUT', 10)

        base = f"{self.keycloak_url}/realms/{self.realm}/protocol/openid-connect"
        self.authorization_endpoint = f"{base}/auth"
        self.token_endpoint = f"{base}/token"
        self.userinfo_endpoint = f"{base}/userinfo"
        self.introspection_endpoint = f"{base}/token/introspect"
        self.logout_endpoint = f"{base}/logout"

    def get_authorization_url(self, redirect_uri: str, state: Optional[str] = None) -> str:
        """Build the URL the browser is sent to for login."""
        params = {
            'client_id': self.client_id,
            'redirect_uri': redirect_uri,
            'response_type': 'code',
            'scope': 'openid email profile',
        }
        if state:
            params['state'] = state
        return f"{self.authorization_endpoint}?{urlencode(params)}"

    def exchange_code_for_tokens(self, code: str, redirect_uri: str) -> OAuthTokens:
        """Exchange an authorization code for access and refresh tokens."""
        data = self._post(self.token_endpoint, {
            'grant_type': 'authorization_code',
            'code': code,
            'redirect_uri': redirect_uri,
        }, action='exchange code for tokens')
        return OAuthTokens.from_response(data)

    def refresh_access_token(self, refresh_token: str) -> OAuthTokens:
        data = self._post(self.token_endpoint, {
            'grant_type': 'refresh_token',
            'refresh_token': refresh_token,
        }, action='refresh access token')
        return OAuthTokens.from_response(data)

    def validate_access_token(self, token: str) -> TokenValidation:
        """Ask the realm whether a token is still active."""
        data = self._post(self.introspection_endpoint, {'token': token}, action='validate access token')
        if not data.get('active'):
            return TokenValidation(valid=False)

        expires_at = None
        if data.get('exp'):
            expires_at = datetime.fromtimestamp(int(data['exp']), tz=dt_timezone.utc)
        scopes = data['scope'].split(' ') if data.get('scope') else []
        return TokenValidation(valid=True, user_id=data.get('sub'), expires_at=expires_at, scopes=scopes)

    def get_user_info(self, access_token: str) -> Dict[str, Any]:
        try:
            response = requests.get(
                self.userinfo_endpoint,
                headers={'Authorization': f'Bearer {access_token}'},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            raise self._error('get user info', e)

    def revoke_token(self, token: str) -> None:
        self._post(self.logout_endpoint, {'token': token}, action='revoke token', expect_json=False)

    def _post(self, url, payload, action, expect_json=True):
        form = dict(payload, client_id=self.client_id, client_secret=self.client_secret)
        try:
            response = requests.post(
                url,
                data=form,
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json() if expect_json else None
        except requests.RequestException as e:
            raise self._error(action, e)

    @staticmethod
    def _error(action, exc):
        detail = str(exc)
        response = getattr(exc, 'response', None)
        if response is not None:
            try:
                body = response.json()
            except ValueError:
                body = {}
            if isinstance(body, dict) and body.get('error_description'):
                detail = body['error_description']
        logger.error(f"[Keycloak] Failed to {action}: {detail}")
        return AuthenticationError(f"Failed to {action}: {detail}")
