"""
Authentication and session services.

Token issuing is delegated to Keycloak; this module maps identity provider
users onto local ``User`` rows and keeps track of issued tokens.
"""
import logging
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from .exceptions import NotFound
from .keycloak import KeycloakProvider, OAuthTokens
from .models import Session, User

logger = logging.getLogger(__name__)


class SessionService:
    """Persisted OAuth sessions"""

    def create_session(self, user, tokens: OAuthTokens) -> Session:
        session = Session.objects.create(
            user=user,
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            expires_at=timezone.now() + timedelta(seconds=tokens.expires_in),
        )
        logger.info(f"Session {session.id} created for user {user.id}")
        return session

    def get_session(self, session_id):
        return Session.objects.select_related('user').filter(id=session_id).first()

    def get_session_by_access_token(self, access_token):
        return Session.objects.select_related('user').filter(access_token=access_token).first()

    def get_session_by_refresh_token(self, refresh_token):
        return Session.objects.select_related('user').filter(refresh_token=refresh_token).first()

    def update_session(self, session_id, tokens: OAuthTokens) -> Session:
        session = self.get_session(session_id)
        if session is None:
            raise NotFound('Session not found')
        session.access_token = tokens.access_token
        session.refresh_token = tokens.refresh_token
        session.expires_at = timezone.now() + timedelta(seconds=tokens.expires_in)
        session.save(update_fields=['access_token', 'refresh_token', 'expires_at'])
        return session

    def delete_session(self, session_id):
        Session.objects.filter(id=session_id).delete()

    def delete_user_sessions(self, user_id):
        Session.objects.filter(user_id=user_id).delete()

    def delete_expired_sessions(self):
        """Delete every expired session and return how many were removed"""
        deleted, _ = Session.objects.filter(expires_at__lt=timezone.now()).delete()
        if deleted:
            logger.info(f"Deleted {deleted} expired sessions")
        return deleted

    def is_session_expired(self, session):
        return session.is_expired

    def get_user_sessions(self, user_id):
        return Session.objects.filter(user_id=user_id).order_by('-created_at')


class AuthService:
    """OAuth login flow on top of the Keycloak provider"""

    def __init__(self, provider=None, session_service=None):
        self.provider = provider or KeycloakProvider()
        self.sessions = session_service or SessionService()

    def get_authorization_url(self, redirect_uri, state=None):
        return self.provider.get_authorization_url(redirect_uri, state)

    def exchange_code_for_tokens(self, code, redirect_uri):
        return self.provider.exchange_code_for_tokens(code, redirect_uri)

    def refresh_access_token(self, refresh_token):
        return self.provider.refresh_access_token(refresh_token)

    def validate_access_token(self, token):
        return self.provider.validate_access_token(token)

    def get_user_info(self, access_token):
        return self.provider.get_user_info(access_token)

    def revoke_token(self, token):
        self.provider.revoke_token(token)

    def get_user_from_token(self, access_token):
        user_info = self.provider.get_user_info(access_token)
        sub = user_info.get('sub')
        if not sub:
            return None
        return User.objects.filter(idp_user_id=sub).first()

    @transaction.atomic
    def create_or_update_user(self, user_info) -> User:
        """Create the local user for an identity provider subject, or refresh its profile"""
        sub = user_info['sub']
        email = user_info.get('email') or None
        user = User.objects.select_for_update().filter(idp_user_id=sub).first()
        if user is None:
            user = User(idp_user_id=sub, username=email or sub)
            user.set_unusable_password()
            logger.info(f"Creating user for identity provider subject {sub}")

        user.email = email
        user.first_name = user_info.get('given_name') or ''
        user.last_name = user_info.get('family_name') or ''
        user.phone = user_info.get('phone')
        user.company = user_info.get('company')
        user.last_login_at = timezone.now()
        user.save()
        return user

    def create_session(self, user, tokens):
        return self.sessions.create_session(user, tokens)

    def get_session(self, session_id):
        return self.sessions.get_session(session_id)

    def delete_session(self, session_id):
        self.sessions.delete_session(session_id)

    def delete_user_sessions(self, user_id):
        self.sessions.delete_user_sessions(user_id)
