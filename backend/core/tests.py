"""
Tests for core: Keycloak provider, bearer authentication, auth flow, sessions and helpers
"""
import uuid
from datetime import timedelta
from io import StringIO
from unittest import mock

import requests
from django.conf import settings
from django.core.cache import cache
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.utils import timezone
from django.utils.module_loading import import_string
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.test import APIClient
from backend.core.cache_utils import (
    make_cache_key, get_cached_work_items, cache_work_items, invalidate_work_items_cache
)
from backend.core.exception_handler import api_exception_handler
from backend.core.exceptions import AuthenticationError, NotFound, ValidationError
from backend.core.keycloak import KeycloakProvider, OAuthTokens, TokenValidation
from backend.core.models import Session, User
from backend.core.services import AuthService, SessionService
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.utils import parse_bool, parse_date, parse_decimal, parse_list


def fake_response(payload, status_code=200):
    response = mock.Mock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f'{status_code} Error', response=response)
    else:
        response.raise_for_status.return_value = None
    return response


def make_tokens(access='access-1', refresh='refresh-1', expires_in=300):
    return OAuthTokens(access_token=access, refresh_token=refresh, expires_in=expires_in)


class KeycloakProviderTests(TestCase):
    """OpenID Connect calls with requests mocked out"""

    def setUp(self):
        self.provider = KeycloakProvider()

    def test_authorization_url(self):
        """The login URL carries the client, redirect and code flow parameters"""
        url = self.provider.get_authorization_url('http://app/callback', state='xyz')
        self.assertTrue(url.startswith(self.provider.authorization_endpoint + '?'))
        self.assertIn('response_type=code', url)
        self.assertIn('scope=openid+email+profile', url)
        self.assertIn('state=xyz', url)
        self.assertIn('redirect_uri=http%3A%2F%2Fapp%2Fcallback', url)

    @mock.patch('backend.core.keycloak.requests.post')
    def test_exchange_code_for_tokens(self, post):
        """The code exchange posts an authorization_code grant with client credentials"""
        post.return_value = fake_response({
            'access_token': 'a', 'refresh_token': 'r', 'expires_in': 300, 'token_type': 'Bearer', 'id_token': 'i',
        })
        tokens = self.provider.exchange_code_for_tokens('code-1', 'http://app/callback')
        self.assertEqual(tokens.access_token, 'a')
        self.assertEqual(tokens.expires_in, 300)
        form = post.call_args.kwargs['data']
        self.assertEqual(form['grant_type'], 'authorization_code')
        self.assertEqual(form['code'], 'code-1')
        self.assertEqual(form['client_id'], self.provider.client_id)

    @mock.patch('backend.core.keycloak.requests.post')
    def test_validate_active_token(self, post):
        """Active tokens report subject, expiry and scopes"""
        exp = int((timezone.now() + timedelta(minutes=5)).timestamp())
        post.return_value = fake_response({'active': True, 'sub': 'kc-1', 'exp': exp, 'scope': 'openid email'})
        result = self.provider.validate_access_token('token')
        self.assertTrue(result.valid)
        self.assertEqual(result.user_id, 'kc-1')
        self.assertEqual(result.scopes, ['openid', 'email'])
        self.assertEqual(int(result.expires_at.timestamp()), exp)

    @mock.patch('backend.core.keycloak.requests.post')
    def test_validate_inactive_token(self, post):
        """Inactive tokens are not valid"""
        post.return_value = fake_response({'active': False})
        self.assertFalse(self.provider.validate_access_token('token').valid)

    @mock.patch('backend.core.keycloak.requests.post')
    def test_provider_error_uses_description(self, post):
        """HTTP errors surface the provider's error_description"""
        post.return_value = fake_response({'error': 'invalid_grant', 'error_description': 'Token is not active'}, 400)
        with self.assertRaises(AuthenticationError) as ctx:
            self.provider.refresh_access_token('stale')
        self.assertEqual(ctx.exception.message, 'Failed to refresh access token: Token is not active')

    @mock.patch('backend.core.keycloak.requests.get')
    def test_user_info_network_error(self, get):
        """Network failures become AuthenticationError"""
        get.side_effect = requests.ConnectionError('connection refused')
        with self.assertRaises(AuthenticationError) as ctx:
            self.provider.get_user_info('token')
        self.assertEqual(ctx.exception.message, 'Failed to get user info: connection refused')


class KeycloakAuthenticationTests(TestCase):
    """Bearer token authentication on protected endpoints"""

    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user(idp_user_id='kc-1')
        self.client = APIClient()
        self.url = '/api/v1/auth/sessions/'

    def _valid(self, user_id='kc-1', minutes=5):
        return TokenValidation(valid=True, user_id=user_id, expires_at=timezone.now() + timedelta(minutes=minutes))

    def test_missing_header(self):
        """Requests without a header get 401"""
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'No authorization header provided')

    def test_malformed_header(self):
        """Only `Bearer <token>` is accepted"""
        response = self.client.get(self.url, HTTP_AUTHORIZATION='Token abc')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Invalid authorization header format. Expected: Bearer <token>')

    def test_valid_token_and_cache(self):
        """A valid token authenticates and its introspection is cached"""
        with mock.patch.object(KeycloakProvider, 'validate_access_token', return_value=self._valid()) as validate:
            first = self.client.get(self.url, HTTP_AUTHORIZATION='Bearer good-token')
            second = self.client.get(self.url, HTTP_AUTHORIZATION='Bearer good-token')
        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(validate.call_count, 1)

    def test_invalid_token(self):
        """Inactive tokens get 401"""
        with mock.patch.object(KeycloakProvider, 'validate_access_token', return_value=TokenValidation(valid=False)):
            response = self.client.get(self.url, HTTP_AUTHORIZATION='Bearer bad-token')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Invalid or expired access token')

    def test_unknown_user(self):
        """Tokens for subjects without a local user get 401"""
        with mock.patch.object(KeycloakProvider, 'validate_access_token', return_value=self._valid('kc-unknown')):
            response = self.client.get(self.url, HTTP_AUTHORIZATION='Bearer other-token')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'User not found')

    def test_provider_failure(self):
        """Provider outages give a generic authentication failure"""
        error = AuthenticationError('Failed to validate access token: timeout')
        with mock.patch.object(KeycloakProvider, 'validate_access_token', side_effect=error):
            response = self.client.get(self.url, HTTP_AUTHORIZATION='Bearer some-token')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Authentication failed')


class AuthServiceTests(TestCase):

    def test_create_user_from_identity(self):
        """A new subject creates a local user keyed by the subject id"""
        user = AuthService().create_or_update_user({
            'sub': 'kc-42', 'email': 'anna@example.com', 'given_name': 'Anna', 'family_name': 'K',
        })
        self.assertEqual(user.idp_user_id, 'kc-42')
        self.assertEqual(user.username, 'anna@example.com')
        self.assertFalse(user.has_usable_password())
        self.assertIsNotNone(user.last_login_at)

    def test_update_existing_user(self):
        """A known subject refreshes the profile instead of creating a user"""
        AuthService().create_or_update_user({'sub': 'kc-42', 'email': 'anna@example.com'})
        user = AuthService().create_or_update_user({'sub': 'kc-42', 'email': 'anna@new.com', 'given_name': 'Ann'})
        self.assertEqual(User.objects.filter(idp_user_id='kc-42').count(), 1)
        self.assertEqual(user.email, 'anna@new.com')
        self.assertEqual(user.first_name, 'Ann')

    def test_users_without_email(self):
        """Subjects without an email are stored with no email and do not collide"""
        first = AuthService().create_or_update_user({'sub': 'kc-1'})
        second = AuthService().create_or_update_user({'sub': 'kc-2'})
        self.assertIsNone(first.email)
        self.assertIsNone(second.email)
        self.assertEqual(second.username, 'kc-2')

    @mock.patch.object(KeycloakProvider, 'get_user_info')
    def test_user_from_token_without_subject(self, user_info):
        """Userinfo without a subject never matches users unlinked from the provider"""
        TestDataFactory.create_user(username='admin')
        user_info.return_value = {'email': 'admin@test.com'}
        self.assertIsNone(AuthService().get_user_from_token('token'))


class SessionServiceTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.service = SessionService()

    def test_create_and_update_session(self):
        """Sessions store tokens and are replaced on refresh"""
        session = self.service.create_session(self.user, make_tokens())
        self.assertFalse(session.is_expired)
        self.assertEqual(self.service.get_session_by_access_token('access-1'), session)

        session = self.service.update_session(session.id, make_tokens('access-2', 'refresh-2'))
        self.assertEqual(session.refresh_token, 'refresh-2')
        self.assertIsNone(self.service.get_session_by_refresh_token('refresh-1'))

    def test_update_missing_session(self):
        """Updating an unknown session raises NotFound"""
        session = self.service.create_session(self.user, make_tokens())
        session_id = session.id
        self.service.delete_session(session_id)
        with self.assertRaises(NotFound):
            self.service.update_session(session_id, make_tokens())

    def test_delete_expired_sessions(self):
        """Only expired sessions are removed"""
        TestDataFactory.create_session(self.user, expires_in=-60)
        TestDataFactory.create_session(self.user, expires_in=-1)
        live = TestDataFactory.create_session(self.user)
        self.assertEqual(self.service.delete_expired_sessions(), 2)
        self.assertEqual(list(Session.objects.all()), [live])

    def test_cleanup_sessions_command(self):
        """The management command reports how many sessions it deleted"""
        TestDataFactory.create_session(self.user, expires_in=-60)
        out = StringIO()
        call_command('cleanup_sessions', stdout=out)
        self.assertIn('Deleted 1 expired session(s)', out.getvalue())


class AuthAPITests(TestCase):
    """OAuth login flow endpoints"""

    def setUp(self):
        self.client = APIClient()

    def test_login_returns_authorization_url(self):
        """The login endpoint returns the provider URL"""
        response = self.client.get('/api/v1/auth/login/', {'redirect_uri': 'http://app/cb'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('response_type=code', response.data['authorization_url'])

    def test_callback_requires_code(self):
        """The callback without a code returns 400"""
        response = self.client.get('/api/v1/auth/callback/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Authorization code is required')

    @mock.patch.object(KeycloakProvider, 'get_user_info')
    @mock.patch.object(KeycloakProvider, 'exchange_code_for_tokens')
    def test_callback_creates_user_and_session(self, exchange, user_info):
        """A successful callback syncs the user and opens a session"""
        exchange.return_value = make_tokens()
        user_info.return_value = {'sub': 'kc-7', 'email': 'ivan@example.com'}
        response = self.client.get('/api/v1/auth/callback/', {'code': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['access_token'], 'access-1')
        self.assertEqual(response.data['user']['email'], 'ivan@example.com')
        session = Session.objects.get(id=response.data['session_id'])
        self.assertEqual(session.user.idp_user_id, 'kc-7')

    @mock.patch.object(KeycloakProvider, 'exchange_code_for_tokens')
    def test_callback_failure(self, exchange):
        """Provider errors during the callback return 500"""
        exchange.side_effect = AuthenticationError('Failed to exchange code for tokens: invalid_grant')
        response = self.client.get('/api/v1/auth/callback/', {'code': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'Authentication failed')

    @mock.patch.object(KeycloakProvider, 'get_user_info')
    @mock.patch.object(KeycloakProvider, 'exchange_code_for_tokens')
    def test_callback_for_users_without_email(self, exchange, user_info):
        """Two subjects without an email can both sign in"""
        exchange.return_value = make_tokens()
        user_info.side_effect = [{'sub': 'sub-1'}, {'sub': 'sub-2'}]
        first = self.client.get('/api/v1/auth/callback/', {'code': 'one'})
        second = self.client.get('/api/v1/auth/callback/', {'code': 'two'})
        self.assertEqual(first.status_code, status.HTTP_200_OK)
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertIsNone(second.data['user']['email'])

    @mock.patch.object(KeycloakProvider, 'get_user_info')
    @mock.patch.object(KeycloakProvider, 'exchange_code_for_tokens')
    def test_callback_with_email_of_another_user(self, exchange, user_info):
        """An email already used by another subject returns the JSON 500"""
        TestDataFactory.create_user(email='taken@example.com', idp_user_id='kc-old')
        exchange.return_value = make_tokens()
        user_info.return_value = {'sub': 'kc-new', 'email': 'taken@example.com'}
        response = self.client.get('/api/v1/auth/callback/', {'code': 'abc'})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'Authentication failed')
        self.assertFalse(User.objects.filter(idp_user_id='kc-new').exists())

    def test_logout_with_malformed_session_id(self):
        """A session id that is not a UUID returns 400"""
        response = self.client.post('/api/v1/auth/logout/', {'session_id': 'not-a-uuid'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('session_id', response.data)

    def test_refresh_requires_token(self):
        """Refreshing without a token returns 400"""
        response = self.client.post('/api/v1/auth/refresh/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @mock.patch.object(KeycloakProvider, 'refresh_access_token')
    def test_refresh_updates_session(self, refresh):
        """A refresh returns new tokens and updates the stored session"""
        user = TestDataFactory.create_user()
        session = SessionService().create_session(user, make_tokens())
        refresh.return_value = make_tokens('access-2', 'refresh-2')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh_token': 'refresh-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['access_token'], 'access-2')
        session.refresh_from_db()
        self.assertEqual(session.access_token, 'access-2')

    @mock.patch.object(KeycloakProvider, 'refresh_access_token')
    def test_refresh_failure(self, refresh):
        """A rejected refresh token returns 401"""
        refresh.side_effect = AuthenticationError('Failed to refresh access token: expired')
        response = self.client.post('/api/v1/auth/refresh/', {'refresh_token': 'old'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Failed to refresh token')

    @mock.patch.object(KeycloakProvider, 'revoke_token')
    def test_logout(self, revoke):
        """Logout revokes the token and deletes the session"""
        user = TestDataFactory.create_user()
        session = SessionService().create_session(user, make_tokens())
        response = self.client.post('/api/v1/auth/logout/', {
            'access_token': 'access-1', 'session_id': str(session.id),
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['message'], 'Logged out successfully')
        revoke.assert_called_once_with('access-1')
        self.assertFalse(Session.objects.filter(id=session.id).exists())

    def test_me_without_token(self):
        """/auth/me/ without a bearer token returns 401"""
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'No token provided')

    @mock.patch.object(KeycloakProvider, 'get_user_info')
    def test_me_returns_user(self, user_info):
        """/auth/me/ resolves the user through the provider's userinfo"""
        user = TestDataFactory.create_user(idp_user_id='kc-9')
        user_info.return_value = {'sub': 'kc-9'}
        response = self.client.get('/api/v1/auth/me/', HTTP_AUTHORIZATION='Bearer token')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['email'], user.email)

    @mock.patch.object(KeycloakProvider, 'get_user_info')
    def test_me_with_unknown_subject(self, user_info):
        """Tokens for unknown subjects return 401"""
        user_info.return_value = {'sub': 'nobody'}
        response = self.client.get('/api/v1/auth/me/', HTTP_AUTHORIZATION='Bearer token')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Invalid or expired token')

    @mock.patch.object(KeycloakProvider, 'get_user_info')
    def test_me_without_subject(self, user_info):
        """Userinfo without a subject does not resolve to a local admin"""
        TestDataFactory.create_user(username='admin')
        user_info.return_value = {}
        response = self.client.get('/api/v1/auth/me/', HTTP_AUTHORIZATION='Bearer token')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class SessionAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_list_and_delete_own_sessions(self):
        """Users see and delete only their own sessions"""
        mine = TestDataFactory.create_session(self.user)
        theirs = TestDataFactory.create_session(TestDataFactory.create_user())

        response = self.client.get('/api/v1/auth/sessions/')
        self.assertEqual([s['id'] for s in response.data], [str(mine.id)])

        response = self.client.delete(f'/api/v1/auth/sessions/{theirs.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        response = self.client.delete(f'/api/v1/auth/sessions/{mine.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

    def test_client_logout_drops_authentication(self):
        """After logout the client is anonymous and gets 401"""
        self.client.logout()
        response = self.client.get('/api/v1/auth/sessions/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'No authorization header provided')


class HelperTests(TestCase):

    def test_make_cache_key_hides_arguments(self):
        """Keys are stable and never contain the raw arguments"""
        key = make_cache_key('token_introspection', 'secret-token')
        self.assertEqual(key, make_cache_key('token_introspection', 'secret-token'))
        self.assertTrue(key.startswith('token_introspection:'))
        self.assertNotIn('secret-token', key)

    def test_work_items_cache_invalidation(self):
        """Invalidating work item listings drops cached data"""
        cache.clear()
        data, key = get_cached_work_items('user-1', 'painting')
        self.assertIsNone(data)
        cache_work_items(key, [{'name': 'Prime walls'}])
        self.assertEqual(get_cached_work_items('user-1', 'painting')[0], [{'name': 'Prime walls'}])
        invalidate_work_items_cache()
        self.assertIsNone(get_cached_work_items('user-1', 'painting')[0])

    def test_parse_helpers(self):
        """Query parameter helpers parse and validate values"""
        self.assertEqual(str(parse_date('2025-03-01')), '2025-03-01')
        self.assertIsNone(parse_date(''))
        with self.assertRaises(ValidationError) as ctx:
            parse_date('03/01/2025', 'start_date')
        self.assertEqual(ctx.exception.message, 'Invalid date format for start_date')
        with self.assertRaises(ValidationError):
            parse_decimal('abc', 'price')
        self.assertEqual(parse_list('a, b,,c'), ['a', 'b', 'c'])
        self.assertTrue(parse_bool('true'))
        self.assertFalse(parse_bool('no'))


class CheckOverdueCommandTests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.project = TestDataFactory.create_project(self.user, name='Loft')

    def test_reports_and_marks_overdue_milestones(self):
        """Overdue work is listed and --mark-milestones flags the milestones"""
        yesterday = timezone.localdate() - timedelta(days=1)
        milestone = TestDataFactory.create_milestone(self.project, name='Drywall done', target_date=yesterday)
        TestDataFactory.create_task(self.project, name='Hang doors', due_date=yesterday)

        out = StringIO()
        call_command('check_overdue', '--mark-milestones', stdout=out)
        output = out.getvalue()
        self.assertIn('Hang doors', output)
        self.assertIn('Drywall done', output)
        self.assertIn('Overdue: 1 task(s), 1 milestone(s), 0 delivery(ies)', output)
        milestone.refresh_from_db()
        self.assertEqual(milestone.status, 'overdue')

    def test_unknown_project(self):
        """An unknown --project id is a command error"""
        with self.assertRaises(CommandError):
            call_command('check_overdue', '--project', str(uuid.uuid4()), stdout=StringIO())


class ExceptionHandlerTests(TestCase):

    def test_configured_handler_renders_service_errors(self):
        """The configured DRF handler imports cleanly and renders {'error': message}"""
        handler = import_string(settings.REST_FRAMEWORK['EXCEPTION_HANDLER'])
        self.assertIs(handler, api_exception_handler)
        response = handler(NotFound('Project not found'), {'request': None})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {'error': 'Project not found'})

    def test_detail_body_is_rewritten(self):
        """DRF errors with a single 'detail' key come back as 'error'"""
        response = api_exception_handler(drf_exceptions.NotAuthenticated(), {})
        self.assertEqual(response.data, {'error': 'Authentication credentials were not provided.'})
