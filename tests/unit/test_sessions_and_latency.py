"""
Unit tests for the session store, latency injection and token handling.
"""

import pytest

from conftest import run
from shopmock.models import BehaviorType, CartLine, Identity, UserRole
from shopmock.services import auth_service, user_service
from shopmock.services.latency_service import LatencyInjector, LatencyPoint
from shopmock.services.session_service import SessionStore
from shopmock.exceptions import AccountLockedError, AuthError


class TestSessionStore:
    """Session lifecycle."""

    def test_each_create_gets_new_token(self):
        store = SessionStore()
        first = store.create(Identity('standard_user'))
        second = store.create(Identity('standard_user'))

        assert first.token != second.token
        assert store.get(first.token) is first
        assert store.get(second.token) is second
        assert len(store) == 2

    def test_new_session_is_empty(self):
        session = SessionStore().create(Identity('standard_user'))
        assert session.cart == []
        assert session.applied_coupon is None
        assert session.last_order is None

    def test_destroy(self):
        store = SessionStore()
        session = store.create(Identity('standard_user'))

        assert store.destroy(session.token) is True
        assert store.get(session.token) is None
        assert store.destroy(session.token) is False

    def test_destroy_for_user(self):
        store = SessionStore()
        store.create(Identity('a'))
        store.create(Identity('a'))
        keep = store.create(Identity('b'))

        assert store.destroy_for_user('a') == 2
        assert store.for_user('a') == []
        assert store.get(keep.token) is keep

    def test_any_cart_references(self):
        store = SessionStore()
        session = store.create(Identity('a'))
        assert store.any_cart_references(3) is False

        session.cart.append(CartLine(3, 1))
        assert store.any_cart_references(3) is True

    def test_get_with_empty_token(self):
        assert SessionStore().get(None) is None


class TestLatencyInjector:
    """Awaitable delays per behavior and point."""

    @pytest.fixture
    def injector(self, sleeper):
        return LatencyInjector({
            (BehaviorType.PERFORMANCE, LatencyPoint.LOGIN): 2.5,
            (BehaviorType.PERFORMANCE, LatencyPoint.INVENTORY): 3.0,
            (BehaviorType.ERROR, LatencyPoint.CHECKOUT): 2.0,
        }, sleep=sleeper)

    def test_performance_user_is_delayed(self, injector, sleeper):
        identity = Identity('performance_glitch_user', behavior=BehaviorType.PERFORMANCE)
        assert run(injector.inject(identity, LatencyPoint.INVENTORY)) == 3.0
        assert run(injector.inject(identity, LatencyPoint.LOGIN)) == 2.5
        assert sleeper.calls == [3.0, 2.5]

    def test_standard_and_anonymous_are_not_delayed(self, injector, sleeper):
        assert run(injector.inject(Identity('standard_user'), LatencyPoint.INVENTORY)) == 0.0
        assert run(injector.inject(None, LatencyPoint.INVENTORY)) == 0.0
        assert sleeper.calls == []

    def test_from_config(self, sleeper):
        injector = LatencyInjector.from_config({'CHECKOUT_FAILURE_DELAY_SECONDS': 1.5}, sleep=sleeper)
        identity = Identity('error_user', behavior=BehaviorType.ERROR)
        assert injector.duration_for(identity, LatencyPoint.CHECKOUT) == 1.5
        assert injector.duration_for(identity, LatencyPoint.LOGIN) == 0.0


class TestAuthService:
    """Login, token resolution and logout."""

    def test_login_creates_session_and_tokens(self, state):
        session, access, refresh = run(auth_service.login(state, 'standard_user', 'secret_sauce'))

        assert state.sessions.get(session.token) is session
        assert auth_service.resolve_session(state, access) is session
        # A refresh token is not accepted as an access token
        assert auth_service.resolve_session(state, refresh) is None

    def test_relogin_keeps_old_session(self, state):
        first, first_access, _ = run(auth_service.login(state, 'standard_user', 'secret_sauce'))
        second, _, _ = run(auth_service.login(state, 'standard_user', 'secret_sauce'))

        assert first.token != second.token
        assert auth_service.resolve_session(state, first_access) is first

    def test_invalid_credentials(self, state):
        with pytest.raises(AuthError) as exc_info:
            run(auth_service.login(state, 'standard_user', 'wrong'))
        assert exc_info.value.status_code == 401

    def test_locked_user(self, state):
        with pytest.raises(AccountLockedError) as exc_info:
            run(auth_service.login(state, 'locked_out_user', 'secret_sauce'))
        assert exc_info.value.status_code == 403
        assert len(state.sessions) == 0

    def test_performance_login_consumes_delay(self, state, sleeper):
        run(auth_service.login(state, 'performance_glitch_user', 'secret_sauce'))
        assert sleeper.calls == [0.0]

    def test_refresh_reuses_session(self, state):
        session, _, refresh = run(auth_service.login(state, 'standard_user', 'secret_sauce'))
        refreshed, access, _ = auth_service.refresh(state, refresh)

        assert refreshed is session
        assert auth_service.resolve_session(state, access) is session

    def test_logout_invalidates_tokens(self, state):
        session, access, refresh = run(auth_service.login(state, 'standard_user', 'secret_sauce'))
        assert auth_service.logout(state, session=session) is True

        assert auth_service.resolve_session(state, access) is None
        with pytest.raises(AuthError):
            auth_service.refresh(state, refresh)

    @pytest.mark.parametrize('token', [None, '', 'garbage', 'a.b.c'])
    def test_resolve_garbage(self, state, token):
        assert auth_service.resolve_session(state, token) is None

    def test_admin_identity(self, state):
        session, _, _ = run(auth_service.login(state, 'admin', 'admin123'))
        assert session.identity.role == UserRole.ADMIN
        assert session.identity.is_admin

    def test_account_deleted_during_login_delay_gets_no_session(self, state, sleeper):
        async def delete_account():
            user_service.delete_user(state, 'performance_glitch_user')

        sleeper.during = delete_account

        with pytest.raises(AuthError) as exc_info:
            run(auth_service.login(state, 'performance_glitch_user', 'secret_sauce'))

        assert exc_info.value.status_code == 401
        assert state.users.get('performance_glitch_user') is None
        assert state.sessions.for_user('performance_glitch_user') == []
        assert len(state.sessions) == 0

    def test_account_recreated_during_login_delay_gets_no_session(self, state, sleeper):
        async def replace_account():
            user_service.delete_user(state, 'performance_glitch_user')
            user_service.create_user(state, 'performance_glitch_user', 'other-password')

        sleeper.during = replace_account

        with pytest.raises(AuthError):
            run(auth_service.login(state, 'performance_glitch_user', 'secret_sauce'))
        assert len(state.sessions) == 0
