import asyncio

import pytest

from config import TestConfig
from shopmock import create_app
from shopmock.models import Identity, UserRole, BehaviorType
from shopmock.state import ShopState


class RecordingSleep:
    """
    Stand-in for asyncio.sleep that records requested delays.

    Set ``during`` to an async callable to run it once, while the caller is
    suspended in its delay.
    """

    def __init__(self):
        self.calls = []
        self.during = None

    async def __call__(self, seconds):
        self.calls.append(seconds)
        if self.during is not None:
            hook, self.during = self.during, None
            await hook()
        await asyncio.sleep(0)


def _config_dict(config_class):
    return {key: getattr(config_class, key) for key in dir(config_class) if key.isupper()}


def run(coro):
    """Drive a coroutine to completion from a synchronous test."""
    return asyncio.run(coro)


@pytest.fixture(scope='function')
def sleeper():
    return RecordingSleep()


@pytest.fixture(scope='function')
def state(sleeper):
    """Fresh seeded state with recorded (not real) delays."""
    return ShopState.from_config(_config_dict(TestConfig), sleep=sleeper)


@pytest.fixture(scope='function')
def app(state):
    """Create application instance for testing, bound to the ``state`` fixture."""
    app = create_app('config.TestConfig', state=state)
    app.config['TESTING'] = True
    return app


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def standard_session(state):
    """Session for standard_user, created directly in the store."""
    return state.sessions.create(Identity('standard_user', UserRole.USER, BehaviorType.STANDARD))


@pytest.fixture(scope='function')
def error_session(state):
    """Session for error_user (checkout always fails)."""
    return state.sessions.create(Identity('error_user', UserRole.USER, BehaviorType.ERROR))


def login(client, username, password='secret_sauce'):
    """Log in through the API and return the access token."""
    response = client.post('/api/login', json={'username': username, 'password': password})
    assert response.status_code == 200, response.get_json()
    return response.get_json()['accessToken']


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def user_headers(client):
    """Authorization headers for standard_user."""
    return bearer(login(client, 'standard_user'))


@pytest.fixture(scope='function')
def admin_headers(client):
    """Authorization headers for the admin account."""
    return bearer(login(client, 'admin', 'admin123'))
