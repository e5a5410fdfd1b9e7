"""
Authentication blueprint.
Handles registration, login, token refresh, logout and account self-service.
"""
import logging

from flask import Blueprint, g, jsonify

from shopmock.exceptions import ForbiddenError
from shopmock.middleware import require_auth
from shopmock.services import auth_service, user_service
from shopmock.state import get_state
from shopmock.utils.http import clear_refresh_cookie, json_body, refresh_cookie, set_refresh_cookie

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api')


@auth_bp.route('/register', methods=['POST'])
def register():
    data = json_body()
    user = user_service.register(get_state(), data.get('username'), data.get('password'))
    return jsonify({'message': 'Registration successful! You can now log in.', 'username': user.username}), 201


@auth_bp.route('/login', methods=['POST'])
async def login():
    """Open a new session; performance users are delayed before it is created."""
    data = json_body()
    session, access, refresh = await auth_service.login(get_state(), data.get('username'), data.get('password'))

    response = jsonify({
        'message': 'Login successful',
        'accessToken': access,
        'user': {'username': session.username, 'role': session.identity.role.value},
    })
    return set_refresh_cookie(response, refresh)


@auth_bp.route('/refresh', methods=['POST'])
def refresh():
    token = refresh_cookie() or json_body().get('refreshToken')
    _, access, new_refresh = auth_service.refresh(get_state(), token)
    return set_refresh_cookie(jsonify({'accessToken': access}), new_refresh)


@auth_bp.route('/logout', methods=['POST'])
def logout():
    token = refresh_cookie() or json_body().get('refreshToken')
    auth_service.logout(get_state(), session=g.get('session'), refresh_token=token)
    return clear_refresh_cookie(jsonify({'message': 'Logged out successfully'}))


@auth_bp.route('/me', methods=['GET'])
@require_auth
def me():
    user = get_state().users.require(g.identity.username)
    return jsonify(user.to_dict())


@auth_bp.route('/me', methods=['PATCH'])
@require_auth
def update_me():
    user_service.change_password(get_state(), g.identity.username, json_body().get('password'))
    return jsonify({'message': 'Password updated successfully'})


@auth_bp.route('/me', methods=['DELETE'])
@require_auth
def delete_me():
    if g.identity.username == user_service.PROTECTED_USERNAME:
        raise ForbiddenError('Admin cannot delete self')
    user_service.delete_user(get_state(), g.identity.username)
    return clear_refresh_cookie(jsonify({'message': 'Account deleted permanently'}))
