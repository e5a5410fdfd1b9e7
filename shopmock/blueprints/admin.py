"""
Admin blueprint.
User management, product create/delete and stock overrides. Admin role only.
"""
import logging

from flask import Blueprint, g, jsonify

from shopmock.middleware import require_admin
from shopmock.services import catalog_service, user_service
from shopmock.state import get_state
from shopmock.utils.http import json_body

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


# =====================================================
# USERS
# =====================================================

@admin_bp.route('/users', methods=['GET'])
@require_admin
def list_users():
    users = [u.to_dict() for u in get_state().users.all()]
    return jsonify({'total': len(users), 'users': users})


@admin_bp.route('/users', methods=['POST'])
@require_admin
def create_user():
    data = json_body()
    user = user_service.create_user(
        get_state(),
        data.get('username'),
        data.get('password'),
        role=data.get('role', 'user'),
        behavior=data.get('type', 'standard')
    )
    logger.info(f"[ADMIN] {g.identity.username} created user {user.username}")
    return jsonify({'message': 'User created by admin', 'username': user.username}), 201


@admin_bp.route('/users/<username>', methods=['DELETE'])
@require_admin
def delete_user(username):
    user = user_service.delete_user(get_state(), username)
    return jsonify({'message': 'User deleted', 'username': user.username})


# =====================================================
# PRODUCTS & STOCK
# =====================================================

@admin_bp.route('/products', methods=['POST'])
@require_admin
def create_product():
    data = json_body()
    product = catalog_service.create_product(
        get_state(),
        data.get('name'),
        data.get('price'),
        data.get('img'),
        initial_stock=data.get('initialStock')
    )
    return jsonify({'message': 'Product created', 'product': {'id': product.id, 'name': product.name}}), 201


@admin_bp.route('/products/<int:product_id>', methods=['DELETE'])
@require_admin
def delete_product(product_id):
    product = catalog_service.delete_product(get_state(), product_id)
    return jsonify({'message': 'Product deleted', 'deletedProduct': {'id': product.id, 'name': product.name}})


@admin_bp.route('/stock', methods=['GET'])
@require_admin
def stock():
    return jsonify(catalog_service.stock_report(get_state()))


@admin_bp.route('/stock/<int:product_id>', methods=['PATCH'])
@require_admin
def set_stock(product_id):
    quantity = catalog_service.set_product_stock(get_state(), product_id, json_body().get('quantity'))
    return jsonify({'message': 'Stock updated', 'productId': product_id, 'newStock': quantity})
