"""Cart, coupon, checkout and order blueprint."""
import logging

from flask import Blueprint, g, jsonify

from shopmock.blueprints.metrics import orders_total
from shopmock.exceptions import NotFoundError, ShopError
from shopmock.middleware import require_auth
from shopmock.services import cart_service, checkout_service, pricing_service
from shopmock.state import get_state
from shopmock.utils.http import json_body

logger = logging.getLogger(__name__)

cart_bp = Blueprint('cart', __name__, url_prefix='/api')


@cart_bp.route('/cart', methods=['GET'])
@require_auth
def get_cart():
    return jsonify(pricing_service.price_session(get_state(), g.session).to_dict())


@cart_bp.route('/cart', methods=['POST'])
@require_auth
def add_to_cart():
    data = json_body()
    priced = cart_service.add_item(get_state(), g.session, data.get('productId'), data.get('quantity', 1))
    return jsonify(priced.to_dict()), 201


@cart_bp.route('/cart/<int:product_id>', methods=['PATCH'])
@require_auth
def update_cart_item(product_id):
    priced = cart_service.update_quantity(get_state(), g.session, product_id, json_body().get('quantity'))
    return jsonify(priced.to_dict())


@cart_bp.route('/cart/<int:product_id>', methods=['DELETE'])
@require_auth
def remove_from_cart(product_id):
    """Remove one unit of the product; the line goes away at zero."""
    priced = cart_service.decrement_line(get_state(), g.session, product_id)
    return jsonify(priced.to_dict())


@cart_bp.route('/cart/reorder', methods=['POST'])
@require_auth
def reorder_cart():
    priced = cart_service.reorder(get_state(), g.session, json_body().get('orderedProductIds'))
    return jsonify(priced.to_dict())


@cart_bp.route('/cart/coupon', methods=['POST'])
@require_auth
def apply_coupon():
    priced = pricing_service.apply_coupon(get_state(), g.session, json_body().get('code'))
    return jsonify({'message': 'Coupon applied', **priced.to_dict()})


@cart_bp.route('/cart/coupon', methods=['DELETE'])
@require_auth
def remove_coupon():
    return jsonify(pricing_service.remove_coupon(get_state(), g.session).to_dict())


@cart_bp.route('/checkout', methods=['POST'])
@require_auth
async def checkout():
    try:
        order = await checkout_service.checkout(get_state(), g.session, json_body())
    except ShopError as e:
        orders_total.labels(outcome=e.kind).inc()
        raise
    orders_total.labels(outcome='success').inc()
    return jsonify(order.to_dict()), 201


@cart_bp.route('/reset', methods=['POST'])
@require_auth
def reset():
    cart_service.reset_cart(get_state(), g.session)
    return jsonify({'message': 'App state reset'})


@cart_bp.route('/orders', methods=['GET'])
@require_auth
def list_orders():
    orders = get_state().orders.for_user(g.identity.username)
    return jsonify({'total': len(orders), 'orders': [o.to_dict() for o in orders]})


@cart_bp.route('/orders/last', methods=['GET'])
@require_auth
def last_order():
    if g.session.last_order is None:
        raise NotFoundError('No order placed in this session')
    return jsonify(g.session.last_order.to_dict())
