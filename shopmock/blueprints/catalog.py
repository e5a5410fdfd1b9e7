"""Catalog blueprint - product listing and detail."""
from flask import Blueprint, g, jsonify, request

from shopmock.services import catalog_service
from shopmock.services.latency_service import LatencyPoint
from shopmock.state import get_state

catalog_bp = Blueprint('catalog', __name__, url_prefix='/api/inventory')


@catalog_bp.route('', methods=['GET'])
async def list_products():
    """
    List products with availability.

    Query params:
        sort: none | az | za | lohi | hilo (anything else keeps catalog order)
    """
    state = get_state()
    identity = g.get('identity')
    await state.latency.inject(identity, LatencyPoint.INVENTORY)
    return jsonify(catalog_service.list_inventory(state, identity, request.args.get('sort')))


@catalog_bp.route('/<int:product_id>', methods=['GET'])
def product_detail(product_id):
    return jsonify(catalog_service.product_detail(get_state(), product_id))
