"""Main blueprint - health check."""
from flask import Blueprint, jsonify

from shopmock import __version__

main_bp = Blueprint('main', __name__, url_prefix='/api')


@main_bp.route('/health')
def health():
    return jsonify({
        'status': 'ok',
        'version': __version__,
        'auth': 'JWT + Refresh + Rate Limiting',
        'features': ['registration', 'self-service', 'admin-panel', 'product-crud', 'rate-limiting'],
    })
