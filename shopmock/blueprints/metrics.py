"""
Prometheus metrics.

Request traffic by route template, checkout outcomes, rate limit rejections
and live session count. Scraped at /metrics, which is unauthenticated.
"""
import os
import time

from flask import Blueprint, Response, g, request
from prometheus_client import (
    CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, Counter, Gauge, Histogram,
    generate_latest, multiprocess
)

metrics_bp = Blueprint('metrics', __name__)

# Gunicorn workers share metrics through PROMETHEUS_MULTIPROC_DIR
MULTIPROCESS_MODE = os.environ.get('PROMETHEUS_MULTIPROC_DIR') is not None

if MULTIPROCESS_MODE:
    registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(registry)
    _register_in = None
else:
    registry = REGISTRY
    _register_in = REGISTRY

http_requests_total = Counter(
    'shopmock_http_requests_total',
    'HTTP requests by route template and status',
    ['method', 'route', 'status'],
    registry=_register_in
)

http_request_duration_seconds = Histogram(
    'shopmock_http_request_duration_seconds',
    'Request latency, injected delays included',
    ['method', 'route'],
    registry=_register_in,
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 2.5, 3.0, 5.0)
)

orders_total = Counter(
    'shopmock_checkouts_total',
    'Checkout attempts by outcome (success or error kind)',
    ['outcome'],
    registry=_register_in
)

rate_limited_total = Counter(
    'shopmock_rate_limited_total',
    'Requests rejected by the rate limiter',
    ['tier'],
    registry=_register_in
)

active_sessions = Gauge(
    'shopmock_active_sessions',
    'Sessions currently alive',
    registry=_register_in,
    multiprocess_mode='livesum'
)


def _route_label():
    rule = request.url_rule
    return rule.rule if rule is not None else 'unmatched'


def setup_metrics_instrumentation(app, state):
    """Time every request and expose the session count of ``state``."""
    if not MULTIPROCESS_MODE:
        active_sessions.set_function(lambda: len(state.sessions))

    @app.before_request
    def start_request_timer():
        g._metrics_started = time.perf_counter()

    @app.after_request
    def record_request(response):
        started = g.pop('_metrics_started', None)
        if started is None:
            return response

        route = _route_label()
        http_request_duration_seconds.labels(request.method, route).observe(time.perf_counter() - started)
        http_requests_total.labels(request.method, route, response.status_code).inc()
        return response


@metrics_bp.route('/metrics')
def metrics():
    return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)
