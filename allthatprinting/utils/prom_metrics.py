"""
Prometheus metrics registration and helpers.

Exports:
- observe_request(...): record HTTP request metrics
- observe_order_created(...): record a placed order and its amount
- observe_payment(...): record a payment outcome by method
- observe_refund_request(...): record refund request transitions
- metrics_latest(): return text exposition from correct registry (handles multiprocess)
- CONTENT_TYPE_LATEST: correct Prometheus content type
"""

import os
from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client import multiprocess


REQUEST_COUNTER = Counter(
    'atp_http_requests_total', 'Total HTTP requests', ['endpoint', 'status']
)

REQUEST_LATENCY = Histogram(
    'atp_http_request_latency_seconds', 'HTTP request latency seconds', ['endpoint']
)

ORDERS_CREATED = Counter(
    'atp_orders_created_total', 'Total orders placed'
)

ORDER_AMOUNT = Histogram(
    'atp_order_amount_won', 'Order total amount in won', buckets=[
        5000, 10000, 30000, 50000, 100000, 300000, 1000000
    ]
)

PAYMENTS = Counter(
    'atp_payments_total', 'Payment outcomes', ['method', 'status']
)

REFUND_REQUESTS = Counter(
    'atp_refund_requests_total', 'Refund request transitions', ['status']
)


def observe_request(endpoint: str, status: int, latency_seconds: float) -> None:
    REQUEST_COUNTER.labels(endpoint=endpoint, status=str(status)).inc()
    REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency_seconds)


def observe_order_created(total_amount: int) -> None:
    ORDERS_CREATED.inc()
    ORDER_AMOUNT.observe(total_amount)


def observe_payment(method: str, status: str) -> None:
    PAYMENTS.labels(method=method or 'unknown', status=status).inc()


def observe_refund_request(status: str) -> None:
    REFUND_REQUESTS.labels(status=status).inc()


def metrics_latest() -> bytes:
    """Return the Prometheus text exposition, multiprocess-aware if configured."""
    prom_mp_dir = os.getenv('PROMETHEUS_MULTIPROC_DIR')
    if prom_mp_dir:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return generate_latest(registry)
    # Default registry
    return generate_latest()
