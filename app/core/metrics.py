"""Prometheus metrics for monitoring"""
from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry
import time
from functools import wraps
from typing import Callable

registry = CollectorRegistry()

request_count = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status'],
    registry=registry
)

request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=registry
)

provider_calls = Counter(
    'provider_calls_total',
    'Total calls to the maps provider',
    ['api', 'status'],
    registry=registry
)

provider_duration = Histogram(
    'provider_call_duration_seconds',
    'Maps provider call duration in seconds',
    ['api'],
    registry=registry
)

quotes_by_tier = Counter(
    'fare_quotes_total',
    'Total fare quotes computed',
    ['tier'],
    registry=registry
)

fare_errors = Counter(
    'fare_errors_total',
    'Total failed fare calculations',
    ['error'],
    registry=registry
)

cache_hits = Counter(
    'cache_hits_total',
    'Total cache hits',
    ['cache_key'],
    registry=registry
)

cache_misses = Counter(
    'cache_misses_total',
    'Total cache misses',
    ['cache_key'],
    registry=registry
)

redis_connected = Gauge(
    'redis_connected',
    'Redis connection status (1=connected, 0=disconnected)',
    registry=registry
)


def track_provider_call(api: str):
    """Decorator to track maps provider call metrics"""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                result = await func(*args, **kwargs)
                provider_calls.labels(api=api, status='success').inc()
                return result
            except Exception as e:
                provider_calls.labels(api=api, status=type(e).__name__).inc()
                raise
            finally:
                provider_duration.labels(api=api).observe(time.time() - start_time)
        return wrapper
    return decorator


def get_metrics_text() -> str:
    """Generate Prometheus metrics in text format"""
    from prometheus_client import generate_latest
    return generate_latest(registry).decode('utf-8')
