"""Observability setup for OpenTelemetry, metrics, and structured logging."""

import logging

from opentelemetry import trace, metrics
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CollectorRegistry
import structlog

from .config import settings

SERVICE_NAME = "travel-backoffice-api"

# Prometheus metrics
REGISTRY = CollectorRegistry()

# Request metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=REGISTRY
)

REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=REGISTRY
)

# Tenancy metrics
TENANT_CONNECTIONS = Gauge(
    'tenant_connections_open',
    'Number of cached company database handles',
    registry=REGISTRY
)

# Business metrics
BOOKINGS_CREATED = Counter(
    'bookings_created_total',
    'Total bookings created',
    ['tenant_id'],
    registry=REGISTRY
)

BOOKING_TRANSITIONS = Counter(
    'booking_transitions_total',
    'Booking workflow transitions applied',
    ['trigger', 'state'],
    registry=REGISTRY
)

INQUIRY_TRANSITIONS = Counter(
    'inquiry_transitions_total',
    'Inquiry workflow transitions applied',
    ['trigger', 'state'],
    registry=REGISTRY
)

NOTIFICATIONS_SENT = Counter(
    'notifications_sent_total',
    'Notifications handed to the transport successfully',
    ['event'],
    registry=REGISTRY
)

NOTIFICATIONS_FAILED = Counter(
    'notifications_failed_total',
    'Notifications that could not be delivered or queued',
    ['event'],
    registry=REGISTRY
)


def setup_structured_logging():
    """Configure structured logging with structlog."""

    def add_trace_context(logger, method_name, event_dict):
        """Add trace context to log events."""
        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict['trace_id'] = format(ctx.trace_id, '032x')
            event_dict['span_id'] = format(ctx.span_id, '016x')
        return event_dict

    # request_id and tenant_id arrive through contextvars bound by middleware
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _resource() -> Resource:
    return Resource.create({
        "service.name": SERVICE_NAME,
        "service.version": "1.0.0",
        "environment": settings.environment,
    })


def setup_tracing():
    """Setup OpenTelemetry tracing."""
    trace.set_tracer_provider(TracerProvider(resource=_resource()))

    if settings.otlp_endpoint:
        otlp_exporter = OTLPSpanExporter(endpoint=settings.otlp_endpoint)
        span_processor = BatchSpanProcessor(otlp_exporter)
        trace.get_tracer_provider().add_span_processor(span_processor)

    return trace.get_tracer(__name__)


def setup_metrics():
    """Setup OpenTelemetry metrics."""
    if settings.otlp_endpoint:
        otlp_exporter = OTLPMetricExporter(endpoint=settings.otlp_endpoint)
        reader = PeriodicExportingMetricReader(exporter=otlp_exporter, export_interval_millis=60000)
        metrics.set_meter_provider(MeterProvider(resource=_resource(), metric_readers=[reader]))

    return metrics.get_meter(__name__)


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy():
    """Instrument SQLAlchemy with OpenTelemetry; covers engines created afterwards."""
    SQLAlchemyInstrumentor().instrument()


class MetricsCollector:
    """Collector for business metrics."""

    @staticmethod
    def record_request(method: str, endpoint: str, status_code: int, duration: float):
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status_code=str(status_code)).inc()
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)

    @staticmethod
    def set_tenant_connections(count: int):
        TENANT_CONNECTIONS.set(count)

    @staticmethod
    def record_booking_created(tenant_id: str):
        BOOKINGS_CREATED.labels(tenant_id=tenant_id).inc()

    @staticmethod
    def record_booking_transition(trigger: str, state: str):
        BOOKING_TRANSITIONS.labels(trigger=trigger, state=state).inc()

    @staticmethod
    def record_inquiry_transition(trigger: str, state: str):
        INQUIRY_TRANSITIONS.labels(trigger=trigger, state=state).inc()

    @staticmethod
    def record_notification_sent(event: str):
        NOTIFICATIONS_SENT.labels(event=event).inc()

    @staticmethod
    def record_notification_failed(event: str):
        NOTIFICATIONS_FAILED.labels(event=event).inc()


def get_prometheus_metrics():
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()


def get_logger(name: str):
    """Get a structlog logger bound to a component name."""
    return structlog.get_logger(name)
