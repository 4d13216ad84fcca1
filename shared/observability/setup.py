import logging

import structlog
from fastapi import FastAPI
from prometheus_fastapi_instrumentator import Instrumentator

# OpenTelemetry
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor

from shared.config.settings import LOG_FORMAT, LOG_LEVEL, OTEL_TRACING_ENABLED, OTLP_ENDPOINT

# Probes and scrapes would drown out shopper traffic
UNTRACKED_PATHS = ["/metrics", ".*/health"]


def add_otel_ids(logger, log_method, event_dict):
    """Injects trace/span ids into every log line emitted inside a request span."""
    span = trace.get_current_span()
    if span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = trace.format_trace_id(ctx.trace_id)
        event_dict["span_id"] = trace.format_span_id(ctx.span_id)
    return event_dict


def add_service_name(service_name: str):
    def processor(logger, log_method, event_dict):
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def configure_logging(service_name: str = "storefront"):
    renderer = (
        structlog.dev.ConsoleRenderer()
        if LOG_FORMAT == "console"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            add_service_name(service_name),
            add_otel_ids,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, LOG_LEVEL.upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_tracing(app: FastAPI, service_name: str):
    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))
    trace.set_tracer_provider(provider)
    provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=OTLP_ENDPOINT, insecure=True))
    )

    # Mounted service apps are traced through the cluster app
    FastAPIInstrumentor.instrument_app(app, excluded_urls="health,metrics")
    # Outgoing PayPal calls become child spans
    HTTPXClientInstrumentor().instrument()


def configure_metrics(app: FastAPI):
    Instrumentator(excluded_handlers=UNTRACKED_PATHS).instrument(app).expose(app)


def setup_observability(app: FastAPI, service_name: str):
    """
    Bootstraps Logging, Tracing, and Metrics for the cluster app.
    Call this once in main.py; the business counters live in metrics.py.
    """
    configure_logging(service_name)
    if OTEL_TRACING_ENABLED:
        configure_tracing(app, service_name)
    configure_metrics(app)
