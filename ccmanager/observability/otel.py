"""Optional tracing and metrics for log ingestion.

OpenTelemetry is used when enabled and installed; a Prometheus scrape
endpoint can run alongside it. With neither, every helper is a no-op.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator

from fastapi import FastAPI

from ccmanager import config

logger = logging.getLogger("ccmanager.observability")

INGESTION_EVENTS = "ccmanager_ingestion_events_total"
INGESTION_LATENCY = "ccmanager_ingestion_latency_ms"
PARSER_FAILURES = "ccmanager_parser_failures_total"


@dataclass
class _TelemetryState:
    initialized: bool = False
    otel_enabled: bool = False
    prom_enabled: bool = False
    tracer: Any = None
    providers: list[Any] = field(default_factory=list)
    instrumentor: Any = None
    # instrument name -> OTel instrument / Prometheus metric
    otel: dict[str, Any] = field(default_factory=dict)
    prom: dict[str, Any] = field(default_factory=dict)


_state = _TelemetryState()


def _signal_endpoint(base_endpoint: str, signal: str) -> str | None:
    """Append ``/v1/<signal>`` to a collector base URL unless already present."""
    endpoint = (base_endpoint or "").strip().rstrip("/")
    if not endpoint:
        return None
    suffix = f"/v1/{signal}"
    if endpoint.endswith(suffix):
        return endpoint
    if endpoint.endswith("/v1"):
        endpoint = endpoint[: -len("/v1")]
    return f"{endpoint}{suffix}"


def _setup_otel() -> bool:
    try:
        from opentelemetry import metrics, trace
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as exc:
        logger.warning("OpenTelemetry packages missing, tracing stays off: %s", exc)
        return False

    service_name = config.OTEL_SERVICE_NAME or "ccmanager"
    resource = Resource.create({"service.name": service_name})

    tracer_provider = TracerProvider(resource=resource)
    tracer_provider.add_span_processor(
        BatchSpanProcessor(OTLPSpanExporter(endpoint=_signal_endpoint(config.OTEL_ENDPOINT, "traces")))
    )
    trace.set_tracer_provider(tracer_provider)

    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=_signal_endpoint(config.OTEL_ENDPOINT, "metrics"))
    )
    meter_provider = MeterProvider(resource=resource, metric_readers=[reader])
    metrics.set_meter_provider(meter_provider)
    meter = metrics.get_meter("ccmanager")

    _state.otel = {
        INGESTION_EVENTS: meter.create_counter(INGESTION_EVENTS, unit="1", description="Session log parses"),
        INGESTION_LATENCY: meter.create_histogram(INGESTION_LATENCY, unit="ms", description="Session log parse time"),
        PARSER_FAILURES: meter.create_counter(PARSER_FAILURES, unit="1", description="Skipped lines and files"),
    }
    _state.providers = [meter_provider, tracer_provider]
    _state.tracer = trace.get_tracer("ccmanager")
    _state.instrumentor = FastAPIInstrumentor()
    logger.info("OpenTelemetry exporting for service %s to %s", service_name, config.OTEL_ENDPOINT or "<default>")
    return True


def _setup_prometheus(port: int) -> bool:
    try:
        from prometheus_client import Counter, Histogram, start_http_server
    except ImportError as exc:
        logger.warning("prometheus_client missing, scrape endpoint not started: %s", exc)
        return False
    try:
        start_http_server(port)
    except OSError as exc:
        logger.warning("Prometheus scrape endpoint failed on port %s: %s", port, exc)
        return False

    _state.prom = {
        INGESTION_EVENTS: Counter(INGESTION_EVENTS, "Session log parses", ["entity", "result"]),
        INGESTION_LATENCY: Histogram(INGESTION_LATENCY, "Session log parse time", ["entity", "result"]),
        PARSER_FAILURES: Counter(PARSER_FAILURES, "Skipped lines and files", ["parser"]),
    }
    logger.info("Prometheus metrics on port %s", port)
    return True


def initialize(app: FastAPI | None = None) -> None:
    if not _state.initialized:
        _state.initialized = True
        if config.OTEL_ENABLED:
            _state.otel_enabled = _setup_otel()
        else:
            logger.info("OpenTelemetry disabled (CCM_OTEL_ENABLED=false)")
        if config.PROM_PORT > 0:
            _state.prom_enabled = _setup_prometheus(config.PROM_PORT)

    if app is not None and _state.otel_enabled and _state.instrumentor is not None:
        _state.instrumentor.instrument_app(app)


def shutdown(app: FastAPI | None = None) -> None:
    if not _state.otel_enabled:
        return
    if app is not None and _state.instrumentor is not None:
        try:
            _state.instrumentor.uninstrument_app(app)
        except Exception:
            logger.debug("FastAPI uninstrument failed", exc_info=True)
    for provider in _state.providers:
        try:
            provider.shutdown()
        except Exception:
            logger.debug("Telemetry provider shutdown failed", exc_info=True)
    _state.otel_enabled = False


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None) -> Iterator[Any]:
    if not _state.otel_enabled or _state.tracer is None:
        yield None
        return
    clean = {k: v for k, v in (attributes or {}).items() if v is not None}
    with _state.tracer.start_as_current_span(name, attributes=clean) as span:
        yield span


def record_ingestion(entity: str, result: str, duration_ms: float) -> None:
    labels = {"entity": entity or "unknown", "result": result or "unknown"}
    elapsed = max(0.0, float(duration_ms))
    if _state.otel_enabled:
        _state.otel[INGESTION_EVENTS].add(1, labels)
        _state.otel[INGESTION_LATENCY].record(elapsed, labels)
    if _state.prom_enabled:
        _state.prom[INGESTION_EVENTS].labels(**labels).inc()
        _state.prom[INGESTION_LATENCY].labels(**labels).observe(elapsed)


def record_parser_failure(parser: str, count: int = 1) -> None:
    if count <= 0:
        return
    labels = {"parser": parser or "unknown"}
    if _state.otel_enabled:
        _state.otel[PARSER_FAILURES].add(count, labels)
    if _state.prom_enabled:
        _state.prom[PARSER_FAILURES].labels(**labels).inc(count)
