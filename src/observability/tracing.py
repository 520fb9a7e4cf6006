import os

from flask import Flask

try:
    from opentelemetry import trace
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.instrumentation.flask import FlaskInstrumentor
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor
except Exception:  # pragma: no cover - optional dependency
    FlaskInstrumentor = None  # type: ignore

try:
    from opentelemetry.instrumentation.requests import RequestsInstrumentor
except Exception:  # pragma: no cover - optional dependency
    RequestsInstrumentor = None  # type: ignore

_requests_instrumented = False


def init_tracing(app: Flask) -> None:
    """Export spans for inbound Flask requests and the outbound calls between services."""
    global _requests_instrumented
    if FlaskInstrumentor is None:  # pragma: no cover - optional dependency
        return

    endpoint = app.config.get("OTEL_EXPORTER_OTLP_ENDPOINT") or os.getenv(
        "OTEL_EXPORTER_OTLP_ENDPOINT"
    )
    if not endpoint:
        return

    headers = app.config.get("OTEL_EXPORTER_OTLP_HEADERS") or os.getenv(
        "OTEL_EXPORTER_OTLP_HEADERS"
    )

    resource = Resource.create(
        {
            "service.name": app.config.get("SERVICE_NAME") or app.config.get("OTEL_SERVICE_NAME", "trackiq"),
        }
    )

    provider = TracerProvider(resource=resource)
    exporter = OTLPSpanExporter(
        endpoint=endpoint,
        headers=headers,
        insecure=app.config.get("OTEL_EXPORTER_OTLP_INSECURE", True),
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    trace.set_tracer_provider(provider)

    FlaskInstrumentor().instrument_app(app)
    # Process-wide; instrumenting twice would double every span
    if RequestsInstrumentor is not None and not _requests_instrumented:
        RequestsInstrumentor().instrument()
        _requests_instrumented = True
