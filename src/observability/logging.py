"""Structured JSON logging shared by the three services."""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import current_app, g, has_app_context, has_request_context, request

try:
    from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
    from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
    from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
    from opentelemetry.sdk.resources import Resource
except Exception:  # pragma: no cover - optional dependency
    LoggerProvider = None  # type: ignore

REQUEST_FIELDS = ("request_id", "path", "method", "remote_addr")


def request_log_fields() -> Dict[str, Optional[str]]:
    """Request metadata for the active context, all ``None`` outside a request.

    Threads that work on behalf of a request (see ``fan_out``) run in an app
    context holding a snapshot of these fields in ``g.log_fields``.
    """
    if has_request_context():
        return {
            "request_id": g.get("request_id"),
            "path": request.path,
            "method": request.method,
            "remote_addr": request.headers.get("X-Forwarded-For", request.remote_addr),
        }
    if has_app_context() and "log_fields" in g:
        return dict(g.log_fields)
    return dict.fromkeys(REQUEST_FIELDS)


class RequestContextFilter(logging.Filter):
    """Stamp records with the owning service and request metadata."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = current_app.config.get("SERVICE_NAME") if has_app_context() else None
        for key, value in request_log_fields().items():
            setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    ``service_name`` labels records emitted outside any app context, e.g. the
    registry heartbeat thread or startup messages from ``manage.py``.
    """

    def __init__(self, service_name: Optional[str] = None) -> None:
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service", None) or self.service_name,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        payload.update((key, getattr(record, key, None)) for key in REQUEST_FIELDS)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _otlp_handler(endpoint: Optional[str], service_name: str) -> Optional[logging.Handler]:
    if LoggerProvider is None or not endpoint:
        return None
    provider = LoggerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_log_record_processor(BatchLogRecordProcessor(OTLPLogExporter(endpoint=endpoint)))
    return LoggingHandler(level=logging.INFO, logger_provider=provider)


def _json_stream_handler(root: logging.Logger) -> Optional[logging.Handler]:
    for handler in root.handlers:
        if isinstance(handler, logging.StreamHandler) and isinstance(handler.formatter, JsonFormatter):
            return handler
    return None


def configure_structured_logging(app) -> None:
    """Send root logging to one JSON stdout handler named after the app's service.

    The first app configured in a process names the handler. Records logged
    inside an app context still carry that app's own ``SERVICE_NAME``. An OTLP
    handler is added when ``OTEL_EXPORTER_OTLP_ENDPOINT`` is set.
    """
    service_name = app.config.get("SERVICE_NAME")
    root = logging.getLogger()

    handler = _json_stream_handler(root)
    if handler is None:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter(service_name))
        handler.addFilter(RequestContextFilter())
        root.addHandler(handler)
    elif handler.formatter.service_name is None:
        handler.formatter.service_name = service_name

    endpoint = app.config.get("OTEL_EXPORTER_OTLP_ENDPOINT") or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    otlp = _otlp_handler(endpoint, service_name or app.config.get("OTEL_SERVICE_NAME", "trackiq"))
    if otlp is not None:
        otlp.setFormatter(handler.formatter)
        otlp.addFilter(RequestContextFilter())
        root.addHandler(otlp)
