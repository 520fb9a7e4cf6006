"""In-memory service directory."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from src.domain.errors import NotFoundError, ValidationError
from src.models.dto import ServiceDescriptor
from src.observability.metrics import update_registry_gauge

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def _as_text(field: str, value: Any) -> Optional[str]:
    """Descriptor fields are stored as text; numbers and booleans are stringified."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, (int, float)):
        return str(value)
    raise ValidationError(f'Field {field} must be a string')


class ServiceDirectory:
    """Thread-safe keyed store of service descriptors.

    Registering an existing id updates it in place: ``created_at`` is kept and
    ``updated_at`` refreshed. Concurrent registrations of the same id are
    last-write-wins. Nothing is persisted.
    """

    def __init__(self, instance_name: str = 'service-registry', clock: Callable[[], str] = _utc_now_iso) -> None:
        self.instance_name = instance_name
        self._clock = clock
        self._services: Dict[str, ServiceDescriptor] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._services)

    def __contains__(self, service_id: str) -> bool:
        with self._lock:
            return service_id in self._services

    def register(self, service_id: Optional[str], name: Optional[str], url: Optional[str],
                 description: Optional[str] = None) -> Tuple[ServiceDescriptor, bool]:
        """Insert or update a descriptor; returns ``(descriptor, created)``."""
        if not service_id or not name or not url:
            raise ValidationError('Missing required fields: id, name, url')
        service_id = _as_text('id', service_id)
        name = _as_text('name', name)
        url = _as_text('url', url)
        description = _as_text('description', description)

        with self._lock:
            now = self._clock()
            existing = self._services.get(service_id)
            descriptor = ServiceDescriptor(
                id=service_id,
                name=name,
                description=description or '',
                url=url,
                created_at=existing.created_at if existing else now,
                updated_at=now,
            )
            self._services[service_id] = descriptor
            count = len(self._services)

        update_registry_gauge(count)
        logger.info('[%s] Registered service "%s" -> %s', self.instance_name, service_id, url)
        return descriptor, existing is None

    def get(self, service_id: str) -> Optional[ServiceDescriptor]:
        with self._lock:
            return self._services.get(service_id)

    def list(self) -> List[ServiceDescriptor]:
        with self._lock:
            services = list(self._services.values())
        return sorted(services, key=lambda s: s.name.lower())

    def search(self, q: Optional[str] = None) -> List[ServiceDescriptor]:
        """Case-insensitive substring match over id, name, description and url."""
        needle = (q or '').strip().lower()
        services = self.list()
        if not needle:
            return services
        return [
            svc for svc in services
            if needle in f"{svc.id} {svc.name} {svc.description} {svc.url}".lower()
        ]

    def delete(self, service_id: str) -> None:
        with self._lock:
            if service_id not in self._services:
                raise NotFoundError('Service not found')
            del self._services[service_id]
            count = len(self._services)
        update_registry_gauge(count)
        logger.info('[%s] Deleted service "%s"', self.instance_name, service_id)

    def heartbeat(self) -> int:
        count = len(self)
        logger.info('[%s] heartbeat - %s services registered', self.instance_name, count)
        return count


def start_heartbeat(directory: ServiceDirectory, interval_seconds: float,
                    stop_event: Optional[threading.Event] = None) -> Optional[threading.Thread]:
    """Log the directory size every ``interval_seconds`` on a daemon thread."""
    if interval_seconds <= 0:
        return None
    stop_event = stop_event or threading.Event()

    def _beat():
        while not stop_event.wait(interval_seconds):
            directory.heartbeat()

    thread = threading.Thread(target=_beat, name=f"{directory.instance_name}-heartbeat", daemon=True)
    thread.start()
    return thread


__all__ = ["ServiceDirectory", "start_heartbeat"]
