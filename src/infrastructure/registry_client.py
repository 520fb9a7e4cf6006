"""HTTP client for the service directory."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from config import Config
from src.domain.errors import InternalError, UpstreamError

logger = logging.getLogger(__name__)


class ServiceRegistryClient:
    def __init__(self, base_url: Optional[str] = None,
                 session: Optional[requests.Session] = None,
                 timeout: Optional[float] = None):
        self.base_url = (base_url or Config.SERVICE_REGISTRY_BASE_URL).rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout or Config.HTTP_TIMEOUT_SECONDS

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as exc:
            logger.error("Service registry unreachable at %s: %s", url, exc)
            raise InternalError("Unable to contact Service Registry") from exc
        if not response.ok:
            logger.error("Service registry %s %s returned %s: %s", method, path, response.status_code, response.text)
            raise UpstreamError("Service registry request failed", status_code=response.status_code, raw=response.text)
        return response

    def register(self, service_id: str, name: str, url: str, description: str = '') -> Dict[str, Any]:
        payload = {'id': service_id, 'name': name, 'description': description, 'url': url}
        return self._request('POST', '/services/register', json=payload).json()

    def list_services(self) -> List[Dict[str, Any]]:
        return self._request('GET', '/services').json()

    def search(self, q: str = '') -> List[Dict[str, Any]]:
        return self._request('GET', '/services/search', params={'q': q}).json()


def announce(service_id: str, name: str, url: str, description: str = '',
             client: Optional[ServiceRegistryClient] = None) -> bool:
    """Register ``service_id`` with the directory; failures are only logged."""
    client = client or ServiceRegistryClient()
    try:
        client.register(service_id, name, url, description)
    except (InternalError, UpstreamError) as exc:
        logger.warning("Could not register %s with the service registry: %s", service_id, exc.message)
        return False
    logger.info("Registered %s -> %s with the service registry.", service_id, url)
    return True


__all__ = ["ServiceRegistryClient", "announce"]
