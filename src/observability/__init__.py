# noqa: D104 - package initialization
from .logging import configure_structured_logging  # noqa: F401
from .metrics import (  # noqa: F401
    metrics_blueprint,
    record_degraded_lookup,
    record_token_refresh,
    record_upstream_call,
    update_registry_gauge,
)
from .tracing import init_tracing  # noqa: F401
