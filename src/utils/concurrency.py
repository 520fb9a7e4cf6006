"""Concurrent fan-out for independent upstream lookups."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Callable, List, Optional, Sequence, TypeVar

from flask import current_app, g, has_app_context

from config import Config
from src.observability.logging import request_log_fields

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def _with_log_context(call: Callable[[], R]) -> Callable[[], R]:
    """Run ``call`` in an app context that carries the caller's request id and log fields."""
    if not has_app_context():
        return call
    app = current_app._get_current_object()
    fields = request_log_fields()

    def _run():
        with app.app_context():
            g.request_id = fields["request_id"]
            g.log_fields = fields
            return call()

    return _run


def fan_out(func: Callable[[T], R], items: Sequence[T], *,
            max_workers: Optional[int] = None,
            label: str = "lookup") -> List[Optional[R]]:
    """Run ``func`` over ``items`` concurrently and join the results.

    Results keep the order of ``items``. An item whose call raises becomes
    ``None``; the rest of the batch is unaffected. Workers log with the
    caller's service name and request id.
    """
    items = list(items)
    if not items:
        return []
    workers = max(1, min(max_workers or Config.FANOUT_MAX_WORKERS, len(items)))
    results: List[Optional[R]] = []
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"fanout-{label}") as executor:
        futures = [executor.submit(_with_log_context(partial(func, item))) for item in items]
        for item, future in zip(items, futures):
            try:
                results.append(future.result())
            except Exception as exc:
                logger.warning("%s failed for %r: %s", label, item, exc)
                results.append(None)
    return results


__all__ = ["fan_out"]
