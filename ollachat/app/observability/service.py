from __future__ import annotations

import json
import logging
import time
from dataclasses import asdict
from uuid import uuid4

from ollachat.app.observability.contracts import RelayTrace


def relay_trace(
    *,
    endpoint: str,
    model: str,
    message_count: int,
    started_at: float,
    status: str = "ok",
    upstream_status: int | None = None,
    error_class: str | None = None,
) -> RelayTrace:
    elapsed_ms = int((time.perf_counter() - started_at) * 1000)
    return RelayTrace(
        trace_id=f"trace-{uuid4().hex[:10]}",
        endpoint=endpoint,
        model=model,
        message_count=message_count,
        status=status,
        latency_ms=max(elapsed_ms, 0),
        upstream_status=upstream_status,
        error_class=error_class,
    )


def emit_relay_event(
    trace: RelayTrace,
    logger: logging.Logger | None = None,
) -> None:
    active_logger = logger or logging.getLogger(__name__)
    active_logger.info("relay_event %s", json.dumps(asdict(trace), sort_keys=True))
