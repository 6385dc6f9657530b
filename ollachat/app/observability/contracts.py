from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RelayTrace:
    trace_id: str
    endpoint: str
    model: str
    message_count: int
    status: str
    latency_ms: int
    upstream_status: int | None = None
    error_class: str | None = None
