"""Lightweight metrics helpers."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from opus_coach.observability import tracing

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record a metric as a short-lived Opik trace if tracing is enabled."""
    if not tracing.get_opik_client():
        return

    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)

    try:
        with tracing.trace(f"metric:{name}", metadata=payload):
            pass
    except Exception as exc:  # pragma: no cover - defensive
        logger.debug("Unable to record metric %s: %s", name, exc)


def log_provider_attempt(provider: str, kind: str, outcome: str, latency_ms: float) -> None:
    """Record one fallback-chain attempt (outcome is ok, error, unparseable or skipped)."""
    metadata = {"provider": provider, "kind": kind, "outcome": outcome}
    log_metric("generation.provider.attempt", 1, metadata=metadata)
    if outcome != "skipped":
        log_metric("generation.provider.latency_ms", latency_ms, metadata=metadata)
