"""Tracing utilities wrapping Opik."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Dict, Iterator, Optional

from opus_coach.core.context import get_request_id
from opus_coach.observability.client import get_opik_client

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from opik.api_objects.trace.trace_client import Trace
else:  # pragma: no cover - typing helper
    Trace = object  # type: ignore[assignment]

logger = logging.getLogger(__name__)


@contextmanager
def trace(
    name: str,
    metadata: Optional[Dict[str, Any]] = None,
    user_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Iterator[Optional["Trace"]]:
    """
    Create an Opik trace context manager.

    When Opik is disabled or unavailable the context is a no-op and yields None.
    The request id falls back to the one bound in the current context.
    """
    client = get_opik_client()
    opik_trace: Optional["Trace"] = None

    if client:
        trace_metadata = {key: value for key, value in (metadata or {}).items() if value is not None}
        if user_id:
            trace_metadata.setdefault("user_id", str(user_id))
        resolved_request_id = request_id or get_request_id()
        if resolved_request_id:
            trace_metadata.setdefault("request_id", resolved_request_id)
        try:
            opik_trace = client.trace(name=name, metadata=trace_metadata or None)
        except Exception as exc:  # pragma: no cover - defensive guard
            logger.debug("Unable to start Opik trace %s: %s", name, exc)
            opik_trace = None

    try:
        yield opik_trace
    except Exception as exc:
        if opik_trace:
            try:
                opik_trace.update(error_info={"message": str(exc)})
            except Exception:  # pragma: no cover
                logger.debug("Failed to attach error info to Opik trace %s", name, exc_info=True)
        raise
    finally:
        if opik_trace:
            try:
                opik_trace.end()
            except Exception:  # pragma: no cover
                logger.debug("Failed to close Opik trace %s cleanly", name, exc_info=True)


def annotate(opik_trace: Optional["Trace"], **metadata: Any) -> None:
    """Attach metadata to an active trace, ignoring disabled tracing."""
    if not opik_trace:
        return
    try:
        opik_trace.update(metadata=metadata)
    except Exception:  # pragma: no cover - defensive guard
        logger.debug("Failed to annotate Opik trace", exc_info=True)
