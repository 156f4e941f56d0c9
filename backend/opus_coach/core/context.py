"""Per-request context utilities."""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    """Return the current request id if available."""
    return request_id_ctx_var.get()


@contextmanager
def bind_request_id(request_id: str | None) -> Iterator[None]:
    """
    Bind a request id for the duration of the block.

    Background jobs run after the originating response has been sent, so they re-bind
    the submitting request's id to keep their log lines correlated with it.
    """
    token = request_id_ctx_var.set(request_id)
    try:
        yield
    finally:
        request_id_ctx_var.reset(token)
