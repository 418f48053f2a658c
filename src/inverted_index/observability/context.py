"""Correlation fields (trace id, span id, corpus) shared by the log records of a run."""

from __future__ import annotations

from contextvars import ContextVar, Token
from typing import Any
from uuid import uuid4


_fields: ContextVar[dict[str, Any] | None] = ContextVar("log_fields", default=None)


def current_fields() -> dict[str, Any]:
    """Fields of the current context; trace and span ids are minted on first use."""
    fields = _fields.get()
    if not fields or "trace_id" not in fields:
        fields = {"trace_id": uuid4().hex, "span_id": uuid4().hex[:16], **(fields or {})}
        _fields.set(fields)
    return fields


def bind_fields(**fields: Any) -> Token[dict[str, Any] | None]:
    """Merge ``fields`` into the context; the token undoes it via :func:`reset_fields`."""
    return _fields.set({**(_fields.get() or {}), **fields})


def reset_fields(token: Token[dict[str, Any] | None]) -> None:
    _fields.reset(token)
