"""Span helper for timing pipeline steps as structured events."""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from .logger import log_event


@contextmanager
def span(kind: str, ref: str, **fields: Any) -> Iterator[dict]:
    """Time the wrapped block and log it; callers may add fields to the yielded dict."""

    start = time.time()
    extra: dict = dict(fields)
    outcome = "ok"
    try:
        yield extra
    except Exception as exc:
        outcome = "error"
        extra.setdefault("error", type(exc).__name__)
        raise
    finally:
        elapsed_ms = int((time.time() - start) * 1000)
        extra.setdefault("outcome", outcome)
        log_event(kind, ref, ms=elapsed_ms, **extra)


__all__ = ["span"]
