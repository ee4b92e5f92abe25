"""Observability utilities for the AI interview pipeline."""
from .logger import log_event
from .tracing import span

__all__ = ["log_event", "span"]
