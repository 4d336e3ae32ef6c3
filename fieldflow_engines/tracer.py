"""
fieldflow_engines.tracer -- Engine invocation tracer emitting FIELDFLOW_ENGINE_TRACE.

Responsibility:
    A lightweight decorator (``@traced_engine``) that wraps pure engine
    invocations with a structured trace record: engine name, version, a
    deterministic fingerprint of selected keyword inputs, and duration.

Architecture position:
    Engines -- infrastructure support for the pure calculation layer.
    Emits a log record only; uses its own logger namespace so engines never
    import kernel logging infrastructure.

Usage:
    @traced_engine("approval", "1.0", fingerprint_fields=("comment",))
    def approve(record, workflow, actor, *, comment="", ...):
        ...
"""

from __future__ import annotations

import functools
import hashlib
import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

_logger = logging.getLogger("fieldflow.engines.tracer")


def _canonicalize(value: Any) -> str:
    """Stable string form of a value for fingerprinting."""
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, (int, float, str)):
        return str(value)
    if isinstance(value, dict):
        items = sorted(value.items())
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    if isinstance(value, (set, frozenset)):
        return "[" + ",".join(sorted(_canonicalize(v) for v in value)) + "]"
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """SHA-256 prefix (16 hex chars) over the named kwargs; missing ones are "null"."""
    canonical = "|".join(
        f"{field}={_canonicalize(kwargs.get(field))}" for field in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator that emits FIELDFLOW_ENGINE_TRACE for pure engine invocations."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fp = ""
            if fingerprint_fields:
                fp = compute_input_fingerprint(fingerprint_fields, kwargs)

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            _logger.debug(
                "FIELDFLOW_ENGINE_TRACE",
                extra={
                    "trace_type": "FIELDFLOW_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fp,
                    "duration_ms": duration_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
