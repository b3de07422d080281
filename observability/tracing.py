"""Span helper for recording call timings on a session."""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator


@contextmanager
def span(state: Any, name: str) -> Iterator[None]:
    """Append ``{"span": name, "ms": elapsed, "ok": bool}`` to ``state.events``."""
    start = time.perf_counter()
    ok = False
    try:
        yield
        ok = True
    finally:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        state.events.append({"span": name, "ms": elapsed_ms, "ok": ok})


__all__ = ["span"]
