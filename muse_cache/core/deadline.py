"""
Caller Deadlines for Store Calls

A caller sets a deadline once, for example at the top of a request handler,
and every store call made within that context honors the remaining budget.
The deadline is carried in a ContextVar so it follows asyncio tasks.

Usage:
    with cache_deadline(0.25):
        track = await music_cache.get_track("4uLU6hMCjMI75M1A2tKUQC")
"""

import time
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

# Absolute monotonic time by which the current operation must finish
_deadline_ctx: ContextVar[float | None] = ContextVar("cache_deadline", default=None)


@contextmanager
def cache_deadline(seconds: float) -> Iterator[None]:
    """
    Bound every store call in this context to ``seconds`` from now.

    Nested deadlines can only shorten the budget, never extend it.
    Works as a plain ``with`` block inside async code.
    """
    new_deadline = time.monotonic() + seconds
    current = _deadline_ctx.get()
    if current is not None:
        new_deadline = min(current, new_deadline)

    token = _deadline_ctx.set(new_deadline)
    try:
        yield
    finally:
        _deadline_ctx.reset(token)


def remaining_time() -> float | None:
    """Seconds left before the current deadline, or None when unbounded."""
    deadline = _deadline_ctx.get()
    if deadline is None:
        return None
    return deadline - time.monotonic()


def effective_timeout(ceiling: float) -> float:
    """
    Timeout for the next store call: the tighter of the caller's remaining
    budget and the configured per-operation ceiling. Never negative.
    """
    remaining = remaining_time()
    if remaining is None:
        return ceiling
    return max(0.0, min(remaining, ceiling))
