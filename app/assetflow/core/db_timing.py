from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass


@dataclass
class _Accumulator:
    total_ms: float = 0.0


# Holds a mutable accumulator so time added from a copied context (threadpool
# endpoints) is still visible to the request that started the timer.
_db_time: ContextVar[_Accumulator | None] = ContextVar("db_time", default=None)


@contextmanager
def db_timer():
    """Accumulate time spent in SQL statements for the enclosed block."""
    token = _db_time.set(_Accumulator())
    try:
        yield
    finally:
        _db_time.reset(token)


def add_db_time(delta_ms: float) -> None:
    accumulator = _db_time.get()
    if accumulator is None:
        return
    accumulator.total_ms += delta_ms


def get_db_time_ms() -> float | None:
    accumulator = _db_time.get()
    return accumulator.total_ms if accumulator is not None else None
