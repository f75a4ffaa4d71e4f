"""
TTL Cache
=========

A single-slot cache with a time-to-live and the shared validity rule:
a value containing zero events is never valid. An empty upstream batch
is the signature of a transient outage, not a quiet period, so an empty
value is neither served fresh nor used as a stale fallback.
"""

from __future__ import annotations
from typing import Callable, Generic, Optional, TypeVar
from datetime import datetime


T = TypeVar('T')


class TTLCache(Generic[T]):
    """
    Holds the last stored value and the time it was stored.

    `get` returns it only while fresh; `stale` returns it at any age.
    """

    def __init__(self, ttl_seconds: float, size: Callable[[T], int] = len):
        self._ttl = ttl_seconds
        self._size = size
        self._value: Optional[T] = None
        self._stored_at: Optional[datetime] = None

    def put(self, value: T, now: datetime) -> bool:
        """Store `value`; an empty value is ignored. Returns whether stored."""
        if not self._size(value):
            return False
        self._value = value
        self._stored_at = now
        return True

    def get(self, now: datetime) -> Optional[T]:
        if not self.is_fresh(now):
            return None
        return self._value

    def stale(self) -> Optional[T]:
        if self._value is None or not self._size(self._value):
            return None
        return self._value

    def is_fresh(self, now: datetime) -> bool:
        if self._value is None or self._stored_at is None:
            return False
        if not self._size(self._value):
            return False
        return (now - self._stored_at).total_seconds() < self._ttl

    def age(self, now: datetime) -> Optional[float]:
        if self._stored_at is None:
            return None
        return (now - self._stored_at).total_seconds()

    def clear(self) -> None:
        self._value = None
        self._stored_at = None
