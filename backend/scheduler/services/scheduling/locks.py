# backend/scheduler/services/scheduling/locks.py
"""
Advisory slot lock in Redis.

Key format: lock:slot:{therapist_id}:{date}:{hour}
Value: random token of the holder; keys expire after ttl_seconds so a
crashed request cannot block a slot forever.

Two concurrent bookings of the same therapist hour both pass the
conflict check before either commits; holding the lock around
check + insert serializes them. Without Redis the lock is a no-op.
"""

import logging
import secrets
from contextlib import contextmanager
from datetime import date
from typing import Iterable

from redis import Redis

from .errors import ConflictError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30


class SlotLock:
    """Redis SET NX lock over (therapist, date, hour) keys."""

    KEY_PREFIX = "lock:slot"

    def __init__(self, redis: Redis | None, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.redis = redis
        self.ttl_seconds = ttl_seconds

    def _key(self, therapist_id: int, dt: date, hour: int) -> str:
        return f"{self.KEY_PREFIX}:{therapist_id}:{dt.isoformat()}:{hour:02d}"

    def acquire(self, therapist_id: int, slots: Iterable[tuple[date, int]]) -> tuple[str, list[str]]:
        """
        Lock every (date, hour) slot or none.

        Returns:
            (token, acquired keys)

        Raises:
            ConflictError: a slot is held by another request
        """
        token = secrets.token_hex(8)
        acquired: list[str] = []
        if self.redis is None:
            return token, acquired

        for dt, hour in slots:
            key = self._key(therapist_id, dt, hour)
            if key in acquired:
                continue
            if not self.redis.set(key, token, nx=True, ex=self.ttl_seconds):
                self.release(token, acquired)
                logger.warning(f"Slot lock busy: {key}")
                raise ConflictError(
                    f"Therapist {therapist_id} slot {dt.isoformat()} {hour:02d}:00 is being booked",
                    dates=[dt],
                )
            acquired.append(key)
        return token, acquired

    def release(self, token: str, keys: list[str]) -> None:
        if self.redis is None:
            return
        for key in keys:
            # Only release keys still held by this token
            if self.redis.get(key) == token:
                self.redis.delete(key)

    @contextmanager
    def hold(self, therapist_id: int, slots: Iterable[tuple[date, int]]):
        token, keys = self.acquire(therapist_id, slots)
        try:
            yield
        finally:
            self.release(token, keys)
