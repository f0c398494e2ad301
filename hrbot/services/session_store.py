"""In-process session stores for dialogue and claim state.

Per-user state is only ever touched by that user's own events, so no locking
is needed; the asyncio event loop runs one handler step at a time.
State is not persisted and is lost on restart.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")

DEFAULT_CLAIM_TTL = timedelta(minutes=10)


class SessionStore(Generic[K, V]):
    """Keyed in-memory store with explicit get/set/delete."""

    def __init__(self) -> None:
        self._items: dict[K, V] = {}

    def get(self, key: K) -> V | None:
        return self._items.get(key)

    def set(self, key: K, value: V) -> None:
        self._items[key] = value

    def delete(self, key: K) -> None:
        self._items.pop(key, None)

    def pop(self, key: K) -> V | None:
        return self._items.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __len__(self) -> int:
        return len(self._items)


@dataclass
class ClaimSession:
    """Pending takeover of an already-linked personnel record."""

    session_id: str
    requester_id: int
    requester_username: str | None
    holder_id: int
    """Telegram ID currently linked to the record (the one who decides)."""
    employee_id: int
    form: Any
    expires_at: datetime
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or datetime.now(timezone.utc)) >= self.expires_at


class ClaimSessionStore(SessionStore[str, ClaimSession]):
    """Claim sessions keyed by generated session id, expired lazily on lookup."""

    def __init__(self, ttl: timedelta = DEFAULT_CLAIM_TTL) -> None:
        super().__init__()
        self.ttl = ttl

    def create(
        self,
        requester_id: int,
        requester_username: str | None,
        holder_id: int,
        employee_id: int,
        form: Any,
        now: datetime | None = None,
    ) -> ClaimSession:
        """Create and store a new claim session expiring after the configured TTL."""
        now = now or datetime.now(timezone.utc)
        session = ClaimSession(
            session_id=uuid.uuid4().hex,
            requester_id=requester_id,
            requester_username=requester_username,
            holder_id=holder_id,
            employee_id=employee_id,
            form=form,
            expires_at=now + self.ttl,
            created_at=now,
        )
        self.set(session.session_id, session)
        logger.info(
            "Claim session %s created: requester=%s holder=%s employee=%s",
            session.session_id,
            requester_id,
            holder_id,
            employee_id,
        )
        return session

    def get(self, key: str, now: datetime | None = None) -> ClaimSession | None:
        session = super().get(key)
        if session is None:
            return None
        if session.is_expired(now):
            logger.info("Claim session %s expired, dropping", key)
            self.delete(key)
            return None
        return session


__all__ = ["SessionStore", "ClaimSession", "ClaimSessionStore", "DEFAULT_CLAIM_TTL"]
