"""Booking session storage."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from redis.exceptions import RedisError

from app.config import settings
from app.infra.redis import get_redis, RedisClient, APP_PREFIX
from .models import BookingState

logger = logging.getLogger(__name__)

# Session key prefix (extends existing APP_PREFIX)
BOOKING_PREFIX = f"{APP_PREFIX}booking:"


class BookingSessionStore(ABC):
    """
    One BookingState per session key.

    A missing record means the session is idle. The store does not decide
    lifetimes; callers delete records on cancel or confirmed creation.
    """

    @abstractmethod
    async def get(self, session_id: str) -> Optional[BookingState]:
        ...

    @abstractmethod
    async def set(self, session_id: str, state: BookingState) -> None:
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> bool:
        ...

    async def save(self, session_id: str, state: BookingState) -> None:
        """Persist an active state, or drop the record for an inactive one."""
        if not state.is_active:
            await self.delete(session_id)
            return
        state.touch()
        await self.set(session_id, state)


class InMemorySessionStore(BookingSessionStore):
    """Process-local store (tests, single-worker dev)."""

    def __init__(self):
        self._states: dict[str, str] = {}

    async def get(self, session_id: str) -> Optional[BookingState]:
        data = self._states.get(session_id)
        return BookingState.from_json(data) if data else None

    async def set(self, session_id: str, state: BookingState) -> None:
        # Stored serialized so callers never share a mutable instance
        self._states[session_id] = state.to_json()

    async def delete(self, session_id: str) -> bool:
        return self._states.pop(session_id, None) is not None


class SessionManager(BookingSessionStore):
    """
    Redis-backed booking session store.

    Key pattern: pawcare:v1:booking:{session_id}

    Gracefully handles Redis unavailability with in-memory fallback.
    """

    def __init__(self, ttl: Optional[int] = None):
        """Initialize session manager.

        Args:
            ttl: Record TTL in seconds (defaults to settings.redis_session_ttl)
        """
        self._ttl = ttl or settings.redis_session_ttl
        self._in_memory_fallback = InMemorySessionStore()

    def _key(self, session_id: str) -> str:
        """Generate Redis key."""
        return f"{BOOKING_PREFIX}{session_id}"

    def _degrade(self, operation: str, error: Exception) -> None:
        logger.warning(
            f"Redis {operation} failed ({error}), using in-memory fallback"
        )
        RedisClient.mark_disconnected()

    async def get(self, session_id: str) -> Optional[BookingState]:
        """
        Get booking state by session ID.

        Args:
            session_id: Session identifier

        Returns:
            BookingState or None if the session is idle
        """
        redis = await get_redis()

        if redis:
            try:
                data = await redis.get(self._key(session_id))
                if data:
                    return BookingState.from_json(data)
                return None
            except RedisError as e:
                self._degrade("get", e)

        return await self._in_memory_fallback.get(session_id)

    async def set(self, session_id: str, state: BookingState) -> None:
        """Write the state and refresh its TTL."""
        redis = await get_redis()

        if redis:
            try:
                await redis.setex(self._key(session_id), self._ttl, state.to_json())
                logger.debug(f"Booking state saved: {session_id}")
                return
            except RedisError as e:
                self._degrade("set", e)

        await self._in_memory_fallback.set(session_id, state)

    async def delete(self, session_id: str) -> bool:
        """
        Delete a session's booking state.

        Returns:
            True if a record existed
        """
        deleted = await self._in_memory_fallback.delete(session_id)
        redis = await get_redis()

        if redis:
            try:
                deleted = bool(await redis.delete(self._key(session_id))) or deleted
            except RedisError as e:
                self._degrade("delete", e)

        if deleted:
            logger.debug(f"Booking state deleted: {session_id}")
        return deleted


# Singleton
_manager: Optional[BookingSessionStore] = None


def get_session_manager() -> BookingSessionStore:
    """Get singleton booking session store."""
    global _manager
    if _manager is None:
        _manager = SessionManager()
    return _manager
