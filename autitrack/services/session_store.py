# authentication session stores
# maps an opaque cookie token to a user id; the cookie never carries identity data

import logging
import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import delete, select

from autitrack.config import settings
from autitrack.services.db import Database
from autitrack.services.tables import UserSession

logger = logging.getLogger(__name__)


def _new_sid() -> str:
    return secrets.token_urlsafe(32)


class SessionStore(ABC):
    """server-side session storage keyed by session id"""

    def __init__(self, max_age_seconds: Optional[int] = None):
        self.max_age = timedelta(seconds=max_age_seconds or settings.SESSION_MAX_AGE_SECONDS)

    def _expiry(self) -> datetime:
        return datetime.now(timezone.utc) + self.max_age

    @abstractmethod
    async def create(self, user_id: int) -> str:
        """open a session for user_id and return its id"""

    @abstractmethod
    async def get(self, sid: str) -> Optional[int]:
        """user id bound to sid, or None if unknown or expired"""

    @abstractmethod
    async def destroy(self, sid: str) -> None:
        ...

    @abstractmethod
    async def destroy_user(self, user_id: int) -> None:
        """drop every session belonging to user_id"""

    @abstractmethod
    async def prune(self) -> int:
        """remove expired sessions, returns how many were removed"""


class MemorySessionStore(SessionStore):
    """in-process store for development and tests"""

    def __init__(self, max_age_seconds: Optional[int] = None):
        super().__init__(max_age_seconds)
        self._sessions: dict[str, tuple[int, datetime]] = {}

    async def create(self, user_id: int) -> str:
        sid = _new_sid()
        self._sessions[sid] = (user_id, self._expiry())
        return sid

    async def get(self, sid: str) -> Optional[int]:
        record = self._sessions.get(sid)
        if record is None:
            return None
        user_id, expires_at = record
        if expires_at <= datetime.now(timezone.utc):
            del self._sessions[sid]
            return None
        return user_id

    async def destroy(self, sid: str) -> None:
        self._sessions.pop(sid, None)

    async def destroy_user(self, user_id: int) -> None:
        for sid in [s for s, (uid, _) in self._sessions.items() if uid == user_id]:
            del self._sessions[sid]

    async def prune(self) -> int:
        now = datetime.now(timezone.utc)
        expired = [s for s, (_, exp) in self._sessions.items() if exp <= now]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)


class DatabaseSessionStore(SessionStore):
    """durable store backed by the user_sessions table"""

    def __init__(self, db: Database, max_age_seconds: Optional[int] = None):
        super().__init__(max_age_seconds)
        self.db = db

    async def create(self, user_id: int) -> str:
        sid = _new_sid()
        async with self.db.session() as session:
            session.add(UserSession(sid=sid, user_id=user_id, expires_at=self._expiry()))
            await session.commit()
        return sid

    async def get(self, sid: str) -> Optional[int]:
        now = datetime.now(timezone.utc)
        async with self.db.session() as session:
            result = await session.execute(
                select(UserSession.user_id).where(
                    UserSession.sid == sid,
                    UserSession.expires_at > now,
                )
            )
            return result.scalar_one_or_none()

    async def destroy(self, sid: str) -> None:
        async with self.db.session() as session:
            await session.execute(delete(UserSession).where(UserSession.sid == sid))
            await session.commit()

    async def destroy_user(self, user_id: int) -> None:
        async with self.db.session() as session:
            await session.execute(delete(UserSession).where(UserSession.user_id == user_id))
            await session.commit()

    async def prune(self) -> int:
        now = datetime.now(timezone.utc)
        async with self.db.session() as session:
            result = await session.execute(
                delete(UserSession).where(UserSession.expires_at <= now)
            )
            await session.commit()
        if result.rowcount:
            logger.info(f"Pruned {result.rowcount} expired sessions")
        return result.rowcount or 0


def build_session_store(db: Database) -> SessionStore:
    """pick the store named by SESSION_BACKEND"""
    if settings.SESSION_BACKEND == "memory":
        return MemorySessionStore()
    return DatabaseSessionStore(db)
