"""
Session based authentication for dashboard operators.

The HTTP layer only depends on the ``SessionStore`` interface; the in-memory
store is the default backing and is swept periodically by ``SessionSweeper``.
"""

import asyncio
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional

import bcrypt
import structlog
from sqlalchemy.orm import Session

from waleki.core.config import settings
from waleki.core.timeutils import utcnow
from waleki.models.user import User

logger = structlog.get_logger(__name__)

@dataclass
class UserSession:
    user_id: int
    role: str
    expires_at: datetime

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires_at <= (now or utcnow())

class SessionStore:
    """Storage interface for active sessions"""

    def get(self, token: str) -> Optional[UserSession]:
        raise NotImplementedError

    def set(self, token: str, session: UserSession):
        raise NotImplementedError

    def delete(self, token: str):
        raise NotImplementedError

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        raise NotImplementedError

    def delete_for_user(self, user_id: int) -> int:
        raise NotImplementedError

class InMemorySessionStore(SessionStore):
    """Token to session map held in process memory"""

    def __init__(self):
        self._sessions: Dict[str, UserSession] = {}
        self._lock = threading.Lock()

    def get(self, token: str) -> Optional[UserSession]:
        with self._lock:
            session = self._sessions.get(token)
            if session and session.is_expired():
                del self._sessions[token]
                return None
            return session

    def set(self, token: str, session: UserSession):
        with self._lock:
            self._sessions[token] = session

    def delete(self, token: str):
        with self._lock:
            self._sessions.pop(token, None)

    def purge_expired(self, now: Optional[datetime] = None) -> int:
        now = now or utcnow()
        with self._lock:
            expired = [token for token, session in self._sessions.items() if session.is_expired(now)]
            for token in expired:
                del self._sessions[token]
        return len(expired)

    def delete_for_user(self, user_id: int) -> int:
        with self._lock:
            tokens = [token for token, session in self._sessions.items() if session.user_id == user_id]
            for token in tokens:
                del self._sessions[token]
        return len(tokens)

    def __len__(self):
        with self._lock:
            return len(self._sessions)

session_store = InMemorySessionStore()

def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        logger.warning("Unreadable password hash")
        return False

def create_session(user: User, store: SessionStore = session_store, ttl_hours: Optional[int] = None) -> str:
    """Open a session for user and return its bearer token"""
    token = uuid.uuid4().hex
    expires_at = utcnow() + timedelta(hours=ttl_hours or settings.session_ttl_hours)
    store.set(token, UserSession(user_id=user.id, role=user.role, expires_at=expires_at))
    logger.info("Session created", user_id=user.id, expires_at=expires_at.isoformat())
    return token

def authenticate_user(db: Session, username: str, password: str) -> Optional[User]:
    user = db.query(User).filter(User.username == username).first()
    if not user or not verify_password(password, user.password_hash):
        return None
    return user

class SessionSweeper:
    """Periodically removes expired sessions"""

    def __init__(self, store: SessionStore = session_store, interval: Optional[int] = None):
        self.store = store
        self.interval = interval or settings.session_sweep_interval
        self.running = False
        self._task: Optional[asyncio.Task] = None

    def start(self):
        """Start the sweep loop on the running event loop"""
        self.running = True
        self._task = asyncio.create_task(self._sweep_loop())
        logger.info("Session sweeper started", interval=self.interval)

    async def stop(self):
        """Stop the sweep loop"""
        self.running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Session sweeper stopped")

    def sweep_once(self, now: Optional[datetime] = None) -> int:
        removed = self.store.purge_expired(now)
        if removed:
            logger.info("Expired sessions removed", count=removed)
        return removed

    async def _sweep_loop(self):
        """Main sweep loop"""
        while self.running:
            await asyncio.sleep(self.interval)
            try:
                self.sweep_once()
            except Exception as e:
                logger.error("Error sweeping sessions", error=str(e))
