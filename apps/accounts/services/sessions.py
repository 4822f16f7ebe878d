"""
In-memory scan sessions.

SessionHolder keeps the single session of one scan terminal.
SessionRegistry keeps many sessions keyed by id for the HTTP API.
Neither is persisted; a restart signs everybody out. Registry sessions
last as long as the access token issued for them and are dropped once
expired.
"""

import logging
import secrets
import threading
from datetime import timedelta
from typing import Dict, Optional

from django.conf import settings
from django.utils import timezone

from ..domain import Identity, ScanSession

logger = logging.getLogger(__name__)


def _new_session(identity: Identity, established_at=None) -> ScanSession:
    return ScanSession(
        session_id=secrets.token_urlsafe(24),
        identity=identity,
        established_at=established_at or timezone.now(),
    )


class SessionHolder:
    """Current session of one terminal."""

    def __init__(self):
        self._session: Optional[ScanSession] = None
        self._lock = threading.Lock()

    def establish(self, identity: Identity) -> ScanSession:
        """Replace any current session with one for identity."""
        session = _new_session(identity)
        with self._lock:
            self._session = session
        logger.info("Session established for %s", identity.user_id)
        return session

    def current(self) -> Optional[ScanSession]:
        with self._lock:
            return self._session

    def clear(self) -> None:
        with self._lock:
            session, self._session = self._session, None
        if session is not None:
            logger.info("Session cleared for %s", session.user_id)


class SessionRegistry:
    """
    Concurrent sessions keyed by session id.

    A session older than max_age is treated as signed out. Expired sessions
    are dropped when looked up and swept on every establish(), so the
    registry only holds sessions whose tokens can still be presented.
    max_age defaults to SCAN_TOKEN_LIFETIME_MINUTES.
    """

    def __init__(self, max_age: Optional[timedelta] = None, clock=timezone.now):
        self._max_age = max_age
        self.clock = clock
        self._sessions: Dict[str, ScanSession] = {}
        self._lock = threading.Lock()

    @property
    def max_age(self) -> timedelta:
        if self._max_age is not None:
            return self._max_age
        return timedelta(minutes=settings.SCAN_TOKEN_LIFETIME_MINUTES)

    def _expired(self, session, now):
        return now - session.established_at >= self.max_age

    def establish(self, identity: Identity) -> ScanSession:
        now = self.clock()
        session = _new_session(identity, established_at=now)
        with self._lock:
            stale = [sid for sid, s in self._sessions.items() if self._expired(s, now)]
            for sid in stale:
                del self._sessions[sid]
            self._sessions[session.session_id] = session
        if stale:
            logger.info("Dropped %d expired sessions", len(stale))
        logger.info("Session established for %s", identity.user_id)
        return session

    def get(self, session_id: Optional[str]) -> Optional[ScanSession]:
        if not session_id:
            return None
        now = self.clock()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None and self._expired(session, now):
                del self._sessions[session_id]
                return None
            return session

    def __len__(self):
        with self._lock:
            return len(self._sessions)

    def clear(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        logger.info("Session cleared for %s", session.user_id)
        return True

    def clear_all(self) -> None:
        with self._lock:
            self._sessions.clear()


session_registry = SessionRegistry()
