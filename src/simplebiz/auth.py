"""Admin sessions.

Signing in exchanges the admin's credentials for a backend token. The token
is kept server-side in a `Session`; the browser only holds a random session
id in an HTTP-only cookie. Route handlers resolve the session and pass its
token explicitly into the `ApiConfig` of any backend call they make.
"""

from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass
from typing import Any

from simplebiz.api import BackendClient
from simplebiz.errors import AuthorizationFailure

SESSION_COOKIE = "simplebiz_session"
LOGIN_PATH = "/admin/login"

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Session:
    """A signed-in admin."""

    session_id: str
    user_id: str
    email: str
    name: str
    access_token: str | None
    expires_at: int  # Unix timestamp ms

    def is_expired(self, now_ms: int | None = None) -> bool:
        now_ms = int(time.time() * 1000) if now_ms is None else now_ms
        return now_ms >= self.expires_at


class SessionStore:
    """In-process session registry keyed by session id."""

    def __init__(self, ttl_ms: int) -> None:
        self._ttl_ms = ttl_ms
        self._sessions: dict[str, Session] = {}

    def create(
        self,
        *,
        user_id: str,
        email: str,
        name: str = "",
        access_token: str | None = None,
    ) -> Session:
        now_ms = int(time.time() * 1000)
        self.purge_expired(now_ms)
        session = Session(
            session_id=secrets.token_urlsafe(32),
            user_id=user_id,
            email=email,
            name=name,
            access_token=access_token,
            expires_at=now_ms + self._ttl_ms,
        )
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str | None) -> Session | None:
        """Look up a live session; expired sessions are dropped."""
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if session.is_expired():
            del self._sessions[session_id]
            return None
        return session

    def purge_expired(self, now_ms: int | None = None) -> int:
        """Drop every expired session; returns how many were removed."""
        expired = [sid for sid, s in self._sessions.items() if s.is_expired(now_ms)]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)

    def delete(self, session_id: str | None) -> None:
        if session_id:
            self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)


async def sign_in(
    api: BackendClient, store: SessionStore, email: str, password: str
) -> Session:
    """Authenticate against the backend and open a session.

    Raises AuthorizationFailure when the credentials are missing or rejected.
    """
    if not email or not password:
        raise AuthorizationFailure("Email and password are required")

    response = await api.login(email, password)
    payload: Any = response.data
    if not response.ok or not isinstance(payload, dict) or not payload.get("token"):
        logger.warning("Sign-in failed for %s: %s", email, response.error or "no token")
        raise AuthorizationFailure("Invalid email or password")

    user = payload.get("user") or {}
    session = store.create(
        user_id=str(user.get("id", "")),
        email=str(user.get("email") or email),
        name=str(user.get("name") or ""),
        access_token=str(payload["token"]),
    )
    logger.info("Admin %s signed in", session.email)
    return session


def safe_callback_url(url: str | None, default: str = "/admin") -> str:
    """Only allow redirects to local admin paths after sign-in."""
    if not url or not url.startswith("/admin") or url.startswith("//"):
        return default
    if url.startswith(LOGIN_PATH):
        return default
    return url


__all__ = [
    "LOGIN_PATH",
    "SESSION_COOKIE",
    "Session",
    "SessionStore",
    "safe_callback_url",
    "sign_in",
]
