"""Bearer-token sessions for the admin dashboard."""

from __future__ import annotations

import hashlib
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from threading import Lock

from eduportal.errors import AuthError, ValidationError
from eduportal.schemas.auth import Admin
from eduportal.services.audit import AuditService
from eduportal.services.auth import verify_password
from eduportal.services.common import Clock, utc_now
from eduportal.services.store import Store

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def hash_session_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class AdminSession:
    admin_id: str
    expires_at: datetime


class SessionRegistry:
    """Issue, verify and revoke opaque admin session tokens.

    Only a SHA-256 digest of each token is kept, so a dump of the registry
    cannot be replayed. Sessions live in process memory and do not survive a
    restart.
    """

    def __init__(
        self,
        store: Store,
        audit: AuditService,
        clock: Clock = utc_now,
        ttl: timedelta = timedelta(hours=24),
    ) -> None:
        self._store = store
        self._audit = audit
        self._clock = clock
        self._ttl = ttl
        self._sessions: dict[str, AdminSession] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def login(self, email: str, password: str) -> tuple[str, Admin]:
        if not email or not email.strip() or not password:
            raise ValidationError("Email and password are required")

        admin = self._store.get_admin_by_email(email)
        if admin is None or not verify_password(password, admin.password_hash):
            logger.info("Failed admin login for %s", email.strip().lower())
            raise AuthError(INVALID_CREDENTIALS)

        self.purge_expired()
        token = secrets.token_hex(32)
        session = AdminSession(admin_id=admin.id, expires_at=self._clock() + self._ttl)
        with self._lock:
            self._sessions[hash_session_token(token)] = session

        self._audit.record(
            "admin_login",
            "admin",
            admin.id,
            performed_by=admin.id,
            details=f"Admin {admin.email} logged in",
        )
        logger.info("Admin logged in", extra={"actor_id": admin.id})
        return token, admin

    def verify(self, token: str | None) -> str:
        """Return the admin id bound to ``token`` or raise ``AuthError``."""
        if not token:
            raise AuthError("Unauthorized")
        key = hash_session_token(token)
        now = self._clock()
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                raise AuthError("Unauthorized")
            if now > session.expires_at:
                del self._sessions[key]
                raise AuthError("Session expired")
            return session.admin_id

    def logout(self, token: str | None) -> None:
        if not token:
            return
        with self._lock:
            session = self._sessions.pop(hash_session_token(token), None)
        if session is not None:
            self._audit.record(
                "admin_logout", "admin", session.admin_id, performed_by=session.admin_id
            )

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [k for k, s in self._sessions.items() if now > s.expires_at]
            for key in expired:
                del self._sessions[key]
        if expired:
            logger.debug("Purged %d expired admin sessions", len(expired))
        return len(expired)
