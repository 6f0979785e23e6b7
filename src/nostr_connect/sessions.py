"""
In-memory session store.

One store per signer/wallet instance. All access goes through a lock so a
facade can be shared by request handlers running on several threads.
"""

from __future__ import annotations

import hashlib
import itertools
import logging
import secrets
import threading
import time
from enum import Enum
from typing import Callable, Iterable, Optional, Union

from nostr_connect.crypto.keys import validate_public_key
from nostr_connect.errors import InvalidKeyError, SessionNotFoundError
from nostr_connect.models.permission import Permission, parse_permissions
from nostr_connect.models.session import ConnectMetadata, Session

logger = logging.getLogger(__name__)


class SessionIdScheme(str, Enum):
    RANDOM = "random"
    HASHED = "hashed"  # sha256(signer:client:millis:counter), legacy NIP-46 shape


# HASHED is the legacy NIP-46 id shape; RANDOM departs from it. Opt in to HASHED for peers that derive ids.
DEFAULT_SESSION_ID_SCHEME = SessionIdScheme.RANDOM

PermissionsArg = Iterable[Union[str, Permission]]


def _short(value: str) -> str:
    return f"{value[:8]}…" if len(value) > 8 else value


class SessionStore:
    def __init__(
        self,
        signer_public_key: str,
        id_scheme: SessionIdScheme = DEFAULT_SESSION_ID_SCHEME,
        clock: Callable[[], float] = time.time,
    ):
        self._signer_public_key = signer_public_key
        self._id_scheme = id_scheme
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()
        self._counter = itertools.count()

    def _now(self) -> int:
        return int(self._clock())

    def _new_id(self, public_key: str) -> str:
        if self._id_scheme is SessionIdScheme.HASHED:
            seed = f"{self._signer_public_key}:{public_key}:{int(self._clock() * 1000)}:{next(self._counter)}"
            return hashlib.sha256(seed.encode("utf-8")).hexdigest()
        return secrets.token_hex(32)

    def create(
        self,
        public_key: str,
        metadata: Union[ConnectMetadata, dict],
        permissions: PermissionsArg,
        session_id: Optional[str] = None,
    ) -> Session:
        """Create and store a session.

        Pass `session_id` to address the session by a fixed key (the wallet uses
        the app public key). If that key is already stored, the requested
        permissions are added to the existing grant and the metadata replaced;
        grants are never narrowed here.
        """
        if not validate_public_key(public_key):
            raise InvalidKeyError(f"Invalid counterparty public key: {public_key!r}")
        granted = parse_permissions(list(permissions))
        meta = metadata if isinstance(metadata, ConnectMetadata) else ConnectMetadata.model_validate(metadata)
        now = self._now()
        with self._lock:
            existing = self._sessions.get(session_id) if session_id is not None else None
            if existing is not None:
                existing.permissions = existing.permissions | granted
                existing.metadata = meta
                session = existing
            else:
                sid = session_id or self._new_id(public_key)
                while session_id is None and sid in self._sessions:
                    sid = self._new_id(public_key)
                session = Session(
                    id=sid,
                    public_key=public_key,
                    metadata=meta,
                    permissions=granted,
                    created_at=now,
                    last_used=now,
                )
                self._sessions[sid] = session
            snapshot = session.model_copy(deep=True)
        verb = "updated" if existing is not None else "created"
        logger.info(
            f"Session {_short(snapshot.id)} {verb} for {_short(public_key)} "
            f"with permissions {sorted(snapshot.permission_strings())}"
        )
        return snapshot

    def get(self, session_id: str) -> Session:
        """Return a snapshot of a session."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError()
            return session.model_copy(deep=True)

    def get_or_none(self, session_id: str) -> Optional[Session]:
        with self._lock:
            session = self._sessions.get(session_id)
            return session.model_copy(deep=True) if session is not None else None

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def touch(self, session_id: str) -> None:
        now = self._now()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError()
            session.last_used = max(session.last_used, now)

    def remove(self, session_id: str) -> bool:
        """Delete a session. Removing an unknown id is a no-op."""
        with self._lock:
            removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.info(f"Session {_short(session_id)} removed")
        return removed

    def cleanup(self, max_age: int) -> list[str]:
        """Drop sessions idle for more than `max_age` seconds. Returns removed ids."""
        now = self._now()
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if now - s.last_used > max_age]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.info(f"Expired {len(expired)} session(s) idle longer than {max_age}s")
        return expired

    def list(self) -> dict[str, Session]:
        with self._lock:
            return {sid: s.model_copy(deep=True) for sid, s in self._sessions.items()}
