"""
AsyncNostrConnect / NostrConnect — NIP-46 remote signer.

One signer key, one session per client. Failures are raised as
NostrConnectError subclasses; sign_event returns the full signed event.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Iterable, Optional, Union

from nostr_connect.crypto.encryption import DEFAULT_SCHEME, EncryptionScheme
from nostr_connect.crypto.keys import get_public_key
from nostr_connect.crypto.pow import DEFAULT_POW_BUDGET, ProofOfWorkBudget
from nostr_connect.dispatcher import RequestDispatcher
from nostr_connect.errors import InvalidInputError
from nostr_connect.models.permission import Permission
from nostr_connect.models.rpc import ErrorDetail, Request, Response
from nostr_connect.models.session import ConnectMetadata, Session
from nostr_connect.sessions import DEFAULT_SESSION_ID_SCHEME, SessionIdScheme, SessionStore
from nostr_connect.transport.codec import TransportCodec
from nostr_connect.transport.envelope import parse_request

logger = logging.getLogger(__name__)


class AsyncNostrConnect:
    """Async remote signer (primary)."""

    def __init__(
        self,
        private_key: str,
        metadata: Union[ConnectMetadata, dict[str, Any]],
        *,
        scheme: EncryptionScheme = DEFAULT_SCHEME,
        session_ids: SessionIdScheme = DEFAULT_SESSION_ID_SCHEME,
        pow_budget: ProofOfWorkBudget = DEFAULT_POW_BUDGET,
        clock: Callable[[], float] = time.time,
    ):
        self._metadata = metadata if isinstance(metadata, ConnectMetadata) else ConnectMetadata.model_validate(metadata)
        self._codec = TransportCodec(private_key, scheme)
        self._store = SessionStore(get_public_key(private_key), session_ids, clock)
        self._dispatcher = RequestDispatcher(private_key, self._store, self._metadata, scheme, pow_budget)

    @property
    def public_key(self) -> str:
        return self._dispatcher.public_key

    @property
    def metadata(self) -> ConnectMetadata:
        return self._metadata.model_copy(deep=True)

    def create_session(
        self,
        client_pubkey: str,
        client_metadata: Union[ConnectMetadata, dict[str, Any]],
        permissions: Iterable[Union[str, Permission]],
    ) -> Session:
        """Register a client. Raises InvalidKeyError for a malformed client key."""
        return self._store.create(client_pubkey, client_metadata, permissions)

    async def handle_request(
        self,
        session_id: str,
        request: Union[Request, dict[str, Any]],
        *,
        pow_budget: Optional[ProofOfWorkBudget] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> Any:
        """Authorize and execute a request, returning its result or raising."""
        response = await self._dispatcher.dispatch(session_id, request, pow_budget=pow_budget, cancel=cancel)
        if response.error is not None:
            raise response.error.exception
        return response.result

    async def send_message(self, session_id: str, message: Any) -> str:
        """Encrypt a message for the session's client."""
        return self._codec.send(self._store.get(session_id), message)

    async def receive_message(self, session_id: str, encrypted_message: str) -> Any:
        """Decrypt and JSON-decode a message from the session's client."""
        return self._codec.receive(self._store.get(session_id), encrypted_message)

    async def handle_message(
        self,
        session_id: str,
        encrypted_message: str,
        *,
        pow_budget: Optional[ProofOfWorkBudget] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> str:
        """Decrypt a request, dispatch it, and return the encrypted wire response.

        Protocol failures become `{id, error}` responses. Decryption failures
        raise, since there is no request id to answer.
        """
        session = self._store.get(session_id)
        payload = self._codec.receive(session, encrypted_message)
        request = parse_request(payload)
        if request is None:
            request_id = str(payload.get("id", "")) if isinstance(payload, dict) else ""
            logger.warning(f"Malformed request {request_id!r} on session {session_id[:8]}")
            response = Response(id=request_id, error=ErrorDetail.from_exception(InvalidInputError("Malformed request")))
        else:
            response = await self._dispatcher.dispatch(session_id, request, pow_budget=pow_budget, cancel=cancel)
        return self._codec.send(session, response.to_wire())

    def remove_session(self, session_id: str) -> None:
        self._store.remove(session_id)

    def get_sessions(self) -> dict[str, Session]:
        """Snapshot of active sessions, keyed by id."""
        return self._store.list()

    def cleanup_sessions(self, max_age: int) -> list[str]:
        """Remove sessions idle for more than `max_age` seconds."""
        return self._store.cleanup(max_age)


class NostrConnect:
    """Sync wrapper around AsyncNostrConnect. Runs the event loop internally."""

    def __init__(self, private_key: str, metadata: Union[ConnectMetadata, dict[str, Any]], **kwargs: Any):
        self._async = AsyncNostrConnect(private_key, metadata, **kwargs)
        self._loop = asyncio.new_event_loop()

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def public_key(self) -> str:
        return self._async.public_key

    @property
    def metadata(self) -> ConnectMetadata:
        return self._async.metadata

    def create_session(
        self,
        client_pubkey: str,
        client_metadata: Union[ConnectMetadata, dict[str, Any]],
        permissions: Iterable[Union[str, Permission]],
    ) -> Session:
        return self._async.create_session(client_pubkey, client_metadata, permissions)

    def handle_request(self, session_id: str, request: Union[Request, dict[str, Any]], **kwargs: Any) -> Any:
        return self._run(self._async.handle_request(session_id, request, **kwargs))

    def send_message(self, session_id: str, message: Any) -> str:
        return self._run(self._async.send_message(session_id, message))

    def receive_message(self, session_id: str, encrypted_message: str) -> Any:
        return self._run(self._async.receive_message(session_id, encrypted_message))

    def handle_message(self, session_id: str, encrypted_message: str, **kwargs: Any) -> str:
        return self._run(self._async.handle_message(session_id, encrypted_message, **kwargs))

    def remove_session(self, session_id: str) -> None:
        self._async.remove_session(session_id)

    def get_sessions(self) -> dict[str, Session]:
        return self._async.get_sessions()

    def cleanup_sessions(self, max_age: int) -> list[str]:
        return self._async.cleanup_sessions(max_age)

    def close(self) -> None:
        self._loop.close()
