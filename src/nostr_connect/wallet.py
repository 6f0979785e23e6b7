"""
AsyncNostrWalletConnect / NostrWalletConnect — NIP-47 wallet.

Apps are addressed by their public key. handle_request never raises for
protocol failures: it answers {id, error: {code, message}} using the fixed
table 4001 not connected, 4100 permission denied, 4040 unknown method,
5000 internal failure. sign_event answers with the bare {sig}.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Iterable, Optional, Union

from nostr_connect.crypto.encryption import DEFAULT_SCHEME, EncryptionScheme
from nostr_connect.crypto.keys import get_public_key
from nostr_connect.crypto.pow import DEFAULT_POW_BUDGET, ProofOfWorkBudget
from nostr_connect.dispatcher import RequestDispatcher
from nostr_connect.errors import WALLET_ERROR_CODES, ErrorKind, InvalidInputError
from nostr_connect.models.permission import Method, Permission
from nostr_connect.models.rpc import Request, Response, WalletError, WalletResponse
from nostr_connect.models.session import ConnectMetadata
from nostr_connect.sessions import SessionStore
from nostr_connect.transport.codec import TransportCodec
from nostr_connect.transport.envelope import parse_request

logger = logging.getLogger(__name__)

CONNECT_RESPONSE_ID = "connect"

# Legacy wire messages for the fixed-code errors
_WALLET_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.SESSION_NOT_FOUND: "App not connected",
    ErrorKind.PERMISSION_DENIED: "Permission denied",
    ErrorKind.PROTOCOL_ERROR: "Method not found",
}


def to_wallet_response(response: Response, method: Optional[str] = None) -> WalletResponse:
    """Adapt an internal Response to the NIP-47 shape."""
    if response.error is not None:
        kind = response.error.kind
        return WalletResponse(
            id=response.id,
            error=WalletError(
                code=WALLET_ERROR_CODES[kind],
                message=_WALLET_MESSAGES.get(kind, response.error.message),
            ),
        )
    result = response.result
    if method == Method.SIGN_EVENT.value and isinstance(result, dict):
        result = {"sig": result["sig"]}
    return WalletResponse(id=response.id, result=result)


class AsyncNostrWalletConnect:
    """Async wallet service (primary)."""

    def __init__(
        self,
        private_key: str,
        metadata: Union[ConnectMetadata, dict[str, Any]],
        *,
        scheme: EncryptionScheme = DEFAULT_SCHEME,
        pow_budget: ProofOfWorkBudget = DEFAULT_POW_BUDGET,
        clock: Callable[[], float] = time.time,
    ):
        self._metadata = metadata if isinstance(metadata, ConnectMetadata) else ConnectMetadata.model_validate(metadata)
        self._codec = TransportCodec(private_key, scheme)
        self._apps = SessionStore(get_public_key(private_key), clock=clock)
        self._dispatcher = RequestDispatcher(private_key, self._apps, self._metadata, scheme, pow_budget)

    @property
    def public_key(self) -> str:
        return self._dispatcher.public_key

    async def connect(
        self,
        app_pubkey: str,
        app_metadata: Union[ConnectMetadata, dict[str, Any]],
        requested_permissions: Iterable[Union[str, Permission]],
    ) -> WalletResponse:
        """Connect an app, or add permissions to an already connected one."""
        try:
            self._apps.create(app_pubkey, app_metadata, requested_permissions, session_id=app_pubkey)
        except InvalidInputError as e:
            logger.warning(f"Rejected connect from {app_pubkey[:8]}: {e.message}")
            return WalletResponse(
                id=CONNECT_RESPONSE_ID,
                error=WalletError(code=WALLET_ERROR_CODES[e.kind], message=e.message),
            )
        return WalletResponse(
            id=CONNECT_RESPONSE_ID,
            result={"publicKey": self.public_key, "metadata": self._metadata.model_dump(exclude_none=True)},
        )

    async def handle_request(
        self,
        app_pubkey: str,
        request: Union[Request, dict[str, Any]],
        *,
        pow_budget: Optional[ProofOfWorkBudget] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> WalletResponse:
        response = await self._dispatcher.dispatch(app_pubkey, request, pow_budget=pow_budget, cancel=cancel)
        if isinstance(request, Request):
            method = request.method
        else:
            method = request.get("method") if isinstance(request, dict) else None
        return to_wallet_response(response, method)

    async def handle_message(
        self,
        app_pubkey: str,
        encrypted_message: str,
        *,
        pow_budget: Optional[ProofOfWorkBudget] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> str:
        """Decrypt a request from a connected app and return the encrypted NIP-47 response."""
        app = self._apps.get(app_pubkey)
        payload = self._codec.receive(app, encrypted_message)
        request = parse_request(payload)
        if request is None:
            request_id = str(payload.get("id", "")) if isinstance(payload, dict) else ""
            logger.warning(f"Malformed request {request_id!r} from {app_pubkey[:8]}")
            response = WalletResponse(
                id=request_id,
                error=WalletError(code=WALLET_ERROR_CODES[ErrorKind.INVALID_INPUT], message="Malformed request"),
            )
        else:
            response = await self.handle_request(app_pubkey, request, pow_budget=pow_budget, cancel=cancel)
        return self._codec.send(app, response.to_wire())

    def disconnect(self, app_pubkey: str) -> None:
        self._apps.remove(app_pubkey)

    def get_connected_apps(self) -> dict[str, ConnectMetadata]:
        return {pubkey: app.metadata for pubkey, app in self._apps.list().items()}

    def get_app_permissions(self, app_pubkey: str) -> Optional[frozenset[Permission]]:
        """Granted permissions, or None if the app is not connected."""
        app = self._apps.get_or_none(app_pubkey)
        return app.permissions if app is not None else None

    def cleanup(self, max_age: int) -> list[str]:
        """Disconnect apps idle for more than `max_age` seconds."""
        return self._apps.cleanup(max_age)


class NostrWalletConnect:
    """Sync wrapper around AsyncNostrWalletConnect. Runs the event loop internally."""

    def __init__(self, private_key: str, metadata: Union[ConnectMetadata, dict[str, Any]], **kwargs: Any):
        self._async = AsyncNostrWalletConnect(private_key, metadata, **kwargs)
        self._loop = asyncio.new_event_loop()

    def _run(self, coro: Any) -> Any:
        return self._loop.run_until_complete(coro)

    @property
    def public_key(self) -> str:
        return self._async.public_key

    def connect(
        self,
        app_pubkey: str,
        app_metadata: Union[ConnectMetadata, dict[str, Any]],
        requested_permissions: Iterable[Union[str, Permission]],
    ) -> WalletResponse:
        return self._run(self._async.connect(app_pubkey, app_metadata, requested_permissions))

    def handle_request(self, app_pubkey: str, request: Union[Request, dict[str, Any]], **kwargs: Any) -> WalletResponse:
        return self._run(self._async.handle_request(app_pubkey, request, **kwargs))

    def handle_message(self, app_pubkey: str, encrypted_message: str, **kwargs: Any) -> str:
        return self._run(self._async.handle_message(app_pubkey, encrypted_message, **kwargs))

    def disconnect(self, app_pubkey: str) -> None:
        self._async.disconnect(app_pubkey)

    def get_connected_apps(self) -> dict[str, ConnectMetadata]:
        return self._async.get_connected_apps()

    def get_app_permissions(self, app_pubkey: str) -> Optional[frozenset[Permission]]:
        return self._async.get_app_permissions(app_pubkey)

    def cleanup(self, max_age: int) -> list[str]:
        return self._async.cleanup(max_age)

    def close(self) -> None:
        self._loop.close()
