"""
Request dispatcher shared by both facades.

RECEIVED -> AUTHORIZED | DENIED -> EXECUTING -> COMPLETED | FAILED

Every path returns a Response; errors are tagged with an ErrorKind and each
facade decides how to surface them. Nothing is mutated before authorization,
and the session is only touched once a request completes.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional, Union

from pydantic import ValidationError

from nostr_connect.crypto.encryption import DEFAULT_SCHEME, EncryptionScheme, decrypt, encrypt
from nostr_connect.crypto.events import sign_event
from nostr_connect.crypto.keys import get_public_key, validate_public_key
from nostr_connect.crypto.pow import DEFAULT_POW_BUDGET, ProofOfWorkBudget, mine_event, validate_difficulty
from nostr_connect.errors import (
    ErrorKind,
    InvalidInputError,
    NostrConnectError,
    PermissionDeniedError,
    ProtocolError,
    SessionNotFoundError,
)
from nostr_connect.models.permission import Method
from nostr_connect.models.rpc import ErrorDetail, Request, Response, UnsignedEvent
from nostr_connect.models.session import ConnectMetadata, Session
from nostr_connect.permissions import authorized
from nostr_connect.sessions import SessionStore

logger = logging.getLogger(__name__)


def _error_response(request_id: str, error: NostrConnectError) -> Response:
    return Response(id=request_id, error=ErrorDetail.from_exception(error))


def _event_params(params: Any) -> tuple[Any, Any]:
    """Split sign_event params into (event, difficulty).

    Accepts the event itself, {"event": {...}, "difficulty": n}, or the NIP-46
    positional form ["<event json>"].
    """
    if isinstance(params, list):
        if not params:
            raise InvalidInputError("sign_event requires an event")
        first = params[0]
        if isinstance(first, str):
            try:
                first = json.loads(first)
            except json.JSONDecodeError as e:
                raise InvalidInputError(f"Invalid event JSON: {e}")
        params = {"event": first}
    if not isinstance(params, dict):
        raise InvalidInputError("sign_event params must be an object")
    if "event" in params:
        event = params["event"]
        difficulty = params.get("difficulty")
        if difficulty is None and isinstance(event, dict):
            difficulty = event.get("difficulty")
    else:
        event = params
        difficulty = params.get("difficulty")
    return event, difficulty


def _event_kind(params: Any) -> Optional[int]:
    try:
        event, _ = _event_params(params)
    except InvalidInputError:
        return None
    kind = event.get("kind") if isinstance(event, dict) else None
    if isinstance(kind, bool) or not isinstance(kind, int):
        return None
    return kind


def _cipher_params(params: Any, field: str) -> tuple[Optional[str], Any]:
    """Return (pubkey, payload) from {"pubkey", field} or positional [pubkey, payload]."""
    if isinstance(params, list) and len(params) == 2:
        return params[0], params[1]
    if not isinstance(params, dict):
        raise InvalidInputError(f"Params must be an object with '{field}'")
    if field not in params:
        raise InvalidInputError(f"Missing '{field}'")
    return params.get("pubkey"), params[field]


class RequestDispatcher:
    def __init__(
        self,
        private_key: str,
        store: SessionStore,
        metadata: ConnectMetadata,
        scheme: EncryptionScheme = DEFAULT_SCHEME,
        pow_budget: ProofOfWorkBudget = DEFAULT_POW_BUDGET,
    ):
        self._private_key = private_key
        self._public_key = get_public_key(private_key)
        self._store = store
        self._metadata = metadata
        self._scheme = scheme
        self._pow_budget = pow_budget

    @property
    def public_key(self) -> str:
        return self._public_key

    async def dispatch(
        self,
        session_id: str,
        request: Union[Request, dict[str, Any]],
        *,
        pow_budget: Optional[ProofOfWorkBudget] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> Response:
        if isinstance(request, Request):
            raw_id = request.id
        else:
            raw_id = str(request.get("id", "")) if isinstance(request, dict) else ""

        # RECEIVED
        session = self._store.get_or_none(session_id)
        if session is None:
            logger.debug(f"Request {raw_id} for unknown session")
            return _error_response(raw_id, SessionNotFoundError())

        if not isinstance(request, Request):
            try:
                request = Request.model_validate(request)
            except ValidationError as e:
                return _error_response(raw_id, InvalidInputError(f"Malformed request: {e.error_count()} error(s)"))

        method = Method.lookup(request.method)
        if method is None:
            logger.warning(f"Unknown method {request.method!r} in request {request.id}")
            return _error_response(request.id, ProtocolError(f"Unknown method: {request.method}"))

        # AUTHORIZED | DENIED
        event_kind = _event_kind(request.params) if method is Method.SIGN_EVENT else None
        if not authorized(session, method, event_kind):
            logger.warning(f"Permission denied for {method.value} in request {request.id}")
            return _error_response(request.id, PermissionDeniedError())

        # EXECUTING
        logger.debug(f"Dispatching {method.value} for request {request.id}")
        try:
            result = await self._execute(session, method, request.params, pow_budget or self._pow_budget, cancel)
        except NostrConnectError as e:
            logger.warning(f"{method.value} failed for request {request.id}: {e.message}")
            return _error_response(request.id, e)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"Unexpected failure in {method.value} for request {request.id}")
            return Response(id=request.id, error=ErrorDetail(kind=ErrorKind.PRIMITIVE_FAILURE, message=str(e)))

        # COMPLETED
        try:
            self._store.touch(session.id)
        except SessionNotFoundError as e:
            # revoked while the request was in flight
            return _error_response(request.id, e)
        return Response(id=request.id, result=result)

    async def _execute(
        self,
        session: Session,
        method: Method,
        params: Any,
        pow_budget: ProofOfWorkBudget,
        cancel: Optional[asyncio.Event],
    ) -> Any:
        if method is Method.GET_PUBLIC_KEY:
            return self._public_key
        if method is Method.CONNECT:
            return {"publicKey": self._public_key, "metadata": self._metadata.model_dump(exclude_none=True)}
        if method is Method.SIGN_EVENT:
            return await self._sign_event(params, pow_budget, cancel)
        if method is Method.ENCRYPT:
            pubkey, plaintext = _cipher_params(params, "plaintext")
            return encrypt(plaintext, self._private_key, self._counterparty(session, pubkey), self._scheme)
        if method is Method.DECRYPT:
            pubkey, ciphertext = _cipher_params(params, "ciphertext")
            return decrypt(ciphertext, self._private_key, self._counterparty(session, pubkey), self._scheme)
        raise ProtocolError(f"Unknown method: {method.value}")

    @staticmethod
    def _counterparty(session: Session, pubkey: Optional[str]) -> str:
        if pubkey is None:
            return session.public_key
        if not validate_public_key(pubkey):
            raise InvalidInputError(f"Invalid pubkey: {pubkey!r}")
        return pubkey

    async def _sign_event(
        self,
        params: Any,
        pow_budget: ProofOfWorkBudget,
        cancel: Optional[asyncio.Event],
    ) -> dict[str, Any]:
        raw_event, difficulty = _event_params(params)
        try:
            event = UnsignedEvent.model_validate(raw_event).model_dump()
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise InvalidInputError(f"Invalid event: check {', '.join(fields) or 'fields'}")
        if difficulty is not None:
            event = await mine_event(event, validate_difficulty(difficulty), pow_budget, cancel)
        return sign_event(event, self._private_key)
