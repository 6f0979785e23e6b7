"""
Request/response envelope construction and parsing.
"""

import uuid
from typing import Any, Optional

from pydantic import ValidationError

from nostr_connect.models.rpc import Request, Response, WalletResponse


def build_request(method: str, params: Any = None, request_id: Optional[str] = None) -> dict[str, Any]:
    """Build a request dict ready for TransportCodec.send()."""
    request = Request(
        id=request_id or str(uuid.uuid4()),
        method=method,
        params=params if params is not None else {},
    )
    return request.model_dump()


def parse_request(raw: Any) -> Optional[Request]:
    """Parse an inbound request. Returns None if invalid."""
    try:
        return Request.model_validate(raw)
    except ValidationError:
        return None


def parse_response(raw: Any) -> Optional[Response]:
    """Parse an internal-shape response ({id, result} or {id, error: {kind, message}}). Returns None if invalid."""
    try:
        return Response.model_validate(raw)
    except ValidationError:
        return None


def parse_wallet_response(raw: Any) -> Optional[WalletResponse]:
    """Parse a NIP-47 response. Returns None if invalid."""
    try:
        return WalletResponse.model_validate(raw)
    except ValidationError:
        return None
