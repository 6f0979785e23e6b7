from nostr_connect.models.permission import Method, Permission, parse_permissions
from nostr_connect.models.rpc import (
    ErrorDetail,
    Request,
    Response,
    SignedEvent,
    UnsignedEvent,
    WalletError,
    WalletResponse,
)
from nostr_connect.models.session import ConnectMetadata, Session

__all__ = [
    "Method",
    "Permission",
    "parse_permissions",
    "ErrorDetail",
    "Request",
    "Response",
    "SignedEvent",
    "UnsignedEvent",
    "WalletError",
    "WalletResponse",
    "ConnectMetadata",
    "Session",
]
