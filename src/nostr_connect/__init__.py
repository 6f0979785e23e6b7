"""
nostr-connect — delegated signing for Nostr keys.

NIP-46 remote signer and NIP-47 wallet sessions: clients get scoped,
revocable access to signing and encryption without seeing the private key.
"""

from nostr_connect.connect import AsyncNostrConnect, NostrConnect
from nostr_connect.wallet import AsyncNostrWalletConnect, NostrWalletConnect
from nostr_connect.sessions import SessionIdScheme, SessionStore
from nostr_connect.permissions import authorized
from nostr_connect.transport.codec import TransportCodec
from nostr_connect.crypto.encryption import EncryptionScheme
from nostr_connect.crypto.pow import ProofOfWorkBudget
from nostr_connect.models import (
    ConnectMetadata,
    Method,
    Permission,
    Request,
    Response,
    Session,
    WalletResponse,
)
from nostr_connect.errors import (
    ErrorKind,
    NostrConnectError,
    InvalidInputError,
    InvalidKeyError,
    SessionNotFoundError,
    PermissionDeniedError,
    ProtocolError,
    PrimitiveFailureError,
    SigningError,
    EncryptionError,
    ProofOfWorkError,
)

__version__ = "0.1.0"
__all__ = [
    "AsyncNostrConnect",
    "NostrConnect",
    "AsyncNostrWalletConnect",
    "NostrWalletConnect",
    "SessionIdScheme",
    "SessionStore",
    "authorized",
    "TransportCodec",
    "EncryptionScheme",
    "ProofOfWorkBudget",
    "ConnectMetadata",
    "Method",
    "Permission",
    "Request",
    "Response",
    "Session",
    "WalletResponse",
    "ErrorKind",
    "NostrConnectError",
    "InvalidInputError",
    "InvalidKeyError",
    "SessionNotFoundError",
    "PermissionDeniedError",
    "ProtocolError",
    "PrimitiveFailureError",
    "SigningError",
    "EncryptionError",
    "ProofOfWorkError",
]
