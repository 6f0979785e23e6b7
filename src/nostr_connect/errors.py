"""
nostr-connect error types.

Every failure the dispatcher can produce carries an ErrorKind. The Connect
facade raises these; the WalletConnect facade maps the kind to a numeric code.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    SESSION_NOT_FOUND = "session_not_found"
    PERMISSION_DENIED = "permission_denied"
    PRIMITIVE_FAILURE = "primitive_failure"
    PROTOCOL_ERROR = "protocol_error"


# NIP-47 wire codes
WALLET_ERROR_CODES: dict[ErrorKind, int] = {
    ErrorKind.SESSION_NOT_FOUND: 4001,
    ErrorKind.PERMISSION_DENIED: 4100,
    ErrorKind.PROTOCOL_ERROR: 4040,
    ErrorKind.PRIMITIVE_FAILURE: 5000,
    ErrorKind.INVALID_INPUT: 5000,
}


class NostrConnectError(Exception):
    kind: ErrorKind = ErrorKind.PRIMITIVE_FAILURE

    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details


class InvalidInputError(NostrConnectError):
    kind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, code: str = "invalid_input", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class InvalidKeyError(InvalidInputError):
    def __init__(self, message: str):
        super().__init__(message, code="invalid_key")


class SessionNotFoundError(NostrConnectError):
    kind = ErrorKind.SESSION_NOT_FOUND

    def __init__(self, message: str = "Session not found", details: Optional[dict[str, Any]] = None):
        super().__init__("session_not_found", message, details)


class PermissionDeniedError(NostrConnectError):
    kind = ErrorKind.PERMISSION_DENIED

    def __init__(self, message: str = "Permission denied", details: Optional[dict[str, Any]] = None):
        super().__init__("permission_denied", message, details)


class ProtocolError(NostrConnectError):
    kind = ErrorKind.PROTOCOL_ERROR

    def __init__(self, message: str = "Unknown method", details: Optional[dict[str, Any]] = None):
        super().__init__("protocol_error", message, details)


class PrimitiveFailureError(NostrConnectError):
    kind = ErrorKind.PRIMITIVE_FAILURE

    def __init__(self, message: str, code: str = "primitive_failure", details: Optional[dict[str, Any]] = None):
        super().__init__(code, message, details)


class SigningError(PrimitiveFailureError):
    def __init__(self, message: str):
        super().__init__(message, code="signing_error")


class EncryptionError(PrimitiveFailureError):
    def __init__(self, message: str):
        super().__init__(message, code="encryption_error")


class ProofOfWorkError(PrimitiveFailureError):
    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message, code="proof_of_work_error", details={"attempts": attempts})


_KIND_TO_ERROR: dict[ErrorKind, type[NostrConnectError]] = {
    ErrorKind.INVALID_INPUT: InvalidInputError,
    ErrorKind.SESSION_NOT_FOUND: SessionNotFoundError,
    ErrorKind.PERMISSION_DENIED: PermissionDeniedError,
    ErrorKind.PROTOCOL_ERROR: ProtocolError,
    ErrorKind.PRIMITIVE_FAILURE: PrimitiveFailureError,
}


def error_from_kind(kind: ErrorKind, message: str) -> NostrConnectError:
    """Rebuild the exception for a structured error (used at the Connect boundary)."""
    return _KIND_TO_ERROR[kind](message)
