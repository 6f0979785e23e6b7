"""
Request/response and event models exchanged with clients.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, PrivateAttr, StrictInt, StrictStr, model_validator

from nostr_connect.errors import ErrorKind, NostrConnectError, error_from_kind


class Request(BaseModel):
    id: StrictStr
    method: StrictStr  # kept open so unknown methods reach the dispatcher
    params: Any = Field(default_factory=dict)


class ErrorDetail(BaseModel):
    kind: ErrorKind
    message: str

    # the raised exception, kept in-process only (never serialized)
    _exception: Optional[NostrConnectError] = PrivateAttr(default=None)

    @classmethod
    def from_exception(cls, error: NostrConnectError) -> "ErrorDetail":
        detail = cls(kind=error.kind, message=error.message)
        detail._exception = error
        return detail

    @property
    def exception(self) -> NostrConnectError:
        """The original exception, or one rebuilt from the kind for parsed responses."""
        if self._exception is not None:
            return self._exception
        return error_from_kind(self.kind, self.message)


class Response(BaseModel):
    """Exactly one of `result` or `error` is set."""

    id: str
    result: Any = None
    error: Optional[ErrorDetail] = None

    @model_validator(mode="after")
    def _one_of(self) -> "Response":
        has_result = "result" in self.model_fields_set
        if has_result == (self.error is not None):
            raise ValueError("Response needs exactly one of result or error")
        return self

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_wire(self) -> dict[str, Any]:
        """NIP-46 shape: {id, result} or {id, error: "<message>"}."""
        if self.error is not None:
            return {"id": self.id, "error": self.error.message}
        return {"id": self.id, "result": self.result}


class WalletError(BaseModel):
    code: int
    message: str


class WalletResponse(BaseModel):
    """NIP-47 shape: {id, result} or {id, error: {code, message}}."""

    id: str
    result: Any = None
    error: Optional[WalletError] = None

    def to_wire(self) -> dict[str, Any]:
        if self.error is not None:
            return {"id": self.id, "error": self.error.model_dump()}
        return {"id": self.id, "result": self.result}


class UnsignedEvent(BaseModel):
    pubkey: StrictStr
    created_at: StrictInt
    kind: StrictInt
    tags: list[list[StrictStr]]
    content: StrictStr


class SignedEvent(UnsignedEvent):
    id: StrictStr
    sig: StrictStr
