"""
Session models.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from nostr_connect.models.permission import Permission, parse_permissions


class ConnectMetadata(BaseModel):
    name: str
    url: Optional[str] = None
    description: Optional[str] = None
    icons: Optional[list[str]] = None  # NIP-47 app/wallet icons


class Session(BaseModel):
    id: str
    public_key: str  # counterparty (client or app) key
    metadata: ConnectMetadata
    permissions: frozenset[Permission] = Field(default_factory=frozenset)
    created_at: int
    last_used: int

    @field_validator("permissions", mode="before")
    @classmethod
    def _parse_permissions(cls, value: Any) -> Any:
        if isinstance(value, (list, set, frozenset, tuple)):
            return parse_permissions(value)
        return value

    @model_validator(mode="after")
    def _check_timestamps(self) -> "Session":
        if self.last_used < self.created_at:
            raise ValueError("last_used must not precede created_at")
        return self

    def permission_strings(self) -> set[str]:
        return {str(p) for p in self.permissions}
