"""
Capabilities: a closed set of methods, with an optional event-kind scope for sign_event.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel

from nostr_connect.errors import InvalidInputError


class Method(str, Enum):
    GET_PUBLIC_KEY = "get_public_key"
    CONNECT = "connect"
    SIGN_EVENT = "sign_event"
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"

    @classmethod
    def lookup(cls, name: str) -> Optional["Method"]:
        try:
            return cls(name)
        except ValueError:
            return None


class Permission(BaseModel):
    method: Method
    kind: Optional[int] = None

    model_config = {"frozen": True}

    @classmethod
    def parse(cls, value: "str | Permission") -> "Permission":
        """Read "sign_event" or "sign_event:<kind>"."""
        if isinstance(value, Permission):
            return value
        if not isinstance(value, str):
            raise InvalidInputError(f"Invalid permission: {value!r}")
        name, sep, scope = value.partition(":")
        method = Method.lookup(name)
        if method is None:
            raise InvalidInputError(f"Unknown permission: {value}")
        if not sep:
            return cls(method=method)
        if method is not Method.SIGN_EVENT:
            raise InvalidInputError(f"Only sign_event can be scoped by kind: {value}")
        # str.isdigit() also accepts non-ASCII digits such as "²"
        if not (scope.isascii() and scope.isdigit()):
            raise InvalidInputError(f"Invalid event kind in permission: {value}")
        return cls(method=method, kind=int(scope))

    def __str__(self) -> str:
        if self.kind is None:
            return self.method.value
        return f"{self.method.value}:{self.kind}"


def parse_permissions(values: "list[str | Permission] | set | frozenset | tuple") -> frozenset[Permission]:
    return frozenset(Permission.parse(v) for v in values)
