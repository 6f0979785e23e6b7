"""
Transport codec: JSON + ECDH encryption for store-and-forward channels.

No ordering is implied between messages; callers correlate by request id.
Failures are final for the call (no retry).
"""

import json
from typing import Any

from pydantic import BaseModel

from nostr_connect.crypto.encryption import DEFAULT_SCHEME, EncryptionScheme, decrypt, encrypt
from nostr_connect.errors import InvalidInputError
from nostr_connect.models.session import Session


class TransportCodec:
    def __init__(self, private_key: str, scheme: EncryptionScheme = DEFAULT_SCHEME):
        self._private_key = private_key
        self._scheme = scheme

    @property
    def scheme(self) -> EncryptionScheme:
        return self._scheme

    @staticmethod
    def _to_json(message: Any) -> str:
        if isinstance(message, BaseModel):
            message = message.model_dump(mode="json", exclude_none=True)
        try:
            return json.dumps(message, separators=(",", ":"), ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(f"Message is not JSON serializable: {e}")

    def send(self, session: Session, message: Any) -> str:
        return encrypt(self._to_json(message), self._private_key, session.public_key, self._scheme)

    def receive(self, session: Session, ciphertext: str) -> Any:
        plaintext = decrypt(ciphertext, self._private_key, session.public_key, self._scheme)
        try:
            return json.loads(plaintext)
        except json.JSONDecodeError as e:
            raise InvalidInputError(f"Message is not valid JSON: {e}")
