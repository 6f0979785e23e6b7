"""
Canonical event serialization, hashing and signing (NIP-01).
"""

import hashlib
import json
from typing import Any, Mapping

from nostr_connect.crypto.signing import schnorr_sign, schnorr_verify


def serialize_event(event: Mapping[str, Any]) -> bytes:
    """Compact UTF-8 JSON of [0, pubkey, created_at, kind, tags, content]."""
    return json.dumps(
        [0, event["pubkey"], event["created_at"], event["kind"], event["tags"], event["content"]],
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def get_event_hash(event: Mapping[str, Any]) -> str:
    """sha256 hex of the canonical serialization; this is the event id."""
    return hashlib.sha256(serialize_event(event)).hexdigest()


def sign_event(event: Mapping[str, Any], private_key: str) -> dict[str, Any]:
    event_id = get_event_hash(event)
    return {
        "id": event_id,
        "pubkey": event["pubkey"],
        "created_at": event["created_at"],
        "kind": event["kind"],
        "tags": event["tags"],
        "content": event["content"],
        "sig": schnorr_sign(event_id, private_key),
    }


def verify_event(event: Mapping[str, Any]) -> bool:
    """Check both the id and the signature of a signed event against its own pubkey."""
    try:
        event_id = get_event_hash(event)
    except (KeyError, TypeError, ValueError):
        return False
    if event.get("id") != event_id:
        return False
    return schnorr_verify(event.get("sig", ""), event_id, event["pubkey"])
