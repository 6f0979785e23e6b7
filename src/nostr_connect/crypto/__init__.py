"""
Cryptographic primitives consumed by the signer: keys, Schnorr signing,
event hashing, payload encryption and proof of work.
"""

from nostr_connect.crypto.keys import (
    generate_private_key,
    get_public_key,
    get_shared_secret,
    validate_private_key,
    validate_public_key,
)
from nostr_connect.crypto.signing import schnorr_sign, schnorr_verify
from nostr_connect.crypto.events import get_event_hash, serialize_event, sign_event, verify_event
from nostr_connect.crypto.encryption import EncryptionScheme, decrypt, encrypt
from nostr_connect.crypto.pow import (
    ProofOfWorkBudget,
    count_leading_zero_bits,
    has_valid_proof_of_work,
    mine_event,
)

__all__ = [
    "generate_private_key",
    "get_public_key",
    "get_shared_secret",
    "validate_private_key",
    "validate_public_key",
    "schnorr_sign",
    "schnorr_verify",
    "get_event_hash",
    "serialize_event",
    "sign_event",
    "verify_event",
    "EncryptionScheme",
    "encrypt",
    "decrypt",
    "ProofOfWorkBudget",
    "count_leading_zero_bits",
    "has_valid_proof_of_work",
    "mine_event",
]
