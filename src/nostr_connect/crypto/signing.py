"""
BIP-340 Schnorr signatures over 32-byte message hashes.
"""

from coincurve import PublicKeyXOnly

from nostr_connect.crypto.keys import load_private_key, to_xonly, validate_public_key
from nostr_connect.errors import InvalidKeyError, SigningError


def schnorr_sign(message_hash: str, private_key: str) -> str:
    """Sign a 32-byte hex hash. Returns the 64-byte signature as 128 hex chars."""
    try:
        message = bytes.fromhex(message_hash)
    except ValueError as e:
        raise SigningError(f"Failed to create Schnorr signature: {e}")
    if len(message) != 32:
        raise SigningError("Failed to create Schnorr signature: message must be a 32-byte hash")
    try:
        key = load_private_key(private_key)
    except InvalidKeyError as e:
        raise SigningError(f"Failed to create Schnorr signature: {e}")
    return key.sign_schnorr(message).hex()


def schnorr_verify(signature: str, message_hash: str, public_key: str) -> bool:
    """Verify a signature. Malformed input verifies as False rather than raising."""
    if not validate_public_key(public_key):
        return False
    try:
        sig = bytes.fromhex(signature)
        message = bytes.fromhex(message_hash)
    except (ValueError, TypeError):
        return False
    if len(sig) != 64 or len(message) != 32:
        return False
    try:
        return PublicKeyXOnly(bytes.fromhex(to_xonly(public_key))).verify(sig, message)
    except (ValueError, TypeError):
        return False
