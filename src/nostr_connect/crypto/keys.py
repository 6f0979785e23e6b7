"""
secp256k1 key handling on top of coincurve (libsecp256k1).

Public keys are exchanged as 32-byte x-only hex (BIP-340 / Nostr). Compressed
(33-byte) and uncompressed (65-byte) keys are accepted wherever a counterparty
key is read.
"""

import secrets

from coincurve import PrivateKey, PublicKey, PublicKeyXOnly

from nostr_connect.errors import InvalidKeyError

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
PUBLIC_KEY_LENGTHS = (32, 33, 65)


def _strip_hex(value: str) -> str:
    return value[2:] if value.startswith("0x") else value


def _is_hex(value: str) -> bool:
    return bool(value) and len(value) % 2 == 0 and all(c in _HEX_DIGITS for c in value)


def generate_private_key() -> str:
    """Generate a new random private key as hex."""
    while True:
        candidate = secrets.token_bytes(32)
        try:
            return PrivateKey(candidate).secret.hex()
        except ValueError:
            continue


def validate_private_key(private_key: str) -> bool:
    if not isinstance(private_key, str):
        return False
    clean = _strip_hex(private_key)
    if len(clean) != 64 or not _is_hex(clean):
        return False
    try:
        PrivateKey(bytes.fromhex(clean))
    except ValueError:
        return False
    return True


def validate_public_key(public_key: str) -> bool:
    if not isinstance(public_key, str):
        return False
    clean = _strip_hex(public_key)
    if not _is_hex(clean):
        return False
    raw = bytes.fromhex(clean)
    if len(raw) not in PUBLIC_KEY_LENGTHS:
        return False
    try:
        if len(raw) == 32:
            PublicKeyXOnly(raw)
        else:
            PublicKey(raw)
    except (ValueError, TypeError):
        return False
    return True


def load_private_key(private_key: str) -> PrivateKey:
    if not validate_private_key(private_key):
        raise InvalidKeyError("Invalid private key")
    return PrivateKey(bytes.fromhex(_strip_hex(private_key)))


def load_public_key(public_key: str) -> PublicKey:
    """Parse any accepted public key encoding into a full point (x-only keys get even Y)."""
    if not validate_public_key(public_key):
        raise InvalidKeyError("Invalid public key")
    raw = bytes.fromhex(_strip_hex(public_key))
    if len(raw) == 32:
        raw = b"\x02" + raw
    return PublicKey(raw)


def to_xonly(public_key: str) -> str:
    """Normalize a counterparty key to the 32-byte x-only hex form."""
    return load_public_key(public_key).format(compressed=True)[1:].hex()


def get_public_key(private_key: str) -> str:
    """Derive the x-only public key hex. Raises InvalidKeyError on malformed input."""
    key = load_private_key(private_key)
    return key.public_key_xonly.format().hex()


def get_shared_secret(private_key: str, public_key: str) -> bytes:
    """ECDH: the x coordinate of priv * pub, unhashed (as NIP-04/NIP-44 expect)."""
    key = load_private_key(private_key)
    point = load_public_key(public_key).multiply(key.secret)
    return point.format(compressed=True)[1:]
