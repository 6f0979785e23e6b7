"""
ECDH-keyed payload encryption.

NIP44 (default): base64(0x02 || 24-byte nonce || XChaCha20-Poly1305 ciphertext),
keyed by HKDF-extract(salt="nip44-v2", ikm=shared_x).
NIP04 (legacy): AES-256-CBC keyed by shared_x, encoded as "<b64 ct>?iv=<b64 iv>".
"""

import base64
import binascii
import hashlib
import hmac
import os
from enum import Enum

import nacl.bindings
import nacl.exceptions
import nacl.utils
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from nostr_connect.crypto.keys import get_shared_secret
from nostr_connect.errors import EncryptionError, InvalidKeyError

NIP44_VERSION = 2
NIP44_SALT = b"nip44-v2"
NONCE_SIZE = 24
HEADER_SIZE = 1 + NONCE_SIZE
AES_BLOCK_BITS = 128
IV_SIZE = 16


class EncryptionScheme(str, Enum):
    NIP44 = "nip44"
    NIP04 = "nip04"


DEFAULT_SCHEME = EncryptionScheme.NIP44


def _shared_secret(private_key: str, public_key: str) -> bytes:
    try:
        return get_shared_secret(private_key, public_key)
    except InvalidKeyError as e:
        raise EncryptionError(f"Failed to compute shared secret: {e}")


def get_conversation_key(private_key: str, public_key: str) -> bytes:
    return hmac.new(NIP44_SALT, _shared_secret(private_key, public_key), hashlib.sha256).digest()


def _nip44_encrypt(plaintext: str, private_key: str, public_key: str) -> str:
    key = get_conversation_key(private_key, public_key)
    nonce = nacl.utils.random(NONCE_SIZE)
    ciphertext = nacl.bindings.crypto_aead_xchacha20poly1305_ietf_encrypt(
        plaintext.encode("utf-8"), None, nonce, key,
    )
    return base64.b64encode(bytes([NIP44_VERSION]) + nonce + ciphertext).decode("ascii")


def _nip44_decrypt(payload: str, private_key: str, public_key: str) -> str:
    try:
        message = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncryptionError(f"Invalid payload encoding: {e}")
    if len(message) < HEADER_SIZE:
        raise EncryptionError("Payload too short")
    if message[0] != NIP44_VERSION:
        raise EncryptionError(f"Unsupported version: {message[0]}")
    key = get_conversation_key(private_key, public_key)
    nonce = message[1:HEADER_SIZE]
    try:
        plaintext = nacl.bindings.crypto_aead_xchacha20poly1305_ietf_decrypt(
            message[HEADER_SIZE:], None, nonce, key,
        )
    except nacl.exceptions.CryptoError:
        raise EncryptionError("Decryption failed: authentication tag mismatch")
    return plaintext.decode("utf-8")


def _nip04_encrypt(plaintext: str, private_key: str, public_key: str) -> str:
    key = _shared_secret(private_key, public_key)
    iv = os.urandom(IV_SIZE)
    padder = padding.PKCS7(AES_BLOCK_BITS).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return f"{base64.b64encode(ciphertext).decode('ascii')}?iv={base64.b64encode(iv).decode('ascii')}"


def _nip04_decrypt(payload: str, private_key: str, public_key: str) -> str:
    body, sep, iv_part = payload.partition("?iv=")
    if not sep:
        raise EncryptionError("Invalid payload: missing iv")
    try:
        ciphertext = base64.b64decode(body, validate=True)
        iv = base64.b64decode(iv_part, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncryptionError(f"Invalid payload encoding: {e}")
    if len(iv) != IV_SIZE:
        raise EncryptionError("Invalid payload: bad iv length")
    key = _shared_secret(private_key, public_key)
    try:
        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(AES_BLOCK_BITS).unpadder()
        raw = unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        raise EncryptionError(f"Decryption failed: {e}")
    return raw.decode("utf-8")


def encrypt(
    plaintext: str, private_key: str, public_key: str, scheme: EncryptionScheme = DEFAULT_SCHEME,
) -> str:
    if not isinstance(plaintext, str):
        raise EncryptionError("Plaintext must be a string")
    try:
        if scheme == EncryptionScheme.NIP04:
            return _nip04_encrypt(plaintext, private_key, public_key)
        return _nip44_encrypt(plaintext, private_key, public_key)
    except UnicodeEncodeError:
        raise EncryptionError("Plaintext is not encodable as UTF-8")


def decrypt(
    ciphertext: str, private_key: str, public_key: str, scheme: EncryptionScheme = DEFAULT_SCHEME,
) -> str:
    if not isinstance(ciphertext, str):
        raise EncryptionError("Ciphertext must be a string")
    try:
        if scheme == EncryptionScheme.NIP04:
            return _nip04_decrypt(ciphertext, private_key, public_key)
        return _nip44_decrypt(ciphertext, private_key, public_key)
    except UnicodeDecodeError:
        raise EncryptionError("Decrypted payload is not valid UTF-8")
