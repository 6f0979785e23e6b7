"""Tests for keys, Schnorr signing, event hashing and payload encryption."""

import hashlib
import re

import pytest

from nostr_connect.crypto import (
    EncryptionScheme,
    decrypt,
    encrypt,
    generate_private_key,
    get_event_hash,
    get_public_key,
    get_shared_secret,
    schnorr_sign,
    schnorr_verify,
    serialize_event,
    sign_event,
    validate_private_key,
    validate_public_key,
    verify_event,
)
from nostr_connect.crypto.keys import to_xonly
from nostr_connect.errors import EncryptionError, InvalidKeyError, SigningError

HEX64 = re.compile(r"^[0-9a-f]{64}$")
HEX128 = re.compile(r"^[0-9a-f]{128}$")
OFF_CURVE = "eefdea4cdb677750a420fee807eacf21eb9898ae79b9768766e4faa04a2d4a34"


class TestKeys:
    def test_generated_key_is_valid(self):
        key = generate_private_key()
        assert HEX64.match(key)
        assert validate_private_key(key)

    def test_public_key_is_xonly_hex(self):
        pub = get_public_key(generate_private_key())
        assert HEX64.match(pub)
        assert validate_public_key(pub)

    def test_public_key_derivation_is_deterministic(self):
        key = generate_private_key()
        assert get_public_key(key) == get_public_key(key)

    def test_known_vector(self):
        # BIP-340 test vector 1
        key = "b7e151628aed2a6abf7158809cf4f3c762e7160f38b4da56a784d9045190cfef"
        assert get_public_key(key) == "dff1d77f2a671c5f36183726db2341be58feae1da2deced843240f7b502ba659"

    @pytest.mark.parametrize("bad", ["", "zz" * 32, "00" * 32, "ff" * 32, "abc", None, 123])
    def test_rejects_malformed_private_key(self, bad):
        assert not validate_private_key(bad)
        with pytest.raises(InvalidKeyError):
            get_public_key(bad)

    def test_accepts_prefixed_private_key(self):
        key = generate_private_key()
        assert validate_private_key("0x" + key)

    # BIP-340 vector 5: x coordinate not on the curve
    @pytest.mark.parametrize("bad", ["", "not-hex", OFF_CURVE, "02" + OFF_CURVE, "ab" * 40, None])
    def test_rejects_malformed_public_key(self, bad):
        assert not validate_public_key(bad)

    def test_accepts_compressed_public_key(self):
        xonly = get_public_key(generate_private_key())
        compressed = "02" + xonly
        assert validate_public_key(compressed)
        assert to_xonly(compressed) == xonly

    def test_shared_secret_is_symmetric(self):
        a, b = generate_private_key(), generate_private_key()
        assert get_shared_secret(a, get_public_key(b)) == get_shared_secret(b, get_public_key(a))
        assert len(get_shared_secret(a, get_public_key(b))) == 32


class TestSigning:
    def test_sign_and_verify(self):
        key = generate_private_key()
        digest = hashlib.sha256(b"message").hexdigest()
        sig = schnorr_sign(digest, key)
        assert HEX128.match(sig)
        assert schnorr_verify(sig, digest, get_public_key(key))

    def test_verify_fails_for_other_key(self):
        digest = hashlib.sha256(b"message").hexdigest()
        sig = schnorr_sign(digest, generate_private_key())
        assert not schnorr_verify(sig, digest, get_public_key(generate_private_key()))

    def test_verify_fails_for_other_message(self):
        key = generate_private_key()
        sig = schnorr_sign(hashlib.sha256(b"a").hexdigest(), key)
        assert not schnorr_verify(sig, hashlib.sha256(b"b").hexdigest(), get_public_key(key))

    def test_verify_malformed_input_is_false(self):
        pub = get_public_key(generate_private_key())
        digest = hashlib.sha256(b"x").hexdigest()
        assert not schnorr_verify("zz", digest, pub)
        assert not schnorr_verify("00" * 64, "abcd", pub)
        assert not schnorr_verify("00" * 64, digest, "nope")

    def test_sign_rejects_bad_input(self):
        with pytest.raises(SigningError):
            schnorr_sign("abcd", generate_private_key())
        with pytest.raises(SigningError):
            schnorr_sign(hashlib.sha256(b"x").hexdigest(), "not-a-key")


class TestEvents:
    def test_serialization_is_compact_utf8(self):
        event = {"pubkey": "ab", "created_at": 1, "kind": 1, "tags": [["t", "x"]], "content": "héllo 🌍"}
        assert serialize_event(event) == '[0,"ab",1,1,[["t","x"]],"héllo 🌍"]'.encode("utf-8")

    def test_hash_matches_sha256_of_serialization(self, note):
        assert get_event_hash(note) == hashlib.sha256(serialize_event(note)).hexdigest()

    def test_signed_event_verifies(self, note):
        key = generate_private_key()
        note["pubkey"] = get_public_key(key)
        signed = sign_event(note, key)
        assert signed["id"] == get_event_hash(note)
        assert verify_event(signed)

    @pytest.mark.parametrize("field,value", [
        ("content", "tampered"),
        ("kind", 7),
        ("created_at", 1),
        ("tags", [["p", "x"]]),
    ])
    def test_mutation_breaks_verification(self, note, field, value):
        key = generate_private_key()
        note["pubkey"] = get_public_key(key)
        signed = sign_event(note, key)
        signed[field] = value
        assert not verify_event(signed)
        assert not schnorr_verify(signed["sig"], get_event_hash(signed), note["pubkey"])


class TestEncryption:
    @pytest.mark.parametrize("scheme", list(EncryptionScheme))
    @pytest.mark.parametrize("plaintext", ["hello", "", "日本語 ✓ 🌍", "x" * 5000])
    def test_round_trip(self, scheme, plaintext):
        alice, bob = generate_private_key(), generate_private_key()
        ciphertext = encrypt(plaintext, alice, get_public_key(bob), scheme)
        assert decrypt(ciphertext, bob, get_public_key(alice), scheme) == plaintext

    @pytest.mark.parametrize("scheme", list(EncryptionScheme))
    def test_fresh_nonce(self, scheme):
        alice, bob = generate_private_key(), generate_private_key()
        first = encrypt("same", alice, get_public_key(bob), scheme)
        second = encrypt("same", alice, get_public_key(bob), scheme)
        assert first != second

    def test_nip44_payload_layout(self):
        import base64
        alice, bob = generate_private_key(), generate_private_key()
        raw = base64.b64decode(encrypt("hi", alice, get_public_key(bob)))
        assert raw[0] == 2
        assert len(raw) == 1 + 24 + 2 + 16

    def test_nip04_payload_layout(self):
        alice, bob = generate_private_key(), generate_private_key()
        payload = encrypt("hi", alice, get_public_key(bob), EncryptionScheme.NIP04)
        assert "?iv=" in payload

    # NIP04 has no authentication tag, so a wrong key is only caught by padding luck
    def test_wrong_key_fails(self):
        alice, bob, eve = generate_private_key(), generate_private_key(), generate_private_key()
        ciphertext = encrypt("secret", alice, get_public_key(bob))
        with pytest.raises(EncryptionError):
            decrypt(ciphertext, eve, get_public_key(alice))

    @pytest.mark.parametrize("payload", ["", "!!!", "AQID", "YWJj?iv=short"])
    def test_garbage_fails(self, payload):
        alice, bob = generate_private_key(), generate_private_key()
        for scheme in EncryptionScheme:
            with pytest.raises(EncryptionError):
                decrypt(payload, bob, get_public_key(alice), scheme)

    @pytest.mark.parametrize("scheme", list(EncryptionScheme))
    def test_lone_surrogate_plaintext(self, scheme):
        alice, bob = generate_private_key(), generate_private_key()
        with pytest.raises(EncryptionError):
            encrypt("abc\ud800", alice, get_public_key(bob), scheme)

    def test_invalid_counterparty_key(self):
        with pytest.raises(EncryptionError):
            encrypt("hi", generate_private_key(), "not-a-key")
