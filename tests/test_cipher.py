"""Tests for envelope encryption, hashing and masking."""

import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import json
from datetime import datetime, timezone

import pytest

from phi_redactor import cipher
from phi_redactor.errors import DecryptionError, EncryptionError


# ── Keys ─────────────────────────────────────────────────────────────

def test_generate_key_shape():
    key = cipher.generate_key()
    assert len(key) == 64
    assert cipher.validate_key_strength(key)
    assert cipher.generate_key() != key


@pytest.mark.parametrize("key,valid", [
    ("a" * 64, True),
    ("0123456789ABCDEFabcdef" + "0" * 42, True),
    ("a" * 63, False),
    ("a" * 65, False),
    ("g" * 64, False),
    ("", False),
    (None, False),
    (1234, False),
])
def test_validate_key_strength(key, valid):
    assert cipher.validate_key_strength(key) is valid


# ── Envelopes ────────────────────────────────────────────────────────

def test_gcm_roundtrip():
    key = cipher.generate_key()
    envelope = cipher.encrypt("SSN XXX-XX-XXXX, naïve café", key)
    parsed = json.loads(envelope)
    assert parsed["algorithm"] == cipher.AES_256_GCM
    assert len(bytes.fromhex(parsed["iv"])) == 12
    assert cipher.decrypt(envelope, key) == "SSN XXX-XX-XXXX, naïve café"


def test_cbc_roundtrip():
    key = cipher.generate_key()
    envelope = cipher.encrypt("hello", key, algorithm=cipher.AES_256_CBC)
    parsed = json.loads(envelope)
    assert parsed["algorithm"] == cipher.AES_256_CBC
    assert len(bytes.fromhex(parsed["iv"])) == 16
    assert cipher.decrypt(envelope, key) == "hello"


def test_envelope_without_algorithm_is_cbc():
    key = cipher.generate_key()
    parsed = json.loads(cipher.encrypt("legacy", key, algorithm=cipher.AES_256_CBC))
    del parsed["algorithm"]
    assert cipher.decrypt(json.dumps(parsed), key) == "legacy"


def test_fresh_iv_per_call():
    key = cipher.generate_key()
    a = json.loads(cipher.encrypt("same", key))
    b = json.loads(cipher.encrypt("same", key))
    assert a["iv"] != b["iv"]
    assert a["data"] != b["data"]


def test_empty_plaintext():
    key = cipher.generate_key()
    assert cipher.decrypt(cipher.encrypt("", key), key) == ""


def test_encrypt_rejects_bad_key():
    with pytest.raises(EncryptionError):
        cipher.encrypt("x", "short")


def test_encrypt_rejects_unknown_algorithm():
    with pytest.raises(EncryptionError):
        cipher.encrypt("x", "a" * 64, algorithm="rot13")


def test_gcm_wrong_key_fails():
    envelope = cipher.encrypt("secret", "a" * 64)
    with pytest.raises(DecryptionError):
        cipher.decrypt(envelope, "b" * 64)


def test_gcm_tampered_ciphertext_fails():
    key = cipher.generate_key()
    parsed = json.loads(cipher.encrypt("secret", key))
    last = parsed["data"][-1]
    parsed["data"] = parsed["data"][:-1] + ("0" if last != "0" else "1")
    with pytest.raises(DecryptionError):
        cipher.decrypt(json.dumps(parsed), key)


def test_decrypt_rejects_bad_key():
    envelope = cipher.encrypt("secret", "a" * 64)
    with pytest.raises(DecryptionError):
        cipher.decrypt(envelope, "not-a-key")


@pytest.mark.parametrize("envelope", [
    "not json",
    "[1, 2]",
    '{"iv": "00"}',
    '{"iv": "zz", "data": "00"}',
    '{"algorithm": "rot13", "iv": "00", "data": "00"}',
    '{"algorithm": "aes-256-gcm", "iv": "00", "data": "00"}',
])
def test_decrypt_malformed_envelope(envelope):
    with pytest.raises(DecryptionError):
        cipher.decrypt(envelope, "a" * 64)


# ── Hashing ──────────────────────────────────────────────────────────

def test_hash_value_deterministic_with_salt():
    a = cipher.hash_value("123-45-6789", "pepper")
    assert a == cipher.hash_value("123-45-6789", "pepper")
    assert a != cipher.hash_value("123-45-6789", "salt")
    assert len(a) == cipher.HASH_BYTES * 2


def test_hash_value_random_salt():
    assert cipher.hash_value("x") != cipher.hash_value("x")


def test_audit_hash():
    ts = datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)
    a = cipher.generate_audit_hash("u1", "lab", ts, "READ", salt="s")
    assert a == cipher.generate_audit_hash("u1", "lab", ts, "READ", salt="s")
    assert a != cipher.generate_audit_hash("u1", "lab", ts, "WRITE", salt="s")


# ── Masking ──────────────────────────────────────────────────────────

@pytest.mark.parametrize("value,expected", [
    ("123-45-6789", "XXX-XX-XXXX"),
    ("(555) 123-4567", "(XXX) XXX-XXXX"),
    ("02115", "XXXXX"),
    ("02115-1234", "XXXXX-XXXX"),
    ("555-123-4567", "5**********7"),
    ("jane@example.com", "j**************m"),
    ("abc", "a*c"),
    ("ab", "**"),
    ("a", "*"),
    ("", ""),
])
def test_mask_data(value, expected):
    assert cipher.mask_data(value) == expected


def test_mask_data_custom_char():
    assert cipher.mask_data("Smith", "#") == "S###h"


def test_mask_data_without_length():
    assert cipher.mask_data("123-45-6789", preserve_length=False) == "[REDACTED]"
