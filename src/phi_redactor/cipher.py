"""Cipher utility — symmetric envelope encryption, hashing and masking.

Envelopes are JSON text with hex fields:

    {"algorithm": "aes-256-gcm", "iv": "<24 hex>", "data": "<hex>"}

AES-256-GCM is the default.  AES-256-CBC with PKCS7 padding is kept for
envelopes without an ``algorithm`` field (the legacy
``{"iv": ..., "data": ...}`` shape).
"""

from __future__ import annotations
import json
import re
import secrets
from datetime import datetime

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from .errors import DecryptionError, EncryptionError

AES_256_GCM = "aes-256-gcm"
AES_256_CBC = "aes-256-cbc"
ALGORITHMS = (AES_256_GCM, AES_256_CBC)

KEY_BYTES = 32          # 256 bits
KEY_HEX_LENGTH = KEY_BYTES * 2
_IV_BYTES = {AES_256_GCM: 12, AES_256_CBC: 16}

HASH_ITERATIONS = 10_000
HASH_BYTES = 64

_HEX_KEY = re.compile(r"[0-9a-fA-F]{64}")
_SSN_SHAPE = re.compile(r"\d{3}-\d{2}-\d{4}")
_PHONE_SHAPE = re.compile(r"\(\d{3}\)\s\d{3}-\d{4}")
_ZIP_SHAPE = re.compile(r"\d{5}(?:-\d{4})?")


def generate_key() -> str:
    """Return a random 256-bit key as 64 hex characters."""
    return secrets.token_hex(KEY_BYTES)


def validate_key_strength(key: object) -> bool:
    """True iff ``key`` is exactly 64 hexadecimal characters."""
    return isinstance(key, str) and _HEX_KEY.fullmatch(key) is not None


def encrypt(plaintext: str, key: str, *, algorithm: str = AES_256_GCM) -> str:
    """Encrypt ``plaintext`` under ``key`` and return a JSON envelope."""
    if not validate_key_strength(key):
        raise EncryptionError(
            f"Encryption failed: key must be a {KEY_HEX_LENGTH}-character hex string"
        )
    if algorithm not in ALGORITHMS:
        raise EncryptionError(f"Encryption failed: unsupported algorithm {algorithm!r}")

    key_bytes = bytes.fromhex(key)
    iv = secrets.token_bytes(_IV_BYTES[algorithm])
    data = plaintext.encode("utf-8")

    if algorithm == AES_256_GCM:
        ciphertext = AESGCM(key_bytes).encrypt(iv, data, None)
    else:
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(data) + padder.finalize()
        encryptor = Cipher(algorithms.AES(key_bytes), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

    return json.dumps({"algorithm": algorithm, "iv": iv.hex(), "data": ciphertext.hex()})


def decrypt(envelope: str, key: str) -> str:
    """Inverse of :func:`encrypt`.  Never returns garbage: any failure raises."""
    if not validate_key_strength(key):
        raise DecryptionError(
            f"Decryption failed: key must be a {KEY_HEX_LENGTH}-character hex string"
        )
    try:
        parsed = json.loads(envelope)
        algorithm = parsed.get("algorithm", AES_256_CBC)
        iv = bytes.fromhex(parsed["iv"])
        ciphertext = bytes.fromhex(parsed["data"])
    except (TypeError, ValueError, KeyError, AttributeError) as e:
        raise DecryptionError(f"Decryption failed: malformed envelope ({e})") from e

    if algorithm not in ALGORITHMS:
        raise DecryptionError(f"Decryption failed: unsupported algorithm {algorithm!r}")
    if len(iv) != _IV_BYTES[algorithm]:
        raise DecryptionError("Decryption failed: bad IV length")

    key_bytes = bytes.fromhex(key)
    try:
        if algorithm == AES_256_GCM:
            data = AESGCM(key_bytes).decrypt(iv, ciphertext, None)
        else:
            decryptor = Cipher(algorithms.AES(key_bytes), modes.CBC(iv)).decryptor()
            padded = decryptor.update(ciphertext) + decryptor.finalize()
            unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
            data = unpadder.update(padded) + unpadder.finalize()
        return data.decode("utf-8")
    except InvalidTag as e:
        raise DecryptionError("Decryption failed: authentication check failed") from e
    except ValueError as e:
        # bad padding, truncated block, or non-UTF-8 plaintext
        raise DecryptionError(f"Decryption failed: {e}") from e


def hash_value(value: str, salt: str | None = None) -> str:
    """One-way PBKDF2-HMAC-SHA512 digest (hex).

    Deterministic for a given salt.  Without one a random salt is drawn,
    which makes the digest usable as an opaque fingerprint only.
    """
    salt = salt if salt is not None else secrets.token_hex(16)
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA512(),
        length=HASH_BYTES,
        salt=salt.encode("utf-8"),
        iterations=HASH_ITERATIONS,
    )
    return kdf.derive(value.encode("utf-8")).hex()


def generate_audit_hash(
    user_id: str,
    data_type: str,
    timestamp: datetime,
    action: str,
    *,
    salt: str | None = None,
) -> str:
    """Fingerprint for a data-access audit record."""
    return hash_value(f"{user_id}|{data_type}|{timestamp.isoformat()}|{action}", salt)


def mask_data(value: str, mask_char: str = "*", preserve_length: bool = True) -> str:
    """Mask a single matched value.

    Known shapes (SSN, ``(NNN) NNN-NNNN`` phone, ZIP/ZIP+4) get a fixed
    ``X`` mask.  Anything else keeps its first and last character and its
    length; values of two characters or fewer are fully masked.
    """
    if not preserve_length:
        return "[REDACTED]"

    if _SSN_SHAPE.fullmatch(value):
        return "XXX-XX-XXXX"
    if _PHONE_SHAPE.fullmatch(value):
        return "(XXX) XXX-XXXX"
    if _ZIP_SHAPE.fullmatch(value):
        return "XXXXX" if len(value) == 5 else "XXXXX-XXXX"

    if len(value) <= 2:
        return mask_char * len(value)
    return value[0] + mask_char * (len(value) - 2) + value[-1]
