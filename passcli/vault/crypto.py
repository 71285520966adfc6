"""
Vault Crypto Core — Key derivation, sealing/opening and the container format.

The whole account map is sealed at once:
- Key: Argon2i(master_password, salt, iterations, memory_cost) → 32 bytes
- Ciphertext: [nonce 12B][ChaCha20-Poly1305(json(accounts)) + tag 16B]
- Container: base64(json([salt, ciphertext])), both as arrays of byte values

Security Note:
    Never log plaintext, keys or passwords.
    A fresh salt (and nonce) is generated for every seal.
"""
import os
import base64
import logging
import binascii
import tempfile
from pathlib import Path
from typing import Any, Union

import orjson
from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305

from ..exceptions import AuthenticationFailed, MalformedContainer
from .config import KEY_LENGTH, KdfParams

logger = logging.getLogger("passcli.vault")

SALT_SIZE = 16
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16

Accounts = dict[str, dict[str, str]]


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def generate_salt() -> bytes:
    """Return a fresh random salt."""
    return os.urandom(SALT_SIZE)


def derive_key(password: str, salt: bytes, params: KdfParams) -> bytes:
    """Derive a 32-byte encryption key with Argon2i.

    Args:
        password: Master password.
        salt: Random salt stored alongside the ciphertext.
        params: Argon2 cost parameters.

    Returns:
        32-byte derived key.

    Raises:
        ValueError: If the password is empty, the key length is wrong or
            Argon2 rejects the cost parameters.
    """
    if not password:
        raise ValueError("Master password must not be empty")
    try:
        key = hash_secret_raw(
            secret=password.encode("utf-8"),
            salt=salt,
            time_cost=params.iterations,
            memory_cost=params.memory_cost,
            parallelism=params.parallelism,
            hash_len=params.key_length,
            type=Type.I,
        )
    except HashingError as ex:
        raise ValueError(f"Key derivation failed: {ex}") from ex
    if len(key) != KEY_LENGTH:
        raise ValueError(
            f"Derived key must be {KEY_LENGTH} bytes, got {len(key)}"
        )
    return key


# ---------------------------------------------------------------------------
# Authenticated encryption
# ---------------------------------------------------------------------------

def encrypt(plaintext: bytes, key: bytes) -> bytes:
    """Seal plaintext under key.

    Format: [nonce 12B][encrypted_payload + tag 16B]
    """
    cipher = ChaCha20Poly1305(key)
    nonce = os.urandom(NONCE_SIZE)
    return nonce + cipher.encrypt(nonce, plaintext, None)


def decrypt(ciphertext: bytes, key: bytes) -> bytes:
    """Open ciphertext sealed by :func:`encrypt`.

    Raises:
        AuthenticationFailed: On tag mismatch or truncated ciphertext.
    """
    if len(ciphertext) < NONCE_SIZE + TAG_SIZE:
        raise AuthenticationFailed()
    cipher = ChaCha20Poly1305(key)
    nonce = ciphertext[:NONCE_SIZE]
    try:
        return cipher.decrypt(nonce, ciphertext[NONCE_SIZE:], None)
    except InvalidTag as ex:
        raise AuthenticationFailed() from ex


# ---------------------------------------------------------------------------
# Account map serialization
# ---------------------------------------------------------------------------

def serialize_accounts(accounts: Accounts) -> bytes:
    """Serialize the account map to canonical JSON bytes."""
    return orjson.dumps(accounts, option=orjson.OPT_SORT_KEYS)


def deserialize_accounts(data: bytes) -> Accounts:
    """Parse JSON bytes back into an account map.

    Raises:
        MalformedContainer: If data is not a mapping of mappings of strings.
    """
    try:
        parsed = orjson.loads(data)
    except orjson.JSONDecodeError as ex:
        raise MalformedContainer("Decrypted content is not valid JSON") from ex
    if not isinstance(parsed, dict):
        raise MalformedContainer("Decrypted content is not an account mapping")
    for account, fields in parsed.items():
        if not isinstance(fields, dict):
            raise MalformedContainer(f"Account {account!r} is not a field mapping")
        for value in fields.values():
            if not isinstance(value, str):
                raise MalformedContainer(f"Account {account!r} holds a non-string value")
    return parsed


# ---------------------------------------------------------------------------
# Container encoding
# ---------------------------------------------------------------------------

def _as_bytes(value: Any) -> bytes:
    if not isinstance(value, list):
        raise MalformedContainer("Container element is not a byte array")
    try:
        return bytes(value)
    except (TypeError, ValueError) as ex:
        raise MalformedContainer("Container element is not a byte array") from ex


def encode_container(salt: bytes, ciphertext: bytes) -> bytes:
    """Serialize (salt, ciphertext) and encode it as base64 text."""
    tuple_data = orjson.dumps([list(salt), list(ciphertext)])
    return base64.b64encode(tuple_data)


def decode_container(data: Union[bytes, str]) -> tuple[bytes, bytes]:
    """Decode base64 text back into (salt, ciphertext).

    Raises:
        MalformedContainer: On bad base64, JSON or tuple structure.
    """
    if isinstance(data, str):
        data = data.encode("ascii", errors="replace")
    try:
        raw = base64.b64decode(data.strip(), validate=True)
    except (binascii.Error, ValueError) as ex:
        raise MalformedContainer("Container is not valid base64") from ex
    try:
        parsed = orjson.loads(raw)
    except orjson.JSONDecodeError as ex:
        raise MalformedContainer("Container is not valid JSON") from ex
    if not isinstance(parsed, list) or len(parsed) != 2:
        raise MalformedContainer("Container must be a (salt, ciphertext) pair")
    salt = _as_bytes(parsed[0])
    ciphertext = _as_bytes(parsed[1])
    if len(salt) != SALT_SIZE:
        raise MalformedContainer(
            f"Salt must be {SALT_SIZE} bytes, got {len(salt)}"
        )
    return salt, ciphertext


# ---------------------------------------------------------------------------
# Seal / open
# ---------------------------------------------------------------------------

def seal_container(accounts: Accounts, password: str, params: KdfParams) -> bytes:
    """Encrypt the whole account map into container text.

    Args:
        accounts: Account map to seal.
        password: Master password.
        params: KDF cost parameters.

    Returns:
        base64 container bytes, ready to be written to disk.
    """
    salt = generate_salt()
    key = derive_key(password, salt, params)
    ciphertext = encrypt(serialize_accounts(accounts), key)
    return encode_container(salt, ciphertext)


def open_container(data: Union[bytes, str], password: str, params: KdfParams) -> Accounts:
    """Decrypt container text back into the account map.

    Raises:
        MalformedContainer: On structural decode failures.
        AuthenticationFailed: On wrong password or tampered ciphertext.
    """
    salt, ciphertext = decode_container(data)
    key = derive_key(password, salt, params)
    plaintext = decrypt(ciphertext, key)
    return deserialize_accounts(plaintext)


def _atomic_write(path: Path, data: bytes) -> None:
    """Replace path with data using a temp file + os.replace."""
    dirpath = path.parent
    fd, tmp = tempfile.mkstemp(dir=dirpath, prefix=f".{path.name}.")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, path)
    finally:
        if os.path.exists(tmp):
            os.remove(tmp)


def seal_file(path: Path, accounts: Accounts, password: str, params: KdfParams) -> None:
    """Seal the account map and replace the file at path.

    All cryptographic work happens before the destination is touched, so a
    failure leaves any previous file intact.
    """
    path = Path(path)
    data = seal_container(accounts, password, params)
    path.parent.mkdir(parents=True, exist_ok=True)
    _atomic_write(path, data)
    logger.debug("Sealed %d account(s) to %s", len(accounts), path)


def open_file(path: Path, password: str, params: KdfParams) -> Accounts:
    """Read and open the container stored at path.

    I/O errors (missing file, permission denied) propagate unchanged.
    """
    data = Path(path).read_bytes()
    accounts = open_container(data, password, params)
    logger.debug("Opened %d account(s) from %s", len(accounts), path)
    return accounts
