"""passcli — local encrypted credential store.

Security Note (Threat Model):
    Decrypted credentials and the master password live in process memory
    for the whole session. A memory dump of the running process exposes
    them. This is an accepted limitation of a local single-user store.
"""
from .version import __version__
from .exceptions import (
    PassError,
    AuthenticationFailed,
    MalformedContainer,
    AccountNotFound,
    FieldNotFound,
    FieldExists,
    NameCollision,
    EmptyAlphabet,
    UsageError,
)
from .store import CredentialStore
from .generator import CharClass, generate

__all__ = [
    "__version__",
    "PassError",
    "AuthenticationFailed",
    "MalformedContainer",
    "AccountNotFound",
    "FieldNotFound",
    "FieldExists",
    "NameCollision",
    "EmptyAlphabet",
    "UsageError",
    "CredentialStore",
    "CharClass",
    "generate",
]
