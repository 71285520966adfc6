import pytest

from passcli.store import CredentialStore
from passcli.vault.config import KdfParams


@pytest.fixture
def params():
    """Cheap Argon2 parameters so key derivation stays fast in tests."""
    return KdfParams(iterations=1, memory_cost=1024)


@pytest.fixture
def accounts():
    return {
        "account 1": {"pass": "thisispass1", "pass2": "thisispass2"},
        "account 2": {"pass": "thisispass1", "email": "me@example.com"},
        "empty": {},
    }


@pytest.fixture
def store(accounts):
    return CredentialStore(accounts)
