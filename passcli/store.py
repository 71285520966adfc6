"""
CredentialStore — in-memory account → field → value map.

The store never touches disk or cryptography: it is populated from the
payload opened by :mod:`passcli.vault.crypto` and handed back to it as a
plain mapping when the session is sealed.

Every mutation either applies completely or raises before changing
anything, so a reported error always leaves the previous map in place.
"""
import logging
from typing import Optional
from collections.abc import Iterator, Mapping

from .exceptions import (
    AccountNotFound,
    FieldExists,
    FieldNotFound,
    NameCollision,
)

logger = logging.getLogger("passcli.store")

FieldMap = dict[str, str]
AccountMap = dict[str, FieldMap]


class CredentialStore:
    """Account map owned by a single unlocked session.

    Never log values held by the store, only account and field names.
    """

    def __init__(
        self,
        accounts: Optional[Mapping[str, Mapping[str, str]]] = None,
        new: bool = False
    ) -> None:
        self._accounts: AccountMap = {}
        # a new store has never been sealed, so it must be saved
        self._changed = new
        if accounts:
            for name, fields in accounts.items():
                self._accounts[name] = dict(fields)

    def __repr__(self) -> str:
        return f'<CredentialStore [changed:{self._changed}] accounts={sorted(self._accounts)!r}>'

    # --- Internal helpers ---

    def _account(self, account: str) -> FieldMap:
        try:
            return self._accounts[account]
        except KeyError:
            raise AccountNotFound(account) from None

    # --- Properties ---

    @property
    def is_changed(self) -> bool:
        return self._changed

    @is_changed.setter
    def is_changed(self, value: bool) -> None:
        self._changed = value

    @property
    def empty(self) -> bool:
        return not self._accounts

    # --- Payload conversion ---

    @classmethod
    def from_payload(cls, payload: Mapping[str, Mapping[str, str]]) -> "CredentialStore":
        """Rebuild a store from an opened container payload."""
        return cls(payload)

    def to_payload(self) -> AccountMap:
        """Return a deep copy of the account map, ready to be sealed."""
        return {name: dict(fields) for name, fields in self._accounts.items()}

    # --- Read operations ---

    def get(self, account: str, field: str) -> str:
        """Return the value of one field.

        Raises:
            AccountNotFound: If the account does not exist.
            FieldNotFound: If the field does not exist in the account.
        """
        fields = self._account(account)
        try:
            return fields[field]
        except KeyError:
            raise FieldNotFound(account, field) from None

    def get_account(self, account: str) -> FieldMap:
        """Return a copy of an account's field map."""
        return dict(self._account(account))

    def get_all(self) -> AccountMap:
        """Return a copy of every account, for listing."""
        return self.to_payload()

    # --- Mutations ---

    def add(self, account: str, field: str, value: str, overwrite: bool = False) -> None:
        """Add a field, creating the account if needed.

        Args:
            account: Account name.
            field: Field name.
            value: Credential value.
            overwrite: Replace an existing value instead of failing.

        Raises:
            FieldExists: If the field already holds a value and overwrite is False.
        """
        fields = self._accounts.get(account)
        if fields is None:
            self._accounts[account] = {field: value}
            self._changed = True
            logger.info("Account and field created: %s/%s", account, field)
            return
        if field in fields and not overwrite:
            raise FieldExists(account, field)
        action = "edited" if field in fields else "created"
        fields[field] = value
        self._changed = True
        logger.info("Field %s: %s/%s", action, account, field)

    def add_account(self, account: str) -> None:
        """Create an account without fields.

        Raises:
            NameCollision: If the account already exists.
        """
        if account in self._accounts:
            raise NameCollision(account)
        self._accounts[account] = {}
        self._changed = True
        logger.info("Empty account initialised: %s", account)

    def set_value(self, account: str, field: str, value: str) -> None:
        """Overwrite an existing field; never creates one.

        Raises:
            AccountNotFound: If the account does not exist.
            FieldNotFound: If the field does not exist.
        """
        fields = self._account(account)
        if field not in fields:
            raise FieldNotFound(account, field)
        fields[field] = value
        self._changed = True
        logger.info("Field edited: %s/%s", account, field)

    def rename(self, account: str, new_name: str, overwrite: bool = False) -> None:
        """Rename an account.

        With overwrite the destination account is replaced entirely.

        Raises:
            AccountNotFound: If the account does not exist.
            NameCollision: If new_name is taken and overwrite is False.
        """
        fields = self._account(account)
        if new_name == account:
            return
        if new_name in self._accounts and not overwrite:
            raise NameCollision(new_name)
        self._accounts[new_name] = fields
        del self._accounts[account]
        self._changed = True
        logger.info("Account renamed: %s -> %s", account, new_name)

    def rename_field(
        self,
        account: str,
        field: str,
        new_field: str,
        overwrite: bool = False
    ) -> None:
        """Rename a field inside one account.

        Raises:
            AccountNotFound: If the account does not exist.
            FieldNotFound: If the field does not exist.
            NameCollision: If new_field is taken and overwrite is False.
        """
        fields = self._account(account)
        if field not in fields:
            raise FieldNotFound(account, field)
        if new_field == field:
            return
        if new_field in fields and not overwrite:
            raise NameCollision(new_field, account=account)
        fields[new_field] = fields.pop(field)
        self._changed = True
        logger.info("Field renamed: %s/%s -> %s", account, field, new_field)

    def remove_field(self, account: str, field: str) -> None:
        """Delete one field.

        Raises:
            FieldNotFound: If the account or the field does not exist.
        """
        fields = self._accounts.get(account)
        if fields is None or field not in fields:
            raise FieldNotFound(account, field)
        del fields[field]
        self._changed = True
        logger.info("Field removed: %s/%s", account, field)

    def remove_account(self, account: str) -> None:
        """Delete an account with all its fields.

        Raises:
            AccountNotFound: If the account does not exist.
        """
        if account not in self._accounts:
            raise AccountNotFound(account)
        del self._accounts[account]
        self._changed = True
        logger.info("Account removed: %s", account)

    def remove_all(self) -> None:
        """Clear every account.

        Irreversible; confirmation is the caller's responsibility.
        """
        count = len(self._accounts)
        self._accounts = {}
        self._changed = True
        logger.warning("All accounts removed (%d)", count)

    # --- Magic Methods ---

    def __len__(self) -> int:
        return len(self._accounts)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._accounts))

    def __contains__(self, account: object) -> bool:
        return account in self._accounts

    def __eq__(self, other: object) -> bool:
        if isinstance(other, CredentialStore):
            return self._accounts == other._accounts
        return NotImplemented
