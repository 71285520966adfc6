"""
Operation requests applied to a :class:`~passcli.store.CredentialStore`.

Each request is a frozen dataclass; :func:`apply` handles every variant of
:data:`Operation` and rejects anything else.
"""
import enum
from dataclasses import dataclass
from typing import Optional, Union

from .store import CredentialStore, FieldMap, AccountMap


class GenMode(enum.Enum):
    ABSENT = "absent"
    DEFAULT = "default"
    EXPLICIT = "explicit"


@dataclass(frozen=True)
class GenRequest:
    """Whether to generate a value, and with which length.

    ``ABSENT``: use the supplied value. ``DEFAULT``: generate with the
    configured length. ``EXPLICIT``: generate with ``length``.
    """
    mode: GenMode = GenMode.ABSENT
    length: Optional[int] = None

    def __post_init__(self):
        if self.mode is GenMode.EXPLICIT:
            if self.length is None or self.length < 1:
                raise ValueError("Explicit generation requires a positive length")
        elif self.length is not None:
            raise ValueError(f"{self.mode.value} generation takes no length")

    @classmethod
    def absent(cls) -> "GenRequest":
        return cls(GenMode.ABSENT)

    @classmethod
    def default(cls) -> "GenRequest":
        return cls(GenMode.DEFAULT)

    @classmethod
    def explicit(cls, length: int) -> "GenRequest":
        return cls(GenMode.EXPLICIT, length)

    def resolve(self, default_length: int) -> Optional[int]:
        """Return the length to generate, or None when nothing is generated."""
        if self.mode is GenMode.ABSENT:
            return None
        if self.mode is GenMode.DEFAULT:
            return default_length
        return self.length


@dataclass(frozen=True)
class Add:
    account: str
    field: str
    value: Optional[str] = None
    overwrite: bool = False


@dataclass(frozen=True)
class Get:
    """Read one field, one account (``field=None``) or everything (``account=None``)."""
    account: Optional[str] = None
    field: Optional[str] = None


@dataclass(frozen=True)
class SetValue:
    account: str
    field: str
    value: str


@dataclass(frozen=True)
class Rename:
    account: str
    new_name: str
    overwrite: bool = False


@dataclass(frozen=True)
class RenameField:
    account: str
    field: str
    new_field: str
    overwrite: bool = False


@dataclass(frozen=True)
class RemoveField:
    account: str
    field: str


@dataclass(frozen=True)
class RemoveAccount:
    account: str


@dataclass(frozen=True)
class RemoveAll:
    pass


Operation = Union[
    Add, Get, SetValue, Rename, RenameField, RemoveField, RemoveAccount, RemoveAll
]

Result = Union[None, str, FieldMap, AccountMap]


def apply(store: CredentialStore, op: Operation) -> Result:
    """Apply an operation to the store.

    Returns:
        The requested data for :class:`Get`, None for mutations.

    Raises:
        TypeError: If op is not an Operation.
        PassError: Whatever the store operation raises.
    """
    if isinstance(op, Add):
        if op.value is None:
            store.add_account(op.account)
        else:
            store.add(op.account, op.field, op.value, overwrite=op.overwrite)
    elif isinstance(op, Get):
        if op.account is None:
            return store.get_all()
        if op.field is None:
            return store.get_account(op.account)
        return store.get(op.account, op.field)
    elif isinstance(op, SetValue):
        store.set_value(op.account, op.field, op.value)
    elif isinstance(op, Rename):
        store.rename(op.account, op.new_name, overwrite=op.overwrite)
    elif isinstance(op, RenameField):
        store.rename_field(op.account, op.field, op.new_field, overwrite=op.overwrite)
    elif isinstance(op, RemoveField):
        store.remove_field(op.account, op.field)
    elif isinstance(op, RemoveAccount):
        store.remove_account(op.account)
    elif isinstance(op, RemoveAll):
        store.remove_all()
    else:
        raise TypeError(f"Unknown operation: {op!r}")
    return None
