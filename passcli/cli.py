"""
passcli command line — batch commands and the interactive command loop.

Usage examples::

    passcli add github -g 24          # add github/pass with a generated value
    passcli add github me@mail -f email
    passcli print github              # print github/pass
    passcli printall --hide           # list every account and field name
    passcli rename github --to gh
    passcli -i                        # interactive session

The file is unlocked once, commands mutate the in-memory store, and the
store is sealed back to disk once at the end of the session.
"""
import sys
import enum
import shlex
import getpass
import logging
import argparse
import dataclasses
from pathlib import Path
from typing import Optional

from .version import __version__
from .exceptions import (
    AuthenticationFailed,
    FieldExists,
    NameCollision,
    PassError,
    UsageError,
)
from .generator import CharClass, generate
from .operations import (
    Add,
    Get,
    GenRequest,
    Operation,
    RemoveAccount,
    RemoveAll,
    RemoveField,
    Rename,
    RenameField,
    SetValue,
    apply,
)
from .store import CredentialStore, FieldMap
from .vault.config import PassConfig
from .vault.crypto import open_file, seal_file

logger = logging.getLogger("passcli.cli")

MAX_ATTEMPTS = 3


class Command(str, enum.Enum):
    ADD = "add"
    PRINT = "print"
    PRINTALL = "printall"
    EDIT = "edit"
    RENAME = "rename"
    RENAMEFIELD = "renamefield"
    REMOVE = "remove"
    REMOVEALL = "removeall"


_ALIASES = {
    "a": Command.ADD,
    "p": Command.PRINT,
    "pa": Command.PRINTALL,
    "e": Command.EDIT,
    "mv": Command.RENAME,
    "mvf": Command.RENAMEFIELD,
    "r": Command.REMOVE,
}


def parse_command(value: str) -> Command:
    name = value.lower()
    if name in _ALIASES:
        return _ALIASES[name]
    try:
        return Command(name)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"{value} is not a valid operation"
        ) from None


def parse_gen_length(value: str) -> GenRequest:
    try:
        return GenRequest.explicit(int(value))
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid password length: {value}"
        ) from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="passcli",
        description="Local encrypted credential store",
    )
    parser.add_argument(
        "operation",
        nargs="?",
        type=parse_command,
        help="add|a, print|p, printall|pa, edit|e, rename|mv, "
             "renamefield|mvf, remove|r, removeall",
    )
    parser.add_argument("account", nargs="?", help="Account name")
    parser.add_argument("value", nargs="?", help="Field value or new name")
    parser.add_argument(
        "-f", "--field",
        help="Field name (defaults to the configured main field)",
    )
    parser.add_argument(
        "-g", "--gen",
        nargs="?",
        type=parse_gen_length,
        const=GenRequest.default(),
        default=GenRequest.absent(),
        metavar="LEN",
        help="Generate the value, optionally with an explicit length",
    )
    parser.add_argument(
        "-d", "--disallow",
        help="Characters the generator must not use",
    )
    parser.add_argument(
        "-x", "--exclude",
        action="append",
        type=CharClass,
        choices=list(CharClass),
        metavar="{symbol,digit,upper,lower}",
        default=[],
        help="Character class the generator must not use (repeatable)",
    )
    parser.add_argument(
        "--to",
        help="New name for rename and renamefield",
    )
    parser.add_argument(
        "-i", "--interactive",
        action="store_true",
        help="Start an interactive session",
    )
    parser.add_argument(
        "--hide",
        action="store_true",
        help="Print field names only",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite existing fields or accounts without asking",
    )
    parser.add_argument(
        "--path",
        type=Path,
        help="Credential file to use instead of the configured one",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"passcli {__version__}",
    )
    return parser


class Prompter:
    """Terminal prompts used by the session; replaceable in tests."""

    def password(self, prompt: str) -> str:
        return getpass.getpass(prompt)

    def input(self, prompt: str) -> str:
        return input(prompt)

    def confirm(self, prompt: str, default: bool = False) -> bool:
        suffix = " [Y/n] " if default else " [y/N] "
        answer = input(prompt + suffix).strip().lower()
        if not answer:
            return default
        return answer in ("y", "yes")

    def new_password(self, prompt: str) -> str:
        """Prompt twice for a new password.

        Raises:
            UsageError: If the password is empty or both entries differ.
        """
        password = self.password(prompt)
        if not password:
            raise UsageError("Master password must not be empty")
        if self.password("Confirm password: ") != password:
            raise UsageError("Mismatched password")
        return password


def print_account(name: str, fields: FieldMap, hide: bool = False) -> None:
    print(f"{name}:")
    for field, value in sorted(fields.items()):
        if hide:
            print(f"    {field}")
        else:
            print(f"    {field}: {value}")


class Session:
    """One unlocked credential file and its in-memory store."""

    def __init__(
        self,
        path: Path,
        password: str,
        store: CredentialStore,
        config: PassConfig,
        prompter: Optional[Prompter] = None
    ):
        self.path = Path(path)
        self.store = store
        self.config = config
        self._password = password
        self._prompter = prompter or Prompter()

    @classmethod
    def unlock(
        cls,
        path: Path,
        config: PassConfig,
        prompter: Optional[Prompter] = None
    ) -> "Session":
        """Open the credential file, or start a new one if it does not exist.

        Raises:
            AuthenticationFailed: After MAX_ATTEMPTS wrong passwords.
            MalformedContainer: If the file is not a credential container.
        """
        prompter = prompter or Prompter()
        path = Path(path)
        params = config.kdf_params()
        if not path.exists():
            logger.info("File not found, new file will be created")
            password = prompter.new_password("Create master password: ")
            return cls(path, password, CredentialStore(new=True), config, prompter)

        logger.debug("File found at %s", path)
        for attempt in range(MAX_ATTEMPTS):
            if attempt == 0:
                prompt = "Enter master password: "
            else:
                prompt = f"Attempt {attempt + 1}/{MAX_ATTEMPTS}: "
            password = prompter.password(prompt)
            if not password:
                logger.warning("Master password must not be empty")
                continue
            try:
                accounts = open_file(path, password, params)
            except AuthenticationFailed:
                logger.warning("Incorrect password")
                continue
            logger.debug("File read successfully")
            store = CredentialStore.from_payload(accounts)
            return cls(path, password, store, config, prompter)
        raise AuthenticationFailed("Password attempts exceeded")

    def save(self) -> bool:
        """Seal the store to disk if it changed; return whether it was written."""
        if not self.store.is_changed and self.path.exists():
            logger.debug("Nothing changed, file left untouched")
            return False
        seal_file(
            self.path,
            self.store.to_payload(),
            self._password,
            self.config.kdf_params(),
        )
        self.store.is_changed = False
        return True

    # --- helpers ---

    def _field(self, args: argparse.Namespace) -> str:
        return args.field or self.config.default_field

    def _generated(self, args: argparse.Namespace) -> Optional[str]:
        length = args.gen.resolve(self.config.default_pwd_len)
        if length is None:
            return None
        disallow = args.disallow
        if disallow is None:
            disallow = self.config.pwd_disallow_char
        value = generate(length, exclude=args.exclude, disallow=disallow)
        logger.info("Password generated")
        return value

    def _apply_confirmed(self, op: Operation, question: str, force: bool) -> None:
        """Apply op, asking before retrying it as an explicit overwrite."""
        try:
            apply(self.store, op)
        except (FieldExists, NameCollision):
            if force or self._prompter.confirm(question, isinstance(op, Add)):
                apply(self.store, dataclasses.replace(op, overwrite=True))
            else:
                logger.info("Nothing was changed")

    @staticmethod
    def _require_account(args: argparse.Namespace) -> str:
        if not args.account:
            raise UsageError("Insufficient arguments supplied")
        return args.account

    # --- commands ---

    def execute(self, args: argparse.Namespace) -> None:
        """Run one parsed command against the store."""
        command = args.operation
        if command is None:
            return
        handler = getattr(self, f"_do_{command.value}")
        handler(args)

    def _do_add(self, args: argparse.Namespace) -> None:
        account = self._require_account(args)
        value = self._generated(args) or args.value
        if value is None:
            apply(self.store, Add(account, self._field(args)))
            return
        op = Add(account, self._field(args), value, overwrite=args.force)
        self._apply_confirmed(
            op,
            "This field already has a value, would you like to change it?",
            args.force,
        )

    def _do_print(self, args: argparse.Namespace) -> None:
        if not args.account:
            self._do_printall(args)
            return
        print(apply(self.store, Get(args.account, self._field(args))))

    def _do_printall(self, args: argparse.Namespace) -> None:
        if args.account:
            fields = apply(self.store, Get(args.account))
            print_account(args.account, fields, args.hide)
            return
        for name, fields in sorted(apply(self.store, Get()).items()):
            print_account(name, fields, args.hide)

    def _do_edit(self, args: argparse.Namespace) -> None:
        if not args.account:
            logger.info("Editing master password")
            self.change_password(args.value)
            return
        value = self._generated(args) or args.value
        if value is None:
            value = self._prompter.new_password("New value: ")
        apply(self.store, SetValue(args.account, self._field(args), value))

    def _new_name(self, args: argparse.Namespace, prompt: str) -> str:
        name = args.to or args.value
        if not name:
            name = self._prompter.input(prompt)
        if not name:
            raise UsageError("New name must not be empty")
        return name

    def _do_rename(self, args: argparse.Namespace) -> None:
        account = self._require_account(args)
        new_name = self._new_name(args, "New account name: ")
        self._apply_confirmed(
            Rename(account, new_name, overwrite=args.force),
            f"Account {new_name} already exists, replace it?",
            args.force,
        )

    def _do_renamefield(self, args: argparse.Namespace) -> None:
        account = self._require_account(args)
        new_field = self._new_name(args, "New field name: ")
        self._apply_confirmed(
            RenameField(account, self._field(args), new_field, overwrite=args.force),
            f"Field {new_field} already exists, replace it?",
            args.force,
        )

    def _do_remove(self, args: argparse.Namespace) -> None:
        account = self._require_account(args)
        if args.field:
            apply(self.store, RemoveField(account, args.field))
            return
        if args.force or self._prompter.confirm(f"Remove account {account}?", False):
            apply(self.store, RemoveAccount(account))
        else:
            logger.info("Nothing was changed")

    def _do_removeall(self, args: argparse.Namespace) -> None:
        if (
            self._prompter.confirm("Remove ALL accounts?", False)
            and self._prompter.confirm("This cannot be undone, are you sure?", False)
        ):
            apply(self.store, RemoveAll())
        else:
            logger.info("Nothing was changed")

    def change_password(self, value: Optional[str] = None) -> None:
        """Replace the master password used for the next seal."""
        if value is not None:
            if not value:
                raise UsageError("Master password must not be empty")
            if not self._prompter.confirm("Confirm editing master password", False):
                logger.info("Nothing was changed")
                return
            self._password = value
        else:
            self._password = self._prompter.new_password("Enter new master password: ")
        self.store.is_changed = True

    def interact(self, parser: argparse.ArgumentParser) -> None:
        """Read and run commands until ``quit``.

        Command errors are logged and the loop continues.
        """
        logger.info("Interactive mode initialised")
        while True:
            try:
                line = self._prompter.input("cmd: ").strip()
            except EOFError:
                break
            if line in ("quit", "exit"):
                break
            if not line:
                continue
            try:
                args = parser.parse_args(shlex.split(line))
            except SystemExit:
                continue
            except ValueError as err:
                logger.error("%s", err)
                continue
            try:
                self.execute(args)
            except PassError as err:
                logger.error("%s", err)
            except EOFError:
                logger.warning("Input closed, nothing was changed")


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def run(argv: Optional[list[str]] = None, prompter: Optional[Prompter] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    try:
        config = PassConfig.load()
    except (ValueError, OSError) as err:
        logger.error("Config not loaded, using default: %s", err)
        config = PassConfig()
    path = args.path or config.default_path
    try:
        session = Session.unlock(path, config, prompter)
        session.execute(args)
        if args.interactive:
            session.interact(parser)
        session.save()
    except (PassError, ValueError, OSError) as err:
        logger.error("Exiting with error: %s", err)
        return 1
    except EOFError:
        logger.error("Input closed, nothing was saved")
        return 1
    except KeyboardInterrupt:
        logger.error("Interrupted, nothing was saved")
        return 130
    return 0


def main() -> None:
    sys.exit(run())
