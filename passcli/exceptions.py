"""
Error taxonomy for the credential store.

Every failure of the container codec, the credential store or the password
generator is reported as one of these exceptions. None of them is retried
internally; the command-line layer decides whether to prompt and re-invoke.
"""


class PassError(Exception):
    """Base class for every passcli error."""


class AuthenticationFailed(PassError):
    """Sealed container could not be authenticated.

    Raised both for a wrong master password and for a corrupted or
    tampered container; callers cannot (and must not) tell them apart.
    """

    def __init__(self, message: str = "Incorrect password or corrupt file"):
        super().__init__(message)


class MalformedContainer(PassError):
    """Structural decode failure before or after decryption."""


class AccountNotFound(PassError):
    """Requested account does not exist."""

    def __init__(self, account: str):
        self.account = account
        super().__init__(f"Account doesn't exist: {account!r}")


class FieldNotFound(PassError):
    """Requested field does not exist inside the account."""

    def __init__(self, account: str, field: str):
        self.account = account
        self.field = field
        super().__init__(f"Field doesn't exist: {account!r}/{field!r}")


class FieldExists(PassError):
    """Adding the field would overwrite an existing value."""

    def __init__(self, account: str, field: str):
        self.account = account
        self.field = field
        super().__init__(f"Field already has a value: {account!r}/{field!r}")


class NameCollision(PassError):
    """A rename target is already taken."""

    def __init__(self, name: str, account: str | None = None):
        self.name = name
        self.account = account
        if account is None:
            msg = f"Account already exists: {name!r}"
        else:
            msg = f"Field already exists: {account!r}/{name!r}"
        super().__init__(msg)


class UsageError(PassError):
    """Command-line request is missing operands or is inconsistent."""


class EmptyAlphabet(PassError):
    """Password generation exclusions left no candidate characters."""

    def __init__(self, message: str = "No characters left to generate a password from"):
        super().__init__(message)
