"""
Vault Configuration — KDF cost parameters and validated settings.

Settings are read from a TOML file, looked up in this order:
    $PASSCLI_CONFIG
    $XDG_CONFIG_HOME/passcli/passcli.toml (or ~/.config/passcli/passcli.toml)

and then overridden by environment variables:
    PASSCLI_PATH = <path of the encrypted credential file>
    PASSCLI_KDF_ITERATIONS = <integer>

The older key name ``default_main_field`` is accepted for ``default_field``.

Security Note:
    The KDF cost parameters are not stored inside the encrypted file.
    Changing kdf_iterations or kdf_memory_cost makes files written under the
    previous values impossible to open.
"""
import os
import logging
import tomllib
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator

logger = logging.getLogger("passcli.vault")

KEY_LENGTH = 32  # ChaCha20-Poly1305 key size
DEFAULT_PATH = Path("passwords")
DEFAULT_FIELD = "pass"
DEFAULT_PWD_LEN = 16
DEFAULT_ITERATIONS = 3
DEFAULT_MEMORY_COST = 1 << 16  # KiB


def config_file_path() -> Path:
    """Return the location of the TOML configuration file.

    The file does not need to exist.
    """
    explicit = os.environ.get("PASSCLI_CONFIG")
    if explicit:
        return Path(explicit).expanduser()
    base = os.environ.get("XDG_CONFIG_HOME")
    root = Path(base) if base else Path.home() / ".config"
    return root / "passcli" / "passcli.toml"


def check_memory_cost(memory_cost: int, parallelism: int) -> None:
    """Raise ValueError unless memory_cost covers 8 KiB per lane."""
    if memory_cost < 8 * parallelism:
        raise ValueError(
            f"memory_cost must be at least 8 KiB per lane "
            f"({8 * parallelism} for parallelism={parallelism}), got {memory_cost}"
        )


class KdfParams(BaseModel):
    """Argon2 cost parameters used to derive the container key.

    The defaults favour interactive latency. They are a tunable, not a
    security guarantee: raise ``iterations`` for stronger brute-force
    resistance.
    """

    iterations: int = Field(default=DEFAULT_ITERATIONS, ge=1)
    memory_cost: int = Field(default=DEFAULT_MEMORY_COST, ge=8)
    parallelism: int = Field(default=1, ge=1)
    key_length: int = Field(default=KEY_LENGTH)

    model_config = {"frozen": True}

    @field_validator("key_length")
    @classmethod
    def validate_key_length(cls, v: int) -> int:
        """The derived key must match the AEAD key size exactly."""
        if v != KEY_LENGTH:
            raise ValueError(
                f"key_length must be exactly {KEY_LENGTH} bytes, got {v}"
            )
        return v

    @model_validator(mode="after")
    def validate_memory_per_lane(self) -> "KdfParams":
        """Argon2 needs at least 8 KiB of memory per lane."""
        check_memory_cost(self.memory_cost, self.parallelism)
        return self


class PassConfig(BaseModel):
    """Validated passcli configuration."""

    default_path: Path = Field(default=DEFAULT_PATH)
    default_field: str = Field(
        default=DEFAULT_FIELD,
        min_length=1,
        validation_alias=AliasChoices("default_field", "default_main_field"),
    )
    default_pwd_len: int = Field(default=DEFAULT_PWD_LEN, ge=1)
    pwd_disallow_char: str = Field(default="")
    kdf_iterations: int = Field(default=DEFAULT_ITERATIONS, ge=1)
    kdf_memory_cost: int = Field(default=DEFAULT_MEMORY_COST, ge=8)
    kdf_parallelism: int = Field(default=1, ge=1)

    @field_validator("default_path")
    @classmethod
    def expand_path(cls, v: Path) -> Path:
        """Expand ``~`` in the configured path."""
        return v.expanduser()

    @field_validator("pwd_disallow_char")
    @classmethod
    def validate_disallow(cls, v: str) -> str:
        """Only printable ASCII can be disallowed."""
        for ch in v:
            if not 33 <= ord(ch) <= 126:
                raise ValueError(
                    f"pwd_disallow_char contains a non printable character: {ch!r}"
                )
        return v

    @model_validator(mode="after")
    def validate_kdf_memory(self) -> "PassConfig":
        """Argon2 needs at least 8 KiB of memory per lane."""
        check_memory_cost(self.kdf_memory_cost, self.kdf_parallelism)
        return self

    def kdf_params(self) -> KdfParams:
        """Return the KDF cost parameters of this configuration."""
        return KdfParams(
            iterations=self.kdf_iterations,
            memory_cost=self.kdf_memory_cost,
            parallelism=self.kdf_parallelism,
        )

    @classmethod
    def from_toml(cls, path: Path) -> "PassConfig":
        """Create PassConfig from a TOML file.

        Args:
            path: TOML file to read.

        Returns:
            Populated PassConfig instance.

        Raises:
            ValueError: If the file is not valid TOML or holds invalid values.
        """
        with open(path, "rb") as fp:
            try:
                data = tomllib.load(fp)
            except tomllib.TOMLDecodeError as err:
                raise ValueError(f"Invalid config file {path}: {err}") from err
        return cls(**data)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "PassConfig":
        """Load configuration from file (if present) and environment.

        Args:
            path: Explicit config file; defaults to ``config_file_path()``.

        Returns:
            Populated PassConfig instance.
        """
        path = path or config_file_path()
        if path.exists():
            logger.debug("Loading config from %s", path)
            config = cls.from_toml(path)
        else:
            logger.debug("No config file at %s, using defaults", path)
            config = cls()
        overrides = {}
        if env_path := os.environ.get("PASSCLI_PATH"):
            overrides["default_path"] = env_path
        if env_iter := os.environ.get("PASSCLI_KDF_ITERATIONS"):
            overrides["kdf_iterations"] = env_iter
        if overrides:
            config = cls(**{**config.model_dump(), **overrides})
        return config
