"""Tests for configuration loading and validation."""
from pathlib import Path

import pytest
from pydantic import ValidationError

from passcli.vault.config import (
    DEFAULT_ITERATIONS,
    DEFAULT_MEMORY_COST,
    KdfParams,
    PassConfig,
    config_file_path,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("PASSCLI_CONFIG", "PASSCLI_PATH", "PASSCLI_KDF_ITERATIONS", "XDG_CONFIG_HOME"):
        monkeypatch.delenv(name, raising=False)


class TestPassConfig:

    def test_defaults(self):
        config = PassConfig()
        assert config.default_field == "pass"
        assert config.default_pwd_len == 16
        assert config.pwd_disallow_char == ""
        params = config.kdf_params()
        assert params.iterations == DEFAULT_ITERATIONS
        assert params.memory_cost == DEFAULT_MEMORY_COST
        assert params.key_length == 32

    @pytest.mark.parametrize("values", [
        {"kdf_iterations": 0},
        {"default_pwd_len": 0},
        {"kdf_memory_cost": 4},
        {"default_field": ""},
        {"pwd_disallow_char": "a\tb"},
    ])
    def test_invalid_values(self, values):
        with pytest.raises(ValidationError):
            PassConfig(**values)

    def test_kdf_params_frozen(self):
        params = KdfParams()
        with pytest.raises(ValidationError):
            params.iterations = 10

    def test_path_expanded(self):
        config = PassConfig(default_path="~/passwords")
        assert config.default_path == Path.home() / "passwords"


class TestLoad:

    def test_missing_file_uses_defaults(self, tmp_path):
        config = PassConfig.load(tmp_path / "missing.toml")
        assert config == PassConfig()

    def test_from_toml(self, tmp_path):
        path = tmp_path / "passcli.toml"
        path.write_text(
            'default_path = "/tmp/creds"\n'
            'default_pwd_len = 24\n'
            'pwd_disallow_char = "\\"\'"\n'
            'kdf_iterations = 5\n'
        )
        config = PassConfig.load(path)
        assert config.default_path == Path("/tmp/creds")
        assert config.default_pwd_len == 24
        assert config.pwd_disallow_char == "\"'"
        assert config.kdf_params().iterations == 5

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "passcli.toml"
        path.write_text("default_pwd_len = = 3\n")
        with pytest.raises(ValueError):
            PassConfig.load(path)

    def test_invalid_value_in_toml(self, tmp_path):
        path = tmp_path / "passcli.toml"
        path.write_text("kdf_iterations = 0\n")
        with pytest.raises(ValueError):
            PassConfig.load(path)

    def test_env_overrides(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PASSCLI_PATH", str(tmp_path / "creds"))
        monkeypatch.setenv("PASSCLI_KDF_ITERATIONS", "7")
        config = PassConfig.load(tmp_path / "missing.toml")
        assert config.default_path == tmp_path / "creds"
        assert config.kdf_iterations == 7

    def test_config_file_path(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert config_file_path() == tmp_path / "passcli" / "passcli.toml"
        monkeypatch.setenv("PASSCLI_CONFIG", str(tmp_path / "other.toml"))
        assert config_file_path() == tmp_path / "other.toml"


class TestKdfMemory:
    """Argon2 needs 8 KiB of memory for every lane."""

    def test_kdf_params_memory_per_lane(self):
        with pytest.raises(ValidationError):
            KdfParams(memory_cost=8, parallelism=4)
        assert KdfParams(memory_cost=32, parallelism=4).parallelism == 4

    def test_config_memory_per_lane(self):
        with pytest.raises(ValidationError):
            PassConfig(kdf_memory_cost=8, kdf_parallelism=4)

    def test_config_file_memory_per_lane(self, tmp_path):
        path = tmp_path / "passcli.toml"
        path.write_text("kdf_memory_cost = 8\nkdf_parallelism = 4\n")
        with pytest.raises(ValueError):
            PassConfig.load(path)


class TestFieldAlias:

    def test_default_main_field_key(self, tmp_path):
        path = tmp_path / "passcli.toml"
        path.write_text('default_main_field = "secret"\n')
        assert PassConfig.load(path).default_field == "secret"

    def test_alias_survives_env_override(self, tmp_path, monkeypatch):
        path = tmp_path / "passcli.toml"
        path.write_text('default_main_field = "secret"\n')
        monkeypatch.setenv("PASSCLI_KDF_ITERATIONS", "2")
        config = PassConfig.load(path)
        assert config.default_field == "secret"
        assert config.kdf_iterations == 2
