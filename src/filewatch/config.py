"""Configuration management for filewatch."""
from pathlib import Path
from typing import Any, Optional
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from filewatch.errors import ConfigurationError

try:
    import tomli
except ImportError:
    import tomllib as tomli


DEFAULT_CONFIG_PATH = Path.home() / ".config" / "filewatch" / "config.toml"


class GeneralConfig(BaseModel):
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {value!r}")
        return level


class WatchConfig(BaseModel):
    interval_ms: int = Field(default=5000, gt=0)
    quiet: bool = False
    starting_backup: bool = False
    read_stdin: bool = True  # a line or EOF on stdin stops the watcher


class HasherConfig(BaseModel):
    chunk_size: int = Field(default=4096, gt=0)
    key: str = ""  # hex-encoded BLAKE2b key, empty for unkeyed

    @field_validator("key")
    @classmethod
    def _hex_key(cls, value: str) -> str:
        try:
            raw = bytes.fromhex(value)
        except ValueError:
            raise ValueError("key must be a hex string") from None
        if len(raw) > 64:
            raise ValueError("key must be at most 64 bytes")
        return value

    def key_bytes(self) -> bytes:
        return bytes.fromhex(self.key)


class BackupConfig(BaseModel):
    suffix: str = "bak"
    atomic: bool = True

    @field_validator("suffix")
    @classmethod
    def _plain_suffix(cls, value: str) -> str:
        if not value or "/" in value or "\\" in value:
            raise ValueError(f"invalid backup suffix {value!r}")
        return value


class Config(BaseSettings):
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    watch: WatchConfig = Field(default_factory=WatchConfig)
    hasher: HasherConfig = Field(default_factory=HasherConfig)
    backup: BackupConfig = Field(default_factory=BackupConfig)

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        # Only explicit values and the TOML file; no environment variables.
        return (init_settings,)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load config from TOML file or use defaults."""
        explicit = config_path is not None
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        config_path = Path(config_path).expanduser()
        if not config_path.exists():
            if explicit:
                raise ConfigurationError(f"Config file not found: {config_path}")
            return cls()

        try:
            with open(config_path, "rb") as f:
                data = tomli.load(f)
        except (OSError, tomli.TOMLDecodeError) as e:
            raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e
        return cls.from_dict(data, source=str(config_path))

    @classmethod
    def from_dict(cls, data: dict[str, Any], source: str = "config") -> "Config":
        try:
            return cls(**data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid {source}: {e}") from e

    def with_overrides(self, **watch_overrides: Any) -> "Config":
        """Return a copy with [watch] values replaced; None values are ignored."""
        updates = {k: v for k, v in watch_overrides.items() if v is not None}
        if not updates:
            return self
        data = self.model_dump()
        data["watch"].update(updates)
        return type(self).from_dict(data, source="options")


# Global config instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global config instance."""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def set_config(config: Config) -> None:
    """Set the global config instance."""
    global _config
    _config = config
