"""Immutable configuration with validation."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union
import json
import os

from dotenv import load_dotenv

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class RelayConfig:
    """
    Immutable configuration for the migration.

    All validation happens in __post_init__ to ensure configuration
    is always in a valid state.
    """

    # Telegram settings
    bot_token: str = field(default="")
    chat_id: str = field(default="")
    api_base: str = field(default="https://api.telegram.org")
    request_timeout: float = field(default=60.0)

    # Signal export
    export_path: str = field(default="")

    # Checkpoint
    checkpoint_file: str = field(default="progress.json")

    # Operational settings
    rate_limit_delay_ms: int = field(default=500)
    log_level: str = field(default="INFO")
    dry_run: bool = field(default=False)

    # Limits
    message_limit: Optional[int] = field(default=None)

    def __post_init__(self):
        """Validate configuration on initialization."""
        # Dry runs never talk to Telegram
        if not self.dry_run:
            if not self.bot_token:
                raise ConfigurationError("Telegram bot token not configured", setting="bot_token")
            if not self.chat_id:
                raise ConfigurationError("Telegram chat id not configured", setting="chat_id")

        if not self.export_path:
            raise ConfigurationError("Signal export path not configured", setting="export_path")

        if not self.checkpoint_file:
            raise ConfigurationError("checkpoint_file cannot be empty", setting="checkpoint_file")

        if self.rate_limit_delay_ms < 0:
            raise ConfigurationError(
                f"rate_limit_delay_ms cannot be negative, got {self.rate_limit_delay_ms}",
                setting="rate_limit_delay_ms"
            )

        if self.request_timeout <= 0:
            raise ConfigurationError(
                f"request_timeout must be positive, got {self.request_timeout}",
                setting="request_timeout"
            )

        if self.message_limit is not None and self.message_limit < 1:
            raise ConfigurationError(
                f"message_limit must be at least 1, got {self.message_limit}",
                setting="message_limit"
            )

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if self.log_level.upper() not in valid_levels:
            raise ConfigurationError(
                f"log_level must be one of {valid_levels}, got {self.log_level}",
                setting="log_level"
            )

    @property
    def export_dir(self) -> Path:
        """Get expanded export directory."""
        return Path(self.export_path).expanduser()

    @property
    def checkpoint_path(self) -> Path:
        """Get expanded checkpoint file path."""
        return Path(self.checkpoint_file).expanduser()

    @property
    def rate_limit_delay_seconds(self) -> float:
        return self.rate_limit_delay_ms / 1000.0

    @classmethod
    def from_env(cls, dry_run: bool = False) -> "RelayConfig":
        """Create configuration from environment variables (and a .env file)."""
        load_dotenv()
        return cls(
            bot_token=os.getenv("TELEGRAM_BOT_TOKEN", ""),
            chat_id=os.getenv("TELEGRAM_CHAT_ID", ""),
            api_base=os.getenv("TELEGRAM_API_BASE", "https://api.telegram.org").rstrip("/"),
            request_timeout=_parse_number("REQUEST_TIMEOUT", os.getenv("REQUEST_TIMEOUT", "60"), float),
            export_path=_absolute(os.getenv("SIGNAL_EXPORT_PATH", ""), Path.cwd()),
            checkpoint_file=os.getenv("PROGRESS_FILE", "progress.json"),
            rate_limit_delay_ms=_parse_number(
                "RATE_LIMIT_DELAY_MS", os.getenv("RATE_LIMIT_DELAY_MS", "500"), int
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            dry_run=dry_run or os.getenv("DRY_RUN", "false").lower() == "true"
        )

    @classmethod
    def from_file(cls, settings_file: Union[str, Path], dry_run: bool = False) -> "RelayConfig":
        """
        Create configuration from a JSON settings file.

        The layout is the one the original tool shipped as appsettings.json:
        ``{"Telegram": {"BotToken", "ChatId"}, "Signal": {"ExportPath"},
        "RateLimitDelayMs", "ProgressFile"}``. A relative export path is
        resolved against the settings file's directory.
        """
        settings_path = Path(settings_file).expanduser()
        try:
            with open(settings_path, "r", encoding="utf-8") as f:
                settings = json.load(f)
        except FileNotFoundError:
            raise ConfigurationError(f"Settings file not found: {settings_path}")
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Settings file {settings_path} is not valid JSON: {e}")

        if not isinstance(settings, dict):
            raise ConfigurationError(f"Settings file {settings_path} must hold a JSON object")

        telegram = settings.get("Telegram") or {}
        signal = settings.get("Signal") or {}
        base_dir = settings_path.resolve().parent

        return cls(
            bot_token=str(telegram.get("BotToken") or ""),
            chat_id=str(telegram.get("ChatId") or ""),
            api_base=str(telegram.get("ApiBase") or "https://api.telegram.org").rstrip("/"),
            request_timeout=_parse_number("RequestTimeout", settings.get("RequestTimeout", 60), float),
            export_path=_absolute(str(signal.get("ExportPath") or ""), base_dir),
            checkpoint_file=str(settings.get("ProgressFile") or "progress.json"),
            rate_limit_delay_ms=_parse_number(
                "RateLimitDelayMs", settings.get("RateLimitDelayMs", 500), int
            ),
            log_level=str(settings.get("LogLevel") or "INFO"),
            dry_run=dry_run
        )

    @classmethod
    def from_dict(cls, config_dict: dict) -> "RelayConfig":
        """Create configuration from dictionary."""
        # Filter out any unknown keys
        known_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_dict = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered_dict)


def _parse_number(name: str, raw, kind):
    try:
        return kind(raw)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", setting=name)


def _absolute(path: str, base_dir: Path) -> str:
    if not path:
        return path
    expanded = Path(path).expanduser()
    if not expanded.is_absolute():
        expanded = base_dir / expanded
    return str(expanded.resolve())
