"""Configuration management for daybank.

Loads configuration from environment variables and provides defaults.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from .errors import ValidationError

# Load .env file if present
load_dotenv()

AUDIT_MODES = ("none", "log", "db")


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path
    db_timeout: float  # seconds

    # Calendar
    timezone: Optional[str]  # IANA name, None means process local zone

    # Identity used by the CLI
    user: Optional[str]

    # Logging / audit
    log_level: str
    audit_mode: str
    large_deposit_threshold: int

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "DAYBANK_DB_PATH",
            str(Path.home() / ".daybank" / "daybank.db"),
        )
        db_path = Path(db_path_str).expanduser() if db_path_str != ":memory:" else Path(db_path_str)

        return cls(
            db_path=db_path,
            db_timeout=float(os.environ.get("DAYBANK_DB_TIMEOUT", "30")),
            timezone=os.environ.get("DAYBANK_TIMEZONE") or None,
            user=os.environ.get("DAYBANK_USER") or None,
            log_level=os.environ.get("DAYBANK_LOG_LEVEL", "WARNING").upper(),
            audit_mode=os.environ.get("DAYBANK_AUDIT", "log").lower(),
            large_deposit_threshold=int(os.environ.get("DAYBANK_LARGE_DEPOSIT", "100")),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if str(self.db_path) != ":memory:" and not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        if self.timezone:
            try:
                ZoneInfo(self.timezone)
            except (ZoneInfoNotFoundError, ValueError):
                errors.append(f"Unknown time zone: {self.timezone}")

        if not isinstance(logging.getLevelName(self.log_level), int):
            errors.append(f"Unknown log level: {self.log_level}")

        if self.audit_mode not in AUDIT_MODES:
            errors.append(
                f"Unknown audit mode: {self.audit_mode} (expected one of {', '.join(AUDIT_MODES)})"
            )

        if self.db_timeout <= 0:
            errors.append("DAYBANK_DB_TIMEOUT must be positive")

        return errors

    def tzinfo(self) -> Optional[ZoneInfo]:
        """Time zone used for day boundaries, or None for local time.

        Raises:
            ValidationError: If DAYBANK_TIMEZONE names an unknown zone
        """
        if not self.timezone:
            return None
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValidationError(f"Unknown time zone: {self.timezone}") from e


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
