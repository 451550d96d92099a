"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, failing loudly on garbage."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "HabitCoach"
    DB_FILENAME = "habitcoach.db"
    DEFAULT_OPENAI_MODEL = "gpt-4o-mini"

    def __init__(self) -> None:
        self.DEV_MODE = _env_bool("HABITCOACH_DEV_MODE", default=True)
        self.DATA_DIR = self._resolve_data_dir()
        self.DATABASE_URL = os.getenv("HABITCOACH_DATABASE_URL", self._build_sqlite_url())
        self.OPENAI_API_KEY = os.getenv("HABITCOACH_OPENAI_API_KEY") or os.getenv("OPENAI_API_KEY")
        self.OPENAI_MODEL = os.getenv("HABITCOACH_OPENAI_MODEL", self.DEFAULT_OPENAI_MODEL)
        self.INSIGHT_MIN_COMPLETIONS = _env_int("HABITCOACH_INSIGHT_MIN_COMPLETIONS", 5)
        self.ISO_WEEKS = _env_bool("HABITCOACH_ISO_WEEKS", default=False)
        self.STREAK_REFRESH_HOUR = _env_int("HABITCOACH_STREAK_REFRESH_HOUR", 0)
        if not 0 <= self.STREAK_REFRESH_HOUR <= 23:
            raise ValueError("HABITCOACH_STREAK_REFRESH_HOUR must be between 0 and 23.")
        if self.INSIGHT_MIN_COMPLETIONS < 0:
            raise ValueError("HABITCOACH_INSIGHT_MIN_COMPLETIONS must not be negative.")

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("HABITCOACH_DATA_DIR", "instance")
        base_path = Path(data_root).expanduser()
        try:
            path = base_path.resolve()
            path.mkdir(parents=True, exist_ok=True)
            return path
        except PermissionError:
            # Protected install locations: fall back to user-local storage.
            fallback_path = Path.home() / f".{self.APP_NAME.lower()}"
            fallback_path.mkdir(parents=True, exist_ok=True)
            return fallback_path.resolve()

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    @property
    def generation_enabled(self) -> bool:
        """True when a generative-text provider is configured."""

        return bool(self.OPENAI_API_KEY)

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        if self.DATABASE_URL.startswith("sqlite"):
            return {"connect_args": {"check_same_thread": False}}
        return {}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Configuration for tests: in-memory friendly, generation disabled."""

    __test__ = False

    DEBUG = True
    TESTING = True

    def __init__(self, data_dir: Path | str | None = None) -> None:
        self._data_dir_override = Path(data_dir) if data_dir is not None else None
        super().__init__()
        self.OPENAI_API_KEY = None

    def _resolve_data_dir(self) -> Path:
        if self._data_dir_override is None:
            return super()._resolve_data_dir()
        self._data_dir_override.mkdir(parents=True, exist_ok=True)
        return self._data_dir_override.resolve()
