"""Configuration management for Feed Cleaner."""

from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FilterMode(str, Enum):
    """How concealed items are treated."""
    HIDE = "hide"
    BLUR = "blur"


class PreferencesError(ValueError):
    """Invalid preference value."""
    pass


def load_default_prompt() -> str:
    """Load the packaged classification prompt."""
    return (
        resources.files("feed_cleaner")
        .joinpath("templates/classify_prompt.md")
        .read_text(encoding="utf-8")
    )


def normalize_mute_words(value: Any) -> list[str]:
    """Normalize stored mute words to a lowercase, trimmed list.

    Accepts either a list of strings or a single comma-separated string.
    """
    if value is None:
        return []
    if isinstance(value, str):
        parts = value.split(",")
    elif isinstance(value, (list, tuple, set)):
        parts = [str(v) for v in value]
    else:
        raise PreferencesError(f"Unsupported mute words value: {type(value).__name__}")
    return [p.strip().lower() for p in parts if p and p.strip()]


class FilterPreferences(BaseModel):
    """The four user-facing values, frozen for the lifetime of a run."""

    model_config = ConfigDict(frozen=True)

    api_key: str = ""
    system_prompt: str = Field(default_factory=load_default_prompt)
    filter_mode: FilterMode = FilterMode.HIDE
    mute_words: tuple[str, ...] = ()

    @field_validator("system_prompt", mode="before")
    @classmethod
    def default_prompt_when_blank(cls, v: Any) -> str:
        if not v or not str(v).strip():
            return load_default_prompt()
        return str(v)

    @field_validator("filter_mode", mode="before")
    @classmethod
    def default_mode_when_blank(cls, v: Any) -> Any:
        return v or FilterMode.HIDE

    @field_validator("mute_words", mode="before")
    @classmethod
    def validate_mute_words(cls, v: Any) -> tuple[str, ...]:
        return tuple(normalize_mute_words(v))

    @field_validator("api_key", mode="before")
    @classmethod
    def strip_api_key(cls, v: Any) -> str:
        return (v or "").strip()


class Settings(BaseSettings):
    """Main application settings."""

    # ── Classification oracle ──────────────────────────────────────────────
    api_key: str | None = Field(None, description="Gemini API key (overrides a blank stored key)")
    oracle_base_url: str = Field(
        "https://generativelanguage.googleapis.com/v1beta/models",
        description="Base URL of the generateContent endpoint"
    )
    oracle_model: str = Field("gemini-2.0-flash", description="Model used for classification")
    request_timeout_seconds: float = Field(30.0, description="HTTP timeout for oracle requests")

    # ── Rate limiting ──────────────────────────────────────────────────────
    rate_limit: int = Field(100, description="Oracle requests allowed per window")
    rate_window_ms: int = Field(60_000, description="Rate window length in milliseconds")

    # ── Feed processing ────────────────────────────────────────────────────
    debounce_ms: int = Field(300, description="Trailing-edge debounce for re-scans")
    min_text_length: int = Field(10, description="Items with shorter text are skipped")
    preferences_file: Path = Field(Path("./feed_cleaner.yaml"), description="Preferences YAML file")

    # ── Logging ────────────────────────────────────────────────────────────
    log_level: str = Field("INFO", description="Log level")
    json_logging: bool = Field(True, description="Enable JSON logging")

    model_config = SettingsConfigDict(
        env_prefix="FEED_CLEANER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("rate_limit", "rate_window_ms")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Rate budget values must be positive."""
        if v <= 0:
            raise ValueError("Rate limit and window must be positive")
        return v

    @field_validator("debounce_ms", "min_text_length")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Value must not be negative")
        return v

    @property
    def generate_content_url(self) -> str:
        return f"{self.oracle_base_url.rstrip('/')}/{self.oracle_model}:generateContent"


class PreferencesStore:
    """YAML-backed store for the user's filter preferences.

    The filter core only ever calls :meth:`load`; :meth:`set` exists for the
    outer settings surface.
    """

    KEYS = ("api_key", "system_prompt", "filter_mode", "mute_words")

    def __init__(self, path: str | Path = "feed_cleaner.yaml"):
        self.path = Path(path)
        self._data: dict[str, Any] = {}
        self.reload()

    def reload(self) -> None:
        """Read the preferences file, treating a missing file as empty."""
        if not self.path.exists():
            self._data = {}
            return

        with open(self.path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise PreferencesError(f"Preferences file must hold a mapping: {self.path}")
        self._data = {k: v for k, v in data.items() if k in self.KEYS}

    def get(self, key: str) -> Any:
        """Get a stored value, or None when unset."""
        self._check_key(key)
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        """Validate and persist a single value."""
        self._check_key(key)

        if key == "system_prompt":
            value = str(value or "").strip()
            if not value:
                raise PreferencesError("System prompt cannot be empty")
        elif key == "filter_mode":
            try:
                value = FilterMode(value).value
            except ValueError as e:
                raise PreferencesError(f"Unknown filter mode: {value!r}") from e
        elif key == "mute_words":
            value = normalize_mute_words(value)
        elif key == "api_key":
            value = str(value or "").strip()

        self._data[key] = value
        self._save()

    def load(self) -> FilterPreferences:
        """Read all four values into an immutable preferences object."""
        return FilterPreferences(**{k: v for k, v in self._data.items() if v is not None})

    def _check_key(self, key: str) -> None:
        if key not in self.KEYS:
            raise PreferencesError(f"Unknown preference: {key!r}")

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self._data, f, sort_keys=True, allow_unicode=True)


# Global instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings


def load_preferences(
    settings: Settings | None = None,
    store: PreferencesStore | None = None
) -> FilterPreferences:
    """Read preferences once at startup.

    An API key from the environment fills in a blank stored key.
    """
    settings = settings or get_settings()
    store = store or PreferencesStore(settings.preferences_file)
    prefs = store.load()
    if not prefs.api_key and settings.api_key:
        prefs = prefs.model_copy(update={"api_key": settings.api_key.strip()})
    return prefs
