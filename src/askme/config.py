"""Settings loaded from the environment."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

MAX_API_KEYS = 9

DEFAULT_MODEL = "openai/gpt-oss-120b"
DEFAULT_HISTORY_WINDOW = 8
DEFAULT_SUBJECT_NAME = "Ronak Vimal"
DEFAULT_COOKIE_NAME = "groq_api_key_index"

MISSING_KEYS_MESSAGE = (
    f"Missing Groq API keys. Set GROQ_API_KEY_1 through GROQ_API_KEY_{MAX_API_KEYS}."
)


class ConfigurationError(Exception):
    """Settings are missing or invalid."""


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, built once at start-up."""

    api_keys: tuple[str, ...] = ()
    classifier_model: str = DEFAULT_MODEL
    model: str = DEFAULT_MODEL
    history_window: int = DEFAULT_HISTORY_WINDOW
    profile_path: Path = Path("data/profile.json")
    subject_name: str = DEFAULT_SUBJECT_NAME
    cookie_name: str = DEFAULT_COOKIE_NAME
    log_dir: Path | None = None
    host: str = "127.0.0.1"
    port: int = 8000

    def __post_init__(self) -> None:
        if self.history_window < 1:
            raise ConfigurationError("ASKME_HISTORY_WINDOW must be at least 1")

    def require_api_keys(self) -> tuple[str, ...]:
        """Return the key pool, raising when it is empty."""
        if not self.api_keys:
            raise ConfigurationError(MISSING_KEYS_MESSAGE)
        return self.api_keys


def _api_keys_from_env(env: Mapping[str, str]) -> tuple[str, ...]:
    """Collect GROQ_API_KEY_1..N in order, skipping blank slots."""
    keys = []
    for slot in range(1, MAX_API_KEYS + 1):
        value = env.get(f"GROQ_API_KEY_{slot}")
        if slot == 1 and not (value or "").strip():
            value = env.get("GROQ_API_KEY")
        value = (value or "").strip()
        if value:
            keys.append(value)
    return tuple(keys)


def _int_from_env(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from e


def settings_from_env(env: Mapping[str, str] | None = None) -> Settings:
    """Load configuration from environment variables."""
    if env is None:
        env = os.environ

    log_dir = env.get("ASKME_LOG_DIR")

    return Settings(
        api_keys=_api_keys_from_env(env),
        classifier_model=env.get("ASKME_CLASSIFIER_MODEL", DEFAULT_MODEL),
        model=env.get("ASKME_MODEL", DEFAULT_MODEL),
        history_window=_int_from_env(env, "ASKME_HISTORY_WINDOW", DEFAULT_HISTORY_WINDOW),
        profile_path=Path(env.get("ASKME_PROFILE_PATH", "data/profile.json")),
        subject_name=env.get("ASKME_SUBJECT_NAME", DEFAULT_SUBJECT_NAME),
        cookie_name=env.get("ASKME_COOKIE_NAME", DEFAULT_COOKIE_NAME),
        log_dir=Path(log_dir) if log_dir else None,
        host=env.get("ASKME_HOST", "127.0.0.1"),
        port=_int_from_env(env, "ASKME_PORT", 8000),
    )
