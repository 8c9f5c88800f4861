"""Environment-driven configuration for the autofill engine."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_seconds(name: str, default_ms: int) -> float:
    return int(os.getenv(name, str(default_ms))) / 1000.0


@dataclass(frozen=True)
class EngineTiming:
    """Delays used by the engine, in seconds. The defaults are empirical."""

    fill_delay: float = 0.1
    highlight_duration: float = 2.0
    form_debounce: float = 0.5
    radio_debounce: float = 0.5
    signal_delay: float = 0.5


@dataclass
class Settings:
    """Container for environment-driven settings."""

    fill_delay: float = _env_seconds("AUTOFILLER_FILL_DELAY_MS", 100)
    highlight_duration: float = _env_seconds("AUTOFILLER_HIGHLIGHT_MS", 2000)
    highlight_style: str = os.getenv("AUTOFILLER_HIGHLIGHT_STYLE", "0 0 5px green")
    form_debounce: float = _env_seconds("AUTOFILLER_FORM_DEBOUNCE_MS", 500)
    radio_debounce: float = _env_seconds("AUTOFILLER_RADIO_DEBOUNCE_MS", 500)
    signal_delay: float = _env_seconds("AUTOFILLER_SIGNAL_DELAY_MS", 500)
    log_level: str = os.getenv("AUTOFILLER_LOG_LEVEL", "INFO")
    storage_path: str = os.getenv("AUTOFILLER_STORAGE_PATH", "./autofiller_profile.json")
    headless: bool = _env_flag("AUTOFILLER_HEADLESS", default=True)

    def timing(self) -> EngineTiming:
        """Return the engine delays as an :class:`EngineTiming`."""

        return EngineTiming(
            fill_delay=self.fill_delay,
            highlight_duration=self.highlight_duration,
            form_debounce=self.form_debounce,
            radio_debounce=self.radio_debounce,
            signal_delay=self.signal_delay,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()
