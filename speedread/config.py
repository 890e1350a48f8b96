"""
config.py

Runtime settings for the local reader, read from the environment (a .env
file in the working directory is loaded first).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# -------------------------------
# Reading rate
# -------------------------------
DEFAULT_WPM = 300
MIN_WPM = 100
MAX_WPM = 1000
WPM_STEP = 25

WPM_PREFERENCE_KEY = "speedReaderWPM"

DEFAULT_PREFS_PATH = Path.home() / ".speedread" / "preferences.json"


@dataclass(frozen=True)
class Config:
    host: str = "127.0.0.1"
    port: int = 5000
    prefs_path: Path = DEFAULT_PREFS_PATH
    max_upload_mb: int = 200
    log_level: str = "INFO"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def load_config() -> Config:
    prefs = os.getenv("SPEEDREAD_PREFS_PATH", "").strip()
    return Config(
        host=os.getenv("SPEEDREAD_HOST", "127.0.0.1"),
        port=_env_int("SPEEDREAD_PORT", 5000),
        prefs_path=Path(prefs).expanduser() if prefs else DEFAULT_PREFS_PATH,
        max_upload_mb=_env_int("SPEEDREAD_MAX_UPLOAD_MB", 200),
        log_level=os.getenv("SPEEDREAD_LOG_LEVEL", "INFO").upper(),
    )


def clamp_wpm(wpm: int) -> int:
    return max(MIN_WPM, min(MAX_WPM, wpm))
