"""
Relay Configuration

Environment-driven settings, read once at startup and never mutated.
"""
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com"


def _env_flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "on")


def parse_key_list(raw: Optional[str]) -> Tuple[str, ...]:
    """Split a comma-separated key list, dropping blanks."""
    if not raw:
        return ()
    return tuple(part.strip() for part in raw.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    gate_key: Optional[str] = None
    upstream_keys: Tuple[str, ...] = ()
    upstream_timeout: float = 300.0
    enable_passthrough: bool = False
    log_level: str = "INFO"
    log_bodies: bool = False
    log_file: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 8000

    @property
    def pool_enabled(self) -> bool:
        return bool(self.upstream_keys)


@lru_cache
def get_settings() -> Settings:
    """Load settings from environment variables."""
    return Settings(
        base_url=os.getenv("GEMINI_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        gate_key=os.getenv("GATE_KEY") or None,
        upstream_keys=parse_key_list(os.getenv("UPSTREAM_KEYS")),
        upstream_timeout=float(os.getenv("UPSTREAM_TIMEOUT", "300")),
        enable_passthrough=_env_flag("ENABLE_PASSTHROUGH"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_bodies=_env_flag("LOG_BODIES"),
        log_file=os.getenv("LOG_FILE") or None,
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
    )
