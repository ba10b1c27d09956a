"""
Registry Settings

Configuration comes from environment variables. `load_settings()` reads a
`.env` file from the project root first (python-dotenv), so a deployment only
needs to drop one file next to `main.py`.

Variables:
    REGISTRY_API_URL           Web app URL of the registry sheet backend
    REGISTRY_TIMEOUT_SECONDS   HTTP timeout for sheet calls (default 15)
    REGISTRY_CACHE_TTL_SECONDS Freshness window of the cached registry (default 300)
    REGISTRY_CACHE_DIR         Directory for the on-disk cache slot (in-memory when unset)
    REGISTRY_LOG_DIR           Where log files are written (default: current directory)
    REGISTRY_CORS_ORIGINS      Comma separated frontend origins
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

DEFAULT_API_URL = "http://localhost:8080/exec"
DEFAULT_TIMEOUT_SECONDS = 15.0
DEFAULT_CACHE_TTL_SECONDS = 300
DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://localhost:5173")


@dataclass(frozen=True)
class RegistrySettings:
    """
    Resolved runtime configuration.

    Attributes:
        api_url: Registry sheet web app endpoint (GET reads, POST writes)
        timeout_s: Per-request timeout in seconds
        cache_ttl_s: Cache freshness window in seconds
        cache_dir: On-disk cache directory, or None for an in-memory slot
        log_dir: Directory for the rotating JSON log and the error log
        cors_origins: Origins allowed to call the API
    """
    api_url: str = DEFAULT_API_URL
    timeout_s: float = DEFAULT_TIMEOUT_SECONDS
    cache_ttl_s: int = DEFAULT_CACHE_TTL_SECONDS
    cache_dir: Optional[str] = None
    log_dir: str = "."
    cors_origins: Tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)

    @staticmethod
    def from_env(env: Optional[Mapping[str, str]] = None) -> "RegistrySettings":
        """Build settings from a mapping (defaults to os.environ)."""
        env = os.environ if env is None else env

        origins = env.get("REGISTRY_CORS_ORIGINS")
        return RegistrySettings(
            api_url=env.get("REGISTRY_API_URL", DEFAULT_API_URL),
            timeout_s=float(env.get("REGISTRY_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)),
            cache_ttl_s=int(env.get("REGISTRY_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS)),
            cache_dir=env.get("REGISTRY_CACHE_DIR") or None,
            log_dir=env.get("REGISTRY_LOG_DIR", "."),
            cors_origins=(
                tuple(o.strip() for o in origins.split(",") if o.strip())
                if origins else DEFAULT_CORS_ORIGINS
            ),
        )


def load_settings(env_file: Optional[Path] = None) -> RegistrySettings:
    """Load `.env` (project root by default) and read the environment."""
    env_path = env_file or Path(__file__).parent.parent / ".env"
    load_dotenv(env_path, override=True)
    return RegistrySettings.from_env()
