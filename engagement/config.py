"""
Engagement Service Configuration

Loads configuration from environment variables and provides defaults.
Supports loading from .env file using python-dotenv.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

# Single .env at the project root
root_env = Path(__file__).resolve().parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)


STORE_BACKENDS = ("memory", "firestore")
AUTH_MODES = ("header", "firebase")


def _bool_env(key: str, default: bool) -> bool:
    v = os.getenv(key)
    if v is None or not v.strip():
        return default
    return v.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class EngagementConfig:
    """Engagement service configuration."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    log_level: str = "INFO"

    # Store: "memory" (process-local) | "firestore"
    store_backend: str = "memory"
    firebase_credentials_path: Optional[Path] = None
    firebase_project_id: Optional[str] = None

    # Identity: "header" trusts X-User-Id (development), "firebase" verifies ID tokens
    auth_mode: str = "header"
    login_url: str = "/auth/login"

    # Engagement behaviour
    notice_ttl_seconds: float = 3.0
    comment_max_length: int = 1000
    reconcile_on_refresh: bool = True

    # Open views: evicted after this much inactivity, oldest first beyond the cap
    view_idle_seconds: float = 1800.0
    max_open_views: int = 10000

    @classmethod
    def from_env(cls) -> "EngagementConfig":
        """Load configuration from environment variables."""
        base_dir = Path(__file__).parent.parent

        def _path_env(key: str) -> Optional[Path]:
            v = os.getenv(key)
            if not v:
                return None
            p = Path(v)
            return p if p.is_absolute() else (base_dir / p).resolve()

        store_backend = os.getenv("STORE_BACKEND", "memory").strip().lower() or "memory"
        auth_mode = os.getenv("AUTH_MODE", "header").strip().lower() or "header"
        origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            cors_origins=origins or ["*"],
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
            store_backend=store_backend,
            firebase_credentials_path=_path_env("FIREBASE_CREDENTIALS_PATH") or _path_env("GOOGLE_APPLICATION_CREDENTIALS"),
            firebase_project_id=os.getenv("FIREBASE_PROJECT_ID") or None,
            auth_mode=auth_mode,
            login_url=os.getenv("LOGIN_URL", "/auth/login"),
            notice_ttl_seconds=float(os.getenv("NOTICE_TTL_SECONDS", "3")),
            comment_max_length=int(os.getenv("COMMENT_MAX_LENGTH", "1000")),
            reconcile_on_refresh=_bool_env("RECONCILE_ON_REFRESH", True),
            view_idle_seconds=float(os.getenv("VIEW_IDLE_SECONDS", "1800")),
            max_open_views=int(os.getenv("MAX_OPEN_VIEWS", "10000")),
        )

    def validate(self) -> tuple[bool, list[str]]:
        """
        Validate the configuration.

        Returns:
            (is_valid, list_of_errors)
        """
        errors = []

        if self.store_backend not in STORE_BACKENDS:
            errors.append(f"Unknown STORE_BACKEND: {self.store_backend!r} (expected one of {STORE_BACKENDS})")

        if self.auth_mode not in AUTH_MODES:
            errors.append(f"Unknown AUTH_MODE: {self.auth_mode!r} (expected one of {AUTH_MODES})")

        if self.store_backend == "firestore":
            if not self.firebase_credentials_path:
                errors.append("STORE_BACKEND=firestore requires FIREBASE_CREDENTIALS_PATH")
            elif not self.firebase_credentials_path.is_file():
                errors.append(f"Firebase credentials file not found: {self.firebase_credentials_path}")

        if self.comment_max_length <= 0:
            errors.append("COMMENT_MAX_LENGTH must be positive")

        if self.notice_ttl_seconds <= 0:
            errors.append("NOTICE_TTL_SECONDS must be positive")

        if self.view_idle_seconds <= 0:
            errors.append("VIEW_IDLE_SECONDS must be positive")

        if self.max_open_views <= 0:
            errors.append("MAX_OPEN_VIEWS must be positive")

        return len(errors) == 0, errors


# Global config instance
_config: Optional[EngagementConfig] = None


def get_config() -> EngagementConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = EngagementConfig.from_env()
    return _config


def reload_config() -> EngagementConfig:
    """Reload configuration from environment."""
    global _config
    _config = None
    return get_config()
