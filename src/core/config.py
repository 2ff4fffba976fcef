"""
Configuration Management for candidate-walker

This module provides centralized configuration management with:
- Environment variable loading (configs/.env)
- Type validation
- Sensible defaults
"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv


_FALSY = {"0", "false", "False", "no"}
_TRUTHY = {"1", "true", "True", "yes"}


class Config:
    """
    Application configuration loaded from environment variables.

    All configuration is read from configs/.env file or environment variables.
    See configs/.env.example for documentation of all settings.
    """

    def __init__(self, env_path: Optional[Path] = None):
        """
        Initialize configuration from environment.

        Args:
            env_path: Path to .env file (default: configs/.env)
        """
        if env_path is None:
            env_path = Path("configs/.env")

        load_dotenv(dotenv_path=env_path, override=True)

        # === Browser / Site ===
        self.site: str = os.getenv("WALKER_SITE", "hellowork")
        self.headless: bool = os.getenv("WALKER_HEADLESS", "0") in _TRUTHY
        self.user_data_dir: Path = Path(os.getenv("WALKER_USER_DATA_DIR", ".browser-profile"))
        self.nav_timeout_ms: int = int(os.getenv("NAV_TIMEOUT_MS", "45000"))
        self.nav_max_retries: int = int(os.getenv("NAV_MAX_RETRIES", "3"))
        self.element_timeout_ms: int = int(os.getenv("ELEMENT_TIMEOUT_MS", "5000"))

        # === Traversal ===
        self.state_file: Path = Path(os.getenv("STATE_FILE", "state/traversal.json"))
        self.pause_poll_interval_s: float = float(os.getenv("PAUSE_POLL_INTERVAL_S", "2.0"))
        self.default_source_tag: str = os.getenv("DEFAULT_SOURCE_TAG", "annonce")

        # === Supabase (candidate sink + error log) ===
        self.supabase_enabled: bool = os.getenv("SUPABASE_ENABLED", "0") not in _FALSY
        self.supabase_url: Optional[str] = os.getenv("SUPABASE_URL")
        self.supabase_service_role_key: Optional[str] = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        self.supabase_candidates_table: str = os.getenv("SUPABASE_CANDIDATES_TABLE", "candidates")

        # === Logging ===
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")
        self.log_dir: Path = Path(os.getenv("LOG_DIR", "logs"))

        # === Output ===
        self.output_dir: Path = Path(os.getenv("OUTPUT_DIR", "out"))

    def validate(self) -> None:
        """
        Validate configuration.

        Raises:
            ValueError: If configuration is missing or invalid
        """
        from src.sites.profiles import SITE_PROFILES

        errors = []

        if self.site not in SITE_PROFILES:
            errors.append(f"WALKER_SITE must be one of {sorted(SITE_PROFILES)}, got {self.site!r}")

        if self.supabase_enabled:
            if not self.supabase_url:
                errors.append("SUPABASE_URL is required when Supabase is enabled")
            if not self.supabase_service_role_key:
                errors.append("SUPABASE_SERVICE_ROLE_KEY is required when Supabase is enabled")

        if self.nav_timeout_ms <= 0:
            errors.append(f"NAV_TIMEOUT_MS must be positive, got {self.nav_timeout_ms}")

        if self.nav_max_retries < 1:
            errors.append(f"NAV_MAX_RETRIES must be at least 1, got {self.nav_max_retries}")

        if self.element_timeout_ms <= 0:
            errors.append(f"ELEMENT_TIMEOUT_MS must be positive, got {self.element_timeout_ms}")

        if self.pause_poll_interval_s <= 0:
            errors.append(f"PAUSE_POLL_INTERVAL_S must be positive, got {self.pause_poll_interval_s}")

        if self.default_source_tag not in {"annonce", "chasse"}:
            errors.append(f"DEFAULT_SOURCE_TAG must be 'annonce' or 'chasse', got {self.default_source_tag!r}")

        if errors:
            raise ValueError("Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

    def __repr__(self) -> str:
        """Return string representation of config (without secrets)."""
        return (
            f"Config(\n"
            f"  site={self.site},\n"
            f"  headless={self.headless},\n"
            f"  state_file={self.state_file},\n"
            f"  supabase_enabled={self.supabase_enabled},\n"
            f"  supabase_key={'***' if self.supabase_service_role_key else 'NOT SET'},\n"
            f"  log_level={self.log_level}\n"
            f")"
        )


# Global configuration instance (lazy-loaded)
_config: Optional[Config] = None


def get_config(env_path: Optional[Path] = None) -> Config:
    """
    Get the global configuration instance.

    Args:
        env_path: Optional path to .env file (only used on first call)

    Returns:
        Global Config instance
    """
    global _config
    if _config is None:
        _config = Config(env_path=env_path)
    return _config
