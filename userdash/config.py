"""Configuration management for the analytics dashboard."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

logger = logging.getLogger("userdash.config")

DEFAULT_CLERK_API_URL = "https://api.clerk.com/v1"
PAGE_SIZE = 100
SECRET_ENV_VAR = "CLERK_SECRET_KEY"


@dataclass(frozen=True)
class DashboardSettings:
    """Settings needed to reach the identity provider."""

    clerk_secret_key: Optional[str] = None
    clerk_api_url: str = DEFAULT_CLERK_API_URL
    page_size: int = PAGE_SIZE

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> "DashboardSettings":
        """Create :class:`DashboardSettings` from the ``clerk`` mapping of a config file."""
        unknown = set(data.keys()) - {"secret_key", "api_url"}
        if unknown:
            raise ValueError(f"Unknown clerk configuration fields: {', '.join(sorted(unknown))}")

        api_url = str(data.get("api_url") or DEFAULT_CLERK_API_URL).strip().rstrip("/")
        if not api_url:
            raise ValueError("clerk.api_url must not be empty")

        secret = data.get("secret_key")
        secret_value = str(secret).strip() if secret is not None else ""
        return DashboardSettings(
            clerk_secret_key=secret_value or None,
            clerk_api_url=api_url,
        )

    @property
    def users_url(self) -> str:
        return f"{self.clerk_api_url.rstrip('/')}/users"


def load_settings(
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> DashboardSettings:
    """Load settings from an optional YAML file and the environment.

    ``CLERK_SECRET_KEY`` always takes precedence over ``clerk.secret_key``.
    """
    env = os.environ if environ is None else environ

    settings = DashboardSettings()
    if config_path is not None:
        with config_path.open("r", encoding="utf-8") as handle:
            raw: Dict[str, object] = yaml.safe_load(handle) or {}
        clerk_raw = raw.get("clerk") or {}
        if not isinstance(clerk_raw, Mapping):
            raise ValueError("Configuration file must define 'clerk' as a mapping")
        settings = DashboardSettings.from_dict(clerk_raw)

    env_secret = (env.get(SECRET_ENV_VAR) or "").strip()
    if env_secret:
        settings = replace(settings, clerk_secret_key=env_secret)

    if not settings.clerk_secret_key:
        logger.warning(
            "%s is not set; requests to the identity provider will be rejected.",
            SECRET_ENV_VAR,
        )
    return settings


def resolve_config_path(value: Optional[str]) -> Optional[Path]:
    """Resolve the ``--config`` argument, if one was given."""
    if not value:
        return None
    return Path(value).expanduser().resolve(strict=False)


__all__ = [
    "DEFAULT_CLERK_API_URL",
    "PAGE_SIZE",
    "SECRET_ENV_VAR",
    "DashboardSettings",
    "load_settings",
    "resolve_config_path",
]
