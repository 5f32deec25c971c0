import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from userdash.config import (
    DEFAULT_CLERK_API_URL,
    PAGE_SIZE,
    DashboardSettings,
    load_settings,
    resolve_config_path,
)


def test_defaults_without_file_use_environment_secret():
    settings = load_settings(environ={"CLERK_SECRET_KEY": " sk_env "})

    assert settings.clerk_secret_key == "sk_env"
    assert settings.clerk_api_url == DEFAULT_CLERK_API_URL
    assert settings.page_size == PAGE_SIZE
    assert settings.users_url == "https://api.clerk.com/v1/users"


def test_yaml_file_is_loaded(tmp_path):
    config = tmp_path / "dashboard.yaml"
    config.write_text(
        "clerk:\n  api_url: https://clerk.internal/v1/\n  secret_key: sk_file\n",
        encoding="utf-8",
    )

    settings = load_settings(config, environ={})

    assert settings == DashboardSettings(
        clerk_secret_key="sk_file",
        clerk_api_url="https://clerk.internal/v1",
    )


def test_environment_overrides_file_secret(tmp_path):
    config = tmp_path / "dashboard.yaml"
    config.write_text("clerk:\n  secret_key: sk_file\n", encoding="utf-8")

    settings = load_settings(config, environ={"CLERK_SECRET_KEY": "sk_env"})

    assert settings.clerk_secret_key == "sk_env"


def test_unknown_fields_are_rejected():
    with pytest.raises(ValueError):
        DashboardSettings.from_dict({"secret_key": "sk", "page_size": 500})


def test_missing_secret_logs_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="userdash.config"):
        settings = load_settings(environ={})

    assert settings.clerk_secret_key is None
    assert "CLERK_SECRET_KEY is not set" in caplog.text


def test_resolve_config_path():
    assert resolve_config_path(None) is None
    assert resolve_config_path("") is None
    assert resolve_config_path("~/dashboard.yaml").is_absolute()
