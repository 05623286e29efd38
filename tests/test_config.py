import logging

import pytest

from ltcfund import _resolve_config, create_app
from ltcfund.config import DevelopmentConfig, ProductionConfig, TestingConfig

ENV_KEYS = ("FLASK_CONFIG", "APP_ENV", "ENV", "FLASK_ENV")


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


@pytest.mark.parametrize(
    "key, value, expected",
    [
        ("APP_ENV", "testing", TestingConfig),
        ("ENV", "prod", ProductionConfig),
        ("FLASK_CONFIG", "Production", ProductionConfig),
        ("APP_ENV", "staging", DevelopmentConfig),
    ],
)
def test_config_is_picked_from_environment(clean_env, key, value, expected):
    clean_env.setenv(key, value)

    assert _resolve_config(None) is expected


def test_dotted_flask_config_is_passed_through(clean_env):
    clean_env.setenv("FLASK_CONFIG", "myapp.settings.Custom")

    assert _resolve_config(None) == "myapp.settings.Custom"


def test_development_is_the_default(clean_env):
    assert _resolve_config(None) is DevelopmentConfig


class _NoOrganizationConfig(TestingConfig):
    TGB_ORGANIZATION_ID = 0


def test_boot_warns_without_organization_id(caplog):
    with caplog.at_level(logging.WARNING):
        create_app(_NoOrganizationConfig)

    assert "TGB_ORGANIZATION_ID is not set" in caplog.text


def test_boot_is_quiet_with_organization_id(caplog):
    with caplog.at_level(logging.WARNING):
        create_app(TestingConfig)

    assert "TGB_ORGANIZATION_ID" not in caplog.text
