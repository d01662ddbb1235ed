"""Unit tests for settings loading and structured logging helpers."""

from __future__ import annotations

import pytest
import structlog
from pydantic import ValidationError

from mapauth.core.config import Settings, get_settings
from mapauth.core.logging import configure_logging, get_logger, operation_context


def test_settings_defaults() -> None:
    settings = get_settings()

    assert str(settings.redis_url) == "redis://localhost:6379/0"
    assert settings.redis_templates_db == 0
    assert settings.redis_signatures_db == 0
    assert settings.certificate_canonicalization == "json-stringify"


def test_settings_expose_only_fields_the_service_reads() -> None:
    assert set(Settings.model_fields) == {
        "environment",
        "log_level",
        "api_v1_prefix",
        "project_name",
        "version",
        "redis_url",
        "redis_max_connections",
        "redis_signatures_db",
        "redis_templates_db",
        "certificate_canonicalization",
    }


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REDIS_URL", "redis://cache:6380/2")
    monkeypatch.setenv("REDIS_TEMPLATES_DB", "5")

    settings = get_settings()

    assert settings.redis_url.host == "cache"
    assert settings.redis_templates_db == 5


def test_settings_reject_unknown_canonicalization() -> None:
    with pytest.raises(ValidationError):
        Settings(certificate_canonicalization="xml")  # type: ignore[arg-type]


def test_operation_context_binds_scope_only_inside_block() -> None:
    with operation_context("add_template", owner="alice", template="k"):
        bound = structlog.contextvars.get_contextvars()
        assert bound["operation"] == "add_template"
        assert bound["owner"] == "alice"
        assert bound["template"] == "k"

    assert "operation" not in structlog.contextvars.get_contextvars()


@pytest.mark.parametrize("environment", ["development", "production"])
def test_configure_logging_for_each_environment(
    monkeypatch: pytest.MonkeyPatch, environment: str
) -> None:
    monkeypatch.setenv("ENVIRONMENT", environment)

    configure_logging()

    get_logger(__name__).info("logging_configured", environment=environment)
