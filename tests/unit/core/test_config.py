import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from tablerewind.core.config import DEFAULT_DIALECT_ENTRY_POINTS, Settings, get_settings


def test_settings_defaults():
    """Test that settings load with correct defaults."""
    get_settings.cache_clear()

    settings = Settings()

    assert settings.environment == "testing"
    assert settings.enabled is True
    assert settings.record_schema is False
    assert settings.split_statements is True
    assert settings.backslash_escapes is False
    assert settings.dialect_entry_points == DEFAULT_DIALECT_ENTRY_POINTS
    assert settings.statement_param == "statement"
    assert settings.listen_for_new_engines is True
    assert settings.configure_logging is False
    assert settings.is_production is False


def test_settings_env_override():
    """Test that environment variables override defaults."""
    get_settings.cache_clear()

    with patch.dict(os.environ, {
        "TABLEREWIND_ENVIRONMENT": "development",
        "TABLEREWIND_ENABLED": "false",
        "TABLEREWIND_RECORD_SCHEMA": "true",
        "TABLEREWIND_LOG_LEVEL": "DEBUG",
    }):
        settings = Settings()

        assert settings.environment == "development"
        assert settings.enabled is False
        assert settings.record_schema is True
        assert settings.log_level == "DEBUG"
        assert settings.is_production is False


def test_entry_points_parsing():
    """Test entry point parsing from JSON env values and CSV strings."""
    with patch.dict(os.environ, {
        "TABLEREWIND_DIALECT_ENTRY_POINTS": '["do_execute", "do_executemany"]'
    }):
        settings = Settings()
        assert settings.dialect_entry_points == ["do_execute", "do_executemany"]

    # CSV string via direct instantiation (verifies the validator logic)
    settings = Settings(dialect_entry_points="do_execute, do_execute_no_params,")
    assert settings.dialect_entry_points == ["do_execute", "do_execute_no_params"]


def test_entry_points_validation():
    """Test that entry points must be present and be valid method names."""
    with pytest.raises(ValidationError):
        Settings(dialect_entry_points=[])

    with pytest.raises(ValidationError):
        Settings(dialect_entry_points=["do execute"])

    with pytest.raises(ValidationError):
        Settings(statement_param="not-a-name")


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()
    get_settings.cache_clear()
