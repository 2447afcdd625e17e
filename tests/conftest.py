"""
Shared pytest fixtures for the LogScope test suite.

Usage in tests:
    def test_something(log_factory):
        log_factory.add_log(SAMPLE_LOG)
        cli = log_factory.create_cli_mock()

    def test_with_data(log_env):
        # log_env already serves SAMPLE_LOG for DEFAULT_KEY
        cli = log_env.create_cli_mock()
"""

import pytest

from logscope.config import ConfigManager, ENV_OVERRIDES
from logscope.services.sources import TOKEN_ENV
from tests.factories import LogTestFactory, SAMPLE_LOG


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the real user config and LOGSCOPE_* variables out of every test."""
    monkeypatch.setattr(ConfigManager, "USER_CONFIG_FILE", tmp_path / "home" / ".logscope" / "config.yaml")
    for env_key in ENV_OVERRIDES:
        monkeypatch.delenv(env_key, raising=False)
    monkeypatch.delenv(TOKEN_ENV, raising=False)


@pytest.fixture
def log_factory(tmp_path):
    """Empty LogTestFactory backed by tmp_path."""
    return LogTestFactory(tmp_path)


@pytest.fixture
def log_env(tmp_path):
    """LogTestFactory serving SAMPLE_LOG for the default job key."""
    factory = LogTestFactory(tmp_path)
    factory.add_log(SAMPLE_LOG)
    return factory


@pytest.fixture
def mock_cli(log_env):
    """CLI mock with an in-memory cache over SAMPLE_LOG."""
    return log_env.create_cli_mock()
