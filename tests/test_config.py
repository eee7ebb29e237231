"""Tests for the bundled configuration defaults."""

from njalladns.app.rpc import API_ENDPOINT, RetryPolicy
from njalladns.app.provider import (
    DEFAULT_CALL_TIMEOUT,
    DEFAULT_LIST_TIMEOUT,
    DEFAULT_OPERATION_TIMEOUT,
)
from njalladns.config import config


def test_api_defaults():
    assert config.get_string("api.endpoint") == API_ENDPOINT
    assert config.get_int("api.timeout_seconds") == 30


def test_retry_defaults_match_policy():
    assert RetryPolicy.from_config(config) == RetryPolicy()


def test_timeout_defaults_match_provider():
    assert config.get_int("timeouts.operation_seconds") == DEFAULT_OPERATION_TIMEOUT
    assert config.get_int("timeouts.list_seconds") == DEFAULT_LIST_TIMEOUT
    assert config.get_int("timeouts.call_seconds") == DEFAULT_CALL_TIMEOUT


def test_log_level_default():
    assert config.get_string("log_level") == "info"
