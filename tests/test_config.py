"""Tests for configuration handling"""
import pytest

from git_branch_flow.config import Config


class TestConfigValidation:
    """Test validation in __post_init__."""

    def test_defaults(self):
        config = Config()
        assert config.max_retries == 3
        assert config.retry_delay == 2.0
        assert config.max_retry_delay == 30.0
        assert config.gh_timeout == 1.5
        assert config.force is False

    @pytest.mark.parametrize("kwargs", [
        {"max_retries": -1},
        {"retry_delay_ms": 0},
        {"max_retry_delay_ms": 0},
        {"retry_delay_ms": 500, "max_retry_delay_ms": 100},
        {"gh_timeout_ms": -5},
    ])
    def test_invalid_values_raise(self, kwargs):
        with pytest.raises(ValueError):
            Config(**kwargs)

    def test_from_dict_ignores_unknown_keys(self):
        config = Config.from_dict({"force": True, "stale_days": 30})
        assert config.force is True
        assert config.get("stale_days", "missing") == "missing"

    def test_to_dict_round_trip(self):
        config = Config(verbose=True, max_retries=1)
        assert Config.from_dict(config.to_dict()) == config


class TestConfigFromEnv:
    """Test reading settings from environment variables."""

    def test_reads_variables(self):
        config = Config.from_env({
            "BRANCH_FLOW_MAX_RETRIES": "5",
            "BRANCH_FLOW_RETRY_DELAY_MS": "100",
            "BRANCH_FLOW_MAX_RETRY_DELAY_MS": "1000",
            "GH_TIMEOUT_MS": "0",
            "JIRA_API_TOKEN": "secret",
            "JIRA_EMAIL": "dev@example.com",
        })
        assert config.max_retries == 5
        assert config.retry_delay_ms == 100
        assert config.max_retry_delay_ms == 1000
        assert config.gh_timeout_ms == 0
        assert config.jira_api_token == "secret"
        assert config.jira_email == "dev@example.com"

    @pytest.mark.parametrize("value", ["abc", "-1", "", "  "])
    def test_bad_retry_count_falls_back(self, value):
        assert Config.from_env({"BRANCH_FLOW_MAX_RETRIES": value}).max_retries == 3

    def test_zero_delay_falls_back(self):
        assert Config.from_env({"BRANCH_FLOW_RETRY_DELAY_MS": "0"}).retry_delay_ms == 2000

    def test_inverted_delays_reset_both(self):
        config = Config.from_env({
            "BRANCH_FLOW_RETRY_DELAY_MS": "5000",
            "BRANCH_FLOW_MAX_RETRY_DELAY_MS": "1000",
        })
        assert config.retry_delay_ms == 2000
        assert config.max_retry_delay_ms == 30000

    def test_overrides_win_and_none_is_ignored(self):
        config = Config.from_env({"BRANCH_FLOW_MAX_RETRIES": "5"}, max_retries=0, force=True, debug=None)
        assert config.max_retries == 0
        assert config.force is True
        assert config.debug is False

    def test_missing_jira_settings(self):
        config = Config.from_env({})
        assert config.jira_api_token is None
        assert config.jira_email is None
