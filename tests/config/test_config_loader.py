"""
Tests for configuration loading.

Covers:
- Packaged defaults
- Override file deep-merge
- Environment overrides
- Validation of aging buckets, allocation policy and account kinds
- Checksum determinism and the cached active config
"""

import pytest
import yaml

from ledger_config import get_active_config, reset_active_config
from ledger_config.loader import load_settings, merge_dicts, parse_aging
from ledger_services.orchestrator import aging_buckets_from_settings


@pytest.fixture
def override_file(tmp_path):
    def _write(data: dict):
        path = tmp_path / "ledger.yaml"
        path.write_text(yaml.safe_dump(data))
        return path

    return _write


class TestDefaults:
    def test_book_currency_and_scale(self):
        settings = load_settings()

        assert settings.currency == "KWD"
        assert settings.display_scale == 3
        assert settings.foreign_display_scale == 2

    def test_standard_aging_buckets(self):
        buckets = load_settings().aging.buckets

        assert [b.name for b in buckets] == ["current", "days30", "days60", "days90_plus"]
        assert buckets[-1].max_days is None
        assert buckets[3].min_days == 91

    def test_default_accounts(self):
        defaults = load_settings().accounts.defaults

        assert [d.name for d in defaults] == ["Cash", "NBK Bank", "CBK Bank", "Knet", "Wamd"]
        assert defaults[0].kind == "cash"

    def test_policies(self):
        settings = load_settings()

        assert settings.aging.allocation_policy == "fifo"
        assert settings.accounts.allow_negative_balance is True
        assert settings.accounts.verify_on_write is True


class TestOverrides:
    def test_override_file_merges(self, override_file):
        path = override_file({"accounts": {"allow_negative_balance": False}})

        settings = load_settings(path)

        assert settings.accounts.allow_negative_balance is False
        # Untouched siblings survive the merge
        assert settings.accounts.verify_on_write is True
        assert len(settings.accounts.defaults) == 5

    def test_config_path_from_environment(self, override_file):
        path = override_file({"log_level": "debug"})

        settings = load_settings(environ={"LEDGER_CONFIG": str(path)})

        assert settings.log_level == "DEBUG"

    def test_database_url_from_environment(self):
        settings = load_settings(environ={"LEDGER_DATABASE_URL": "postgresql://x@y/z"})

        assert settings.database.url == "postgresql://x@y/z"

    def test_environment_beats_file(self, override_file):
        path = override_file({"log_level": "WARNING"})

        settings = load_settings(path, environ={"LEDGER_LOG_LEVEL": "error"})

        assert settings.log_level == "ERROR"

    def test_missing_override_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.yaml")

    def test_merge_replaces_lists(self):
        merged = merge_dicts({"a": {"b": [1, 2], "c": 1}}, {"a": {"b": [3]}})
        assert merged == {"a": {"b": [3], "c": 1}}


class TestValidation:
    def test_unknown_policy(self, override_file):
        path = override_file({"aging": {"allocation_policy": "lifo"}})
        with pytest.raises(ValueError, match="allocation_policy"):
            load_settings(path)

    def test_bucket_gap(self):
        data = {"buckets": [
            {"name": "a", "min_days": 0, "max_days": 30},
            {"name": "b", "min_days": 40},
        ]}
        with pytest.raises(ValueError, match="expected 31"):
            parse_aging(data)

    def test_bucket_must_start_at_zero(self):
        with pytest.raises(ValueError):
            parse_aging({"buckets": [{"name": "late", "min_days": 1}]})

    def test_open_bucket_must_be_last(self):
        data = {"buckets": [
            {"name": "a", "min_days": 0},
            {"name": "b", "min_days": 1, "max_days": 5},
        ]}
        with pytest.raises(ValueError, match="open-ended"):
            parse_aging(data)

    def test_no_buckets(self):
        with pytest.raises(ValueError):
            parse_aging({"buckets": []})

    def test_unknown_account_kind(self, override_file):
        path = override_file({"accounts": {"defaults": [{"name": "Vault", "kind": "gold"}]}})
        with pytest.raises(ValueError, match="gold"):
            load_settings(path)

    def test_custom_buckets_reach_the_classifier(self, override_file):
        path = override_file({"aging": {"buckets": [
            {"name": "fresh", "min_days": 0, "max_days": 7},
            {"name": "stale", "min_days": 8},
        ]}})

        buckets = aging_buckets_from_settings(load_settings(path).aging)

        assert [b.name for b in buckets] == ["fresh", "stale"]


class TestChecksum:
    def test_deterministic(self):
        assert load_settings().checksum == load_settings().checksum

    def test_changes_with_content(self, override_file):
        path = override_file({"log_level": "DEBUG"})
        assert load_settings(path).checksum != load_settings().checksum


class TestActiveConfig:
    def setup_method(self):
        reset_active_config()

    def teardown_method(self):
        reset_active_config()

    def test_cached(self):
        assert get_active_config() is get_active_config()

    def test_path_forces_reload(self, override_file, captured_logs):
        first = get_active_config()
        second = get_active_config(override_file({"log_level": "DEBUG"}))

        assert second is not first
        assert second.log_level == "DEBUG"
        traces = [r for r in captured_logs() if r["message"] == "LEDGER_CONFIG_TRACE"]
        assert traces[-1]["checksum"] == second.checksum
