from pathlib import Path

import pytest

from api_contract_checker.config import AnalyzerConfig, Settings, load_config
from api_contract_checker.errors import SnapshotError

FIXTURES = Path(__file__).parent / "fixtures"


class TestAnalyzerConfig:
    def test_camel_case_keys(self):
        config = AnalyzerConfig.model_validate({"internalDomains": ["a.internal"], "externalEnvVars": ["X"]})
        assert config.internal_domains == ["a.internal"]
        assert config.external_env_vars == ["X"]
        assert config.internal_env_vars == []

    def test_merge_is_ordered_union(self):
        first = AnalyzerConfig(internal_domains=["a", "b"])
        second = AnalyzerConfig(internal_domains=["b", "c"], internal_env_vars=["API_URL"])
        merged = first.merge(second)
        assert merged.internal_domains == ["a", "b", "c"]
        assert merged.internal_env_vars == ["API_URL"]


class TestLoadConfig:
    def test_no_files(self):
        assert load_config([]) == AnalyzerConfig()

    def test_yaml_and_json_merge(self):
        config = load_config([FIXTURES / "config.yaml", FIXTURES / "config.json"])
        assert config.internal_domains == ["internal.example.com", "user-service.internal"]
        assert config.internal_env_vars == ["API_URL", "USER_SERVICE_URL"]
        assert config.external_env_vars == ["STRIPE_URL"]

    def test_invalid_field_type(self, tmp_path):
        f = tmp_path / "config.yaml"
        f.write_text("internalDomains: 42\n")
        with pytest.raises(SnapshotError, match="invalid config"):
            load_config([f])


class TestSettings:
    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("API_CONTRACT_LOG_LEVEL", raising=False)
        monkeypatch.delenv("API_CONTRACT_REPORT_FORMAT", raising=False)
        s = Settings()
        assert s.log_level == "WARNING"
        assert s.report_format == "markdown"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("API_CONTRACT_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("API_CONTRACT_REPORT_FORMAT", "json")
        s = Settings()
        assert s.log_level == "DEBUG"
        assert s.report_format == "json"
