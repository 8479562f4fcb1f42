"""Analyzer configuration and process settings.

``AnalyzerConfig`` is the per-organization service boundary description
(which hosts and environment variables point at internal services). It is
read from one or more YAML/JSON files and merged.

``Settings`` holds process-level defaults that may be overridden with
environment variables prefixed with ``API_CONTRACT_``.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings

from api_contract_checker.errors import SnapshotError
from api_contract_checker.facts.loader import read_document


class AnalyzerConfig(BaseModel):
    """Service boundary configuration consumed by the URL normalizer."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    internal_domains: list[str] = Field(default_factory=list, alias="internalDomains")
    internal_env_vars: list[str] = Field(default_factory=list, alias="internalEnvVars")
    external_env_vars: list[str] = Field(default_factory=list, alias="externalEnvVars")

    def merge(self, other: "AnalyzerConfig") -> "AnalyzerConfig":
        """Return the union of two configs, keeping first-seen order."""
        return AnalyzerConfig(
            internal_domains=_union(self.internal_domains, other.internal_domains),
            internal_env_vars=_union(self.internal_env_vars, other.internal_env_vars),
            external_env_vars=_union(self.external_env_vars, other.external_env_vars),
        )


def load_config(file_paths: list[Path]) -> AnalyzerConfig:
    """Load and merge config files. No files yields an empty config."""
    merged = AnalyzerConfig()
    for path in file_paths:
        data = read_document(path)
        try:
            merged = merged.merge(AnalyzerConfig.model_validate(data))
        except ValidationError as e:
            raise SnapshotError(str(path), f"invalid config: {e.error_count()} error(s)") from e
    return merged


def _union(first: list[str], second: list[str]) -> list[str]:
    return list(dict.fromkeys([*first, *second]))


class Settings(BaseSettings):
    """Process-level defaults.

    Attributes:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR).
        report_format: Default report format for the CLI (markdown or json).
    """

    log_level: str = "WARNING"
    report_format: str = "markdown"

    model_config = {"env_prefix": "API_CONTRACT_", "extra": "ignore"}


settings = Settings()
