"""JSON report with camelCase keys for machine consumers."""

from api_contract_checker.engine.models import AnalysisResult


def render_json(result: AnalysisResult, indent: int = 2) -> str:
    return result.model_dump_json(by_alias=True, indent=indent)
