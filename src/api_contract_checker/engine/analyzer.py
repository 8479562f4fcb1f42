"""Top-level analysis over a snapshot of all repositories.

``analyze`` is a pure function of its inputs: it builds fresh graphs,
resolves endpoints, matches calls and grades dependency conflicts, then
returns everything in one AnalysisResult. A repository whose mount graph
is broken is reported as a diagnostic and left out of endpoint matching;
the rest of the run is unaffected.
"""

import structlog

from api_contract_checker.config import AnalyzerConfig
from api_contract_checker.engine.dependencies import DependencyConflictAnalyzer
from api_contract_checker.engine.matcher import EndpointCallMatcher
from api_contract_checker.engine.models import (
    AnalysisResult,
    Call,
    OrphanedEndpoint,
    StructuralDiagnostic,
    Summary,
    parse_method,
)
from api_contract_checker.engine.mount_graph import MountGraphBuilder
from api_contract_checker.engine.resolver import PathResolver
from api_contract_checker.engine.url_normalizer import UrlNormalizer
from api_contract_checker.errors import StructuralError
from api_contract_checker.facts.base import HttpEndpoint, Snapshot

logger = structlog.get_logger(__name__)


def analyze(snapshot: Snapshot, config: AnalyzerConfig | None = None) -> AnalysisResult:
    """Run the full analysis and return issues, conflicts and diagnostics."""
    config = config or AnalyzerConfig()

    gaps, graph_facts = _split_classification_gaps(snapshot)
    graphs, errors = MountGraphBuilder().build_all(graph_facts)
    resolved = PathResolver().resolve_all(graphs.values())

    calls = [
        Call(method=c.method, raw_url=c.url, caller_repo_id=c.caller_repo, location=c.location)
        for c in snapshot.calls()
    ]
    outcome = EndpointCallMatcher(UrlNormalizer(config)).match(resolved, calls)
    conflicts = DependencyConflictAnalyzer().analyze(snapshot.dependencies)

    result = AnalysisResult(
        issues=[*outcome.issues, *gaps],
        dependency_conflicts=conflicts,
        summary=Summary(endpoint_count=len(resolved), call_count=outcome.call_count),
        diagnostics=[_diagnostic(e) for e in errors],
    )
    logger.info(
        "analysis_complete",
        repos=len(snapshot.repos()),
        endpoints=len(resolved),
        calls=outcome.call_count,
        issues=len(result.issues),
        conflicts=len(conflicts),
        structural_errors=len(errors),
    )
    return result


def _split_classification_gaps(snapshot: Snapshot) -> tuple[list[OrphanedEndpoint], list]:
    """Separate endpoints with an unusable method or path from the graph facts.

    Such endpoints cannot be matched, so they are reported right away as
    low-confidence orphans instead of aborting the run.
    """
    gaps = []
    graph_facts = []
    for fact in snapshot.facts:
        if isinstance(fact, HttpEndpoint):
            method = parse_method(fact.method, allow_any=True)
            if method is None or not fact.path.strip():
                logger.warning(
                    "classification_gap", repo=fact.repo, method=fact.method, path=fact.path
                )
                gaps.append(
                    OrphanedEndpoint(
                        method=fact.method.strip().upper() or "UNKNOWN",
                        full_path=fact.path.strip() or "(empty)",
                        repo_id=fact.repo,
                        owner=fact.owner,
                        handler_name=fact.handler,
                        location=fact.location,
                        confidence="low",
                    )
                )
                continue
        graph_facts.append(fact)
    return gaps, graph_facts


def _diagnostic(error: StructuralError) -> StructuralDiagnostic:
    return StructuralDiagnostic(
        repo_id=error.repo_id,
        kind=error.kind,
        nodes=error.nodes,
        message=str(error),
    )
