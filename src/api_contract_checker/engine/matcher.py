"""Matching calls against resolved endpoints.

Each distinct call is normalized and compared with every endpoint of the
same method. The outcome per call is one of: the most specific matching
endpoint gets marked as consumed, a method mismatch, or a missing
endpoint. Endpoints nobody consumed are reported as orphaned afterwards.
"""

from pydantic import BaseModel

from api_contract_checker.engine.models import (
    ANY_METHOD,
    HTTP_METHODS,
    Call,
    EnvVarCallSuggestion,
    Issue,
    MethodMismatch,
    MissingEndpoint,
    OrphanedEndpoint,
    ResolvedEndpoint,
    UrlKind,
    parse_method,
)
from api_contract_checker.engine.path_matcher import paths_match, specificity
from api_contract_checker.engine.url_normalizer import UrlNormalizer


class MatchOutcome(BaseModel):
    """Issues found by the matcher plus the endpoint table it marked."""

    issues: list[Issue]
    endpoints: list[ResolvedEndpoint]
    call_count: int


def dedupe_calls(calls: list[Call]) -> list[Call]:
    """Drop repeated ``(method, raw_url, caller_repo)`` tuples, keeping order."""
    unique: dict[tuple[str, str, str], Call] = {}
    for call in calls:
        key = (call.method.strip().upper(), call.raw_url, call.caller_repo_id)
        unique.setdefault(key, call)
    return list(unique.values())


class EndpointCallMatcher:
    """Matches calls to endpoints and reports connectivity issues."""

    def __init__(self, normalizer: UrlNormalizer):
        self.normalizer = normalizer

    def match(self, endpoints: list[ResolvedEndpoint], calls: list[Call]) -> MatchOutcome:
        table = [endpoint.model_copy(update={"consumed": False}) for endpoint in endpoints]
        by_method: dict[str, list[ResolvedEndpoint]] = {}
        for endpoint in table:
            by_method.setdefault(endpoint.method, []).append(endpoint)

        issues: list[Issue] = []
        unique_calls = dedupe_calls(calls)
        for call in unique_calls:
            issue = self._match_call(call, table, by_method)
            if issue is not None:
                issues.append(issue)

        issues.extend(self._orphans(table))
        return MatchOutcome(issues=issues, endpoints=table, call_count=len(unique_calls))

    def _match_call(
        self,
        call: Call,
        table: list[ResolvedEndpoint],
        by_method: dict[str, list[ResolvedEndpoint]],
    ) -> MissingEndpoint | MethodMismatch | EnvVarCallSuggestion | None:
        method = parse_method(call.method)
        if method is None or not call.raw_url.strip():
            return _low_confidence_missing(call, call.method.strip().upper() or "UNKNOWN", call.raw_url)

        normalized = self.normalizer.normalize(call.raw_url)
        if normalized.kind is UrlKind.EXTERNAL:
            if normalized.unconfigured_env_var:
                return EnvVarCallSuggestion(
                    method=method,
                    raw_url=call.raw_url,
                    env_var=normalized.unconfigured_env_var,
                    path=normalized.path,
                    caller_repo=call.caller_repo_id,
                    location=call.location,
                )
            return None
        if normalized.kind is UrlKind.UNCLASSIFIED:
            return _low_confidence_missing(call, method, normalized.path or call.raw_url)

        path = normalized.path
        candidates = by_method.get(method, []) + by_method.get(ANY_METHOD, [])
        matches = [endpoint for endpoint in candidates if paths_match(endpoint.full_path, path)]
        if matches:
            best = min(matches, key=lambda e: (specificity(e.full_path), e.order))
            best.consumed = True
            return None

        supported = {e.method for e in table if e.method != method and paths_match(e.full_path, path)}
        if supported:
            return MethodMismatch(
                path=path,
                called_method=method,
                supported_methods=sorted(supported, key=_method_rank),
                raw_url=call.raw_url,
                caller_repo=call.caller_repo_id,
                location=call.location,
            )

        return MissingEndpoint(
            method=method,
            path=path,
            raw_url=call.raw_url,
            caller_repo=call.caller_repo_id,
            location=call.location,
        )

    def _orphans(self, table: list[ResolvedEndpoint]) -> list[OrphanedEndpoint]:
        orphans: dict[tuple[str, str, str], OrphanedEndpoint] = {}
        for endpoint in table:
            if endpoint.consumed:
                continue
            key = (endpoint.repo_id, endpoint.method, endpoint.full_path)
            if key in orphans:
                continue
            orphans[key] = OrphanedEndpoint(
                method=endpoint.method,
                full_path=endpoint.full_path,
                repo_id=endpoint.repo_id,
                owner=endpoint.owner.local_name,
                handler_name=endpoint.handler_name,
                location=endpoint.location,
            )
        # a path consumed through one resolved copy is not orphaned through a duplicate
        consumed = {(e.repo_id, e.method, e.full_path) for e in table if e.consumed}
        return [orphan for key, orphan in orphans.items() if key not in consumed]


def _low_confidence_missing(call: Call, method: str, path: str) -> MissingEndpoint:
    return MissingEndpoint(
        method=method,
        path=path.strip() or "(empty)",
        raw_url=call.raw_url,
        caller_repo=call.caller_repo_id,
        location=call.location,
        confidence="low",
    )


def _method_rank(method: str) -> tuple[int, str]:
    if method in HTTP_METHODS:
        return (HTTP_METHODS.index(method), method)
    return (len(HTTP_METHODS), method)
