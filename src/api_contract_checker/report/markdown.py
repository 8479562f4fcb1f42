"""Markdown report for pull-request comments.

The report is wrapped in HTML comment markers so CI tooling can find it
and read the issue count without parsing the prose.
"""

from api_contract_checker.engine.models import (
    AnalysisResult,
    DependencyConflict,
    EnvVarCallSuggestion,
    MethodMismatch,
    MissingEndpoint,
    OrphanedEndpoint,
    Severity,
    StructuralDiagnostic,
)

OUTPUT_START = "<!-- API_CONTRACT_OUTPUT_START -->"
OUTPUT_END = "<!-- API_CONTRACT_OUTPUT_END -->"
TITLE = "### API Contract Analysis Results"

SEVERITY_ORDER = {Severity.CRITICAL: 0, Severity.WARNING: 1, Severity.INFO: 2}


def issue_count(result: AnalysisResult) -> int:
    return len(result.issues) + len(result.dependency_conflicts) + len(result.diagnostics)


def render_markdown(result: AnalysisResult) -> str:
    """Render the analysis result as a Markdown document."""
    total = issue_count(result)
    header = [
        OUTPUT_START,
        f"<!-- API_CONTRACT_ISSUE_COUNT:{total} -->",
        TITLE,
        "",
        f"Analyzed **{result.summary.endpoint_count} endpoints** and "
        f"**{result.summary.call_count} API calls** across all repositories.",
        "",
    ]

    if total == 0:
        return "\n".join(header + ["**No API inconsistencies detected.**", "", OUTPUT_END, ""])

    mismatches = result.issues_of(MethodMismatch)
    missing = result.issues_of(MissingEndpoint)
    orphaned = result.issues_of(OrphanedEndpoint)
    suggestions = result.issues_of(EnvVarCallSuggestion)
    conflicts = sorted(result.dependency_conflicts, key=lambda c: (SEVERITY_ORDER[c.severity], c.package_name))

    header.append(
        f"Found **{total} total issues**: **{len(mismatches)} method mismatches**, "
        f"**{len(missing) + len(orphaned)} connectivity issues**, "
        f"**{len(conflicts)} dependency conflicts**, "
        f"**{len(suggestions)} configuration suggestions** and "
        f"**{len(result.diagnostics)} structural errors**."
    )
    header.append("")

    sections = []
    if result.diagnostics:
        sections.append(_structural_section(result.diagnostics))
    if mismatches:
        sections.append(_mismatch_section(mismatches))
    if missing or orphaned:
        sections.append(_connectivity_section(missing, orphaned))
    if conflicts:
        sections.append(_dependency_section(conflicts))
    if suggestions:
        sections.append(_configuration_section(suggestions))

    body = "\n\n<hr>\n\n".join(sections)
    return "\n".join(header) + "\n" + body + "\n\n" + OUTPUT_END + "\n"


def _details(summary: str, lines: list[str]) -> str:
    return "\n".join(
        ["<details>", "<summary>", f"<strong>{summary}</strong>", "</summary>", ""] + lines + ["", "</details>"]
    )


def _structural_section(diagnostics: list[StructuralDiagnostic]) -> str:
    lines = ["> These repositories could not be analyzed because their router mounts are inconsistent.", ""]
    for diag in diagnostics:
        nodes = ", ".join(f"`{n}`" for n in diag.nodes)
        lines.append(f"  - **{diag.repo_id}** ({diag.kind}): {diag.message} [{nodes}]")
    return _details(f"{len(diagnostics)} Structural Errors", lines)


def _mismatch_section(mismatches: list[MethodMismatch]) -> str:
    lines = [
        "> A call uses an HTTP method the endpoint does not support. These are direct "
        "conflicts between consumer and producer and should be addressed first.",
        "",
        "| Path | Called With | Supported | Caller |",
        "| :--- | :--- | :--- | :--- |",
    ]
    for m in mismatches:
        supported = ", ".join(f"`{method}`" for method in m.supported_methods)
        lines.append(f"| `{m.path}` | `{m.called_method}` | {supported} | {_origin(m.caller_repo, m.location)} |")
    return _details(f"{len(mismatches)} Critical: Method Mismatches", lines)


def _connectivity_section(missing: list[MissingEndpoint], orphaned: list[OrphanedEndpoint]) -> str:
    lines = [
        "> These endpoints are either defined but never used (orphaned) or called but never "
        "defined (missing). This could be dead code or a misconfigured route.",
        "",
    ]
    if missing:
        lines.append(f"#### {len(missing)} Missing Endpoint{_plural(missing)}")
        lines.append("")
        lines.append("| Method | Path | Caller | Confidence |")
        lines.append("| :--- | :--- | :--- | :--- |")
        for m in missing:
            lines.append(f"| `{m.method}` | `{m.path}` | {_origin(m.caller_repo, m.location)} | {m.confidence} |")
        lines.append("")
    if orphaned:
        lines.append(f"#### {len(orphaned)} Orphaned Endpoint{_plural(orphaned)}")
        lines.append("")
        lines.append("| Method | Path | Defined In | Confidence |")
        lines.append("| :--- | :--- | :--- | :--- |")
        for o in orphaned:
            lines.append(f"| `{o.method}` | `{o.full_path}` | {_origin(o.repo_id, o.location)} | {o.confidence} |")
    return _details(f"{len(missing) + len(orphaned)} Connectivity Issues", lines)


def _dependency_section(conflicts: list[DependencyConflict]) -> str:
    lines = [
        "> These packages are declared at different versions across repositories.",
        "",
        "| Package | Severity | Versions |",
        "| :--- | :--- | :--- |",
    ]
    for c in conflicts:
        versions = ", ".join(f"`{v.version}` ({v.repo_id})" for v in c.versions)
        lines.append(f"| `{c.package_name}` | {c.severity.value} | {versions} |")
    return _details(f"{len(conflicts)} Dependency Conflicts", lines)


def _configuration_section(suggestions: list[EnvVarCallSuggestion]) -> str:
    lines = [
        "> These API calls build their URL from environment variables that are not "
        "configured. Add them to `internalEnvVars` or `externalEnvVars` to enable full analysis.",
        "",
    ]
    for s in suggestions:
        path = s.path or s.raw_url
        lines.append(f"  - `{s.method}` using **[{s.env_var}]** in `{path}` ({_origin(s.caller_repo, s.location)})")
    return _details(f"{len(suggestions)} Configuration Suggestions", lines)


def _origin(repo: str, location: str) -> str:
    return f"{repo} `{location}`" if location else repo


def _plural(items: list) -> str:
    return "" if len(items) == 1 else "s"
