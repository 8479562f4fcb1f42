"""Cross-repository dependency version conflicts.

Services that share a package at different major versions tend to
disagree about wire formats and behavior. Every package declared by more
than one distinct version across the analyzed repositories is reported,
graded by how far apart the versions are. A repository that declares a
package more than once (several manifest sections or manifests) counts
with the highest version it declares.
"""

import re

import structlog

from api_contract_checker.engine.models import DependencyConflict, RepoVersion, Severity
from api_contract_checker.facts.base import DependencyRecord

logger = structlog.get_logger(__name__)

_RANGE_OPERATORS = re.compile(r"^(?:\^|~|>=|<=|>|<|=|\*|v)+")
_VERSION = re.compile(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?(?:[-+][0-9A-Za-z.\-+]*)?$")

SEVERITY_LABELS = {
    Severity.CRITICAL: "major",
    Severity.WARNING: "minor",
    Severity.INFO: "patch-level or unparseable",
}


def clean_version(spec: str) -> str:
    """Reduce a version spec to a single comparable version string.

    ``^4.18.0`` -> ``4.18.0``; ``1.0.0 - 2.0.0`` -> ``2.0.0`` (upper bound);
    ``1.2.0 || 2.0.0`` -> ``1.2.0`` (first alternative).
    """
    cleaned = spec.strip()
    if " - " in cleaned:
        cleaned = cleaned.split(" - ")[-1]
    if "||" in cleaned:
        cleaned = cleaned.split("||")[0]
    cleaned = _RANGE_OPERATORS.sub("", cleaned.strip())
    return cleaned.strip()


def parse_version(version: str) -> tuple[int, int, int] | None:
    """``(major, minor, patch)``; missing components are 0. None if not numeric."""
    match = _VERSION.match(version)
    if not match:
        return None
    major, minor, patch = match.groups()
    return (int(major), int(minor or 0), int(patch or 0))


def classify(versions: list[str]) -> Severity:
    """Severity of a set of distinct cleaned versions."""
    parsed = [v for v in (parse_version(version) for version in versions) if v is not None]
    if len(parsed) < 2:
        # nothing to compare numerically: the raw strings already differ
        return Severity.INFO
    low, high = min(parsed), max(parsed)
    if low[0] != high[0]:
        return Severity.CRITICAL
    if low[1] != high[1]:
        return Severity.WARNING
    return Severity.INFO


class DependencyConflictAnalyzer:
    """Groups dependency records by package and reports version conflicts."""

    def analyze(self, records: list[DependencyRecord]) -> list[DependencyConflict]:
        # package -> repo -> the one version that repo is counted with
        groups: dict[str, dict[str, RepoVersion]] = {}
        for record in records:
            entry = RepoVersion(
                repo_id=record.repo_id,
                version=clean_version(record.version) or record.version.strip(),
                source_path=record.source_path,
            )
            per_repo = groups.setdefault(record.package_name, {})
            current = per_repo.get(record.repo_id)
            if current is None or _is_newer(entry.version, current.version):
                per_repo[record.repo_id] = entry

        conflicts = []
        for package_name, per_repo in groups.items():
            entries = list(per_repo.values())
            distinct = list(dict.fromkeys(entry.version for entry in entries))
            if len(distinct) < 2:
                continue
            severity = classify(distinct)
            conflicts.append(
                DependencyConflict(
                    package_name=package_name,
                    versions=entries,
                    severity=severity,
                    description=_describe(package_name, entries, severity),
                )
            )

        logger.debug("dependency_conflicts_found", packages=len(groups), conflicts=len(conflicts))
        return conflicts


def _is_newer(candidate: str, current: str) -> bool:
    """Whether a repo's second declaration of a package should replace the first.

    The highest parsed version wins; an unparseable one never replaces a
    parsed one.
    """
    new, old = parse_version(candidate), parse_version(current)
    if new is None:
        return False
    return old is None or new > old


def _describe(package_name: str, entries: list[RepoVersion], severity: Severity) -> str:
    repos = {entry.repo_id for entry in entries}
    listed = ", ".join(f"{entry.version} ({entry.repo_id})" for entry in entries)
    return (
        f"{package_name} has {SEVERITY_LABELS[severity]} version differences "
        f"across {len(repos)} repositories: {listed}"
    )
