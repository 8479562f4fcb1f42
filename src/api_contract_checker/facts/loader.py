"""Snapshot and package manifest loading.

Snapshots are YAML or JSON documents (JSON is read through the YAML
loader as well) with a top-level ``facts`` list and an optional
``dependencies`` list.
"""

import json
from pathlib import Path

import yaml
from pydantic import ValidationError

from api_contract_checker.errors import SnapshotError
from api_contract_checker.facts.base import DependencyRecord, Snapshot

MANIFEST_SECTIONS = ("dependencies", "devDependencies", "peerDependencies")


def read_document(file_path: Path) -> dict:
    """Read a YAML/JSON file into a mapping, raising SnapshotError on failure."""
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise SnapshotError(str(file_path), f"cannot read file: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SnapshotError(str(file_path), f"invalid YAML/JSON: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SnapshotError(str(file_path), "top-level value must be a mapping")
    return data


def load_snapshot(file_path: Path) -> Snapshot:
    """Load a facts snapshot file."""
    data = read_document(file_path)
    try:
        return Snapshot.model_validate(data)
    except ValidationError as e:
        raise SnapshotError(str(file_path), _summarize(e)) from e


def load_package_json(file_path: Path, repo_id: str) -> list[DependencyRecord]:
    """Read dependency declarations from a package.json.

    ``dependencies``, ``devDependencies`` and ``peerDependencies`` are all
    included; a package listed in more than one section yields one record
    per section.
    """
    try:
        manifest = json.loads(file_path.read_text(encoding="utf-8"))
    except OSError as e:
        raise SnapshotError(str(file_path), f"cannot read file: {e}") from e
    except json.JSONDecodeError as e:
        raise SnapshotError(str(file_path), f"invalid JSON: {e.msg} (line {e.lineno})") from e

    if not isinstance(manifest, dict):
        raise SnapshotError(str(file_path), "package.json must contain an object")

    records = []
    for section in MANIFEST_SECTIONS:
        deps = manifest.get(section) or {}
        if not isinstance(deps, dict):
            continue
        for name, version in deps.items():
            records.append(
                DependencyRecord(
                    package_name=name,
                    version=str(version),
                    repo_id=repo_id,
                    source_path=str(file_path),
                )
            )
    return records


def _summarize(error: ValidationError) -> str:
    lines = []
    for err in error.errors()[:5]:
        loc = ".".join(str(part) for part in err["loc"])
        lines.append(f"{loc}: {err['msg']}")
    return "; ".join(lines)
