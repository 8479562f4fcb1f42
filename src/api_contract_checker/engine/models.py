"""Data models of the matching engine.

Graph-side models (nodes, edges, endpoints, calls) are frozen: they are
built once per run from a snapshot and never mutated. Result-side models
serialize with camelCase keys for downstream reporting.
"""

import enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

HTTP_METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")
ANY_METHOD = "ALL"

Confidence = Literal["high", "low"]


def parse_method(value: str | None, allow_any: bool = False) -> str | None:
    """Uppercased HTTP method, or None when it is not one.

    ``ALL`` (Express ``app.all``) is only valid for endpoints.
    """
    method = (value or "").strip().upper()
    if method in HTTP_METHODS or (allow_any and method == ANY_METHOD):
        return method
    return None


class OutputModel(BaseModel):
    """Base for models that end up in the analysis result."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NodeKind(str, enum.Enum):
    APP = "app"
    ROUTER = "router"
    UNKNOWN = "unknown"


class NodeRole(str, enum.Enum):
    ROOT = "root"
    MOUNTED = "mounted"
    UNMOUNTED = "unmounted"


class NodeId(BaseModel):
    """Composite node key. Local names like ``router`` repeat across repos."""

    model_config = ConfigDict(frozen=True)

    repo_id: str
    local_name: str

    def __str__(self) -> str:
        return f"{self.repo_id}:{self.local_name}"


class Node(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: NodeId
    kind: NodeKind = NodeKind.UNKNOWN
    role: NodeRole


class MountEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    parent: NodeId
    child: NodeId
    path_prefix: str
    repo_id: str
    location: str = ""


class Endpoint(BaseModel):
    """An endpoint as registered on its owner, before mount prefixes."""

    model_config = ConfigDict(frozen=True)

    owner: NodeId
    method: str
    raw_path: str
    handler_name: str | None = None
    repo_id: str
    location: str = ""
    order: int = 0  # registration index across the whole snapshot


class ResolvedEndpoint(OutputModel):
    """An endpoint at its full path through one mount chain."""

    method: str
    full_path: str
    repo_id: str
    owner: NodeId
    handler_name: str | None = None
    location: str = ""
    order: int = 0
    consumed: bool = False


class Call(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: str
    raw_url: str
    caller_repo_id: str
    location: str = ""


class UrlKind(str, enum.Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    UNCLASSIFIED = "unclassified"


class NormalizedUrl(BaseModel):
    """Outcome of normalizing one call target."""

    model_config = ConfigDict(frozen=True)

    kind: UrlKind
    path: str | None = None
    original: str
    stripped_host: str | None = None
    env_var: str | None = None
    # set when the URL is built from an env var listed in neither config list
    unconfigured_env_var: str | None = None

    @property
    def is_internal(self) -> bool:
        return self.kind is UrlKind.INTERNAL

    @property
    def is_external(self) -> bool:
        return self.kind is UrlKind.EXTERNAL


class Severity(str, enum.Enum):
    CRITICAL = "critical"  # major version differs
    WARNING = "warning"  # minor version differs
    INFO = "info"  # anything else


class RepoVersion(OutputModel):
    repo_id: str
    version: str
    source_path: str = ""


class DependencyConflict(OutputModel):
    package_name: str
    versions: list[RepoVersion]
    severity: Severity
    description: str


class MissingEndpoint(OutputModel):
    type: Literal["missing_endpoint"] = "missing_endpoint"
    method: str
    path: str
    raw_url: str
    caller_repo: str
    location: str = ""
    confidence: Confidence = "high"

    @property
    def message(self) -> str:
        return f"Missing endpoint for {self.method} {self.path} (called from {self.caller_repo})"


class OrphanedEndpoint(OutputModel):
    type: Literal["orphaned_endpoint"] = "orphaned_endpoint"
    method: str
    full_path: str
    repo_id: str
    owner: str = ""
    handler_name: str | None = None
    location: str = ""
    confidence: Confidence = "high"

    @property
    def message(self) -> str:
        return f"Orphaned endpoint {self.method} {self.full_path} in {self.repo_id}"


class MethodMismatch(OutputModel):
    type: Literal["method_mismatch"] = "method_mismatch"
    path: str
    called_method: str
    supported_methods: list[str]
    raw_url: str
    caller_repo: str
    location: str = ""
    confidence: Confidence = "high"

    @property
    def message(self) -> str:
        supported = ", ".join(self.supported_methods)
        return (
            f"Method mismatch on {self.path}: called with {self.called_method}, "
            f"endpoint supports {supported}"
        )


class EnvVarCallSuggestion(OutputModel):
    type: Literal["env_var_call_suggestion"] = "env_var_call_suggestion"
    method: str
    raw_url: str
    env_var: str
    path: str | None = None
    caller_repo: str
    location: str = ""
    confidence: Confidence = "low"

    @property
    def message(self) -> str:
        return f"{self.method} call built from unclassified env var {self.env_var}: {self.raw_url}"


Issue = Annotated[
    Union[MissingEndpoint, OrphanedEndpoint, MethodMismatch, EnvVarCallSuggestion],
    Field(discriminator="type"),
]


class StructuralDiagnostic(OutputModel):
    """A hard failure that stopped one repository's mount graph from building."""

    repo_id: str
    kind: str  # cycle / unknown_node
    nodes: list[str]
    message: str


class Summary(OutputModel):
    endpoint_count: int = 0
    call_count: int = 0


class AnalysisResult(OutputModel):
    issues: list[Issue] = []
    dependency_conflicts: list[DependencyConflict] = []
    summary: Summary = Summary()
    diagnostics: list[StructuralDiagnostic] = []

    def issues_of(self, issue_type: type) -> list:
        return [i for i in self.issues if isinstance(i, issue_type)]

    @property
    def has_findings(self) -> bool:
        return bool(self.issues or self.dependency_conflicts or self.diagnostics)
