"""Classified code facts consumed by the analyzer.

The classification step (outside this package) turns every call site of
every repository into one of these facts. A snapshot holds the facts of
all repositories plus their dependency declarations.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

OwnerType = Literal["app", "router", "unknown"]


class HttpEndpoint(BaseModel):
    """An endpoint registration such as ``router.get('/users/:id', getUser)``."""

    kind: Literal["http_endpoint"] = "http_endpoint"
    method: str  # GET / POST / PUT / DELETE / PATCH / ALL
    path: str  # local path, before any mount prefix
    owner: str  # variable name of the app or router
    handler: str | None = None
    repo: str
    owner_type: OwnerType = "unknown"
    location: str = ""  # file:line


class DataFetchingCall(BaseModel):
    """An outbound HTTP call such as ``fetch(`${API_URL}/users`)``."""

    kind: Literal["data_fetching_call"] = "data_fetching_call"
    method: str
    url: str
    caller_repo: str
    location: str = ""


class RouterMount(BaseModel):
    """A mount such as ``app.use('/api', router)``."""

    kind: Literal["router_mount"] = "router_mount"
    parent: str
    child: str
    path_prefix: str = "/"
    repo: str
    parent_type: OwnerType = "unknown"
    child_type: OwnerType = "unknown"
    location: str = ""


class Middleware(BaseModel):
    """Middleware registration. Accepted in snapshots and ignored."""

    kind: Literal["middleware"] = "middleware"
    repo: str = ""
    location: str = ""


class Irrelevant(BaseModel):
    """A call site with no bearing on API contracts. Ignored."""

    kind: Literal["irrelevant"] = "irrelevant"
    repo: str = ""
    location: str = ""


Fact = Annotated[
    Union[HttpEndpoint, DataFetchingCall, RouterMount, Middleware, Irrelevant],
    Field(discriminator="kind"),
]


class DependencyRecord(BaseModel):
    """One package version declared by one repository."""

    package_name: str
    version: str  # as declared, e.g. ^4.18.0
    repo_id: str
    source_path: str = ""


class Snapshot(BaseModel):
    """Fully materialized facts of every analyzed repository."""

    facts: list[Fact] = []
    dependencies: list[DependencyRecord] = []

    def endpoints(self) -> list[HttpEndpoint]:
        return [f for f in self.facts if isinstance(f, HttpEndpoint)]

    def calls(self) -> list[DataFetchingCall]:
        return [f for f in self.facts if isinstance(f, DataFetchingCall)]

    def mounts(self) -> list[RouterMount]:
        return [f for f in self.facts if isinstance(f, RouterMount)]

    def repos(self) -> list[str]:
        """Repository ids in first-seen order."""
        seen: dict[str, None] = {}
        for fact in self.facts:
            repo = getattr(fact, "repo", "") or getattr(fact, "caller_repo", "")
            if repo:
                seen.setdefault(repo, None)
        for dep in self.dependencies:
            seen.setdefault(dep.repo_id, None)
        return list(seen)
