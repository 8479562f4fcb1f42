"""Exception hierarchy for api-contract-checker.

Structural errors are scoped to a single repository: the analyzer catches
them per repo and turns them into diagnostics, so one broken mount graph
never stops the rest of the run.
"""


class ContractCheckError(Exception):
    """Base class for all errors raised by this package."""


class StructuralError(ContractCheckError):
    """A repository's mount graph cannot be built."""

    kind = "structural"

    def __init__(self, repo_id: str, nodes: list[str], message: str):
        self.repo_id = repo_id
        self.nodes = nodes
        super().__init__(message)


class CycleError(StructuralError):
    """Mount edges of a repository form a cycle."""

    kind = "cycle"

    def __init__(self, repo_id: str, node_a: str, node_b: str, path: list[str] | None = None):
        self.node_a = node_a
        self.node_b = node_b
        self.path = path or [node_a, node_b, node_a]
        cycle_str = " -> ".join(self.path)
        super().__init__(
            repo_id,
            [node_a, node_b],
            f"Mount cycle in repository '{repo_id}': {cycle_str}",
        )


class UnknownNodeError(StructuralError):
    """A mount edge references a node that cannot be identified."""

    kind = "unknown_node"

    def __init__(self, repo_id: str, parent: str, child: str):
        super().__init__(
            repo_id,
            [parent, child],
            f"Mount in repository '{repo_id}' references an unknown node "
            f"(parent={parent!r}, child={child!r})",
        )


class SnapshotError(ContractCheckError):
    """An input file (snapshot, config, package.json) is unreadable or invalid."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")
