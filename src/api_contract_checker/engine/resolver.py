"""Full-path resolution through mount chains.

An endpoint registered as ``GET /users/:id`` on ``innerRouter``, where
``app`` mounts ``router`` at ``/api`` and ``router`` mounts
``innerRouter`` at ``/v1``, resolves to ``GET /api/v1/users/:id``. A
router mounted under several prefixes resolves once per chain.
"""

import re
from collections.abc import Iterable

from api_contract_checker.engine.models import Endpoint, MountEdge, ResolvedEndpoint
from api_contract_checker.engine.mount_graph import MountGraph

_REPEATED_SLASH = re.compile(r"/{2,}")


def join_paths(*parts: str) -> str:
    """Join prefixes and a local path into one normalized path."""
    joined = "/" + "/".join(part.strip() for part in parts if part and part.strip())
    joined = _REPEATED_SLASH.sub("/", joined)
    if len(joined) > 1 and joined.endswith("/"):
        joined = joined.rstrip("/") or "/"
    return joined


class PathResolver:
    """Computes ResolvedEndpoints from mount graphs. Stateless."""

    def chains(self, graph: MountGraph, endpoint: Endpoint) -> list[list[MountEdge]]:
        """Every mount chain from a root down to the endpoint's owner.

        Each chain is ordered parent -> child. An owner that nobody mounts
        has a single empty chain.
        """
        start = graph.index_of(endpoint.owner)
        chains: list[list[MountEdge]] = []
        # (node index, edges collected child -> parent, nodes on this chain)
        stack: list[tuple[int, list[MountEdge], frozenset[int]]] = [(start, [], frozenset({start}))]
        while stack:
            index, edges, seen = stack.pop()
            pushed = False
            for edge_index in reversed(graph.incoming(index)):
                edge = graph.edges[edge_index]
                parent = graph.index_of(edge.parent)
                if parent in seen:
                    continue
                stack.append((parent, edges + [edge], seen | {parent}))
                pushed = True
            if not pushed:
                chains.append(list(reversed(edges)))
        return chains

    def resolve(self, graph: MountGraph, start_order: int = 0) -> list[ResolvedEndpoint]:
        resolved = []
        for endpoint in graph.endpoints:
            for chain in self.chains(graph, endpoint):
                prefixes = [edge.path_prefix for edge in chain]
                resolved.append(
                    ResolvedEndpoint(
                        method=endpoint.method,
                        full_path=join_paths(*prefixes, endpoint.raw_path),
                        repo_id=endpoint.repo_id,
                        owner=endpoint.owner,
                        handler_name=endpoint.handler_name,
                        location=endpoint.location,
                        order=start_order + len(resolved),
                    )
                )
        return resolved

    def resolve_all(self, graphs: Iterable[MountGraph]) -> list[ResolvedEndpoint]:
        """Flat resolved-endpoint table; ``order`` is the position in it."""
        table: list[ResolvedEndpoint] = []
        for graph in graphs:
            table.extend(self.resolve(graph, start_order=len(table)))
        return table
