"""Mount graph construction.

Every app or router is a node keyed by ``(repo_id, local_name)``; every
``app.use('/prefix', router)`` is an edge from parent to child. Nodes and
edges live in flat lists and refer to each other by index, so a router
mounted under several parents (a diamond) is just a node with several
incoming edges.

Roles depend on the whole repository, so the build runs in two passes:
collect nodes and edges first, classify roles afterwards.
"""

from collections.abc import Iterable

import structlog

from api_contract_checker.engine.models import (
    Endpoint,
    MountEdge,
    Node,
    NodeId,
    NodeKind,
    NodeRole,
)
from api_contract_checker.errors import CycleError, StructuralError, UnknownNodeError
from api_contract_checker.facts.base import Fact, HttpEndpoint, RouterMount

logger = structlog.get_logger(__name__)

ANONYMOUS_OWNER = "(anonymous)"


class MountGraph:
    """Nodes, mount edges and endpoints of one repository."""

    def __init__(self, repo_id: str, nodes: list[Node], edges: list[MountEdge], endpoints: list[Endpoint]):
        self.repo_id = repo_id
        self.nodes = nodes
        self.edges = edges
        self.endpoints = endpoints
        self._index = {node.id: i for i, node in enumerate(nodes)}
        self._incoming: list[list[int]] = [[] for _ in nodes]
        self._outgoing: list[list[int]] = [[] for _ in nodes]
        for edge_index, edge in enumerate(edges):
            self._incoming[self._index[edge.child]].append(edge_index)
            self._outgoing[self._index[edge.parent]].append(edge_index)

    def index_of(self, node_id: NodeId) -> int:
        return self._index[node_id]

    def node(self, node_id: NodeId) -> Node:
        return self.nodes[self._index[node_id]]

    def incoming(self, index: int) -> list[int]:
        """Indices of edges mounting node ``index``, in registration order."""
        return self._incoming[index]

    def outgoing(self, index: int) -> list[int]:
        return self._outgoing[index]

    def nodes_with_role(self, role: NodeRole) -> list[Node]:
        return [node for node in self.nodes if node.role is role]


class MountGraphBuilder:
    """Builds one MountGraph per repository from classified facts."""

    def build(self, repo_id: str, facts: Iterable[HttpEndpoint | RouterMount]) -> MountGraph:
        """Build the graph of one repository.

        Raises:
            UnknownNodeError: A mount has a blank parent or child.
            CycleError: Mount edges form a cycle.
        """
        ids: list[NodeId] = []
        kinds: list[NodeKind] = []
        index: dict[NodeId, int] = {}
        edges: list[MountEdge] = []
        endpoints: list[Endpoint] = []

        def add_node(name: str, kind: str) -> NodeId:
            node_id = NodeId(repo_id=repo_id, local_name=name)
            if node_id not in index:
                index[node_id] = len(ids)
                ids.append(node_id)
                kinds.append(NodeKind.UNKNOWN)
            i = index[node_id]
            if kinds[i] is NodeKind.UNKNOWN:
                kinds[i] = NodeKind(kind)
            return node_id

        # pass 1: nodes, edges, endpoints
        for fact in facts:
            if isinstance(fact, RouterMount):
                parent, child = fact.parent.strip(), fact.child.strip()
                if not parent or not child:
                    raise UnknownNodeError(repo_id, fact.parent, fact.child)
                edges.append(
                    MountEdge(
                        parent=add_node(parent, fact.parent_type),
                        child=add_node(child, fact.child_type),
                        path_prefix=fact.path_prefix or "/",
                        repo_id=repo_id,
                        location=fact.location,
                    )
                )
            elif isinstance(fact, HttpEndpoint):
                owner = add_node(fact.owner.strip() or ANONYMOUS_OWNER, fact.owner_type)
                endpoints.append(
                    Endpoint(
                        owner=owner,
                        method=fact.method.strip().upper(),
                        raw_path=fact.path,
                        handler_name=fact.handler,
                        repo_id=repo_id,
                        location=fact.location,
                        order=len(endpoints),
                    )
                )

        _check_acyclic(repo_id, ids, index, edges)

        # pass 2: roles
        children = {index[edge.child] for edge in edges}
        parents = {index[edge.parent] for edge in edges}
        nodes = []
        for i, node_id in enumerate(ids):
            if i in children:
                role = NodeRole.MOUNTED
            elif i in parents or kinds[i] is NodeKind.APP:
                role = NodeRole.ROOT
            else:
                role = NodeRole.UNMOUNTED
            nodes.append(Node(id=node_id, kind=kinds[i], role=role))

        graph = MountGraph(repo_id, nodes, edges, endpoints)
        for node in graph.nodes_with_role(NodeRole.UNMOUNTED):
            if node.kind is NodeKind.ROUTER:
                logger.warning("unmounted_router", repo=repo_id, router=node.id.local_name)
        logger.debug(
            "mount_graph_built",
            repo=repo_id,
            nodes=len(nodes),
            edges=len(edges),
            endpoints=len(endpoints),
        )
        return graph

    def build_all(self, facts: Iterable[Fact]) -> tuple[dict[str, MountGraph], list[StructuralError]]:
        """Build every repository's graph.

        A structural error only discards the graph of the repository it
        occurred in; it is returned alongside the graphs that did build.
        """
        by_repo: dict[str, list[HttpEndpoint | RouterMount]] = {}
        for fact in facts:
            if isinstance(fact, (HttpEndpoint, RouterMount)):
                by_repo.setdefault(fact.repo, []).append(fact)

        graphs: dict[str, MountGraph] = {}
        errors: list[StructuralError] = []
        for repo_id, repo_facts in by_repo.items():
            try:
                graphs[repo_id] = self.build(repo_id, repo_facts)
            except StructuralError as e:
                logger.error("structural_error", repo=repo_id, kind=e.kind, nodes=e.nodes, error=str(e))
                errors.append(e)
        return graphs, errors


def _check_acyclic(repo_id: str, ids: list[NodeId], index: dict[NodeId, int], edges: list[MountEdge]) -> None:
    """Iterative DFS over parent -> child edges; raises CycleError on a back edge."""
    children: list[list[int]] = [[] for _ in ids]
    for edge in edges:
        children[index[edge.parent]].append(index[edge.child])

    done: set[int] = set()
    for start in range(len(ids)):
        if start in done:
            continue
        path = [start]
        on_path = {start}
        pending = [iter(children[start])]
        while pending:
            child = next(pending[-1], None)
            if child is None:
                pending.pop()
                finished = path.pop()
                on_path.discard(finished)
                done.add(finished)
                continue
            if child in on_path:
                cycle = path[path.index(child):] + [child]
                raise CycleError(
                    repo_id,
                    ids[child].local_name,
                    ids[path[-1]].local_name,
                    [ids[i].local_name for i in cycle],
                )
            if child in done:
                continue
            path.append(child)
            on_path.add(child)
            pending.append(iter(children[child]))
