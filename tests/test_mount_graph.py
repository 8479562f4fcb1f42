import pytest

from api_contract_checker.engine.models import NodeId, NodeKind, NodeRole
from api_contract_checker.engine.mount_graph import ANONYMOUS_OWNER, MountGraphBuilder
from api_contract_checker.errors import CycleError, UnknownNodeError
from api_contract_checker.facts.base import HttpEndpoint, RouterMount


def _mount(parent, child, prefix="/", repo="repo-a", **kwargs) -> RouterMount:
    return RouterMount(parent=parent, child=child, path_prefix=prefix, repo=repo, **kwargs)


def _endpoint(owner, path, method="GET", repo="repo-a", **kwargs) -> HttpEndpoint:
    return HttpEndpoint(method=method, path=path, owner=owner, repo=repo, **kwargs)


class TestBuild:
    def test_roles(self):
        graph = MountGraphBuilder().build("repo-a", [
            _mount("app", "router", "/api"),
            _endpoint("router", "/users"),
            _endpoint("orphanRouter", "/legacy"),
        ])
        assert graph.node(NodeId(repo_id="repo-a", local_name="app")).role is NodeRole.ROOT
        assert graph.node(NodeId(repo_id="repo-a", local_name="router")).role is NodeRole.MOUNTED
        assert graph.node(NodeId(repo_id="repo-a", local_name="orphanRouter")).role is NodeRole.UNMOUNTED

    def test_declared_app_is_root(self):
        graph = MountGraphBuilder().build("repo-a", [_endpoint("server", "/health", owner_type="app")])
        node = graph.node(NodeId(repo_id="repo-a", local_name="server"))
        assert node.kind is NodeKind.APP
        assert node.role is NodeRole.ROOT

    def test_first_known_kind_wins(self):
        graph = MountGraphBuilder().build("repo-a", [
            _endpoint("router", "/a"),
            _mount("app", "router", child_type="router"),
            _endpoint("router", "/b", owner_type="app"),
        ])
        assert graph.node(NodeId(repo_id="repo-a", local_name="router")).kind is NodeKind.ROUTER

    def test_diamond_has_two_incoming_edges(self):
        graph = MountGraphBuilder().build("repo-a", [
            _mount("app", "v1", "/v1"),
            _mount("app", "v2", "/v2"),
            _mount("v1", "shared", "/shared"),
            _mount("v2", "shared", "/shared"),
        ])
        shared = graph.index_of(NodeId(repo_id="repo-a", local_name="shared"))
        assert len(graph.incoming(shared)) == 2
        assert len(graph.nodes) == 4

    def test_endpoint_order_and_method(self):
        graph = MountGraphBuilder().build("repo-a", [
            _endpoint("app", "/a", method="get"),
            _endpoint("app", "/b", method="post"),
        ])
        assert [e.order for e in graph.endpoints] == [0, 1]
        assert [e.method for e in graph.endpoints] == ["GET", "POST"]

    def test_blank_owner_is_anonymous(self):
        graph = MountGraphBuilder().build("repo-a", [_endpoint("  ", "/x")])
        assert graph.endpoints[0].owner.local_name == ANONYMOUS_OWNER

    def test_blank_mount_side_raises(self):
        with pytest.raises(UnknownNodeError) as exc_info:
            MountGraphBuilder().build("repo-a", [_mount("app", "")])
        assert exc_info.value.repo_id == "repo-a"
        assert exc_info.value.kind == "unknown_node"


class TestCycles:
    def test_two_node_cycle_names_both_nodes(self):
        with pytest.raises(CycleError) as exc_info:
            MountGraphBuilder().build("repo-a", [
                _mount("routerA", "routerB", "/a"),
                _mount("routerB", "routerA", "/b"),
            ])
        error = exc_info.value
        assert set(error.nodes) == {"routerA", "routerB"}
        assert error.path[0] == error.path[-1]
        assert "routerA" in str(error) and "routerB" in str(error)

    def test_self_mount(self):
        with pytest.raises(CycleError):
            MountGraphBuilder().build("repo-a", [_mount("router", "router")])

    def test_longer_cycle_path(self):
        with pytest.raises(CycleError) as exc_info:
            MountGraphBuilder().build("repo-a", [
                _mount("app", "a"),
                _mount("a", "b"),
                _mount("b", "c"),
                _mount("c", "a"),
            ])
        assert exc_info.value.path == ["a", "b", "c", "a"]

    def test_diamond_is_not_a_cycle(self):
        graph = MountGraphBuilder().build("repo-a", [
            _mount("app", "x"),
            _mount("app", "y"),
            _mount("x", "z"),
            _mount("y", "z"),
        ])
        assert len(graph.edges) == 4


class TestBuildAll:
    def test_cycle_only_affects_its_repo(self):
        graphs, errors = MountGraphBuilder().build_all([
            _mount("a", "b", repo="broken"),
            _mount("b", "a", repo="broken"),
            _mount("app", "router", "/api", repo="healthy"),
            _endpoint("router", "/users", repo="healthy"),
        ])
        assert list(graphs) == ["healthy"]
        assert len(errors) == 1
        assert errors[0].repo_id == "broken"

    def test_same_local_name_in_two_repos(self):
        graphs, errors = MountGraphBuilder().build_all([
            _endpoint("router", "/a", repo="repo-a"),
            _endpoint("router", "/b", repo="repo-b"),
        ])
        assert errors == []
        assert graphs["repo-a"].nodes[0].id != graphs["repo-b"].nodes[0].id
