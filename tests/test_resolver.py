from api_contract_checker.engine.mount_graph import MountGraphBuilder
from api_contract_checker.engine.resolver import PathResolver, join_paths
from api_contract_checker.facts.base import HttpEndpoint, RouterMount


def _mount(parent, child, prefix, repo="repo-a") -> RouterMount:
    return RouterMount(parent=parent, child=child, path_prefix=prefix, repo=repo)


def _endpoint(owner, path, method="GET", repo="repo-a") -> HttpEndpoint:
    return HttpEndpoint(method=method, path=path, owner=owner, repo=repo)


def _resolve(facts, repo="repo-a"):
    graph = MountGraphBuilder().build(repo, facts)
    return PathResolver().resolve(graph)


class TestJoinPaths:
    def test_joins_and_collapses(self):
        assert join_paths("/api/", "/v1", "users/") == "/api/v1/users"

    def test_root_only(self):
        assert join_paths("/", "/") == "/"
        assert join_paths() == "/"

    def test_root_prefix(self):
        assert join_paths("/", "/users") == "/users"


class TestResolve:
    def test_nested_mounts(self):
        resolved = _resolve([
            _mount("app", "router", "/api"),
            _mount("router", "innerRouter", "/v1"),
            _endpoint("innerRouter", "/users/:id"),
        ])
        assert [(r.method, r.full_path) for r in resolved] == [("GET", "/api/v1/users/:id")]

    def test_unmounted_owner_keeps_local_path(self):
        resolved = _resolve([_endpoint("router", "/status/")])
        assert resolved[0].full_path == "/status"

    def test_diamond_resolves_once_per_chain(self):
        resolved = _resolve([
            _mount("app", "v1", "/v1"),
            _mount("app", "v2", "/v2"),
            _mount("v1", "shared", "/shared"),
            _mount("v2", "shared", "/shared"),
            _endpoint("shared", "/ping"),
        ])
        assert [r.full_path for r in resolved] == ["/v1/shared/ping", "/v2/shared/ping"]

    def test_router_mounted_twice_under_one_parent(self):
        resolved = _resolve([
            _mount("app", "users", "/users"),
            _mount("app", "users", "/people"),
            _endpoint("users", "/"),
        ])
        assert [r.full_path for r in resolved] == ["/users", "/people"]

    def test_order_is_table_position(self):
        resolved = _resolve([
            _mount("app", "v1", "/v1"),
            _mount("app", "v2", "/v2"),
            _mount("v1", "shared", "/"),
            _mount("v2", "shared", "/"),
            _endpoint("shared", "/a"),
            _endpoint("app", "/b"),
        ])
        assert [r.order for r in resolved] == [0, 1, 2]

    def test_resolving_twice_is_identical(self):
        graph = MountGraphBuilder().build("repo-a", [
            _mount("app", "router", "/api"),
            _mount("router", "inner", "/v1"),
            _endpoint("inner", "/items/:id"),
            _endpoint("router", "/health"),
        ])
        resolver = PathResolver()
        assert resolver.resolve(graph) == resolver.resolve(graph)


class TestResolveAll:
    def test_orders_continue_across_repos(self):
        graphs, _ = MountGraphBuilder().build_all([
            _endpoint("app", "/a", repo="repo-a"),
            _endpoint("app", "/b", repo="repo-b"),
            _endpoint("app", "/c", repo="repo-b"),
        ])
        table = PathResolver().resolve_all(graphs.values())
        assert [(r.repo_id, r.full_path, r.order) for r in table] == [
            ("repo-a", "/a", 0),
            ("repo-b", "/b", 1),
            ("repo-b", "/c", 2),
        ]
