from api_contract_checker.engine.path_matcher import paths_match, specificity, split_path


class TestLiteralPaths:
    def test_reflexive(self):
        for path in ["/", "/users", "/api/v1/users/42", "/a/b/c/d"]:
            assert paths_match(path, path)

    def test_case_sensitive(self):
        assert not paths_match("/Users", "/users")

    def test_segment_count_must_agree(self):
        assert not paths_match("/users", "/users/42")
        assert not paths_match("/users/42", "/users")

    def test_trailing_slash_ignored(self):
        assert paths_match("/users", "/users/")


class TestDynamicSegments:
    def test_param_matches_one_segment(self):
        assert paths_match("/users/:id", "/users/123")
        assert not paths_match("/users/:id", "/users")
        assert not paths_match("/users/:id", "/users/1/2")

    def test_param_with_regex(self):
        assert paths_match("/users/:id(\\d+)", "/users/7")

    def test_call_side_param(self):
        assert paths_match("/users/:id", "/users/:userid")

    def test_optional_param(self):
        assert paths_match("/users/:id?", "/users")
        assert paths_match("/users/:id?", "/users/42")
        assert not paths_match("/users/:id?", "/users/42/posts")

    def test_wildcard_matches_one_segment(self):
        assert paths_match("/files/*", "/files/report")
        assert not paths_match("/files/*", "/files")

    def test_catch_all(self):
        assert paths_match("/static/**", "/static/css/site.css")
        assert paths_match("/static/**", "/static")
        assert paths_match("/proxy/(.*)", "/proxy/a/b/c")

    def test_literal_mismatch_after_param(self):
        assert not paths_match("/users/:id/posts", "/users/1/comments")


class TestSpecificity:
    def test_counts_dynamic_segments(self):
        assert specificity("/users/me") == 0
        assert specificity("/users/:id") == 1
        assert specificity("/:a/*/**") == 3

    def test_split_path_drops_empty_segments(self):
        assert split_path("//a//b/") == ["a", "b"]
