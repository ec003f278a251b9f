"""Tests for request composition."""

import pytest

from timeline_api.request import URL, Bearer, Body, Composite, Header, Method, Path, PartialRequest, Query, compose


class TestCompose:
    def test_fragments_apply_left_to_right(self):
        req = compose(
            URL("https://mastodon.social"),
            Path("/api/v1/timelines/home"),
            Query("limit", 20),
            Bearer("tok"),
        )

        assert req.method == "GET"
        assert req.url == "https://mastodon.social/api/v1/timelines/home"
        assert req.params == [("limit", "20")]
        assert req.header_dict() == {"Authorization": "Bearer tok"}

    def test_none_fragments_and_values_are_skipped(self):
        req = compose(URL("https://h"), None, Query("max_id", None), Composite([None, Query("local", True)]))

        assert req.params == [("local", "true")]

    def test_empty_bearer_adds_nothing(self):
        assert compose(URL("https://h"), Bearer(None), Bearer("")).headers == []

    def test_path_keeps_existing_query(self):
        req = compose(URL("https://h/api?x=1"), Path("v1/timelines"))

        assert req.url == "https://h/api/v1/timelines?x=1"

    def test_query_before_url_is_rejected(self):
        with pytest.raises(ValueError):
            compose(Query("limit", 1))

    def test_later_header_wins(self):
        req = compose(URL("https://h"), Header("Accept", "text/plain"), Header("Accept", "application/json"))

        assert req.header_dict()["Accept"] == "application/json"

    def test_method_and_body(self):
        req = compose(URL("https://h"), Method("post"), Body(lambda: b"{}", content_type="application/json"))

        assert req.method == "POST"
        assert req.body == b"{}"
        assert req.header_dict()["Content-Type"] == "application/json"

    def test_base_is_not_mutated(self):
        base = compose(URL("https://h"), Query("limit", 5))

        derived = compose(Query("max_id", "9"), base=base)

        assert base.params == [("limit", "5")]
        assert derived.params == [("limit", "5"), ("max_id", "9")]

    def test_repeated_params_are_kept_in_order(self):
        req = compose(Query("a", 1), Query("a", 2), base=PartialRequest(url="https://h"))

        assert req.params == [("a", "1"), ("a", "2")]
