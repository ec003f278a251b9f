"""Tests for MastodonClient with a mocked requests session."""

import asyncio
import json
from unittest.mock import Mock

import pytest
import requests

from timeline_api.client import MastodonClient
from timeline_api.config import MastodonConfig
from timeline_api.errors import ApiError, AuthError, NetworkError, RateLimitError, TransientHttpError
from timeline_api.timeline import HOME, Timeline

from conftest import status

OLDER_URL = "https://mastodon.social/api/v1/timelines/home?max_id=100"
NEWER_URL = "https://mastodon.social/api/v1/timelines/home?min_id=105"


def response(data=None, *, status_code=200, links=None, headers=None, text=None):
    resp = Mock()
    resp.status_code = status_code
    resp.headers = headers or {"Content-Type": "application/json"}
    body = text if text is not None else ("" if data is None else json.dumps(data))
    resp.text = body
    resp.content = body.encode()
    resp.json.side_effect = lambda: json.loads(body)
    resp.links = {rel: {"url": url, "rel": rel} for rel, url in (links or {}).items()}
    return resp


def client_with(*responses, **cfg):
    session = Mock()
    session.request.side_effect = list(responses)
    config = MastodonConfig(host="mastodon.social", access_token="tok", **cfg)
    return MastodonClient(config, session=session), session


def timeline():
    return Timeline("mastodon.social", HOME)


class TestPages:
    """Pages and cursors built from timeline responses."""

    def test_head_page_cursors_follow_link_header(self):
        client, session = client_with(
            response([status("105"), status("100")], links={"next": OLDER_URL, "prev": NEWER_URL}),
            response([status("99")]),
        )

        page = asyncio.run(client.timeline_loader(timeline())())

        assert page.element_ids() == ["105", "100"]
        assert page.next is not None
        assert page.previous is not None

        kwargs = session.request.call_args.kwargs
        assert kwargs["url"] == "https://mastodon.social/api/v1/timelines/home"
        assert kwargs["params"] == [("limit", "20")]
        assert kwargs["headers"] == {"Authorization": "Bearer tok"}
        assert kwargs["timeout"] == (10.0, 30.0)

        older = asyncio.run(page.next())

        kwargs = session.request.call_args.kwargs
        assert kwargs["url"] == OLDER_URL
        assert kwargs["params"] is None
        assert older.element_ids() == ["99"]
        assert older.next is None

    def test_min_id_fallback_without_prev_link(self):
        client, session = client_with(
            response([status("105"), status("100")]),
            response([status("106")]),
        )

        page = asyncio.run(client.timeline_loader(timeline())())
        newer = asyncio.run(page.previous())

        params = session.request.call_args.kwargs["params"]
        assert ("min_id", "105") in params
        assert newer.element_ids() == ["106"]

    def test_min_id_fallback_can_be_disabled(self):
        client, _ = client_with(response([status("105")]), min_id_fallback=False)

        page = asyncio.run(client.timeline_loader(timeline())())

        assert page.previous is None

    def test_empty_head_page_repolls(self):
        client, session = client_with(response([]), response([status("1")]))

        page = asyncio.run(client.timeline_loader(timeline())())

        assert len(page) == 0
        assert page.next is None
        assert page.previous is not None

        asyncio.run(page.previous())

        first, second = session.request.call_args_list
        assert first.kwargs["url"] == second.kwargs["url"]
        assert first.kwargs["params"] == second.kwargs["params"]

    def test_empty_older_page_is_terminal(self):
        client, _ = client_with(response([], links={"next": OLDER_URL}))

        page = asyncio.run(client.fetch_page(timeline(), client.link_request(OLDER_URL), rel="next"))

        assert page.next is None
        assert page.previous is None

    def test_malformed_statuses_are_skipped(self):
        client, _ = client_with(response([status("1"), {"no": "id"}, "junk"]))

        page = asyncio.run(client.timeline_loader(timeline())())

        assert page.element_ids() == ["1"]

    def test_fetch_status(self):
        client, session = client_with(response(status("7", "fresh")))

        fresh = asyncio.run(client.fetch_status("7"))

        assert fresh["content"] == "<p>fresh</p>"
        assert session.request.call_args.kwargs["url"] == "https://mastodon.social/api/v1/statuses/7"


class TestErrors:
    """HTTP failures map to typed errors."""

    def fetch(self, resp):
        client, _ = client_with(resp)
        return asyncio.run(client.timeline_loader(timeline())())

    def test_auth_error(self):
        with pytest.raises(AuthError) as exc:
            self.fetch(response({"error": "The access token is invalid"}, status_code=401))
        assert exc.value.status_code == 401

    def test_rate_limit_reads_retry_after(self):
        with pytest.raises(RateLimitError) as exc:
            self.fetch(response({"error": "Too many requests"}, status_code=429, headers={"Retry-After": "7"}))
        assert exc.value.retry_after_s == 7.0

    def test_gateway_errors_are_transient(self):
        with pytest.raises(TransientHttpError):
            self.fetch(response(text="bad gateway", status_code=502, headers={"Content-Type": "text/plain"}))

    def test_not_found_is_api_error(self):
        with pytest.raises(ApiError) as exc:
            self.fetch(response({"error": "Record not found"}, status_code=404))
        assert not isinstance(exc.value, TransientHttpError)

    def test_html_body_is_api_error(self):
        with pytest.raises(ApiError):
            self.fetch(response(text="<html><body>hi</body></html>", headers={"Content-Type": "text/html"}))

    def test_object_instead_of_list_is_api_error(self):
        with pytest.raises(ApiError):
            self.fetch(response({"id": "1"}))

    def test_connection_error_is_network_error(self):
        client, _ = client_with(requests.ConnectionError("refused"))

        with pytest.raises(NetworkError):
            asyncio.run(client.timeline_loader(timeline())())

    def test_error_events_are_emitted(self, captured_events):
        with pytest.raises(AuthError):
            self.fetch(response({"error": "nope"}, status_code=403))

        messages = [ev.message for ev in captured_events]
        assert "http.request.start" in messages
        assert "http.request.error" in messages
