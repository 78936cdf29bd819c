"""Unit tests for HTTP parameter containers and request descriptions."""

import json

import httpx
import pytest

from spellbook.exceptions import RequestBuildError
from spellbook.http import (
    HTTPHeader,
    HTTPMethod,
    HTTPParameters,
    HTTPRequest,
    key_name,
)


class TestHTTPParameters:
    """Test ordered parameter semantics."""

    def test_insertion_order_and_duplicates(self):
        params = HTTPParameters()
        params.append("b", "1")
        params.append("a", "2")
        params.append("b", "3")

        assert params.to_list() == [("b", "1"), ("a", "2"), ("b", "3")]
        assert len(params) == 3
        assert params.get("b") == "1"
        assert params["b"] == "1"
        assert params.get_all("b") == ["1", "3"]

    def test_missing_key(self):
        params = HTTPParameters({"a": "1"})
        assert params.get("z") is None
        assert params.get("z", "fallback") == "fallback"
        assert "z" not in params
        with pytest.raises(KeyError):
            params["z"]

    def test_enum_and_string_keys_are_equivalent(self):
        params = HTTPParameters([(HTTPHeader.CONTENT_TYPE, "text/plain")])
        assert "Content-Type" in params
        assert params["Content-Type"] == "text/plain"
        assert key_name(HTTPHeader.USER_AGENT) == "User-Agent"
        assert params.items[0].name == "Content-Type"

    def test_set_replaces_all_entries_at_first_position(self):
        params = HTTPParameters([("a", "1"), ("b", "2"), ("a", "3"), ("c", "4")])
        params.set("a", "new")
        assert params.to_list() == [("a", "new"), ("b", "2"), ("c", "4")]

        params.set("d", "5")
        assert params.to_list()[-1] == ("d", "5")

    def test_remove(self):
        params = HTTPParameters([("a", "1"), ("b", "2"), ("a", "3")])
        assert params.remove("a") == 2
        assert params.remove("a") == 0
        assert params.to_list() == [("b", "2")]

    def test_values_are_strings(self):
        params = HTTPParameters({"limit": 10})
        assert params["limit"] == "10"

    def test_items_and_copy_are_snapshots(self):
        params = HTTPParameters({"a": "1"})
        params.items.clear()
        clone = params.copy()
        clone.append("b", "2")

        assert len(params) == 1
        assert clone != params
        assert clone.to_list() == [("a", "1"), ("b", "2")]
        assert HTTPParameters({"a": "1"}) == params
        assert not HTTPParameters()
        assert [item.key for item in clone] == ["a", "b"]


class TestHTTPRequest:
    """Test request building."""

    def test_build(self):
        request = HTTPRequest(
            url="https://example.com/items",
            method=HTTPMethod.PUT,
            headers=HTTPParameters([(HTTPHeader.ACCEPT, "application/json")]),
            query=HTTPParameters([("page", "2"), ("tag", "a"), ("tag", "b")]),
            body=b"payload",
        )

        built = request.build()

        assert isinstance(built, httpx.Request)
        assert built.method == "PUT"
        assert built.url.path == "/items"
        assert built.url.params.get_list("tag") == ["a", "b"]
        assert built.url.params["page"] == "2"
        assert built.headers["accept"] == "application/json"
        assert built.content == b"payload"

    def test_build_with_string_method_and_timeout(self):
        built = HTTPRequest(url="https://example.com", method="delete", timeout=3).build()
        assert built.method == "DELETE"
        assert built.extensions["timeout"]["read"] == 3

    def test_invalid_method_raises_build_error(self):
        with pytest.raises(RequestBuildError) as exc_info:
            HTTPRequest(url="https://example.com", method="BREW").build()
        assert exc_info.value.code == "REQUEST_BUILD_ERROR"
        assert isinstance(exc_info.value.original_error, ValueError)

    def test_with_json(self):
        request = HTTPRequest.with_json("https://example.com", {"name": "café"})

        assert request.method == HTTPMethod.POST
        assert request.headers[HTTPHeader.CONTENT_TYPE] == "application/json"
        assert json.loads(request.body) == {"name": "café"}

    def test_with_json_keeps_explicit_content_type(self):
        request = HTTPRequest.with_json(
            "https://example.com",
            [1, 2],
            method="PATCH",
            headers={"content-type": "application/merge-patch+json"},
        )
        assert request.headers.to_list() == [
            ("content-type", "application/merge-patch+json")
        ]
        assert request.method == HTTPMethod.PATCH

    def test_with_json_rejects_unserializable_payload(self):
        with pytest.raises(RequestBuildError):
            HTTPRequest.with_json("https://example.com", {"value": object()})

    def test_with_json_rejects_unknown_method(self):
        with pytest.raises(RequestBuildError) as exc_info:
            HTTPRequest.with_json("https://example.com", {"a": 1}, method="BREW")
        assert isinstance(exc_info.value.original_error, ValueError)
        assert isinstance(exc_info.value.__cause__, ValueError)
