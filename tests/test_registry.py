"""Tests for the documentation fragment store."""

from __future__ import annotations

import json

import pytest

from apidocs.exceptions import MalformedFragment, MalformedLocationKey, PlatformRejected
from apidocs.models import LocationKey
from apidocs.platform.client import PlatformClient
from apidocs.registry import (
    DocumentationRegistry,
    RegistrationMode,
    fragment_from_platform,
    serialize_properties,
)

from conftest import API_ID, FakePlatform


AUTHORIZER = LocationKey(type="AUTHORIZER", name="SomeAuthorizer")


@pytest.fixture
def registry(client: PlatformClient) -> DocumentationRegistry:
    return DocumentationRegistry(client, API_ID)


class TestRegister:
    def test_creates_part_with_serialised_properties(
        self, registry: DocumentationRegistry, platform: FakePlatform
    ) -> None:
        handle = registry.register(AUTHORIZER, {"description": "Checks the token"})

        assert handle.created is True
        assert handle.id == "part1"
        assert handle.location == AUTHORIZER
        body = platform.bodies("POST", "/documentation/parts")[0]
        assert body["location"] == {"type": "AUTHORIZER", "name": "SomeAuthorizer"}
        assert json.loads(body["properties"]) == {"description": "Checks the token"}

    def test_accepts_mapping_location(
        self, registry: DocumentationRegistry, platform: FakePlatform
    ) -> None:
        handle = registry.register(
            {"type": "REQUEST_HEADER", "name": "Authorization", "path": "/todo", "method": "get"},
            {"description": "Bearer token"},
        )
        assert handle.location.method == "GET"
        body = platform.bodies("POST", "/documentation/parts")[0]
        assert body["location"]["method"] == "GET"

    def test_malformed_location_makes_no_platform_call(
        self, registry: DocumentationRegistry, platform: FakePlatform
    ) -> None:
        with pytest.raises(MalformedLocationKey):
            registry.register(
                {"type": "PATH_PARAMETER", "name": "todoId", "path": "/todo"},
                {"description": "The id"},
            )
        assert platform.requests == []

    @pytest.mark.parametrize("properties", [["not", "an", "object"], {"x": float("nan")}, {"x": object()}])
    def test_malformed_properties_make_no_platform_call(
        self, registry: DocumentationRegistry, platform: FakePlatform, properties
    ) -> None:
        with pytest.raises(MalformedFragment):
            registry.register(AUTHORIZER, properties)
        assert platform.requests == []

    def test_append_mode_creates_duplicates(
        self, registry: DocumentationRegistry, platform: FakePlatform
    ) -> None:
        registry.register(AUTHORIZER, {"description": "one"})
        registry.register(AUTHORIZER, {"description": "two"})
        assert len(platform.parts[API_ID]) == 2

    def test_upsert_updates_existing_part(
        self, registry: DocumentationRegistry, platform: FakePlatform
    ) -> None:
        first = registry.register(AUTHORIZER, {"description": "one"})
        second = registry.register(
            AUTHORIZER, {"description": "two"}, mode=RegistrationMode.UPSERT
        )

        assert second.created is False
        assert second.id == first.id
        assert len(platform.parts[API_ID]) == 1
        assert json.loads(platform.parts[API_ID][0]["properties"]) == {"description": "two"}

    def test_upsert_creates_when_absent(self, client: PlatformClient, platform: FakePlatform) -> None:
        registry = DocumentationRegistry(client, API_ID, mode=RegistrationMode.UPSERT)
        handle = registry.register(AUTHORIZER, {"description": "one"})
        assert handle.created is True
        assert len(platform.parts[API_ID]) == 1

    def test_platform_rejection_propagates(
        self, registry: DocumentationRegistry, platform: FakePlatform
    ) -> None:
        import httpx

        platform.route(
            "POST",
            f"/restapis/{API_ID}/documentation/parts",
            lambda request: httpx.Response(400, json={"message": "Invalid location"}),
        )
        with pytest.raises(PlatformRejected, match="Invalid location"):
            registry.register(AUTHORIZER, {"description": "x"})


class TestList:
    def test_lists_registered_fragments(self, registry: DocumentationRegistry) -> None:
        registry.register({"type": "API"}, {"info": {"title": "Todo API"}})
        registry.register(AUTHORIZER, {"description": "auth"})

        fragments = list(registry.list())

        assert [f.location.type.value for f in fragments] == ["API", "AUTHORIZER"]
        assert fragments[0].properties == {"info": {"title": "Todo API"}}
        assert fragments[1].id == "part2"

    def test_type_filter(self, registry: DocumentationRegistry) -> None:
        registry.register({"type": "API"}, {"info": {}})
        registry.register(AUTHORIZER, {"description": "auth"})

        fragments = list(registry.list("authorizer"))
        assert [f.location for f in fragments] == [AUTHORIZER]

    def test_each_call_reflects_platform(self, registry: DocumentationRegistry) -> None:
        assert list(registry.list()) == []
        registry.register(AUTHORIZER, {"description": "auth"})
        assert len(list(registry.list())) == 1

    def test_find(self, registry: DocumentationRegistry) -> None:
        registry.register(AUTHORIZER, {"description": "auth"})
        assert registry.find(AUTHORIZER).properties == {"description": "auth"}
        assert registry.find({"type": "AUTHORIZER", "name": "Other"}) is None

    def test_wildcard_method_parts_are_listed(
        self, registry: DocumentationRegistry, platform: FakePlatform
    ) -> None:
        platform.parts[API_ID] = [
            {
                "id": "wild1",
                "location": {"type": "METHOD", "path": "/todo", "method": "*"},
                "properties": '{"summary": "Any verb on /todo"}',
            }
        ]
        key = LocationKey(type="METHOD", path="/todo", method="ANY")

        assert [f.location for f in registry.list("METHOD")] == [key]
        assert registry.find(key).id == "wild1"


class TestConversions:
    def test_serialize_keeps_extension_keys(self) -> None:
        text = serialize_properties({"summary": "s", "x-internal": True})
        assert json.loads(text) == {"summary": "s", "x-internal": True}

    def test_fragment_from_platform_ignores_echoed_defaults(self) -> None:
        fragment = fragment_from_platform(
            {
                "id": "abc",
                "location": {"type": "API", "path": "/", "method": "*", "statusCode": "*"},
                "properties": '{"info": {"version": "1"}}',
            }
        )
        assert fragment.location == LocationKey(type="API")
        assert fragment.properties == {"info": {"version": "1"}}

    def test_fragment_from_platform_maps_wildcard_method(self) -> None:
        fragment = fragment_from_platform(
            {
                "id": "abc",
                "location": {
                    "type": "PATH_PARAMETER",
                    "path": "/todo/{todoId}",
                    "method": "*",
                    "name": "todoId",
                },
                "properties": '{"description": "Todo id"}',
            }
        )
        assert fragment.location == LocationKey(
            type="PATH_PARAMETER", name="todoId", path="/todo/{todoId}", method="ANY"
        )

    def test_unsupported_platform_location_is_rejected(self) -> None:
        with pytest.raises(PlatformRejected, match="unsupported location"):
            fragment_from_platform(
                {"id": "abc", "location": {"type": "METHOD", "path": "/todo", "method": "TRACE"}}
            )

    def test_unreadable_properties(self) -> None:
        with pytest.raises(PlatformRejected, match="unreadable"):
            fragment_from_platform(
                {"id": "abc", "location": {"type": "API"}, "properties": "{not json"}
            )
