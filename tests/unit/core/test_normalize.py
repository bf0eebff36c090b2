"""
Unit tests for the Normalizer.
"""

import pytest

from accessgraph.core.normalize import (
    build_user_record,
    merge_endpoint_info,
    normalize_page_action,
    normalize_page_node,
    normalize_pages,
    normalize_roles,
    normalize_route,
    normalize_users,
    parse_endpoint_string,
)
from accessgraph.core.types import PageActionEndpoint, UserSummary


class TestNormalizeRoute:
    @pytest.mark.parametrize("raw,expected", [
        ("/settings/", "/settings"),
        ("/settings", "/settings"),
        ("/", "/"),
        ("", ""),
        (None, ""),
        ("/a/b//", "/a/b/"),
    ])
    def test_trailing_slash(self, raw, expected):
        assert normalize_route(raw) == expected


class TestEndpointParsing:
    def test_method_and_path(self):
        parsed = parse_endpoint_string("POST /api/users")
        assert parsed == PageActionEndpoint(method="POST", path="/api/users")

    def test_path_keeps_remaining_words(self):
        parsed = parse_endpoint_string("GET /api/search extra")
        assert parsed.method == "GET"
        assert parsed.path == "/api/search extra"

    def test_bare_path(self):
        assert parse_endpoint_string("/api/health") == PageActionEndpoint(path="/api/health")

    def test_unparseable(self):
        assert parse_endpoint_string("health") is None
        assert parse_endpoint_string("") is None
        assert parse_endpoint_string(None) is None

    def test_merge_prefers_earlier_sources(self):
        merged = merge_endpoint_info(
            {"method": "PUT"},
            {"method": "GET", "path": "/x", "service": ""},
            PageActionEndpoint(service="svc"),
        )
        assert merged == PageActionEndpoint(method="PUT", path="/x", service="svc")

    def test_merge_nothing(self):
        assert merge_endpoint_info(None, {}, {"method": ""}) is None


class TestNormalizePageAction:
    def test_string_endpoint_derives_details(self):
        action = normalize_page_action({"label": "Create", "action": "CREATE", "endpoint": "POST /api/users"})
        assert action.endpoint == "POST /api/users"
        assert action.endpoint_details == PageActionEndpoint(method="POST", path="/api/users")

    def test_details_derive_endpoint_string(self):
        action = normalize_page_action({
            "label": "Delete",
            "endpoint_details": {"service": "auth", "method": "DELETE", "path": "/api/users/1"},
        })
        assert action.endpoint == "DELETE /api/users/1"
        assert action.endpoint_details.service == "auth"

    def test_details_win_over_string(self):
        action = normalize_page_action({
            "endpoint": "GET /old",
            "endpoint_details": {"method": "POST", "path": "/new"},
        })
        assert action.endpoint == "POST /new"
        assert action.endpoint_details == PageActionEndpoint(method="POST", path="/new")

    def test_structured_endpoint_field(self):
        action = normalize_page_action({
            "endpoint": {"method": "PATCH", "path": "/a"},
            "endpoint_details": {"method": "GET", "service": "core"},
        })
        assert action.endpoint_details == PageActionEndpoint(method="PATCH", path="/a", service="core")
        assert action.endpoint == "PATCH /a"

    def test_service_only_keeps_no_string(self):
        action = normalize_page_action({"endpoint_details": {"service": "core"}})
        assert action.endpoint is None
        assert action.has_endpoint

    def test_empty_action(self):
        action = normalize_page_action(None)
        assert action.label == ""
        assert action.action == ""
        assert not action.has_endpoint


class TestNormalizePageNode:
    def test_scenario_nested_identity(self):
        page = normalize_page_node({
            "page": {"id": 1, "label": "Users", "route": "/users"},
            "actions": [{"label": "Create", "action": "CREATE", "endpoint": "POST /api/users"}],
        })
        assert page.id == 1
        assert page.route == "/users"
        assert page.key == "1"
        assert page.label == "Users"
        assert len(page.actions) == 1
        action = page.actions[0]
        assert (action.label, action.action, action.endpoint) == ("Create", "CREATE", "POST /api/users")
        assert action.endpoint_details == PageActionEndpoint(method="POST", path="/api/users")

    def test_nested_wins_over_top_level(self):
        page = normalize_page_node({
            "id": 9, "label": "Flat", "route": "/flat",
            "page": {"id": 3, "label": "Nested"},
        })
        assert page.id == 3
        assert page.label == "Nested"
        assert page.route == "/flat"

    def test_fallbacks(self):
        page = normalize_page_node({"page_id": 5})
        assert page.id == 5
        assert page.key == "5"
        assert page.label == "5"
        assert page.route == ""

    def test_children_field_names(self):
        first = normalize_page_node({"id": 1, "children": [{"id": 2}], "page_children": [{"id": 3}]})
        assert [c.id for c in first.children] == [2]

        second = normalize_page_node({"id": 1, "children": [], "page_children": [{"id": 3}]})
        assert [c.id for c in second.children] == [3]

    def test_null_collections(self):
        page = normalize_page_node({"id": 1, "actions": None, "children": None, "page_children": None})
        assert page.actions == []
        assert page.children == []

    def test_output_is_detached_from_input(self):
        raw = {"id": 1, "actions": [{"label": "A"}], "children": [{"id": 2}]}
        page = normalize_page_node(raw)
        raw["actions"][0]["label"] = "changed"
        raw["children"].append({"id": 3})
        assert page.actions[0].label == "A"
        assert len(page.children) == 1


class TestNormalizePages:
    def test_pages_envelope(self, flat_pages_payload):
        pages = normalize_pages(flat_pages_payload)
        assert [p.id for p in pages] == [1, 2, 3, 4]
        assert pages[1].route == "/admin/users"

    def test_bare_list(self):
        assert [p.id for p in normalize_pages([{"id": 1}, "junk", {"id": 2}])] == [1, 2]

    def test_object_without_pages_key_yields_nothing(self):
        assert normalize_pages({}) == []
        assert normalize_pages({"page_id": 8, "route": "/x"}) == []
        assert normalize_pages({"roles": [{"name": "Admin"}]}) == []

    def test_garbage(self):
        assert normalize_pages(None) == []
        assert normalize_pages("nope") == []
        assert normalize_pages({"pages": None}) == []


class TestNormalizeUsers:
    def test_roles_tolerate_nulls(self, user_matrix_payload):
        roles = normalize_roles(user_matrix_payload)
        assert [r.name for r in roles] == ["Admin", "Auditor"]
        assert roles[1].policies == []
        first_endpoint = roles[0].policies[0].endpoints[0]
        assert first_endpoint.page_actions[0].page.key == "users"

    def test_roles_missing(self):
        assert normalize_roles({}) == []
        assert normalize_roles({"roles": None}) == []

    def test_user_list_accepts_camel_case(self):
        users = normalize_users([
            {"id": 1, "username": "ana", "fullName": "Ana Lima"},
            {"id": 2, "username": "bo", "full_name": "Bo Chen", "email": "bo@example.com"},
            {"username": "no-id"},
        ])
        assert [u.id for u in users] == [1, 2]
        assert users[0].full_name == "Ana Lima"
        assert users[1].email == "bo@example.com"

    def test_build_user_record_uses_cached_user(self):
        users = [UserSummary(id=7, username="ana", full_name="Ana Lima", email="ana@example.com")]
        record = build_user_record("7", [], users)
        assert record.username == "ana"
        assert record.display_name == "Ana Lima (ana)"

    def test_build_user_record_fallback_username(self):
        record = build_user_record(42, [], [])
        assert record.username == "User 42"
        assert record.node_id == "user-42"
