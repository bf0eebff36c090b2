"""Shared fixtures: raw Access Directory payloads and normalized models."""

import pytest

from accessgraph.core.hierarchy import build_hierarchy
from accessgraph.core.normalize import build_user_record, normalize_pages, normalize_roles


@pytest.fixture
def flat_pages_payload():
    """UI access matrix with no explicit parent links, mixed identity shapes."""
    return {
        "pages": [
            {
                "page": {"id": 1, "key": "admin", "label": "Admin", "route": "/admin"},
                "actions": [
                    {"label": "Open", "action": "VIEW", "endpoint": "GET /api/admin"},
                ],
            },
            {
                "id": 2,
                "key": "users",
                "label": "Users",
                "route": "/admin/users/",
                "actions": [
                    {"label": "Create", "action": "CREATE", "endpoint": "POST /api/users"},
                    {
                        "label": "Delete",
                        "action": "DELETE",
                        "endpoint_details": {"service": "auth", "method": "DELETE", "path": "/api/users/{id}"},
                    },
                    {"label": "Export", "action": "EXPORT"},
                ],
                "children": None,
            },
            {
                "page_id": 3,
                "label": "Roles",
                "route": "/admin/users/roles",
                "actions": None,
            },
            {
                "page": {"id": 4, "label": "Q1", "route": "/reports/q1"},
                "page_children": [],
            },
        ]
    }


@pytest.fixture
def pages(flat_pages_payload):
    return build_hierarchy(normalize_pages(flat_pages_payload))


@pytest.fixture
def user_matrix_payload():
    return {
        "generated_at": "2024-01-01T00:00:00Z",
        "version": 1,
        "filters": {"user_id": 7},
        "roles": [
            {
                "name": "Admin",
                "description": "Full access",
                "policies": [
                    {
                        "name": "UserManagement",
                        "endpoints": [
                            {
                                "service": "auth",
                                "version": "v1",
                                "method": "GET",
                                "path": "/api/users",
                                "page_actions": [
                                    {"action": "VIEW", "label": "View users",
                                     "page": {"key": "users", "label": "Users", "route": "/admin/users"}},
                                    {"action": "EXPORT", "label": "Export users",
                                     "page": {"key": "users", "label": "Users", "route": "/admin/users"}},
                                ],
                            },
                            {
                                "service": "auth",
                                "version": "v1",
                                "method": "POST",
                                "path": "/api/users",
                                "page_actions": [
                                    {"action": "CREATE", "label": "Create user"},
                                ],
                            },
                        ],
                    },
                    {
                        "name": "Reporting",
                        "endpoints": [
                            {
                                "service": "reports",
                                "version": "v2",
                                "method": "GET",
                                "path": "/api/reports",
                                "page_actions": [
                                    {"action": "VIEW", "label": "View reports",
                                     "page": {"key": "reports", "label": "Reports", "route": "/reports"}},
                                ],
                            },
                        ],
                    },
                ],
            },
            {
                "name": "Auditor",
                "policies": None,
            },
        ],
    }


@pytest.fixture
def user_record(user_matrix_payload):
    return build_user_record(7, normalize_roles(user_matrix_payload))
