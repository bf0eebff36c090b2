"""
Tests for the accessgraph command line.
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from rich.color import Color

from accessgraph.cli.main import main
from accessgraph.cli.utils import parse_expand, rich_color
from accessgraph.core.exceptions import AccessDeniedError, SessionExpiredError
from accessgraph.graph.tree import DEFAULT_METHOD_COLOR, METHOD_COLORS, TAG_COLORS


class ExplodingDirectory:
    """Client stub whose every call raises the given error."""

    def __init__(self, error):
        self.error = error

    def list_users(self):
        raise self.error

    def get_ui_access_matrix(self):
        raise self.error

    def get_user_access_matrix(self, user_id):
        raise self.error


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def pages_file(tmp_path, flat_pages_payload):
    path = tmp_path / "pages.json"
    path.write_text(json.dumps(flat_pages_payload))
    return str(path)


@pytest.fixture
def user_file(tmp_path, user_matrix_payload):
    payload = dict(user_matrix_payload)
    payload["users"] = [{"id": 7, "username": "ana", "full_name": "Ana Lima", "email": "ana@example.com"}]
    path = tmp_path / "user.json"
    path.write_text(json.dumps(payload))
    return str(path)


def _last_json(output):
    return json.loads(output.strip().splitlines()[-1])


class TestParseExpand:
    def test_repeated_and_comma_separated(self):
        assert parse_expand(("page-1,page-2", " page-3 ", "")) == ["page-1", "page-2", "page-3"]
        assert parse_expand(None) == []


class TestRichColor:
    def test_every_tag_colour_parses(self):
        names = list(TAG_COLORS.values()) + list(METHOD_COLORS.values()) + [DEFAULT_METHOD_COLOR]
        for name in names:
            Color.parse(rich_color(name))

    def test_known_names_pass_through(self):
        assert rich_color("green") == "green"
        assert rich_color("orange") == "orange1"


class TestPagesCommand:
    def test_graph_output(self, runner, pages_file):
        result = runner.invoke(main, ["pages", "--input", pages_file])
        assert result.exit_code == 0, result.output
        assert "UI Access Graph" in result.output
        assert "Admin" in result.output
        assert "Q1" in result.output

    def test_json_envelope(self, runner, pages_file):
        result = runner.invoke(main, ["pages", "-i", pages_file, "--json", "--expand", "page-1"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["meta"]["status"] == "success"
        assert payload["meta"]["direction"] == "TB"
        ids = [node["id"] for node in payload["data"]["nodes"]]
        assert ids == ["page-1", "page-action-1-0", "page-2", "page-4"]
        assert all(node["position"] is not None for node in payload["data"]["nodes"])
        assert payload["data"]["summary"] is None

    def test_select_and_search(self, runner, pages_file):
        result = runner.invoke(
            main, ["pages", "-i", pages_file, "--select", "2", "--search", "delete", "--json", "-d", "lr"],
        )
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["meta"]["selection"] == 2
        assert payload["meta"]["query"] == "delete"
        assert payload["meta"]["direction"] == "LR"
        highlighted = [node["id"] for node in payload["data"]["nodes"] if node["highlight"]]
        assert highlighted == ["page-2", "page-action-2-1", "endpoint-2-1"]
        assert payload["data"]["summary"]["counts"]["actions"] == "3 actions"

    def test_expand_after_select_does_not_collapse(self, runner, pages_file):
        result = runner.invoke(main, ["pages", "-i", pages_file, "--select", "1", "--expand", "page-action-1-0", "--json"])
        assert result.exit_code == 0, result.output
        ids = [node["id"] for node in json.loads(result.output)["data"]["nodes"]]
        assert ids[:4] == ["page-1", "page-action-1-0", "endpoint-1-0", "page-2"]
        assert "page-3" in ids

    def test_select_missing_page(self, runner, pages_file):
        result = runner.invoke(main, ["pages", "-i", pages_file, "--select", "99"])
        assert result.exit_code == 1
        assert "Page not found in visualization" in result.output

    def test_tree_view(self, runner, pages_file):
        result = runner.invoke(main, ["pages", "-i", pages_file, "--select", "1", "--tree"])
        assert result.exit_code == 0, result.output
        assert "UI Access Tree" in result.output
        assert "/api/admin" in result.output
        assert "4 actions" in result.output

    def test_access_denied(self, runner):
        with patch("accessgraph.cli.commands.pages.make_client", return_value=ExplodingDirectory(AccessDeniedError())):
            result = runner.invoke(main, ["pages"])
        assert result.exit_code == 1
        assert "Access denied" in result.output

    def test_access_denied_json(self, runner):
        with patch("accessgraph.cli.commands.pages.make_client", return_value=ExplodingDirectory(AccessDeniedError())):
            result = runner.invoke(main, ["pages", "--json"])
        assert result.exit_code == 1
        payload = _last_json(result.output)
        assert payload["meta"] == {"status": "error", "view": "forbidden"}
        assert payload["error"]["message"] == "You do not have permission to view this data"

    def test_session_expired(self, runner):
        with patch("accessgraph.cli.commands.pages.make_client", return_value=ExplodingDirectory(SessionExpiredError())):
            result = runner.invoke(main, ["pages"])
        assert result.exit_code == 1
        assert "Session expired" in result.output


class TestUserCommand:
    def test_graph_output(self, runner, user_file):
        result = runner.invoke(main, ["user", "7", "--input", user_file])
        assert result.exit_code == 0, result.output
        assert "Ana Lima (ana)" in result.output
        assert "Admin" in result.output
        assert "2 roles" in result.output

    def test_expand_json(self, runner, user_file):
        result = runner.invoke(main, ["user", "7", "-i", user_file, "--json", "-e", "role-7-0,policy-7-0-1"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        ids = [node["id"] for node in payload["data"]["nodes"]]
        assert "policy-7-0-1" in ids
        assert "endpoint-7-0-1-0" in ids
        assert "endpoint-7-0-0-0" not in ids
        assert payload["meta"]["selection"] == 7
        assert payload["data"]["summary"]["counts"]["roles"] == "2 roles"

    def test_expand_seeded_user_node(self, runner, user_file):
        result = runner.invoke(main, ["user", "7", "-i", user_file, "--json", "--expand", "user-7"])
        assert result.exit_code == 0, result.output
        ids = [node["id"] for node in json.loads(result.output)["data"]["nodes"]]
        assert ids == ["user-7", "role-7-0", "role-7-1"]

    def test_tree_view(self, runner, user_file):
        result = runner.invoke(main, ["user", "7", "-i", user_file, "--tree"])
        assert result.exit_code == 0, result.output
        assert "User Access Tree" in result.output
        assert "/api/reports" in result.output

    def test_no_access(self, runner, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text(json.dumps({"roles": []}))
        result = runner.invoke(main, ["user", "3", "-i", str(path)])
        assert result.exit_code == 1
        assert "No access data found for this user" in result.output


class TestUsersCommand:
    def test_table(self, runner, user_file):
        result = runner.invoke(main, ["users", "-i", user_file])
        assert result.exit_code == 0, result.output
        assert "Ana Lima" in result.output

    def test_json(self, runner, user_file):
        result = runner.invoke(main, ["users", "-i", user_file, "--json"])
        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["meta"] == {"status": "success", "count": 1}
        assert payload["data"][0]["username"] == "ana"

    def test_empty(self, runner, pages_file):
        result = runner.invoke(main, ["users", "-i", pages_file])
        assert result.exit_code == 0
        assert "No users found" in result.output

    def test_forbidden(self, runner):
        with patch("accessgraph.cli.commands.users.make_client", return_value=ExplodingDirectory(AccessDeniedError())):
            result = runner.invoke(main, ["users"])
        assert result.exit_code == 1
        assert "Access denied" in result.output
