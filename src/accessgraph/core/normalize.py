"""
Normalizer.

Converts raw Access Directory payloads into the canonical model defined in
``accessgraph.core.types``. Every function here is total: absent or
mis-shaped fields fall back to defaults and ``None`` collections become
empty lists.

Field precedence for a page node:

    ========  ==========================================
    field     lookup order
    ========  ==========================================
    id        page.id, id, page_id, 0
    key       page.key, key, str(id)
    label     page.label, label, key
    route     page.route, route, ""
    children  children (if non-empty), page_children
    ========  ==========================================

Endpoint details for an action are merged field by field from the
``endpoint`` object, then ``endpoint_details``, then the parsed
``"<method> <path>"`` endpoint string.
"""

import logging
from typing import Any, Dict, Iterable, List

from .types import (
    Endpoint,
    PageAction,
    PageActionEndpoint,
    PageNode,
    PageReference,
    Policy,
    Role,
    UserAccessRecord,
    UserPageAction,
    UserSummary,
)

logger = logging.getLogger(__name__)

ENDPOINT_FIELDS = ("service", "version", "method", "path")


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def _first_present(*values: Any) -> Any:
    """Return the first value that is not None."""
    for value in values:
        if value is not None:
            return value
    return None


def _text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return value if isinstance(value, str) else str(value)


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    return _text(value)


def _identifier(value: Any) -> int | str:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, str)):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return _text(value)


def normalize_route(route: Any) -> str:
    """Strip a single trailing slash unless the route is the root ``/``."""
    text = _text(route).strip()
    if len(text) > 1 and text.endswith("/"):
        return text[:-1]
    return text


def parse_endpoint_string(endpoint: Any) -> PageActionEndpoint | None:
    """
    Parse ``"<method> <path>"`` into an endpoint descriptor.

    A single token containing ``/`` is read as a bare path. Anything else
    that does not split yields ``None``.
    """
    text = _text(endpoint).strip()
    if not text:
        return None
    parts = text.split(None, 1)
    if len(parts) == 2:
        return PageActionEndpoint(method=parts[0], path=parts[1].strip())
    if "/" in text:
        return PageActionEndpoint(path=text)
    return None


def merge_endpoint_info(*sources: Any) -> PageActionEndpoint | None:
    """
    Merge endpoint descriptors field by field; earlier sources win.

    Sources may be dicts, ``PageActionEndpoint`` instances or ``None``.
    Empty strings count as absent. Returns ``None`` when nothing has a value.
    """
    merged: Dict[str, str] = {}
    for source in sources:
        if isinstance(source, PageActionEndpoint):
            source = source.model_dump()
        source = _as_dict(source)
        for field in ENDPOINT_FIELDS:
            if field in merged:
                continue
            value = source.get(field)
            if value is not None and _text(value) != "":
                merged[field] = _text(value)
    if not merged:
        return None
    return PageActionEndpoint(**merged)


def normalize_page_action(raw: Any) -> PageAction:
    """Normalize one raw page action."""
    data = _as_dict(raw)
    raw_endpoint = data.get("endpoint")
    endpoint_object = raw_endpoint if isinstance(raw_endpoint, dict) else None
    endpoint_string = raw_endpoint.strip() if isinstance(raw_endpoint, str) else None

    details = merge_endpoint_info(
        endpoint_object,
        data.get("endpoint_details"),
        parse_endpoint_string(endpoint_string) if endpoint_string else None,
    )

    if details is not None and (details.method or details.path):
        endpoint_string = details.request_line()

    return PageAction(
        label=_text(data.get("label")),
        action=_text(data.get("action")),
        endpoint=endpoint_string or None,
        endpoint_details=details,
    )


def normalize_page_node(raw: Any) -> PageNode:
    """Normalize one raw page node and, recursively, its children."""
    data = _as_dict(raw)
    page = _as_dict(data.get("page"))

    page_id = _identifier(_first_present(page.get("id"), data.get("id"), data.get("page_id"), 0))
    key = _text(_first_present(page.get("key"), data.get("key"), page_id))
    label = _text(_first_present(page.get("label"), data.get("label"), key))
    route = normalize_route(_first_present(page.get("route"), data.get("route"), ""))

    raw_children = _as_list(data.get("children")) or _as_list(data.get("page_children"))
    is_requested = data.get("is_requested")

    return PageNode(
        id=page_id,
        key=key,
        label=label,
        route=route,
        is_requested=is_requested if isinstance(is_requested, bool) else None,
        actions=[normalize_page_action(action) for action in _as_list(data.get("actions"))],
        children=[normalize_page_node(child) for child in raw_children if isinstance(child, dict)],
    )


def normalize_pages(raw: Any) -> List[PageNode]:
    """
    Normalize a UI access matrix response into a flat-or-nested page list.

    Accepts ``{"pages": [...]}`` or a bare list of pages. Any other shape
    yields no pages.
    """
    if isinstance(raw, dict):
        items = _as_list(raw.get("pages"))
    else:
        items = _as_list(raw)

    pages = [normalize_page_node(item) for item in items if isinstance(item, dict)]
    skipped = len(items) - len(pages)
    if skipped:
        logger.debug(f"Skipped {skipped} non-object page entries")
    return pages


# =============================================================================
# User access matrix
# =============================================================================


def _normalize_page_reference(raw: Any) -> PageReference | None:
    if not isinstance(raw, dict):
        return None
    return PageReference(
        key=_optional_text(raw.get("key")),
        label=_optional_text(raw.get("label")),
        route=_optional_text(raw.get("route")),
    )


def _normalize_user_page_action(raw: Any) -> UserPageAction:
    data = _as_dict(raw)
    return UserPageAction(
        action=_text(data.get("action")),
        label=_text(data.get("label")),
        page=_normalize_page_reference(data.get("page")),
    )


def _normalize_endpoint(raw: Any) -> Endpoint:
    data = _as_dict(raw)
    actions = _as_list(_first_present(data.get("page_actions"), data.get("pageActions")))
    return Endpoint(
        service=_text(data.get("service")),
        version=_text(data.get("version")),
        method=_text(data.get("method")),
        path=_text(data.get("path")),
        description=_optional_text(data.get("description")),
        page_actions=[_normalize_user_page_action(action) for action in actions],
    )


def _normalize_policy(raw: Any) -> Policy:
    data = _as_dict(raw)
    return Policy(
        name=_text(data.get("name")),
        description=_optional_text(data.get("description")),
        endpoints=[_normalize_endpoint(e) for e in _as_list(data.get("endpoints"))],
    )


def _normalize_role(raw: Any) -> Role:
    data = _as_dict(raw)
    return Role(
        name=_text(data.get("name")),
        description=_optional_text(data.get("description")),
        policies=[_normalize_policy(p) for p in _as_list(data.get("policies"))],
    )


def normalize_roles(raw: Any) -> List[Role]:
    """Normalize the ``roles`` collection of a user access matrix response."""
    if isinstance(raw, dict):
        raw = raw.get("roles")
    return [_normalize_role(role) for role in _as_list(raw)]


def normalize_user_summary(raw: Any) -> UserSummary | None:
    """Normalize one user list entry; entries without an id are dropped."""
    data = _as_dict(raw)
    user_id = _first_present(data.get("id"), data.get("user_id"), data.get("userId"))
    if user_id is None:
        return None
    return UserSummary(
        id=_identifier(user_id),
        username=_text(data.get("username")),
        full_name=_optional_text(_first_present(data.get("full_name"), data.get("fullName"))),
        email=_optional_text(data.get("email")),
    )


def normalize_users(raw: Any) -> List[UserSummary]:
    """Normalize the user list; accepts a bare list or ``{"users": [...]}``."""
    if isinstance(raw, dict):
        raw = _first_present(raw.get("users"), raw.get("data"))
    users = []
    for item in _as_list(raw):
        user = normalize_user_summary(item)
        if user is not None:
            users.append(user)
    return users


def _same_id(left: Any, right: Any) -> bool:
    return _text(left) == _text(right)


def build_user_record(
    user_id: int | str,
    roles: List[Role],
    users: Iterable[UserSummary] = (),
) -> UserAccessRecord:
    """
    Combine normalized roles with the cached user list entry.

    When the user is not in the list the username falls back to
    ``"User <id>"``.
    """
    summary = next((user for user in users if _same_id(user.id, user_id)), None)
    return UserAccessRecord(
        id=_identifier(user_id),
        username=summary.username if summary and summary.username else f"User {user_id}",
        full_name=summary.full_name if summary else None,
        email=summary.email if summary else None,
        roles=list(roles),
    )
