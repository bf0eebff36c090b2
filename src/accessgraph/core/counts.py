"""
Descendant aggregation and count labels.

Counts are always computed from the live subtree that is passed in; nothing
is cached between builds.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Set

from .types import Endpoint, PageNode, Policy, Role, UserAccessRecord, UserPageAction


def resolve_action_page_key(action: UserPageAction | None) -> str | None:
    """
    Key used to deduplicate pages reached through page actions.

    Actions without a page summary contribute no key.
    """
    if action is None or action.page is None:
        return None
    page = action.page
    return page.key or page.route or page.label or action.label or action.action or None


def merge_page_keys(actions: Iterable[UserPageAction], accumulator: Set[str]) -> None:
    for action in actions:
        key = resolve_action_page_key(action)
        if key:
            accumulator.add(key)


@dataclass(frozen=True)
class EndpointCounts:
    actions: int
    page_keys: frozenset = field(default_factory=frozenset)

    @property
    def pages(self) -> int:
        return len(self.page_keys)


@dataclass(frozen=True)
class PolicyCounts:
    endpoints: int
    actions: int
    page_keys: frozenset = field(default_factory=frozenset)

    @property
    def pages(self) -> int:
        return len(self.page_keys)


@dataclass(frozen=True)
class RoleCounts:
    policies: int
    endpoints: int
    actions: int
    page_keys: frozenset = field(default_factory=frozenset)

    @property
    def pages(self) -> int:
        return len(self.page_keys)


@dataclass(frozen=True)
class UserCounts:
    roles: int
    policies: int
    endpoints: int
    actions: int
    page_keys: frozenset = field(default_factory=frozenset)

    @property
    def pages(self) -> int:
        return len(self.page_keys)


def endpoint_counts(endpoint: Endpoint) -> EndpointCounts:
    keys: Set[str] = set()
    merge_page_keys(endpoint.page_actions, keys)
    return EndpointCounts(actions=len(endpoint.page_actions), page_keys=frozenset(keys))


def policy_counts(policy: Policy) -> PolicyCounts:
    actions = 0
    keys: Set[str] = set()
    for endpoint in policy.endpoints:
        counts = endpoint_counts(endpoint)
        actions += counts.actions
        keys |= counts.page_keys
    return PolicyCounts(endpoints=len(policy.endpoints), actions=actions, page_keys=frozenset(keys))


def role_counts(role: Role) -> RoleCounts:
    endpoints = actions = 0
    keys: Set[str] = set()
    for policy in role.policies:
        counts = policy_counts(policy)
        endpoints += counts.endpoints
        actions += counts.actions
        keys |= counts.page_keys
    return RoleCounts(
        policies=len(role.policies),
        endpoints=endpoints,
        actions=actions,
        page_keys=frozenset(keys),
    )


def user_counts(user: UserAccessRecord) -> UserCounts:
    policies = endpoints = actions = 0
    keys: Set[str] = set()
    for role in user.roles:
        counts = role_counts(role)
        policies += counts.policies
        endpoints += counts.endpoints
        actions += counts.actions
        keys |= counts.page_keys
    return UserCounts(
        roles=len(user.roles),
        policies=policies,
        endpoints=endpoints,
        actions=actions,
        page_keys=frozenset(keys),
    )


@dataclass(frozen=True)
class PageSummary:
    """Transitive totals for a page subtree; ``pages`` includes the root."""
    actions: int
    endpoints: int
    pages: int


def page_summary(page: PageNode) -> PageSummary:
    actions = len(page.actions)
    endpoints = sum(1 for action in page.actions if action.has_endpoint)
    pages = 1
    for child in page.children:
        child_summary = page_summary(child)
        actions += child_summary.actions
        endpoints += child_summary.endpoints
        pages += child_summary.pages
    return PageSummary(actions=actions, endpoints=endpoints, pages=pages)


# =============================================================================
# Labels
# =============================================================================

_ES_SUFFIX = re.compile(r"(?:[sxz]|sh|ch)$")


def format_count_label(count: int, singular: str, plural: str | None = None) -> str:
    """
    Format ``"<n> <noun>"``; zero yields an empty string.

    Args:
        count: The number to render.
        singular: Noun used when count is 1.
        plural: Noun used otherwise. Defaults to ``singular + "s"``.
    """
    if count == 0:
        return ""
    label = singular if count == 1 else (plural if plural is not None else f"{singular}s")
    return f"{count} {label}"


def summary_count_label(count: int, singular: str, plural: str | None = None) -> str:
    """Like ``format_count_label`` but renders zero as ``"0 <plural>"``."""
    formatted = format_count_label(count, singular, plural)
    if formatted:
        return formatted
    if plural:
        return f"0 {plural}"
    if singular.endswith("y"):
        return f"0 {singular[:-1]}ies"
    if _ES_SUFFIX.search(singular):
        return f"0 {singular}es"
    return f"0 {singular}s"
