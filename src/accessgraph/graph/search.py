"""
Search/Highlight Propagator.

Matching is a plain case-insensitive substring test; there is no fuzzy or
tokenized matching. Composite nodes match when their own fields match or
when any descendant matches, at any depth and regardless of which nodes are
currently expanded. Leaves match on their own fields only. An empty query
matches nothing.
"""

from typing import Iterable

from ..core.types import (
    Endpoint,
    PageAction,
    PageActionEndpoint,
    PageNode,
    PageReference,
    Policy,
    Role,
    UserAccessRecord,
    UserPageAction,
)


def text_matches(value: str | None, query: str) -> bool:
    """Case-insensitive substring test. Empty values and queries never match."""
    if not query or not value:
        return False
    return query.lower() in value.lower()


class SearchMatcher:
    """
    Evaluates one query against the canonical model.

    Each ``*_matches`` method answers "is this node highlighted"; the
    builder combines the answers for edges.
    """

    def __init__(self, query: str | None):
        self.query = query or ""
        self._needle = self.query.lower()

    @property
    def active(self) -> bool:
        return bool(self._needle)

    def any_text(self, values: Iterable[str | None]) -> bool:
        if not self._needle:
            return False
        return any(value and self._needle in value.lower() for value in values)

    # --- page flow ---

    def endpoint_details_match(self, details: PageActionEndpoint | None, endpoint: str | None) -> bool:
        values = [endpoint]
        if details is not None:
            values.extend([details.method, details.path, details.service, details.version])
        return self.any_text(values)

    def page_action_matches(self, action: PageAction) -> bool:
        if self.any_text([action.label, action.action]):
            return True
        return self.endpoint_details_match(action.endpoint_details, action.endpoint)

    def page_own_matches(self, page: PageNode) -> bool:
        return self.any_text([page.label, page.route])

    def page_matches(self, page: PageNode) -> bool:
        if self.page_own_matches(page):
            return True
        if any(self.page_action_matches(action) for action in page.actions):
            return True
        return any(self.page_matches(child) for child in page.children)

    # --- user flow ---

    def page_reference_matches(self, page: PageReference | None) -> bool:
        return page is not None and self.any_text([page.label, page.route, page.key])

    def user_action_matches(self, action: UserPageAction) -> bool:
        if self.any_text([action.label, action.action]):
            return True
        return self.page_reference_matches(action.page)

    def endpoint_matches(self, endpoint: Endpoint) -> bool:
        if self.any_text([endpoint.service, endpoint.version, endpoint.method, endpoint.path, endpoint.description]):
            return True
        return any(self.user_action_matches(action) for action in endpoint.page_actions)

    def policy_matches(self, policy: Policy) -> bool:
        if self.any_text([policy.name, policy.description]):
            return True
        return any(self.endpoint_matches(endpoint) for endpoint in policy.endpoints)

    def role_matches(self, role: Role) -> bool:
        if self.any_text([role.name, role.description]):
            return True
        return any(self.policy_matches(policy) for policy in role.policies)

    def user_matches(self, user: UserAccessRecord) -> bool:
        if self.any_text([user.username, user.full_name, user.email]):
            return True
        return any(self.role_matches(role) for role in user.roles)
