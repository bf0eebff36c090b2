"""Interaction/state controllers for the page and user access views."""

from .controllers import PageAccessController, UserAccessController
from .state import SelectionSummary, ViewState, ViewStatus

__all__ = [
    "PageAccessController",
    "UserAccessController",
    "SelectionSummary",
    "ViewState",
    "ViewStatus",
]
