"""
CLI Commands Package.

Each command is implemented in its own module for maintainability.
"""

from . import pages
from . import user
from . import users

__all__ = [
    "pages",
    "user",
    "users",
]
