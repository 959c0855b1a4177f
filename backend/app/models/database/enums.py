"""Centralized enum definitions for database models.

All status and type enums should be defined here for consistency.
"""

from enum import Enum


class Language(str, Enum):
    """Languages a chapter's content can be stored in."""

    EN = "en"
    ID = "id"

    @property
    def content_field(self) -> str:
        """Name of the Chapter column holding content in this language."""
        return f"content_{self.value}"


class UserRole(str, Enum):
    """Roles attached to API tokens."""

    ADMIN = "admin"
    READER = "reader"
