"""Database models package."""

from app.models.database.base import Base, get_db
from app.models.database.novel import Novel
from app.models.database.chapter import Chapter
# Centralized enums
from app.models.database.enums import Language, UserRole

__all__ = [
    # Base
    "Base",
    "get_db",
    # Models
    "Novel",
    "Chapter",
    # Enums
    "Language",
    "UserRole",
]
