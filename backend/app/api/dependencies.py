"""API dependencies for authentication and storage.

Ingestion is an admin operation: a request must carry a known API token
(``Authorization: Bearer <token>`` or ``X-API-Key: <token>``) whose role is
``admin``. Tokens and their roles come from the ``API_TOKENS`` setting.
"""

import logging
import secrets
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Header

from app.config import settings
from app.core.storage import ObjectStorage, get_object_storage
from app.models.database.enums import UserRole

logger = logging.getLogger(__name__)


# =============================================================================
# Authentication Dependencies
# =============================================================================


def _lookup_role(token: str) -> Optional[UserRole]:
    """Role of a configured token, compared in constant time."""
    role = None
    for known_token, known_role in settings.api_tokens.items():
        if secrets.compare_digest(token.encode(), known_token.encode()):
            role = known_role
    if role is None:
        return None
    try:
        return UserRole(role)
    except ValueError:
        logger.warning("Token configured with unknown role %r, treating as reader", role)
        return UserRole.READER


async def verify_api_token(
    authorization: Annotated[Optional[str], Header()] = None,
    x_api_key: Annotated[Optional[str], Header(alias="X-API-Key")] = None,
) -> UserRole:
    """Authenticate the caller and return their role.

    Supports two authentication methods:
    1. Authorization: Bearer <token>
    2. X-API-Key: <token>

    Raises:
        HTTPException: 401 if the token is missing or unknown
    """
    token = None
    if authorization and authorization.startswith("Bearer "):
        token = authorization[7:].strip()
    elif x_api_key:
        token = x_api_key.strip()

    if not token:
        raise HTTPException(
            status_code=401,
            detail="Authentication required. Provide Authorization: Bearer <token> or X-API-Key header.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    role = _lookup_role(token)
    if role is None:
        raise HTTPException(
            status_code=401,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return role


async def require_admin(
    role: Annotated[UserRole, Depends(verify_api_token)],
) -> UserRole:
    """Allow only admin callers.

    Raises:
        HTTPException: 403 if the caller is authenticated but not an admin
    """
    if role != UserRole.ADMIN:
        raise HTTPException(status_code=403, detail="Admin access required")
    return role


# Type alias for cleaner dependency injection
RequireAdmin = Annotated[UserRole, Depends(require_admin)]


# =============================================================================
# Storage Dependencies
# =============================================================================


def get_storage() -> ObjectStorage:
    """Object store for re-hosted assets."""
    return get_object_storage()


Storage = Annotated[ObjectStorage, Depends(get_storage)]
