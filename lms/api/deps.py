"""
Shared API dependencies
"""
from fastapi import Header, HTTPException
from typing import Optional
from uuid import UUID
import logging

from lms.context import RequestContext

logger = logging.getLogger(__name__)

ROLES = ("student", "teacher", "admin")


async def get_context(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None)
) -> RequestContext:
    """
    Build the caller context from headers set by the upstream auth layer

    Raises:
        HTTPException: 401 if the identity is missing or malformed
    """
    if not x_user_id:
        logger.warning("X-User-Id header missing")
        raise HTTPException(status_code=401, detail="Authentication required")

    try:
        user_id = UUID(x_user_id)
    except ValueError:
        logger.warning(f"Invalid X-User-Id header: {x_user_id}")
        raise HTTPException(status_code=401, detail="Invalid user identity")

    role = (x_user_role or "student").lower()
    if role not in ROLES:
        logger.warning(f"Unknown role {role} for user {user_id}")
        raise HTTPException(status_code=401, detail="Invalid user role")

    return RequestContext(user_id=user_id, role=role)
