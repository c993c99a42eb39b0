"""
Authentication utilities for API endpoints
"""

import logging
from typing import Optional
from fastapi import HTTPException, Header
from dataclasses import dataclass
import jwt

from config import settings
from services.user_jwt_service import validate_user_jwt

logger = logging.getLogger(__name__)

@dataclass
class UserAuthContext:
    """Authentication context for a bearer-token user"""
    is_authenticated: bool
    user_id: Optional[str] = None


async def authenticate_user(authorization: Optional[str] = Header(None)) -> UserAuthContext:
    """
    FastAPI dependency for JWT Bearer token authentication.

    Args:
        authorization: Authorization header with Bearer JWT token

    Returns:
        UserAuthContext: Authentication context carrying the caller's user ID

    Raises:
        HTTPException: 401 if authentication fails
    """
    if not authorization:
        logger.error("AUTH: API request missing Authorization header - returning 401")
        raise HTTPException(
            status_code=401,
            detail="Missing Authorization header"
        )

    if not authorization.startswith("Bearer "):
        logger.error("AUTH: Invalid Authorization header format - returning 401")
        raise HTTPException(
            status_code=401,
            detail="Invalid authorization header format. Expected 'Bearer <token>'"
        )

    token = authorization[7:]  # Remove "Bearer " prefix

    try:
        jwt_payload = validate_user_jwt(token)
    except jwt.InvalidTokenError as e:
        logger.error(f"AUTH: Invalid JWT token: {str(e)}")
        raise HTTPException(401, "Invalid JWT token")

    logger.info(f"AUTH: JWT validation successful - User: {jwt_payload['sub']}")
    return UserAuthContext(
        is_authenticated=True,
        user_id=jwt_payload['sub']
    )


async def authenticate_panel_listing(authorization: Optional[str] = Header(None)) -> UserAuthContext:
    """
    Listing panels is public unless PANELS_LIST_REQUIRES_AUTH is set.
    """
    if settings.PANELS_LIST_REQUIRES_AUTH:
        return await authenticate_user(authorization)
    return UserAuthContext(is_authenticated=False)


class AuthConfig:
    """
    Centralized authentication configuration for the application.
    """

    @staticmethod
    def get_auth_dependency():
        """Get the mandatory auth dependency"""
        return authenticate_user

    @staticmethod
    def get_listing_auth_dependency():
        """Get the auth dependency for the panel listing"""
        return authenticate_panel_listing
