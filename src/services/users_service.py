"""
Users service - read-only lookups against the account system's users table
"""

import logging
from typing import Optional
from services.base_service import BaseService, ServiceResult

logger = logging.getLogger(__name__)

class UsersService(BaseService):
    """Service for user lookups"""

    def __init__(self):
        super().__init__("users")

    async def get_user_by_id(self, user_id: str) -> ServiceResult:
        """
        Get a user's public profile

        Only user_id and name are selected; credentials never leave the table.
        """
        result = await self.read(
            fields=["user_id", "name"],
            filters={"user_id": user_id},
            limit=1
        )

        if result.success and not result.data:
            return ServiceResult(
                success=False,
                error=f"User not found with ID: {user_id}",
                error_type="RESOURCE_NOT_FOUND"
            )
        return result

# Global service instance
_users_service: Optional[UsersService] = None

def get_users_service() -> UsersService:
    """Get the global users service instance"""
    global _users_service
    if _users_service is None:
        _users_service = UsersService()
    return _users_service
