"""
Panels service - persistence and social mutations for panel records
"""

import logging
from datetime import datetime, timezone
from typing import Dict, Any, List, Optional
from services.base_service import BaseService, ServiceResult

logger = logging.getLogger(__name__)

# Listing order: level ascending, newest first within a level
PANEL_LIST_ORDER = [
    {"field": "level", "dir": "asc"},
    {"field": "created_at", "dir": "desc"}
]

def has_liked(likes: List[Dict[str, Any]], user_id: str) -> bool:
    """Check whether a user already appears in a likes list"""
    return any(str(like.get("user")) == str(user_id) for like in likes)

def build_comment(user_id: str, name: str, text: str, date: Optional[datetime] = None) -> Dict[str, Any]:
    """Build a comment entry; date defaults to now (UTC)"""
    date = date or datetime.now(timezone.utc).replace(tzinfo=None)
    return {
        "user": str(user_id),
        "name": name,
        "text": text,
        "date": date.isoformat()
    }

class PanelsService(BaseService):
    """
    Service for panel operations.

    likes and comments are ordered newest first: new entries are prepended.
    Mutations load, modify and save the whole list, so two concurrent
    writers on the same panel race and the last save wins.
    """

    def __init__(self):
        super().__init__("panels")

    async def create_panel(
        self,
        owner: str,
        title: str,
        url: str,
        api_url: str,
        api_key: str
    ) -> ServiceResult:
        """
        Create a new panel owned by the caller

        Args:
            owner: User ID of the creating user
            title: Panel title
            url: Panel URL
            api_url: Backing API URL
            api_key: Backing API key

        Returns:
            ServiceResult with the created panel
        """
        panel_data = {
            "owner": owner,
            "title": title,
            "url": url,
            "api_url": api_url,
            "api_key": api_key
        }

        logger.info(f"Creating new panel '{title}' for owner: {owner}")
        return await self.create(panel_data)

    async def get_panel_by_id(self, panel_id: str) -> ServiceResult:
        """Get a panel by its ID"""
        return await self.get_by_id(panel_id)

    async def list_panels(self) -> ServiceResult:
        """Get every panel, sorted by level then newest first"""
        return await self.read(order_by=PANEL_LIST_ORDER, limit=None)

    async def update_panel(self, panel_id: str, updates: Dict[str, Any]) -> ServiceResult:
        """Save changed fields of a panel"""
        return await self.update(panel_id, updates)

    async def delete_panel(self, panel_id: str, panel: Optional[Dict[str, Any]] = None) -> ServiceResult:
        """Delete a panel; the deleted record is returned in data"""
        logger.info(f"Deleting panel: {panel_id}")
        return await self.delete(panel_id, record=panel)

    async def like_panel(self, panel_id: str, user_id: str) -> ServiceResult:
        """
        Add the user's like to the front of the likes list

        Returns:
            ServiceResult with the updated panel, or ALREADY_LIKED /
            RESOURCE_NOT_FOUND
        """
        panel_result = await self.get_panel_by_id(panel_id)
        if not panel_result.success:
            return panel_result

        likes = panel_result.data[0].get("likes") or []
        if has_liked(likes, user_id):
            return ServiceResult(
                success=False,
                error="Panel already liked",
                error_type="ALREADY_LIKED"
            )

        logger.info(f"User {user_id} liked panel {panel_id}")
        return await self.update_panel(panel_id, {"likes": [{"user": str(user_id)}] + likes})

    async def unlike_panel(self, panel_id: str, user_id: str) -> ServiceResult:
        """
        Remove the user's like

        Returns:
            ServiceResult with the updated panel, or NOT_LIKED /
            RESOURCE_NOT_FOUND
        """
        panel_result = await self.get_panel_by_id(panel_id)
        if not panel_result.success:
            return panel_result

        likes = panel_result.data[0].get("likes") or []
        if not has_liked(likes, user_id):
            return ServiceResult(
                success=False,
                error="Panel has not yet been liked",
                error_type="NOT_LIKED"
            )

        remaining = [like for like in likes if str(like.get("user")) != str(user_id)]

        logger.info(f"User {user_id} unliked panel {panel_id}")
        return await self.update_panel(panel_id, {"likes": remaining})

    async def add_comment(self, panel_id: str, user_id: str, name: str, text: str) -> ServiceResult:
        """
        Prepend a comment to the panel

        Returns:
            ServiceResult with the updated panel, or RESOURCE_NOT_FOUND
        """
        panel_result = await self.get_panel_by_id(panel_id)
        if not panel_result.success:
            return panel_result

        comments = panel_result.data[0].get("comments") or []
        comment = build_comment(user_id, name, text)

        logger.info(f"User {user_id} commented on panel {panel_id}")
        return await self.update_panel(panel_id, {"comments": [comment] + comments})

# Global service instance
_panels_service: Optional[PanelsService] = None

def get_panels_service() -> PanelsService:
    """Get the global panels service instance"""
    global _panels_service
    if _panels_service is None:
        _panels_service = PanelsService()
    return _panels_service
