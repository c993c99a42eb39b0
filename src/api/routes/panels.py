"""
Panel API routes
All data access goes through the injected service layer.
"""

import logging
from typing import Any, Dict, List
from fastapi import APIRouter, HTTPException, Depends

from models.panel import (
    PanelCreateRequest, CommentCreateRequest, PanelResponse, PanelDeleteResponse, Like, Comment
)
from services.base_service import ServiceResult
from services.panels_service import PanelsService, get_panels_service
from services.users_service import UsersService, get_users_service
from utils.auth import AuthConfig, UserAuthContext
from utils.identifiers import check_panel_id

router = APIRouter()
logger = logging.getLogger(__name__)

def _panel_response(panel_data: Dict[str, Any]) -> Dict[str, Any]:
    """Shape a stored panel row for the API"""
    return {
        "id": str(panel_data["panel_id"]),
        "owner": str(panel_data["owner"]),
        "title": panel_data["title"],
        "url": panel_data["url"],
        "api_url": panel_data["api_url"],
        "api_key": panel_data["api_key"],
        "level": panel_data.get("level") or 0,
        "likes": panel_data.get("likes") or [],
        "comments": panel_data.get("comments") or [],
        "date": panel_data["created_at"]
    }

def _raise_for_result(result: ServiceResult, action: str):
    """Translate a failed ServiceResult into an HTTP error"""
    if result.error_type == "RESOURCE_NOT_FOUND":
        raise HTTPException(status_code=404, detail="Panel not found")
    if result.error_type in ("ALREADY_LIKED", "NOT_LIKED"):
        raise HTTPException(status_code=400, detail=result.error)

    logger.error(f"Failed to {action}: [{result.error_type}] {result.error}")
    raise HTTPException(status_code=500, detail="Server Error")

@router.post("", response_model=PanelResponse)
async def create_panel(
    request: PanelCreateRequest,
    auth: UserAuthContext = Depends(AuthConfig.get_auth_dependency()),
    panels_service: PanelsService = Depends(get_panels_service)
):
    """Create a panel owned by the caller"""
    try:
        result = await panels_service.create_panel(
            owner=auth.user_id,
            title=request.title,
            url=request.url,
            api_url=request.api_url,
            api_key=request.api_key
        )

        if not result.success:
            _raise_for_result(result, "create panel")

        return _panel_response(result.data[0])

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to create panel: {e}")
        raise HTTPException(status_code=500, detail="Server Error")

@router.get("", response_model=List[PanelResponse])
async def list_panels(
    _: UserAuthContext = Depends(AuthConfig.get_listing_auth_dependency()),
    panels_service: PanelsService = Depends(get_panels_service)
):
    """Get all panels, by level then newest first"""
    try:
        result = await panels_service.list_panels()

        if not result.success:
            _raise_for_result(result, "list panels")

        return [_panel_response(panel) for panel in result.data]

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to list panels: {e}")
        raise HTTPException(status_code=500, detail="Server Error")

@router.get("/{id}", response_model=PanelResponse)
async def get_panel(
    auth: UserAuthContext = Depends(AuthConfig.get_auth_dependency()),
    panel_id: str = Depends(check_panel_id),
    panels_service: PanelsService = Depends(get_panels_service)
):
    """Get panel by ID"""
    try:
        result = await panels_service.get_panel_by_id(panel_id)

        if not result.success:
            _raise_for_result(result, "get panel")

        return _panel_response(result.data[0])

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to get panel: {e}")
        raise HTTPException(status_code=500, detail="Server Error")

@router.delete("/{id}", response_model=PanelDeleteResponse)
async def delete_panel(
    auth: UserAuthContext = Depends(AuthConfig.get_auth_dependency()),
    panel_id: str = Depends(check_panel_id),
    panels_service: PanelsService = Depends(get_panels_service)
):
    """Delete a panel; only its owner may do this"""
    try:
        panel_result = await panels_service.get_panel_by_id(panel_id)
        if not panel_result.success:
            _raise_for_result(panel_result, "load panel for delete")

        panel = panel_result.data[0]
        if str(panel["owner"]) != auth.user_id:
            logger.warning(f"User {auth.user_id} attempted to delete panel {panel_id} they do not own")
            raise HTTPException(status_code=401, detail="User not authorized")

        result = await panels_service.delete_panel(panel_id, panel)
        if not result.success:
            _raise_for_result(result, "delete panel")

        return {
            "message": "Panel removed",
            "deleted_panel_id": panel_id
        }

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete panel: {e}")
        raise HTTPException(status_code=500, detail="Server Error")

@router.put("/like/{id}", response_model=List[Like])
async def like_panel(
    auth: UserAuthContext = Depends(AuthConfig.get_auth_dependency()),
    panel_id: str = Depends(check_panel_id),
    panels_service: PanelsService = Depends(get_panels_service)
):
    """Like a panel; returns the updated likes"""
    try:
        result = await panels_service.like_panel(panel_id, auth.user_id)

        if not result.success:
            _raise_for_result(result, "like panel")

        return result.data[0].get("likes") or []

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to like panel: {e}")
        raise HTTPException(status_code=500, detail="Server Error")

@router.put("/unlike/{id}", response_model=List[Like])
async def unlike_panel(
    auth: UserAuthContext = Depends(AuthConfig.get_auth_dependency()),
    panel_id: str = Depends(check_panel_id),
    panels_service: PanelsService = Depends(get_panels_service)
):
    """Unlike a panel; returns the updated likes"""
    try:
        result = await panels_service.unlike_panel(panel_id, auth.user_id)

        if not result.success:
            _raise_for_result(result, "unlike panel")

        return result.data[0].get("likes") or []

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to unlike panel: {e}")
        raise HTTPException(status_code=500, detail="Server Error")

@router.post("/comment/{id}", response_model=List[Comment])
async def comment_on_panel(
    request: CommentCreateRequest,
    auth: UserAuthContext = Depends(AuthConfig.get_auth_dependency()),
    panel_id: str = Depends(check_panel_id),
    panels_service: PanelsService = Depends(get_panels_service),
    users_service: UsersService = Depends(get_users_service)
):
    """Comment on a panel; returns the updated comments"""
    try:
        user_result = await users_service.get_user_by_id(auth.user_id)
        if not user_result.success:
            if user_result.error_type == "RESOURCE_NOT_FOUND":
                raise HTTPException(status_code=404, detail="User not found")
            _raise_for_result(user_result, "look up comment author")

        result = await panels_service.add_comment(
            panel_id,
            auth.user_id,
            name=user_result.data[0]["name"],
            text=request.text
        )

        if not result.success:
            _raise_for_result(result, "comment on panel")

        return result.data[0].get("comments") or []

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to comment on panel: {e}")
        raise HTTPException(status_code=500, detail="Server Error")
