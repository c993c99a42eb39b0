"""
Panel-related Pydantic models
"""

from typing import List
from pydantic import BaseModel, Field

class PanelCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, description="Title is required")
    url: str
    api_url: str
    api_key: str

class CommentCreateRequest(BaseModel):
    text: str = Field(..., min_length=1, description="Text is required")

class Like(BaseModel):
    user: str

class Comment(BaseModel):
    user: str
    name: str
    text: str
    date: str

class PanelResponse(BaseModel):
    id: str
    owner: str
    title: str
    url: str
    api_url: str
    api_key: str
    level: int = 0
    likes: List[Like] = []
    comments: List[Comment] = []
    date: str

class PanelDeleteResponse(BaseModel):
    message: str
    deleted_panel_id: str
