"""Esquemas Pydantic para `video`, `like` y `watch_history`."""
from typing import Literal, Optional
from pydantic import BaseModel, Field


class VideoListQuery(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    query: Optional[str] = None
    sort_by: Literal["created_at", "views", "duration", "title"] = "created_at"
    sort_type: Literal["asc", "desc"] = "desc"
    user_id: Optional[str] = None


class ReactionPayload(BaseModel):
    is_like: bool = True


class ProgressPayload(BaseModel):
    progress: Optional[float] = None
