"""Pydantic schemas for Chapters."""
from typing import Optional
from pydantic import BaseModel


class ChapterCreate(BaseModel):
    location: str
    bio: Optional[str] = None
    image: Optional[str] = None


class ChapterOut(BaseModel):
    chapter_id: str
    location: str
    bio: Optional[str] = None
    image: Optional[str] = None

    model_config = {"from_attributes": True}
