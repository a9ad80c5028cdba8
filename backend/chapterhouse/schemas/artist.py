"""Pydantic schemas for Artists."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from chapterhouse.models.artist import ArtistStatus, ImagePreference


class ArtistCreate(BaseModel):
    name: str
    location: Optional[str] = None
    bio: Optional[str] = None
    chapters: list[str] = []
    members: list[str] = []


class ArtistEdit(BaseModel):
    name: str
    location: Optional[str] = None
    bio: Optional[str] = None
    image: Optional[str] = None
    chapters: list[str] = []
    members: list[str] = []
    # Admin-only: write directly instead of filing a request
    admin_action: bool = False
    review_request_id: Optional[str] = None


class ArtistOut(BaseModel):
    artist_id: str
    name: str
    location: Optional[str] = None
    bio: Optional[str] = None
    image: Optional[str] = None
    image_preference: ImagePreference
    owner_id: str
    members: list[str] = []
    status: ArtistStatus
    chapters: list[str] = []
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
