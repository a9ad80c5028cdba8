"""Pydantic schemas for Users."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from chapterhouse.models.user import Role


class UserCreate(BaseModel):
    name: str
    email: str
    image: Optional[str] = None


class ProfileEdit(BaseModel):
    """Fields a user may propose for their own profile."""
    name: str
    location: Optional[str] = None
    bio: Optional[str] = None
    chapters: list[str] = []
    role: Role
    director_chapters: list[str] = []


class RoleChangeSubmit(BaseModel):
    role: Role
    director_chapters: list[str] = []


class UserSetup(BaseModel):
    location: Optional[str] = None
    bio: Optional[str] = None
    chapters: list[str] = []
    role: Role = Role.audience
    director_chapters: list[str] = []


class AdminUserUpdate(ProfileEdit):
    review_request_id: Optional[str] = None


class UserOut(BaseModel):
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: Role
    image: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    chapters: list[str] = []
    director_chapters: Optional[list[str]] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
