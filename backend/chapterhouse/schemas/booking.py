"""Pydantic schemas for Bookings and their dates."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from chapterhouse.models.artist import ImagePreference
from chapterhouse.models.booking import BookingStatus


class BookingDateIn(BaseModel):
    date: str
    time: Optional[str] = None
    duration: Optional[str] = None
    event_type: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    budget: Optional[str] = None


class BookingCreate(BaseModel):
    name: str
    email: str
    phone: str
    questions: Optional[str] = None
    dates: list[BookingDateIn] = []


class BookingEdit(BookingCreate):
    # Admin-only: write directly instead of filing a request
    admin_action: bool = False
    review_request_id: Optional[str] = None


class BookingDateVisibility(BaseModel):
    is_public: bool


class BookingDateOut(BaseModel):
    date_id: Optional[str] = None  # proposed dates have no id yet
    booking_id: str
    date: str
    time: Optional[str] = None
    duration: Optional[str] = None
    event_type: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    budget: Optional[str] = None
    is_public: bool = False

    model_config = {"from_attributes": True}


class BookingOut(BaseModel):
    booking_id: str
    name: str
    email: str
    phone: str
    questions: Optional[str] = None
    image: Optional[str] = None
    image_preference: ImagePreference
    created_by: str
    status: BookingStatus
    created_at: Optional[datetime] = None
    dates: list[BookingDateOut] = []

    model_config = {"from_attributes": True}
