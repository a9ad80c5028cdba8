"""Booking API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from chapterhouse.auth import Actor, AdminPolicy, get_admin_policy, get_current_actor
from chapterhouse.database import get_db
from chapterhouse.schemas.booking import BookingCreate, BookingDateOut, BookingDateVisibility, BookingEdit, BookingOut
from chapterhouse.schemas.request import EntityView, RequestOut
from chapterhouse.services import booking_service, merge_service

logger = logging.getLogger(__name__)
router = APIRouter()


class BookingSubmitted(BaseModel):
    booking_id: str
    request: RequestOut


@router.post("/", response_model=BookingSubmitted, status_code=status.HTTP_202_ACCEPTED)
def create_booking(
    payload: BookingCreate,
    actor: Optional[Actor] = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Submit a booking inquiry with its requested dates."""
    booking_id, request = booking_service.create_booking(db, actor, payload)
    return BookingSubmitted(booking_id=booking_id, request=RequestOut.model_validate(request))


@router.get("/", response_model=list[EntityView[BookingOut]])
def list_bookings(
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    """Admins see every booking; other users see their own."""
    bookings = booking_service.list_bookings(db, actor, policy)
    return [merge_service.booking_view(db, b, actor, policy) for b in bookings]


@router.patch("/dates/{date_id}", response_model=BookingDateOut)
def set_date_visibility(
    date_id: str,
    payload: BookingDateVisibility,
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    """Publish or hide a date on the public events feed (admin only)."""
    return booking_service.set_date_visibility(db, actor, date_id, payload.is_public, policy)


@router.get("/{booking_id}", response_model=EntityView[BookingOut])
def get_booking(
    booking_id: str,
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    booking = booking_service.get_booking(db, booking_id)
    booking_service.require_owner_or_admin(booking, actor, policy)
    return merge_service.booking_view(db, booking, actor, policy)


@router.put("/{booking_id}", response_model=Optional[RequestOut])
def edit_booking(
    booking_id: str,
    payload: BookingEdit,
    response: Response,
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    """Propose an edit (202 + request), or apply it directly as an admin action (200)."""
    request = booking_service.submit_booking_edit(db, actor, booking_id, payload, policy)
    if request is not None:
        response.status_code = status.HTTP_202_ACCEPTED
    return request


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_booking(
    booking_id: str,
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    booking_service.delete_booking(db, actor, booking_id, policy)
