"""Merge engine: overlay a pending proposal on the live entity.

Admins always see the proposed state because they are the ones deciding on
it. The submitter sees what they proposed. Everyone else sees the live row,
so an unapproved edit never looks live to the public.
"""
import logging
from typing import Optional, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from chapterhouse.auth import Actor, AdminPolicy
from chapterhouse.errors import MalformedPayload
from chapterhouse.models.artist import Artist
from chapterhouse.models.booking import Booking
from chapterhouse.models.request import ARTIST_REQUEST_TYPES, BOOKING_REQUEST_TYPES, Request
from chapterhouse.models.user import User
from chapterhouse.schemas.artist import ArtistOut
from chapterhouse.schemas.booking import BookingOut
from chapterhouse.schemas.payloads import parse_payload
from chapterhouse.schemas.request import EntityView
from chapterhouse.schemas.user import UserOut
from chapterhouse.services import request_service

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=BaseModel)


def overlay(live: EntityT, request: Optional[Request]) -> EntityT:
    """Deep copy of ``live`` with every field the request proposes laid over it.

    Id lists (chapters, members, dates) replace the live value wholesale. A
    payload that cannot be parsed leaves the copy equal to ``live``.
    """
    merged = live.model_copy(deep=True)
    if request is None:
        return merged
    try:
        payload = parse_payload(request)
    except MalformedPayload as exc:
        logger.warning("Ignoring pending request %s for display: %s", request.request_id, exc.reason)
        return merged
    fields = payload.overlay_fields(request.subject_id)
    known = type(live).model_fields
    updates = {name: value for name, value in fields.items() if name in known}
    # Re-validate so nested values (booking dates) come back as models
    try:
        return type(live).model_validate({**merged.model_dump(), **updates})
    except ValidationError as exc:
        logger.warning(
            "Ignoring pending request %s for display: %d field(s) do not fit %s",
            request.request_id, exc.error_count(), type(live).__name__,
        )
        return merged


def present(
    live: EntityT,
    request: Optional[Request],
    viewer: Optional[Actor],
    policy: AdminPolicy,
) -> EntityView[EntityT]:
    """Choose between the merged and the live entity for ``viewer``.

    Viewers who get the live entity learn nothing about the pending request.
    """
    if request is None:
        return EntityView[type(live)](entity=live)
    is_submitter = viewer is not None and viewer.user_id == request.user_id
    if not (policy.is_admin(viewer) or is_submitter):
        return EntityView[type(live)](entity=live)
    return EntityView[type(live)](
        entity=overlay(live, request),
        pending_request_id=request.request_id,
        pending_type=request.request_type,
        showing_proposed=True,
    )


def user_view(db: Session, user: User, viewer: Optional[Actor], policy: AdminPolicy) -> EntityView[UserOut]:
    pending = request_service.find_pending_for_user(db, user.user_id)
    return present(UserOut.model_validate(user), pending, viewer, policy)


def artist_view(db: Session, artist: Artist, viewer: Optional[Actor], policy: AdminPolicy) -> EntityView[ArtistOut]:
    pending = request_service.find_pending_by_type_and_target(db, ARTIST_REQUEST_TYPES, artist.artist_id)
    return present(ArtistOut.model_validate(artist), pending, viewer, policy)


def booking_view(db: Session, booking: Booking, viewer: Optional[Actor], policy: AdminPolicy) -> EntityView[BookingOut]:
    pending = request_service.find_pending_by_type_and_target(db, BOOKING_REQUEST_TYPES, booking.booking_id)
    return present(BookingOut.model_validate(booking), pending, viewer, policy)
