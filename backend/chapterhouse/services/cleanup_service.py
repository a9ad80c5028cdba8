"""Cleanup engine: reconcile denormalized membership after user changes.

``Artist.members`` is a JSON id list the store knows nothing about. Every
path that demotes or deletes a user goes through the statement builders
here so the reconciliation lives in one place. Builders only read; callers
run the returned statements inside their own batch.
"""
import json
import logging

from sqlalchemy import String, cast, delete, update
from sqlalchemy.orm import Session
from sqlalchemy.sql.expression import Executable

from chapterhouse.models.artist import Artist
from chapterhouse.models.booking import Booking, BookingDate
from chapterhouse.models.request import ARTIST_REQUEST_TYPES, Request, RequestStatus
from chapterhouse.models.user import User
from chapterhouse.services.request_service import status_statement

logger = logging.getLogger(__name__)


def artist_departure_statements(artist: Artist, user_id: str) -> list[Executable]:
    """Drop ``user_id`` from one artist; an artist left with no members is deleted."""
    members = list(artist.members or [])
    if user_id not in members:
        return []
    remaining = [m for m in members if m != user_id]
    if not remaining:
        return [
            delete(Artist).where(Artist.artist_id == artist.artist_id),
            delete(Request).where(Request.target_id == artist.artist_id),
        ]
    return [update(Artist).where(Artist.artist_id == artist.artist_id).values(members=remaining)]


def artists_with_member(db: Session, user_id: str) -> list[Artist]:
    # Text match narrows the scan; membership is confirmed on the parsed list
    candidates = db.query(Artist).filter(cast(Artist.members, String).like(f"%{user_id}%")).all()
    return [a for a in candidates if user_id in (a.members or [])]


def stale_artist_request_statements(db: Session, user_id: str) -> list[Executable]:
    """Reject pending artist proposals that would keep ``user_id`` as a member."""
    pending = (
        db.query(Request)
        .filter(
            Request.request_type.in_(ARTIST_REQUEST_TYPES),
            Request.status == RequestStatus.pending,
        )
        .all()
    )
    statements = []
    for request in pending:
        try:
            data = json.loads(request.data or "{}")
        except json.JSONDecodeError:
            logger.warning("Skipping request %s with unparseable payload during cleanup", request.request_id)
            continue
        members = data.get("members") if isinstance(data, dict) else None
        if isinstance(members, list) and user_id in members:
            statements.append(status_statement(request.request_id, RequestStatus.rejected))
    return statements


def membership_removal_statements(db: Session, user_id: str) -> list[Executable]:
    """Remove a user from every artist and invalidate proposals naming them."""
    statements = []
    artists = artists_with_member(db, user_id)
    for artist in artists:
        statements.extend(artist_departure_statements(artist, user_id))
    stale = stale_artist_request_statements(db, user_id)
    statements.extend(stale)
    logger.info(
        "Membership cleanup for user %s: %d artist(s) touched, %d pending request(s) rejected",
        user_id, len(artists), len(stale),
    )
    return statements


def user_deletion_statements(db: Session, user: User) -> list[Executable]:
    """Everything that goes when a user is deleted outright."""
    user_id = user.user_id
    booking_ids = [b for (b,) in db.query(Booking.booking_id).filter(Booking.created_by == user_id).all()]
    statements = [
        delete(User).where(User.user_id == user_id),
        delete(Request).where((Request.user_id == user_id) | (Request.target_id == user_id)),
    ]
    if booking_ids:
        statements += [
            delete(BookingDate).where(BookingDate.booking_id.in_(booking_ids)),
            delete(Request).where(Request.target_id.in_(booking_ids)),
            delete(Booking).where(Booking.booking_id.in_(booking_ids)),
        ]
    statements += membership_removal_statements(db, user_id)
    return statements
