"""Approval engine: turn a pending request into storage mutations.

``approve`` reads the request and the rows it touches, then builds an ordered
statement list for the request's type. The status flip runs first in the same
batch and must still find the request PENDING; otherwise nothing is written.
Either everything commits or nothing does.

The per-type builders are module functions because admin direct edits
reuse them to write exactly what an approval would.
"""
import logging
import uuid
from typing import Optional

from sqlalchemy import delete, insert, update
from sqlalchemy.orm import Session
from sqlalchemy.sql.expression import Executable

from chapterhouse.auth import Actor, AdminPolicy
from chapterhouse.errors import NotFound, RequestNotPending
from chapterhouse.models.artist import Artist, ArtistStatus
from chapterhouse.models.booking import Booking, BookingDate, BookingStatus
from chapterhouse.models.request import Request, RequestStatus
from chapterhouse.models.user import PERFORMING_ROLES, Role, User
from chapterhouse.schemas.payloads import (
    ArtistAddPayload,
    ArtistEditPayload,
    BookingEditPayload,
    BookingInquiryPayload,
    RoleChangePayload,
    UserEditPayload,
    parse_payload,
)
from chapterhouse.services import cleanup_service, request_service

logger = logging.getLogger(__name__)


# ── Statement builders ──────────────────────────────────────────────

def solo_artist_statements(
    db: Session,
    user_id: str,
    name: Optional[str],
    image: Optional[str],
    location: Optional[str],
    bio: Optional[str],
    chapters: Optional[list[str]],
) -> list[Executable]:
    """Create the user's solo artist unless they already own an artist."""
    existing = db.query(Artist.artist_id).filter(Artist.owner_id == user_id).first()
    if existing:
        return []
    return [
        insert(Artist).values(
            artist_id=str(uuid.uuid4()),
            name=name or "New Artist",
            location=location,
            bio=bio,
            image=image,
            owner_id=user_id,
            status=ArtistStatus.approved,
            members=[user_id],
            chapters=list(chapters or []),
        )
    ]


def role_change_statements(db: Session, user: User, payload: RoleChangePayload) -> list[Executable]:
    statements = [
        update(User)
        .where(User.user_id == user.user_id)
        .values(role=payload.role, director_chapters=payload.stored_director_chapters())
    ]
    if payload.role in PERFORMING_ROLES:
        statements += solo_artist_statements(
            db, user.user_id,
            name=user.name,
            image=user.image,
            location=payload.location,
            bio=payload.bio,
            chapters=user.chapters,
        )
    elif payload.role == Role.audience:
        statements += cleanup_service.membership_removal_statements(db, user.user_id)
    return statements


def user_update_statements(db: Session, user: User, payload: UserEditPayload) -> list[Executable]:
    statements = [
        update(User)
        .where(User.user_id == user.user_id)
        .values(
            name=payload.name,
            location=payload.location,
            bio=payload.bio,
            chapters=payload.chapters,
            role=payload.role,
            director_chapters=payload.stored_director_chapters(),
        )
    ]
    if payload.role in PERFORMING_ROLES:
        statements += solo_artist_statements(
            db, user.user_id,
            name=payload.name,
            image=user.image,
            location=payload.location,
            bio=payload.bio,
            chapters=payload.chapters,
        )
    elif payload.role == Role.audience:
        statements += cleanup_service.membership_removal_statements(db, user.user_id)
    return statements


def artist_edit_statements(artist_id: str, payload: ArtistEditPayload) -> list[Executable]:
    return [
        update(Artist)
        .where(Artist.artist_id == artist_id)
        .values(
            name=payload.name,
            location=payload.location,
            bio=payload.bio,
            image=payload.image,
            chapters=payload.chapters,
            members=payload.members,
            status=ArtistStatus.approved,
        )
    ]


def booking_date_inserts(booking_id: str, payload: BookingEditPayload) -> list[Executable]:
    # Re-inserted dates start private; publishing is a separate admin decision
    return [
        insert(BookingDate).values(date_id=str(uuid.uuid4()), booking_id=booking_id, is_public=False, **row)
        for row in payload.date_rows()
    ]


def booking_edit_statements(booking_id: str, payload: BookingEditPayload) -> list[Executable]:
    return [
        update(Booking)
        .where(Booking.booking_id == booking_id)
        .values(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            questions=payload.questions,
            status=BookingStatus.approved,
        ),
        delete(BookingDate).where(BookingDate.booking_id == booking_id),
        *booking_date_inserts(booking_id, payload),
    ]


# ── Engine ──────────────────────────────────────────────────────────

class ApprovalService:
    """Approve or reject requests on behalf of an administrator."""

    def __init__(self, db: Session, policy: AdminPolicy):
        self.db = db
        self.policy = policy

    def _require_user(self, user_id: str) -> User:
        user = self.db.query(User).filter(User.user_id == user_id).first()
        if not user:
            raise NotFound("Associated user not found")
        return user

    def _require_artist(self, artist_id: Optional[str]) -> Artist:
        artist = self.db.query(Artist).filter(Artist.artist_id == artist_id).first()
        if not artist:
            raise NotFound("Associated artist not found")
        return artist

    def _require_booking(self, booking_id: Optional[str]) -> Booking:
        booking = self.db.query(Booking).filter(Booking.booking_id == booking_id).first()
        if not booking:
            raise NotFound("Associated booking not found")
        return booking

    def build_statements(self, request: Request) -> list[Executable]:
        """Entity mutations that realize ``request``, excluding the status flip."""
        match parse_payload(request):
            case RoleChangePayload() as payload:
                user = self._require_user(request.subject_id)
                return role_change_statements(self.db, user, payload)
            case UserEditPayload() as payload:
                user = self._require_user(request.subject_id)
                return user_update_statements(self.db, user, payload)
            case ArtistEditPayload() as payload:
                artist = self._require_artist(request.target_id)
                return artist_edit_statements(artist.artist_id, payload)
            case ArtistAddPayload():
                # Row and initial values were written at submission time
                artist = self._require_artist(request.target_id)
                return [
                    update(Artist).where(Artist.artist_id == artist.artist_id).values(status=ArtistStatus.approved)
                ]
            case BookingEditPayload() as payload:
                booking = self._require_booking(request.target_id)
                return booking_edit_statements(booking.booking_id, payload)
            case BookingInquiryPayload():
                booking = self._require_booking(request.target_id)
                return [
                    update(Booking).where(Booking.booking_id == booking.booking_id).values(status=BookingStatus.approved)
                ]
            case payload:
                raise ValueError(f"Unhandled payload {type(payload).__name__} for {request.request_type!r}")

    def _pending_request(self, request_id: str) -> Request:
        request = request_service.get_request(self.db, request_id)
        if request.status != RequestStatus.pending:
            raise RequestNotPending(request.status.value)
        return request

    def approve(self, actor: Optional[Actor], request_id: str) -> Request:
        self.policy.require_admin(actor)
        request = self._pending_request(request_id)
        request_type = request.request_type
        statements = self.build_statements(request)
        flip = request_service.status_statement(request_id, RequestStatus.approved)
        request_service.run_with_status_flip(self.db, request_id, flip, statements)
        logger.info(
            "Request %s (%s) approved by %s with %d statements",
            request_id, request_type.value, actor.email, len(statements) + 1,
        )
        return request_service.get_request(self.db, request_id)

    def reject(self, actor: Optional[Actor], request_id: str) -> Request:
        self.policy.require_admin(actor)
        self._pending_request(request_id)
        flip = request_service.status_statement(request_id, RequestStatus.rejected)
        request_service.run_with_status_flip(self.db, request_id, flip, [])
        logger.info("Request %s rejected by %s", request_id, actor.email)
        return request_service.get_request(self.db, request_id)
