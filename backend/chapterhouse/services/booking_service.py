"""Booking entry points: inquiries, edits, date visibility."""
import logging
import uuid
from typing import Optional

from sqlalchemy import delete, insert, update
from sqlalchemy.orm import Session

from chapterhouse.auth import Actor, AdminPolicy
from chapterhouse.database import run_batch
from chapterhouse.errors import Forbidden, NotFound, Unauthorized
from chapterhouse.models.booking import Booking, BookingDate, BookingStatus
from chapterhouse.models.request import BOOKING_REQUEST_TYPES, Request, RequestType
from chapterhouse.schemas.booking import BookingCreate, BookingEdit
from chapterhouse.schemas.payloads import BookingEditPayload, BookingInquiryPayload
from chapterhouse.services import request_service
from chapterhouse.services.approval_service import booking_date_inserts, booking_edit_statements

logger = logging.getLogger(__name__)


def get_booking(db: Session, booking_id: str) -> Booking:
    booking = db.query(Booking).filter(Booking.booking_id == booking_id).first()
    if not booking:
        raise NotFound("Booking not found")
    return booking


def require_owner_or_admin(booking: Booking, actor: Optional[Actor], policy: AdminPolicy) -> Actor:
    if actor is None:
        raise Unauthorized()
    if not policy.is_admin(actor) and actor.user_id != booking.created_by:
        raise Forbidden("Only the creator or an admin may access this booking")
    return actor


def create_booking(db: Session, actor: Optional[Actor], fields: BookingCreate) -> tuple[str, Request]:
    """Insert a PENDING booking, its dates and the BOOKING_INQUIRY request in one batch."""
    if actor is None:
        raise Unauthorized()
    booking_id = str(uuid.uuid4())
    initial = BookingEditPayload.from_form(fields.name, fields.email, fields.phone, fields.questions, fields.dates)
    request_id, request_insert = request_service.build_create_statement(
        RequestType.booking_inquiry,
        booking_id,
        actor,
        BookingInquiryPayload(name=fields.name, email=fields.email, phone=fields.phone),
    )
    run_batch(db, [
        insert(Booking).values(
            booking_id=booking_id,
            name=fields.name,
            email=fields.email,
            phone=fields.phone,
            questions=fields.questions,
            created_by=actor.user_id,
            status=BookingStatus.pending,
        ),
        *booking_date_inserts(booking_id, initial),
        request_insert,
    ])
    logger.info("Booking %s submitted by user %s with %d date(s)", booking_id, actor.user_id, len(fields.dates))
    return booking_id, request_service.get_request(db, request_id)


def submit_booking_edit(
    db: Session,
    actor: Optional[Actor],
    booking_id: str,
    fields: BookingEdit,
    policy: AdminPolicy,
) -> Optional[Request]:
    """Edit a booking: admins acting as admins write directly, creators propose.

    Returns the new request, or None when the edit was applied directly.
    """
    booking = get_booking(db, booking_id)
    actor = require_owner_or_admin(booking, actor, policy)
    payload = BookingEditPayload.from_form(fields.name, fields.email, fields.phone, fields.questions, fields.dates)

    if policy.is_admin(actor) and fields.admin_action:
        statements = booking_edit_statements(booking_id, payload)
        if fields.review_request_id:
            flip = request_service.review_statement(db, fields.review_request_id, booking_id, BOOKING_REQUEST_TYPES)
            request_service.run_with_status_flip(db, fields.review_request_id, flip, statements)
        else:
            run_batch(db, statements)
        logger.info("Admin %s edited booking %s directly", actor.email, booking_id)
        return None

    request_service.ensure_none_pending(db, BOOKING_REQUEST_TYPES, booking_id)
    return request_service.create(db, RequestType.booking_edit, booking_id, actor, payload)


def delete_booking(db: Session, actor: Optional[Actor], booking_id: str, policy: AdminPolicy) -> None:
    booking = get_booking(db, booking_id)
    actor = require_owner_or_admin(booking, actor, policy)
    run_batch(db, [
        delete(BookingDate).where(BookingDate.booking_id == booking_id),
        delete(Booking).where(Booking.booking_id == booking_id),
        delete(Request).where(Request.target_id == booking_id),
    ])
    logger.info("Booking %s deleted by %s", booking_id, actor.user_id)


def set_date_visibility(
    db: Session,
    actor: Optional[Actor],
    date_id: str,
    is_public: bool,
    policy: AdminPolicy,
) -> BookingDate:
    """Publish or hide one booking date on the public events feed."""
    policy.require_admin(actor)
    booking_date = db.query(BookingDate).filter(BookingDate.date_id == date_id).first()
    if not booking_date:
        raise NotFound("Booking date not found")
    run_batch(db, [update(BookingDate).where(BookingDate.date_id == date_id).values(is_public=is_public)])
    logger.info("Booking date %s is_public=%s", date_id, is_public)
    db.refresh(booking_date)
    return booking_date


def list_bookings(db: Session, actor: Optional[Actor], policy: AdminPolicy) -> list[Booking]:
    if actor is None:
        raise Unauthorized()
    query = db.query(Booking)
    if not policy.is_admin(actor):
        query = query.filter(Booking.created_by == actor.user_id)
    return query.order_by(Booking.created_at.desc()).all()


def list_public_dates(db: Session) -> list[BookingDate]:
    return (
        db.query(BookingDate)
        .filter(BookingDate.is_public.is_(True))
        .order_by(BookingDate.date, BookingDate.time)
        .all()
    )
