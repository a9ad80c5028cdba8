"""Request repository: CRUD over the ``requests`` ledger.

No payload validation happens here; callers build a typed payload first.
"""
import logging
import uuid
from typing import Iterable, Optional

from sqlalchemy import insert, update
from sqlalchemy.orm import Session
from sqlalchemy.sql.expression import Executable

from chapterhouse.auth import Actor
from chapterhouse.database import GuardFailed, run_batch
from chapterhouse.errors import Conflict, NotFound, RequestNotPending, Unauthorized
from chapterhouse.models.request import Request, RequestStatus, RequestType
from chapterhouse.models.user import User
from chapterhouse.schemas.payloads import Payload, dump_payload
from chapterhouse.schemas.request import RequestOut

logger = logging.getLogger(__name__)


def build_create_statement(
    request_type: RequestType,
    target_id: Optional[str],
    submitter: Optional[Actor],
    payload: Payload,
) -> tuple[str, Executable]:
    """Return ``(request_id, insert)`` for a new PENDING request.

    Lets a caller fold the request into a larger atomic batch.
    """
    if submitter is None:
        raise Unauthorized()
    request_id = str(uuid.uuid4())
    statement = insert(Request).values(
        request_id=request_id,
        user_id=submitter.user_id,
        request_type=request_type,
        target_id=target_id,
        data=dump_payload(payload),
        status=RequestStatus.pending,
    )
    return request_id, statement


def create(
    db: Session,
    request_type: RequestType,
    target_id: Optional[str],
    submitter: Optional[Actor],
    payload: Payload,
) -> Request:
    """Insert a PENDING request and return it."""
    request_id, statement = build_create_statement(request_type, target_id, submitter, payload)
    run_batch(db, [statement])
    logger.info(
        "Request %s (%s) created for target %s by user %s",
        request_id, request_type.value, target_id, submitter.user_id,
    )
    return db.get(Request, request_id)


def get_request(db: Session, request_id: str) -> Request:
    request = db.query(Request).filter(Request.request_id == request_id).first()
    if not request:
        raise NotFound("Request not found")
    return request


def list_pending(
    db: Session,
    submitter_id: Optional[str] = None,
    newest_first: bool = True,
) -> list[RequestOut]:
    """PENDING requests joined with submitter display fields."""
    query = (
        db.query(Request, User.name, User.email)
        .outerjoin(User, User.user_id == Request.user_id)
        .filter(Request.status == RequestStatus.pending)
    )
    if submitter_id:
        query = query.filter(Request.user_id == submitter_id)
    order = Request.created_at.desc() if newest_first else Request.created_at.asc()
    rows = query.order_by(order).all()
    return [
        RequestOut.model_validate(request).model_copy(update={"user_name": name, "user_email": email})
        for request, name, email in rows
    ]


def find_pending_by_type_and_target(
    db: Session,
    types: Iterable[RequestType],
    target_id: str,
) -> Optional[Request]:
    """First PENDING request of one of ``types`` targeting ``target_id``, newest first."""
    return (
        db.query(Request)
        .filter(
            Request.request_type.in_(list(types)),
            Request.target_id == target_id,
            Request.status == RequestStatus.pending,
        )
        .order_by(Request.created_at.desc())
        .first()
    )


def find_pending_by_type_and_user(
    db: Session,
    request_type: RequestType,
    user_id: str,
) -> Optional[Request]:
    return (
        db.query(Request)
        .filter(
            Request.request_type == request_type,
            Request.user_id == user_id,
            Request.status == RequestStatus.pending,
        )
        .order_by(Request.created_at.desc())
        .first()
    )


def find_pending_for_user(db: Session, user_id: str) -> Optional[Request]:
    """A pending profile edit for the user, else their pending role change."""
    return (
        find_pending_by_type_and_target(db, [RequestType.user_edit], user_id)
        or find_pending_by_type_and_user(db, RequestType.role_change, user_id)
    )


def ensure_none_pending(db: Session, types: Iterable[RequestType], target_id: str) -> None:
    """Refuse a new proposal while one of the same category awaits review."""
    types = tuple(types)
    existing = find_pending_by_type_and_target(db, types, target_id)
    if existing is None and RequestType.role_change in types:
        existing = find_pending_by_type_and_user(db, RequestType.role_change, target_id)
    if existing:
        raise Conflict(
            f"A {existing.request_type.value} request ({existing.request_id}) is already pending for this target"
        )


def status_statement(request_id: str, new_status: RequestStatus) -> Executable:
    """Move a PENDING request to ``new_status``; no-op for terminal rows."""
    return (
        update(Request)
        .where(Request.request_id == request_id, Request.status == RequestStatus.pending)
        .values(status=new_status)
    )


def review_statement(
    db: Session,
    request_id: str,
    target_id: str,
    types: Iterable[RequestType],
) -> Executable:
    """Approve the request an admin is resolving with a direct edit."""
    request = get_request(db, request_id)
    if request.status != RequestStatus.pending:
        raise RequestNotPending(request.status.value)
    if request.request_type not in tuple(types) or request.subject_id != target_id:
        raise Conflict("Reviewed request does not belong to this entity")
    return status_statement(request_id, RequestStatus.approved)


def run_with_status_flip(db: Session, request_id: str, flip: Executable, statements: list[Executable]) -> None:
    """Run ``statements`` only if ``flip`` still finds the request PENDING.

    The flip executes first inside the batch, so a request resolved by
    someone else since it was read leaves every entity untouched.
    """
    try:
        run_batch(db, statements, guard=flip)
    except GuardFailed:
        raise RequestNotPending(get_request(db, request_id).status.value) from None
