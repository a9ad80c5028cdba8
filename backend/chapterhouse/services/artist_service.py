"""Artist entry points."""
import logging
import uuid
from typing import Optional

from sqlalchemy import delete, insert
from sqlalchemy.orm import Session

from chapterhouse.auth import Actor, AdminPolicy
from chapterhouse.database import run_batch
from chapterhouse.errors import Forbidden, NotFound, Unauthorized
from chapterhouse.models.artist import Artist, ArtistStatus, ImagePreference
from chapterhouse.models.request import ARTIST_REQUEST_TYPES, Request, RequestType
from chapterhouse.models.user import PERFORMING_ROLES
from chapterhouse.schemas.artist import ArtistCreate, ArtistEdit
from chapterhouse.schemas.payloads import ArtistAddPayload, ArtistEditPayload
from chapterhouse.services import cleanup_service, request_service
from chapterhouse.services.approval_service import artist_edit_statements
from chapterhouse.services.user_service import get_user

logger = logging.getLogger(__name__)


def get_artist(db: Session, artist_id: str) -> Artist:
    artist = db.query(Artist).filter(Artist.artist_id == artist_id).first()
    if not artist:
        raise NotFound("Artist not found")
    return artist


def create_artist(db: Session, actor: Optional[Actor], fields: ArtistCreate) -> tuple[str, Request]:
    """Insert a PENDING artist and its ARTIST_ADD request in one batch.

    Only musicians and chapter directors may create artists. The owner is
    always a member.
    """
    if actor is None:
        raise Unauthorized()
    user = get_user(db, actor.user_id)
    if user.role not in PERFORMING_ROLES:
        raise Forbidden("Musicians only")

    artist_id = str(uuid.uuid4())
    members = list(dict.fromkeys([user.user_id, *fields.members]))
    payload = ArtistAddPayload(
        name=fields.name,
        location=fields.location,
        bio=fields.bio,
        chapters=fields.chapters,
        members=members,
    )
    request_id, request_insert = request_service.build_create_statement(
        RequestType.artist_add, artist_id, actor, payload,
    )
    run_batch(db, [
        insert(Artist).values(
            artist_id=artist_id,
            name=fields.name,
            location=fields.location,
            bio=fields.bio,
            image=user.image,
            image_preference=ImagePreference.custom,
            owner_id=user.user_id,
            status=ArtistStatus.pending,
            members=members,
            chapters=fields.chapters,
        ),
        request_insert,
    ])
    logger.info("Artist %s submitted by user %s (request %s)", artist_id, user.user_id, request_id)
    return artist_id, request_service.get_request(db, request_id)


def submit_artist_edit(
    db: Session,
    actor: Optional[Actor],
    artist_id: str,
    fields: ArtistEdit,
    policy: AdminPolicy,
) -> Optional[Request]:
    """Edit an artist: admins acting as admins write directly, members propose.

    Returns the new request, or None when the edit was applied directly.
    """
    if actor is None:
        raise Unauthorized()
    artist = get_artist(db, artist_id)
    is_admin = policy.is_admin(actor)
    if not is_admin and actor.user_id not in (artist.members or []):
        raise Forbidden("Only members may edit this artist")

    payload = ArtistEditPayload(**fields.model_dump(exclude={"admin_action", "review_request_id"}))
    if is_admin and fields.admin_action:
        statements = artist_edit_statements(artist_id, payload)
        if fields.review_request_id:
            flip = request_service.review_statement(db, fields.review_request_id, artist_id, ARTIST_REQUEST_TYPES)
            request_service.run_with_status_flip(db, fields.review_request_id, flip, statements)
        else:
            run_batch(db, statements)
        logger.info("Admin %s edited artist %s directly", actor.email, artist_id)
        return None

    request_service.ensure_none_pending(db, ARTIST_REQUEST_TYPES, artist_id)
    return request_service.create(db, RequestType.artist_edit, artist_id, actor, payload)


def leave_artist(db: Session, actor: Optional[Actor], artist_id: str) -> None:
    if actor is None:
        raise Unauthorized()
    artist = get_artist(db, artist_id)
    if actor.user_id not in (artist.members or []):
        raise Forbidden("Not a member of this artist")
    run_batch(db, cleanup_service.artist_departure_statements(artist, actor.user_id))
    logger.info("User %s left artist %s", actor.user_id, artist_id)


def delete_artist(db: Session, actor: Optional[Actor], artist_id: str, policy: AdminPolicy) -> None:
    if actor is None:
        raise Unauthorized()
    artist = get_artist(db, artist_id)
    if not policy.is_admin(actor) and actor.user_id != artist.owner_id:
        raise Forbidden("Only the owner or an admin may delete this artist")
    run_batch(db, [
        delete(Artist).where(Artist.artist_id == artist_id),
        delete(Request).where(Request.target_id == artist_id),
    ])
    logger.info("Artist %s deleted by %s", artist_id, actor.user_id)


def list_artists(db: Session, include_pending: bool = False) -> list[Artist]:
    query = db.query(Artist)
    if not include_pending:
        query = query.filter(Artist.status == ArtistStatus.approved)
    return query.order_by(Artist.name).all()
