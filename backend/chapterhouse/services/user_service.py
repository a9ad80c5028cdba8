"""User entry points: profile edits, role changes, admin updates and deletion."""
import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from chapterhouse.auth import Actor, AdminPolicy
from chapterhouse.database import run_batch
from chapterhouse.errors import NotFound, Unauthorized
from chapterhouse.models.request import Request, RequestType, USER_REQUEST_TYPES
from chapterhouse.models.user import Role, User
from chapterhouse.schemas.payloads import RoleChangePayload, UserEditPayload
from chapterhouse.schemas.user import AdminUserUpdate, ProfileEdit, RoleChangeSubmit, UserSetup
from chapterhouse.services import cleanup_service, request_service
from chapterhouse.services.approval_service import user_update_statements

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFound("User not found")
    return user


def submit_profile_edit(
    db: Session,
    actor: Optional[Actor],
    fields: ProfileEdit,
    policy: AdminPolicy,
) -> Optional[Request]:
    """Propose a profile edit; administrators write their own profile directly.

    Returns the new request, or None when the edit was applied directly.
    """
    if actor is None:
        raise Unauthorized()
    user = get_user(db, actor.user_id)
    payload = UserEditPayload(**fields.model_dump())

    if policy.is_admin(actor):
        run_batch(db, user_update_statements(db, user, payload))
        logger.info("Admin %s updated own profile directly", actor.user_id)
        return None

    request_service.ensure_none_pending(db, USER_REQUEST_TYPES, user.user_id)
    return request_service.create(db, RequestType.user_edit, user.user_id, actor, payload)


def submit_role_change(db: Session, actor: Optional[Actor], fields: RoleChangeSubmit) -> Request:
    """Propose a role change for the actor. There is no direct path, even for admins."""
    if actor is None:
        raise Unauthorized()
    get_user(db, actor.user_id)
    request_service.ensure_none_pending(db, USER_REQUEST_TYPES, actor.user_id)
    payload = RoleChangePayload(role=fields.role, director_chapters=fields.director_chapters)
    return request_service.create(db, RequestType.role_change, None, actor, payload)


def complete_setup(db: Session, actor: Optional[Actor], fields: UserSetup) -> Optional[Request]:
    """First-run setup: basics are written directly, performing roles need approval."""
    if actor is None:
        raise Unauthorized()
    user = get_user(db, actor.user_id)
    if fields.role != Role.audience:
        request_service.ensure_none_pending(db, USER_REQUEST_TYPES, actor.user_id)
    run_batch(db, [
        update(User)
        .where(User.user_id == user.user_id)
        .values(location=fields.location, bio=fields.bio, chapters=fields.chapters)
    ])
    logger.info("User %s completed setup", actor.user_id)

    if fields.role == Role.audience:
        return None
    payload = RoleChangePayload(
        role=fields.role,
        location=fields.location,
        bio=fields.bio,
        chapters=fields.chapters,
        director_chapters=fields.director_chapters,
    )
    return request_service.create(db, RequestType.role_change, None, actor, payload)


def admin_update_user(
    db: Session,
    actor: Optional[Actor],
    user_id: str,
    fields: AdminUserUpdate,
    policy: AdminPolicy,
) -> User:
    """Direct admin edit, optionally resolving the request under review."""
    policy.require_admin(actor)
    user = get_user(db, user_id)
    payload = UserEditPayload(**fields.model_dump(exclude={"review_request_id"}))
    statements = user_update_statements(db, user, payload)
    if fields.review_request_id:
        flip = request_service.review_statement(db, fields.review_request_id, user_id, USER_REQUEST_TYPES)
        request_service.run_with_status_flip(db, fields.review_request_id, flip, statements)
    else:
        run_batch(db, statements)
    logger.info("Admin %s updated user %s", actor.email, user_id)
    return get_user(db, user_id)


def delete_user(db: Session, actor: Optional[Actor], user_id: str, policy: AdminPolicy) -> None:
    policy.require_admin(actor)
    user = get_user(db, user_id)
    statements = cleanup_service.user_deletion_statements(db, user)
    run_batch(db, statements)
    logger.info("Admin %s deleted user %s (%d statements)", actor.email, user_id, len(statements))
