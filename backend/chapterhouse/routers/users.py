"""User API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from chapterhouse.auth import Actor, AdminPolicy, get_admin_policy, get_current_actor
from chapterhouse.database import get_db
from chapterhouse.errors import Conflict
from chapterhouse.models.user import Role, User
from chapterhouse.schemas.request import EntityView, RequestOut
from chapterhouse.schemas.user import AdminUserUpdate, ProfileEdit, RoleChangeSubmit, UserCreate, UserOut, UserSetup
from chapterhouse.services import merge_service, user_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Register a user on first sign-in. Everyone starts as Audience."""
    if db.query(User).filter(User.email == payload.email).first():
        raise Conflict("A user with this email already exists")
    user = User(name=payload.name, email=payload.email, image=payload.image, role=Role.audience, chapters=[])
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created user %s (%s)", user.user_id, user.email)
    return user


@router.get("/", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)):
    """List all users as they currently are."""
    return db.query(User).order_by(User.name).all()


@router.get("/{user_id}", response_model=EntityView[UserOut])
def get_user(
    user_id: str,
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    """Fetch a user, with any pending proposal overlaid for admins and the submitter."""
    user = user_service.get_user(db, user_id)
    return merge_service.user_view(db, user, actor, policy)


@router.put("/me/profile", response_model=Optional[RequestOut])
def submit_profile_edit(
    payload: ProfileEdit,
    response: Response,
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    """Propose a profile edit (202 + request), or apply it directly for admins (200)."""
    request = user_service.submit_profile_edit(db, actor, payload, policy)
    if request is not None:
        response.status_code = status.HTTP_202_ACCEPTED
    return request


@router.post("/me/role-change", response_model=RequestOut, status_code=status.HTTP_202_ACCEPTED)
def submit_role_change(
    payload: RoleChangeSubmit,
    actor: Optional[Actor] = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Ask an admin for a new role."""
    return user_service.submit_role_change(db, actor, payload)


@router.post("/me/setup", response_model=Optional[RequestOut])
def complete_setup(
    payload: UserSetup,
    response: Response,
    actor: Optional[Actor] = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Save first-run profile basics; performing roles are filed for approval."""
    request = user_service.complete_setup(db, actor, payload)
    if request is not None:
        response.status_code = status.HTTP_202_ACCEPTED
    return request


@router.put("/{user_id}", response_model=UserOut)
def admin_update_user(
    user_id: str,
    payload: AdminUserUpdate,
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    """Admin direct edit, including role transitions and their side effects."""
    return user_service.admin_update_user(db, actor, user_id, payload, policy)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    """Delete a user and everything that hangs off them."""
    user_service.delete_user(db, actor, user_id, policy)
