"""Request API routes: admin review queue and approve/reject."""
import logging
from typing import Literal, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from chapterhouse.auth import Actor, AdminPolicy, get_admin_policy, get_current_actor, require_actor
from chapterhouse.database import get_db
from chapterhouse.schemas.request import RequestOut
from chapterhouse.services import request_service
from chapterhouse.services.approval_service import ApprovalService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_approval_service(
    db: Session = Depends(get_db),
    policy: AdminPolicy = Depends(get_admin_policy),
) -> ApprovalService:
    return ApprovalService(db, policy)


@router.get("/", response_model=list[RequestOut])
def list_pending_requests(
    order: Literal["newest", "oldest"] = "newest",
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    """Admin queue: every pending request with its submitter."""
    policy.require_admin(actor)
    return request_service.list_pending(db, newest_first=(order == "newest"))


@router.get("/mine", response_model=list[RequestOut])
def list_my_requests(actor: Actor = Depends(require_actor), db: Session = Depends(get_db)):
    """The actor's own pending requests."""
    return request_service.list_pending(db, submitter_id=actor.user_id)


@router.post("/{request_id}/approve", response_model=RequestOut)
def approve_request(
    request_id: str,
    actor: Optional[Actor] = Depends(get_current_actor),
    service: ApprovalService = Depends(get_approval_service),
):
    """Apply the proposal and mark it approved, atomically."""
    return service.approve(actor, request_id)


@router.post("/{request_id}/reject", response_model=RequestOut)
def reject_request(
    request_id: str,
    actor: Optional[Actor] = Depends(get_current_actor),
    service: ApprovalService = Depends(get_approval_service),
):
    """Reject a pending request; the target entity is untouched."""
    return service.reject(actor, request_id)
