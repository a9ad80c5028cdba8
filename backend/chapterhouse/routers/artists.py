"""Artist API routes."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from chapterhouse.auth import Actor, AdminPolicy, get_admin_policy, get_current_actor
from chapterhouse.database import get_db
from chapterhouse.schemas.artist import ArtistCreate, ArtistEdit, ArtistOut
from chapterhouse.schemas.request import EntityView, RequestOut
from chapterhouse.services import artist_service, merge_service

logger = logging.getLogger(__name__)
router = APIRouter()


class ArtistSubmitted(BaseModel):
    artist_id: str
    request: RequestOut


@router.post("/", response_model=ArtistSubmitted, status_code=status.HTTP_202_ACCEPTED)
def create_artist(
    payload: ArtistCreate,
    actor: Optional[Actor] = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Submit a new artist for approval."""
    artist_id, request = artist_service.create_artist(db, actor, payload)
    return ArtistSubmitted(artist_id=artist_id, request=RequestOut.model_validate(request))


@router.get("/", response_model=list[EntityView[ArtistOut]])
def list_artists(
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    """Approved artists; admins also see pending ones."""
    artists = artist_service.list_artists(db, include_pending=policy.is_admin(actor))
    return [merge_service.artist_view(db, a, actor, policy) for a in artists]


@router.get("/{artist_id}", response_model=EntityView[ArtistOut])
def get_artist(
    artist_id: str,
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    artist = artist_service.get_artist(db, artist_id)
    return merge_service.artist_view(db, artist, actor, policy)


@router.put("/{artist_id}", response_model=Optional[RequestOut])
def edit_artist(
    artist_id: str,
    payload: ArtistEdit,
    response: Response,
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    """Propose an edit (202 + request), or apply it directly as an admin action (200)."""
    request = artist_service.submit_artist_edit(db, actor, artist_id, payload, policy)
    if request is not None:
        response.status_code = status.HTTP_202_ACCEPTED
    return request


@router.post("/{artist_id}/leave", status_code=status.HTTP_204_NO_CONTENT)
def leave_artist(
    artist_id: str,
    actor: Optional[Actor] = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    artist_service.leave_artist(db, actor, artist_id)


@router.delete("/{artist_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_artist(
    artist_id: str,
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    artist_service.delete_artist(db, actor, artist_id, policy)
