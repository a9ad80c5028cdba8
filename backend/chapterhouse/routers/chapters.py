"""Chapter API routes. Writes are admin-only and applied directly."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from chapterhouse.auth import Actor, AdminPolicy, get_admin_policy, get_current_actor
from chapterhouse.database import get_db
from chapterhouse.errors import NotFound
from chapterhouse.models.chapter import Chapter
from chapterhouse.schemas.chapter import ChapterCreate, ChapterOut

logger = logging.getLogger(__name__)
router = APIRouter()


def _get_chapter(db: Session, chapter_id: str) -> Chapter:
    chapter = db.query(Chapter).filter(Chapter.chapter_id == chapter_id).first()
    if not chapter:
        raise NotFound("Chapter not found")
    return chapter


@router.post("/", response_model=ChapterOut, status_code=status.HTTP_201_CREATED)
def create_chapter(
    payload: ChapterCreate,
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    policy.require_admin(actor)
    chapter = Chapter(**payload.model_dump())
    db.add(chapter)
    db.commit()
    db.refresh(chapter)
    logger.info("Created chapter %s (%s)", chapter.chapter_id, chapter.location)
    return chapter


@router.get("/", response_model=list[ChapterOut])
def list_chapters(db: Session = Depends(get_db)):
    return db.query(Chapter).order_by(Chapter.location).all()


@router.get("/{chapter_id}", response_model=ChapterOut)
def get_chapter(chapter_id: str, db: Session = Depends(get_db)):
    return _get_chapter(db, chapter_id)


@router.put("/{chapter_id}", response_model=ChapterOut)
def update_chapter(
    chapter_id: str,
    payload: ChapterCreate,
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    policy.require_admin(actor)
    chapter = _get_chapter(db, chapter_id)
    for field, value in payload.model_dump().items():
        setattr(chapter, field, value)
    db.commit()
    db.refresh(chapter)
    logger.info("Updated chapter %s", chapter_id)
    return chapter


@router.delete("/{chapter_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_chapter(
    chapter_id: str,
    actor: Optional[Actor] = Depends(get_current_actor),
    policy: AdminPolicy = Depends(get_admin_policy),
    db: Session = Depends(get_db),
):
    policy.require_admin(actor)
    db.delete(_get_chapter(db, chapter_id))
    db.commit()
    logger.info("Deleted chapter %s", chapter_id)
