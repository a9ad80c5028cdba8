"""Public events feed: booking dates an admin has published."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from chapterhouse.database import get_db
from chapterhouse.schemas.booking import BookingDateOut
from chapterhouse.services import booking_service

router = APIRouter()


@router.get("/", response_model=list[BookingDateOut])
def list_public_events(db: Session = Depends(get_db)):
    return booking_service.list_public_dates(db)
