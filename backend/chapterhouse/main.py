"""FastAPI application entry point."""
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from chapterhouse.config import settings
from chapterhouse.database import Base, engine

# Import routers
from chapterhouse.routers import users, chapters, artists, bookings, events, requests, images

# Import all models so Base.metadata knows about them
from chapterhouse.models.user import User                     # noqa: F401
from chapterhouse.models.chapter import Chapter               # noqa: F401
from chapterhouse.models.artist import Artist                 # noqa: F401
from chapterhouse.models.booking import Booking, BookingDate  # noqa: F401
from chapterhouse.models.request import Request               # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Chapterhouse",
    description="Membership backend for chapters, artists and bookings with admin-moderated change requests",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(chapters.router, prefix="/api/chapters", tags=["Chapters"])
app.include_router(artists.router, prefix="/api/artists", tags=["Artists"])
app.include_router(bookings.router, prefix="/api/bookings", tags=["Bookings"])
app.include_router(events.router, prefix="/api/events", tags=["Events"])
app.include_router(requests.router, prefix="/api/requests", tags=["Requests"])
app.include_router(images.router, prefix="/api/images", tags=["Images"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
