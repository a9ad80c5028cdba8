"""Image upload and serving, backed by the blob store."""
import logging
from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel

from chapterhouse.auth import Actor, require_actor
from chapterhouse.errors import NotFound, ValidationFailed
from chapterhouse.services.blob_store import LocalBlobStore, get_blob_store

logger = logging.getLogger(__name__)
router = APIRouter()


class UploadOut(BaseModel):
    url: str


@router.post("/", response_model=UploadOut, status_code=status.HTTP_201_CREATED)
async def upload_image(
    request: Request,
    actor: Actor = Depends(require_actor),
    store: LocalBlobStore = Depends(get_blob_store),
):
    """Store the raw request body; the returned URL goes into edits and proposals."""
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith("image/"):
        raise ValidationFailed("Only image uploads are accepted")
    body = await request.body()
    if not body:
        raise ValidationFailed("Empty upload")
    url = store.put(body, content_type)
    logger.info("User %s uploaded %s", actor.user_id, url)
    return UploadOut(url=url)


@router.get("/{key}")
def get_image(key: str, store: LocalBlobStore = Depends(get_blob_store)):
    found = store.get(key)
    if found is None:
        raise NotFound("Image not found")
    data, content_type = found
    return Response(content=data, media_type=content_type)
