"""
Twinshot Backend — Post, Feed and Upload Routes
=================================================

What:  POST /posts (daily post), GET /posts/my, GET /feed, and serving of
       stored images under /uploads.

Request Flow (POST /posts):
    1. Client sends multipart/form-data with `front_image`, `back_image` and
       an optional `caption`
    2. Both parts are read into memory (size bounded by FileService checks)
    3. PostService runs the admission rule: validate → same-day check →
       store → composite → insert
    4. 201 Created with the new post

Both file parts are declared optional so a missing one is reported as a
400 with a clear message rather than a schema error.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.dependencies import get_current_account, get_file_service
from app.exceptions import NotFoundError, ValidationError
from app.models.account import Account
from app.schemas.common import ErrorResponse
from app.schemas.post import FeedItem, PostCreatedResponse, PostResponse
from app.services.file_service import FileService, ImageUpload
from app.services.post_service import post_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Posts"])


async def _read_upload(upload: UploadFile) -> ImageUpload:
    try:
        content = await upload.read()
    finally:
        await upload.close()
    return ImageUpload(
        filename=upload.filename or "",
        content=content,
        content_length=upload.size,
    )


@router.post(
    "/posts",
    status_code=201,
    response_model=PostCreatedResponse,
    responses={
        400: {"description": "Missing or invalid image part", "model": ErrorResponse},
        401: {"description": "Not authenticated", "model": ErrorResponse},
        409: {"description": "Already posted today", "model": ErrorResponse},
        422: {"description": "Images could not be composited", "model": ErrorResponse},
    },
    summary="Create today's post",
    description=(
        "Upload the front and back captures (PNG, JPG, JPEG or WEBP). They are "
        "combined side by side into a composite. One post per account per day."
    ),
)
async def create_post(
    front_image: Optional[UploadFile] = File(default=None, description="Front camera capture"),
    back_image: Optional[UploadFile] = File(default=None, description="Back camera capture"),
    caption: Optional[str] = Form(default=None, max_length=500),
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
    files: FileService = Depends(get_file_service),
) -> PostCreatedResponse:
    if front_image is None or back_image is None:
        raise ValidationError(message="Both front and back images required")

    front = await _read_upload(front_image)
    back = await _read_upload(back_image)
    logger.info(
        "Post upload from account %s: front=%d bytes, back=%d bytes",
        account.id,
        len(front.content),
        len(back.content),
    )

    caption = caption.strip() if caption else None
    return await post_service.create_post(db, files, account.id, front, back, caption or None)


@router.get("/posts/my", response_model=List[PostResponse], summary="The caller's posts, newest first")
async def my_posts(
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> List[PostResponse]:
    return await post_service.list_own_posts(db, account.id)


@router.get("/feed", response_model=List[FeedItem], summary="Today's posts from friends")
async def feed(
    account: Account = Depends(get_current_account),
    db: AsyncSession = Depends(get_db_session),
) -> List[FeedItem]:
    return await post_service.get_feed(db, account.id)


@router.get(
    "/uploads/{file_path:path}",
    response_class=FileResponse,
    responses={
        403: {"description": "Path escapes the storage root", "model": ErrorResponse},
        404: {"description": "No such file", "model": ErrorResponse},
    },
    summary="Serve a stored capture or composite",
)
async def serve_upload(
    file_path: str,
    files: FileService = Depends(get_file_service),
) -> FileResponse:
    full_path = files.resolve(file_path)
    if not full_path.is_file():
        raise NotFoundError(resource="file", resource_id=file_path)

    # Stored files are never rewritten; the UUID name changes instead
    return FileResponse(
        full_path,
        headers={"Cache-Control": "public, max-age=31536000, immutable"},
    )
