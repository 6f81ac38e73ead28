# Property listing endpoints: browse, search, and multipart upload with a token reward.
# Uploads are open to any registered user id; there is no authentication layer.
import logging
import math
import os
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import JSONResponse
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, rate_limit, schemas, storage
from .users import MAX_ID

router = APIRouter()
logger = logging.getLogger("propfinder.properties")

# Tokens credited per successful upload; configurable via UPLOAD_REWARD_TOKENS.
UPLOAD_REWARD_TOKENS = int(os.getenv("UPLOAD_REWARD_TOKENS", "10"))
# Cap on the summed size of all files in one upload (default 500 MiB).
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(500 * 1024 * 1024)))

REWARD_TRANSACTION_TYPE = "upload_reward"

# Matches the String(255) title/location columns
MAX_TEXT_LENGTH = 255
# Bedroom/bathroom counts are 32-bit INTEGER columns
MAX_ROOM_COUNT = 2**31 - 1


# ----------------
# Helpers
# ----------------
def _failure(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=schemas.UploadFailure(message=message).model_dump(),
        headers=headers,
    )


# Form fields arrive as text; unparsable or out-of-range numbers are treated as absent rather than rejected.
def _parse_int(val: Optional[str], low: int, high: int) -> Optional[int]:
    if val is None:
        return None
    try:
        parsed = int(val.strip())
    except ValueError:
        return None
    return parsed if low <= parsed <= high else None


def _parse_float(val: Optional[str]) -> Optional[float]:
    if val is None:
        return None
    try:
        parsed = float(val.strip())
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _hash_exists(db: Session, content_hash: str) -> bool:
    found = (
        db.query(models.MediaUpload.id)
        .filter(models.MediaUpload.content_hash == content_hash)
        .first()
    )
    return found is not None


def _award_tokens(db: Session, user_id: int, property_id: int, amount: int) -> None:
    """
    Credit `amount` to the user and record the ledger entry.

    The increment runs as a single UPDATE so concurrent rewards cannot overwrite each other.
    Caller owns the transaction.
    """
    db.query(models.User).filter(models.User.id == user_id).update(
        {models.User.token_balance: models.User.token_balance + amount},
        synchronize_session=False,
    )
    db.add(
        models.TokenTransaction(
            user_id=user_id,
            property_id=property_id,
            amount=amount,
            transaction_type=REWARD_TRANSACTION_TYPE,
        )
    )


# ----------------
# Routes
# ----------------
@router.get("/properties", response_model=List[schemas.PropertyRead])
def list_properties(db: Session = Depends(get_db)):
    """List every property, newest first."""
    return (
        db.query(models.Property)
        .order_by(models.Property.created_at.desc(), models.Property.id.desc())
        .all()
    )


@router.post("/search", response_model=List[schemas.PropertyRead])
def search_properties(payload: schemas.SearchQuery, db: Session = Depends(get_db)):
    """
    Case-insensitive substring search over title, location and description.

    An empty query matches every property.
    """
    pattern = f"%{_escape_like(payload.query.lower())}%"
    items = (
        db.query(models.Property)
        .filter(
            or_(
                func.lower(models.Property.title).like(pattern, escape="\\"),
                func.lower(models.Property.location).like(pattern, escape="\\"),
                func.lower(func.coalesce(models.Property.description, "")).like(pattern, escape="\\"),
            )
        )
        .order_by(models.Property.created_at.desc(), models.Property.id.desc())
        .all()
    )
    logger.info("Search '%s' found %d results", payload.query, len(items))
    return items


@router.post(
    "/upload-property",
    response_model=schemas.UploadResponse,
    responses={
        400: {"model": schemas.UploadFailure},
        404: {"model": schemas.UploadFailure},
        413: {"model": schemas.UploadFailure},
        429: {"model": schemas.UploadFailure},
        500: {"model": schemas.UploadFailure},
    },
    status_code=status.HTTP_200_OK,
)
def upload_property(
    request: Request,
    user_id: Optional[str] = Form(None),
    title: str = Form(""),
    location: str = Form(""),
    price: Optional[str] = Form(None),
    description: str = Form(""),
    bedrooms: Optional[str] = Form(None),
    bathrooms: Optional[str] = Form(None),
    area_sqm: Optional[str] = Form(None),
    files: List[UploadFile] = File(default=[]),
    db: Session = Depends(get_db),
):
    """
    Create a property from a multipart form, store its media files and reward the uploader.

    Reward rules:
    - UPLOAD_REWARD_TOKENS per successful upload.
    - Withheld when files were attached and every one of them was uploaded before (same sha256).

    Property, media rows, balance increment and ledger row commit together; on a database
    error nothing is persisted and the files written by this request are removed.

    Uploads are rate limited per client IP and user id; every failure, 429 included,
    answers with {success: false, message}.
    """
    uid = _parse_int(user_id, 1, MAX_ID)
    try:
        rate_limit.hit("upload", rate_limit.upload_identity(request, uid))
    except rate_limit.RateLimited as exc:
        return _failure(
            status.HTTP_429_TOO_MANY_REQUESTS,
            f"Too many uploads, retry in {exc.retry_after} seconds",
            headers={"Retry-After": str(exc.retry_after)},
        )

    if uid is None:
        return _failure(status.HTTP_400_BAD_REQUEST, "user_id required")
    if db.get(models.User, uid) is None:
        return _failure(status.HTTP_404_NOT_FOUND, "User not found")

    title = title.strip()
    location = location.strip()
    if not title or not location:
        return _failure(status.HTTP_400_BAD_REQUEST, "title and location are required")
    if len(title) > MAX_TEXT_LENGTH or len(location) > MAX_TEXT_LENGTH:
        return _failure(
            status.HTTP_400_BAD_REQUEST,
            f"title and location must be at most {MAX_TEXT_LENGTH} characters",
        )

    # Read every body before touching disk so the size cap rejects the request as a whole.
    # Browsers send an unnamed empty part when the file input is left blank; skip those.
    payloads = []
    total_bytes = 0
    for upload in files:
        if not upload.filename:
            continue
        data = upload.file.read()
        total_bytes += len(data)
        if total_bytes > MAX_UPLOAD_BYTES:
            return _failure(
                status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                f"Upload exceeds {MAX_UPLOAD_BYTES} bytes",
            )
        payloads.append((upload.filename, data))

    stored: List[storage.StoredFile] = []
    try:
        for filename, data in payloads:
            stored.append(storage.save_file(filename, data))
    except OSError:
        storage.remove_files(f.path for f in stored)
        logger.exception("Failed to store upload files (user_id=%s)", uid)
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to store uploaded files")

    cover = storage.build_cover(stored)
    written_paths = [f.path for f in stored] + (cover.generated_paths if cover else [])
    prop = models.Property(
        user_id=uid,
        title=title,
        location=location,
        price=_parse_float(price) or 0.0,
        description=description.strip() or None,
        bedrooms=_parse_int(bedrooms, 0, MAX_ROOM_COUNT),
        bathrooms=_parse_int(bathrooms, 0, MAX_ROOM_COUNT),
        area_sqm=_parse_float(area_sqm),
        image_thumb_webp=cover.thumb_url if cover else None,
        image_large_webp=cover.large_url if cover else None,
    )

    try:
        db.add(prop)
        db.flush()

        # Duplicates are checked against stored rows and against earlier files in this request
        seen_hashes = set()
        media_rows: List[models.MediaUpload] = []
        for f in stored:
            is_original = f.content_hash not in seen_hashes and not _hash_exists(db, f.content_hash)
            seen_hashes.add(f.content_hash)
            row = models.MediaUpload(
                property_id=prop.id,
                user_id=uid,
                file_path=f.path,
                file_type=f.file_type,
                content_hash=f.content_hash,
                file_size=f.size,
                is_original=is_original,
                tokens_earned=0,
            )
            db.add(row)
            media_rows.append(row)

        originals = [m for m in media_rows if m.is_original]
        tokens = UPLOAD_REWARD_TOKENS if (originals or not media_rows) else 0
        if tokens:
            if originals:
                originals[0].tokens_earned = tokens
            _award_tokens(db, uid, prop.id, tokens)

        db.flush()
        property_id = prop.id
        media_ids = [m.id for m in media_rows]
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        storage.remove_files(written_paths)
        logger.exception("Property upload failed (user_id=%s)", uid)
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to create property")

    logger.info(
        "Property uploaded: %s - %s tokens earned",
        property_id,
        tokens,
        extra={"user_id": uid, "files": len(media_ids), "duplicates": len(media_rows) - len(originals)},
    )
    return schemas.UploadResponse(
        property_id=property_id,
        media_ids=media_ids,
        tokens_earned=tokens,
        message=f"Property created! Earned {tokens} tokens",
    )
