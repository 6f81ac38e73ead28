# Local media storage for uploaded property files.
# Files are content-hashed for duplicate detection and written under UPLOAD_DIR with generated names,
# so client-supplied filenames never reach the filesystem. The listing cover is rendered to WebP with Pillow.
from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, List, Optional
from uuid import uuid4

from PIL import Image, ImageOps

logger = logging.getLogger("propfinder.storage")

# Directory for stored media; served publicly under UPLOAD_URL_PREFIX
UPLOAD_DIR: str = os.getenv("UPLOAD_DIR", "./uploads")
UPLOAD_URL_PREFIX = "/uploads"

VIDEO_EXTENSIONS = {".mp4", ".mov"}

# Bounding boxes for the cover renditions; aspect ratio is kept and images are never upscaled
THUMB_SIZE = (400, 300)
LARGE_SIZE = (1600, 1200)
WEBP_QUALITY = 80


@dataclass
class StoredFile:
    """A media file persisted to disk during an upload request."""
    original_name: str
    stored_name: str
    path: str
    content_hash: str
    size: int
    file_type: str

    @property
    def url(self) -> str:
        return f"{UPLOAD_URL_PREFIX}/{self.stored_name}"


@dataclass
class Cover:
    """Listing cover URLs plus any files generated to back them."""
    thumb_url: str
    large_url: str
    generated_paths: List[str] = field(default_factory=list)


def content_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def classify(filename: str) -> str:
    """Return "video" for .mp4/.mov files, "image" for everything else."""
    _, ext = os.path.splitext(filename.lower())
    return "video" if ext in VIDEO_EXTENSIONS else "image"


def _safe_extension(filename: str) -> str:
    _, ext = os.path.splitext(os.path.basename(filename))
    ext = ext.lower()
    # keep short alphanumeric extensions only
    if len(ext) > 10 or not ext[1:].isalnum():
        return ""
    return ext


def _url_for(path: str) -> str:
    return f"{UPLOAD_URL_PREFIX}/{os.path.basename(path)}"


def save_file(filename: str, data: bytes) -> StoredFile:
    """Write `data` under UPLOAD_DIR and describe the stored file."""
    os.makedirs(UPLOAD_DIR, exist_ok=True)
    stored_name = f"{uuid4().hex}{_safe_extension(filename)}"
    path = os.path.join(UPLOAD_DIR, stored_name)
    with open(path, "wb") as fh:
        fh.write(data)
    return StoredFile(
        original_name=filename,
        stored_name=stored_name,
        path=path,
        content_hash=content_hash(data),
        size=len(data),
        file_type=classify(filename),
    )


def remove_files(paths: Iterable[str]) -> None:
    """Best-effort cleanup of files written by a request that failed to commit."""
    for path in paths:
        try:
            os.remove(path)
        except OSError as exc:
            logger.warning("Could not remove %s: %s", path, exc)


def render_webp(source: StoredFile) -> Cover:
    """
    Write thumbnail and large WebP renditions of an image next to the original.

    Raises OSError (including PIL.UnidentifiedImageError) when the file is not a decodable image;
    nothing is left on disk in that case.
    """
    stem, _ = os.path.splitext(source.stored_name)
    written: List[str] = []
    try:
        with Image.open(source.path) as img:
            # honour camera orientation, then drop palette/alpha modes WebP encodes poorly
            base = ImageOps.exif_transpose(img).convert("RGB")
        for suffix, box in (("thumb", THUMB_SIZE), ("large", LARGE_SIZE)):
            rendition = base.copy()
            rendition.thumbnail(box)
            path = os.path.join(UPLOAD_DIR, f"{stem}_{suffix}.webp")
            rendition.save(path, "WEBP", quality=WEBP_QUALITY)
            written.append(path)
    except (OSError, Image.DecompressionBombError):
        remove_files(written)
        raise
    return Cover(thumb_url=_url_for(written[0]), large_url=_url_for(written[1]), generated_paths=written)


def build_cover(files: Iterable[StoredFile]) -> Optional[Cover]:
    """
    Pick and render the listing cover.

    The first decodable image gets WebP renditions. When no image decodes (video-only uploads,
    unsupported formats) the first file's own URL is used, so any listing with media has a cover.
    """
    files = list(files)
    for f in files:
        if f.file_type != "image":
            continue
        try:
            return render_webp(f)
        except (OSError, Image.DecompressionBombError) as exc:
            logger.info("No WebP cover from %s: %s", f.original_name, exc)
    if not files:
        return None
    return Cover(thumb_url=files[0].url, large_url=files[0].url)
