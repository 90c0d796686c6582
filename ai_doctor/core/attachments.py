import logging
import mimetypes
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Iterable, List, Optional, Tuple

from .errors import AttachmentRejected, EncodingError
from .models import Attachment


logger = logging.getLogger(__name__)

ALLOWED_MEDIA_TYPES = ("image/jpeg", "image/png", "application/pdf")
MAX_ATTACHMENT_BYTES = 10 * 1024 * 1024


def _declared_size(upload: Any) -> int:
    size = getattr(upload, "size", None)
    if size is None:
        size = len(upload.getvalue())
    return int(size)


def is_acceptable(upload: Any) -> bool:
    return upload.type in ALLOWED_MEDIA_TYPES and _declared_size(upload) < MAX_ATTACHMENT_BYTES


def filter_uploads(uploads: Iterable[Any]) -> Tuple[List[Any], Optional[AttachmentRejected]]:
    """
    Split a batch of uploads into the accepted ones and a single aggregate
    rejection. Invalid files are dropped without per-file errors; the rest of
    the batch is still accepted.
    """
    accepted: List[Any] = []
    rejected: List[str] = []
    for upload in uploads:
        if is_acceptable(upload):
            accepted.append(upload)
        else:
            rejected.append(getattr(upload, "name", "?"))

    if rejected:
        logger.info("Dropped %d invalid upload(s): %s", len(rejected), rejected)
        return accepted, AttachmentRejected(rejected)
    return accepted, None


def _read_all(upload: Any) -> bytes:
    if hasattr(upload, "getvalue"):
        return upload.getvalue()
    if hasattr(upload, "seek"):
        upload.seek(0)
    return upload.read()


def encode_attachment(upload: Any) -> Attachment:
    """Read the whole file and tag it with its declared media type."""
    name = getattr(upload, "name", "attachment")
    try:
        data = _read_all(upload)
    except (OSError, ValueError) as e:
        raise EncodingError(f"Could not read file '{name}': {e}") from e
    if data is None:
        raise EncodingError(f"Could not read file '{name}': no content")
    return Attachment(name=name, media_type=upload.type, payload=bytes(data))


def encode_attachments(uploads: Iterable[Any], max_workers: int = 4) -> List[Attachment]:
    # map() yields in submission order regardless of which read finishes first
    uploads = list(uploads)
    if not uploads:
        return []
    with ThreadPoolExecutor(max_workers=min(max_workers, len(uploads))) as pool:
        return list(pool.map(encode_attachment, uploads))


class LocalUpload:
    """A file on disk shaped like a Streamlit UploadedFile (name, type, size, read)."""

    def __init__(self, path, media_type: Optional[str] = None):
        self.path = Path(path)
        self.name = self.path.name
        self.type = media_type or mimetypes.guess_type(self.name)[0] or "application/octet-stream"
        self.size = self.path.stat().st_size

    def read(self) -> bytes:
        return self.path.read_bytes()

    def __repr__(self) -> str:
        return f"LocalUpload({self.name!r}, {self.type!r}, {self.size})"
