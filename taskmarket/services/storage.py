import logging
import time
from typing import Optional
from urllib.parse import quote, unquote, urlparse
from uuid import uuid4

from firebase_admin import storage
from google.api_core import exceptions as google_exceptions

from taskmarket.core.constants import MAX_REEL_SIZE, REQUIRED_REELS
from taskmarket.core.errors import MarketplaceError, NotConfigured, ValidationFailed
from taskmarket.db.firebase_ops import FirebaseManager

logger = logging.getLogger(__name__)

DOWNLOAD_URL = "https://firebasestorage.googleapis.com/v0/b/{bucket}/o/{path}?alt=media&token={token}"


def validate_reel(size: int, content_type: Optional[str], slot: int) -> None:
    if slot < 0 or slot >= REQUIRED_REELS:
        raise ValidationFailed(f"Reel slot must be between 0 and {REQUIRED_REELS - 1}")
    if size > MAX_REEL_SIZE:
        raise ValidationFailed("Video file must be less than 50MB. Please compress your video or choose a smaller file.")
    if not (content_type or "").startswith("video/"):
        raise ValidationFailed("Please upload a video file")


def path_from_url(url: str) -> Optional[str]:
    """Object path from a Firebase download URL (".../o/<encoded path>?...")."""
    parts = urlparse(url).path.split("/o/", 1)
    if len(parts) != 2 or not parts[1]:
        return None
    return unquote(parts[1])


class ReelStorage:
    """Portfolio video uploads in the Firebase Storage bucket."""

    def __init__(self, bucket=None):
        self._bucket = bucket

    @property
    def bucket(self):
        if self._bucket is None:
            FirebaseManager().get_db()
            try:
                self._bucket = storage.bucket()
            except ValueError as e:
                raise NotConfigured("Firebase Storage not initialized") from e
        return self._bucket

    def upload(self, data: bytes, filename: str, content_type: Optional[str], owner_id: str, slot: int) -> str:
        validate_reel(len(data), content_type, slot)
        path = f"reels/{owner_id}/reel_{slot}_{int(time.time() * 1000)}_{filename}"
        token = str(uuid4())
        blob = self.bucket.blob(path)
        blob.metadata = {"firebaseStorageDownloadTokens": token}
        try:
            blob.upload_from_string(data, content_type=content_type)
        except google_exceptions.GoogleAPIError as e:
            logger.error("Could not upload reel %s: %s", path, e)
            raise MarketplaceError("Could not upload video") from e
        logger.info("Uploaded reel %s (%d bytes)", path, len(data))
        return DOWNLOAD_URL.format(bucket=self.bucket.name, path=quote(path, safe=""), token=token)

    def delete(self, url: str) -> None:
        """Best effort; a reel that cannot be deleted is only logged."""
        path = path_from_url(url)
        if not path:
            return
        try:
            self.bucket.blob(path).delete()
        except (google_exceptions.GoogleAPIError, NotConfigured) as e:
            logger.warning("Error deleting reel %s: %s", path, e)
