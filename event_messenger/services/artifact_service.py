"""
Storage for submission images: upload processing and inline encoding for email
"""

import base64
import io
import logging
import os
import time
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

from event_messenger.core.config import settings
from event_messenger.core.errors import ArtifactError

logger = logging.getLogger(__name__)

MEDIA_TYPES = {
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}
DEFAULT_MEDIA_TYPE = "image/jpeg"

ALLOWED_UPLOAD_FORMATS = {"JPEG", "PNG", "GIF", "WEBP"}
JPEG_QUALITY = 85


@dataclass
class InlineImage:
    """Image content ready to be embedded in an HTML email"""
    content: bytes
    media_type: str

    @property
    def data_uri(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.media_type};base64,{encoded}"


def media_type_for(filename: str) -> str:
    ext = os.path.splitext(filename)[1].lower()
    return MEDIA_TYPES.get(ext, DEFAULT_MEDIA_TYPE)


class ArtifactStore:
    """Stored image artifacts under a single upload directory"""

    def __init__(self, upload_dir: Optional[str] = None, max_width: Optional[int] = None):
        self.upload_dir = upload_dir or settings.UPLOAD_DIR
        self.max_width = settings.MAX_IMAGE_WIDTH if max_width is None else max_width

    def path_for(self, filename: str) -> str:
        # Stored names never contain directories
        return os.path.join(self.upload_dir, os.path.basename(filename))

    def encode_inline(self, filename: str) -> InlineImage:
        """Read a stored image and return its bytes with the declared media type"""
        if not filename:
            raise ArtifactError("No image stored for this submission")
        try:
            with open(self.path_for(filename), "rb") as f:
                content = f.read()
        except OSError as e:
            raise ArtifactError(f"Could not read image file {filename}: {e}") from e
        return InlineImage(content=content, media_type=media_type_for(filename))

    def save_image(self, data: bytes, original_name: str) -> str:
        """Validate, downscale and store an uploaded image as JPEG.

        Returns the stored filename, ``{unix_ts}_{original_stem}.jpg``.
        """
        try:
            image = Image.open(io.BytesIO(data))
            image_format = image.format
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise ArtifactError(f"Could not decode image: {e}") from e

        if image_format not in ALLOWED_UPLOAD_FORMATS:
            raise ArtifactError(f"Unsupported image format: {image_format}")

        width, height = image.size
        logger.info(f"Decoded {image_format} image {width}x{height}")

        if width > self.max_width:
            new_height = max(1, (height * self.max_width) // width)
            image = image.resize((self.max_width, new_height), Image.LANCZOS)
            logger.info(f"Resized image from {width}x{height} to {self.max_width}x{new_height}")

        if image.mode != "RGB":
            image = image.convert("RGB")

        stem = os.path.splitext(os.path.basename(original_name or "upload"))[0] or "upload"
        filename = f"{int(time.time())}_{stem}.jpg"

        os.makedirs(self.upload_dir, exist_ok=True)
        path = self.path_for(filename)
        try:
            image.save(path, format="JPEG", quality=JPEG_QUALITY)
        except OSError as e:
            raise ArtifactError(f"Could not save image {filename}: {e}") from e

        logger.info(f"Saved processed image {filename} ({os.path.getsize(path) / 1024:.2f} KB)")
        return filename

    def remove(self, filename: str) -> bool:
        """Delete a stored image; missing files are not an error"""
        if not filename:
            return False
        path = self.path_for(filename)
        try:
            os.remove(path)
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            raise ArtifactError(f"Could not delete image {filename}: {e}") from e
