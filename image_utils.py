import base64
import logging
from io import BytesIO

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}
ALLOWED_VIDEO_TYPES = {"video/mp4", "video/webm", "video/quicktime"}


class InvalidUpload(ValueError):
    pass


def compress_image(data: bytes, max_width: int = 800, max_height: int = 800, quality: int = 70) -> bytes:
    """
    Shrinks an image to fit within max_width x max_height (aspect ratio kept)
    and re-encodes it as JPEG so it fits the sheet endpoint's payload limits.
    """
    try:
        with Image.open(BytesIO(data)) as img:
            if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
                img = img.convert('RGBA')
                background = Image.new('RGB', img.size, (255, 255, 255))
                background.paste(img, mask=img.getchannel('A'))
                img = background

            img.thumbnail((max_width, max_height))
            output_buffer = BytesIO()
            img.convert('RGB').save(output_buffer, "JPEG", quality=quality)
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidUpload("The uploaded file is not a readable image.") from e

    compressed = output_buffer.getvalue()
    logger.debug(f"Compressed image from {len(data)} to {len(compressed)} bytes")
    return compressed


def to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode('ascii')


def read_upload(file_storage, max_bytes: int, allow_video: bool = False):
    """Returns (bytes, mime_type) for a werkzeug FileStorage, enforcing size and type."""
    if file_storage is None or not file_storage.filename:
        raise InvalidUpload("No file was uploaded.")

    mime_type = (file_storage.mimetype or "").lower()
    allowed = ALLOWED_IMAGE_TYPES | (ALLOWED_VIDEO_TYPES if allow_video else set())
    if mime_type not in allowed:
        raise InvalidUpload(f"Unsupported file type: {mime_type or 'unknown'}")

    data = file_storage.read(max_bytes + 1)
    if not data:
        raise InvalidUpload("The uploaded file is empty.")
    if len(data) > max_bytes:
        raise InvalidUpload(f"The uploaded file exceeds {max_bytes} bytes.")
    return data, mime_type
