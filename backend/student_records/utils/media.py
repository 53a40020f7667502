"""Media type detection for stored student images."""

import io

from PIL import Image, UnidentifiedImageError

DEFAULT_MEDIA_TYPE = "application/octet-stream"


def guess_image_media_type(payload: bytes) -> str:
    """Return the MIME type Pillow recognizes for `payload`.

    Only the image header is read. Anything Pillow cannot identify is
    served as `application/octet-stream`.
    """
    try:
        with Image.open(io.BytesIO(payload)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError):
        return DEFAULT_MEDIA_TYPE
    return Image.MIME.get(fmt, DEFAULT_MEDIA_TYPE) if fmt else DEFAULT_MEDIA_TYPE
