"""Deferred image loading and raw upload decoding.

Images can be large, so most code paths only hold a `LazyImage` that
knows which student the image belongs to. The bytes are fetched from
the store the first time `resolve()` is called and memoized for the
lifetime of the handle.
"""

import enum
from typing import BinaryIO, Optional

DEFAULT_CHUNK_SIZE = 64 * 1024


class ImageState(enum.Enum):
    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"


class LazyImage:
    """Image payload bound to a student id and fetched on first use.

    Construction performs no I/O. `resolve()` returns the stored bytes or
    `None` when the student has no image; a zero-length payload counts as
    no image. Store errors propagate and leave the handle unresolved, so
    a failed fetch is never mistaken for a missing image.
    """

    def __init__(self, student_id: int, store):
        self.student_id = student_id
        self._store = store
        self._state = ImageState.UNRESOLVED
        self._payload: Optional[bytes] = None

    @property
    def state(self) -> ImageState:
        return self._state

    @property
    def is_resolved(self) -> bool:
        return self._state is ImageState.RESOLVED

    def resolve(self) -> Optional[bytes]:
        if self._state is ImageState.RESOLVED:
            return self._payload
        payload = self._store.get_image(self.student_id)
        self._payload = bytes(payload) if payload else None
        self._state = ImageState.RESOLVED
        return self._payload

    def __repr__(self) -> str:
        return f"LazyImage(student_id={self.student_id!r}, state={self._state.value})"


def decode_image_payload(
    stream: Optional[BinaryIO],
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    max_bytes: Optional[int] = None,
) -> Optional[bytes]:
    """Read a binary stream to the end and return its bytes.

    The stream is consumed as raw bytes; nothing is decoded to text, so
    values above 0x7F survive unchanged. Returns `None` rather than
    `b""` when the stream is missing or empty, because callers treat an
    empty upload as "no image".

    With `max_bytes` set, reading stops after `max_bytes + 1` bytes so an
    oversized upload is never buffered in full; a result longer than
    `max_bytes` means the stream exceeded the limit.
    """
    if stream is None:
        return None
    limit = None if max_bytes is None else max_bytes + 1
    buf = bytearray()
    while limit is None or len(buf) < limit:
        size = chunk_size if limit is None else min(chunk_size, limit - len(buf))
        chunk = stream.read(size)
        if not chunk:
            break
        buf.extend(chunk)
    if not buf:
        return None
    return bytes(buf)
