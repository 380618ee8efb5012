import base64
import io
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError

from krops.errors import InvalidImageError

MAX_EDGE = 1600
JPEG_QUALITY = 90


def strip_data_uri(uri: str) -> str:
    """Return the base64 payload of a data URI (everything after the first comma)."""
    _, sep, payload = uri.partition(",")
    return payload if sep else uri


def _encode_jpeg(pil_img: Image.Image, quality: int = JPEG_QUALITY) -> bytes:
    buf = io.BytesIO()
    pil_img.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


@dataclass(frozen=True)
class CapturedImage:
    """A crop photo normalised to JPEG and held as a data URI."""

    data_uri: str

    @classmethod
    def from_bytes(cls, raw: bytes) -> "CapturedImage":
        try:
            img = Image.open(io.BytesIO(raw))
            img = ImageOps.exif_transpose(img).convert("RGB")
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidImageError(f"Could not read image: {e}") from e

        img.thumbnail((MAX_EDGE, MAX_EDGE))
        encoded = base64.b64encode(_encode_jpeg(img)).decode("ascii")
        return cls(f"data:image/jpeg;base64,{encoded}")

    @classmethod
    def from_path(cls, path: str) -> "CapturedImage":
        with open(path, "rb") as f:
            return cls.from_bytes(f.read())

    @property
    def payload(self) -> str:
        return strip_data_uri(self.data_uri)

    def payload_bytes(self) -> bytes:
        return base64.b64decode(self.payload)
