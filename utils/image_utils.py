"""Data-URL codec for signature images."""
import base64
import binascii
import hashlib
import io
from typing import Tuple

from PIL import Image, UnidentifiedImageError

PNG_DATA_URL_PREFIX = "data:image/png;base64,"
ALLOWED_SIGNATURE_FORMATS = {"image/png": "PNG", "image/jpeg": "JPEG"}
SIGNATURE_FILE_EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg"}
DEFAULT_MAX_SIGNATURE_BYTES = 2 * 1024 * 1024  # 2 MB


class SignatureDecodeError(ValueError):
    """Raised when a signature string is not a usable encoded raster image."""


def _fail_if(condition: bool, message: str) -> None:
    if condition:
        raise SignatureDecodeError(message)


def compute_hash(content: bytes) -> str:
    return hashlib.sha256(content).hexdigest()


def encode_png_data_url(png_bytes: bytes) -> str:
    return PNG_DATA_URL_PREFIX + base64.b64encode(png_bytes).decode("ascii")


def split_data_url(value: str) -> Tuple[str, str]:
    """Return ``(mime_type, base64_payload)`` for a ``data:<mime>;base64,`` string."""
    _fail_if(not value, "Empty signature")
    _fail_if(not value.startswith("data:") or "," not in value, "Not a data URL")
    header, payload = value.split(",", 1)
    meta = header[len("data:"):].split(";")
    _fail_if("base64" not in meta[1:], "Data URL is not base64 encoded")
    return meta[0].lower(), payload


def decode_data_url(value: str, max_bytes: int = DEFAULT_MAX_SIGNATURE_BYTES) -> bytes:
    """Decode a signature data URL to the raw image bytes, verifying the image."""
    mime_type, payload = split_data_url(value)
    _fail_if(mime_type not in ALLOWED_SIGNATURE_FORMATS, "Unsupported image type")
    try:
        content = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise SignatureDecodeError("Invalid base64 image payload") from exc
    _fail_if(not content, "Empty image payload")
    _fail_if(len(content) > max_bytes, "Signature exceeds size limits")

    try:
        with Image.open(io.BytesIO(content)) as img:
            detected = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise SignatureDecodeError("Image validation failed") from exc
    _fail_if(detected != ALLOWED_SIGNATURE_FORMATS[mime_type], "Image data does not match its declared type")
    return content


def image_size(content: bytes) -> Tuple[int, int]:
    with Image.open(io.BytesIO(content)) as img:
        return img.size
