"""Image file helpers: base64 loading, MIME mapping and data-URIs."""

from __future__ import annotations

import base64
import binascii
import re
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gemini_studio.models import GenerationResult

MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".webp": "image/webp",
}

EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.*)$", re.DOTALL)


def get_mime_type(image_path: Path) -> str:
    """Guess the MIME type of an image from its suffix (defaults to PNG)."""
    return MIME_TYPES.get(image_path.suffix.lower(), "image/png")


def get_file_extension(mime_type: str) -> str:
    """Get file extension for a given MIME type.

    Args:
        mime_type: MIME type string (e.g., "image/png").

    Returns:
        File extension including the dot (e.g., ".png").

    """
    return EXTENSIONS.get(mime_type, ".png")


def load_image_as_base64(image_path: Path) -> tuple[bytes, str, str]:
    """Load an image file.

    Args:
        image_path: Path to the image file.

    Returns:
        Tuple of (raw_bytes, base64_encoded_data, mime_type).

    Raises:
        FileNotFoundError: If the image file doesn't exist.

    """
    if not image_path.exists():
        msg = f"Image file not found: {image_path}"
        raise FileNotFoundError(msg)

    raw = image_path.read_bytes()
    data = base64.standard_b64encode(raw).decode("utf-8")
    return raw, data, get_mime_type(image_path)


def to_data_uri(mime_type: str, data: str) -> str:
    """Build a ``data:<mime>;base64,<data>`` string."""
    return f"data:{mime_type};base64,{data}"


def parse_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a base64 data-URI into (mime_type, raw bytes).

    Raises:
        ValueError: If the string is not a base64 data-URI.

    """
    match = _DATA_URI_RE.match(uri)
    if not match:
        msg = "Not a base64 data URI"
        raise ValueError(msg)
    try:
        raw = base64.standard_b64decode(match.group("data"))
    except binascii.Error as e:
        msg = f"Invalid base64 payload in data URI: {e}"
        raise ValueError(msg) from e
    return match.group("mime"), raw


def save_results(
    result: GenerationResult,
    output_dir: Path,
    prefix: str = "generated-image",
) -> list[Path]:
    """Write each generated image to ``<prefix>-<n><ext>`` in output_dir.

    Returns:
        Paths of the written files, in result order.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    paths: list[Path] = []
    for index, uri in enumerate(result.images, 1):
        mime_type, raw = parse_data_uri(uri)
        path = output_dir / f"{prefix}-{index}{get_file_extension(mime_type)}"
        path.write_bytes(raw)
        paths.append(path)
    return paths
