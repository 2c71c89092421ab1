"""Utility modules for logging and image handling."""

from gemini_studio.utils.images import (
    get_file_extension,
    get_mime_type,
    load_image_as_base64,
    parse_data_uri,
    save_results,
    to_data_uri,
)
from gemini_studio.utils.logging import get_logger, mask_credential, setup_logging

__all__ = [
    "get_file_extension",
    "get_logger",
    "get_mime_type",
    "load_image_as_base64",
    "mask_credential",
    "parse_data_uri",
    "save_results",
    "setup_logging",
    "to_data_uri",
]
