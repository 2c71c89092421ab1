"""Tests for utility functions."""

# Bandit B101 (assert_used) is expected in test files - pytest uses assert statements

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING

import pytest

from gemini_studio.models import GenerationResult
from gemini_studio.utils.images import (
    get_file_extension,
    get_mime_type,
    load_image_as_base64,
    parse_data_uri,
    save_results,
    to_data_uri,
)
from gemini_studio.utils.logging import get_logger, mask_credential, setup_logging

if TYPE_CHECKING:
    from pathlib import Path


class TestLoadImageAsBase64:
    """Tests for load_image_as_base64 function."""

    def test_load_png_image(self, sample_image_path: Path, sample_image_bytes: bytes) -> None:
        raw, data, mime_type = load_image_as_base64(sample_image_path)

        assert raw == sample_image_bytes
        assert mime_type == "image/png"
        assert base64.standard_b64decode(data) == sample_image_bytes

    def test_load_jpeg_image(self, tmp_path: Path, sample_image_bytes: bytes) -> None:
        """Test loading a JPEG image (using PNG bytes, just testing extension)."""
        image_path = tmp_path / "image.JPEG"
        image_path.write_bytes(sample_image_bytes)

        _, _, mime_type = load_image_as_base64(image_path)
        assert mime_type == "image/jpeg"

    def test_load_missing_image_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_image_as_base64(tmp_path / "nonexistent.png")


class TestMimeMapping:
    """Tests for MIME type and extension mapping."""

    @pytest.mark.parametrize(
        ("mime_type", "extension"),
        [
            ("image/png", ".png"),
            ("image/jpeg", ".jpg"),
            ("image/gif", ".gif"),
            ("image/webp", ".webp"),
            ("image/unknown", ".png"),
        ],
    )
    def test_get_file_extension(self, mime_type: str, extension: str) -> None:
        assert get_file_extension(mime_type) == extension

    def test_unknown_suffix_defaults_to_png(self, tmp_path: Path) -> None:
        assert get_mime_type(tmp_path / "image.bmp") == "image/png"


class TestDataUri:
    """Tests for data-URI helpers."""

    def test_to_data_uri(self) -> None:
        assert to_data_uri("image/png", "QUJD") == "data:image/png;base64,QUJD"

    def test_parse_data_uri(self) -> None:
        assert parse_data_uri("data:image/jpeg;base64,QUJD") == ("image/jpeg", b"ABC")

    @pytest.mark.parametrize("uri", ["https://example.com/a.png", "data:image/png,QUJD"])
    def test_parse_rejects_non_base64_uri(self, uri: str) -> None:
        with pytest.raises(ValueError, match="Not a base64 data URI"):
            parse_data_uri(uri)

    def test_parse_rejects_bad_payload(self) -> None:
        with pytest.raises(ValueError, match="Invalid base64"):
            parse_data_uri("data:image/png;base64,Q")


class TestSaveResults:
    """Tests for save_results."""

    def test_writes_numbered_files(self, tmp_path: Path) -> None:
        result = GenerationResult(
            model="m1",
            images=["data:image/png;base64,QUJD", "data:image/jpeg;base64,REVG"],
            requested=2,
        )

        paths = save_results(result, tmp_path / "out")

        assert [p.name for p in paths] == ["generated-image-1.png", "generated-image-2.jpg"]
        assert paths[0].read_bytes() == b"ABC"
        assert paths[1].read_bytes() == b"DEF"


class TestLogging:
    """Tests for logging helpers."""

    def test_setup_logging_adds_single_handler(self) -> None:
        logger = setup_logging("debug")
        setup_logging("INFO")

        assert logger.name == "gemini_studio"
        assert len(logger.handlers) == 1
        assert logger.level == logging.INFO

    def test_get_logger_namespaces(self) -> None:
        assert get_logger("cli").name == "gemini_studio.cli"
        assert get_logger("gemini_studio.relay").name == "gemini_studio.relay"

    @pytest.mark.parametrize(
        ("credential", "expected"),
        [(None, "<none>"), ("short", "***"), ("AIzaSyExample123", "AIza...")],
    )
    def test_mask_credential(self, credential: str | None, expected: str) -> None:
        assert mask_credential(credential) == expected
