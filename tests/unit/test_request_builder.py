"""Tests for request part assembly."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from gemini_studio.exceptions import EmptyRequestError
from gemini_studio.models import ImagePart, ReferenceImage, TextPart
from gemini_studio.request_builder import build_parts, build_request


def make_image(slot_id: str, payload: str | None = "QUJD", enabled: bool = True) -> ReferenceImage:
    return ReferenceImage(
        id=slot_id,
        encoded_payload=payload,
        mime_type="image/png" if payload else None,
        enabled=enabled,
    )


class TestBuildParts:
    """Tests for build_parts."""

    def test_prompt_only(self) -> None:
        """A prompt with no images yields a single text part."""
        parts = build_parts("a cat", [])

        assert parts == [TextPart(text="a cat")]

    def test_prompt_is_always_first(self) -> None:
        """Text comes first however many images are attached."""
        images = [make_image(f"char-{i}", payload=f"P{i}") for i in range(1, 5)]

        parts = build_parts("a cat", images)

        assert parts[0] == TextPart(text="a cat")
        assert [p.data for p in parts[1:]] == ["P1", "P2", "P3", "P4"]

    def test_image_alone_satisfies_request(self) -> None:
        """Empty prompt plus one enabled populated image is valid."""
        parts = build_parts("", [make_image("char-1")])

        assert parts[0] == TextPart(text="")
        assert parts[1] == ImagePart(mime_type="image/png", data="QUJD")

    def test_blank_prompt_and_no_images_raises(self) -> None:
        """Whitespace-only prompt without images is rejected."""
        with pytest.raises(EmptyRequestError):
            build_parts("  \n\t", [])

    def test_enabled_but_empty_slot_contributes_nothing(self) -> None:
        """An enabled slot with no payload is skipped."""
        with pytest.raises(EmptyRequestError):
            build_parts("", [make_image("char-1", payload=None)])

    def test_disabled_image_is_skipped(self) -> None:
        """Disabled slots are omitted while order is preserved."""
        images = [
            make_image("char-1", payload="C1"),
            make_image("prod-1", payload="P1", enabled=False),
            make_image("bg-1", payload="B1"),
        ]

        parts = build_parts("scene", images)

        assert [p.data for p in parts[1:]] == ["C1", "B1"]

    def test_toggle_does_not_mutate_payload(self) -> None:
        """Disabling a slot removes it from parts but keeps its payload."""
        image = make_image("char-1", payload="C1")
        image.enabled = False

        parts = build_parts("a cat", [image])

        assert len(parts) == 1
        assert image.encoded_payload == "C1"


class TestBuildRequest:
    """Tests for build_request."""

    def test_request_snapshot_is_isolated(self) -> None:
        """Later slot edits do not change an already built request."""
        image = make_image("char-1", payload="C1")
        request = build_request("a cat", [image], 2)

        image.encoded_payload = "CHANGED"

        assert request.images[0].encoded_payload == "C1"
        assert request.desired_count == 2

    def test_request_is_frozen(self) -> None:
        """A built request cannot be modified."""
        request = build_request("a cat", [], 1)

        with pytest.raises(ValidationError):
            request.desired_count = 3  # type: ignore[misc]

    @pytest.mark.parametrize("count", [0, 5])
    def test_desired_count_out_of_range(self, count: int) -> None:
        """desired_count must be between 1 and 4."""
        with pytest.raises(ValidationError):
            build_request("a cat", [], count)

    def test_empty_request_rejected(self) -> None:
        """build_request validates non-emptiness up front."""
        with pytest.raises(EmptyRequestError):
            build_request("", [make_image("bg-1", enabled=False)], 1)
