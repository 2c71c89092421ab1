"""Pytest configuration and fixtures for gemini-studio tests."""

from __future__ import annotations

import base64
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import pytest

from gemini_studio.models import ReferenceImage, RequestPart
from gemini_studio.settings import StudioSettings, reset_settings

if TYPE_CHECKING:
    from pathlib import Path

TEST_API_KEY = "test-api-key-123456"


def image_response(data: str, mime_type: str = "image/png") -> dict[str, Any]:
    """Build a generateContent response carrying one inline image."""
    return {
        "candidates": [
            {
                "content": {
                    "role": "model",
                    "parts": [{"inlineData": {"mimeType": mime_type, "data": data}}],
                },
                "finishReason": "STOP",
            }
        ]
    }


def text_response(text: str) -> dict[str, Any]:
    """Build a generateContent response carrying only text."""
    return {
        "candidates": [
            {
                "content": {"role": "model", "parts": [{"text": text}]},
                "finishReason": "STOP",
            }
        ]
    }


class StubTransport:
    """Deterministic transport scripted per model.

    Each model maps to a sequence of outcomes (a response dict or an
    exception instance). Calls cycle through the sequence in order.
    """

    def __init__(self, script: dict[str, Sequence[Any]]) -> None:
        self.script = script
        self.calls: list[tuple[str, list[RequestPart], str]] = []
        self._counters: dict[str, int] = {}

    async def call(
        self,
        model: str,
        parts: Sequence[RequestPart],
        credential: str,
    ) -> dict[str, Any]:
        self.calls.append((model, list(parts), credential))
        outcomes = self.script.get(model)
        if not outcomes:
            msg = f"Unscripted model: {model}"
            raise AssertionError(msg)
        index = self._counters.get(model, 0)
        self._counters[model] = index + 1
        outcome = outcomes[index % len(outcomes)]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    def calls_for(self, model: str) -> int:
        return sum(1 for called_model, _, _ in self.calls if called_model == model)


@pytest.fixture(autouse=True)
def reset_settings_after_test():
    """Reset settings singleton after each test."""
    yield
    reset_settings()


@pytest.fixture(autouse=True)
def isolate_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep tests independent of the developer's environment."""
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.setenv("STUDIO_CREDENTIAL_PATH", str(tmp_path / "credentials.json"))


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Return sample PNG image bytes (1x1 red pixel)."""
    # Minimal valid PNG: 1x1 red pixel
    return base64.b64decode(
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8DwHwAFBQIA"
        "X8jx0gAAAABJRU5ErkJggg=="
    )


@pytest.fixture
def sample_image_b64(sample_image_bytes: bytes) -> str:
    return base64.standard_b64encode(sample_image_bytes).decode("utf-8")


@pytest.fixture
def sample_image_path(tmp_path: Path, sample_image_bytes: bytes) -> Path:
    """Create a temporary sample image file."""
    image_path = tmp_path / "sample.png"
    image_path.write_bytes(sample_image_bytes)
    return image_path


@pytest.fixture
def populated_image(sample_image_bytes: bytes, sample_image_b64: str) -> ReferenceImage:
    """An enabled character slot holding the sample image."""
    return ReferenceImage(
        id="char-1",
        raw_bytes=sample_image_bytes,
        encoded_payload=sample_image_b64,
        mime_type="image/png",
        enabled=True,
    )


@pytest.fixture
def settings(tmp_path: Path) -> StudioSettings:
    """Settings with a temporary credential file and no call delay."""
    return StudioSettings(
        credential_path=tmp_path / "studio.json",
        call_delay=0,
        fallback_models=["m1", "m2"],
    )
