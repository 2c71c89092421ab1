"""Model configurations and data types for Gemini Studio."""

from __future__ import annotations

from enum import Enum
from typing import Any, TypedDict

from pydantic import BaseModel, ConfigDict, Field

from gemini_studio.utils.images import to_data_uri


class ModelConfig(TypedDict):
    """Configuration for a backend image generation model."""

    id: str
    name: str
    description: str


# Known backend models, keyed by API model id
MODELS: dict[str, ModelConfig] = {
    "imagen-3.0-generate-001": {
        "id": "imagen-3.0-generate-001",
        "name": "Imagen 3",
        "description": "High quality text-to-image generation",
    },
    "gemini-2.0-flash-exp": {
        "id": "gemini-2.0-flash-exp",
        "name": "Gemini 2.0 Flash (experimental)",
        "description": "Experimental multimodal model with image output",
    },
    "gemini-2.5-flash-image": {
        "id": "gemini-2.5-flash-image",
        "name": "Nano Banana (Gemini 2.5 Flash)",
        "description": "Fast image generation and editing with reference images",
    },
}

# Priority order, evaluated left to right
MODEL_FALLBACK_LIST: list[str] = [
    "imagen-3.0-generate-001",
    "gemini-2.0-flash-exp",
    "gemini-2.5-flash-image",
]

MIN_IMAGES = 1
MAX_IMAGES = 4


class CallMode(str, Enum):
    """How the calls within one model attempt are issued."""

    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


class SlotKind(str, Enum):
    """Reference image slot categories, in request order."""

    CHARACTER = "char"
    PRODUCT = "prod"
    BACKGROUND = "bg"


SLOT_LAYOUT: dict[SlotKind, int] = {
    SlotKind.CHARACTER: 4,
    SlotKind.PRODUCT: 2,
    SlotKind.BACKGROUND: 1,
}


class ReferenceImage(BaseModel):
    """A user-supplied reference image slot.

    Attributes:
        id: Slot identifier (e.g. "char-1", "bg-1").
        raw_bytes: Original file bytes, if populated.
        encoded_payload: Base64 encoding of raw_bytes, if populated.
        mime_type: MIME type of the image, if populated.
        enabled: Whether the slot contributes to the next request.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str
    raw_bytes: bytes | None = Field(default=None, repr=False)
    encoded_payload: str | None = Field(default=None, repr=False)
    mime_type: str | None = None
    enabled: bool = True

    @property
    def is_populated(self) -> bool:
        """True once an image payload has been loaded into the slot."""
        return bool(self.encoded_payload)

    @property
    def contributes(self) -> bool:
        """True if the slot should be attached to a request."""
        return self.enabled and self.is_populated


class TextPart(BaseModel):
    """Text segment of a request or response."""

    model_config = ConfigDict(frozen=True)

    text: str

    def to_api_dict(self) -> dict[str, Any]:
        return {"text": self.text}


class ImagePart(BaseModel):
    """Inline image segment (MIME type plus base64 data)."""

    model_config = ConfigDict(frozen=True)

    mime_type: str
    data: str = Field(repr=False)

    def to_api_dict(self) -> dict[str, Any]:
        return {"inlineData": {"mimeType": self.mime_type, "data": self.data}}

    def to_data_uri(self) -> str:
        """Render the image as a ``data:<mime>;base64,<data>`` string."""
        return to_data_uri(self.mime_type, self.data)


class UnknownPart(BaseModel):
    """A response part that is neither text nor inline image data."""

    model_config = ConfigDict(frozen=True)

    raw: dict[str, Any] = Field(default_factory=dict)


RequestPart = TextPart | ImagePart
ResponsePart = TextPart | ImagePart | UnknownPart


class GenerationRequest(BaseModel):
    """One generation request, immutable once built.

    Attributes:
        prompt_text: Text prompt; may be empty if images are attached.
        images: Reference images in slot order.
        desired_count: Number of images to request (1-4).
    """

    model_config = ConfigDict(frozen=True)

    prompt_text: str = ""
    images: tuple[ReferenceImage, ...] = ()
    desired_count: int = Field(default=1, ge=MIN_IMAGES, le=MAX_IMAGES)


class GenerationResult(BaseModel):
    """Images produced by the first model that yielded any.

    Attributes:
        model: The model identifier that produced the images.
        images: Data-URIs in call order.
        requested: How many images were asked for.
    """

    model: str
    images: list[str]
    requested: int

    @property
    def is_partial(self) -> bool:
        """True if fewer images than requested were produced."""
        return len(self.images) < self.requested
