"""Gemini Studio.

Reference-guided image generation with model fallback on top of Google's
Gemini / Imagen models.

Features:
    - Up to 4 character, 2 product and 1 background reference images
    - 1-4 images per request, issued sequentially or concurrently
    - Priority-ordered model fallback with quota short-circuit
    - google-genai SDK, direct REST or relay transports
    - Local API key cache and a FastAPI relay endpoint

Example:
    >>> from gemini_studio import generate_images
    >>> result = generate_images("A cat on a skateboard", count=2)
    >>> print(result.model, len(result.images))

"""

from gemini_studio.credentials import CredentialStore
from gemini_studio.exceptions import (
    AllModelsFailedError,
    EmptyRequestError,
    GenerationCallError,
    MissingCredentialError,
    NoImageInResponseError,
    QuotaExceededError,
    StudioError,
    TransportError,
    UpstreamAPIError,
)
from gemini_studio.generator import FallbackGenerator, generate_images
from gemini_studio.models import (
    MODEL_FALLBACK_LIST,
    MODELS,
    CallMode,
    GenerationRequest,
    GenerationResult,
    ImagePart,
    ReferenceImage,
    TextPart,
)
from gemini_studio.request_builder import build_parts, build_request
from gemini_studio.settings import StudioSettings, get_studio_settings, reset_settings
from gemini_studio.studio import ReferenceBoard, Studio
from gemini_studio.transport import (
    GenAITransport,
    RelayTransport,
    RestTransport,
    Transport,
    create_transport,
)

__all__ = [
    "MODELS",
    "MODEL_FALLBACK_LIST",
    "AllModelsFailedError",
    "CallMode",
    "CredentialStore",
    "EmptyRequestError",
    "FallbackGenerator",
    "GenAITransport",
    "GenerationCallError",
    "GenerationRequest",
    "GenerationResult",
    "ImagePart",
    "MissingCredentialError",
    "NoImageInResponseError",
    "QuotaExceededError",
    "ReferenceBoard",
    "ReferenceImage",
    "RelayTransport",
    "RestTransport",
    "Studio",
    "StudioError",
    "StudioSettings",
    "TextPart",
    "Transport",
    "TransportError",
    "UpstreamAPIError",
    "build_parts",
    "build_request",
    "create_transport",
    "generate_images",
    "get_studio_settings",
    "reset_settings",
]

__version__ = "0.1.0"
