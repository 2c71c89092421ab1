"""Assemble multimodal request parts from a prompt and reference images."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from gemini_studio.exceptions import EmptyRequestError
from gemini_studio.models import (
    GenerationRequest,
    ImagePart,
    ReferenceImage,
    RequestPart,
    TextPart,
)

logger = logging.getLogger(__name__)


def build_parts(
    prompt_text: str,
    images: Iterable[ReferenceImage],
) -> list[RequestPart]:
    """Build the ordered parts list for a generation call.

    The text prompt is always the first part, even when empty. Each enabled
    and populated image follows in input order.

    Args:
        prompt_text: The user's prompt.
        images: Reference images in slot order.

    Returns:
        List of parts, text first.

    Raises:
        EmptyRequestError: If the prompt is blank and no image contributed.

    """
    parts: list[RequestPart] = [TextPart(text=prompt_text)]

    for image in images:
        if not image.contributes:
            continue
        parts.append(
            ImagePart(
                mime_type=image.mime_type or "image/png",
                data=image.encoded_payload or "",
            )
        )

    if len(parts) == 1 and not prompt_text.strip():
        raise EmptyRequestError

    logger.debug("Built request with %d image part(s)", len(parts) - 1)
    return parts


def build_request(
    prompt_text: str,
    images: Iterable[ReferenceImage],
    desired_count: int = 1,
) -> GenerationRequest:
    """Create a GenerationRequest from the current slot state.

    Images are copied so later edits to the slots do not leak into a
    request that has already been built.

    Raises:
        EmptyRequestError: If the request would carry neither text nor images.
        pydantic.ValidationError: If desired_count is outside 1-4.

    """
    snapshot = tuple(image.model_copy() for image in images)
    build_parts(prompt_text, snapshot)
    return GenerationRequest(
        prompt_text=prompt_text,
        images=snapshot,
        desired_count=desired_count,
    )
