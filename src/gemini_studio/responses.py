"""Decode raw generateContent responses into typed parts.

Responses are scanned part by part and each part is classified as an
ImagePart, TextPart or UnknownPart. The first ImagePart wins.
"""

from __future__ import annotations

from typing import Any

from gemini_studio.exceptions import NoImageInResponseError
from gemini_studio.models import ImagePart, ResponsePart, TextPart, UnknownPart


def decode_part(raw: Any) -> ResponsePart:
    """Classify a single response part.

    Handles both ``inlineData`` (REST) and ``inline_data`` (SDK) naming.
    """
    if not isinstance(raw, dict):
        return UnknownPart()

    inline = raw.get("inlineData") or raw.get("inline_data")
    if isinstance(inline, dict) and inline.get("data"):
        mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"
        return ImagePart(mime_type=mime_type, data=inline["data"])

    text = raw.get("text")
    if isinstance(text, str):
        return TextPart(text=text)

    return UnknownPart(raw=raw)


def _first_candidate(response: dict[str, Any]) -> dict[str, Any]:
    candidates = response.get("candidates")
    if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
        return candidates[0]
    return {}


def decode_response_parts(response: dict[str, Any]) -> list[ResponsePart]:
    """Decode every part of the first candidate in a response."""
    content = _first_candidate(response).get("content")
    if not isinstance(content, dict):
        return []
    raw_parts = content.get("parts")
    if not isinstance(raw_parts, list):
        return []
    return [decode_part(part) for part in raw_parts]


def extract_image(response: dict[str, Any], model: str | None = None) -> ImagePart:
    """Return the first inline image in a response.

    Args:
        response: Decoded JSON body of a successful call.
        model: Model the call was issued against, for error context.

    Returns:
        The first ImagePart found.

    Raises:
        NoImageInResponseError: If no part carries image data.

    """
    parts = decode_response_parts(response)
    for part in parts:
        if isinstance(part, ImagePart):
            return part

    details: dict[str, Any] = {}
    finish_reason = _first_candidate(response).get("finishReason")
    if finish_reason:
        details["finish_reason"] = finish_reason
    feedback = response.get("promptFeedback")
    if isinstance(feedback, dict) and feedback.get("blockReason"):
        details["block_reason"] = feedback["blockReason"]
    texts = [part.text for part in parts if isinstance(part, TextPart)]
    if texts:
        snippet = " ".join(texts)
        details["text"] = snippet[:200] + "..." if len(snippet) > 200 else snippet

    msg = "No image data in response"
    raise NoImageInResponseError(msg, model=model, details=details)
