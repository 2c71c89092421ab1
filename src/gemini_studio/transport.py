"""Transports that carry a single generation call to the backend.

Every transport returns the decoded generateContent JSON on success and
raises a GenerationCallError subclass on failure, so the generator's
parsing and fallback logic does not depend on how the call was made.

Note: The google-genai types are dynamically loaded, causing reportUnknown*
warnings.
"""
# ruff: noqa: PLC0415

from __future__ import annotations

import base64
import json
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from gemini_studio.exceptions import (
    GenerationCallError,
    QuotaExceededError,
    TransportError,
    UpstreamAPIError,
    is_quota_signal,
)
from gemini_studio.models import ImagePart, RequestPart, TextPart

if TYPE_CHECKING:
    from gemini_studio.settings import StudioSettings

logger = logging.getLogger(__name__)

RawResponse = dict[str, Any]

API_KEY_HEADER = "x-goog-api-key"
RELAY_API_KEY_HEADER = "x-gemini-api-key"
DEFAULT_MODALITIES = ["IMAGE", "TEXT"]


class Transport(Protocol):
    """Capability to issue one generation call."""

    async def call(
        self,
        model: str,
        parts: Sequence[RequestPart],
        credential: str,
    ) -> RawResponse:
        """Send parts to model and return the raw JSON response."""
        ...


def build_contents(parts: Sequence[RequestPart]) -> list[dict[str, Any]]:
    """Wrap parts in the REST ``contents`` structure (single user turn)."""
    return [{"role": "user", "parts": [part.to_api_dict() for part in parts]}]


def _error_message(body: Any) -> str:
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return error.get("message") or error.get("status") or "Upstream API error"
        if isinstance(error, str) and error:
            return error
    if isinstance(body, str) and body.strip():
        text = body.strip()
        return text[:200] + "..." if len(text) > 200 else text
    return "Upstream API error"


def error_from_status(status_code: int, body: Any, model: str | None) -> GenerationCallError:
    """Classify a failed HTTP response.

    Args:
        status_code: HTTP status of the response.
        body: Decoded JSON body, or raw text when the body was not JSON.
        model: Model the call was issued against.

    Returns:
        QuotaExceededError for 429 / RESOURCE_EXHAUSTED, otherwise UpstreamAPIError.
    """
    message = _error_message(body)
    text = body if isinstance(body, str) else json.dumps(body, default=str)
    if is_quota_signal(status_code, text):
        return QuotaExceededError(message, status_code=status_code, model=model)
    return UpstreamAPIError(message, status_code=status_code, body=body, model=model)


def parse_http_response(response: httpx.Response, model: str | None) -> RawResponse:
    """Return the JSON body of a successful response or raise a classified error."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if response.is_error:
        raise error_from_status(
            response.status_code,
            body if body is not None else response.text,
            model,
        )

    if not isinstance(body, dict):
        msg = "Malformed response body"
        raise UpstreamAPIError(msg, status_code=response.status_code, model=model)
    return body


class _HTTPTransport:
    """Shared httpx plumbing for the REST and relay transports."""

    def __init__(
        self,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
        response_modalities: list[str] | None = None,
    ) -> None:
        self._client = client
        self.timeout = timeout
        self.response_modalities = response_modalities or list(DEFAULT_MODALITIES)

    def _generation_config(self) -> dict[str, Any]:
        return {"responseModalities": self.response_modalities}

    async def _post(
        self,
        url: str,
        *,
        headers: dict[str, str],
        payload: dict[str, Any],
        model: str,
    ) -> RawResponse:
        if self._client is not None:
            return await self._send(self._client, url, headers, payload, model)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._send(client, url, headers, payload, model)

    async def _send(
        self,
        client: httpx.AsyncClient,
        url: str,
        headers: dict[str, str],
        payload: dict[str, Any],
        model: str,
    ) -> RawResponse:
        try:
            response = await client.post(url, headers=headers, json=payload)
        except httpx.HTTPError as e:
            msg = f"Connection error: {e}"
            raise TransportError(msg, model=model) from e
        return parse_http_response(response, model)


class RestTransport(_HTTPTransport):
    """Direct call to the Generative Language REST API."""

    def __init__(
        self,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    async def call(
        self,
        model: str,
        parts: Sequence[RequestPart],
        credential: str,
    ) -> RawResponse:
        url = f"{self.base_url}/models/{model}:generateContent"
        payload = {
            "contents": build_contents(parts),
            "generationConfig": self._generation_config(),
        }
        return await self._post(
            url, headers={API_KEY_HEADER: credential}, payload=payload, model=model
        )


class RelayTransport(_HTTPTransport):
    """Call routed through the relay, which attaches the key upstream."""

    def __init__(self, relay_url: str, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.relay_url = relay_url

    async def call(
        self,
        model: str,
        parts: Sequence[RequestPart],
        credential: str,
    ) -> RawResponse:
        payload = {
            "model": model,
            "contents": build_contents(parts),
            "generationConfig": self._generation_config(),
        }
        return await self._post(
            self.relay_url,
            headers={RELAY_API_KEY_HEADER: credential},
            payload=payload,
            model=model,
        )


# Lazy import for google.genai
_genai = None
_types = None
_errors = None


def _get_genai() -> tuple[Any, Any, Any]:
    """Lazy import google.genai to avoid import errors when not installed."""
    global _genai, _types, _errors  # noqa: PLW0603
    if _genai is None:
        try:
            from google import genai
            from google.genai import errors, types

            _genai = genai
            _types = types
            _errors = errors
        except ImportError as e:
            msg = (
                "google-genai package not installed. "
                "Install with: pip install google-genai"
            )
            raise ImportError(msg) from e
    return _genai, _types, _errors


class GenAITransport:
    """Call through the official google-genai SDK (async client).

    One SDK client is kept for the current credential. A different
    credential replaces it, and `aclose()` releases it.
    """

    def __init__(
        self,
        *,
        timeout: float | None = None,
        response_modalities: list[str] | None = None,
    ) -> None:
        self.timeout = timeout
        self.response_modalities = response_modalities or list(DEFAULT_MODALITIES)
        self._client: Any = None
        self._client_credential: str | None = None

    async def _get_client(self, credential: str) -> Any:
        if self._client is not None and self._client_credential == credential:
            return self._client
        await self.aclose()

        genai, types, _ = _get_genai()
        http_options = None
        if self.timeout:
            http_options = types.HttpOptions(timeout=int(self.timeout * 1000))
        self._client = genai.Client(api_key=credential, http_options=http_options)
        self._client_credential = credential
        return self._client

    async def aclose(self) -> None:
        """Close the cached SDK client, if any."""
        client, self._client, self._client_credential = self._client, None, None
        if client is None:
            return
        close = getattr(client.aio, "aclose", None)
        if close is not None:
            await close()

    @staticmethod
    def _to_sdk_part(types: Any, part: RequestPart) -> Any:
        if isinstance(part, ImagePart):
            return types.Part.from_bytes(
                data=base64.standard_b64decode(part.data),
                mime_type=part.mime_type,
            )
        if isinstance(part, TextPart):
            return types.Part.from_text(text=part.text)
        msg = f"Unsupported request part: {type(part).__name__}"
        raise TypeError(msg)

    @staticmethod
    def _translate_error(error: Any, model: str) -> GenerationCallError:
        code = getattr(error, "code", None)
        status = getattr(error, "status", None) or ""
        message = getattr(error, "message", None) or str(error)
        if is_quota_signal(code, f"{status} {message}"):
            return QuotaExceededError(message, status_code=code, model=model)
        return UpstreamAPIError(message, status_code=code, body=status or None, model=model)

    @staticmethod
    def _enum_value(value: Any) -> Any:
        return getattr(value, "value", value)

    @classmethod
    def _to_raw_response(cls, response: Any) -> RawResponse:
        """Rebuild the REST generateContent shape from SDK objects.

        Inline image bytes are encoded with the standard base64 alphabet.
        Thought parts are intermediate reasoning and are skipped.
        """
        candidates = []
        for candidate in response.candidates or []:
            parts: list[dict[str, Any]] = []
            content = candidate.content
            for part in (content.parts if content is not None else None) or []:
                if getattr(part, "thought", None):
                    continue
                if part.inline_data is not None and part.inline_data.data:
                    parts.append(
                        {
                            "inlineData": {
                                "mimeType": part.inline_data.mime_type or "image/png",
                                "data": base64.standard_b64encode(
                                    part.inline_data.data
                                ).decode("ascii"),
                            }
                        }
                    )
                elif part.text is not None:
                    parts.append({"text": part.text})
            entry: dict[str, Any] = {"content": {"parts": parts}}
            if candidate.finish_reason is not None:
                entry["finishReason"] = cls._enum_value(candidate.finish_reason)
            candidates.append(entry)

        raw: RawResponse = {"candidates": candidates}
        feedback = response.prompt_feedback
        if feedback is not None and feedback.block_reason is not None:
            raw["promptFeedback"] = {
                "blockReason": cls._enum_value(feedback.block_reason)
            }
        return raw

    async def call(
        self,
        model: str,
        parts: Sequence[RequestPart],
        credential: str,
    ) -> RawResponse:
        _, types, errors = _get_genai()
        contents = [self._to_sdk_part(types, part) for part in parts]
        config = types.GenerateContentConfig(
            response_modalities=self.response_modalities
        )
        client = await self._get_client(credential)

        try:
            response = await client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
        except errors.APIError as e:
            raise self._translate_error(e, model) from e
        except (httpx.HTTPError, OSError, TimeoutError) as e:
            msg = f"Connection error: {e}"
            raise TransportError(msg, model=model) from e

        return self._to_raw_response(response)


def create_transport(settings: StudioSettings) -> Transport:
    """Build the transport selected in settings."""
    if settings.transport == "relay":
        logger.debug("Using relay transport at %s", settings.relay_url)
        return RelayTransport(
            settings.relay_url,
            timeout=settings.request_timeout,
            response_modalities=settings.response_modalities,
        )
    if settings.transport == "rest":
        logger.debug("Using REST transport at %s", settings.api_base_url)
        return RestTransport(
            settings.api_base_url,
            timeout=settings.request_timeout,
            response_modalities=settings.response_modalities,
        )
    logger.debug("Using google-genai SDK transport")
    return GenAITransport(
        timeout=settings.request_timeout,
        response_modalities=settings.response_modalities,
    )
