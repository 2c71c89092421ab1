"""Relay endpoint for browser or thin clients.

Accepts ``{"model": ..., "contents": [...]}`` with the API key in the
``x-gemini-api-key`` header and forwards the call to the Generative Language
API. Upstream bodies and status codes are passed through unchanged so the
client-side parsing does not depend on the route taken.

Status codes:
    200: upstream success (body verbatim), or OPTIONS preflight
    400: missing model or invalid JSON body
    401: missing API key header
    405: any method other than POST/OPTIONS
    500: upstream unreachable
    other: upstream error status passthrough
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse

from gemini_studio.settings import StudioSettings, get_studio_settings
from gemini_studio.transport import API_KEY_HEADER, RELAY_API_KEY_HEADER

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": f"Content-Type, {RELAY_API_KEY_HEADER}",
}

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=CORS_HEADERS)


def create_relay_app(
    settings: StudioSettings | None = None,
    client: httpx.AsyncClient | None = None,
) -> FastAPI:
    """Create the relay application.

    Args:
        settings: Optional settings. If not provided, reads from environment.
        client: Optional httpx client for upstream calls (tests inject one
            backed by httpx.MockTransport).

    Returns:
        FastAPI app exposing the relay route at settings.relay_path.
    """
    settings = settings or get_studio_settings()
    base_url = settings.api_base_url.rstrip("/")
    app = FastAPI(title="Gemini Studio Relay", docs_url=None, redoc_url=None)

    async def forward(url: str, headers: dict[str, str], payload: dict[str, Any]) -> httpx.Response:
        if client is not None:
            return await client.post(url, headers=headers, json=payload)
        async with httpx.AsyncClient(timeout=settings.request_timeout) as upstream:
            return await upstream.post(url, headers=headers, json=payload)

    @app.api_route(settings.relay_path, methods=ALL_METHODS)
    async def relay_generate(request: Request) -> Response:
        """Forward a generateContent call upstream."""
        if request.method == "OPTIONS":
            return Response(status_code=status.HTTP_200_OK, headers=CORS_HEADERS)
        if request.method != "POST":
            return _error("Method not allowed", status.HTTP_405_METHOD_NOT_ALLOWED)

        api_key = request.headers.get(RELAY_API_KEY_HEADER)
        if not api_key:
            return _error("Missing API Key", status.HTTP_401_UNAUTHORIZED)

        try:
            body = await request.json()
        except ValueError:
            return _error("Invalid JSON body", status.HTTP_400_BAD_REQUEST)
        if not isinstance(body, dict):
            return _error("Invalid JSON body", status.HTTP_400_BAD_REQUEST)

        model = body.get("model")
        if not model:
            return _error("Missing model parameter", status.HTTP_400_BAD_REQUEST)

        payload: dict[str, Any] = {"contents": body.get("contents") or []}
        if body.get("generationConfig"):
            payload["generationConfig"] = body["generationConfig"]

        url = f"{base_url}/models/{model}:generateContent"
        try:
            upstream = await forward(url, {API_KEY_HEADER: api_key}, payload)
        except httpx.HTTPError as e:
            logger.error("Relay upstream error for model %s: %s", model, e)
            return _error(str(e) or "Internal Server Error", status.HTTP_500_INTERNAL_SERVER_ERROR)

        try:
            data = upstream.json()
        except ValueError:
            data = {"error": upstream.text or "Invalid upstream response"}

        if upstream.is_error:
            logger.warning("Upstream returned %d for model %s", upstream.status_code, model)

        return JSONResponse(data, status_code=upstream.status_code, headers=CORS_HEADERS)

    return app
