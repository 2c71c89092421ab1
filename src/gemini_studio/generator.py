"""Model-fallback image generation.

Models are tried strictly in priority order. Within one model attempt the
requested number of calls is issued (sequentially with a fixed spacing, or
concurrently), successful images are accumulated, and the attempt is decided
only after all calls have settled:

    model attempt -> quota error seen: discard images, next model
                  -> images produced: return them (first model wins)
                  -> nothing produced: remember last error, next model
    call          -> image: accumulate
                  -> quota error: abort the remaining calls for this model
                  -> other error: record and continue with the next call

Sequential calls stop at the first quota error. Concurrent calls are all in
flight already, so a quota error among them fails the attempt once they
settle.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass, field

from gemini_studio.exceptions import (
    AllModelsFailedError,
    GenerationCallError,
    MissingCredentialError,
    QuotaExceededError,
    TransportError,
    UpstreamAPIError,
)
from gemini_studio.models import (
    CallMode,
    GenerationRequest,
    GenerationResult,
    ReferenceImage,
    RequestPart,
)
from gemini_studio.request_builder import build_parts, build_request
from gemini_studio.responses import extract_image
from gemini_studio.settings import StudioSettings, get_studio_settings
from gemini_studio.transport import GenAITransport, Transport, create_transport

logger = logging.getLogger(__name__)

CallOutcome = str | GenerationCallError


@dataclass
class ModelAttempt:
    """Accumulated outcome of all calls issued against one model."""

    model: str
    images: list[str] = field(default_factory=list)
    errors: list[GenerationCallError] = field(default_factory=list)
    aborted: bool = False

    def record(self, outcome: CallOutcome) -> None:
        if isinstance(outcome, GenerationCallError):
            self.errors.append(outcome)
            if isinstance(outcome, QuotaExceededError):
                self.aborted = True
        else:
            self.images.append(outcome)

    @property
    def succeeded(self) -> bool:
        return bool(self.images) and not self.aborted

    @property
    def last_error(self) -> GenerationCallError | None:
        if self.aborted:
            quota_errors = [e for e in self.errors if isinstance(e, QuotaExceededError)]
            return quota_errors[-1]
        return self.errors[-1] if self.errors else None


class FallbackGenerator:
    """Generate images, falling back through a priority list of models.

    Example:
        ```python
        generator = FallbackGenerator(RestTransport())
        result = await generator.generate(request, ["gemini-2.5-flash-image"], key)
        ```
    """

    def __init__(
        self,
        transport: Transport,
        *,
        call_mode: CallMode = CallMode.SEQUENTIAL,
        call_delay: float = 2.0,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        """Initialize the generator.

        Args:
            transport: Transport used for every generation call.
            call_mode: Issue calls sequentially or concurrently per model.
            call_delay: Seconds between sequential calls.
            sleep: Awaitable sleep, injectable for tests.
        """
        self.transport = transport
        self.call_mode = CallMode(call_mode)
        self.call_delay = call_delay
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: StudioSettings | None = None,
        transport: Transport | None = None,
    ) -> FallbackGenerator:
        """Build a generator configured from StudioSettings."""
        settings = settings or get_studio_settings()
        return cls(
            transport or create_transport(settings),
            call_mode=settings.call_mode,
            call_delay=settings.call_delay,
        )

    async def generate(
        self,
        request: GenerationRequest,
        models: Sequence[str],
        credential: str | None,
    ) -> GenerationResult:
        """Produce up to request.desired_count images.

        Args:
            request: Prompt, reference images and desired count.
            models: Model ids in priority order.
            credential: API key for the backend.

        Returns:
            Images from the first model that produced at least one.

        Raises:
            MissingCredentialError: If no credential is supplied.
            EmptyRequestError: If the request has no prompt and no images.
            ValueError: If models is empty.
            AllModelsFailedError: If no model produced any image.

        """
        if not credential:
            raise MissingCredentialError
        parts = build_parts(request.prompt_text, request.images)
        if not models:
            msg = "At least one model is required"
            raise ValueError(msg)

        last_error: GenerationCallError | None = None
        for model in models:
            logger.info(
                "Trying model %s for %d image(s)", model, request.desired_count
            )
            attempt = await self._attempt_model(
                model, parts, request.desired_count, credential
            )
            if attempt.succeeded:
                logger.info(
                    "Model %s produced %d/%d image(s)",
                    model,
                    len(attempt.images),
                    request.desired_count,
                )
                return GenerationResult(
                    model=model,
                    images=attempt.images,
                    requested=request.desired_count,
                )

            last_error = attempt.last_error or last_error
            if attempt.aborted:
                logger.warning(
                    "Model %s hit its quota; discarding %d image(s)",
                    model,
                    len(attempt.images),
                )
            else:
                logger.warning(
                    "Model %s produced no images (%d failed call(s))",
                    model,
                    len(attempt.errors),
                )

        logger.error("All models failed: %s", ", ".join(models))
        raise AllModelsFailedError(list(models), last_error)

    async def _attempt_model(
        self,
        model: str,
        parts: list[RequestPart],
        count: int,
        credential: str,
    ) -> ModelAttempt:
        attempt = ModelAttempt(model)
        if self.call_mode is CallMode.CONCURRENT:
            outcomes = await asyncio.gather(
                *(self._call_once(model, parts, credential, i) for i in range(count))
            )
            for outcome in outcomes:
                attempt.record(outcome)
            return attempt

        for index in range(count):
            if index > 0 and self.call_delay > 0:
                await self._sleep(self.call_delay)
            outcome = await self._call_once(model, parts, credential, index)
            attempt.record(outcome)
            if attempt.aborted:
                break
        return attempt

    async def _call_once(
        self,
        model: str,
        parts: list[RequestPart],
        credential: str,
        index: int,
    ) -> CallOutcome:
        try:
            response = await self.transport.call(model, parts, credential)
            return extract_image(response, model).to_data_uri()
        except GenerationCallError as e:
            logger.warning("Request %d failed with model %s: %s", index + 1, model, e)
            return e
        except Exception as e:
            logger.warning(
                "Request %d failed with model %s: unexpected %s",
                index + 1,
                model,
                type(e).__name__,
                exc_info=True,
            )
            return self._wrap_unexpected(e, model)

    @staticmethod
    def _wrap_unexpected(error: Exception, model: str) -> GenerationCallError:
        message = f"{type(error).__name__}: {error}"
        if isinstance(error, (OSError, TimeoutError)):
            wrapped: GenerationCallError = TransportError(
                f"Connection error: {message}", model=model
            )
        else:
            wrapped = UpstreamAPIError(f"Unexpected error: {message}", model=model)
        wrapped.__cause__ = error
        return wrapped


def generate_images(
    prompt: str,
    reference_images: Iterable[ReferenceImage] = (),
    count: int = 1,
    credential: str | None = None,
    models: Sequence[str] | None = None,
    settings: StudioSettings | None = None,
    transport: Transport | None = None,
) -> GenerationResult:
    """Synchronous convenience wrapper around FallbackGenerator.generate.

    Args:
        prompt: Text prompt.
        reference_images: Reference image slots in order.
        count: Number of images to request (1-4).
        credential: API key; falls back to GEMINI_API_KEY from settings.
        models: Model ids in priority order; defaults to settings.
        settings: Optional settings. If not provided, reads from environment.
        transport: Optional transport override.

    Returns:
        GenerationResult with data-URIs.

    """
    settings = settings or get_studio_settings()
    credential = credential or settings.get_api_key_value()
    if not credential:
        raise MissingCredentialError

    request = build_request(prompt, reference_images, count)
    generator = FallbackGenerator.from_settings(settings, transport)

    async def run() -> GenerationResult:
        try:
            return await generator.generate(
                request, models or settings.fallback_models, credential
            )
        finally:
            # Only close a transport created here.
            if transport is None and isinstance(generator.transport, GenAITransport):
                await generator.transport.aclose()

    return asyncio.run(run())
