"""Reference image slots and the studio session that drives generation."""

from __future__ import annotations

import base64
import logging
from pathlib import Path

from gemini_studio.credentials import CredentialStore
from gemini_studio.exceptions import MissingCredentialError, ResourceNotFoundError
from gemini_studio.generator import FallbackGenerator
from gemini_studio.models import (
    SLOT_LAYOUT,
    GenerationResult,
    ReferenceImage,
    SlotKind,
)
from gemini_studio.request_builder import build_request
from gemini_studio.settings import StudioSettings, get_studio_settings
from gemini_studio.transport import Transport
from gemini_studio.utils.images import load_image_as_base64

logger = logging.getLogger(__name__)


class ReferenceBoard:
    """Fixed set of reference image slots.

    Slots are created empty and enabled: ``char-1``..``char-4``,
    ``prod-1``..``prod-2`` and ``bg-1``. They are never removed, only
    replaced or toggled.
    """

    def __init__(self, layout: dict[SlotKind, int] | None = None) -> None:
        layout = layout or SLOT_LAYOUT
        self._slots: dict[str, ReferenceImage] = {}
        for kind in SlotKind:
            for n in range(1, layout.get(kind, 0) + 1):
                slot_id = f"{kind.value}-{n}"
                self._slots[slot_id] = ReferenceImage(id=slot_id)

    def __len__(self) -> int:
        return len(self._slots)

    def slot(self, slot_id: str) -> ReferenceImage:
        """Return a slot by id.

        Raises:
            ResourceNotFoundError: If the slot id is unknown.
        """
        try:
            return self._slots[slot_id]
        except KeyError:
            msg = f"Unknown reference slot: {slot_id}"
            raise ResourceNotFoundError(msg) from None

    def images(self) -> list[ReferenceImage]:
        """All slots in request order (characters, products, background)."""
        return list(self._slots.values())

    def enabled_images(self) -> list[ReferenceImage]:
        """Slots that will be attached to the next request."""
        return [image for image in self._slots.values() if image.contributes]

    def set_image(self, slot_id: str, data: bytes, mime_type: str) -> ReferenceImage:
        """Populate a slot with raw image bytes; populating re-enables it."""
        image = self.slot(slot_id)
        image.raw_bytes = data
        image.encoded_payload = base64.standard_b64encode(data).decode("utf-8")
        image.mime_type = mime_type
        image.enabled = True
        logger.debug("Loaded %d bytes (%s) into slot %s", len(data), mime_type, slot_id)
        return image

    def load_file(self, slot_id: str, path: Path) -> ReferenceImage:
        """Populate a slot from an image file."""
        raw, _, mime_type = load_image_as_base64(path)
        return self.set_image(slot_id, raw, mime_type)

    def set_enabled(self, slot_id: str, enabled: bool) -> ReferenceImage:
        """Toggle a slot without touching its stored payload."""
        image = self.slot(slot_id)
        image.enabled = enabled
        return image

    def next_free_slot(self, kind: SlotKind) -> str | None:
        """Id of the first unpopulated slot of a kind, if any."""
        prefix = f"{kind.value}-"
        for slot_id, image in self._slots.items():
            if slot_id.startswith(prefix) and not image.is_populated:
                return slot_id
        return None


class Studio:
    """A generation session: reference slots, cached API key and generator.

    Example:
        ```python
        studio = Studio()
        studio.board.load_file("char-1", Path("hero.png"))
        result = await studio.generate("hero holding the product", count=2)
        ```
    """

    def __init__(
        self,
        settings: StudioSettings | None = None,
        *,
        store: CredentialStore | None = None,
        generator: FallbackGenerator | None = None,
        transport: Transport | None = None,
    ) -> None:
        self.settings = settings or get_studio_settings()
        self.store = store or CredentialStore(self.settings.credential_path)
        self.generator = generator or FallbackGenerator.from_settings(
            self.settings, transport
        )
        self.board = ReferenceBoard()
        self.credential = self.store.load() or self.settings.get_api_key_value()

    @property
    def needs_setup(self) -> bool:
        """True when no API key is available and setup must run first."""
        return not self.credential

    def set_credential(self, credential: str) -> None:
        """Save a new API key and use it for subsequent generations."""
        self.credential = self.store.save(credential)

    async def generate(
        self,
        prompt: str,
        count: int = 1,
        models: list[str] | None = None,
    ) -> GenerationResult:
        """Generate images from the prompt and the enabled reference slots.

        Raises:
            MissingCredentialError: If no API key is configured.
            EmptyRequestError: If neither prompt nor images are given.
            AllModelsFailedError: If every model failed.
        """
        if not self.credential:
            raise MissingCredentialError
        request = build_request(prompt, self.board.images(), count)
        return await self.generator.generate(
            request, models or self.settings.fallback_models, self.credential
        )
