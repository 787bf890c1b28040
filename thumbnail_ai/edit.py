"""
Region edit
===========

Sends the current image, a mask built from the committed selection and a
prompt to the inpainting route, and returns the decoded replacement image.

Steps are strictly sequential: wait for the source to decode, encode it,
build the mask at the same resolution, POST once, then wait for the result
to decode. Nothing is retried here.
"""

import asyncio
import logging

from PIL import Image

from thumbnail_ai.api_client import ApiClient
from thumbnail_ai.editor.mask import mask_data_url
from thumbnail_ai.editor.selection import MIN_SELECTION_SIZE, SelectionArea
from thumbnail_ai.errors import UpstreamGenerationError, ValidationError
from thumbnail_ai.images import decode_data_url, decode_image, encode_png_data_url

logger = logging.getLogger(__name__)

EDIT_ROUTE = "/api/replicate/edit-region"


class ImageRef:
    """
    A displayed image: a URL (http or data) plus its decoded pixels once loaded.

    Never mutated after loading; edits and generations produce a new ref.
    """

    def __init__(self, url: str, image: Image.Image | None = None):
        self.url = url
        self._image = image
        self._lock = asyncio.Lock()

    def __repr__(self):
        shown = self.url if len(self.url) < 60 else self.url[:57] + "..."
        return f"ImageRef({shown!r})"

    @classmethod
    def from_image(cls, image: Image.Image) -> "ImageRef":
        return cls(encode_png_data_url(image), image)

    @property
    def loaded(self) -> bool:
        return self._image is not None

    @property
    def image(self) -> Image.Image:
        if self._image is None:
            raise RuntimeError(f"{self!r} has not been loaded")
        return self._image

    @property
    def natural_size(self) -> tuple[int, int]:
        return self.image.size

    async def load(self, api: ApiClient) -> Image.Image:
        """Fetch and decode once; concurrent callers wait for the same decode."""
        async with self._lock:
            if self._image is None:
                if self.url.startswith("data:"):
                    data = decode_data_url(self.url)
                else:
                    data = await api.get_bytes(self.url)
                self._image = await asyncio.to_thread(decode_image, data)
        return self._image


class EditOrchestrator:
    def __init__(self, api: ApiClient, timeout: float | None = 120.0, threshold: float = MIN_SELECTION_SIZE):
        self.api = api
        self.timeout = timeout
        self.threshold = threshold
        self._in_flight = asyncio.Lock()

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    async def submit_edit(self, source: ImageRef, selection: SelectionArea, prompt: str) -> ImageRef:
        """
        Inpaint the selected region of ``source`` and return the new image.

        Raises:
            ValidationError: Bad selection, empty prompt, or an edit already running.
            UpstreamGenerationError: The route failed or returned no ``url``.
            UpstreamAuthError: The provider rejected the credential.
            NetworkError: Timeout or connectivity failure.
            DecodeError: The source or result image did not decode.
        """
        if not selection.is_valid(self.threshold):
            raise ValidationError("Selection is too small to edit")
        clean = (prompt or "").strip()
        if not clean:
            raise ValidationError("Prompt is required")
        if self._in_flight.locked():
            raise ValidationError("An edit is already in progress")

        async with self._in_flight:
            image = await source.load(self.api)
            width, height = image.size
            image_url = await asyncio.to_thread(encode_png_data_url, image)
            mask_url = await asyncio.to_thread(mask_data_url, selection, width, height)

            logger.info("Submitting region edit %s on %dx%d image", selection.box(), width, height)
            data = await self.api.post_json(
                EDIT_ROUTE,
                {"image": image_url, "prompt": clean, "mask": mask_url},
                timeout=self.timeout,
            )
            result_url = data.get("url") if isinstance(data, dict) else None
            if isinstance(result_url, list):
                result_url = result_url[0] if result_url else None
            if not result_url:
                raise UpstreamGenerationError("No image returned from edit")
            if not isinstance(result_url, str):
                raise UpstreamGenerationError(f"Unexpected edit result: {result_url!r}")

            result = ImageRef(result_url)
            await result.load(self.api)
            return result
