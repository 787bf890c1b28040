"""
Editor session
==============

Single owner of the editor's state: the current image, the candidate
choices, the region selection and the text overlays. Every operation
catches errors at this boundary and turns them into ``error`` (the string
the user sees); nothing here raises to the caller for a failed request.

    async with EditorSession(settings) as session:
        await session.generate_candidates("A cat astronaut", model="flux")
        session.select_candidate(session.candidates[0])
        await session.load_current()

        session.enter_selection_mode()
        session.pointer_down(120, 80, rect)
        session.pointer_move(300, 200, rect)
        session.pointer_up()
        await session.submit_edit("replace with a red balloon")
"""

import logging

import httpx
from PIL import Image

from thumbnail_ai.api_client import ApiClient
from thumbnail_ai.candidates import CandidateGenerator
from thumbnail_ai.config import Settings
from thumbnail_ai.edit import EditOrchestrator, ImageRef
from thumbnail_ai.editor.coordinates import BoundingRect, to_source
from thumbnail_ai.editor.overlays import OverlayEditor, render_overlays
from thumbnail_ai.editor.selection import RegionSelector, SelectionState
from thumbnail_ai.errors import ThumbnailError, user_message

logger = logging.getLogger(__name__)

GENERIC_EDIT_ERROR = "Failed to edit image region"


class EditorSession:
    def __init__(self, settings: Settings, http: httpx.AsyncClient | None = None):
        self.settings = settings
        self.api = ApiClient(settings.api_base_url, http)
        self.generator = CandidateGenerator(
            self.api,
            count=settings.candidate_count,
            attempts=settings.generation_attempts,
            timeout=settings.generation_timeout,
            allow_partial=settings.allow_partial_candidates,
        )
        self.orchestrator = EditOrchestrator(self.api, timeout=settings.edit_timeout)

        self.current: ImageRef | None = None
        self.candidates: list[str] = []
        self.choosing = False
        self.loading = False
        self.error: str | None = None
        self.selector = RegionSelector()
        self.overlays = OverlayEditor()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.api.aclose()

    @property
    def busy(self) -> bool:
        return self.loading or self.selector.state is SelectionState.SUBMITTING

    def _fail(self, exc: BaseException):
        self.error = user_message(exc)
        logger.error("Editor operation failed: %s", exc)

    # -----------------------------------------------------------------------
    # Generation
    # -----------------------------------------------------------------------

    async def generate_candidates(self, prompt: str, model: str = "flux", aspect_ratio: str = "3:2") -> bool:
        if self.busy:
            return False
        self.loading = True
        self.error = None
        self.current = None
        self.candidates = []
        self.choosing = True
        try:
            self.candidates = await self.generator.generate(model, prompt, aspect_ratio)
            return True
        except ThumbnailError as e:
            self._fail(e)
            self.choosing = False
            self.candidates = []
            return False
        finally:
            self.loading = False

    def select_candidate(self, url: str):
        self.current = ImageRef(url)
        self.choosing = False
        self.candidates = []
        self.overlays.clear()
        self.selector.exit_mode()

    def clear_image(self):
        self.current = None
        self.candidates = []
        self.choosing = False
        self.overlays.clear()
        self.selector.exit_mode()

    async def load_current(self) -> bool:
        """Decode the current image so the canvas knows its natural size."""
        if self.current is None:
            return False
        try:
            image = await self.current.load(self.api)
        except ThumbnailError as e:
            self._fail(e)
            return False
        self.overlays.canvas_size = image.size
        return True

    # -----------------------------------------------------------------------
    # Region selection
    # -----------------------------------------------------------------------

    def enter_selection_mode(self):
        if self.current is None or self.busy:
            return
        self.error = None
        self.selector.enter_mode()

    def exit_selection_mode(self):
        if self.selector.state is SelectionState.SUBMITTING:
            return
        self.selector.exit_mode()

    def cancel_edit(self):
        self.selector.cancel()

    def _map(self, client_x: float, client_y: float, rect: BoundingRect) -> tuple[float, float] | None:
        if self.current is None or not self.current.loaded:
            return None
        if rect.width <= 0 or rect.height <= 0:
            return None
        width, height = self.current.natural_size
        return to_source(client_x, client_y, rect, width, height)

    def pointer_down(self, client_x: float, client_y: float, rect: BoundingRect) -> bool:
        point = self._map(client_x, client_y, rect)
        if point is None:
            return False
        if self.selector.mode_active:
            return self.selector.pointer_down(*point)
        return self.overlays.pointer_down(*point)

    def pointer_move(self, client_x: float, client_y: float, rect: BoundingRect) -> bool:
        point = self._map(client_x, client_y, rect)
        if point is None:
            return False
        if self.selector.mode_active:
            return self.selector.pointer_move(*point)
        return self.overlays.pointer_move(*point)

    def pointer_up(self) -> SelectionState:
        if self.selector.mode_active:
            return self.selector.pointer_up()
        self.overlays.pointer_up()
        return self.selector.state

    async def submit_edit(self, prompt: str) -> bool:
        """
        Inpaint the committed selection.

        On success the new image replaces the current one and the selection
        is cleared. On failure the old image stays, ``error`` is set and the
        selection returns to COMMITTED so the user can retry.
        """
        if self.current is None:
            self.error = "Generate or select an image first"
            return False
        try:
            clean = self.selector.begin_submit(prompt)
        except ThumbnailError as e:
            self._fail(e)
            return False

        self.error = None
        succeeded = False
        try:
            result = await self.orchestrator.submit_edit(self.current, self.selector.area, clean)
            self.current = result
            self.overlays.canvas_size = result.natural_size
            self.selector.submit_succeeded()
            succeeded = True
        except ThumbnailError as e:
            self._fail(e)
        finally:
            # Never leave the selector in SUBMITTING, even on an unexpected error
            if not succeeded:
                if self.error is None:
                    self.error = GENERIC_EDIT_ERROR
                self.selector.submit_failed()
        return succeeded

    # -----------------------------------------------------------------------
    # Download
    # -----------------------------------------------------------------------

    async def render(self) -> Image.Image | None:
        """Current image with every text overlay composited, ready to save as PNG."""
        if self.current is None:
            return None
        try:
            image = await self.current.load(self.api)
        except ThumbnailError as e:
            self._fail(e)
            return None
        return render_overlays(image, self.overlays.overlays)
