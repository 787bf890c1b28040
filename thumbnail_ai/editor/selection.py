r"""
Region selection
================

Tracks the rectangle a user drags over the image and whether it is ready
to be edited.

    IDLE -> SELECTING -> COMMITTED -> SUBMITTING -> IDLE
                \            \             \
                 -> IDLE      -> IDLE       -> COMMITTED (edit failed)

Coordinates are source-image pixels. ``width``/``height`` keep the sign of
the drag direction; ``box()`` normalizes them.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from thumbnail_ai.errors import ValidationError

logger = logging.getLogger(__name__)

MIN_SELECTION_SIZE = 10


@dataclass
class SelectionArea:
    start_x: float = 0.0
    start_y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    is_selecting: bool = False

    def box(self) -> tuple[float, float, float, float]:
        """Return ``(left, top, right, bottom)`` regardless of drag direction."""
        left = min(self.start_x, self.start_x + self.width)
        top = min(self.start_y, self.start_y + self.height)
        return left, top, left + abs(self.width), top + abs(self.height)

    def is_valid(self, threshold: float = MIN_SELECTION_SIZE) -> bool:
        return abs(self.width) > threshold and abs(self.height) > threshold


class SelectionState(Enum):
    IDLE = "idle"
    SELECTING = "selecting"
    COMMITTED = "committed"
    SUBMITTING = "submitting"


class RegionSelector:
    """State machine behind the "select a region to edit" mode."""

    def __init__(self, threshold: float = MIN_SELECTION_SIZE):
        self.threshold = threshold
        self.mode_active = False
        self.state = SelectionState.IDLE
        self.area = SelectionArea()
        self.prompt = ""

    @property
    def prompt_visible(self) -> bool:
        return self.state is SelectionState.COMMITTED

    def _reset(self):
        self.area = SelectionArea()
        self.state = SelectionState.IDLE
        self.prompt = ""

    # -- mode -----------------------------------------------------------------

    def enter_mode(self):
        self.mode_active = True
        self._reset()

    def exit_mode(self):
        self.mode_active = False
        self._reset()

    def cancel(self):
        """Dismiss the prompt dialog (or an in-progress drag)."""
        if self.state is SelectionState.SUBMITTING:
            return
        self._reset()

    # -- pointer --------------------------------------------------------------

    def pointer_down(self, x: float, y: float) -> bool:
        if not self.mode_active or self.state is SelectionState.SUBMITTING:
            return False
        self.area = SelectionArea(start_x=x, start_y=y, is_selecting=True)
        self.state = SelectionState.SELECTING
        return True

    def pointer_move(self, x: float, y: float) -> bool:
        if self.state is not SelectionState.SELECTING:
            return False
        self.area.width = x - self.area.start_x
        self.area.height = y - self.area.start_y
        return True

    def pointer_up(self) -> SelectionState:
        if self.state is not SelectionState.SELECTING:
            return self.state
        self.area.is_selecting = False
        if self.area.is_valid(self.threshold):
            self.state = SelectionState.COMMITTED
        else:
            logger.debug("Selection %s below threshold, discarded", self.area)
            self._reset()
        return self.state

    # -- submission -----------------------------------------------------------

    def begin_submit(self, prompt: str) -> str:
        """Move to SUBMITTING and return the trimmed prompt."""
        if self.state is not SelectionState.COMMITTED:
            raise ValidationError("Select a region of the image first")
        clean = (prompt or "").strip()
        if not clean:
            raise ValidationError("Please describe the edit")
        self.prompt = clean
        self.state = SelectionState.SUBMITTING
        return clean

    def submit_failed(self):
        if self.state is SelectionState.SUBMITTING:
            self.state = SelectionState.COMMITTED

    def submit_succeeded(self):
        if self.state is SelectionState.SUBMITTING:
            self._reset()
