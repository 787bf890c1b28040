"""
Error types shared by the backend routes and the editor client.

Routes map each class to an HTTP status; the editor session turns any of
them into a user-facing message with ``user_message``.
"""

SAFETY_MESSAGE = (
    "The prompt was flagged by safety checks. "
    "Please modify your prompt to be more appropriate."
)
TIMEOUT_MESSAGE = "Request timed out. Please try again."


class ThumbnailError(Exception):
    """Base class for every error this package raises on purpose."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ThumbnailError):
    """Missing or unacceptable input (prompt, image, mask, selection)."""

    status_code = 400


class UpstreamAuthError(ThumbnailError):
    """The provider rejected our credential."""

    status_code = 401


class UpstreamGenerationError(ThumbnailError):
    """The provider ran but produced nothing usable, or flagged the content."""


class NetworkError(ThumbnailError):
    """Timeout, abort or connectivity failure."""

    def __init__(self, message: str, timed_out: bool = False):
        super().__init__(message)
        self.timed_out = timed_out


class DecodeError(ThumbnailError):
    """An image could not be loaded or decoded."""


class ConfigurationError(ThumbnailError):
    """A setting the operation needs is absent."""


class NotFoundError(ThumbnailError):
    """No history record with that id."""

    status_code = 404


def is_safety_rejection(message: str | None) -> bool:
    if not message:
        return False
    lowered = message.lower()
    return "safety check" in lowered or "nsfw" in lowered


def user_message(exc: BaseException) -> str:
    """Convert any caught error into the string shown to the user."""
    if isinstance(exc, NetworkError) and exc.timed_out:
        return TIMEOUT_MESSAGE
    message = getattr(exc, "message", None) or str(exc)
    if is_safety_rejection(message):
        return SAFETY_MESSAGE
    return message or "Something went wrong. Please try again."
