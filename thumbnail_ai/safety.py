"""Local prompt screening, run before any request leaves the process."""

from thumbnail_ai.errors import ValidationError

BANNED_TERMS = ("nude", "naked", "nsfw", "porn", "explicit", "violence", "gore", "blood")

INAPPROPRIATE_MESSAGE = "Prompt contains inappropriate content"


def check_prompt(prompt: str | None) -> str:
    """
    Return the trimmed prompt, or raise if it is empty or contains a banned term.

    Matching is a case-insensitive substring test, so "bloodhound" is
    rejected too.
    """
    clean = (prompt or "").strip()
    if not clean:
        raise ValidationError("Prompt is required")
    lowered = clean.lower()
    if any(term in lowered for term in BANNED_TERMS):
        raise ValidationError(INAPPROPRIATE_MESSAGE)
    return clean
