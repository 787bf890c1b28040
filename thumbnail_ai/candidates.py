"""
Candidate generation
====================

Asks the backend for several images from one prompt in parallel so the
user can pick a favourite. Each request gets a per-attempt timeout and a
short linear backoff between attempts; safety rejections are final.
"""

import asyncio
import logging

from thumbnail_ai.api_client import ApiClient
from thumbnail_ai.errors import (
    NetworkError,
    ThumbnailError,
    UpstreamGenerationError,
    ValidationError,
    is_safety_rejection,
)
from thumbnail_ai.generation_models import candidate_inputs
from thumbnail_ai.safety import check_prompt

logger = logging.getLogger(__name__)

GENERATE_ROUTE = "/api/replicate/generate-image"


def result_url(data: dict) -> str | None:
    for key in ("url", "replicateUrl", "output"):
        value = data.get(key)
        if isinstance(value, list):
            value = value[0] if value else None
        if value:
            return value
    return None


class CandidateGenerator:
    def __init__(
        self,
        api: ApiClient,
        count: int = 4,
        attempts: int = 2,
        timeout: float = 30.0,
        backoff: float = 1.0,
        allow_partial: bool = False,
    ):
        self.api = api
        self.count = count
        self.attempts = attempts
        self.timeout = timeout
        self.backoff = backoff
        self.allow_partial = allow_partial

    async def _generate_once(self, body: dict) -> str:
        try:
            data = await asyncio.wait_for(
                self.api.post_json(GENERATE_ROUTE, body), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise NetworkError("Request timed out. Please try again.", timed_out=True) from e
        url = result_url(data)
        if not url:
            raise UpstreamGenerationError("No output received from image generation")
        return url

    async def _generate_with_retry(self, index: int, body: dict) -> str:
        last_error = None
        for attempt in range(1, self.attempts + 1):
            try:
                url = await self._generate_once(body)
                logger.debug("Candidate %d ready after %d attempt(s)", index, attempt)
                return url
            except ThumbnailError as e:
                last_error = e
                if is_safety_rejection(e.message):
                    raise
                logger.info("Candidate %d attempt %d failed: %s", index, attempt, e)
                if attempt < self.attempts:
                    await asyncio.sleep(self.backoff * attempt)
        raise last_error

    async def generate(self, model: str, prompt: str, aspect_ratio: str = "3:2") -> list[str]:
        """
        Return ``count`` image URLs (fewer only when ``allow_partial``).

        The prompt is screened locally first, so a banned term never reaches
        the network.

        Raises:
            ValidationError: Empty or inappropriate prompt, unknown model.
            ThumbnailError: Any candidate failed after its retries (or all
                failed, with ``allow_partial``).
        """
        clean = check_prompt(prompt)
        try:
            body = candidate_inputs(model, clean, aspect_ratio)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        # Every candidate runs to completion (or failure) before we decide
        results = await asyncio.gather(
            *(self._generate_with_retry(i, body) for i in range(self.count)),
            return_exceptions=True,
        )
        urls = [r for r in results if isinstance(r, str)]
        errors = [r for r in results if isinstance(r, BaseException)]
        for error in errors:
            if not isinstance(error, ThumbnailError):
                raise error
        if errors and (not self.allow_partial or not urls):
            raise errors[0]
        if errors:
            logger.warning("%d of %d candidates failed", len(errors), self.count)
        return urls
