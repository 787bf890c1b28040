"""
Replicate Client
================

Thin ``requests`` wrapper around the Replicate predictions API, used by the
backend routes for text-to-image generation and SDXL inpainting.

Usage:
    from thumbnail_ai.config import load_settings
    from thumbnail_ai.replicate_client import ReplicateClient

    client = ReplicateClient(load_settings())
    client.validate_token()
    url = client.run(FluxInputs.version, {"prompt": "A sunset over mountains"})
"""

import logging
import time

import requests

from thumbnail_ai.config import Settings
from thumbnail_ai.errors import (
    ConfigurationError,
    NetworkError,
    UpstreamAuthError,
    UpstreamGenerationError,
)

logger = logging.getLogger(__name__)

TERMINAL_STATES = {"succeeded", "failed", "canceled"}


class ReplicateClient:
    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session or requests.Session()

    # -----------------------------------------------------------------------
    # Request plumbing
    # -----------------------------------------------------------------------

    def get_headers(self, extra: dict | None = None) -> dict:
        """Return standard Authorization + Content-Type headers."""
        if not self.settings.replicate_api_token:
            raise ConfigurationError("Replicate API token not configured")
        h = {
            "Authorization": f"Bearer {self.settings.replicate_api_token}",
            "Content-Type": "application/json",
        }
        if extra:
            h.update(extra)
        return h

    def api_url(self, path: str) -> str:
        """Build a full API URL from a relative path like '/v1/predictions'."""
        if path.startswith("http"):
            return path
        base = self.settings.replicate_base_url.rstrip("/")
        return f"{base}{path}"

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        try:
            r = self.session.request(method, self.api_url(path), **kwargs)
        except requests.Timeout as e:
            raise NetworkError(f"Replicate request timed out: {e}", timed_out=True) from e
        except requests.RequestException as e:
            raise NetworkError(f"Replicate request failed: {e}") from e

        if r.status_code in (401, 403):
            raise UpstreamAuthError("Invalid Replicate API token")
        if r.status_code >= 400:
            raise UpstreamGenerationError(
                f"Replicate request failed ({r.status_code}): {_error_detail(r)}"
            )
        return r

    # -----------------------------------------------------------------------
    # API
    # -----------------------------------------------------------------------

    def validate_token(self) -> None:
        """
        Check the token against the account endpoint.

        Raises:
            ConfigurationError: If no token is configured.
            UpstreamAuthError: If Replicate rejects the token.
        """
        self._request("GET", "/v1/account", headers=self.get_headers(), timeout=30)

    def create_prediction(self, version: str, input: dict) -> dict:
        """Start a prediction. ``owner/name:hash`` pins a version, ``owner/name`` uses the latest."""
        headers = self.get_headers({"Prefer": "wait"})
        if ":" in version:
            path = "/v1/predictions"
            payload = {"version": version.split(":", 1)[1], "input": input}
        else:
            path = f"/v1/models/{version}/predictions"
            payload = {"input": input}
        r = self._request("POST", path, headers=headers, json=payload, timeout=60)
        return r.json()

    def wait_for(self, prediction: dict, timeout: float | None = None) -> dict:
        """Poll a prediction until it reaches a terminal state."""
        timeout = timeout or self.settings.prediction_timeout
        deadline = time.monotonic() + timeout
        while prediction.get("status") not in TERMINAL_STATES:
            if time.monotonic() > deadline:
                raise NetworkError(
                    f"Prediction {prediction.get('id')} did not finish within {timeout:.0f}s",
                    timed_out=True,
                )
            time.sleep(self.settings.poll_interval)
            url = prediction.get("urls", {}).get("get") or f"/v1/predictions/{prediction['id']}"
            r = self._request("GET", url, headers=self.get_headers(), timeout=30)
            prediction = r.json()
            logger.debug("Prediction %s: %s", prediction.get("id"), prediction.get("status"))
        return prediction

    def run(self, version: str, input: dict, timeout: float | None = None) -> str:
        """
        Run a model to completion and return its output URL.

        Raises:
            UpstreamGenerationError: If the prediction fails or has no output.
            UpstreamAuthError: If the token is rejected.
            NetworkError: On connectivity failures or timeout.
        """
        logger.info("Making prediction with %s", version)
        prediction = self.wait_for(self.create_prediction(version, input), timeout)

        if prediction["status"] != "succeeded":
            error = prediction.get("error") or f"Prediction {prediction['status']}"
            raise UpstreamGenerationError(str(error))

        output = prediction.get("output")
        if isinstance(output, list):
            output = output[0] if output else None
        if not output:
            raise UpstreamGenerationError("No output received from the model")
        return output


def _error_detail(r: requests.Response) -> str:
    try:
        data = r.json()
    except ValueError:
        return r.text[:300]
    if isinstance(data, dict):
        return str(data.get("detail") or data.get("error") or data)[:300]
    return str(data)[:300]
