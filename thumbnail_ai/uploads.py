"""
File Hosting
============

Copies provider images to UploadThing so the history keeps a stable URL.
Replicate output URLs expire, the hosted copy does not.

Usage:
    from thumbnail_ai.uploads import Uploader

    uploader = Uploader(settings)
    url = uploader.host_or_fallback(replicate_url, "flux-1718000000000.png")
"""

import base64
import logging

import requests

from thumbnail_ai.config import Settings
from thumbnail_ai.errors import ConfigurationError, NetworkError, ThumbnailError
from thumbnail_ai.images import fetch_image_bytes

logger = logging.getLogger(__name__)

MAX_UPLOAD_BYTES = 4 * 1024 * 1024
UPLOAD_ENDPOINT = "imageUploader"


class Uploader:
    def __init__(self, settings: Settings, session: requests.Session | None = None):
        self.settings = settings
        self.session = session or requests.Session()

    @property
    def enabled(self) -> bool:
        return self.settings.has_uploader

    def upload_bytes(self, name: str, data: bytes, content_type: str = "image/png") -> str:
        """
        Upload a file and return its hosted URL.

        Raises:
            ConfigurationError: If no UploadThing secret is configured.
            NetworkError: If the upload fails or the response has no URL.
        """
        if not self.enabled:
            raise ConfigurationError("UPLOADTHING_SECRET is not configured")

        payload = {
            "files": [{
                "name": name,
                "type": content_type,
                "size": len(data),
                "content": base64.b64encode(data).decode("ascii"),
                "endpoint": UPLOAD_ENDPOINT,
            }],
        }
        headers = {
            "x-uploadthing-api-key": self.settings.uploadthing_secret,
            "Content-Type": "application/json",
        }
        if self.settings.uploadthing_app_id:
            headers["x-uploadthing-app-id"] = self.settings.uploadthing_app_id

        url = f"{self.settings.uploadthing_base_url.rstrip('/')}/api/uploadFiles"
        try:
            r = self.session.post(url, headers=headers, json=payload, timeout=60)
        except requests.RequestException as e:
            raise NetworkError(f"Upload failed: {e}") from e
        if r.status_code != 200:
            raise NetworkError(f"Upload failed ({r.status_code}): {r.text[:300]}")

        entries = r.json().get("data") or []
        hosted = (entries[0].get("fileUrl") or entries[0].get("url")) if entries else None
        if not hosted:
            raise NetworkError(f"Upload response has no file URL: {r.text[:300]}")
        logger.info("Uploaded %s -> %s", name, hosted)
        return hosted

    def host_or_fallback(self, source_url: str, name: str) -> str:
        """Return a hosted copy of ``source_url``, or ``source_url`` itself on any failure."""
        if not self.enabled:
            return source_url
        try:
            data = fetch_image_bytes(source_url, self.session)
            return self.upload_bytes(name, data)
        except ThumbnailError as e:
            logger.warning("Background upload failed, keeping provider URL: %s", e)
            return source_url
