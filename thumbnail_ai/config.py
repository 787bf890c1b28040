"""
Settings
========

Reads provider credentials and runtime knobs once, at startup, and hands
them to every collaborator as a ``Settings`` object.

Discovery order (first existing file wins, its ``env`` block supplies
defaults):
    $THUMBNAIL_SETTINGS
    ./settings.json
    backend/settings.json

Real environment variables always override the file:
    REPLICATE_API_TOKEN  - token for the image provider
    UPLOADTHING_SECRET   - API key for the file host
    THUMBNAIL_DATA_DIR   - where the image history lives
    ...
"""

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Settings discovery
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _settings_paths() -> list[Path]:
    paths = []
    override = os.environ.get("THUMBNAIL_SETTINGS")
    if override:
        paths.append(Path(override))
    paths.append(Path.cwd() / "settings.json")
    paths.append(PROJECT_ROOT / "backend" / "settings.json")
    return paths


def _load_settings_file() -> tuple[dict, str]:
    """Return the ``env`` block of the first available settings file."""
    for path in _settings_paths():
        if path.exists():
            with open(path) as f:
                data = json.load(f)
            return data.get("env", {}), str(path)
    return {}, "env"


# Environment key -> Settings field
ENV_KEYS = {
    "REPLICATE_API_TOKEN": "replicate_api_token",
    "REPLICATE_BASE_URL": "replicate_base_url",
    "UPLOADTHING_SECRET": "uploadthing_secret",
    "UPLOADTHING_APP_ID": "uploadthing_app_id",
    "UPLOADTHING_BASE_URL": "uploadthing_base_url",
    "THUMBNAIL_DATA_DIR": "data_dir",
    "THUMBNAIL_API_BASE_URL": "api_base_url",
    "THUMBNAIL_ALLOWED_ORIGINS": "allowed_origins",
    "THUMBNAIL_GENERATION_TIMEOUT": "generation_timeout",
    "THUMBNAIL_GENERATION_ATTEMPTS": "generation_attempts",
    "THUMBNAIL_CANDIDATE_COUNT": "candidate_count",
    "THUMBNAIL_EDIT_TIMEOUT": "edit_timeout",
    "THUMBNAIL_ALLOW_PARTIAL_CANDIDATES": "allow_partial_candidates",
    "THUMBNAIL_LOG_LEVEL": "log_level",
}


# ---------------------------------------------------------------------------
# Settings model
# ---------------------------------------------------------------------------

class Settings(BaseModel):
    replicate_api_token: str = ""
    replicate_base_url: str = "https://api.replicate.com"
    uploadthing_secret: str = ""
    uploadthing_app_id: str = ""
    uploadthing_base_url: str = "https://uploadthing.com"

    data_dir: Path = PROJECT_ROOT / "generated-images"
    api_base_url: str = "http://localhost:8000"
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Candidate generation (client side)
    generation_timeout: float = Field(default=30.0, gt=0)
    generation_attempts: int = Field(default=2, ge=1, le=10)
    candidate_count: int = Field(default=4, ge=1, le=8)
    allow_partial_candidates: bool = False

    # Region edit (client side)
    edit_timeout: float = Field(default=120.0, gt=0)

    # Replicate prediction polling (backend)
    prediction_timeout: float = Field(default=300.0, gt=0)
    poll_interval: float = Field(default=1.0, gt=0)

    log_level: str = "INFO"
    source: str = "env"

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [o.strip() for o in value.split(",") if o.strip()] or ["*"]
        return value

    @field_validator("log_level")
    @classmethod
    def _check_level(cls, value: str) -> str:
        value = value.upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"Unknown log level '{value}'")
        return value

    @property
    def has_replicate_token(self) -> bool:
        return bool(self.replicate_api_token)

    @property
    def has_uploader(self) -> bool:
        return bool(self.uploadthing_secret)

    def token_preview(self) -> str | None:
        """First four characters of the Replicate token, for diagnostics."""
        if not self.replicate_api_token:
            return None
        return self.replicate_api_token[:4]

    @property
    def db_path(self) -> Path:
        return self.data_dir / "images_db.json"


def load_settings(**overrides) -> Settings:
    """
    Build and validate the settings once.

    Values come from the settings file, then the environment, then
    ``overrides`` (keyword arguments named like the Settings fields).

    Raises:
        pydantic.ValidationError: If any value is malformed.
    """
    file_env, source = _load_settings_file()
    values = {}
    for key, field in ENV_KEYS.items():
        if key in os.environ:
            values[field] = os.environ[key]
        elif key in file_env:
            values[field] = file_env[key]
    values.update(overrides)
    values.setdefault("source", source)
    settings = Settings(**values)
    logger.debug("Loaded settings from %s", settings.source)
    return settings


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------------
# Quick self-test
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cfg = load_settings()
    print(f"Source:    {cfg.source}")
    print(f"Replicate: {cfg.replicate_base_url}")
    print(f"Token:     {cfg.token_preview() or '(missing)'}...")
    print(f"Uploader:  {'configured' if cfg.has_uploader else 'disabled'}")
    print(f"Data dir:  {cfg.data_dir}")
