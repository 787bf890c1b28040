"""
Thumbnail Backend
=================
FastAPI backend for AI thumbnail generation and region editing.
"""

import logging
import re
import time
from io import BytesIO

from fastapi import APIRouter, Body, FastAPI, File, Query, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from thumbnail_ai.config import Settings, configure_logging, load_settings
from thumbnail_ai.editor.overlays import TextOverlay, render_overlays
from thumbnail_ai.errors import (
    ConfigurationError,
    NotFoundError,
    ThumbnailError,
    UpstreamAuthError,
    ValidationError,
)
from thumbnail_ai.generation_models import MODEL_TYPES, InpaintInputs, parse_generation_inputs
from thumbnail_ai.images import decode_image, fetch_image_bytes
from thumbnail_ai.replicate_client import ReplicateClient
from thumbnail_ai.safety import check_prompt
from thumbnail_ai.store import ImageStore
from thumbnail_ai.uploads import MAX_UPLOAD_BYTES, Uploader

logger = logging.getLogger(__name__)

router = APIRouter()

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class EditRegionRequest(BaseModel):
    # Optional so that a missing field gets our own 400 message
    image: str | None = None
    prompt: str | None = None
    mask: str | None = None


class RenderRequest(BaseModel):
    overlays: list[TextOverlay] = Field(default_factory=list, max_length=20)


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------

def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _replicate(request: Request) -> ReplicateClient:
    return request.app.state.replicate


def _uploader(request: Request) -> Uploader:
    return request.app.state.uploader


def _store(request: Request) -> ImageStore:
    return request.app.state.store


def _user_id(request: Request) -> str:
    return request.headers.get("x-user-id") or "anonymous"


def _require_token(request: Request):
    if not _settings(request).has_replicate_token:
        logger.error("Replicate API token is missing")
        raise ConfigurationError("Replicate API token not configured")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/api/health")
def health():
    return {"status": "ok"}


@router.get("/api/replicate/test")
def replicate_test(request: Request):
    settings = _settings(request)
    return {
        "hasReplicateToken": settings.has_replicate_token,
        "tokenFirstChars": settings.token_preview(),
    }


@router.post("/api/replicate/generate-image")
def generate_image(request: Request, body: dict = Body(...)):
    _require_token(request)

    model = body.get("model")
    prompt = body.get("prompt")
    if not (isinstance(model, str) and model and isinstance(prompt, str) and prompt):
        raise ValidationError("Model and prompt are required")
    if model not in MODEL_TYPES:
        raise ValidationError("Invalid model selection")
    clean_prompt = check_prompt(prompt)

    try:
        inputs = parse_generation_inputs({**body, "prompt": clean_prompt})
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid parameters for {model}: {e.errors()[0]['msg']}") from e

    replicate = _replicate(request)
    replicate.validate_token()
    replicate_url = replicate.run(inputs.version, inputs.to_replicate_input())

    hosted_url = _uploader(request).host_or_fallback(
        replicate_url, f"{model}-{int(time.time() * 1000)}.png"
    )
    record = _store(request).add(
        prompt=clean_prompt,
        image_url=hosted_url,
        model=model,
        replicate_url=replicate_url,
        user_id=_user_id(request),
    )
    return {
        "url": hosted_url,
        "replicateUrl": replicate_url,
        "output": replicate_url,
        "image": record,
    }


@router.post("/api/replicate/edit-region")
def edit_region(request: Request, req: EditRegionRequest):
    if not req.image or not req.mask or not (req.prompt or "").strip():
        raise ValidationError("Missing required fields")
    _require_token(request)

    inputs = InpaintInputs(image=req.image, mask=req.mask, prompt=req.prompt.strip())
    try:
        url = _replicate(request).run(inputs.version, inputs.to_replicate_input())
    except UpstreamAuthError:
        raise
    except ThumbnailError as e:
        logger.exception("Error in edit-region: %s", e)
        return JSONResponse({"error": "Failed to edit image region"}, status_code=500)

    _store(request).add(
        prompt=inputs.prompt,
        image_url=url,
        model="sdxl-inpainting",
        kind="edited",
        user_id=_user_id(request),
    )
    return {"url": url}


@router.post("/api/upload")
def upload(request: Request, file: UploadFile | None = File(default=None)):
    if file is None:
        raise ValidationError("No file provided")
    if not (file.content_type or "").startswith("image/"):
        raise ValidationError("Expected an image file")
    data = file.file.read(MAX_UPLOAD_BYTES + 1)
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValidationError("File too large (max 4MB)")

    url = _uploader(request).upload_bytes(file.filename or "upload.png", data, file.content_type)
    return {"success": True, "url": url}


@router.get("/api/images")
def list_images(
    request: Request,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    model: str | None = Query(default=None),
):
    return _store(request).list(page=page, limit=limit, model=model)


@router.get("/api/images/{image_id}")
def get_image(request: Request, image_id: str):
    record = _store(request).get(image_id)
    if not record:
        raise NotFoundError("Image not found")
    return record


@router.post("/api/images/{image_id}/render")
def render_image(
    request: Request,
    image_id: str,
    req: RenderRequest,
    format: str = Query(default="png"),
):
    """Composite text overlays onto a stored image and return it as a download."""
    record = _store(request).get(image_id)
    if not record:
        raise NotFoundError("Image not found")
    if format not in ("png", "jpg", "jpeg", "webp"):
        raise ValidationError(f"Invalid format: {format}. Use png, jpg or webp")

    data = fetch_image_bytes(record["image_url"], _replicate(request).session)
    result = render_overlays(decode_image(data), req.overlays)

    stamp = int(time.time() * 1000)
    safe_name = re.sub(r"[^\w\s-]", "", record["prompt"][:50]).strip().replace(" ", "_")
    filename = f"{safe_name or 'generated-image'}-{stamp}"

    buf = BytesIO()
    if format in ("jpg", "jpeg"):
        result.convert("RGB").save(buf, format="JPEG", quality=90)
        media_type, ext = "image/jpeg", "jpg"
    elif format == "webp":
        result.save(buf, format="WEBP", quality=90)
        media_type, ext = "image/webp", "webp"
    else:
        result.save(buf, format="PNG")
        media_type, ext = "image/png", "png"
    buf.seek(0)
    return StreamingResponse(
        buf,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}.{ext}"'},
    )


# ---------------------------------------------------------------------------
# Error handling
# ---------------------------------------------------------------------------

async def _thumbnail_error(request: Request, exc: ThumbnailError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def _validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {"error": "Missing required fields", "details": jsonable_encoder(exc.errors())},
        status_code=400,
    )


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

def create_app(
    settings: Settings | None = None,
    replicate: ReplicateClient | None = None,
    uploader: Uploader | None = None,
    store: ImageStore | None = None,
) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Make A Thumbnail AI", version="1.0.0")
    app.state.settings = settings
    app.state.replicate = replicate or ReplicateClient(settings)
    app.state.uploader = uploader or Uploader(settings)
    app.state.store = store or ImageStore(settings.db_path)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials="*" not in settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ThumbnailError, _thumbnail_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.include_router(router)

    if not settings.has_replicate_token:
        logger.warning("REPLICATE_API_TOKEN is not set; generation routes will fail")
    return app


app = create_app()
