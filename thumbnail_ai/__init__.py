"""
Make A Thumbnail AI
===================

Generate thumbnails through Replicate, repaint a selected region with
inpainting, add styled text and download the result.

Available modules:
    - config: Settings discovery and validation
    - replicate_client: Replicate predictions API (generation, inpainting)
    - generation_models: Per-model input records, tagged by model name
    - uploads: UploadThing hosting with fallback to the provider URL
    - store: JSON image history
    - editor: Coordinate mapping, region selection, masks, text overlays
    - edit: Region edit orchestrator
    - candidates: Parallel candidate generation with retries
    - session: Editor state owner used by front ends

Quick Start:
    from thumbnail_ai.config import load_settings
    from thumbnail_ai.session import EditorSession

    async with EditorSession(load_settings()) as session:
        await session.generate_candidates("A sunset over mountains")

Backend:
    uvicorn backend.main:app --port 8000
"""

from thumbnail_ai.config import Settings, load_settings
