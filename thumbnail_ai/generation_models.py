"""
Provider model catalog
======================

One input record per Replicate model. The ``model`` field is the tag the
client sends; pydantic picks the right record from it, and each record
knows its Replicate version and how to build the prediction input.

    from thumbnail_ai.generation_models import parse_generation_inputs

    inputs = parse_generation_inputs({"model": "flux", "prompt": "A red fox"})
    inputs.version               # "black-forest-labs/flux-1.1-pro-ultra"
    inputs.to_replicate_input()  # {"prompt": "A red fox", "aspect_ratio": "3:2", ...}
"""

from typing import Annotated, ClassVar, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

DEFAULT_NEGATIVE_PROMPT = (
    "blurry, low quality, distorted, ugly, deformed, pixelated, low resolution, "
    "oversaturated, undersaturated"
)
INPAINT_NEGATIVE_PROMPT = (
    "blurry, low quality, distorted, bad anatomy, bad hands, cropped, worst quality"
)

ASPECT_RATIOS = ["3:2", "16:9", "1:1", "4:3", "9:16"]


class _ModelInputs(BaseModel):
    version: ClassVar[str]
    display_name: ClassVar[str]

    prompt: str = Field(..., min_length=1, max_length=2000)

    def to_replicate_input(self) -> dict:
        return self.model_dump(exclude={"model"})


class FluxInputs(_ModelInputs):
    version: ClassVar[str] = "black-forest-labs/flux-1.1-pro-ultra"
    display_name: ClassVar[str] = "High Quality"

    model: Literal["flux"] = "flux"
    aspect_ratio: str = Field(default="3:2")
    raw: bool = False
    output_format: Literal["jpg", "png"] = "jpg"
    safety_tolerance: int = Field(default=2, ge=1, le=6)
    negative_prompt: str = DEFAULT_NEGATIVE_PROMPT


class StableDiffusionInputs(_ModelInputs):
    version: ClassVar[str] = (
        "stability-ai/stable-diffusion:"
        "db21e45d3f7023abc2a46ee38a23973f6dce16bb082a930b0c49861f96d1e5bf"
    )
    display_name: ClassVar[str] = "Classic"

    model: Literal["stable-diffusion"] = "stable-diffusion"
    width: int = Field(default=1152, ge=64, le=2048)
    height: int = Field(default=864, ge=64, le=2048)
    num_inference_steps: int = Field(default=30, ge=1, le=500)
    scheduler: str = "DPMSolverMultistep"
    guidance_scale: float = Field(default=7.5, ge=1, le=20)
    negative_prompt: str = "blurry, low quality, distorted"


class IdeogramInputs(_ModelInputs):
    # Served by SDXL with an anime style preset
    version: ClassVar[str] = (
        "stability-ai/sdxl:"
        "c221b2b8ef527988fb59bf24a8b97c4561f1c671f73bd389f866bfb27c061316"
    )
    display_name: ClassVar[str] = "Anime"

    model: Literal["ideogram"] = "ideogram"
    width: int = Field(default=1152, ge=64, le=2048)
    height: int = Field(default=864, ge=64, le=2048)
    style_preset: str = "anime"
    num_inference_steps: int = Field(default=30, ge=1, le=500)


GenerationInputs = Annotated[
    Union[FluxInputs, StableDiffusionInputs, IdeogramInputs],
    Field(discriminator="model"),
]

_generation_adapter = TypeAdapter(GenerationInputs)

MODEL_TYPES = {
    "flux": FluxInputs,
    "stable-diffusion": StableDiffusionInputs,
    "ideogram": IdeogramInputs,
}


def parse_generation_inputs(data: dict) -> FluxInputs | StableDiffusionInputs | IdeogramInputs:
    """Validate a request body into the record for its ``model`` tag."""
    return _generation_adapter.validate_python(data)


class InpaintInputs(BaseModel):
    version: ClassVar[str] = (
        "stability-ai/sdxl-inpainting:"
        "39ed52f2a78e934b3ba6e2a89f5b1c712de7dfea535525255b1aa35c5565e08b"
    )

    image: str
    mask: str
    prompt: str
    num_inference_steps: int = 50
    guidance_scale: float = 7.5
    negative_prompt: str = INPAINT_NEGATIVE_PROMPT

    def to_replicate_input(self) -> dict:
        return self.model_dump()


# ---------------------------------------------------------------------------
# Client-side request bodies
# ---------------------------------------------------------------------------

def candidate_inputs(model: str, prompt: str, aspect_ratio: str = "3:2") -> dict:
    """
    Build the JSON body the editor sends for one candidate.

    Raises:
        ValueError: If ``model`` is not in the catalog.
    """
    if model == "flux":
        record = FluxInputs(prompt=f"{prompt}, high quality, detailed", aspect_ratio=aspect_ratio)
    elif model == "stable-diffusion":
        record = StableDiffusionInputs(
            prompt=f"{prompt}, high quality, detailed",
            width=1152,
            height=1152,
            guidance_scale=7.0,
        )
    elif model == "ideogram":
        record = IdeogramInputs(prompt=f"{prompt}, anime style, anime art, japanese animation style")
    else:
        raise ValueError(f"Unknown model '{model}'. Must be one of: {list(MODEL_TYPES)}")
    return record.model_dump()
