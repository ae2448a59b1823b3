"""Model catalog: per-model parameter schemas and descriptors."""

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ModelCategory(StrEnum):
    TEXT_TO_IMAGE = "text2img"
    IMAGE_TO_IMAGE = "img2img"
    TEXT_TO_VIDEO = "text2video"
    IMAGE_TO_VIDEO = "img2video"
    TEXT_TO_AUDIO = "text2audio"
    TEXT_TO_MUSIC = "text2music"
    IMAGE_ENHANCEMENT = "enhancement"


class OutputType(StrEnum):
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    TEXT = "text"


class ModelParams(BaseModel):
    """Base for upstream parameter schemas; unknown keys are dropped."""

    model_config = ConfigDict(extra="ignore")


# --- Text to image ---


class SdxlParams(ModelParams):
    prompt: str = Field(min_length=1)
    negative_prompt: str | None = None
    style: str = "base"
    samples: int = Field(default=1, ge=1, le=4)
    scheduler: str = "UniPC"
    num_inference_steps: int = Field(default=25, ge=10, le=150)
    guidance_scale: float = Field(default=8.0, ge=1, le=25)
    seed: int | None = Field(default=None, ge=-1)
    img_width: int = Field(default=1024, ge=256, le=2048)
    img_height: int = Field(default=1024, ge=256, le=2048)
    refiner: bool = True
    base64: bool = False


class FooocusParams(ModelParams):
    prompt: str = Field(min_length=1)
    negative_prompt: str | None = None
    steps: int = Field(default=30, ge=20, le=100)
    cfg_scale: float = Field(default=4.0, ge=1, le=20)
    style: str = "Fooocus V2"
    aspect_ratio: str = "1024*1024"
    seed: int | None = Field(default=None, ge=-1)
    base64: bool = False


class GptImageParams(ModelParams):
    prompt: str = Field(min_length=1, max_length=32000)
    size: Literal["auto", "1024x1024", "1536x1024", "1024x1536"] = "auto"
    quality: Literal["standard", "hd"] = "standard"
    moderation: Literal["auto", "low"] = "auto"


class FluxProParams(ModelParams):
    prompt: str = Field(min_length=1)
    width: int = Field(default=1024, ge=256, le=2048)
    height: int = Field(default=1024, ge=256, le=2048)
    seed: int | None = Field(default=None, ge=0)
    prompt_upsampling: bool = False
    safety_tolerance: int = Field(default=2, ge=1, le=6)
    output_format: Literal["jpeg", "png"] = "png"


# --- Image to image ---


class FluxKontextParams(ModelParams):
    prompt: str = Field(min_length=1)
    image: str = Field(min_length=1)
    strength: float = Field(default=0.75, ge=0, le=1)
    seed: int | None = Field(default=None, ge=0)
    output_format: Literal["png", "jpeg", "webp"] = "png"


# --- Enhancement ---


class EsrganParams(ModelParams):
    image: str = Field(min_length=1)
    scale: int = Field(default=4, ge=2, le=8)
    face_enhance: bool = False


class CodeformerParams(ModelParams):
    image: str = Field(min_length=1)
    scale: int = Field(default=1, ge=1, le=4)
    fidelity: float = Field(default=0.5, ge=0, le=1)
    bg_upsample: bool = True
    face_upsample: bool = True


# --- Video ---


class Veo3Params(ModelParams):
    prompt: str = Field(min_length=1)
    aspect_ratio: Literal["16:9", "9:16"] = "16:9"
    generate_audio: bool = True
    seed: int | None = None


class SeedanceParams(ModelParams):
    prompt: str = Field(min_length=1)
    duration: int = Field(default=5, ge=5, le=10)
    aspect_ratio: Literal["16:9", "4:3", "1:1", "3:4", "9:16"] = "16:9"
    resolution: Literal["480p", "720p"] = "720p"
    seed: int | None = None


# --- Speech ---


class DiaTtsParams(ModelParams):
    text: str = Field(min_length=1)
    top_p: float = Field(default=0.95, ge=0.1, le=1.0)
    cfg_scale: float = Field(default=4.0, ge=1, le=5)
    temperature: float = Field(default=1.3, ge=0.1, le=2.0)
    input_audio: str | None = None
    max_new_tokens: int = Field(default=3072, ge=100, le=10000)
    speed_factor: float = Field(default=0.94, ge=0.5, le=1.5)
    cfg_filter_top_k: int = Field(default=35, ge=10, le=100)
    seed: int | None = None


class OrpheusTtsParams(ModelParams):
    text: str = Field(min_length=1)
    voice: Literal["tara", "dan", "josh", "emma"] = "tara"
    top_p: float = Field(default=0.95, ge=0.1, le=1.0)
    temperature: float = Field(default=0.6, ge=0.1, le=2.0)
    max_new_tokens: int = Field(default=1200, ge=100, le=10000)
    repetition_penalty: float = Field(default=1.1, ge=1.0, le=2.0)


# --- Music ---


class Lyria2Params(ModelParams):
    prompt: str = Field(min_length=1)
    duration: int = Field(default=30, ge=1, le=30)
    negative_prompt: str | None = None
    seed: int | None = None


class MinimaxMusicParams(ModelParams):
    prompt: str = Field(min_length=1)
    duration: int = Field(default=60, ge=1, le=300)


class Dimensions(BaseModel):
    model_config = ConfigDict(frozen=True)

    width: int
    height: int


class ModelDescriptor(BaseModel):
    """Static metadata for one upstream generation model."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str
    name: str
    description: str
    category: ModelCategory
    endpoint: str
    api_version: Literal["v1", "v2"] = "v1"
    output_type: OutputType
    estimated_time: float  # seconds
    credits_per_use: float
    parameter_schema: type[ModelParams]
    default_params: dict[str, Any] = Field(default_factory=dict)
    supported_formats: tuple[str, ...] = ()
    max_dimensions: Dimensions | None = None

    @property
    def parameter_names(self) -> frozenset[str]:
        return frozenset(self.parameter_schema.model_fields)


CATALOG: tuple[ModelDescriptor, ...] = (
    ModelDescriptor(
        id="sdxl",
        name="Stable Diffusion XL",
        description="General purpose text-to-image model with good speed and quality balance",
        category=ModelCategory.TEXT_TO_IMAGE,
        endpoint="/sdxl1.0-txt2img",
        output_type=OutputType.IMAGE,
        estimated_time=10,
        credits_per_use=1,
        parameter_schema=SdxlParams,
        default_params={"num_inference_steps": 25, "guidance_scale": 8.0, "scheduler": "UniPC"},
        supported_formats=("png", "jpeg"),
        max_dimensions=Dimensions(width=2048, height=2048),
    ),
    ModelDescriptor(
        id="fooocus",
        name="Fooocus",
        description="Prompt-friendly SDXL pipeline with curated styles",
        category=ModelCategory.TEXT_TO_IMAGE,
        endpoint="/fooocus",
        output_type=OutputType.IMAGE,
        estimated_time=15,
        credits_per_use=1,
        parameter_schema=FooocusParams,
        default_params={"steps": 30, "cfg_scale": 4.0},
        supported_formats=("png", "jpeg"),
        max_dimensions=Dimensions(width=1536, height=1536),
    ),
    ModelDescriptor(
        id="gpt-image-1",
        name="GPT Image 1",
        description="OpenAI image model with strong prompt adherence and long prompt support",
        category=ModelCategory.TEXT_TO_IMAGE,
        endpoint="/gpt-image-1",
        output_type=OutputType.IMAGE,
        estimated_time=30,
        credits_per_use=4,
        parameter_schema=GptImageParams,
        default_params={"size": "auto", "moderation": "auto"},
        supported_formats=("png",),
        max_dimensions=Dimensions(width=1536, height=1536),
    ),
    ModelDescriptor(
        id="flux-1-pro",
        name="FLUX.1 Pro",
        description="High quality text-to-image model for detailed, large outputs",
        category=ModelCategory.TEXT_TO_IMAGE,
        endpoint="/models/flux-pro",
        output_type=OutputType.IMAGE,
        estimated_time=15,
        credits_per_use=3,
        parameter_schema=FluxProParams,
        default_params={"safety_tolerance": 2, "output_format": "png"},
        supported_formats=("png", "jpeg"),
        max_dimensions=Dimensions(width=2048, height=2048),
    ),
    ModelDescriptor(
        id="flux-kontext-pro",
        name="FLUX.1 Kontext Pro",
        description="Instruction-based image editing and transformation",
        category=ModelCategory.IMAGE_TO_IMAGE,
        endpoint="/flux-kontext-pro",
        output_type=OutputType.IMAGE,
        estimated_time=20,
        credits_per_use=3,
        parameter_schema=FluxKontextParams,
        default_params={"output_format": "png"},
        supported_formats=("png", "jpeg", "webp"),
    ),
    ModelDescriptor(
        id="esrgan",
        name="ESRGAN Upscaler",
        description="Super-resolution upscaling with optional face enhancement",
        category=ModelCategory.IMAGE_ENHANCEMENT,
        endpoint="/esrgan",
        output_type=OutputType.IMAGE,
        estimated_time=10,
        credits_per_use=0.5,
        parameter_schema=EsrganParams,
        default_params={"scale": 4},
        supported_formats=("png", "jpeg"),
    ),
    ModelDescriptor(
        id="codeformer",
        name="CodeFormer",
        description="Face restoration for old, blurry or low quality photos",
        category=ModelCategory.IMAGE_ENHANCEMENT,
        endpoint="/codeformer",
        output_type=OutputType.IMAGE,
        estimated_time=10,
        credits_per_use=0.5,
        parameter_schema=CodeformerParams,
        default_params={"fidelity": 0.5},
        supported_formats=("png", "jpeg"),
    ),
    ModelDescriptor(
        id="seedance-v1-lite",
        name="Seedance V1 Lite",
        description="Fast text-to-video generation with 5-10 second clips",
        category=ModelCategory.TEXT_TO_VIDEO,
        endpoint="/seedance-v1-lite-text-to-video",
        output_type=OutputType.VIDEO,
        estimated_time=60,
        credits_per_use=10,
        parameter_schema=SeedanceParams,
        default_params={"duration": 5, "resolution": "720p"},
        supported_formats=("mp4",),
    ),
    ModelDescriptor(
        id="veo-3",
        name="Google Veo 3",
        description="Cinematic text-to-video generation with native audio",
        category=ModelCategory.TEXT_TO_VIDEO,
        endpoint="/veo-3",
        output_type=OutputType.VIDEO,
        estimated_time=120,
        credits_per_use=40,
        parameter_schema=Veo3Params,
        default_params={"generate_audio": True},
        supported_formats=("mp4",),
    ),
    ModelDescriptor(
        id="orpheus-tts",
        name="Orpheus TTS",
        description="Natural single-speaker text-to-speech with selectable voices",
        category=ModelCategory.TEXT_TO_AUDIO,
        endpoint="/orpheus-3b-0.1",
        output_type=OutputType.AUDIO,
        estimated_time=15,
        credits_per_use=0.5,
        parameter_schema=OrpheusTtsParams,
        default_params={"voice": "tara"},
        supported_formats=("wav",),
    ),
    ModelDescriptor(
        id="dia-tts",
        name="Dia TTS",
        description="Multi-speaker dialogue text-to-speech using [S1]/[S2] tags, with voice cloning",
        category=ModelCategory.TEXT_TO_AUDIO,
        endpoint="/dia",
        output_type=OutputType.AUDIO,
        estimated_time=20,
        credits_per_use=0.5,
        parameter_schema=DiaTtsParams,
        default_params={"speed_factor": 0.94},
        supported_formats=("wav",),
    ),
    ModelDescriptor(
        id="lyria-2",
        name="Lyria 2",
        description="High fidelity instrumental music clips up to 30 seconds",
        category=ModelCategory.TEXT_TO_MUSIC,
        endpoint="/lyria-2",
        output_type=OutputType.AUDIO,
        estimated_time=30,
        credits_per_use=3,
        parameter_schema=Lyria2Params,
        supported_formats=("wav",),
    ),
    ModelDescriptor(
        id="minimax-music",
        name="MiniMax Music",
        description="Longer-form music generation up to 5 minutes",
        category=ModelCategory.TEXT_TO_MUSIC,
        endpoint="/minimax-music-01",
        output_type=OutputType.AUDIO,
        estimated_time=60,
        credits_per_use=4,
        parameter_schema=MinimaxMusicParams,
        supported_formats=("mp3",),
    ),
)
