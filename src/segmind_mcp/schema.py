"""Tool argument models; their JSON Schemas are the published tool contracts."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .models import ModelCategory


def image_input_field():
    return Field(
        min_length=1,
        description=(
            "Input image: absolute file path, image ID from prepare_image, URL, "
            "data URI, or base64-encoded data"
        ),
    )


def save_location_field():
    return Field(
        default=None,
        description="Directory to save the output in. Overrides the default save location.",
    )


def seed_field():
    return Field(default=None, description="Seed for reproducible generation")


class ToolArgs(BaseModel):
    """Base for tool arguments; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore", protected_namespaces=())


class GenerateImageArgs(ToolArgs):
    """Generate images from a text prompt."""

    prompt: str = Field(min_length=1, max_length=4000, description="Text description of the image")
    model: str | None = Field(default=None, description="Text-to-image model ID (auto-selected if omitted)")
    negative_prompt: str | None = Field(default=None, description="What to avoid in the image")
    width: int | None = Field(default=None, ge=256, le=2048, multiple_of=8, description="Image width in pixels")
    height: int | None = Field(default=None, ge=256, le=2048, multiple_of=8, description="Image height in pixels")
    num_images: int = Field(default=1, ge=1, le=4, description="Number of images to generate")
    seed: int | None = seed_field()
    quality: Literal["draft", "standard", "high"] = Field(
        default="standard", description="Quality preset; affects model choice and step count"
    )
    style: str | None = Field(default=None, description="Style keywords appended to the prompt, e.g. 'anime'")
    display_mode: Literal["display", "save", "both"] = Field(
        default="save",
        description="save: write files and return paths; display: inline image; both: inline and saved",
    )
    save_location: str | None = save_location_field()


class TransformImageArgs(ToolArgs):
    """Transform an existing image guided by a prompt."""

    image: str = image_input_field()
    prompt: str = Field(min_length=1, max_length=2000, description="Transformation prompt describing desired changes")
    model: str | None = Field(default=None, description="Image-to-image model ID")
    negative_prompt: str | None = Field(default=None, description="What to avoid in the transformation")
    strength: float = Field(default=0.75, ge=0, le=1, description="0 = no change, 1 = complete change")
    mask: str | None = Field(default=None, description="Mask image for inpainting (base64 or URL)")
    control_type: Literal["canny", "depth", "pose", "scribble", "segmentation"] | None = Field(
        default=None, description="ControlNet conditioning type"
    )
    control_strength: float = Field(default=1.0, ge=0, le=2, description="ControlNet conditioning strength")
    seed: int | None = seed_field()
    output_format: Literal["png", "jpeg", "webp"] = Field(default="png", description="Output image format")
    save_location: str | None = save_location_field()


class EnhanceImageArgs(ToolArgs):
    """Upscale, restore, or otherwise enhance an image."""

    image: str = image_input_field()
    operation: Literal["upscale", "restore", "remove_background", "colorize", "denoise"] = Field(
        description="Enhancement operation to perform"
    )
    model: str | None = Field(default=None, description="Enhancement model ID")
    scale: Literal["2", "4", "8"] = Field(default="4", description="Upscaling factor")
    face_enhance: bool = Field(default=False, description="Enhance faces during upscaling")
    return_mask: bool = Field(default=False, description="Return mask for background removal")
    alpha_matting: bool = Field(default=True, description="Use alpha matting for cleaner edges")
    denoise_strength: float = Field(default=0.5, ge=0, le=1, description="Denoising / restoration strength")
    batch_size: int = Field(default=1, ge=1, le=10, description="Number of times to run the enhancement")
    save_location: str | None = save_location_field()


class GenerateVideoArgs(ToolArgs):
    """Generate a video from a text prompt, optionally from a start image."""

    prompt: str = Field(min_length=1, max_length=2000, description="Text description of the video")
    model: str | None = Field(default=None, description="Video model ID")
    image: str | None = Field(default=None, description="Optional start image (URL or base64)")
    duration: float = Field(default=5, ge=1, le=30, description="Duration in seconds")
    fps: int = Field(default=24, ge=12, le=60, description="Frames per second")
    aspect_ratio: Literal["16:9", "9:16", "1:1", "4:3"] = Field(default="16:9", description="Aspect ratio")
    quality: Literal["standard", "high", "ultra"] = Field(default="high", description="Quality preset")
    motion_strength: float | None = Field(default=None, ge=0, le=1, description="Amount of motion")
    seed: int | None = seed_field()
    save_location: str | None = save_location_field()


class GenerateAudioArgs(ToolArgs):
    """Convert text to speech."""

    text: str = Field(min_length=1, max_length=5000, description="Text to speak; [S1]/[S2] tags mark speakers")
    model: str | None = Field(default=None, description="TTS model ID (dia-tts or orpheus-tts)")
    voice: str | None = Field(default=None, description="Voice (orpheus: tara, dan, josh, emma)")
    temperature: float | None = Field(default=None, ge=0.1, le=2.0, description="Expressiveness (0.1-2.0)")
    top_p: float | None = Field(default=None, ge=0.1, le=1.0, description="Word variety (0.1-1.0)")
    max_new_tokens: int | None = Field(default=None, ge=100, le=10000, description="Controls audio length")
    speed_factor: float | None = Field(default=None, ge=0.5, le=1.5, description="Playback speed (dia only)")
    cfg_scale: float | None = Field(default=None, ge=1, le=5, description="Text adherence (dia only)")
    cfg_filter_top_k: int | None = Field(default=None, ge=10, le=100, description="Token filtering (dia only)")
    input_audio: str | None = Field(default=None, description="Base64 audio for voice cloning (dia only)")
    repetition_penalty: float | None = Field(
        default=None, ge=1.0, le=2.0, description="Penalty for repeated phrases (orpheus only)"
    )
    seed: int | None = seed_field()
    save_location: str | None = save_location_field()


class GenerateMusicArgs(ToolArgs):
    """Generate music from a text description."""

    prompt: str = Field(min_length=1, description="Text description of the music")
    model: str | None = Field(default=None, description="Music model ID")
    duration: int | None = Field(default=None, ge=1, le=300, description="Duration in seconds")
    negative_prompt: str | None = Field(default=None, description="What to avoid")
    seed: int | None = seed_field()
    num_outputs: int = Field(default=1, ge=1, le=4, description="Number of variations")
    save_location: str | None = save_location_field()


class EstimateCostArgs(ToolArgs):
    """Estimate credits and time for an operation."""

    operation: str | None = Field(default=None, description="Operation type (generate, transform, enhance, ...)")
    model: str | None = Field(default=None, description="Model ID to estimate")
    category: ModelCategory | None = Field(default=None, description="Estimate every model in a category")
    num_images: int | None = Field(default=None, ge=1, le=10, description="Number of images")
    num_outputs: int | None = Field(default=None, ge=1, le=10, description="Number of outputs")
    list_all: bool = Field(default=False, description="List costs for all models")


class PrepareImageArgs(ToolArgs):
    """Cache a local image and return a reusable image ID."""

    file_path: str = Field(min_length=1, description="Absolute path to the image file")
    max_size_kb: float = Field(default=800, gt=0, description="Warn when the file is larger than this")


class ReadLocalImageArgs(ToolArgs):
    """Read a local image file as base64."""

    file_path: str = Field(min_length=1, description="Absolute path to the image file")
    return_format: Literal["base64", "data_uri"] = Field(default="base64", description="Output encoding")


class ListModelsArgs(ToolArgs):
    """List catalog models."""

    category: ModelCategory | None = Field(default=None, description="Filter by category")


class GetModelInfoArgs(ToolArgs):
    """Describe one catalog model."""

    model_id: str = Field(min_length=1, description="Model ID")


class CheckCreditsArgs(ToolArgs):
    """Check the account credit balance."""
