"""MCP Tool definitions for the Segmind API."""

from mcp.types import Tool

from .schema import (
    CheckCreditsArgs,
    EnhanceImageArgs,
    EstimateCostArgs,
    GenerateAudioArgs,
    GenerateImageArgs,
    GenerateMusicArgs,
    GenerateVideoArgs,
    GetModelInfoArgs,
    ListModelsArgs,
    PrepareImageArgs,
    ReadLocalImageArgs,
    ToolArgs,
    TransformImageArgs,
)

# name -> (description, argument model)
TOOL_DEFINITIONS: dict[str, tuple[str, type[ToolArgs]]] = {
    "generate_image": (
        "Generate images from text prompts using Segmind models "
        "(Stable Diffusion XL, Fooocus, GPT-Image-1, FLUX.1 Pro). "
        "Images are saved to disk by default; use display_mode to return them inline.",
        GenerateImageArgs,
    ),
    "transform_image": (
        "Transform an existing image with a text prompt (style transfer, edits, inpainting). "
        "Accepts a file path, prepare_image ID, URL, or base64.",
        TransformImageArgs,
    ),
    "enhance_image": (
        "Enhance an image: upscale, restore faces, remove background, colorize, or denoise.",
        EnhanceImageArgs,
    ),
    "generate_video": (
        "Generate a short video from a text prompt, optionally starting from an image.",
        GenerateVideoArgs,
    ),
    "generate_audio": (
        "Convert text to speech. Use [S1]/[S2] speaker tags for dialogue.",
        GenerateAudioArgs,
    ),
    "generate_music": (
        "Generate instrumental music from a text description.",
        GenerateMusicArgs,
    ),
    "estimate_cost": (
        "Estimate the credit cost and time of a generation before running it.",
        EstimateCostArgs,
    ),
    "prepare_image": (
        "Cache a local image and return a temporary image ID for transform_image or enhance_image.",
        PrepareImageArgs,
    ),
    "read_local_image": (
        "Read a local image file and return it as base64 or a data URI.",
        ReadLocalImageArgs,
    ),
    "list_models": (
        "List available models, optionally filtered by category.",
        ListModelsArgs,
    ),
    "get_model_info": (
        "Get detailed information about a specific model, including its parameters.",
        GetModelInfoArgs,
    ),
    "check_credits": (
        "Check remaining Segmind API credits.",
        CheckCreditsArgs,
    ),
}


def tool_schema(args_model: type[ToolArgs]) -> dict:
    """JSON Schema for a tool's arguments, without pydantic's title noise."""
    schema = args_model.model_json_schema()
    schema.pop("title", None)
    schema.pop("description", None)
    schema.setdefault("properties", {})
    return schema


def get_tools() -> list[Tool]:
    """Get all available MCP tools.

    Returns:
        List of Tool definitions
    """
    return [
        Tool(name=name, description=description, inputSchema=tool_schema(args_model))
        for name, (description, args_model) in TOOL_DEFINITIONS.items()
    ]
