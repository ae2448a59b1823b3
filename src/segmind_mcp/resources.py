"""MCP resources and prompts: catalog and credit views, art style prompt."""

import json
from datetime import datetime, timezone
from typing import Any

from loguru import logger
from mcp.types import GetPromptResult, Prompt, PromptArgument, PromptMessage, Resource, TextContent

from .errors import InvalidInputError, map_to_safe_error
from .handlers import ToolContext
from .models import ModelCategory, ModelDescriptor

MODELS_URI = "segmind://models"
CREDITS_URI = "segmind://credits"
JSON_MIME = "application/json"

ART_STYLES_PROMPT = "art_styles"


def get_resources() -> list[Resource]:
    """List the catalog (whole and per category) and the credit balance."""
    categories = [
        Resource(
            uri=f"{MODELS_URI}/{category}",
            name=f"{str(category).upper()} Models",
            description=f"List models in the {category} category",
            mimeType=JSON_MIME,
        )
        for category in ModelCategory
    ]
    return [
        Resource(
            uri=MODELS_URI,
            name="All Available Models",
            description="List all available Segmind models",
            mimeType=JSON_MIME,
        ),
        *categories,
        Resource(
            uri=CREDITS_URI,
            name="API Credits",
            description="Check remaining API credits",
            mimeType=JSON_MIME,
        ),
    ]


def _model_entry(model: ModelDescriptor) -> dict[str, Any]:
    return {
        "id": model.id,
        "name": model.name,
        "description": model.description,
        "category": str(model.category),
        "creditsPerUse": model.credits_per_use,
        "estimatedTime": model.estimated_time,
        "outputType": str(model.output_type),
        "supportedFormats": list(model.supported_formats),
    }


async def _read(ctx: ToolContext, uri: str) -> dict[str, Any]:
    if uri == MODELS_URI:
        models = ctx.registry.get_all_models()
        return {"totalModels": len(models), "models": [_model_entry(m) for m in models]}

    if uri.startswith(f"{MODELS_URI}/"):
        category = uri.removeprefix(f"{MODELS_URI}/")
        models = ctx.registry.get_models_by_category(category)
        if not models:
            raise InvalidInputError(f"Invalid category: {category}")
        entries = []
        for model in models:
            entry = _model_entry(model)
            del entry["category"]
            entry["defaultParams"] = model.default_params
            entries.append(entry)
        return {"category": category, "totalModels": len(models), "models": entries}

    if uri == CREDITS_URI:
        credits = await ctx.client.get_credits()
        return {
            "credits": {"remaining": credits.remaining, "used": credits.used},
            "lastUpdated": datetime.now(timezone.utc).isoformat(),
        }

    raise InvalidInputError(f"Unknown resource: {uri}")


async def read_resource(ctx: ToolContext, uri: str) -> str:
    """Render a resource as JSON text.

    Args:
        ctx: Shared tool context
        uri: Resource URI, e.g. "segmind://models/text2img"

    Returns:
        JSON document

    Raises:
        SafeError: Unknown URIs, empty categories, or a failed credit lookup
    """
    uri = uri.rstrip("/")
    logger.info(f"Reading resource {uri}")
    try:
        return json.dumps(await _read(ctx, uri), indent=2)
    except Exception as e:
        safe = map_to_safe_error(e)
        logger.error(f"Resource read failed [{safe.kind}]: {safe.user_message}")
        raise safe from e


def get_prompts() -> list[Prompt]:
    return [
        Prompt(
            name=ART_STYLES_PROMPT,
            description="Generate images in specific art styles",
            arguments=[
                PromptArgument(
                    name="style",
                    description="Art style (e.g., impressionist, anime, photorealistic)",
                    required=True,
                ),
                PromptArgument(name="subject", description="What to depict", required=True),
            ],
        )
    ]


def render_prompt(name: str, arguments: dict[str, str] | None) -> GetPromptResult:
    """Fill a prompt template; missing arguments take sensible defaults.

    Raises:
        InvalidInputError: If the prompt name is unknown
    """
    if name != ART_STYLES_PROMPT:
        raise InvalidInputError(f"Unknown prompt: {name}")

    arguments = arguments or {}
    style = arguments.get("style") or "photorealistic"
    subject = arguments.get("subject") or "landscape"
    text = (
        f"Create a {style} artwork depicting: {subject}. "
        f"Include rich details and appropriate artistic techniques for the {style} style."
    )
    return GetPromptResult(
        description=f"Generate {subject} in {style} style",
        messages=[PromptMessage(role="user", content=TextContent(type="text", text=text))],
    )
