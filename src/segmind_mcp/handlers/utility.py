"""Catalog, cost and local-image tool handlers. None of these generate media."""

import json
import math
from pathlib import Path
from typing import Any

from loguru import logger

from ..client import Credits
from ..errors import InvalidInputError, ModelNotFoundError, SafeError
from ..models import ModelDescriptor
from ..schema import (
    CheckCreditsArgs,
    EstimateCostArgs,
    GetModelInfoArgs,
    ListModelsArgs,
    PrepareImageArgs,
    ReadLocalImageArgs,
)
from ..utils import MIME_TYPES, encode_file_to_base64, format_credits, format_size, read_local_file
from .base import ToolContext, ToolResult, error_result, parse_args, text_block

LARGE_READ_BYTES = 10 * 1024 * 1024

COST_TIPS = (
    "\nTips:\n"
    "- Use draft quality or lower resolution to save credits\n"
    "- Test with a single output before generating batches\n"
    "- Upscaling and restoration models are the cheapest per run"
)


# --- estimate_cost ---


def cost_per_use(ctx: ToolContext, model: ModelDescriptor) -> float:
    """Observed average credits when tracked, else the catalog figure."""
    observed = ctx.cost_tracker.get_estimated_cost(model.id)
    return observed if observed is not None else model.credits_per_use


async def fetch_balance(ctx: ToolContext) -> Credits | None:
    try:
        return await ctx.client.get_credits()
    except SafeError as e:
        logger.warning(f"Failed to fetch current credits: {e.user_message}")
        return None


def _overview(ctx: ToolContext) -> str:
    lines = ["## Model Cost Overview"]
    for category in ctx.registry.get_categories():
        models = ctx.registry.get_models_by_category(category)
        if not models:
            continue
        lines.append(f"\n### {category}")
        lines.append("| Model | ID | Credits/Use | Est. Time |")
        lines.append("|-------|----|-------------|-----------|")
        for model in models:
            lines.append(
                f"| {model.name} | {model.id} | {format_credits(cost_per_use(ctx, model))} | "
                f"{model.estimated_time:g}s |"
            )
    return "\n".join(lines)


def _model_estimate(ctx: ToolContext, model: ModelDescriptor, operation: str | None, count: int) -> str:
    per_use = cost_per_use(ctx, model)
    total_credits = per_use * count
    total_time = model.estimated_time * count
    source = "observed average" if ctx.cost_tracker.get_estimated_cost(model.id) is not None else "catalog"
    return (
        f"## Cost Estimation for {model.name}\n\n"
        f"Model ID: {model.id}\n"
        f"Category: {model.category}\n"
        f"Operation: {operation or 'generate'}\n\n"
        f"### Cost Breakdown\n"
        f"- Credits per use: {format_credits(per_use)} ({source})\n"
        f"- Number of operations: {count}\n"
        f"- Total credits needed: {format_credits(total_credits)}\n\n"
        f"### Time Estimate\n"
        f"- Time per operation: {model.estimated_time:g}s\n"
        f"- Total estimated time: {total_time:g}s (~{math.ceil(total_time / 60)} minutes)\n\n"
        f"### Model Details\n"
        f"- {model.description}\n"
        f"- Output type: {model.output_type}"
    )


def _affordability(balance: Credits, needed: float) -> str:
    after = balance.remaining - needed
    lines = [
        "### Credit Balance",
        f"- Current balance: {format_credits(balance.remaining)} credits",
        f"- After operation: {format_credits(after)} credits",
    ]
    if after >= 0:
        lines.append("- You have sufficient credits")
    else:
        lines.append("- INSUFFICIENT CREDITS")
        lines.append(f"\nYou need {format_credits(-after)} more credits to complete this operation.")
    return "\n".join(lines)


def _category_estimate(ctx: ToolContext, category: str, models: list[ModelDescriptor], count: int) -> str:
    lines = [
        f"## Cost Estimation for {category} Models",
        "",
        f"Number of operations: {count}",
        "",
        "| Model | Credits/Op | Total Credits | Est. Time |",
        "|-------|------------|---------------|-----------|",
    ]
    for model in models:
        per_use = cost_per_use(ctx, model)
        lines.append(
            f"| {model.name} | {format_credits(per_use)} | {format_credits(per_use * count)} | "
            f"{model.estimated_time * count:g}s |"
        )
    return "\n".join(lines)


async def handle_estimate_cost(ctx: ToolContext, arguments: dict[str, Any]) -> ToolResult:
    """Handle estimate_cost tool.

    Unknown models and empty categories are rejected before any network
    call. The live balance is optional: a failed lookup only drops the
    balance section.
    """
    try:
        parsed = parse_args(EstimateCostArgs, arguments)
        if not parsed.ok:
            return error_result(f"Invalid arguments: {parsed.error}")
        args = parsed.value
        count = args.num_images or args.num_outputs or 1

        model = None
        category_models: list[ModelDescriptor] = []
        if not args.list_all:
            if args.model:
                model = ctx.registry.get_model(args.model)
                if model is None:
                    return error_result(ModelNotFoundError(args.model), ctx.settings.debug)
            elif args.category:
                category_models = ctx.registry.get_models_by_category(args.category)
                if not category_models:
                    return error_result(f"No models found in category '{args.category}'.")

        balance = await fetch_balance(ctx)
        content = []

        if model is not None:
            content.append(text_block(_model_estimate(ctx, model, args.operation, count)))
            if balance is not None:
                content.append(text_block(_affordability(balance, cost_per_use(ctx, model) * count)))
        else:
            if category_models:
                content.append(text_block(_category_estimate(ctx, str(args.category), category_models, count)))
            else:
                content.append(text_block(_overview(ctx)))
            if balance is not None:
                content.append(text_block(f"\nYour current balance: {format_credits(balance.remaining)} credits"))

        content.append(text_block(COST_TIPS))
        return ToolResult(content)
    except Exception as e:
        return error_result(e, ctx.settings.debug)


# --- prepare_image / read_local_image ---


def _image_file(file_path: str) -> tuple[Path, str]:
    """Check an absolute image path and return it with its MIME type.

    Raises:
        InvalidInputError: If the path is relative, missing, or not a supported image type
    """
    path = read_local_file(file_path)
    extension = path.suffix.lower()
    mime_type = MIME_TYPES.get(extension)
    if mime_type is None:
        supported = ", ".join(ext.lstrip(".") for ext in MIME_TYPES)
        raise InvalidInputError(f"Unsupported image format: {extension or '(none)'}. Supported: {supported}")
    return path, mime_type


async def handle_prepare_image(ctx: ToolContext, arguments: dict[str, Any]) -> ToolResult:
    """Handle prepare_image tool.

    Reads a local image into the cache and returns its token so later calls
    can reference the image without carrying base64 through the conversation.
    """
    try:
        parsed = parse_args(PrepareImageArgs, arguments)
        if not parsed.ok:
            return error_result(f"Invalid arguments: {parsed.error}")
        args = parsed.value

        path, mime_type = _image_file(args.file_path)
        b64 = encode_file_to_base64(path)
        size = path.stat().st_size
        token = ctx.image_cache.store(b64, mime_type, str(path))
        logger.info(f"Prepared image {path.name} as {token}")

        lines = [
            "Image prepared successfully!",
            f"File: {path.name}",
            f"Size: {format_size(size)}",
            f"Image ID: {token}",
        ]
        size_kb = size / 1024
        if size_kb > args.max_size_kb:
            lines.append(f"Warning: Image is large ({size_kb:.0f}KB). This may cause slow processing.")
        lines.extend(
            [
                "",
                "Usage examples:",
                f'transform_image({{ image: "{token}", prompt: "oil painting style" }})',
                f'enhance_image({{ image: "{token}", operation: "upscale" }})',
                "",
                f"Tip: This image ID is temporary and expires in {ctx.image_cache.ttl / 60:g} minutes.",
            ]
        )
        return ToolResult([text_block("\n".join(lines))])
    except Exception as e:
        return error_result(e, ctx.settings.debug)


async def handle_read_local_image(ctx: ToolContext, arguments: dict[str, Any]) -> ToolResult:
    """Handle read_local_image tool."""
    try:
        parsed = parse_args(ReadLocalImageArgs, arguments)
        if not parsed.ok:
            return error_result(f"Invalid arguments: {parsed.error}")
        args = parsed.value

        path, mime_type = _image_file(args.file_path)
        b64 = encode_file_to_base64(path)
        size = path.stat().st_size
        if size > LARGE_READ_BYTES:
            logger.warning(f"Large image file: {format_size(size)}. Consider resizing.")

        encoded = f"data:{mime_type};base64,{b64}" if args.return_format == "data_uri" else b64
        return ToolResult(
            [
                text_block(f"Successfully read image: {path.name}"),
                text_block(f"Format: {path.suffix.lstrip('.').upper()}, Size: {format_size(size)}"),
                text_block(f"\nBase64 string ({args.return_format}):"),
                text_block(encoded),
            ]
        )
    except Exception as e:
        return error_result(e, ctx.settings.debug)


# --- catalog ---


def model_summary(model: ModelDescriptor) -> dict[str, Any]:
    return {
        "id": model.id,
        "name": model.name,
        "description": model.description,
        "category": str(model.category),
        "creditsPerUse": model.credits_per_use,
        "estimatedTime": model.estimated_time,
    }


def model_details(model: ModelDescriptor) -> dict[str, Any]:
    return {
        **model_summary(model),
        "endpoint": model.endpoint,
        "apiVersion": model.api_version,
        "outputType": str(model.output_type),
        "supportedFormats": list(model.supported_formats),
        "maxDimensions": model.max_dimensions.model_dump() if model.max_dimensions else None,
        "defaultParams": model.default_params,
        "parameters": sorted(model.parameter_names),
    }


async def handle_list_models(ctx: ToolContext, arguments: dict[str, Any]) -> ToolResult:
    """Handle list_models tool."""
    try:
        parsed = parse_args(ListModelsArgs, arguments)
        if not parsed.ok:
            return error_result(f"Invalid arguments: {parsed.error}")
        args = parsed.value

        if args.category:
            models = ctx.registry.get_models_by_category(args.category)
        else:
            models = ctx.registry.get_all_models()
        return ToolResult([text_block(json.dumps([model_summary(m) for m in models], indent=2))])
    except Exception as e:
        return error_result(e, ctx.settings.debug)


async def handle_get_model_info(ctx: ToolContext, arguments: dict[str, Any]) -> ToolResult:
    """Handle get_model_info tool."""
    try:
        parsed = parse_args(GetModelInfoArgs, arguments)
        if not parsed.ok:
            return error_result(f"Invalid arguments: {parsed.error}")
        args = parsed.value

        model = ctx.registry.get_model(args.model_id)
        if model is None:
            return error_result(ModelNotFoundError(args.model_id), ctx.settings.debug)
        return ToolResult([text_block(json.dumps(model_details(model), indent=2, default=str))])
    except Exception as e:
        return error_result(e, ctx.settings.debug)


async def handle_check_credits(ctx: ToolContext, arguments: dict[str, Any]) -> ToolResult:
    """Handle check_credits tool.

    Args:
        ctx: Tool context
        arguments: Ignored; the tool takes no arguments

    Returns:
        ToolResult with the remaining and used credit counts
    """
    try:
        parse_args(CheckCreditsArgs, arguments)
        credits = await ctx.client.get_credits()
        return ToolResult(
            [
                text_block(
                    f"API Credits:\nRemaining: {format_credits(credits.remaining)}\n"
                    f"Used: {format_credits(credits.used)}"
                )
            ]
        )
    except Exception as e:
        return error_result(e, ctx.settings.debug)
