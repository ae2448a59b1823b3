"""Image tool handlers: generate, transform, enhance."""

from pathlib import Path
from typing import Any

from loguru import logger

from ..models import ModelCategory, ModelDescriptor
from ..registry import ModelRegistry
from ..schema import EnhanceImageArgs, GenerateImageArgs, TransformImageArgs
from ..utils import ResolvedImage, resolve_image_input, truncate_prompt
from .base import (
    RunTotals,
    ToolContext,
    ToolResult,
    error_result,
    invalid_parameters,
    merge_with_defaults,
    parse_args,
    run_model,
    select_model,
    summary_text,
)

DEFAULT_STEPS = 30
LONG_PROMPT = 2000
WIDE_IMAGE = 1536


# --- generate_image ---


def select_generation_model(registry: ModelRegistry, args: GenerateImageArgs) -> ModelDescriptor | None:
    """Choose a text-to-image model from quality, size, style and prompt length."""
    if args.quality == "high" or (args.width and args.width > WIDE_IMAGE):
        preference = "flux-1-pro"
    elif args.style and "anime" in args.style.lower():
        preference = "sdxl"
    elif len(args.prompt) > LONG_PROMPT:
        preference = "gpt-image-1"
    else:
        preference = "sdxl"
    return select_model(registry, args.model, [ModelCategory.TEXT_TO_IMAGE], [preference])


def enhance_prompt(prompt: str, style: str | None) -> str:
    """Append style keywords the prompt doesn't already mention."""
    if not style:
        return prompt
    lowered = prompt.lower()
    missing = [word for word in style.lower().split() if word not in lowered]
    if missing:
        return f"{prompt}, {' '.join(missing)} style"
    return prompt


def fooocus_aspect_ratio(width: int | None, height: int | None) -> str:
    if not width or not height:
        return "1024*1024"
    return f"{width}*{height}"


def map_generation_params(
    registry: ModelRegistry, args: GenerateImageArgs, model: ModelDescriptor
) -> dict[str, Any]:
    """Translate generate_image arguments into the model's parameter names."""

    def supports(name: str) -> bool:
        return registry.supports(model.id, name)

    params: dict[str, Any] = {"prompt": enhance_prompt(args.prompt, args.style)}

    if args.negative_prompt and supports("negative_prompt"):
        params["negative_prompt"] = args.negative_prompt

    if model.id == "fooocus":
        params["aspect_ratio"] = fooocus_aspect_ratio(args.width, args.height)
    else:
        if args.width:
            params["img_width" if supports("img_width") else "width"] = args.width
        if args.height:
            params["img_height" if supports("img_height") else "height"] = args.height

    default_steps = model.default_params.get("num_inference_steps", DEFAULT_STEPS)
    if args.quality == "draft":
        if supports("num_inference_steps"):
            params["num_inference_steps"] = max(10, default_steps // 3)
        if supports("steps"):
            params["steps"] = 20
    elif args.quality == "high":
        if supports("num_inference_steps"):
            params["num_inference_steps"] = min(150, default_steps * 2)
        if supports("steps"):
            params["steps"] = 60
        if supports("quality"):
            params["quality"] = "hd"

    if args.seed is not None and supports("seed"):
        params["seed"] = args.seed

    if supports("base64"):
        params["base64"] = True

    return merge_with_defaults(params, model)


async def handle_generate_image(ctx: ToolContext, arguments: dict[str, Any]) -> ToolResult:
    """Handle generate_image tool.

    Args:
        ctx: Tool context
        arguments: Raw tool arguments

    Returns:
        ToolResult with one output block per image and a trailing summary
    """
    try:
        parsed = parse_args(GenerateImageArgs, arguments)
        if not parsed.ok:
            return error_result(f"Invalid arguments: {parsed.error}")
        args = parsed.value

        model = select_generation_model(ctx.registry, args)
        if model is None:
            return error_result("No suitable text-to-image model found.")
        logger.info(f"Selected model {model.id} for image generation")

        params = map_generation_params(ctx.registry, args, model)
        validation = ctx.registry.validate_parameters(model.id, params)
        if not validation.ok:
            return invalid_parameters(model, validation)

        content = []
        totals = RunTotals()
        for index in range(args.num_images):
            unit = dict(validation.data)
            if args.seed is not None and "seed" in unit:
                unit["seed"] = args.seed + index
            result = await run_model(
                ctx,
                model,
                unit,
                save_location=args.save_location,
                display_mode=args.display_mode,
            )
            content.extend(result.content)
            totals.add(result)

        prompt, suffix = truncate_prompt(args.prompt)
        headline = f"Generated {args.num_images} image(s) using {model.name}\nPrompt: {prompt}{suffix}"
        content.append(summary_text(headline, model, totals))
        return ToolResult(content)
    except Exception as e:
        return error_result(e, ctx.settings.debug)


# --- transform_image ---


def default_save_location(save_location: str | None, image: ResolvedImage) -> str | None:
    """An explicit location wins; otherwise output lands beside a local input file."""
    if save_location or not image.source_path:
        return save_location
    directory = str(Path(image.source_path).parent)
    logger.info(f"Saving output next to the input image in {directory}")
    return directory


def select_transform_model(registry: ModelRegistry, args: TransformImageArgs) -> ModelDescriptor | None:
    preference = "controlnet" if args.control_type else "flux-kontext-pro"
    return select_model(registry, args.model, [ModelCategory.IMAGE_TO_IMAGE], [preference, "flux-kontext-pro"])


def map_transform_params(
    registry: ModelRegistry,
    args: TransformImageArgs,
    model: ModelDescriptor,
    image: ResolvedImage,
    mask: ResolvedImage | None = None,
) -> dict[str, Any]:
    def supports(name: str) -> bool:
        return registry.supports(model.id, name)

    params: dict[str, Any] = {"prompt": args.prompt, "image": image.value}

    if args.negative_prompt and supports("negative_prompt"):
        params["negative_prompt"] = args.negative_prompt
    if args.seed is not None and supports("seed"):
        params["seed"] = args.seed

    if model.id == "controlnet":
        if args.control_type:
            params["control_type"] = args.control_type
        params["control_strength"] = args.control_strength
    elif supports("strength"):
        params["strength"] = args.strength

    if mask is not None and supports("mask"):
        params["mask"] = mask.value
    if supports("output_format"):
        params["output_format"] = args.output_format
    if supports("base64"):
        params["base64"] = False

    return merge_with_defaults(params, model)


async def handle_transform_image(ctx: ToolContext, arguments: dict[str, Any]) -> ToolResult:
    """Handle transform_image tool."""
    try:
        parsed = parse_args(TransformImageArgs, arguments)
        if not parsed.ok:
            return error_result(f"Invalid arguments: {parsed.error}")
        args = parsed.value

        limit = ctx.settings.max_transform_image_bytes
        image = resolve_image_input(args.image, ctx.image_cache, limit)
        mask = resolve_image_input(args.mask, ctx.image_cache, limit) if args.mask else None

        model = select_transform_model(ctx.registry, args)
        if model is None:
            return error_result("No suitable model found for image transformation.")
        logger.info(f"Selected model {model.id} for image transformation")

        params = map_transform_params(ctx.registry, args, model, image, mask)
        validation = ctx.registry.validate_parameters(model.id, params)
        if not validation.ok:
            return invalid_parameters(model, validation)

        save_location = default_save_location(args.save_location, image)
        result = await run_model(ctx, model, validation.data, save_location=save_location)
        totals = RunTotals()
        totals.add(result)

        headline = f"Image transformed using {model.name} with strength {args.strength}"
        return ToolResult([*result.content, summary_text(headline, model, totals)])
    except Exception as e:
        return error_result(e, ctx.settings.debug)


# --- enhance_image ---

OPERATION_PREFERENCES = {
    "upscale": ("esrgan",),
    "remove_background": ("bg-removal",),
    "restore": ("codeformer", "face-restoration", "esrgan"),
    "colorize": ("colorization",),
    "denoise": ("denoising", "esrgan"),
}


def select_enhancement_model(registry: ModelRegistry, args: EnhanceImageArgs) -> ModelDescriptor | None:
    return select_model(
        registry,
        args.model,
        [ModelCategory.IMAGE_ENHANCEMENT],
        OPERATION_PREFERENCES.get(args.operation, ()),
    )


def map_enhancement_params(
    registry: ModelRegistry,
    args: EnhanceImageArgs,
    model: ModelDescriptor,
    image: ResolvedImage,
) -> dict[str, Any]:
    def supports(name: str) -> bool:
        return registry.supports(model.id, name)

    params: dict[str, Any] = {"image": image.value}

    if model.id == "esrgan":
        params["scale"] = int(args.scale)
        params["face_enhance"] = args.face_enhance
    elif model.id == "bg-removal":
        params["return_mask"] = args.return_mask
        params["alpha_matting"] = args.alpha_matting
    else:
        if args.operation == "upscale" and supports("scale"):
            params["scale"] = int(args.scale)
        if args.operation == "denoise" and supports("denoise_strength"):
            params["denoise_strength"] = args.denoise_strength
        if args.operation in ("restore", "denoise") and supports("fidelity"):
            # codeformer: lower fidelity means stronger restoration
            params["fidelity"] = round(1 - args.denoise_strength, 3)

    if supports("base64"):
        params["base64"] = False

    return merge_with_defaults(params, model)


async def handle_enhance_image(ctx: ToolContext, arguments: dict[str, Any]) -> ToolResult:
    """Handle enhance_image tool."""
    try:
        parsed = parse_args(EnhanceImageArgs, arguments)
        if not parsed.ok:
            return error_result(f"Invalid arguments: {parsed.error}")
        args = parsed.value

        image = resolve_image_input(args.image, ctx.image_cache, ctx.settings.max_enhance_image_bytes)

        model = select_enhancement_model(ctx.registry, args)
        if model is None:
            return error_result(f"No suitable model found for {args.operation} operation.")
        logger.info(f"Selected model {model.id} for {args.operation} operation")

        params = map_enhancement_params(ctx.registry, args, model, image)
        validation = ctx.registry.validate_parameters(model.id, params)
        if not validation.ok:
            return invalid_parameters(model, validation)

        save_location = default_save_location(args.save_location, image)
        content = []
        totals = RunTotals()
        for index in range(args.batch_size):
            if args.batch_size > 1:
                logger.info(f"Processing image {index + 1} of {args.batch_size}")
            result = await run_model(ctx, model, validation.data, save_location=save_location)
            content.extend(result.content)
            totals.add(result)

        operation = args.operation.replace("_", " ").capitalize()
        headline = f"{operation} completed using {model.name}"
        if args.operation == "upscale":
            headline += f" ({args.scale}x)"
        content.append(summary_text(headline, model, totals))
        return ToolResult(content)
    except Exception as e:
        return error_result(e, ctx.settings.debug)
