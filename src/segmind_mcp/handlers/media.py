"""Video, speech and music tool handlers."""

from typing import Any

from loguru import logger

from ..models import ModelCategory, ModelDescriptor
from ..registry import ModelRegistry
from ..schema import GenerateAudioArgs, GenerateMusicArgs, GenerateVideoArgs
from ..utils import ResolvedImage, resolve_image_input
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
    supported,
)

VIDEO_CATEGORIES = [ModelCategory.TEXT_TO_VIDEO, ModelCategory.IMAGE_TO_VIDEO]
SEEDANCE_ASPECT_RATIOS = ("16:9", "4:3", "1:1", "3:4", "9:16")
SEEDANCE_DURATION = (5, 10)

# Tool argument names forwarded to each speech model
AUDIO_FIELDS = {
    "dia-tts": (
        "speed_factor",
        "top_p",
        "temperature",
        "max_new_tokens",
        "cfg_scale",
        "cfg_filter_top_k",
        "input_audio",
        "seed",
    ),
    "orpheus-tts": ("voice", "top_p", "temperature", "max_new_tokens", "repetition_penalty"),
}

DEFAULT_MUSIC_DURATION = 30


# --- generate_video ---


def select_video_model(registry: ModelRegistry, args: GenerateVideoArgs) -> ModelDescriptor | None:
    if args.model:
        return select_model(registry, args.model, VIDEO_CATEGORIES, ["seedance-v1-lite"])
    if args.image:
        # first image-capable model, falling back to the first video model
        return select_model(registry, None, [ModelCategory.IMAGE_TO_VIDEO, ModelCategory.TEXT_TO_VIDEO])
    return select_model(registry, None, VIDEO_CATEGORIES, ["seedance-v1-lite"])


def map_video_params(
    registry: ModelRegistry,
    args: GenerateVideoArgs,
    model: ModelDescriptor,
    image: ResolvedImage | None = None,
) -> dict[str, Any]:
    params: dict[str, Any] = {"prompt": args.prompt}

    if model.id == "veo-3":
        # fixed clip length; duration is not forwarded
        if args.seed is not None:
            params["seed"] = args.seed
        params["aspect_ratio"] = args.aspect_ratio
    elif model.id == "seedance-v1-lite":
        low, high = SEEDANCE_DURATION
        params["duration"] = int(min(max(args.duration, low), high))
        if args.aspect_ratio in SEEDANCE_ASPECT_RATIOS:
            params["aspect_ratio"] = args.aspect_ratio
        if registry.supports(model.id, "resolution"):
            params["resolution"] = "480p" if args.quality == "standard" else "720p"
        if args.seed is not None:
            params["seed"] = args.seed
    else:
        if image is not None and registry.supports(model.id, "image"):
            params["image"] = image.value if image.kind == "url" else f"data:image/png;base64,{image.value}"
        params.update(
            supported(
                registry,
                model,
                {
                    "duration": args.duration,
                    "fps": args.fps,
                    "aspect_ratio": args.aspect_ratio,
                    "motion_strength": args.motion_strength,
                    "seed": args.seed,
                },
            )
        )

    return merge_with_defaults(params, model)


async def handle_generate_video(ctx: ToolContext, arguments: dict[str, Any]) -> ToolResult:
    """Handle generate_video tool.

    Asynchronous (v2) models are submitted and polled until the job finishes.
    """
    try:
        parsed = parse_args(GenerateVideoArgs, arguments)
        if not parsed.ok:
            return error_result(f"Invalid arguments: {parsed.error}")
        args = parsed.value

        image = None
        if args.image:
            image = resolve_image_input(args.image, ctx.image_cache, ctx.settings.max_transform_image_bytes)

        model = select_video_model(ctx.registry, args)
        if model is None:
            return error_result("No suitable video generation model found.")
        logger.info(f"Selected model {model.id} for video generation")

        params = map_video_params(ctx.registry, args, model, image)
        validation = ctx.registry.validate_parameters(model.id, params)
        if not validation.ok:
            return invalid_parameters(model, validation)

        result = await run_model(ctx, model, validation.data, save_location=args.save_location)
        totals = RunTotals()
        totals.add(result)

        duration = validation.data.get("duration")
        length = f"{duration}-second " if duration else ""
        headline = f"Generated {length}video using {model.name}"
        return ToolResult([*result.content, summary_text(headline, model, totals)])
    except Exception as e:
        return error_result(e, ctx.settings.debug)


# --- generate_audio ---


def wants_dialogue_model(args: GenerateAudioArgs) -> bool:
    """Speaker tags or dia-only controls call for the dialogue model."""
    return (
        "[S" in args.text
        or args.speed_factor is not None
        or args.input_audio is not None
        or args.cfg_scale is not None
        or args.cfg_filter_top_k is not None
    )


def select_audio_model(registry: ModelRegistry, args: GenerateAudioArgs) -> ModelDescriptor | None:
    preference = "dia-tts" if wants_dialogue_model(args) else "orpheus-tts"
    return select_model(registry, args.model, [ModelCategory.TEXT_TO_AUDIO], [preference])


def map_audio_params(registry: ModelRegistry, args: GenerateAudioArgs, model: ModelDescriptor) -> dict[str, Any]:
    params: dict[str, Any] = {"text": args.text}
    values = args.model_dump(exclude={"text", "model", "save_location"})
    fields = AUDIO_FIELDS.get(model.id)
    if fields is None:
        params.update(supported(registry, model, values))
    else:
        params.update({name: values[name] for name in fields if values.get(name) is not None})

    if registry.supports(model.id, "base64"):
        params["base64"] = False
    return merge_with_defaults(params, model)


async def handle_generate_audio(ctx: ToolContext, arguments: dict[str, Any]) -> ToolResult:
    """Handle generate_audio tool."""
    try:
        parsed = parse_args(GenerateAudioArgs, arguments)
        if not parsed.ok:
            return error_result(f"Invalid arguments: {parsed.error}")
        args = parsed.value

        model = select_audio_model(ctx.registry, args)
        if model is None:
            return error_result("No suitable TTS model found.")
        logger.info(f"Selected TTS model {model.id}")

        params = map_audio_params(ctx.registry, args, model)
        validation = ctx.registry.validate_parameters(model.id, params)
        if not validation.ok:
            return invalid_parameters(model, validation)

        result = await run_model(ctx, model, validation.data, save_location=args.save_location)
        totals = RunTotals()
        totals.add(result)

        headline = f"Generated speech audio using {model.name}"
        return ToolResult([*result.content, summary_text(headline, model, totals)])
    except Exception as e:
        return error_result(e, ctx.settings.debug)


# --- generate_music ---


def select_music_model(registry: ModelRegistry, args: GenerateMusicArgs) -> ModelDescriptor | None:
    preference = "minimax-music" if args.duration and args.duration > DEFAULT_MUSIC_DURATION else "lyria-2"
    return select_model(registry, args.model, [ModelCategory.TEXT_TO_MUSIC], [preference])


def map_music_params(
    registry: ModelRegistry,
    args: GenerateMusicArgs,
    model: ModelDescriptor,
    variation: int = 0,
) -> dict[str, Any]:
    params: dict[str, Any] = {"prompt": args.prompt}

    if model.id == "lyria-2":
        if args.duration:
            params["duration"] = args.duration
        if args.negative_prompt:
            params["negative_prompt"] = args.negative_prompt
    elif model.id == "minimax-music":
        if args.duration:
            params["duration"] = args.duration
    else:
        params.update(
            supported(registry, model, {"duration": args.duration, "negative_prompt": args.negative_prompt})
        )

    if args.seed is not None and registry.supports(model.id, "seed"):
        params["seed"] = args.seed + variation
    if registry.supports(model.id, "base64"):
        params["base64"] = False
    return merge_with_defaults(params, model)


async def handle_generate_music(ctx: ToolContext, arguments: dict[str, Any]) -> ToolResult:
    """Handle generate_music tool."""
    try:
        parsed = parse_args(GenerateMusicArgs, arguments)
        if not parsed.ok:
            return error_result(f"Invalid arguments: {parsed.error}")
        args = parsed.value

        model = select_music_model(ctx.registry, args)
        if model is None:
            return error_result("No suitable music generation model found.")
        logger.info(f"Selected music model {model.id}")

        # validate every variation before spending credits on any of them
        batches = []
        for variation in range(args.num_outputs):
            validation = ctx.registry.validate_parameters(
                model.id, map_music_params(ctx.registry, args, model, variation)
            )
            if not validation.ok:
                return invalid_parameters(model, validation)
            batches.append(validation.data)

        content = []
        totals = RunTotals()
        for variation, params in enumerate(batches):
            if args.num_outputs > 1:
                logger.info(f"Generating variation {variation + 1} of {args.num_outputs}")
            result = await run_model(ctx, model, params, save_location=args.save_location)
            content.extend(result.content)
            totals.add(result)

        plural = "s" if args.num_outputs > 1 else ""
        headline = (
            f"Generated {args.num_outputs} {args.duration or DEFAULT_MUSIC_DURATION}-second "
            f"music track{plural} using {model.name}"
        )
        content.append(summary_text(headline, model, totals))
        return ToolResult(content)
    except Exception as e:
        return error_result(e, ctx.settings.debug)
