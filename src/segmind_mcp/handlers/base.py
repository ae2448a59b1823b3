"""Shared pipeline for tool handlers: validation, model selection, execution."""

import asyncio
import json
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from loguru import logger
from mcp.types import TextContent
from pydantic import ValidationError

from ..cache import ImageCache
from ..client import ApiResponse, SegmindClient
from ..config import Settings
from ..cost_tracker import CostTracker
from ..errors import (
    ApiError,
    ErrorKind,
    GenerationError,
    InvalidInputError,
    NetworkError,
    RateLimitError,
    RequestTimeoutError,
    SafeError,
    map_to_safe_error,
)
from ..formatter import Content, DisplayMode, format_response
from ..models import ModelCategory, ModelDescriptor, OutputType
from ..registry import ModelRegistry, ParameterValidation, format_validation_error
from ..schema import ToolArgs
from ..utils import format_credits

ArgsT = TypeVar("ArgsT", bound=ToolArgs)

JOB_COMPLETED = "completed"
JOB_FAILED = "failed"

ERROR_HINTS = {
    ErrorKind.AUTHENTICATION: "Check that SEGMIND_API_KEY is valid and properly configured.",
    ErrorKind.INSUFFICIENT_CREDITS: "Add credits to your Segmind account.",
    ErrorKind.NETWORK: "Unable to reach the Segmind API. Check your internet connection.",
    ErrorKind.TIMEOUT: "The request took too long to process. Please try again.",
    ErrorKind.MODEL_NOT_FOUND: "Use list_models to see available models.",
}


@dataclass
class ToolContext:
    """Collaborators shared by every tool invocation, built once at startup."""

    settings: Settings
    client: SegmindClient
    registry: ModelRegistry
    image_cache: ImageCache
    cost_tracker: CostTracker

    @classmethod
    def from_settings(cls, settings: Settings) -> "ToolContext":
        return cls(
            settings=settings,
            client=SegmindClient(settings),
            registry=ModelRegistry(),
            image_cache=ImageCache(ttl=settings.cache_ttl, max_entries=settings.cache_max_entries),
            cost_tracker=CostTracker(settings.cost_data_path),
        )


@dataclass
class ToolResult:
    content: list[Content]
    is_error: bool = False

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.content if isinstance(block, TextContent))


@dataclass
class GenerationResult:
    content: list[Content]
    model_id: str
    credits_used: float
    processing_time: float  # seconds
    metadata: dict[str, Any] | None = None


@dataclass
class ParsedArgs(Generic[ArgsT]):
    ok: bool
    value: ArgsT | None = None
    error: str | None = None


@dataclass
class RunTotals:
    """Accumulates credits and time across the units of a batch."""

    credits: float = 0
    seconds: float = 0
    runs: list[GenerationResult] = field(default_factory=list)

    def add(self, result: GenerationResult) -> None:
        self.credits += result.credits_used
        self.seconds += result.processing_time
        self.runs.append(result)


def text_block(text: str) -> TextContent:
    return TextContent(type="text", text=text)


def parse_args(args_model: type[ArgsT], arguments: dict[str, Any] | None) -> ParsedArgs[ArgsT]:
    """Validate raw tool arguments against the tool's declared schema."""
    try:
        return ParsedArgs(ok=True, value=args_model.model_validate(arguments or {}))
    except ValidationError as e:
        return ParsedArgs(ok=False, error=format_validation_error(e))


def error_result(error: BaseException | str, debug: bool = False) -> ToolResult:
    """Funnel any failure through the safe-error mapper into an error result."""
    if isinstance(error, str):
        error = InvalidInputError(error)
    safe = map_to_safe_error(error)
    logger.error(f"Tool execution error [{safe.kind}]: {safe.user_message}")

    text = f"Error: {safe.user_message}"
    hint = ERROR_HINTS.get(safe.kind)
    if hint:
        text = f"{text}\n{hint}"
    if debug and safe.details:
        text = f"{text}\nDetails: {json.dumps(safe.details, default=str)}"
    return ToolResult([text_block(text)], is_error=True)


def invalid_parameters(model: ModelDescriptor, validation: ParameterValidation) -> ToolResult:
    return error_result(InvalidInputError(f"Invalid parameters for model {model.id}: {validation.error}"))


def select_model(
    registry: ModelRegistry,
    explicit: str | None,
    categories: Sequence[ModelCategory],
    preferences: Iterable[str] = (),
) -> ModelDescriptor | None:
    """Pick a model deterministically.

    An explicit id wins when it exists in one of the categories. Otherwise the
    first preferred id present in the categories, else the first model listed.
    """
    if explicit:
        model = registry.get_model(explicit)
        if model is not None and model.category in categories:
            return model
        logger.warning(f"Model {explicit} not found or not in {', '.join(map(str, categories))}")

    candidates = [m for category in categories for m in registry.get_models_by_category(category)]
    by_id = {m.id: m for m in candidates}
    for model_id in preferences:
        if model_id in by_id:
            return by_id[model_id]
    return candidates[0] if candidates else None


def merge_with_defaults(params: dict[str, Any], model: ModelDescriptor) -> dict[str, Any]:
    return {**model.default_params, **params}


def supported(registry: ModelRegistry, model: ModelDescriptor, values: dict[str, Any]) -> dict[str, Any]:
    """Keep the set values whose keys the model declares."""
    return {k: v for k, v in values.items() if v is not None and registry.supports(model.id, k)}


def is_transient(error: SafeError) -> bool:
    """Errors worth another polling attempt: connectivity, throttling, upstream 5xx."""
    if isinstance(error, ApiError):
        return error.status >= 500
    return isinstance(error, (NetworkError, RateLimitError, RequestTimeoutError))


async def submit_and_poll(ctx: ToolContext, model: ModelDescriptor, params: dict[str, Any]) -> ApiResponse:
    """Run an asynchronous (v2) model: submit, then poll the job until terminal.

    Raises:
        GenerationError: If no job id comes back or the job reports failure
        RequestTimeoutError: If the job isn't terminal within the attempt budget
    """
    started = await ctx.client.request(model.endpoint, method="POST", body=params)
    job = started.data if isinstance(started.data, dict) else {}
    job_id = job.get("job_id")
    if not job_id:
        raise GenerationError("No job ID returned from API")

    max_attempts = ctx.settings.poll_max_attempts
    logger.info(f"Started job {job_id} for {model.id}")
    for attempt in range(1, max_attempts + 1):
        try:
            status_response = await ctx.client.get_job(job_id)
        except SafeError as e:
            if not is_transient(e):
                raise
            if attempt == max_attempts:
                raise RequestTimeoutError("Job polling timeout") from e
            logger.warning(f"Error polling job {job_id}, attempt {attempt}: {e.user_message}")
        else:
            status_data = status_response.data if isinstance(status_response.data, dict) else {}
            status = status_data.get("status")
            logger.debug(f"Job {job_id} status: {status}")
            if status == JOB_COMPLETED:
                return status_response
            if status == JOB_FAILED:
                raise GenerationError(str(status_data.get("error") or "Job failed"))

        if attempt < max_attempts:
            await asyncio.sleep(ctx.settings.poll_interval)

    raise RequestTimeoutError("Job did not complete within timeout period")


async def run_model(
    ctx: ToolContext,
    model: ModelDescriptor,
    params: dict[str, Any],
    *,
    save_location: str | None = None,
    display_mode: DisplayMode = "save",
) -> GenerationResult:
    """Invoke one model once and format its output.

    Image models (other than enhancers) go through the client's image route
    with the default deadline; everything else gets twice the model's
    estimated time.
    """
    start = time.monotonic()
    logger.info(f"Calling model {model.id} ({model.category})")

    if model.api_version == "v2":
        envelope = await submit_and_poll(ctx, model, params)
    elif model.output_type == OutputType.IMAGE and model.category != ModelCategory.IMAGE_ENHANCEMENT:
        envelope = await ctx.client.generate_image(model.id, params)
    else:
        envelope = await ctx.client.request(
            model.endpoint,
            method="POST",
            body=params,
            timeout=model.estimated_time * 2,
        )

    elapsed = time.monotonic() - start
    reported = envelope.credits.used if envelope.credits else 0
    if reported > 0:
        ctx.cost_tracker.record_cost(model.id, reported)
    logger.info(f"Model call successful: {model.id} in {elapsed:.1f}s (credits {reported})")

    content = format_response(
        envelope,
        model,
        save_location=save_location,
        output_dir=ctx.settings.output_dir,
        display_mode=display_mode,
    )
    return GenerationResult(
        content=content,
        model_id=model.id,
        credits_used=reported or model.credits_per_use,
        processing_time=elapsed,
        metadata=envelope.metadata,
    )


def summary_text(headline: str, model: ModelDescriptor, totals: RunTotals) -> TextContent:
    """Trailing block naming the model, credits consumed and processing time."""
    return text_block(
        f"\n{headline}\n"
        f"Model: {model.name} ({model.id}) | Credits used: {format_credits(totals.credits)} | "
        f"Time: {totals.seconds:.1f}s"
    )
