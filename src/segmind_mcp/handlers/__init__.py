"""Tool handlers. Each takes a ToolContext and raw arguments and returns a ToolResult."""

from .base import ToolContext, ToolResult, error_result
from .image import handle_enhance_image, handle_generate_image, handle_transform_image
from .media import handle_generate_audio, handle_generate_music, handle_generate_video
from .utility import (
    handle_check_credits,
    handle_estimate_cost,
    handle_get_model_info,
    handle_list_models,
    handle_prepare_image,
    handle_read_local_image,
)

__all__ = [
    "ToolContext",
    "ToolResult",
    "error_result",
    "handle_check_credits",
    "handle_enhance_image",
    "handle_estimate_cost",
    "handle_generate_audio",
    "handle_generate_image",
    "handle_generate_music",
    "handle_generate_video",
    "handle_get_model_info",
    "handle_list_models",
    "handle_prepare_image",
    "handle_read_local_image",
    "handle_transform_image",
]
