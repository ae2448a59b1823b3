"""Tests for tool handlers, driven through a mock HTTP transport."""

import base64
import json
from pathlib import Path

import httpx
import pytest
from mcp.types import TextContent

from conftest import JPEG_B64, PNG_B64, RecordingTransport, make_context, make_settings
from segmind_mcp.handlers import (
    handle_check_credits,
    handle_enhance_image,
    handle_estimate_cost,
    handle_generate_audio,
    handle_generate_image,
    handle_generate_music,
    handle_generate_video,
    handle_get_model_info,
    handle_list_models,
    handle_prepare_image,
    handle_read_local_image,
    handle_transform_image,
)
from segmind_mcp.handlers.base import select_model
from segmind_mcp.handlers.image import map_generation_params, select_generation_model
from segmind_mcp.models import CATALOG, ModelCategory
from segmind_mcp.registry import ModelRegistry
from segmind_mcp.schema import GenerateImageArgs

MP4_B64 = base64.b64encode(b"\x00\x00\x00\x18ftypmp42").decode()


def png_response(credits: str = "1") -> httpx.Response:
    return httpx.Response(
        200,
        content=base64.b64decode(PNG_B64),
        headers={"content-type": "image/png", "x-credits-consumed": credits, "x-remaining-credits": "99"},
    )


def media_response(content_type: str) -> httpx.Response:
    return httpx.Response(200, content=b"\x00\x01\x02\x03", headers={"content-type": content_type})


def route(table: dict):
    """Dispatch on (method, path); list values are consumed in order, callables are invoked."""

    def handler(request: httpx.Request) -> httpx.Response:
        responder = table[(request.method, request.url.path)]
        if isinstance(responder, list):
            responder = responder.pop(0) if len(responder) > 1 else responder[0]
        return responder(request) if callable(responder) else responder

    return handler


def sent_json(request: httpx.Request) -> dict:
    return json.loads(request.content)


def saved_files(result) -> list[Path]:
    return [
        Path(block.text.split("saved to: ", 1)[1])
        for block in result.content
        if isinstance(block, TextContent) and "saved to: " in block.text
    ]


@pytest.fixture
def ctx_factory(tmp_path):
    def build(*responses, registry=None, **overrides):
        transport = RecordingTransport(*responses)
        return make_context(make_settings(tmp_path, **overrides), transport, registry), transport

    return build


class TestGenerateImage:
    """Tests for generate_image."""

    @pytest.mark.asyncio
    async def test_end_to_end_saves_image(self, ctx_factory):
        """A default call picks SDXL, saves one file and appends a summary."""
        ctx, transport = ctx_factory(png_response())

        result = await handle_generate_image(ctx, {"prompt": "a red fox in snow"})

        assert not result.is_error
        assert len(result.content) == 2
        assert result.content[0].text.startswith("Image saved to: ")
        files = saved_files(result)
        assert len(files) == 1 and files[0].exists()
        assert "Stable Diffusion XL" in result.content[1].text
        assert "Credits used: 1" in result.content[1].text

        assert transport.paths == ["/v1/sdxl1.0-txt2img"]
        body = sent_json(transport.requests[0])
        assert body["prompt"] == "a red fox in snow"
        assert body["base64"] is True
        assert body["num_inference_steps"] == 25
        assert ctx.cost_tracker.get_estimated_cost("sdxl") == 1.0

    @pytest.mark.asyncio
    async def test_batch_uses_incrementing_seeds(self, ctx_factory):
        """Each image in a batch gets seed + index."""
        ctx, transport = ctx_factory(png_response())

        result = await handle_generate_image(ctx, {"prompt": "cat", "num_images": 3, "seed": 7})

        assert not result.is_error
        assert [sent_json(r)["seed"] for r in transport.requests] == [7, 8, 9]
        assert len(saved_files(result)) == 3
        assert "Generated 3 image(s)" in result.content[-1].text

    @pytest.mark.asyncio
    async def test_display_mode_returns_inline_image(self, ctx_factory):
        """display mode returns the image inline."""
        ctx, _ = ctx_factory(png_response())

        result = await handle_generate_image(ctx, {"prompt": "cat", "display_mode": "display"})

        assert result.content[0].type == "image"
        assert saved_files(result) == []

    @pytest.mark.asyncio
    async def test_high_quality_routes_to_flux(self, ctx_factory):
        """quality=high selects FLUX.1 Pro on its historical path."""
        ctx, transport = ctx_factory(png_response("3"))

        result = await handle_generate_image(ctx, {"prompt": "cat", "quality": "high", "width": 1024})

        assert not result.is_error
        assert transport.paths == ["/v1/models/flux-pro"]
        assert sent_json(transport.requests[0])["width"] == 1024

    @pytest.mark.asyncio
    async def test_invalid_arguments_name_the_field(self, ctx_factory):
        """Schema violations fail before any request."""
        ctx, transport = ctx_factory(png_response())

        result = await handle_generate_image(ctx, {"prompt": "cat", "width": 100})

        assert result.is_error
        assert "width" in result.text
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_upstream_error_becomes_error_result(self, ctx_factory):
        """Upstream failures never escape the handler."""
        ctx, _ = ctx_factory(httpx.Response(401))

        result = await handle_generate_image(ctx, {"prompt": "cat"})

        assert result.is_error
        assert result.text.startswith("Error: Authentication failed")
        assert "SEGMIND_API_KEY" in result.text

    @pytest.mark.asyncio
    async def test_upstream_body_hidden_outside_debug(self, ctx_factory):
        """Raw upstream error bodies only appear with debug enabled."""
        body = "INTERNAL TRACE at worker-7 /srv/app.py line 99"
        response = httpx.Response(422, text=body, headers={"content-type": "text/plain"})

        ctx, _ = ctx_factory(response)
        result = await handle_generate_image(ctx, {"prompt": "cat"})
        assert result.is_error
        assert "API request failed with status 422" in result.text
        assert "worker-7" not in result.text

        debug_ctx, _ = ctx_factory(response, debug=True)
        debug_result = await handle_generate_image(debug_ctx, {"prompt": "cat"})
        assert "worker-7" in debug_result.text


class TestImageSelection:
    """Tests for model selection and parameter mapping."""

    @pytest.mark.parametrize(
        "args,expected",
        [
            ({"prompt": "cat"}, "sdxl"),
            ({"prompt": "cat", "quality": "high"}, "flux-1-pro"),
            ({"prompt": "cat", "width": 2048}, "flux-1-pro"),
            ({"prompt": "cat", "style": "Anime"}, "sdxl"),
            ({"prompt": "x" * 2500}, "gpt-image-1"),
            ({"prompt": "cat", "model": "fooocus"}, "fooocus"),
            ({"prompt": "cat", "model": "esrgan"}, "sdxl"),
        ],
    )
    def test_selection(self, args, expected):
        """Selection follows quality, width, style and prompt length."""
        registry = ModelRegistry()
        parsed = GenerateImageArgs.model_validate(args)
        assert select_generation_model(registry, parsed).id == expected
        assert select_generation_model(registry, parsed).id == expected

    def test_mapping_is_deterministic(self):
        """The same arguments always map to the same payload."""
        registry = ModelRegistry()
        args = GenerateImageArgs(prompt="castle", style="watercolor", quality="draft", width=512, height=768)
        model = registry.get_model("sdxl")

        first = map_generation_params(registry, args, model)
        assert first == map_generation_params(registry, args, model)
        assert first["prompt"] == "castle, watercolor style"
        assert first["num_inference_steps"] == 10
        assert first["img_width"] == 512 and first["img_height"] == 768

    def test_fooocus_aspect_ratio(self):
        """Fooocus gets W*H instead of width and height."""
        registry = ModelRegistry()
        params = map_generation_params(
            registry, GenerateImageArgs(prompt="cat", width=1152, height=896), registry.get_model("fooocus")
        )
        assert params["aspect_ratio"] == "1152*896"
        assert "width" not in params and "img_width" not in params

    def test_select_model_falls_back_to_first(self):
        """Without preferences the first model in the category wins."""
        assert select_model(ModelRegistry(), None, [ModelCategory.TEXT_TO_MUSIC]).id == "lyria-2"


class TestTransformImage:
    """Tests for transform_image."""

    @pytest.mark.asyncio
    async def test_missing_file_fails_without_network(self, ctx_factory, tmp_path):
        """A missing input file is named in the error and nothing is sent."""
        ctx, transport = ctx_factory(png_response())
        missing = tmp_path / "does-not-exist.png"

        result = await handle_transform_image(ctx, {"image": str(missing), "prompt": "make it blue"})

        assert result.is_error
        assert str(missing) in result.text
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_local_file_is_sent_as_base64(self, ctx_factory, png_file):
        """A local file is read, cached and sent to FLUX Kontext."""
        ctx, transport = ctx_factory(png_response("3"))

        result = await handle_transform_image(ctx, {"image": str(png_file), "prompt": "oil painting", "strength": 0.5})

        assert not result.is_error
        assert transport.paths == ["/v1/flux-kontext-pro"]
        body = sent_json(transport.requests[0])
        assert body["image"] == PNG_B64
        assert body["strength"] == 0.5
        assert "with strength 0.5" in result.content[-1].text
        assert len(ctx.image_cache) == 1
        assert png_file.read_bytes() == base64.b64decode(PNG_B64)

    @pytest.mark.asyncio
    async def test_bare_jpeg_payload_is_sent(self, ctx_factory):
        """Inline JPEG base64 is forwarded, not mistaken for a file path."""
        ctx, transport = ctx_factory(png_response())

        result = await handle_transform_image(ctx, {"image": JPEG_B64, "prompt": "make it blue"})

        assert not result.is_error, result.text
        assert sent_json(transport.requests[0])["image"] == JPEG_B64

    @pytest.mark.asyncio
    async def test_output_saved_beside_input_file(self, ctx_factory, png_file):
        """Without save_location the result lands next to the input file."""
        ctx, _ = ctx_factory(png_response())

        result = await handle_transform_image(ctx, {"image": str(png_file), "prompt": "oil painting"})

        saved = saved_files(result)
        assert len(saved) == 1
        assert saved[0].parent == png_file.parent.resolve()
        assert saved[0] != png_file.resolve()

    @pytest.mark.asyncio
    async def test_explicit_save_location_wins(self, ctx_factory, png_file, tmp_path):
        """An explicit save_location overrides the input file's directory."""
        ctx, _ = ctx_factory(png_response())
        target = tmp_path / "elsewhere"

        result = await handle_transform_image(
            ctx, {"image": str(png_file), "prompt": "oil painting", "save_location": str(target)}
        )

        assert saved_files(result)[0].parent == target.resolve()


class TestEnhanceImage:
    """Tests for enhance_image."""

    @pytest.mark.asyncio
    async def test_upscale_uses_esrgan(self, ctx_factory):
        """Upscale sends an integer scale to ESRGAN."""
        ctx, transport = ctx_factory(png_response("0.5"))

        result = await handle_enhance_image(
            ctx, {"image": "https://example.com/a.png", "operation": "upscale", "scale": "2"}
        )

        assert not result.is_error
        assert transport.paths == ["/v1/esrgan"]
        body = sent_json(transport.requests[0])
        assert body["scale"] == 2
        assert body["image"] == "https://example.com/a.png"
        assert "Upscale completed using ESRGAN Upscaler (2x)" in result.content[-1].text

    @pytest.mark.asyncio
    async def test_restore_prefers_codeformer(self, ctx_factory):
        """Restore maps denoise strength to CodeFormer fidelity."""
        ctx, transport = ctx_factory(png_response("0.5"))

        result = await handle_enhance_image(
            ctx, {"image": PNG_B64, "operation": "restore", "denoise_strength": 0.8}
        )

        assert not result.is_error
        assert transport.paths == ["/v1/codeformer"]
        assert sent_json(transport.requests[0])["fidelity"] == pytest.approx(0.2)

    @pytest.mark.asyncio
    async def test_invalid_model_parameters_fail_before_network(self, ctx_factory):
        """Mapped parameters outside the model schema are rejected locally."""
        ctx, transport = ctx_factory(png_response())

        result = await handle_enhance_image(
            ctx, {"image": PNG_B64, "operation": "upscale", "model": "codeformer", "scale": "8"}
        )

        assert result.is_error
        assert "Invalid parameters for model codeformer" in result.text
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_batch_runs_each_unit(self, ctx_factory):
        """batch_size repeats the call."""
        ctx, transport = ctx_factory(png_response("0.5"))

        result = await handle_enhance_image(ctx, {"image": PNG_B64, "operation": "upscale", "batch_size": 2})

        assert len(transport.requests) == 2
        assert "Credits used: 1" in result.content[-1].text

    @pytest.mark.asyncio
    async def test_output_saved_beside_input_file(self, ctx_factory, png_file):
        """Enhanced images from a local file are saved in that file's directory."""
        ctx, _ = ctx_factory(png_response("0.5"))

        result = await handle_enhance_image(ctx, {"image": str(png_file), "operation": "upscale"})

        assert not result.is_error, result.text
        assert saved_files(result)[0].parent == png_file.parent.resolve()


class TestGenerateVideo:
    """Tests for generate_video."""

    @pytest.mark.asyncio
    async def test_seedance_clamps_duration(self, ctx_factory):
        """Seedance duration is clamped and quality picks resolution."""
        ctx, transport = ctx_factory(media_response("video/mp4"))

        result = await handle_generate_video(ctx, {"prompt": "waves", "duration": 12, "quality": "standard"})

        assert not result.is_error
        assert transport.paths == ["/v1/seedance-v1-lite-text-to-video"]
        body = sent_json(transport.requests[0])
        assert body["duration"] == 10
        assert body["resolution"] == "480p"
        assert saved_files(result)[0].suffix == ".mp4"
        assert "Generated 10-second video using Seedance V1 Lite" in result.content[-1].text

    @pytest.mark.asyncio
    async def test_veo_gets_no_duration(self, ctx_factory):
        """Veo 3 receives prompt, seed and aspect ratio only."""
        ctx, transport = ctx_factory(media_response("video/mp4"))

        await handle_generate_video(ctx, {"prompt": "waves", "model": "veo-3", "seed": 3, "aspect_ratio": "9:16"})

        body = sent_json(transport.requests[0])
        assert "duration" not in body
        assert body["seed"] == 3
        assert body["aspect_ratio"] == "9:16"

    @pytest.mark.asyncio
    async def test_async_job_is_polled(self, ctx_factory):
        """v2 models submit a job and poll until completed."""
        seedance = next(m for m in CATALOG if m.id == "seedance-v1-lite")
        registry = ModelRegistry([seedance.model_copy(update={"api_version": "v2"})])
        handler = route(
            {
                ("POST", "/v1/seedance-v1-lite-text-to-video"): httpx.Response(200, json={"job_id": "job-1"}),
                ("GET", "/v1/jobs/job-1"): [
                    httpx.Response(200, json={"status": "processing"}),
                    httpx.Response(200, json={"status": "completed", "video": MP4_B64}),
                ],
            }
        )
        ctx, transport = ctx_factory(handler, registry=registry)

        result = await handle_generate_video(ctx, {"prompt": "waves"})

        assert not result.is_error, result.text
        assert transport.paths == [
            "/v1/seedance-v1-lite-text-to-video",
            "/v1/jobs/job-1",
            "/v1/jobs/job-1",
        ]
        assert saved_files(result)[0].read_bytes() == base64.b64decode(MP4_B64)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("flaky", ["connect", "unavailable"])
    async def test_transient_poll_error_is_tolerated(self, ctx_factory, flaky):
        """A network failure or 5xx while polling is retried on the next poll."""

        def refuse(request):
            raise httpx.ConnectError("connection reset", request=request)

        first_poll = refuse if flaky == "connect" else httpx.Response(503, text="busy")
        seedance = next(m for m in CATALOG if m.id == "seedance-v1-lite")
        registry = ModelRegistry([seedance.model_copy(update={"api_version": "v2"})])
        handler = route(
            {
                ("POST", "/v1/seedance-v1-lite-text-to-video"): httpx.Response(200, json={"job_id": "job-4"}),
                ("GET", "/v1/jobs/job-4"): [
                    first_poll,
                    httpx.Response(200, json={"status": "completed", "video": MP4_B64}),
                ],
            }
        )
        ctx, transport = ctx_factory(handler, registry=registry, max_retries=0)

        result = await handle_generate_video(ctx, {"prompt": "waves"})

        assert not result.is_error, result.text
        assert len(transport.requests) == 3
        assert saved_files(result)[0].read_bytes() == base64.b64decode(MP4_B64)

    @pytest.mark.asyncio
    async def test_failed_job_is_terminal(self, ctx_factory):
        """A failed status stops polling with a generation error."""
        seedance = next(m for m in CATALOG if m.id == "seedance-v1-lite")
        registry = ModelRegistry([seedance.model_copy(update={"api_version": "v2"})])
        handler = route(
            {
                ("POST", "/v1/seedance-v1-lite-text-to-video"): httpx.Response(200, json={"job_id": "job-2"}),
                ("GET", "/v1/jobs/job-2"): httpx.Response(200, json={"status": "failed"}),
            }
        )
        ctx, transport = ctx_factory(handler, registry=registry, poll_max_attempts=5)

        result = await handle_generate_video(ctx, {"prompt": "waves"})

        assert result.is_error
        assert result.text.startswith("Error: Job failed")
        assert len(transport.requests) == 2

    @pytest.mark.asyncio
    async def test_poll_exhaustion_times_out(self, ctx_factory):
        """A job that never finishes ends in a timeout error."""
        seedance = next(m for m in CATALOG if m.id == "seedance-v1-lite")
        registry = ModelRegistry([seedance.model_copy(update={"api_version": "v2"})])
        handler = route(
            {
                ("POST", "/v1/seedance-v1-lite-text-to-video"): httpx.Response(200, json={"job_id": "job-3"}),
                ("GET", "/v1/jobs/job-3"): httpx.Response(200, json={"status": "processing"}),
            }
        )
        ctx, transport = ctx_factory(handler, registry=registry, poll_max_attempts=3)

        result = await handle_generate_video(ctx, {"prompt": "waves"})

        assert result.is_error
        assert "Job did not complete within timeout period" in result.text
        assert len(transport.requests) == 4


class TestGenerateAudio:
    """Tests for generate_audio and generate_music."""

    @pytest.mark.asyncio
    async def test_plain_text_uses_orpheus(self, ctx_factory):
        """Plain text goes to Orpheus with its default voice."""
        ctx, transport = ctx_factory(media_response("audio/wav"))

        result = await handle_generate_audio(ctx, {"text": "Hello there"})

        assert not result.is_error
        assert transport.paths == ["/v1/orpheus-3b-0.1"]
        assert sent_json(transport.requests[0])["voice"] == "tara"
        assert saved_files(result)[0].suffix == ".wav"
        assert "Generated speech audio using Orpheus TTS" in result.content[-1].text

    @pytest.mark.asyncio
    async def test_speaker_tags_use_dia(self, ctx_factory):
        """Speaker tags select the dialogue model."""
        ctx, transport = ctx_factory(media_response("audio/mpeg"))

        await handle_generate_audio(ctx, {"text": "[S1] Hi. [S2] Hello!", "cfg_scale": 3})

        assert transport.paths == ["/v1/dia"]
        assert sent_json(transport.requests[0])["cfg_scale"] == 3

    @pytest.mark.asyncio
    async def test_music_variations(self, ctx_factory):
        """Short music uses Lyria with seed + index per variation."""
        ctx, transport = ctx_factory(media_response("audio/wav"))

        result = await handle_generate_music(ctx, {"prompt": "calm piano", "num_outputs": 2, "seed": 5})

        assert not result.is_error
        assert transport.paths == ["/v1/lyria-2", "/v1/lyria-2"]
        assert [sent_json(r)["seed"] for r in transport.requests] == [5, 6]
        assert "Generated 2 30-second music tracks using Lyria 2" in result.content[-1].text

    @pytest.mark.asyncio
    async def test_long_music_uses_minimax(self, ctx_factory):
        """Durations over 30 seconds select MiniMax Music."""
        ctx, transport = ctx_factory(media_response("audio/mpeg"))

        await handle_generate_music(ctx, {"prompt": "epic score", "duration": 90})

        assert transport.paths == ["/v1/minimax-music-01"]
        assert sent_json(transport.requests[0])["duration"] == 90


class TestEstimateCost:
    """Tests for estimate_cost."""

    @pytest.mark.asyncio
    async def test_unknown_model_fails_without_network(self, ctx_factory):
        """An unknown model is rejected before the balance lookup."""
        ctx, transport = ctx_factory(httpx.Response(200, json={"remaining": 10}))

        result = await handle_estimate_cost(ctx, {"model": "nonexistent-id"})

        assert result.is_error
        assert "Model 'nonexistent-id' not found" in result.text
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_empty_category_fails_without_network(self, ctx_factory):
        """A category with no models is an error."""
        ctx, transport = ctx_factory(httpx.Response(200, json={"remaining": 10}))

        result = await handle_estimate_cost(ctx, {"category": "img2video"})

        assert result.is_error
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_model_estimate_with_balance(self, ctx_factory):
        """Totals scale with the count and are compared to the balance."""
        ctx, transport = ctx_factory(httpx.Response(200, json={"remaining": 2, "used": 0}))

        result = await handle_estimate_cost(ctx, {"model": "sdxl", "num_images": 3})

        assert not result.is_error
        assert "Total credits needed: 3" in result.text
        assert "Total estimated time: 30s" in result.text
        assert "INSUFFICIENT CREDITS" in result.text
        assert "You need 1 more credits" in result.text
        assert transport.paths == ["/v1/credits"]

    @pytest.mark.asyncio
    async def test_tracked_cost_preferred(self, ctx_factory):
        """Observed averages replace catalog figures."""
        ctx, _ = ctx_factory(httpx.Response(200, json={"remaining": 100, "used": 0}))
        ctx.cost_tracker.record_cost("sdxl", 2.5)

        result = await handle_estimate_cost(ctx, {"model": "sdxl"})

        assert "Credits per use: 2.5 (observed average)" in result.text

    @pytest.mark.asyncio
    async def test_balance_failure_is_tolerated(self, ctx_factory):
        """A failed balance lookup only drops the balance section."""
        ctx, _ = ctx_factory(httpx.Response(500, text="oops"), max_retries=0)

        result = await handle_estimate_cost(ctx, {"list_all": True})

        assert not result.is_error
        assert "## Model Cost Overview" in result.text
        assert "balance" not in result.text.lower()


class TestLocalImages:
    """Tests for prepare_image and read_local_image."""

    @pytest.mark.asyncio
    async def test_prepare_image_returns_token(self, ctx_factory, png_file):
        """The returned token resolves in the shared cache."""
        ctx, transport = ctx_factory()

        result = await handle_prepare_image(ctx, {"file_path": str(png_file)})

        assert not result.is_error
        token = next(word for word in result.text.split() if word.startswith("img_"))
        assert ctx.image_cache.get(token).path == str(png_file)
        assert "Warning" not in result.text
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_prepare_image_warns_on_large_file(self, ctx_factory, png_file):
        """Files over max_size_kb carry a warning."""
        ctx, _ = ctx_factory()

        result = await handle_prepare_image(ctx, {"file_path": str(png_file), "max_size_kb": 0.001})

        assert "Warning: Image is large" in result.text

    @pytest.mark.asyncio
    async def test_prepare_image_rejects_relative_path(self, ctx_factory):
        """Relative paths are rejected."""
        ctx, _ = ctx_factory()

        result = await handle_prepare_image(ctx, {"file_path": "images/a.png"})

        assert result.is_error
        assert "File path must be absolute" in result.text

    @pytest.mark.asyncio
    async def test_unsupported_extension(self, ctx_factory, tmp_path):
        """Only known image extensions are accepted."""
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        ctx, _ = ctx_factory()

        result = await handle_read_local_image(ctx, {"file_path": str(path)})

        assert result.is_error
        assert "Unsupported image format: .txt" in result.text

    @pytest.mark.asyncio
    async def test_read_local_image_data_uri(self, ctx_factory, png_file):
        """data_uri format prefixes the MIME type."""
        ctx, _ = ctx_factory()

        result = await handle_read_local_image(ctx, {"file_path": str(png_file), "return_format": "data_uri"})

        assert result.content[3].text == f"data:image/png;base64,{PNG_B64}"


class TestCatalogTools:
    """Tests for list_models, get_model_info and check_credits."""

    @pytest.mark.asyncio
    async def test_list_models_by_category(self, ctx_factory):
        """Category filter limits the listing."""
        ctx, _ = ctx_factory()

        result = await handle_list_models(ctx, {"category": "text2video"})

        models = json.loads(result.text)
        assert [m["id"] for m in models] == ["seedance-v1-lite", "veo-3"]

    @pytest.mark.asyncio
    async def test_get_model_info(self, ctx_factory):
        """Model info lists parameters and endpoint."""
        ctx, _ = ctx_factory()

        result = await handle_get_model_info(ctx, {"model_id": "esrgan"})

        info = json.loads(result.text)
        assert info["endpoint"] == "/esrgan"
        assert info["parameters"] == ["face_enhance", "image", "scale"]

    @pytest.mark.asyncio
    async def test_get_model_info_unknown(self, ctx_factory):
        """Unknown ids are errors."""
        ctx, _ = ctx_factory()

        result = await handle_get_model_info(ctx, {"model_id": "nonexistent-id"})

        assert result.is_error
        assert "list_models" in result.text

    @pytest.mark.asyncio
    async def test_check_credits(self, ctx_factory):
        """Balance is reported as remaining and used."""
        ctx, _ = ctx_factory(httpx.Response(200, json={"remaining": 100, "used": 5}))

        result = await handle_check_credits(ctx, {})

        assert result.text == "API Credits:\nRemaining: 100\nUsed: 5"
