"""Tests for StudioSession workflows and image history."""

from __future__ import annotations

import asyncio

import pytest

from catalog import Branch
from composer import AnalysisMode
from errors import (
    ERROR_PREFIX,
    QUOTA_EXCEEDED_MESSAGE,
    GenerationRefusedError,
    QuotaExceededError,
    ValidationError,
    WorkflowBusyError,
)
from image_utils import InlineImage
from session import (
    UNKNOWN_RESOLUTION,
    CompositeRequest,
    EditRequest,
    FaceSwapRequest,
    IdeaRequest,
    ImageAnalysisRequest,
    ImageArtifact,
    ImageHistory,
    RestoreRequest,
    StudioSession,
    resolve_aspect_ratio,
)

from .conftest import FakeGateway, make_png, pair_json


def _session(gateway: FakeGateway, capacity: int = 8) -> StudioSession:
    return StudioSession(gateway_factory=lambda: gateway, history_capacity=capacity)


def _artifact(tag: str) -> ImageArtifact:
    return ImageArtifact(data=tag, resolution="1 x 1")


class TestImageHistory:
    def test_new_batch_goes_first(self):
        history = ImageHistory(capacity=8)
        history.add_batch([_artifact("a1"), _artifact("a2")])
        history.add_batch([_artifact("b1")])
        assert [item.data for item in history.items()] == ["b1", "a1", "a2"]

    def test_bounded_to_capacity(self):
        history = ImageHistory(capacity=8)
        for batch in range(5):
            history.add_batch([_artifact(f"{batch}-{n}") for n in range(3)])
        items = history.items()
        assert len(items) == 8
        assert [item.data for item in items[:3]] == ["4-0", "4-1", "4-2"]
        assert items[-1].data == "2-1"

    def test_remove_and_bounds(self):
        history = ImageHistory()
        history.add_batch([_artifact("a"), _artifact("b")])
        assert history.remove(0).data == "a"
        assert len(history) == 1
        with pytest.raises(IndexError):
            history.get(5)
        with pytest.raises(IndexError):
            history.remove(-1)
        history.clear()
        assert history.items() == []


class TestResolveAspectRatio:
    def test_explicit_value_wins(self, portrait_image):
        assert resolve_aspect_ratio("4:3", portrait_image) == "4:3"

    def test_auto_snaps_source(self, portrait_image):
        assert resolve_aspect_ratio("auto", portrait_image) == "9:16"

    def test_auto_defaults(self):
        assert resolve_aspect_ratio("auto") == "1:1"
        assert resolve_aspect_ratio("auto", video=True) == "16:9"

    def test_undecodable_source_defaults_to_square(self):
        assert resolve_aspect_ratio("auto", InlineImage(data=b"garbage")) == "1:1"

    def test_unknown_ratio(self):
        with pytest.raises(ValidationError):
            resolve_aspect_ratio("2:1")


class TestIdeaWorkflow:
    def test_prompt_then_images(self, fake_gateway):
        session = _session(fake_gateway)
        request = IdeaRequest(idea="a lone astronaut on a red dune", branch=Branch.LANDSCAPE_SCENE, count=2)

        result = asyncio.run(session.generate_from_idea(request))

        assert fake_gateway.kinds() == ["structured", "images"]
        images_call = fake_gateway.calls[1]
        assert images_call["prompt"] == "A lone astronaut --neg blurry"
        assert images_call["count"] == 2
        assert images_call["aspect_ratio"] == "1:1"
        assert result.aspect_ratio == "1:1"
        assert len(result.artifacts) == 2
        assert result.artifacts[0].resolution == "64 x 36"
        assert result.artifacts[0].source_prompt is None
        assert session.prompts == result.prompts
        assert len(session.history) == 2
        assert session.is_loading is False
        assert session.error is None

    def test_include_prompt_tags_artifacts(self, fake_gateway):
        session = _session(fake_gateway)
        request = IdeaRequest(idea="an idea", include_prompt=True)
        result = asyncio.run(session.generate_from_idea(request))
        assert result.artifacts[0].source_prompt == "A lone astronaut --neg blurry"

    def test_direct_prompt_skips_composition(self):
        gateway = FakeGateway()
        session = _session(gateway)
        request = IdeaRequest(direct_prompt="a red dune, 8K", aspect_ratio="16:9")
        result = asyncio.run(session.generate_from_idea(request))
        assert gateway.kinds() == ["images"]
        assert gateway.calls[0]["prompt"] == "a red dune, 8K"
        assert result.prompts.english == "a red dune, 8K"

    @pytest.mark.parametrize("count", [0, 5])
    def test_count_out_of_range(self, fake_gateway, count):
        session = _session(fake_gateway)
        with pytest.raises(ValidationError):
            asyncio.run(session.generate_from_idea(IdeaRequest(idea="x", count=count)))
        assert fake_gateway.calls == []
        assert session.error == f"{ERROR_PREFIX}Số lượng ảnh phải từ 1 đến 4."

    def test_undecodable_generated_image(self):
        gateway = FakeGateway(structured=[pair_json()], generated=b"not a png")
        session = _session(gateway)
        result = asyncio.run(session.generate_from_idea(IdeaRequest(idea="x")))
        assert result.artifacts[0].resolution == UNKNOWN_RESOLUTION

    def test_compose_prompts_only(self, fake_gateway):
        session = _session(fake_gateway)
        pair = asyncio.run(
            session.compose_idea_prompts(
                IdeaRequest(idea="x", branch=None, mode=AnalysisMode.FREESTYLE)
            )
        )
        assert pair.english == "A lone astronaut --neg blurry"
        assert fake_gateway.kinds() == ["structured"]
        assert len(session.history) == 0


class TestImageWorkflow:
    def test_auto_ratio_follows_upload(self, portrait_image):
        gateway = FakeGateway(structured=[pair_json()])
        session = _session(gateway)
        result = asyncio.run(session.generate_from_image(ImageAnalysisRequest(image=portrait_image)))
        assert result.aspect_ratio == "9:16"
        assert gateway.calls[-1]["aspect_ratio"] == "9:16"

    def test_missing_upload(self):
        gateway = FakeGateway()
        session = _session(gateway)
        with pytest.raises(ValidationError):
            asyncio.run(session.generate_from_image(ImageAnalysisRequest()))
        assert gateway.calls == []
        assert session.error == f"{ERROR_PREFIX}Vui lòng tải lên một hình ảnh."


class TestEditFanOut:
    def test_single_variant_has_no_seed(self, square_image):
        gateway = FakeGateway()
        session = _session(gateway)
        asyncio.run(session.edit(EditRequest(image=square_image, instruction="make it night")))
        assert [call["seed"] for call in gateway.calls] == [None]

    def test_variants_use_seeds_in_order(self, square_image):
        gateway = FakeGateway()
        session = _session(gateway)
        result = asyncio.run(
            session.edit(EditRequest(image=square_image, instruction="make it night", count=3))
        )
        assert sorted(call["seed"] for call in gateway.calls) == [0, 1, 2]
        assert all(call["aspect_ratio"] == "1:1" for call in gateway.calls)
        assert "exactly 1:1" in gateway.calls[0]["instruction"]
        assert len(result.artifacts) == 3
        assert result.artifacts[0].resolution == "30 x 40"

    def test_one_failed_variant_fails_batch(self, square_image):
        gateway = FakeGateway(fail_on_seed=1)
        session = _session(gateway)
        session.history.add_batch([_artifact("kept")])

        with pytest.raises(GenerationRefusedError):
            asyncio.run(session.edit(EditRequest(image=square_image, instruction="x", count=3)))

        assert [item.data for item in session.history.items()] == ["kept"]
        assert "refused" in session.error
        assert session.is_loading is False

    def test_edit_requires_instruction(self, square_image):
        session = _session(FakeGateway())
        with pytest.raises(ValidationError):
            asyncio.run(session.edit(EditRequest(image=square_image, instruction="  ")))


class TestFaceSwap:
    def test_portrait_ratio_and_identity_instruction(self, portrait_image):
        gateway = FakeGateway(structured=[pair_json("A knight in a castle", "Hiệp sĩ")])
        session = _session(gateway)
        result = asyncio.run(
            session.face_swap(
                FaceSwapRequest(portrait=portrait_image, description="a knight", count=2, include_prompt=True)
            )
        )
        assert gateway.kinds() == ["structured", "edit", "edit"]
        edit_call = gateway.calls[1]
        assert edit_call["parts"] == [portrait_image]
        assert edit_call["aspect_ratio"] == "9:16"
        assert '"A knight in a castle"' in edit_call["instruction"]
        assert result.artifacts[0].source_prompt == "A knight in a castle"

    def test_portrait_required(self):
        session = _session(FakeGateway())
        with pytest.raises(ValidationError):
            asyncio.run(session.face_swap(FaceSwapRequest(description="a knight")))


class TestComposite:
    def test_parts_are_labelled(self, square_image, portrait_image):
        gateway = FakeGateway(structured=[pair_json("Two friends by a campfire", "Hai người bạn")])
        session = _session(gateway)
        background = InlineImage(data=make_png(160, 90))
        request = CompositeRequest(
            characters=[square_image, portrait_image],
            character_numbers=[2, 5],
            background=background,
            description="two friends by a campfire",
            mode=AnalysisMode.FOCUSED,
        )

        result = asyncio.run(session.composite(request))

        assert gateway.kinds() == ["structured", "edit"]
        assert "landscape_scene" in gateway.calls[0]["instruction"]
        edit_call = gateway.calls[1]
        assert edit_call["parts"] == [
            square_image,
            "This is Character 2.",
            portrait_image,
            "This is Character 5.",
            background,
            "This is the background image.",
        ]
        assert edit_call["aspect_ratio"] == "16:9"
        assert "Two friends by a campfire" in edit_call["instruction"]
        assert result.prompts.english == "Two friends by a campfire"

    def test_number_mismatch(self, square_image):
        session = _session(FakeGateway())
        request = CompositeRequest(characters=[square_image], character_numbers=[1, 2], description="x")
        with pytest.raises(ValidationError):
            asyncio.run(session.composite(request))

    def test_requires_characters(self):
        session = _session(FakeGateway())
        with pytest.raises(ValidationError):
            asyncio.run(session.composite(CompositeRequest(description="x")))


class TestRestoreAndUpscale:
    def test_restore(self, square_image):
        gateway = FakeGateway()
        session = _session(gateway)
        asyncio.run(session.restore(RestoreRequest(image=square_image, gender="female")))
        call = gateway.calls[0]
        assert call["aspect_ratio"] is None
        assert "Gender: female." in call["instruction"]
        assert len(session.history) == 1

    def test_upscale(self, square_image):
        gateway = FakeGateway()
        session = _session(gateway)
        asyncio.run(session.upscale(square_image))
        assert "Upscale this image" in gateway.calls[0]["instruction"]

    def test_upscale_requires_image(self):
        with pytest.raises(ValidationError):
            asyncio.run(_session(FakeGateway()).upscale(None))


class TestVideoPrompts:
    def test_video_prompt_stored_on_session(self):
        gateway = FakeGateway(text="A slow pan.")
        session = _session(gateway)
        assert asyncio.run(session.video_prompt_from_idea("dunes", AnalysisMode.SUPER)) == "A slow pan."
        assert session.video_prompt == "A slow pan."
        assert len(session.history) == 0

    def test_continuation(self):
        gateway = FakeGateway(text="Close-up.")
        session = _session(gateway)
        prompt = asyncio.run(session.continuation_video_prompt("Wide shot.", "she turns", AnalysisMode.FOCUSED))
        assert prompt == "Close-up."


class TestSessionState:
    def test_busy_guard(self, fake_gateway):
        session = _session(fake_gateway)
        session.is_loading = True
        with pytest.raises(WorkflowBusyError):
            asyncio.run(session.generate_from_idea(IdeaRequest(idea="x")))
        assert fake_gateway.calls == []

    def test_concurrent_workflows_are_rejected(self):
        class SlowGateway(FakeGateway):
            async def generate_text(self, instruction, images=()):
                self.started.set()
                await self.release.wait()
                return "done"

        gateway = SlowGateway()
        session = _session(gateway)

        async def scenario():
            gateway.started = started = asyncio.Event()
            gateway.release = release = asyncio.Event()
            first = asyncio.create_task(session.video_prompt_from_idea("a", AnalysisMode.FREESTYLE))
            await started.wait()
            with pytest.raises(WorkflowBusyError):
                await session.video_prompt_from_idea("b", AnalysisMode.FREESTYLE)
            release.set()
            return await first

        assert asyncio.run(scenario()) == "done"
        assert session.is_loading is False

    def test_quota_error_message(self):
        class QuotaGateway(FakeGateway):
            async def generate_structured(self, instruction, response_schema, images=()):
                raise QuotaExceededError("429 RESOURCE_EXHAUSTED")

        session = _session(QuotaGateway())
        with pytest.raises(QuotaExceededError):
            asyncio.run(session.compose_idea_prompts(IdeaRequest(idea="x")))
        assert session.error == f"{ERROR_PREFIX}{QUOTA_EXCEEDED_MESSAGE}"

    def test_new_workflow_clears_previous_error(self, fake_gateway):
        session = _session(fake_gateway)
        session.error = f"{ERROR_PREFIX}old"
        asyncio.run(session.compose_idea_prompts(IdeaRequest(idea="x")))
        assert session.error is None

    def test_export_names(self, fake_gateway):
        session = _session(fake_gateway)
        asyncio.run(session.generate_from_idea(IdeaRequest(idea="x", count=2)))
        names = session.export_names()
        assert len(names) == 2
        assert names[0].startswith("pidtap-studio-")
        assert names[1].endswith("-2.png")

    def test_artifact_bytes_round_trip(self, fake_gateway):
        session = _session(fake_gateway)
        result = asyncio.run(session.generate_from_idea(IdeaRequest(idea="x")))
        assert result.artifacts[0].to_bytes() == fake_gateway.generated

    def test_gateway_is_built_lazily_once(self):
        built = []

        def factory():
            built.append(1)
            return FakeGateway(structured=[pair_json(), pair_json()])

        session = StudioSession(gateway_factory=factory)
        assert built == []
        asyncio.run(session.compose_idea_prompts(IdeaRequest(idea="x")))
        asyncio.run(session.compose_idea_prompts(IdeaRequest(idea="y")))
        assert built == [1]
        session.reset_gateway()
        _ = session.gateway
        assert built == [1, 1]
