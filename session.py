"""Sequences one studio action per call: aspect ratio, prompts, images, history."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from pydantic import BaseModel

import config
import prompt_flows
import prompts_lib
from catalog import Branch
from composer import (
    AnalysisMode,
    compose_composite_instruction,
    compose_edit_instruction,
    compose_face_swap_instruction,
    compose_restore_instruction,
    compose_upscale_instruction,
)
from errors import ValidationError, WorkflowBusyError, describe_error
from gateway import GeminiGateway, PartInput
from image_utils import (
    AUTO_ASPECT_RATIO,
    IMAGE_DEFAULT_ASPECT_RATIO,
    VIDEO_DEFAULT_ASPECT_RATIO,
    InlineImage,
    decode_base64,
    encode_base64,
    format_resolution,
    image_dimensions,
    nearest_aspect_ratio,
    validate_aspect_ratio,
)
from normalizer import PromptPair
from preferences import TechOptions

logger = logging.getLogger(__name__)

MAX_VARIANTS = 4
UNKNOWN_RESOLUTION = "unknown"

T = TypeVar("T")


class ImageArtifact(BaseModel):
    data: str
    resolution: str
    source_prompt: Optional[str] = None

    def to_bytes(self) -> bytes:
        return decode_base64(self.data)


class ImageHistory:
    """Most-recent-first artifact list that keeps at most ``capacity`` items."""

    def __init__(self, capacity: int = 8) -> None:
        self.capacity = capacity
        self._items: List[ImageArtifact] = []

    def add_batch(self, artifacts: Sequence[ImageArtifact]) -> None:
        self._items = (list(artifacts) + self._items)[: self.capacity]

    def items(self) -> List[ImageArtifact]:
        return list(self._items)

    def get(self, index: int) -> ImageArtifact:
        if not 0 <= index < len(self._items):
            raise IndexError(index)
        return self._items[index]

    def remove(self, index: int) -> ImageArtifact:
        if not 0 <= index < len(self._items):
            raise IndexError(index)
        return self._items.pop(index)

    def clear(self) -> None:
        self._items = []

    def __len__(self) -> int:
        return len(self._items)


def resolve_aspect_ratio(
    requested: Optional[str],
    source: Optional[InlineImage] = None,
    *,
    video: bool = False,
) -> str:
    requested = validate_aspect_ratio(requested)
    if requested != AUTO_ASPECT_RATIO:
        return requested
    if source is not None:
        try:
            width, height = image_dimensions(source.data)
        except ValidationError:
            logger.warning("Could not read source image size, defaulting to %s", IMAGE_DEFAULT_ASPECT_RATIO)
            return IMAGE_DEFAULT_ASPECT_RATIO
        return nearest_aspect_ratio(width, height)
    return VIDEO_DEFAULT_ASPECT_RATIO if video else IMAGE_DEFAULT_ASPECT_RATIO


def _resolution(data: bytes) -> str:
    try:
        width, height = image_dimensions(data)
    except ValidationError:
        logger.warning("Generated image could not be decoded for its size")
        return UNKNOWN_RESOLUTION
    return format_resolution(width, height)


def _check_count(count: int) -> int:
    if not 1 <= count <= MAX_VARIANTS:
        raise ValidationError(f"Số lượng ảnh phải từ 1 đến {MAX_VARIANTS}.")
    return count


## Per-workflow requests

@dataclass
class IdeaRequest:
    idea: str = ""
    branch: Optional[Branch] = Branch.MODERN_HUMAN
    mode: AnalysisMode = AnalysisMode.FOCUSED
    preferences: TechOptions = field(default_factory=TechOptions)
    direct_prompt: Optional[str] = None
    count: int = 1
    aspect_ratio: str = AUTO_ASPECT_RATIO
    include_prompt: bool = False


@dataclass
class ImageAnalysisRequest:
    image: Optional[InlineImage] = None
    mode: AnalysisMode = AnalysisMode.FREESTYLE
    preferences: TechOptions = field(default_factory=TechOptions)
    count: int = 1
    aspect_ratio: str = AUTO_ASPECT_RATIO
    include_prompt: bool = False


@dataclass
class EditRequest:
    image: Optional[InlineImage] = None
    instruction: str = ""
    count: int = 1
    aspect_ratio: str = AUTO_ASPECT_RATIO


@dataclass
class FaceSwapRequest:
    portrait: Optional[InlineImage] = None
    source: str = prompt_flows.FACE_SOURCE_DESCRIPTION
    description: str = ""
    style_image: Optional[InlineImage] = None
    mode: AnalysisMode = AnalysisMode.FOCUSED
    preferences: TechOptions = field(default_factory=TechOptions)
    count: int = 1
    include_prompt: bool = False


@dataclass
class CompositeRequest:
    characters: List[InlineImage] = field(default_factory=list)
    # 1-based labels shown to the model; defaults to upload order.
    character_numbers: Optional[List[int]] = None
    background: Optional[InlineImage] = None
    description: str = ""
    mode: AnalysisMode = AnalysisMode.FREESTYLE
    preferences: TechOptions = field(default_factory=TechOptions)
    count: int = 1
    aspect_ratio: str = AUTO_ASPECT_RATIO


@dataclass
class RestoreRequest:
    image: Optional[InlineImage] = None
    mode: str = "single"
    gender: Optional[str] = None
    age: Optional[str] = None
    description: Optional[str] = None


@dataclass
class GenerationResult:
    artifacts: List[ImageArtifact]
    prompts: Optional[PromptPair] = None
    aspect_ratio: Optional[str] = None


class StudioSession:
    """One user's studio state.

    At most one top-level workflow runs at a time. A failed workflow leaves
    history as it was, clears the loading flag and records the error text.
    """

    def __init__(
        self,
        gateway_factory: Callable[[], GeminiGateway] = GeminiGateway,
        history_capacity: Optional[int] = None,
    ) -> None:
        self._gateway_factory = gateway_factory
        self._gateway: Optional[GeminiGateway] = None
        self.history = ImageHistory(history_capacity or config.get_settings().history_capacity)
        self.is_loading = False
        self.error: Optional[str] = None
        self.prompts: Optional[PromptPair] = None
        self.video_prompt: Optional[str] = None

    @property
    def gateway(self) -> GeminiGateway:
        if self._gateway is None:
            self._gateway = self._gateway_factory()
        return self._gateway

    def reset_gateway(self) -> None:
        self._gateway = None

    async def _run(self, name: str, workflow: Callable[[], Awaitable[T]]) -> T:
        if self.is_loading:
            raise WorkflowBusyError("Đang có một yêu cầu tạo ảnh khác, vui lòng đợi.")
        self.is_loading = True
        self.error = None
        self.prompts = None
        self.video_prompt = None
        started = time.time()
        logger.info("Starting %s workflow", name)
        try:
            result = await workflow()
        except Exception as exc:
            self.error = describe_error(exc)
            logger.exception("%s workflow failed", name)
            raise
        finally:
            self.is_loading = False
        logger.info("Finished %s workflow in %.2fs", name, time.time() - started)
        return result

    def _record(self, images: Sequence[bytes], source_prompt: Optional[str] = None) -> List[ImageArtifact]:
        artifacts = [
            ImageArtifact(
                data=encode_base64(data),
                resolution=_resolution(data),
                source_prompt=source_prompt,
            )
            for data in images
        ]
        self.history.add_batch(artifacts)
        return artifacts

    async def _edit_variants(
        self,
        parts: Sequence[PartInput],
        instruction: str,
        aspect_ratio: Optional[str],
        count: int,
    ) -> List[bytes]:
        if count == 1:
            return [await self.gateway.edit_image(parts, instruction, aspect_ratio)]
        # All-or-nothing: the first failing variant fails the batch.
        results = await asyncio.gather(
            *(self.gateway.edit_image(parts, instruction, aspect_ratio, seed=seed) for seed in range(count))
        )
        return list(results)

    ## Create image: idea / direct prompt

    async def generate_from_idea(self, request: IdeaRequest) -> GenerationResult:
        async def workflow() -> GenerationResult:
            count = _check_count(request.count)
            aspect_ratio = resolve_aspect_ratio(request.aspect_ratio)
            if request.direct_prompt is not None:
                prompts = prompt_flows.direct_prompt_pair(request.direct_prompt)
            else:
                prompts = await prompt_flows.generate_prompts_from_idea(
                    self.gateway, request.idea, request.branch, request.preferences, request.mode
                )
            self.prompts = prompts
            images = await self.gateway.generate_images(prompts.english, count, aspect_ratio)
            artifacts = self._record(images, prompts.english if request.include_prompt else None)
            return GenerationResult(artifacts=artifacts, prompts=prompts, aspect_ratio=aspect_ratio)

        return await self._run("idea", workflow)

    async def compose_idea_prompts(self, request: IdeaRequest) -> PromptPair:
        async def workflow() -> PromptPair:
            prompts = await prompt_flows.generate_prompts_from_idea(
                self.gateway, request.idea, request.branch, request.preferences, request.mode
            )
            self.prompts = prompts
            return prompts

        return await self._run("idea-prompt", workflow)

    ## Create image: from an uploaded image

    async def generate_from_image(self, request: ImageAnalysisRequest) -> GenerationResult:
        async def workflow() -> GenerationResult:
            if request.image is None:
                raise ValidationError("Vui lòng tải lên một hình ảnh.")
            count = _check_count(request.count)
            aspect_ratio = resolve_aspect_ratio(request.aspect_ratio, request.image)
            prompts = await prompt_flows.analyze_image(
                self.gateway, request.image, request.mode, request.preferences
            )
            self.prompts = prompts
            images = await self.gateway.generate_images(prompts.english, count, aspect_ratio)
            artifacts = self._record(images, prompts.english if request.include_prompt else None)
            return GenerationResult(artifacts=artifacts, prompts=prompts, aspect_ratio=aspect_ratio)

        return await self._run("image-analysis", workflow)

    async def analyze_image_prompts(self, request: ImageAnalysisRequest) -> PromptPair:
        async def workflow() -> PromptPair:
            prompts = await prompt_flows.analyze_image(
                self.gateway, request.image, request.mode, request.preferences
            )
            self.prompts = prompts
            return prompts

        return await self._run("image-prompt", workflow)

    ## Create image: face swap

    async def face_swap(self, request: FaceSwapRequest) -> GenerationResult:
        async def workflow() -> GenerationResult:
            if request.portrait is None:
                raise ValidationError("Vui lòng tải lên ảnh chân dung.")
            count = _check_count(request.count)
            aspect_ratio = resolve_aspect_ratio(AUTO_ASPECT_RATIO, request.portrait)
            prompts = await prompt_flows.generate_prompt_for_face_composite(
                self.gateway,
                request.source,
                analysis_mode=request.mode,
                preferences=request.preferences,
                description=request.description,
                style_image=request.style_image,
            )
            self.prompts = prompts
            instruction = compose_face_swap_instruction(prompts.english)
            images = await self._edit_variants([request.portrait], instruction, aspect_ratio, count)
            artifacts = self._record(images, prompts.english if request.include_prompt else None)
            return GenerationResult(artifacts=artifacts, prompts=prompts, aspect_ratio=aspect_ratio)

        return await self._run("face-swap", workflow)

    ## Free edit of a subject image

    async def edit(self, request: EditRequest) -> GenerationResult:
        async def workflow() -> GenerationResult:
            if request.image is None:
                raise ValidationError("Vui lòng cung cấp ảnh chính để chỉnh sửa.")
            if not request.instruction.strip():
                raise ValidationError("Vui lòng nhập yêu cầu của bạn.")
            count = _check_count(request.count)
            aspect_ratio = resolve_aspect_ratio(request.aspect_ratio, request.image)
            instruction = compose_edit_instruction(request.instruction, aspect_ratio)
            images = await self._edit_variants([request.image], instruction, aspect_ratio, count)
            return GenerationResult(artifacts=self._record(images), aspect_ratio=aspect_ratio)

        return await self._run("edit", workflow)

    ## Character compositing

    async def composite(self, request: CompositeRequest) -> GenerationResult:
        async def workflow() -> GenerationResult:
            if not request.characters:
                raise ValidationError("Vui lòng chọn ít nhất một ảnh nhân vật để ghép.")
            if not request.description.strip():
                raise ValidationError("Vui lòng nhập mô tả cho bối cảnh và hành động.")
            numbers = request.character_numbers or list(range(1, len(request.characters) + 1))
            if len(numbers) != len(request.characters):
                raise ValidationError("Mỗi ảnh nhân vật cần đúng một số thứ tự.")
            count = _check_count(request.count)
            aspect_ratio = resolve_aspect_ratio(request.aspect_ratio, request.background)

            scene = await prompt_flows.generate_prompts_from_idea(
                self.gateway, request.description, Branch.LANDSCAPE_SCENE, request.preferences, request.mode
            )
            self.prompts = scene

            parts: List[PartInput] = []
            for number, character in zip(numbers, request.characters):
                parts.append(character)
                parts.append(prompts_lib.character_label.format(index=number))
            if request.background is not None:
                parts.append(request.background)
                parts.append(prompts_lib.background_label)

            instruction = compose_composite_instruction(scene.english, aspect_ratio)
            images = await self._edit_variants(parts, instruction, aspect_ratio, count)
            return GenerationResult(artifacts=self._record(images), prompts=scene, aspect_ratio=aspect_ratio)

        return await self._run("composite", workflow)

    ## Old photo processing

    async def restore(self, request: RestoreRequest) -> GenerationResult:
        async def workflow() -> GenerationResult:
            if request.image is None:
                raise ValidationError("Vui lòng cung cấp ảnh để khôi phục.")
            instruction = compose_restore_instruction(
                request.mode, request.gender, request.age, request.description
            )
            image = await self.gateway.edit_image([request.image], instruction)
            return GenerationResult(artifacts=self._record([image]))

        return await self._run("restore", workflow)

    async def upscale(self, image: Optional[InlineImage]) -> GenerationResult:
        async def workflow() -> GenerationResult:
            if image is None:
                raise ValidationError("Vui lòng cung cấp ảnh để tăng độ phân giải.")
            result = await self.gateway.edit_image([image], compose_upscale_instruction())
            return GenerationResult(artifacts=self._record([result]))

        return await self._run("upscale", workflow)

    ## Video prompts

    async def video_prompt_from_idea(self, idea: str, mode: AnalysisMode) -> str:
        async def workflow() -> str:
            prompt = await prompt_flows.generate_video_prompt(self.gateway, idea, mode)
            self.video_prompt = prompt
            return prompt

        return await self._run("video", workflow)

    async def continuation_video_prompt(self, previous_prompt: str, next_idea: str, mode: AnalysisMode) -> str:
        async def workflow() -> str:
            prompt = await prompt_flows.generate_continuation_video_prompt(
                self.gateway, previous_prompt, next_idea, mode
            )
            self.video_prompt = prompt
            return prompt

        return await self._run("video-continuation", workflow)

    ## History export

    def export_names(self) -> List[str]:
        stamp = int(time.time() * 1000)
        return [f"pidtap-studio-{stamp}-{index + 1}.png" for index in range(len(self.history))]
