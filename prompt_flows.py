"""Text-composition flows: composer -> gateway -> normalizer."""

from __future__ import annotations

import json
import logging
from typing import Optional

from catalog import Branch
from composer import (
    AnalysisMode,
    compose_classification_instruction,
    compose_continuation_instruction,
    compose_idea_instruction,
    compose_image_analysis_instruction,
    compose_video_instruction,
)
from errors import ClassificationError, ValidationError
from gateway import GeminiGateway
from image_utils import InlineImage
from normalizer import PromptPair, normalize_narrative, normalize_prompt_pair
from preferences import TechOptions

logger = logging.getLogger(__name__)

DIRECT_PROMPT_NOTE = "Prompt được cung cấp trực tiếp bởi người dùng."

FACE_SOURCE_DESCRIPTION = "description"
FACE_SOURCE_STYLE_IMAGE = "style_image"


async def generate_prompts_from_idea(
    gateway: GeminiGateway,
    idea: str,
    branch: Optional[Branch],
    preferences: Optional[TechOptions],
    mode: AnalysisMode,
) -> PromptPair:
    instruction = compose_idea_instruction(idea, branch, preferences, mode)
    logger.info("Composing %s prompt from idea (branch=%s)", mode.value, branch.value if branch else None)
    raw = await gateway.generate_structured(instruction.text, instruction.schema)
    return normalize_prompt_pair(raw)


def direct_prompt_pair(prompt: str) -> PromptPair:
    cleaned = (prompt or "").strip()
    if not cleaned:
        raise ValidationError("A prompt is required.")
    return PromptPair(english=cleaned, vietnamese=DIRECT_PROMPT_NOTE)


async def classify_image(gateway: GeminiGateway, image: InlineImage) -> Branch:
    """Single-label classification of an image into the closed branch set."""
    instruction = compose_classification_instruction()
    raw = await gateway.generate_structured(instruction.text, instruction.schema, [image])
    if not raw:
        raise ClassificationError("Could not classify the image.")

    try:
        payload = json.loads(raw)
    except ValueError as exc:
        raise ClassificationError(f"Could not classify the image. AI returned: {raw}") from exc

    category = payload.get("category") if isinstance(payload, dict) else None
    try:
        branch = Branch(category)
    except ValueError as exc:
        raise ClassificationError(f"Could not classify the image. AI returned: {raw}") from exc

    logger.info("Image classified as %s", branch.value)
    return branch


async def analyze_image(
    gateway: GeminiGateway,
    image: Optional[InlineImage],
    mode: AnalysisMode,
    preferences: Optional[TechOptions],
) -> PromptPair:
    if image is None:
        raise ValidationError("An image is required.")

    branch = await classify_image(gateway, image) if mode.requires_branch else None
    instruction = compose_image_analysis_instruction(mode, preferences, branch)
    raw = await gateway.generate_structured(instruction.text, instruction.schema, [image])
    return normalize_prompt_pair(raw)


async def generate_video_prompt(gateway: GeminiGateway, idea: str, mode: AnalysisMode) -> str:
    instruction = compose_video_instruction(idea, mode)
    return normalize_narrative(await gateway.generate_text(instruction.text))


async def generate_continuation_video_prompt(
    gateway: GeminiGateway,
    previous_prompt: str,
    next_idea: str,
    mode: AnalysisMode,
) -> str:
    instruction = compose_continuation_instruction(previous_prompt, next_idea, mode)
    return normalize_narrative(await gateway.generate_text(instruction.text))


async def generate_prompt_for_face_composite(
    gateway: GeminiGateway,
    source: str,
    *,
    analysis_mode: AnalysisMode,
    preferences: Optional[TechOptions],
    description: Optional[str] = None,
    style_image: Optional[InlineImage] = None,
) -> PromptPair:
    if source == FACE_SOURCE_DESCRIPTION:
        if not (description or "").strip():
            raise ValidationError("Description is required for this mode.")
        return await generate_prompts_from_idea(
            gateway, description, Branch.MODERN_HUMAN, preferences, analysis_mode
        )
    if source == FACE_SOURCE_STYLE_IMAGE:
        if style_image is None:
            raise ValidationError("Style image is required for this mode.")
        return await analyze_image(gateway, style_image, analysis_mode, preferences)
    raise ValidationError(f"Unknown face composite source: {source!r}")
