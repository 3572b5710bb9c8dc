"""Builds the exact instruction text sent to the generative model.

Every builder here is pure: identical inputs give byte-identical output.
Remote calls live in ``prompt_flows`` and ``session``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import prompts_lib
from catalog import Branch, branch_structure
from errors import ValidationError
from preferences import TechOptions, render_preferences


class AnalysisMode(str, Enum):
    FREESTYLE = "freestyle"
    FOCUSED = "focused"
    IN_DEPTH = "in_depth"
    SUPER = "super"

    @property
    def requires_branch(self) -> bool:
        return self in (AnalysisMode.FOCUSED, AnalysisMode.SUPER)

    @property
    def injects_professional_detail(self) -> bool:
        return self in (AnalysisMode.IN_DEPTH, AnalysisMode.SUPER)


PROMPT_PAIR_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "vietnamese": {"type": "STRING"},
        "english": {"type": "STRING"},
    },
    "required": ["vietnamese", "english"],
}

NESTED_DESCRIPTIONS_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "analysis": {
            "type": "OBJECT",
            "properties": {
                "subject": {"type": "STRING"},
                "environment": {"type": "STRING"},
                "action": {"type": "STRING"},
                "mood": {"type": "STRING"},
                "style": {"type": "STRING"},
            },
        },
        "descriptions": {
            "type": "OBJECT",
            "properties": {
                "english": {"type": "STRING"},
                "vietnamese": {"type": "STRING"},
            },
            "required": ["english", "vietnamese"],
        },
    },
    "required": ["descriptions"],
}


def classification_schema() -> Dict[str, Any]:
    return {
        "type": "OBJECT",
        "properties": {
            "category": {"type": "STRING", "enum": [branch.value for branch in Branch]},
        },
        "required": ["category"],
    }


@dataclass(frozen=True)
class Instruction:
    text: str
    schema: Optional[Dict[str, Any]] = None


def parse_mode(value: str | AnalysisMode) -> AnalysisMode:
    if isinstance(value, AnalysisMode):
        return value
    try:
        return AnalysisMode((value or "").strip().lower())
    except ValueError as exc:
        raise ValidationError(f"Unknown analysis mode: {value!r}") from exc


def _require_text(value: Optional[str], what: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{what} is required.")
    return cleaned


def _require_branch(branch: Optional[Branch], mode: AnalysisMode) -> Optional[Branch]:
    if mode.requires_branch and branch is None:
        raise ValidationError(f"A branch is required for the '{mode.value}' analysis mode.")
    return branch


def _structure_json(branch: Branch) -> str:
    return json.dumps(branch_structure(branch), indent=2, ensure_ascii=False)


def compose_idea_instruction(
    idea: str,
    branch: Optional[Branch],
    preferences: Optional[TechOptions],
    mode: AnalysisMode,
) -> Instruction:
    idea = _require_text(idea, "An idea")
    branch = _require_branch(branch, mode)

    if mode is AnalysisMode.FOCUSED:
        text = prompts_lib.idea_focused.format(
            idea=idea,
            branch=branch.value,
            preferences=render_preferences(preferences, prompts_lib.preferences_heading_follow),
            structure=_structure_json(branch),
        )
    elif mode is AnalysisMode.IN_DEPTH:
        text = prompts_lib.idea_in_depth.format(
            idea=idea,
            preferences=render_preferences(preferences, prompts_lib.preferences_heading_incorporate),
        )
    elif mode is AnalysisMode.SUPER:
        text = prompts_lib.idea_super.format(
            idea=idea,
            branch=branch.value,
            preferences=render_preferences(preferences, prompts_lib.preferences_heading_follow),
            structure=_structure_json(branch),
        )
    else:
        text = prompts_lib.idea_freestyle.format(
            idea=idea,
            preferences=render_preferences(preferences, prompts_lib.preferences_heading_incorporate),
        )
    return Instruction(text=text, schema=PROMPT_PAIR_SCHEMA)


def compose_classification_instruction() -> Instruction:
    categories = ", ".join(branch.value for branch in Branch)
    return Instruction(
        text=prompts_lib.image_classification.format(categories=categories),
        schema=classification_schema(),
    )


def compose_image_analysis_instruction(
    mode: AnalysisMode,
    preferences: Optional[TechOptions],
    branch: Optional[Branch] = None,
) -> Instruction:
    """Instruction for the detail call of image analysis.

    ``focused`` and ``super`` take the branch inferred by the classification
    call; the in-depth path asks for the nested ``descriptions`` shape.
    """
    branch = _require_branch(branch, mode)

    if mode is AnalysisMode.IN_DEPTH:
        text = prompts_lib.image_in_depth
        schema = NESTED_DESCRIPTIONS_SCHEMA
    elif mode is AnalysisMode.FOCUSED:
        text = prompts_lib.image_focused.format(branch=branch.value, structure=_structure_json(branch))
        schema = PROMPT_PAIR_SCHEMA
    elif mode is AnalysisMode.SUPER:
        text = prompts_lib.image_super.format(branch=branch.value, structure=_structure_json(branch))
        schema = PROMPT_PAIR_SCHEMA
    else:
        text = prompts_lib.image_freestyle
        schema = PROMPT_PAIR_SCHEMA

    preferences_text = render_preferences(preferences, prompts_lib.preferences_heading_reinterpret)
    return Instruction(text=f"{text}\n{preferences_text}", schema=schema)


_VIDEO_MODE_LINES = {
    AnalysisMode.FREESTYLE: prompts_lib.video_mode_freestyle,
    AnalysisMode.FOCUSED: prompts_lib.video_mode_focused,
    AnalysisMode.IN_DEPTH: prompts_lib.video_mode_in_depth,
    AnalysisMode.SUPER: prompts_lib.video_mode_super,
}


def compose_video_instruction(idea: str, mode: AnalysisMode) -> Instruction:
    idea = _require_text(idea, "A video idea")
    return Instruction(
        text=prompts_lib.video_base.format(idea=idea, mode_instruction=_VIDEO_MODE_LINES[mode])
    )


def _continuation_mode_line(mode: AnalysisMode) -> str:
    if mode is AnalysisMode.FOCUSED:
        return prompts_lib.continuation_mode_focused
    if mode is AnalysisMode.IN_DEPTH:
        return prompts_lib.continuation_mode_in_depth
    if mode is AnalysisMode.SUPER:
        return f"{prompts_lib.continuation_mode_in_depth} {prompts_lib.continuation_mode_super_theme}"
    return prompts_lib.continuation_mode_freestyle


def compose_continuation_instruction(previous_prompt: str, next_idea: str, mode: AnalysisMode) -> Instruction:
    previous_prompt = _require_text(previous_prompt, "The previous prompt")
    next_idea = _require_text(next_idea, "The next scene idea")
    return Instruction(
        text=prompts_lib.video_continuation.format(
            previous_prompt=previous_prompt,
            next_idea=next_idea,
            mode_instruction=_continuation_mode_line(mode),
        )
    )


def compose_edit_instruction(instruction: str, aspect_ratio: str) -> str:
    instruction = _require_text(instruction, "An edit instruction")
    return prompts_lib.edit_image.format(aspect_ratio=aspect_ratio, instruction=instruction)


def compose_face_swap_instruction(scene_prompt: str) -> str:
    return prompts_lib.face_swap.format(scene=_require_text(scene_prompt, "A scene prompt"))


def compose_composite_instruction(scene_description: str, aspect_ratio: str) -> str:
    return prompts_lib.character_composite.format(
        scene=_require_text(scene_description, "A scene description"),
        aspect_ratio=aspect_ratio,
    )


def compose_restore_instruction(
    mode: str = "single",
    gender: Optional[str] = None,
    age: Optional[str] = None,
    description: Optional[str] = None,
) -> str:
    text = prompts_lib.restore_base
    if mode == "single":
        text += prompts_lib.restore_single
        if gender:
            text += prompts_lib.restore_gender.format(gender=gender)
        if age:
            text += prompts_lib.restore_age.format(age=age)
        if description:
            text += prompts_lib.restore_details.format(description=description)
    elif mode == "multiple":
        text += prompts_lib.restore_multiple
        if description:
            text += prompts_lib.restore_scene.format(description=description)
    else:
        raise ValidationError(f"Unknown restoration mode: {mode!r}")
    return text + prompts_lib.restore_goal


def compose_upscale_instruction() -> str:
    return prompts_lib.upscale
