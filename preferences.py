from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel

from catalog import DEFAULT_OPTION

AXES = ("style", "layout", "angle", "quality")


class TechOptions(BaseModel):
    style: Optional[str] = None
    layout: Optional[str] = None
    angle: Optional[str] = None
    quality: Optional[str] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any] | None) -> "TechOptions":
        values = values or {}
        return cls(**{axis: values.get(axis) or None for axis in AXES})


def _is_set(value: Optional[str]) -> bool:
    if value is None:
        return False
    cleaned = value.strip()
    return bool(cleaned) and cleaned != DEFAULT_OPTION


def preference_lines(options: TechOptions | None) -> list[str]:
    """Render the chosen axes as ``- Axis: value`` lines in fixed axis order.

    Axes left empty or at the default sentinel are dropped, so identical
    choices always yield identical text.
    """
    if options is None:
        return []
    lines = []
    for axis in AXES:
        value = getattr(options, axis)
        if _is_set(value):
            lines.append(f"- {axis.capitalize()}: {value.strip()}")
    return lines


def render_preferences(options: TechOptions | None, heading: str) -> str:
    lines = preference_lines(options)
    if not lines:
        return ""
    body = "\n".join(lines)
    return f"\n**{heading}**\n{body}\n"
