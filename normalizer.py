"""Turns raw model output into a usable prompt pair or narrative.

Nothing in here raises for malformed output: every path ends in a value the
caller can render.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import BaseModel

logger = logging.getLogger(__name__)

EMPTY_RESPONSE_ENGLISH = "Did not receive a valid response from AI."
EMPTY_RESPONSE_VIETNAMESE = "Không nhận được phản hồi hợp lệ từ AI."


class PromptPair(BaseModel):
    english: str
    vietnamese: str


@dataclass(frozen=True)
class BilingualPair:
    english: str
    vietnamese: str


@dataclass(frozen=True)
class NestedDescriptions:
    english: str
    vietnamese: str


@dataclass(frozen=True)
class RawText:
    text: str


ParsedResponse = Union[BilingualPair, NestedDescriptions, RawText]


def _non_empty_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _as_bilingual(payload: Any) -> Optional[BilingualPair]:
    if not isinstance(payload, dict):
        return None
    english = _non_empty_str(payload.get("english"))
    vietnamese = _non_empty_str(payload.get("vietnamese"))
    if english and vietnamese:
        return BilingualPair(english=english, vietnamese=vietnamese)
    return None


def _as_nested(payload: Any) -> Optional[NestedDescriptions]:
    if not isinstance(payload, dict):
        return None
    pair = _as_bilingual(payload.get("descriptions"))
    if pair is None:
        return None
    return NestedDescriptions(english=pair.english, vietnamese=pair.vietnamese)


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None


def parse_response(text: str) -> ParsedResponse:
    """Try the known shapes in order and fall back to the raw text."""
    payload = _load_json(text)
    for attempt in (_as_bilingual, _as_nested):
        parsed = attempt(payload)
        if parsed is not None:
            return parsed
    return RawText(text=text)


def empty_response_pair() -> PromptPair:
    return PromptPair(english=EMPTY_RESPONSE_ENGLISH, vietnamese=EMPTY_RESPONSE_VIETNAMESE)


def normalize_prompt_pair(raw: Optional[str]) -> PromptPair:
    text = (raw or "").strip()
    if not text:
        logger.warning("Model returned an empty structured response")
        return empty_response_pair()

    parsed = parse_response(text)
    if isinstance(parsed, RawText):
        logger.warning("Structured response not recognised, using raw text for both languages")
        return PromptPair(english=parsed.text, vietnamese=parsed.text)
    return PromptPair(english=parsed.english, vietnamese=parsed.vietnamese)


def normalize_narrative(raw: Optional[str]) -> str:
    text = (raw or "").strip()
    if not text:
        logger.warning("Model returned an empty narrative response")
        return EMPTY_RESPONSE_ENGLISH
    return text
