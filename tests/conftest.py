"""Shared test fixtures."""

from __future__ import annotations

import io
import json

import pytest
from PIL import Image

from errors import GenerationRefusedError
from image_utils import InlineImage


def make_png(width: int, height: int, color: str = "red") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def pair_json(english: str = "A lone astronaut --neg blurry", vietnamese: str = "Một phi hành gia") -> str:
    return json.dumps({"english": english, "vietnamese": vietnamese})


class FakeGateway:
    """Scripted stand-in for GeminiGateway that records every call."""

    def __init__(
        self,
        structured: list[str] | None = None,
        text: str = "A slow dolly shot across a red dune. --neg blurry",
        generated: bytes | None = None,
        edited: bytes | None = None,
        fail_on_seed: int | None = None,
    ) -> None:
        self.structured = list(structured or [])
        self.text = text
        self.generated = generated or make_png(64, 36)
        self.edited = edited or make_png(30, 40)
        self.fail_on_seed = fail_on_seed
        self.calls: list[dict] = []

    def kinds(self) -> list[str]:
        return [call["kind"] for call in self.calls]

    async def generate_structured(self, instruction, response_schema, images=()):
        self.calls.append(
            {"kind": "structured", "instruction": instruction, "schema": response_schema, "images": list(images)}
        )
        return self.structured.pop(0) if self.structured else ""

    async def generate_text(self, instruction, images=()):
        self.calls.append({"kind": "text", "instruction": instruction})
        return self.text

    async def generate_images(self, prompt, count, aspect_ratio):
        self.calls.append({"kind": "images", "prompt": prompt, "count": count, "aspect_ratio": aspect_ratio})
        return [self.generated] * count

    async def edit_image(self, parts, instruction, aspect_ratio=None, seed=None):
        self.calls.append(
            {
                "kind": "edit",
                "parts": list(parts),
                "instruction": instruction,
                "aspect_ratio": aspect_ratio,
                "seed": seed,
            }
        )
        if self.fail_on_seed is not None and seed == self.fail_on_seed:
            raise GenerationRefusedError("AI did not return an image. It might have refused the request.")
        return self.edited


@pytest.fixture
def landscape_png() -> bytes:
    return make_png(1920, 1080)


@pytest.fixture
def portrait_image() -> InlineImage:
    return InlineImage(data=make_png(1080, 1920), mime_type="image/png")


@pytest.fixture
def square_image() -> InlineImage:
    return InlineImage(data=make_png(100, 100), mime_type="image/png")


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway(structured=[pair_json()])
