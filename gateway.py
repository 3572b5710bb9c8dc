"""Thin wrapper around the Gemini API for the four remote operation kinds."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Union

from google import genai
from google.genai import types

import config
from errors import (
    GenerationEmptyError,
    GenerationRefusedError,
    QuotaExceededError,
    StudioError,
    TransportError,
    ValidationError,
)
from image_utils import InlineImage

logger = logging.getLogger(__name__)

PartInput = Union[InlineImage, str]


def _remote_error(exc: Exception) -> StudioError:
    status = getattr(exc, "status", None)
    code = getattr(exc, "code", None)
    if status == "RESOURCE_EXHAUSTED" or code == 429:
        return QuotaExceededError(getattr(exc, "message", None) or str(exc))
    return TransportError(getattr(exc, "message", None) or str(exc))


def _to_part(item: PartInput) -> types.Part:
    if isinstance(item, InlineImage):
        return types.Part.from_bytes(data=item.data, mime_type=item.mime_type)
    return types.Part.from_text(text=item)


def _build_contents(parts: Sequence[PartInput], instruction: str) -> list[types.Part]:
    return [_to_part(item) for item in parts] + [types.Part.from_text(text=instruction)]


def _first_image_bytes(response: Any) -> Optional[bytes]:
    for part in getattr(response, "parts", None) or []:
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            return inline.data

    candidates = getattr(response, "candidates", None) or []
    for candidate in candidates:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return inline.data
    return None


class GeminiGateway:
    """Remote generation capability.

    Calls are not idempotent: the backend is free to return different output
    for identical requests.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        client: Any = None,
        text_model: Optional[str] = None,
        image_model: Optional[str] = None,
        edit_model: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> None:
        settings = config.get_settings()
        if client is None:
            api_key = api_key or settings.gemini_api_key
            if not api_key:
                raise ValidationError("Missing API key. Set GEMINI_API_KEY or save it in the settings.")
            timeout_ms = settings.request_timeout_ms if timeout_ms is None else timeout_ms
            http_options = types.HttpOptions(timeout=timeout_ms) if timeout_ms else None
            client = genai.Client(api_key=api_key, http_options=http_options)

        self.client = client
        self.text_model = text_model or settings.text_model
        self.image_model = image_model or settings.image_model
        self.edit_model = edit_model or settings.edit_model

    async def generate_structured(
        self,
        instruction: str,
        response_schema: Dict[str, Any],
        images: Sequence[PartInput] = (),
    ) -> str:
        """Raw text that should, but may not, follow ``response_schema``."""
        try:
            response = await self.client.aio.models.generate_content(
                model=self.text_model,
                contents=_build_contents(images, instruction),
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=response_schema,
                ),
            )
        except Exception as exc:
            raise _remote_error(exc) from exc

        return (getattr(response, "text", None) or "").strip()

    async def generate_text(self, instruction: str, images: Sequence[PartInput] = ()) -> str:
        try:
            response = await self.client.aio.models.generate_content(
                model=self.text_model,
                contents=_build_contents(images, instruction),
            )
        except Exception as exc:
            raise _remote_error(exc) from exc

        return (getattr(response, "text", None) or "").strip()

    async def generate_images(self, prompt: str, count: int, aspect_ratio: str) -> list[bytes]:
        try:
            response = await self.client.aio.models.generate_images(
                model=self.image_model,
                prompt=prompt,
                config=types.GenerateImagesConfig(
                    number_of_images=count,
                    output_mime_type="image/png",
                    aspect_ratio=aspect_ratio,
                ),
            )
        except Exception as exc:
            raise _remote_error(exc) from exc

        images = []
        for generated in getattr(response, "generated_images", None) or []:
            image = getattr(generated, "image", None)
            if image is not None and image.image_bytes:
                images.append(image.image_bytes)
        if not images:
            raise GenerationEmptyError("AI did not return any images.")
        logger.info("Generated %d image(s) with %s", len(images), self.image_model)
        return images

    async def edit_image(
        self,
        parts: Sequence[PartInput],
        instruction: str,
        aspect_ratio: Optional[str] = None,
        seed: Optional[int] = None,
    ) -> bytes:
        """Edit or composite the given images; ``parts`` may interleave text labels."""
        config_kwargs: Dict[str, Any] = {"response_modalities": ["IMAGE", "TEXT"]}
        if seed is not None:
            config_kwargs["seed"] = seed
        if aspect_ratio:
            config_kwargs["image_config"] = types.ImageConfig(aspect_ratio=aspect_ratio)

        try:
            response = await self.client.aio.models.generate_content(
                model=self.edit_model,
                contents=_build_contents(parts, instruction),
                config=types.GenerateContentConfig(**config_kwargs),
            )
        except Exception as exc:
            raise _remote_error(exc) from exc

        data = _first_image_bytes(response)
        if not data:
            raise GenerationRefusedError("AI did not return an image. It might have refused the request.")
        return data
