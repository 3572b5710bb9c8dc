"""Error taxonomy of the studio and the single message shown to the user."""

from __future__ import annotations

import json

# Shown to Vietnamese-speaking users; remote and service details stay as raised.
QUOTA_EXCEEDED_MESSAGE = (
    "Bạn đã đạt đến giới hạn sử dụng API. Vui lòng kiểm tra gói cước của bạn hoặc thử lại sau một lát."
)
GENERIC_RETRY_MESSAGE = "Vui lòng thử lại."
ERROR_PREFIX = "Đã xảy ra lỗi: "


class StudioError(Exception):
    """Base class for every failure raised by the prompt-synthesis core."""


class ValidationError(StudioError):
    """A required input is missing; no remote call was attempted."""


class ClassificationError(StudioError):
    """Image-to-branch classification returned an empty or unknown label."""


class GenerationEmptyError(StudioError):
    """Image generation returned zero artifacts."""


class GenerationRefusedError(StudioError):
    """An edit or composite response carried no image part."""


class QuotaExceededError(StudioError):
    """The remote reported RESOURCE_EXHAUSTED."""


class TransportError(StudioError):
    """Any other network or remote-side failure."""


class WorkflowBusyError(StudioError):
    """A generation workflow is already running for this session."""


def _unwrap_json_error(message: str) -> str | None:
    try:
        payload = json.loads(message)
    except (TypeError, ValueError):
        return None
    if not isinstance(payload, dict):
        return None
    error = payload.get("error")
    if not isinstance(error, dict) or not error.get("message"):
        return None
    if error.get("status") == "RESOURCE_EXHAUSTED":
        return QUOTA_EXCEEDED_MESSAGE
    return str(error["message"])


def describe_error(exc: BaseException) -> str:
    if isinstance(exc, QuotaExceededError):
        return f"{ERROR_PREFIX}{QUOTA_EXCEEDED_MESSAGE}"

    message = str(exc).strip() or GENERIC_RETRY_MESSAGE
    unwrapped = _unwrap_json_error(message)
    if unwrapped:
        message = unwrapped
    return f"{ERROR_PREFIX}{message}"
