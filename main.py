from __future__ import annotations

import logging
import os
from typing import Any, Awaitable, Dict, List, Optional, TypeVar

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.templating import Jinja2Templates
from dotenv import dotenv_values

import config
from catalog import catalog_payload, parse_branch
from composer import AnalysisMode, parse_mode
from errors import (
    ClassificationError,
    GenerationEmptyError,
    GenerationRefusedError,
    QuotaExceededError,
    StudioError,
    TransportError,
    ValidationError,
    WorkflowBusyError,
    describe_error,
)
from image_utils import ASPECT_RATIOS, AUTO_ASPECT_RATIO, InlineImage, ingest_upload
from preferences import TechOptions
from session import (
    CompositeRequest,
    EditRequest,
    FaceSwapRequest,
    GenerationResult,
    IdeaRequest,
    ImageAnalysisRequest,
    ImageArtifact,
    RestoreRequest,
    StudioSession,
)

logging.basicConfig(
    level=getattr(logging, config.get_settings().log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)

T = TypeVar("T")

STATUS_BY_ERROR = (
    (ValidationError, 400),
    (ClassificationError, 400),
    (WorkflowBusyError, 409),
    (QuotaExceededError, 429),
    (GenerationEmptyError, 502),
    (GenerationRefusedError, 502),
    (TransportError, 502),
)


def load_env_file() -> tuple[dict[str, str], bool]:
    if not config.ENV_PATH.exists():
        return {}, False
    values = dotenv_values(config.ENV_PATH)
    return {key: value for key, value in values.items() if value}, True


def update_env_file(updates: dict[str, str]) -> None:
    existing_lines = []
    if config.ENV_PATH.exists():
        existing_lines = config.ENV_PATH.read_text().splitlines()

    remaining = dict(updates)
    output_lines = []
    for line in existing_lines:
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            output_lines.append(line)
            continue
        key, _ = stripped.split("=", 1)
        key = key.strip()
        if key in remaining:
            value = remaining.pop(key)
            if value:
                output_lines.append(f"{key}={value}")
            continue
        output_lines.append(line)

    for key, value in remaining.items():
        if value:
            output_lines.append(f"{key}={value}")

    if output_lines:
        config.ENV_PATH.write_text("\n".join(output_lines).strip() + "\n")


def _parse_list(value: str) -> list[str]:
    parts = [item.strip() for item in value.replace("\n", ",").split(",")]
    return [item for item in parts if item]


def _parse_bool(value: str) -> bool:
    return (value or "").strip().lower() in {"true", "1", "yes", "on"}


def _status_for(exc: Exception) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


async def _guard(action: Awaitable[T]) -> T:
    try:
        return await action
    except StudioError as exc:
        raise HTTPException(status_code=_status_for(exc), detail=describe_error(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=describe_error(exc)) from exc


def _bad_request(exc: Exception) -> HTTPException:
    return HTTPException(status_code=400, detail=describe_error(exc))


async def _read_image(upload: Optional[UploadFile]) -> Optional[InlineImage]:
    if upload is None or not upload.filename:
        return None
    payload = await upload.read()
    try:
        return ingest_upload(payload, upload.filename, upload.content_type)
    except ValidationError as exc:
        raise _bad_request(exc) from exc


def _mode(value: str) -> AnalysisMode:
    try:
        return parse_mode(value)
    except ValidationError as exc:
        raise _bad_request(exc) from exc


def _branch(value: str):
    try:
        return parse_branch(value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=f"Unknown branch: {value!r}") from exc


def _preferences(style: str, layout: str, angle: str, quality: str) -> TechOptions:
    return TechOptions.from_mapping({"style": style, "layout": layout, "angle": angle, "quality": quality})


def _artifact_payload(index: int, artifact: ImageArtifact) -> Dict[str, Any]:
    return {
        "index": index,
        "data": artifact.data,
        "resolution": artifact.resolution,
        "source_prompt": artifact.source_prompt,
        "download_url": f"/api/history/{index}/download",
    }


def _result_payload(result: GenerationResult) -> Dict[str, Any]:
    return {
        "prompts": result.prompts.model_dump() if result.prompts else None,
        "aspect_ratio": result.aspect_ratio,
        "images": [
            {"data": artifact.data, "resolution": artifact.resolution, "source_prompt": artifact.source_prompt}
            for artifact in result.artifacts
        ],
    }


app = FastAPI(title="Pidtap Studio")
templates = Jinja2Templates(directory=str(config.TEMPLATES_DIR))

studio_session = StudioSession()


def get_session() -> StudioSession:
    return studio_session


@app.get("/", response_class=HTMLResponse)
async def index(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "catalog": catalog_payload(),
            "modes": [mode.value for mode in AnalysisMode],
            "aspect_ratios": [AUTO_ASPECT_RATIO, *ASPECT_RATIOS],
        },
    )


@app.get("/api/catalog")
async def catalog() -> JSONResponse:
    payload = catalog_payload()
    payload["analysis_modes"] = [mode.value for mode in AnalysisMode]
    payload["aspect_ratios"] = [AUTO_ASPECT_RATIO, *ASPECT_RATIOS]
    return JSONResponse(payload)


@app.get("/settings")
async def read_settings() -> JSONResponse:
    env_values, env_exists = load_env_file()
    settings = config.get_settings()
    stored_key = (env_values.get("GEMINI_API_KEY") or env_values.get("GOOGLE_AI_STUDIO_API") or "").strip()
    return JSONResponse(
        {
            "env_file": env_exists,
            "has_api_key": bool(stored_key or settings.gemini_api_key),
            "text_model": settings.text_model,
            "image_model": settings.image_model,
            "edit_model": settings.edit_model,
        }
    )


@app.post("/settings")
async def update_settings(
    api_key: str = Form(""),
    session: StudioSession = Depends(get_session),
) -> JSONResponse:
    updates = {"GEMINI_API_KEY": api_key.strip()}
    update_env_file(updates)
    for key, value in updates.items():
        if value:
            os.environ[key] = value
    session.reset_gateway()
    logger.info("API key updated")
    return JSONResponse({"status": "ok"})


## Prompt-only endpoints

@app.post("/api/prompts/idea")
async def idea_prompt(
    idea: str = Form(""),
    branch: str = Form(""),
    mode: str = Form("focused"),
    style: str = Form(""),
    layout: str = Form(""),
    angle: str = Form(""),
    quality: str = Form(""),
    session: StudioSession = Depends(get_session),
) -> JSONResponse:
    request = IdeaRequest(
        idea=idea,
        branch=_branch(branch),
        mode=_mode(mode),
        preferences=_preferences(style, layout, angle, quality),
    )
    prompts = await _guard(session.compose_idea_prompts(request))
    return JSONResponse({"prompts": prompts.model_dump()})


@app.post("/api/prompts/image")
async def image_prompt(
    image: UploadFile = File(...),
    mode: str = Form("freestyle"),
    style: str = Form(""),
    layout: str = Form(""),
    angle: str = Form(""),
    quality: str = Form(""),
    session: StudioSession = Depends(get_session),
) -> JSONResponse:
    request = ImageAnalysisRequest(
        image=await _read_image(image),
        mode=_mode(mode),
        preferences=_preferences(style, layout, angle, quality),
    )
    prompts = await _guard(session.analyze_image_prompts(request))
    return JSONResponse({"prompts": prompts.model_dump()})


@app.post("/api/prompts/video")
async def video_prompt(
    idea: str = Form(""),
    mode: str = Form("freestyle"),
    session: StudioSession = Depends(get_session),
) -> JSONResponse:
    prompt = await _guard(session.video_prompt_from_idea(idea, _mode(mode)))
    return JSONResponse({"prompt": prompt})


@app.post("/api/prompts/video/continuation")
async def continuation_prompt(
    previous_prompt: str = Form(""),
    next_idea: str = Form(""),
    mode: str = Form("freestyle"),
    session: StudioSession = Depends(get_session),
) -> JSONResponse:
    prompt = await _guard(session.continuation_video_prompt(previous_prompt, next_idea, _mode(mode)))
    return JSONResponse({"prompt": prompt})


## Image endpoints

@app.post("/api/images/idea")
async def images_from_idea(
    idea: str = Form(""),
    direct_prompt: str = Form(""),
    input_mode: str = Form("idea"),
    branch: str = Form("modern_human"),
    mode: str = Form("focused"),
    style: str = Form(""),
    layout: str = Form(""),
    angle: str = Form(""),
    quality: str = Form(""),
    count: int = Form(1),
    aspect_ratio: str = Form(AUTO_ASPECT_RATIO),
    include_prompt: str = Form("false"),
    session: StudioSession = Depends(get_session),
) -> JSONResponse:
    request = IdeaRequest(
        idea=idea,
        branch=_branch(branch),
        mode=_mode(mode),
        preferences=_preferences(style, layout, angle, quality),
        direct_prompt=direct_prompt if input_mode == "direct" else None,
        count=count,
        aspect_ratio=aspect_ratio,
        include_prompt=_parse_bool(include_prompt),
    )
    result = await _guard(session.generate_from_idea(request))
    return JSONResponse(_result_payload(result))


@app.post("/api/images/analyze")
async def images_from_image(
    image: UploadFile = File(...),
    mode: str = Form("freestyle"),
    style: str = Form(""),
    layout: str = Form(""),
    angle: str = Form(""),
    quality: str = Form(""),
    count: int = Form(1),
    aspect_ratio: str = Form(AUTO_ASPECT_RATIO),
    include_prompt: str = Form("false"),
    session: StudioSession = Depends(get_session),
) -> JSONResponse:
    request = ImageAnalysisRequest(
        image=await _read_image(image),
        mode=_mode(mode),
        preferences=_preferences(style, layout, angle, quality),
        count=count,
        aspect_ratio=aspect_ratio,
        include_prompt=_parse_bool(include_prompt),
    )
    result = await _guard(session.generate_from_image(request))
    return JSONResponse(_result_payload(result))


@app.post("/api/images/edit")
async def edit_image(
    image: UploadFile = File(...),
    instruction: str = Form(""),
    count: int = Form(1),
    aspect_ratio: str = Form(AUTO_ASPECT_RATIO),
    session: StudioSession = Depends(get_session),
) -> JSONResponse:
    request = EditRequest(
        image=await _read_image(image),
        instruction=instruction,
        count=count,
        aspect_ratio=aspect_ratio,
    )
    result = await _guard(session.edit(request))
    return JSONResponse(_result_payload(result))


@app.post("/api/images/face-swap")
async def face_swap(
    portrait: UploadFile = File(...),
    style_image: Optional[UploadFile] = File(None),
    source: str = Form("description"),
    description: str = Form(""),
    mode: str = Form("focused"),
    style: str = Form(""),
    layout: str = Form(""),
    angle: str = Form(""),
    quality: str = Form(""),
    count: int = Form(1),
    include_prompt: str = Form("false"),
    session: StudioSession = Depends(get_session),
) -> JSONResponse:
    request = FaceSwapRequest(
        portrait=await _read_image(portrait),
        source=source,
        description=description,
        style_image=await _read_image(style_image),
        mode=_mode(mode),
        preferences=_preferences(style, layout, angle, quality),
        count=count,
        include_prompt=_parse_bool(include_prompt),
    )
    result = await _guard(session.face_swap(request))
    return JSONResponse(_result_payload(result))


@app.post("/api/images/composite")
async def composite(
    characters: List[UploadFile] = File(...),
    background: Optional[UploadFile] = File(None),
    character_numbers: str = Form(""),
    description: str = Form(""),
    mode: str = Form("freestyle"),
    style: str = Form(""),
    layout: str = Form(""),
    angle: str = Form(""),
    quality: str = Form(""),
    count: int = Form(1),
    aspect_ratio: str = Form(AUTO_ASPECT_RATIO),
    session: StudioSession = Depends(get_session),
) -> JSONResponse:
    character_images = []
    for upload in characters:
        image = await _read_image(upload)
        if image is not None:
            character_images.append(image)

    numbers = None
    if character_numbers.strip():
        try:
            numbers = [int(item) for item in _parse_list(character_numbers)]
        except ValueError as exc:
            raise HTTPException(status_code=400, detail="Character numbers must be integers.") from exc

    request = CompositeRequest(
        characters=character_images,
        character_numbers=numbers,
        background=await _read_image(background),
        description=description,
        mode=_mode(mode),
        preferences=_preferences(style, layout, angle, quality),
        count=count,
        aspect_ratio=aspect_ratio,
    )
    result = await _guard(session.composite(request))
    return JSONResponse(_result_payload(result))


@app.post("/api/images/restore")
async def restore(
    image: UploadFile = File(...),
    mode: str = Form("single"),
    gender: str = Form(""),
    age: str = Form(""),
    description: str = Form(""),
    session: StudioSession = Depends(get_session),
) -> JSONResponse:
    request = RestoreRequest(
        image=await _read_image(image),
        mode=mode,
        gender=gender or None,
        age=age or None,
        description=description or None,
    )
    result = await _guard(session.restore(request))
    return JSONResponse(_result_payload(result))


@app.post("/api/images/upscale")
async def upscale(
    image: UploadFile = File(...),
    session: StudioSession = Depends(get_session),
) -> JSONResponse:
    result = await _guard(session.upscale(await _read_image(image)))
    return JSONResponse(_result_payload(result))


## History

@app.get("/api/history")
async def history(session: StudioSession = Depends(get_session)) -> JSONResponse:
    items = session.history.items()
    return JSONResponse(
        {
            "images": [_artifact_payload(index, artifact) for index, artifact in enumerate(items)],
            "is_loading": session.is_loading,
            "error": session.error,
        }
    )


@app.delete("/api/history")
async def clear_history(session: StudioSession = Depends(get_session)) -> JSONResponse:
    session.history.clear()
    logger.info("History cleared")
    return JSONResponse({"status": "ok", "remaining": 0})


@app.get("/api/history/export")
async def export_history(session: StudioSession = Depends(get_session)) -> JSONResponse:
    names = session.export_names()
    return JSONResponse(
        {
            "downloads": [
                {"filename": name, "url": f"/api/history/{index}/download"}
                for index, name in enumerate(names)
            ]
        }
    )


@app.get("/api/history/{index}/download")
async def download_image(index: int, session: StudioSession = Depends(get_session)) -> Response:
    try:
        artifact = session.history.get(index)
    except IndexError as exc:
        raise HTTPException(status_code=404, detail="Image not found.") from exc
    filename = f"pidtap-studio-{index + 1}.png"
    return Response(
        content=artifact.to_bytes(),
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.delete("/api/history/{index}")
async def delete_image(index: int, session: StudioSession = Depends(get_session)) -> JSONResponse:
    try:
        session.history.remove(index)
    except IndexError as exc:
        raise HTTPException(status_code=404, detail="Image not found.") from exc
    return JSONResponse({"status": "ok", "remaining": len(session.history)})


def run_server(host: str = "127.0.0.1", port: int = 8000) -> None:
    import uvicorn

    logger.info("Starting studio on http://%s:%d", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
