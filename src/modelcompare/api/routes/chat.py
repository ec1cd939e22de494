"""Chat API route: one prompt, every provider, side by side."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from modelcompare.api.ratelimit import get_chat_rate_limit, limiter
from modelcompare.api.uploads import stage_upload
from modelcompare.config import Settings
from modelcompare.domain.chat import ChatAggregator, ChatRequest
from modelcompare.shared.exceptions import ConfigurationError, ValidationError
from modelcompare.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Chat"])


# ----- Dependencies -----


def get_aggregator(request: Request) -> ChatAggregator:
    """Aggregator built at startup; missing when provider clients failed to initialize."""
    aggregator = getattr(request.app.state, "aggregator", None)
    if aggregator is None:
        raise ConfigurationError("AI clients are not initialized")
    return aggregator


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


AggregatorDep = Annotated[ChatAggregator, Depends(get_aggregator)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]


def _pick_upload(*uploads: UploadFile | None) -> UploadFile | None:
    # Browsers send an empty, nameless part when no file was chosen
    present = [upload for upload in uploads if upload is not None and upload.filename]
    if len(present) > 1:
        raise ValidationError("Only one file may be attached")
    return present[0] if present else None


# ----- Routes -----


@router.post("/chat")
@limiter.limit(get_chat_rate_limit)
async def chat(
    request: Request,
    aggregator: AggregatorDep,
    settings: SettingsDep,
    prompt: Annotated[str | None, Form()] = None,
    file: Annotated[UploadFile | None, File()] = None,
    media_file: Annotated[UploadFile | None, File(alias="mediaFile")] = None,
) -> dict[str, Any]:
    """Send the prompt (and optional image) to every configured provider.

    Returns one string per provider; failed providers hold an empty string and
    their sanitized error is listed under ``errors``.
    """
    upload = _pick_upload(file, media_file)
    attachment = await stage_upload(upload, settings) if upload is not None else None

    response = await aggregator.handle(ChatRequest(prompt=prompt, attachment=attachment))

    errors = response.errors
    if errors:
        logger.info("chat_request_partial", failed=sorted(errors), providers=aggregator.providers)
    return response.to_dict()
