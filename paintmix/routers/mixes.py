import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address

from .. import models, schemas
from ..ai.errors import AIError, ConfigurationError
from ..ai.factory import ProviderCache
from ..deps import get_mix_service, get_provider_cache, get_workspace
from ..services.mix_service import MixGenerationError, MixService, with_reference
from ..settings import AISettings, settings

logger = logging.getLogger("paintmix.mix")

router = APIRouter(prefix="/mixes", tags=["mixes"])

limiter = Limiter(key_func=get_remote_address)

NOT_CONFIGURED = "AI service not configured"


def _generation_failed(e: MixGenerationError) -> HTTPException:
    if e.not_configured:
        return HTTPException(status_code=503, detail=NOT_CONFIGURED)
    return HTTPException(status_code=502, detail=str(e))


@router.post("/generate", response_model=schemas.MixGenerateResponse)
@limiter.limit(lambda: settings.ai_rate_limit)
def generate_mix(
    request: Request,  # Required for rate limiter
    payload: schemas.MixGenerateRequest,
    workspace: models.Workspace = Depends(get_workspace),
    mix_service: MixService = Depends(get_mix_service),
):
    """Generate a mix recipe. Preview only unless ``save`` is set."""
    logger.info(f"Generating paint mix for {workspace.id}: {payload.target_brand} {payload.target_name}")
    args = (
        workspace.id,
        payload.target_brand,
        payload.target_name,
        payload.target_color,
        payload.target_reference,
    )
    try:
        if payload.should_save:
            result = mix_service.generate_mix(*args)
            logger.info(f"Mix generated and saved for {workspace.id}: {result.get('id')}")
        else:
            result = mix_service.generate_mix_preview(*args)
            logger.info(f"Mix preview generated for {workspace.id}")
    except MixGenerationError as e:
        logger.error(f"Mix generation failed for {workspace.id}: {e}")
        raise _generation_failed(e)

    return schemas.MixGenerateResponse(data=result)


@router.get("/preview", response_model=schemas.PromptPreviewOut)
def preview_prompt(
    target_brand: str = Query(..., alias="targetBrand", min_length=1),
    target_name: str = Query(..., alias="targetName", min_length=1),
    target_color: Optional[str] = Query(None, alias="targetColor"),
    workspace: models.Workspace = Depends(get_workspace),
    mix_service: MixService = Depends(get_mix_service),
    providers: ProviderCache = Depends(get_provider_cache),
):
    """Dry run: the prompt that would be sent, without calling the backend."""
    palette = mix_service.load_palette(workspace.id)
    try:
        provider = providers.create()
    except ConfigurationError:
        raise HTTPException(status_code=503, detail=NOT_CONFIGURED)

    prompt = provider.build_prompt(target_brand, target_name, palette)
    return schemas.PromptPreviewOut(
        target_brand=target_brand,
        target_name=target_name,
        target_color=target_color,
        prompt=prompt,
        palette_size=len(palette),
        prompt_length=len(prompt),
        provider=provider.kind.value,
        model=provider.model_name,
    )


@router.get("/health")
def health(providers: ProviderCache = Depends(get_provider_cache)):
    """Round trip to the configured AI backend."""
    try:
        provider = providers.create()
    except ConfigurationError as e:
        ai_settings = AISettings()
        return JSONResponse(status_code=503, content={
            "success": False,
            "error": NOT_CONFIGURED,
            "data": {
                "status": "not_configured",
                "provider": ai_settings.ai_provider,
                "connected": False,
                "error": str(e),
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        })

    status = provider.test_connection()
    return JSONResponse(
        status_code=200 if status["connected"] else 503,
        content={"success": status["connected"], "data": status},
    )


@router.post("/reset")
def reset(providers: ProviderCache = Depends(get_provider_cache)):
    """Drop the cached provider so the next call re-reads configuration."""
    providers.reset()
    logger.info("AI provider cache cleared")
    return {
        "success": True,
        "data": {
            "message": "AI provider cache cleared",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }


@router.post("/raw", response_model=schemas.RawMixOut)
@limiter.limit(lambda: settings.ai_rate_limit)
def raw(
    request: Request,  # Required for rate limiter
    payload: schemas.MixGenerateRequest,
    workspace: models.Workspace = Depends(get_workspace),
    mix_service: MixService = Depends(get_mix_service),
    providers: ProviderCache = Depends(get_provider_cache),
):
    """Unparsed backend output for debugging prompts."""
    palette = mix_service.load_palette(workspace.id)
    try:
        provider = providers.create()
    except ConfigurationError:
        raise HTTPException(status_code=503, detail=NOT_CONFIGURED)

    prompt = provider.build_prompt(
        payload.target_brand,
        with_reference(payload.target_name, payload.target_reference),
        palette,
    )

    start = time.perf_counter()
    try:
        raw_text = provider.complete(prompt) or ""
    except AIError as e:
        logger.error(f"Raw AI call failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    elapsed_ms = int((time.perf_counter() - start) * 1000)

    info = provider.info()
    return schemas.RawMixOut(
        target_brand=payload.target_brand,
        target_name=payload.target_name,
        target_reference=payload.target_reference,
        target_color=payload.target_color,
        prompt=prompt,
        raw_response=raw_text,
        response_time=f"{elapsed_ms}ms",
        prompt_length=len(prompt),
        response_length=len(raw_text),
        palette_size=len(palette),
        provider=info.kind.value,
        model=info.model,
        base_url=info.base_url,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
