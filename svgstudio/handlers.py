"""Core handler functions, free of routing types. Used by both REST routes and WebSocket."""

import logging
from dataclasses import asdict
from typing import Any

from fastapi import HTTPException

from svgstudio import raster
from svgstudio.animate import inject_animations
from svgstudio.catalog import EXAMPLE_PROMPTS, MODEL_CAPABILITIES
from svgstudio.config import settings
from svgstudio.errors import ValidationError
from svgstudio.llm import openrouter as llm_openrouter
from svgstudio.prompts import GRAPHIC_KINDS, SYSTEM_PROMPT, build_user_prompt
from svgstudio.svg import ensure_valid_svg, validate
from svgstudio.tiktok import TikTokConnector, connector as default_connector

logger = logging.getLogger("svgstudio.handlers")


async def handle_models() -> dict[str, Any]:
    models = {}
    for model_id, details in MODEL_CAPABILITIES.items():
        models[model_id] = {
            **details,
            "hasKey": bool(settings.get(details["requiresKey"])),
        }
    return {"models": models, "kinds": list(GRAPHIC_KINDS), "examples": EXAMPLE_PROMPTS}


async def handle_generate_graphic(prompt: str, model: str, kind: str) -> dict:
    """Ask the model for SVG markup, repair and validate it, then animate it."""
    prompt = prompt.strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="prompt is required.")
    if kind not in GRAPHIC_KINDS:
        raise HTTPException(status_code=400, detail=f"Unsupported graphic kind: {kind}")
    if model not in MODEL_CAPABILITIES:
        raise HTTPException(status_code=400, detail=f"Unsupported model: {model}")

    raw = await llm_openrouter.complete(SYSTEM_PROMPT, build_user_prompt(prompt, kind), model)
    base_svg = ensure_valid_svg(raw)

    variants = inject_animations(base_svg, kind)
    for variant in variants:
        verdict = validate(variant)
        if not verdict.is_valid:
            raise ValidationError(f"Invalid SVG variation: {verdict.message}")

    logger.info("Generated %d %s variant(s) with %s", len(variants), kind, model)
    return {"variants": variants}


async def handle_rasterize(svg: str, animated: bool = True) -> dict:
    if not svg or not svg.strip():
        raise HTTPException(status_code=400, detail="svg is required.")
    image_data_uri = await raster.rasterize(svg, animated=animated)
    return {"image_data_uri": image_data_uri}


# --- TikTok ---

async def handle_tiktok_auth_url(user_id: str, connector: TikTokConnector | None = None) -> dict:
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authorized")
    return (connector or default_connector).authorization_url(user_id)


async def handle_tiktok_connect(
    user_id: str, code: str, state: str, connector: TikTokConnector | None = None,
) -> dict:
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authorized")
    account = await (connector or default_connector).connect(user_id, code, state)
    return {"success": True, "account": account.public_dict()}


async def handle_tiktok_disconnect(user_id: str, connector: TikTokConnector | None = None) -> dict:
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authorized")
    (connector or default_connector).disconnect(user_id)
    return {"success": True}


async def handle_tiktok_account(user_id: str, connector: TikTokConnector | None = None) -> dict:
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authorized")
    account = (connector or default_connector).get_account(user_id)
    return {"account": account.public_dict() if account else None}


async def handle_tiktok_publish(
    user_id: str, video_url: str, caption: str, connector: TikTokConnector | None = None,
) -> dict:
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authorized")
    video_url = video_url.strip()
    if not video_url.startswith(("https://", "http://")):
        raise HTTPException(status_code=400, detail="video_url must be an http(s) URL.")
    post = await (connector or default_connector).publish_video(user_id, video_url, caption.strip())
    return {"success": True, "post": asdict(post)}


async def handle_tiktok_posts(user_id: str, connector: TikTokConnector | None = None) -> list[dict]:
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authorized")
    return [asdict(p) for p in (connector or default_connector).list_posts(user_id)]
