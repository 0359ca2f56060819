from typing import Any

from fastapi import APIRouter

from svgstudio.handlers import (
    handle_generate_graphic,
    handle_models,
    handle_rasterize,
    handle_tiktok_account,
    handle_tiktok_auth_url,
    handle_tiktok_connect,
    handle_tiktok_disconnect,
    handle_tiktok_posts,
    handle_tiktok_publish,
)
from svgstudio.schemas import (
    GenerateRequest,
    GenerateResponse,
    RasterizeRequest,
    RasterizeResponse,
    SessionRequest,
    SessionResponse,
    TikTokAccountResponse,
    TikTokAuthUrlResponse,
    TikTokConnectRequest,
    TikTokPost,
    TikTokPublishRequest,
)
from svgstudio.session import registry

router = APIRouter()


@router.get("/api/models")
async def get_models() -> dict[str, Any]:
    return await handle_models()


@router.post("/api/generate", response_model=GenerateResponse)
async def generate_graphic(payload: GenerateRequest) -> GenerateResponse:
    result = await handle_generate_graphic(payload.prompt, payload.model, payload.kind)
    return GenerateResponse(**result)


@router.post("/api/rasterize", response_model=RasterizeResponse)
async def rasterize(payload: RasterizeRequest) -> RasterizeResponse:
    result = await handle_rasterize(payload.svg, animated=payload.animated)
    return RasterizeResponse(**result)


@router.post("/api/session", response_model=SessionResponse)
async def create_session(payload: SessionRequest | None = None) -> SessionResponse:
    session = await registry.create_session(user_id=payload.user_id if payload else None)
    return SessionResponse(token=session.token)


# --- TikTok ---

@router.get("/api/tiktok/auth-url", response_model=TikTokAuthUrlResponse)
async def tiktok_auth_url(user_id: str) -> TikTokAuthUrlResponse:
    return TikTokAuthUrlResponse(**await handle_tiktok_auth_url(user_id))


@router.post("/api/tiktok/connect", response_model=TikTokAccountResponse)
async def tiktok_connect(payload: TikTokConnectRequest) -> TikTokAccountResponse:
    result = await handle_tiktok_connect(payload.user_id, payload.code, payload.state)
    return TikTokAccountResponse(account=result["account"])


@router.get("/api/tiktok/account", response_model=TikTokAccountResponse)
async def tiktok_account(user_id: str) -> TikTokAccountResponse:
    return TikTokAccountResponse(**await handle_tiktok_account(user_id))


@router.delete("/api/tiktok/account")
async def tiktok_disconnect(user_id: str) -> dict:
    return await handle_tiktok_disconnect(user_id)


@router.post("/api/tiktok/posts", response_model=TikTokPost)
async def tiktok_publish(payload: TikTokPublishRequest) -> TikTokPost:
    result = await handle_tiktok_publish(payload.user_id, payload.video_url, payload.caption)
    return TikTokPost(**result["post"])


@router.get("/api/tiktok/posts", response_model=list[TikTokPost])
async def tiktok_posts(user_id: str) -> list[TikTokPost]:
    return [TikTokPost(**post) for post in await handle_tiktok_posts(user_id)]
