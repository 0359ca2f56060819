from typing import Any

from pydantic import BaseModel


class GenerateRequest(BaseModel):
    prompt: str
    model: str = "deepseek"
    kind: str = "videoElement"


class GenerateResponse(BaseModel):
    variants: list[str]


class RasterizeRequest(BaseModel):
    svg: str
    animated: bool = True


class RasterizeResponse(BaseModel):
    image_data_uri: str


class SessionRequest(BaseModel):
    user_id: str | None = None


class SessionResponse(BaseModel):
    token: str


class TikTokAuthUrlResponse(BaseModel):
    auth_url: str
    state: str


class TikTokConnectRequest(BaseModel):
    user_id: str
    code: str
    state: str


class TikTokAccountResponse(BaseModel):
    account: dict[str, Any] | None


class TikTokPublishRequest(BaseModel):
    user_id: str
    video_url: str
    caption: str = ""


class TikTokPost(BaseModel):
    id: str
    user_id: str
    video_url: str
    caption: str
    status: str
    publish_id: str | None = None
    post_id: str | None = None
    error: str | None = None
    created_at: str
