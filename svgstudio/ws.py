"""WebSocket endpoint with token-based session auth."""

import logging
import traceback

from fastapi import HTTPException
from starlette.websockets import WebSocket, WebSocketDisconnect

from svgstudio.errors import SvgStudioError
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
from svgstudio.session import Session, registry

logger = logging.getLogger("svgstudio.ws")


async def ws_endpoint(websocket: WebSocket) -> None:
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4001, reason="Token required")
        return

    session = await registry.get_session(token)
    if not session:
        await websocket.close(code=4001, reason="Invalid token")
        return

    await websocket.accept()
    session.websocket = websocket

    # Send auth message with the session token
    await websocket.send_json({"type": "auth", "token": session.token})

    try:
        while True:
            msg = await websocket.receive_json()
            req_id = msg.get("id")
            action = msg.get("action")
            payload = msg.get("payload") or {}

            try:
                result = await _dispatch(session, action, payload)
                await websocket.send_json({"id": req_id, "ok": True, "result": result})
            except HTTPException as exc:
                await websocket.send_json({
                    "id": req_id, "ok": False,
                    "error": exc.detail, "code": exc.status_code,
                })
            except SvgStudioError as exc:
                logger.warning("WS %s failed: %s", action, exc.detail)
                await websocket.send_json({
                    "id": req_id, "ok": False,
                    "error": exc.detail, "code": exc.status_code,
                })
            except Exception as exc:
                logger.error("WS dispatch error: %s\n%s", exc, traceback.format_exc())
                await websocket.send_json({
                    "id": req_id, "ok": False,
                    "error": str(exc) or "Internal error", "code": 500,
                })
    except WebSocketDisconnect:
        pass
    finally:
        session.websocket = None


async def _dispatch(session: Session, action: str, payload: dict) -> dict | list:
    user_id = session.user_id

    if action == "models":
        return await handle_models()

    elif action == "generate":
        return await handle_generate_graphic(
            prompt=payload.get("prompt", ""),
            model=payload.get("model", "deepseek"),
            kind=payload.get("kind", "videoElement"),
        )

    elif action == "rasterize":
        return await handle_rasterize(
            svg=payload.get("svg", ""),
            animated=bool(payload.get("animated", True)),
        )

    elif action == "tiktok-auth-url":
        return await handle_tiktok_auth_url(user_id)

    elif action == "tiktok-connect":
        return await handle_tiktok_connect(
            user_id, code=payload.get("code", ""), state=payload.get("state", ""),
        )

    elif action == "tiktok-disconnect":
        return await handle_tiktok_disconnect(user_id)

    elif action == "tiktok-account":
        return await handle_tiktok_account(user_id)

    elif action == "tiktok-publish":
        return await handle_tiktok_publish(
            user_id, video_url=payload.get("video_url", ""), caption=payload.get("caption", ""),
        )

    elif action == "tiktok-posts":
        return await handle_tiktok_posts(user_id)

    else:
        raise HTTPException(status_code=400, detail=f"Unknown action: {action}")
