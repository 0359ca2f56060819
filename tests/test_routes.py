import time
from unittest.mock import patch, AsyncMock

import pytest
from fastapi.testclient import TestClient

from svgstudio import tiktok
from svgstudio.catalog import MODEL_CAPABILITIES
from svgstudio.errors import ResourceError, UpstreamError
from svgstudio.main import app
from svgstudio.svg import SVG_NAMESPACE_ATTR
from svgstudio.tiktok import TikTokAccount, TikTokPost
from tests.conftest import SAMPLE_SVG, WORKFLOW_SVG


client = TestClient(app)


def _link_account(user_id: str = "user-1") -> None:
    tiktok.connector.store.upsert_account(TikTokAccount(
        user_id=user_id, open_id="open-123", access_token="act.1",
        refresh_token="rft.1", expires_at=time.time() + 3600, username="svgfan",
    ))


# --- GET /api/models ---

class TestGetModels:
    def test_returns_all_models(self):
        with patch.dict("os.environ", {"OPENROUTER_API_KEY": "sk-or-test"}):
            resp = client.get("/api/models")
        assert resp.status_code == 200
        data = resp.json()
        assert set(data["models"]) == {"deepseek", "claude", "openai"}
        assert data["kinds"] == ["workflow", "videoElement"]
        assert data["examples"]["workflow"]

    def test_has_key_flags(self):
        with patch.dict("os.environ", {"OPENROUTER_API_KEY": ""}):
            resp = client.get("/api/models")
        assert all(m["hasKey"] is False for m in resp.json()["models"].values())

    def test_all_models_have_required_keys(self):
        required = {"label", "description", "route", "requiresKey"}
        for model_id, caps in MODEL_CAPABILITIES.items():
            assert required.issubset(caps.keys()), f"{model_id} missing keys"


# --- POST /api/generate ---

class TestGenerate:
    def test_workflow_end_to_end(self):
        with patch("svgstudio.handlers.llm_openrouter.complete", new_callable=AsyncMock, return_value=WORKFLOW_SVG) as mock:
            resp = client.post("/api/generate", json={
                "prompt": "three boxes connected left to right",
                "model": "deepseek",
                "kind": "workflow",
            })
        assert resp.status_code == 200
        variants = resp.json()["variants"]
        assert len(variants) == 1
        assert SVG_NAMESPACE_ATTR in variants[0]
        assert "<animate" in variants[0]
        system_prompt, user_prompt, model = mock.call_args[0]
        assert "three boxes connected left to right" in user_prompt
        assert model == "deepseek"

    def test_fenced_output_is_cleaned(self):
        raw = f"Here is your graphic:\n```svg\n{SAMPLE_SVG}\n```"
        with patch("svgstudio.handlers.llm_openrouter.complete", new_callable=AsyncMock, return_value=raw):
            resp = client.post("/api/generate", json={"prompt": "a pulsing dot", "kind": "videoElement"})
        assert resp.status_code == 200
        (variant,) = resp.json()["variants"]
        assert variant.startswith("<svg")
        assert variant.endswith("</svg>")
        assert "```" not in variant

    def test_default_model_and_kind(self):
        with patch("svgstudio.handlers.llm_openrouter.complete", new_callable=AsyncMock, return_value=SAMPLE_SVG) as mock:
            client.post("/api/generate", json={"prompt": "a spinner"})
        _, user_prompt, model = mock.call_args[0]
        assert model == "deepseek"
        assert "video element" in user_prompt.lower()

    def test_empty_prompt(self):
        resp = client.post("/api/generate", json={"prompt": "   "})
        assert resp.status_code == 400

    def test_unknown_kind(self):
        resp = client.post("/api/generate", json={"prompt": "a cat", "kind": "banner"})
        assert resp.status_code == 400
        assert "banner" in resp.json()["detail"]

    def test_unknown_model(self):
        resp = client.post("/api/generate", json={"prompt": "a cat", "model": "llama"})
        assert resp.status_code == 400

    def test_missing_key(self):
        with patch.dict("os.environ", {}, clear=True):
            resp = client.post("/api/generate", json={"prompt": "a cat"})
        assert resp.status_code == 500
        assert "OPENROUTER_API_KEY" in resp.json()["detail"]

    def test_upstream_error(self):
        with patch("svgstudio.handlers.llm_openrouter.complete", new_callable=AsyncMock,
                   side_effect=UpstreamError("OpenRouter API error: Rate limited")):
            resp = client.post("/api/generate", json={"prompt": "a cat"})
        assert resp.status_code == 502
        assert resp.json()["detail"] == "OpenRouter API error: Rate limited"

    def test_unrecoverable_output(self):
        with patch("svgstudio.handlers.llm_openrouter.complete", new_callable=AsyncMock, return_value="<svg</svg>"):
            resp = client.post("/api/generate", json={"prompt": "a cat"})
        assert resp.status_code == 422
        assert resp.json()["detail"].startswith("Invalid SVG")


# --- POST /api/rasterize ---

class TestRasterize:
    def test_success(self):
        with patch("svgstudio.handlers.raster.rasterize", new_callable=AsyncMock,
                   return_value="data:image/gif;base64,R0lGOD") as mock:
            resp = client.post("/api/rasterize", json={"svg": SAMPLE_SVG})
        assert resp.status_code == 200
        assert resp.json()["image_data_uri"] == "data:image/gif;base64,R0lGOD"
        assert mock.call_args[1]["animated"] is True

    def test_static(self):
        with patch("svgstudio.handlers.raster.rasterize", new_callable=AsyncMock,
                   return_value="data:image/gif;base64,R0lGOD") as mock:
            client.post("/api/rasterize", json={"svg": SAMPLE_SVG, "animated": False})
        assert mock.call_args[1]["animated"] is False

    def test_empty_svg(self):
        resp = client.post("/api/rasterize", json={"svg": ""})
        assert resp.status_code == 400

    def test_invalid_svg(self):
        resp = client.post("/api/rasterize", json={"svg": "<svg><rect/></svg>"})
        assert resp.status_code == 422
        assert resp.json()["detail"].startswith("Invalid SVG content")

    def test_browser_failure(self):
        with patch("svgstudio.handlers.raster.rasterize", new_callable=AsyncMock,
                   side_effect=ResourceError("Failed to launch headless browser: missing")):
            resp = client.post("/api/rasterize", json={"svg": SAMPLE_SVG})
        assert resp.status_code == 500


# --- POST /api/session ---

class TestSession:
    def test_create_without_body(self):
        resp = client.post("/api/session")
        assert resp.status_code == 200
        assert resp.json()["token"]

    def test_create_with_user(self):
        resp = client.post("/api/session", json={"user_id": "user-1"})
        assert resp.status_code == 200
        assert resp.json()["token"]


# --- TikTok ---

class TestTikTok:
    def test_auth_url(self):
        with patch.dict("os.environ", {"TIKTOK_CLIENT_KEY": "client-key"}):
            resp = client.get("/api/tiktok/auth-url", params={"user_id": "user-1"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["auth_url"].startswith("https://www.tiktok.com/v2/auth/authorize/?")
        assert data["state"] in data["auth_url"]

    def test_auth_url_requires_user(self):
        resp = client.get("/api/tiktok/auth-url", params={"user_id": ""})
        assert resp.status_code == 401

    def test_auth_url_not_configured(self):
        with patch.dict("os.environ", {}, clear=True):
            resp = client.get("/api/tiktok/auth-url", params={"user_id": "user-1"})
        assert resp.status_code == 500

    def test_connect_bad_state(self):
        resp = client.post("/api/tiktok/connect", json={"user_id": "user-1", "code": "c", "state": "nope"})
        assert resp.status_code == 400
        assert "state" in resp.json()["detail"]

    def test_account_none(self):
        resp = client.get("/api/tiktok/account", params={"user_id": "user-1"})
        assert resp.status_code == 200
        assert resp.json() == {"account": None}

    def test_account_linked(self):
        _link_account()
        resp = client.get("/api/tiktok/account", params={"user_id": "user-1"})
        account = resp.json()["account"]
        assert account["username"] == "svgfan"
        assert "access_token" not in account

    def test_disconnect(self):
        _link_account()
        resp = client.delete("/api/tiktok/account", params={"user_id": "user-1"})
        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        assert tiktok.connector.get_account("user-1") is None

    def test_disconnect_unknown(self):
        resp = client.delete("/api/tiktok/account", params={"user_id": "user-1"})
        assert resp.status_code == 404

    def test_publish(self):
        _link_account()
        post = TikTokPost(id="p1", user_id="user-1", video_url="https://cdn.example/v.mp4",
                          caption="hi", status="published", publish_id="v_pub_1")
        with patch.object(tiktok.connector, "publish_video", new_callable=AsyncMock, return_value=post) as mock:
            resp = client.post("/api/tiktok/posts", json={
                "user_id": "user-1", "video_url": "https://cdn.example/v.mp4", "caption": " hi ",
            })
        assert resp.status_code == 200
        assert resp.json()["status"] == "published"
        assert mock.call_args[0] == ("user-1", "https://cdn.example/v.mp4", "hi")

    def test_publish_rejects_non_http_url(self):
        resp = client.post("/api/tiktok/posts", json={"user_id": "user-1", "video_url": "file:///etc/passwd"})
        assert resp.status_code == 400

    def test_publish_not_connected(self):
        resp = client.post("/api/tiktok/posts", json={"user_id": "user-1", "video_url": "https://cdn.example/v.mp4"})
        assert resp.status_code == 404

    def test_posts(self):
        _link_account()
        tiktok.connector.store.add_post(TikTokPost(id="p1", user_id="user-1", video_url="https://v", caption=""))
        resp = client.get("/api/tiktok/posts", params={"user_id": "user-1"})
        assert resp.status_code == 200
        assert [p["id"] for p in resp.json()] == ["p1"]


@pytest.mark.parametrize("path", ["/api/models", "/api/tiktok/account?user_id=u"])
def test_cors_headers(path):
    resp = client.get(path, headers={"Origin": "http://localhost:5173"})
    assert resp.headers.get("access-control-allow-origin")
