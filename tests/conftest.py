import asyncio
import io
from contextlib import contextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image
from starlette.testclient import TestClient

from svgstudio import tiktok
from svgstudio.main import app
from svgstudio.session import registry


SAMPLE_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 400 400" width="400" height="400">'
    '<circle cx="200" cy="200" r="10" fill="red" class="pulse-node">'
    '<animate attributeName="r" values="10;12;10" dur="1s" repeatCount="indefinite"/>'
    "</circle></svg>"
)

WORKFLOW_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 400 400" width="400" height="400">'
    '<g class="container">'
    '<g class="component highlight"><rect x="20" y="170" width="80" height="60" rx="10" fill="#3498db"/>'
    '<text x="60" y="205" text-anchor="middle">Box A</text></g>'
    '<path d="M100 200 L150 200" stroke="#2c3e50" stroke-dasharray="5,5" class="flow-arrow"/>'
    '<rect x="150" y="170" width="80" height="60" rx="10" fill="#3498db"/>'
    '<path d="M230 200 L280 200" stroke="#2c3e50" stroke-dasharray="5,5" class="flow-arrow"/>'
    '<circle cx="280" cy="200" r="10" fill="#e74c3c" class="pulse-node"/>'
    "</g></svg>"
)

_test_client = TestClient(app)


@contextmanager
def ws_connect(client=None, user_id=None):
    """Connect to /ws with a pre-created session token. Consumes the auth message."""
    c = client or _test_client
    loop = asyncio.new_event_loop()
    token = loop.run_until_complete(registry.create_session(user_id=user_id)).token
    loop.close()
    with c.websocket_connect(f"/ws?token={token}") as ws:
        ws.receive_json()  # consume auth message
        yield ws


@pytest.fixture(autouse=True)
def _reset_tiktok_store():
    tiktok.connector.store = tiktok.TikTokAccountStore()
    yield
    tiktok.connector.store = tiktok.TikTokAccountStore()


def make_png(color: str = "red", size: tuple[int, int] = (40, 40)) -> bytes:
    """Encode a solid-color PNG frame."""
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def mock_http_client(*responses):
    """An httpx.AsyncClient stand-in whose post/get return ``responses`` in order."""
    client = AsyncMock()
    client.post.side_effect = [r for r in responses if r.method == "POST"] or None
    client.get.side_effect = [r for r in responses if r.method == "GET"] or None
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


def mock_response(status_code: int = 200, json_data: dict | None = None, method: str = "POST"):
    resp = MagicMock()
    resp.status_code = status_code
    resp.reason_phrase = "Error" if status_code >= 400 else "OK"
    resp.json.return_value = json_data if json_data is not None else {}
    resp.method = method
    return resp
