"""TikTok account linking (OAuth2 authorization code + PKCE) and video publishing.

Accounts, posts and pending authorizations live in an in-memory registry;
a host application that needs durability can swap in its own store with
the same methods.
"""

import base64
import hashlib
import logging
import secrets
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from urllib.parse import urlencode

import httpx

from svgstudio.config import Settings, settings as default_settings
from svgstudio.errors import (
    ConfigurationError,
    ConflictError,
    NotFoundError,
    OAuthStateError,
    UpstreamError,
)

logger = logging.getLogger("svgstudio.tiktok")

TIKTOK_AUTH_URL = "https://www.tiktok.com/v2/auth/authorize/"
TIKTOK_API_BASE_URL = "https://open.tiktokapis.com/v2"
TIKTOK_SCOPES = ["user.info.basic", "video.upload", "video.publish"]
USER_INFO_FIELDS = "open_id,union_id,avatar_url,display_name,username"
PENDING_STATE_TTL = 600


@dataclass(frozen=True)
class PkceChallenge:
    state: str
    code_verifier: str
    code_challenge: str


def generate_pkce() -> tuple[str, str]:
    """Return ``(code_verifier, code_challenge)`` using the S256 method."""
    code_verifier = base64.urlsafe_b64encode(secrets.token_bytes(64)).rstrip(b"=").decode("ascii")
    digest = hashlib.sha256(code_verifier.encode("ascii")).digest()
    code_challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return code_verifier, code_challenge


@dataclass
class TikTokAccount:
    user_id: str
    open_id: str
    access_token: str
    refresh_token: str
    expires_at: float
    username: str = ""
    display_name: str = ""
    avatar_url: str = ""

    @property
    def is_expired(self) -> bool:
        return self.expires_at <= time.time()

    def public_dict(self) -> dict[str, Any]:
        """Account details without the tokens."""
        return {
            "user_id": self.user_id,
            "open_id": self.open_id,
            "username": self.username,
            "display_name": self.display_name,
            "avatar_url": self.avatar_url,
            "expires_at": self.expires_at,
        }


@dataclass
class TikTokPost:
    id: str
    user_id: str
    video_url: str
    caption: str
    status: str = "pending"  # "pending" | "published" | "failed"
    publish_id: str | None = None
    post_id: str | None = None
    error: str | None = None
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class TikTokAccountStore:
    """One account per user, plus their posts and in-flight authorizations."""

    def __init__(self) -> None:
        self._accounts: dict[str, TikTokAccount] = {}
        self._owners: dict[str, str] = {}  # open_id -> user_id
        self._posts: list[TikTokPost] = []
        self._pending: dict[str, tuple[str, PkceChallenge, float]] = {}

    def get_account(self, user_id: str) -> TikTokAccount | None:
        return self._accounts.get(user_id)

    def owner_of(self, open_id: str) -> str | None:
        return self._owners.get(open_id)

    def upsert_account(self, account: TikTokAccount) -> TikTokAccount:
        """Link ``account`` to its user; a TikTok identity belongs to one user only."""
        owner = self._owners.get(account.open_id)
        if owner is not None and owner != account.user_id:
            raise ConflictError("This TikTok account is already connected to another user")

        existing = self._accounts.get(account.user_id)
        if existing:
            self._owners.pop(existing.open_id, None)
            existing.__dict__.update(account.__dict__)
            account = existing
        else:
            self._accounts[account.user_id] = account
        self._owners[account.open_id] = account.user_id
        return account

    def remove_account(self, user_id: str) -> bool:
        account = self._accounts.pop(user_id, None)
        if account is None:
            return False
        self._owners.pop(account.open_id, None)
        return True

    def add_post(self, post: TikTokPost) -> TikTokPost:
        self._posts.append(post)
        return post

    def posts_for(self, user_id: str) -> list[TikTokPost]:
        posts = [p for p in self._posts if p.user_id == user_id]
        return sorted(posts, key=lambda p: p.created_at, reverse=True)

    def remember_challenge(self, user_id: str, challenge: PkceChallenge) -> None:
        self._pending[challenge.state] = (user_id, challenge, time.time())

    def pop_challenge(self, state: str) -> tuple[str, PkceChallenge] | None:
        entry = self._pending.pop(state, None)
        if not entry:
            return None
        user_id, challenge, created_at = entry
        if time.time() - created_at > PENDING_STATE_TTL:
            return None
        return user_id, challenge


class TikTokConnector:
    """Async client for the TikTok Login Kit and Content Posting API."""

    default_timeout: float = 30.0

    def __init__(self, settings: Settings | None = None, store: TikTokAccountStore | None = None) -> None:
        self.settings = settings or default_settings
        self.store = store or TikTokAccountStore()

    # --- credentials ---

    def _client_key(self) -> str:
        client_key = self.settings.get("TIKTOK_CLIENT_KEY")
        if not client_key:
            raise ConfigurationError("TikTok client key not configured")
        return client_key

    def _client_credentials(self) -> tuple[str, str]:
        client_key = self.settings.get("TIKTOK_CLIENT_KEY")
        client_secret = self.settings.get("TIKTOK_CLIENT_SECRET")
        if not client_key or not client_secret:
            raise ConfigurationError("TikTok API credentials not configured")
        return client_key, client_secret

    @property
    def redirect_uri(self) -> str:
        return self.settings.get("TIKTOK_CALLBACK_URL") or ""

    def make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.default_timeout)

    def _require_account(self, user_id: str) -> TikTokAccount:
        account = self.store.get_account(user_id)
        if not account:
            raise NotFoundError("TikTok account not connected. Please connect your TikTok account first.")
        return account

    @staticmethod
    def _raise_on_error(response: httpx.Response, action: str) -> dict[str, Any]:
        """Return the JSON body, or raise UpstreamError with TikTok's message."""
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        error = body.get("error")
        if isinstance(error, dict):
            code = error.get("code", "ok")
            message = error.get("message", "")
        else:
            code = error or "ok"
            message = body.get("error_description", "")

        if response.status_code >= 400 or code != "ok":
            logger.error("TikTok %s failed: HTTP %s %s", action, response.status_code, code)
            raise UpstreamError(f"TikTok {action} failed: {message or code or response.status_code}")
        return body

    # --- OAuth ---

    def authorization_url(self, user_id: str) -> dict[str, str]:
        """Build the consent URL and remember the PKCE verifier under a fresh state."""
        client_key = self._client_key()
        code_verifier, code_challenge = generate_pkce()
        challenge = PkceChallenge(
            state=str(uuid.uuid4()),
            code_verifier=code_verifier,
            code_challenge=code_challenge,
        )
        self.store.remember_challenge(user_id, challenge)

        query = urlencode({
            "client_key": client_key,
            "response_type": "code",
            "scope": ",".join(TIKTOK_SCOPES),
            "redirect_uri": self.redirect_uri,
            "state": challenge.state,
            "code_challenge": challenge.code_challenge,
            "code_challenge_method": "S256",
        })
        return {"auth_url": f"{TIKTOK_AUTH_URL}?{query}", "state": challenge.state}

    async def _token_request(self, data: dict[str, str], action: str) -> dict[str, Any]:
        client_key, client_secret = self._client_credentials()
        async with self.make_client() as client:
            response = await client.post(
                f"{TIKTOK_API_BASE_URL}/oauth/token/",
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                data={"client_key": client_key, "client_secret": client_secret, **data},
            )
        return self._raise_on_error(response, action)

    async def fetch_user_info(self, access_token: str) -> dict[str, Any]:
        async with self.make_client() as client:
            response = await client.get(
                f"{TIKTOK_API_BASE_URL}/user/info/",
                headers={"Authorization": f"Bearer {access_token}"},
                params={"fields": USER_INFO_FIELDS},
            )
        body = self._raise_on_error(response, "user info")
        return (body.get("data") or {}).get("user") or {}

    async def connect(self, user_id: str, code: str, state: str) -> TikTokAccount:
        """Exchange the authorization code and link the TikTok account to ``user_id``."""
        pending = self.store.pop_challenge(state)
        if not pending:
            raise OAuthStateError("Invalid or expired state parameter")
        expected_user, challenge = pending
        if expected_user != user_id:
            raise OAuthStateError("State parameter does not belong to this user")
        if not code:
            raise OAuthStateError("Missing authorization code")

        tokens = await self._token_request(
            {
                "code": code,
                "grant_type": "authorization_code",
                "redirect_uri": self.redirect_uri,
                "code_verifier": challenge.code_verifier,
            },
            "token exchange",
        )
        user = await self.fetch_user_info(tokens["access_token"])
        open_id = tokens.get("open_id") or user.get("open_id", "")

        owner = self.store.owner_of(open_id)
        if owner is not None and owner != user_id:
            logger.warning("TikTok open_id=%s already linked to user=%s, rejecting user=%s", open_id, owner, user_id)
            raise ConflictError("This TikTok account is already connected to another user")

        account = self.store.upsert_account(TikTokAccount(
            user_id=user_id,
            open_id=open_id,
            access_token=tokens["access_token"],
            refresh_token=tokens.get("refresh_token", ""),
            expires_at=time.time() + int(tokens.get("expires_in", 0)),
            username=user.get("username", ""),
            display_name=user.get("display_name", ""),
            avatar_url=user.get("avatar_url", ""),
        ))
        logger.info("TikTok account connected user=%s open_id=%s", user_id, account.open_id)
        return account

    async def refresh(self, user_id: str) -> TikTokAccount:
        account = self._require_account(user_id)
        tokens = await self._token_request(
            {"grant_type": "refresh_token", "refresh_token": account.refresh_token},
            "token refresh",
        )
        account.access_token = tokens["access_token"]
        account.refresh_token = tokens.get("refresh_token", account.refresh_token)
        account.expires_at = time.time() + int(tokens.get("expires_in", 0))
        logger.info("TikTok token refreshed user=%s", user_id)
        return account

    def disconnect(self, user_id: str) -> None:
        if not self.store.remove_account(user_id):
            raise NotFoundError("TikTok account not found")
        logger.info("TikTok account disconnected user=%s", user_id)

    def get_account(self, user_id: str) -> TikTokAccount | None:
        return self.store.get_account(user_id)

    def list_posts(self, user_id: str) -> list[TikTokPost]:
        if not self.store.get_account(user_id):
            return []
        return self.store.posts_for(user_id)

    # --- publishing ---

    async def _post_json(self, account: TikTokAccount, path: str, payload: dict[str, Any], action: str) -> dict[str, Any]:
        async with self.make_client() as client:
            response = await client.post(
                f"{TIKTOK_API_BASE_URL}{path}",
                headers={
                    "Authorization": f"Bearer {account.access_token}",
                    "Content-Type": "application/json; charset=UTF-8",
                },
                json=payload,
            )
        return (self._raise_on_error(response, action).get("data") or {})

    async def publish_video(
        self,
        user_id: str,
        video_url: str,
        caption: str = "",
        privacy_level: str = "PUBLIC_TO_EVERYONE",
    ) -> TikTokPost:
        """Have TikTok pull ``video_url`` and publish it, tracking the result as a post."""
        account = self._require_account(user_id)
        if account.is_expired:
            account = await self.refresh(user_id)

        post = self.store.add_post(TikTokPost(
            id=str(uuid.uuid4()), user_id=user_id, video_url=video_url, caption=caption,
        ))
        logger.info("TIKTOK_UPLOAD_START user=%s post=%s caption_len=%d", user_id, post.id, len(caption))

        try:
            init = await self._post_json(
                account,
                "/post/publish/video/init/",
                {
                    "post_info": {
                        "title": caption,
                        "privacy_level": privacy_level,
                        "disable_duet": False,
                        "disable_comment": False,
                        "disable_stitch": False,
                    },
                    "source_info": {"source": "PULL_FROM_URL", "video_url": video_url},
                },
                "video init",
            )
            post.publish_id = init.get("publish_id")
            if not post.publish_id:
                raise UpstreamError(f"TikTok init response missing publish_id: {init}")

            status = await self._post_json(
                account,
                "/post/publish/status/fetch/",
                {"publish_id": post.publish_id},
                "publish status",
            )
        except UpstreamError as exc:
            post.status = "failed"
            post.error = exc.detail
            logger.error("TIKTOK_UPLOAD_FAILED post=%s error=%s", post.id, exc.detail)
            raise
        except httpx.HTTPError as exc:
            post.status = "failed"
            post.error = str(exc) or type(exc).__name__
            logger.error("TIKTOK_UPLOAD_FAILED post=%s error=%s", post.id, post.error)
            raise UpstreamError(f"TikTok upload failed: {post.error}") from exc

        if status.get("status") == "FAILED":
            post.status = "failed"
            post.error = status.get("fail_reason") or "Publishing failed"
            raise UpstreamError(f"TikTok publish failed: {post.error}")

        post_ids = status.get("publicaly_available_post_id") or []
        post.post_id = str(post_ids[0]) if post_ids else None
        post.status = "published" if status.get("status") == "PUBLISH_COMPLETE" else "pending"
        logger.info("TIKTOK_UPLOAD_SUCCESS post=%s status=%s", post.id, post.status)
        return post


# Module-level singleton
connector = TikTokConnector()
