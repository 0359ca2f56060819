"""Base class for LLM provider integrations."""

import logging
from abc import ABC

import httpx

from svgstudio.config import Settings, settings as default_settings
from svgstudio.errors import ConfigurationError, UpstreamError

logger = logging.getLogger("svgstudio.llm")


class LLMProvider(ABC):
    """Shared infrastructure for all LLM providers."""

    provider_name: str  # "OpenRouter"
    api_key_env: str    # "OPENROUTER_API_KEY"
    default_timeout: float = 120.0

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or default_settings

    def get_api_key(self, *, required: bool = True) -> str | None:
        """Return the API key from config/env, or raise if required and missing."""
        api_key = self.settings.get(self.api_key_env)
        if not api_key and required:
            raise ConfigurationError(f"{self.provider_name} API key is not configured ({self.api_key_env})")
        return api_key or None

    @property
    def timeout(self) -> float:
        return self.settings.get_float("LLM_TIMEOUT_S") or self.default_timeout

    def make_client(self, timeout: float | None = None) -> httpx.AsyncClient:
        """Create an httpx async client with the provider's default timeout."""
        return httpx.AsyncClient(timeout=timeout or self.timeout)

    def auth_headers(self, api_key: str) -> dict[str, str]:
        """Return auth headers. Default: Bearer token. Override per provider."""
        return {"Authorization": f"Bearer {api_key}"}

    def raise_on_error(self, response: httpx.Response) -> None:
        """Raise UpstreamError carrying the provider's message if the response is not a success."""
        if response.status_code < 400:
            return
        logger.error("%s returned HTTP %s", self.provider_name, response.status_code)
        try:
            payload = response.json()
        except ValueError:
            raise UpstreamError(
                f"{self.provider_name} returned an unexpected error ({response.status_code})."
            ) from None

        error_obj = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error_obj, dict):
            message = error_obj.get("message", "")
            if message:
                raise UpstreamError(f"{self.provider_name} API error: {message}")

        raise UpstreamError(
            f"{self.provider_name} API error: {response.reason_phrase or response.status_code}"
        )
