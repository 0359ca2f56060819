"""Global configuration singleton for SvgStudio.

Reads credentials from environment variables by default.  When embedded
in a host application, the caller can populate the singleton *before*
the first request, or construct its own ``Settings`` and hand it to the
LLM provider and the TikTok connector:

    from svgstudio.config import settings
    settings.OPENROUTER_API_KEY = "sk-or-..."
"""

import os
from typing import Optional


class Settings:
    """Lightweight mutable config; attributes win over the environment."""

    OPENROUTER_API_KEY: Optional[str] = None
    OPENROUTER_REFERER: Optional[str] = None
    OPENROUTER_TITLE: Optional[str] = None
    LLM_TIMEOUT_S: Optional[float] = None
    RENDER_TIMEOUT_MS: Optional[float] = None
    TIKTOK_CLIENT_KEY: Optional[str] = None
    TIKTOK_CLIENT_SECRET: Optional[str] = None
    TIKTOK_CALLBACK_URL: Optional[str] = None

    DEFAULTS: dict[str, str] = {
        "OPENROUTER_REFERER": "http://localhost:3000",
        "OPENROUTER_TITLE": "SVG Generator",
        "LLM_TIMEOUT_S": "120",
        "RENDER_TIMEOUT_MS": "5000",
        "TIKTOK_CALLBACK_URL": "http://localhost:3000/tiktok/callback",
    }

    def __init__(self, **overrides: object) -> None:
        for name, value in overrides.items():
            if not hasattr(type(self), name):
                raise AttributeError(f"Unknown setting: {name}")
            setattr(self, name, value)

    def get(self, name: str) -> Optional[str]:
        """Return the attribute value if set, otherwise fall back to env, then defaults."""
        value = getattr(self, name, None)
        if value is not None:
            return value if not isinstance(value, float) else str(value)
        env_value = os.getenv(name)
        if env_value:
            return env_value
        return self.DEFAULTS.get(name)

    def get_float(self, name: str) -> Optional[float]:
        value = self.get(name)
        return float(value) if value else None


settings = Settings()
