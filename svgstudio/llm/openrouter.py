import logging

import httpx

from svgstudio.catalog import MODEL_CAPABILITIES
from svgstudio.errors import UnsupportedModelError, UpstreamError
from svgstudio.llm.base import LLMProvider
from svgstudio.prompts import SVG_MAX_TOKENS

logger = logging.getLogger("svgstudio.llm")

OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"

MODEL_MAP: dict[str, str] = {
    model_id: details["route"] for model_id, details in MODEL_CAPABILITIES.items()
}


class OpenRouterProvider(LLMProvider):
    provider_name = "OpenRouter"
    api_key_env = "OPENROUTER_API_KEY"

    def resolve_model(self, model: str) -> str:
        try:
            return MODEL_MAP[model]
        except KeyError:
            raise UnsupportedModelError(f"Unsupported model: {model}") from None

    def auth_headers(self, api_key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "HTTP-Referer": self.settings.get("OPENROUTER_REFERER") or "",
            "X-Title": self.settings.get("OPENROUTER_TITLE") or "",
        }

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str,
        *,
        max_tokens: int = SVG_MAX_TOKENS,
        temperature: float = 0.5,
        top_p: float = 0.95,
    ) -> str:
        """Send one chat completion and return the assistant's text. No retry."""
        route = self.resolve_model(model)
        api_key = self.get_api_key()

        logger.info("OpenRouter completion model=%s prompt_chars=%d", route, len(user_prompt))
        async with self.make_client() as client:
            response = await client.post(
                OPENROUTER_API_URL,
                headers={
                    **self.auth_headers(api_key),
                    "Content-Type": "application/json",
                },
                json={
                    "model": route,
                    "messages": [
                        {"role": "system", "content": system_prompt},
                        {"role": "user", "content": user_prompt},
                    ],
                    "max_tokens": max_tokens,
                    "temperature": temperature,
                    "top_p": top_p,
                    "stream": False,
                },
            )

        self.raise_on_error(response)
        return self.extract_content(response)

    def extract_content(self, response: httpx.Response) -> str:
        """Pull ``choices[0].message.content`` out of a 2xx body; anything else is UpstreamError."""
        try:
            payload = response.json()
        except ValueError:
            raise UpstreamError(f"{self.provider_name} returned a non-JSON response.") from None

        choices = payload.get("choices") if isinstance(payload, dict) else None
        choice = choices[0] if isinstance(choices, list) and choices else None
        message = choice.get("message") if isinstance(choice, dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise UpstreamError(f"{self.provider_name} returned no completion text.")
        return content


# Module-level singleton
_provider = OpenRouterProvider()


async def complete(*a, **kw): return await _provider.complete(*a, **kw)
