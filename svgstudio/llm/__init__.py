"""LLM provider integrations.

    from svgstudio.llm import openrouter
    text = await openrouter.complete(system_prompt, user_prompt, "claude")
"""

from svgstudio.llm.base import LLMProvider
from svgstudio.llm.openrouter import MODEL_MAP, OpenRouterProvider

__all__ = ["LLMProvider", "MODEL_MAP", "OpenRouterProvider"]
