from typing import Any

from svgstudio.prompts import VIDEO_ELEMENT, WORKFLOW

MODEL_CAPABILITIES: dict[str, dict[str, Any]] = {
    "deepseek": {
        "label": "Deepseek",
        "description": "Specialized in creative tasks",
        "route": "deepseek/deepseek-r1:free",
        "requiresKey": "OPENROUTER_API_KEY",
    },
    "claude": {
        "label": "Claude",
        "description": "Balanced performance",
        "route": "anthropic/claude-3.7-sonnet",
        "requiresKey": "OPENROUTER_API_KEY",
    },
    "openai": {
        "label": "OpenAI",
        "description": "GPT-4 powered",
        "route": "openai/gpt-4o-mini",
        "requiresKey": "OPENROUTER_API_KEY",
    },
}

EXAMPLE_PROMPTS: dict[str, list[str]] = {
    WORKFLOW: [
        "A user authentication flow diagram",
        "API request-response cycle",
        "Database CRUD operations flow",
        "Microservices architecture",
        "CI/CD pipeline visualization",
        "Event-driven system workflow",
    ],
    VIDEO_ELEMENT: [
        "Animated arrow pointing right",
        "Pulsing highlight circle",
        "Morphing shape transition",
        "Loading spinner animation",
        "Progress bar with glow",
        "Animated checkmark",
    ],
}
