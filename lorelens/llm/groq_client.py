from __future__ import annotations

import logging

from groq import Groq

from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)


class LLMUnavailableError(RuntimeError):
    """Raised when no model call can be made with the given config."""


def complete(
    prompt: str,
    *,
    temperature: float = 0.7,
    max_tokens: int | None = None,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> str:
    """
    Send ``prompt`` as a single user message and return the reply text.

    Raises ``LLMUnavailableError`` when the config is disabled or has no key.
    Errors from the Groq SDK propagate so each caller can pick its own
    fallback.
    """
    if not config.available:
        raise LLMUnavailableError("Groq LLM is disabled or GROQ_API_KEY is not set")

    client = Groq(api_key=config.api_key, timeout=config.timeout)
    response = client.chat.completions.create(
        model=config.model,
        messages=[{"role": "user", "content": prompt}],
        max_tokens=max_tokens or config.max_tokens,
        temperature=temperature,
    )
    content = response.choices[0].message.content or ""
    logger.debug("Groq returned %d characters", len(content))
    return content
