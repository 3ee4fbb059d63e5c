"""
app/ai_engine/utils.py — Shared AI helper utilities.

Provides:
  - build_openrouter_llm()  : ChatOpenAI pointed at OpenRouter, with a hard timeout
  - response_text()         : pull the text out of a LangChain response
  - parse_json_safely()     : first JSON value in messy model output, or None
  - truncate_for_context()  : cap user text before it goes into a prompt
"""

import json
import logging
import re
from typing import Any, Optional

from langchain_openai import ChatOpenAI

from app.config import settings

logger = logging.getLogger(__name__)

# OpenRouter's base URL (drop-in OpenAI-compatible API)
OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_decoder = json.JSONDecoder()


def build_openrouter_llm(temperature: float = 0.3, timeout: Optional[float] = None) -> ChatOpenAI:
    """
    Build a LangChain ChatOpenAI client pointed at OpenRouter.

    Args:
        temperature: Low (0.1) for the JSON analysis, higher (0.7) for the client reply.
        timeout:     Seconds before a request is abandoned. Defaults to
                     settings.ai_timeout_seconds.

    Retries stay with the client (one retry); callers treat a timeout as failure.
    """
    return ChatOpenAI(
        model=settings.openrouter_model,
        api_key=settings.openrouter_api_key,
        base_url=OPENROUTER_BASE_URL,
        temperature=temperature,
        timeout=timeout if timeout is not None else settings.ai_timeout_seconds,
        max_retries=1,
        default_headers={
            "HTTP-Referer": settings.admin_base_url,
            "X-Title": "Inquiry Intake",
        },
    )


def response_text(response: Any) -> str:
    """LangChain chat models return a message; plain LLMs return a str."""
    return response.content if hasattr(response, "content") else str(response)


def parse_json_safely(text: Optional[str]) -> dict[str, Any] | list[Any] | None:
    """
    Parse the JSON a model returned, tolerating code fences and chatter.

    Tries the whole (unfenced) text first, then the first position where a
    JSON object or array decodes cleanly. Returns None if nothing does.
    """
    if not text:
        return None

    cleaned = _CODE_FENCE.sub(r"\1", text.strip()).strip()
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    for index, char in enumerate(cleaned):
        if char not in "{[":
            continue
        try:
            value, _ = _decoder.raw_decode(cleaned, index)
        except json.JSONDecodeError:
            continue
        return value

    logger.warning("Could not parse JSON from model output (%d chars).", len(text))
    return None


def truncate_for_context(text: Optional[str], max_chars: int = 2000) -> str:
    """Cap text at max_chars, marking the cut with '...'."""
    if not text:
        return ""
    if len(text) <= max_chars:
        return text
    return text[:max_chars] + "..."
