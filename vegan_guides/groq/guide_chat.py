"""
Streaming chat client for the vegan food guide assistant (Groq, OpenAI-compatible API).
"""

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import aiohttp

from vegan_guides.config import get_config
from vegan_guides.providers.base import (
    ProviderNotConfiguredError,
    ProviderResponseError,
)
from vegan_guides.providers.utils import get_session

logger = logging.getLogger(__name__)

GROQ_CHAT_URL = "https://api.groq.com/openai/v1/chat/completions"
ALLOWED_ROLES = ("user", "assistant")

SYSTEM_PROMPT_TEMPLATE = """You are a friendly vegan food guide for Spain. Your job is to help users discover great places to eat, whether they're looking for 100% vegan restaurants or spots with excellent vegan options.

Here are the restaurants currently shown on the map:
{restaurants}

Guidelines:
- Reference specific restaurants by name when making recommendations
- Mention ratings when relevant (e.g. "rated 4.7/5")
- Note whether a place is fully vegan or vegan-friendly (has vegan options)
- Be warm, enthusiastic, and concise
- If the user asks about something outside the current list, suggest they try a different city filter"""


class GuideChatClient:
    """Builds the grounded prompt and streams completions from Groq."""

    def __init__(self, session: Optional[aiohttp.ClientSession] = None, api_key: Optional[str] = None):
        config = get_config()
        self.api_key = api_key if api_key is not None else config.groq_api_key
        self.model = config.chat_config.model
        self.max_tokens = config.chat_config.max_tokens
        self.temperature = config.chat_config.temperature
        self.timeout = config.get_timeout('ai')
        self.session = session  # Shared aiohttp session for connection reuse

    def build_system_prompt(self, restaurants: List[Dict[str, Any]]) -> str:
        """System prompt grounded in the restaurants the user is looking at."""
        return SYSTEM_PROMPT_TEMPLATE.format(
            restaurants=json.dumps(restaurants, indent=2, ensure_ascii=False)
        )

    def build_messages(self, messages: List[Dict[str, Any]], restaurants: List[Dict[str, Any]]) -> List[Dict[str, str]]:
        out = [{"role": "system", "content": self.build_system_prompt(restaurants)}]
        for msg in messages:
            if isinstance(msg, dict) and msg.get("role") in ALLOWED_ROLES:
                out.append({"role": msg["role"], "content": str(msg.get("content") or "")})
        return out

    async def stream_completion(
        self,
        messages: List[Dict[str, Any]],
        restaurants: List[Dict[str, Any]],
    ) -> AsyncIterator[Dict[str, Any]]:
        """Yield decoded streaming chunks until the backend sends ``[DONE]``.

        Raises:
            ProviderNotConfiguredError: GROQ_API_KEY is missing
            ProviderResponseError: the backend rejected the request or the
                stream closed before ``[DONE]``
        """
        if not self.api_key:
            raise ProviderNotConfiguredError("GROQ_API_KEY not configured", provider_name="groq")

        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        payload = {
            "model": self.model,
            "messages": self.build_messages(messages, restaurants),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "stream": True,
        }

        async with get_session(self.session) as session:
            async with session.post(GROQ_CHAT_URL, json=payload, headers=headers, timeout=aiohttp.ClientTimeout(total=self.timeout)) as resp:
                if resp.status != 200:
                    body = await resp.text()
                    raise ProviderResponseError(
                        f"Groq API error: {resp.status}",
                        provider_name="groq",
                        details={"http_status": resp.status, "body": body[:500]},
                    )
                async for raw in resp.content:
                    line = raw.decode("utf-8", errors="replace").strip()
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if data == "[DONE]":
                        return
                    try:
                        chunk = json.loads(data)
                    except json.JSONDecodeError:
                        logger.debug("Skipping malformed Groq stream line: %r", data[:200])
                        continue
                    yield chunk
                raise ProviderResponseError("Groq stream closed before [DONE]", provider_name="groq")
