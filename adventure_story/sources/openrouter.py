# SPDX-License-Identifier: MIT
"""OpenRouter chat-completions client."""

import logging
from typing import Any, Dict, List, Optional

from ..core.errors import AIAgentError, ConfigError
from .base import SourceFetcher

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "moonshotai/kimi-k2:free"


class OpenRouterClient(SourceFetcher):
    name = "openrouter"

    def __init__(self, base_url: str, api_key: Optional[str] = None, model: str = DEFAULT_MODEL, **kw):
        kw.setdefault("timeout", 30)
        super().__init__(base_url, **kw)
        self.api_key = api_key
        self.model = model

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def chat(self, messages: List[Dict[str, str]], temperature: float = 0.7,
                   max_tokens: int = 2000, top_p: float = 0.9) -> str:
        """Send one chat completion and return the assistant's text."""
        if not self.api_key:
            raise ConfigError("OPENROUTER_API_KEY is not set")

        data = await self._post_json(
            f"{self.base_url}/chat/completions",
            {
                "model": self.model,
                "messages": messages,
                "temperature": temperature,
                "max_tokens": max_tokens,
                "top_p": top_p,
            },
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
                "HTTP-Referer": "https://github.com/mcp-adventure-server",
                "X-Title": "Adventure Story MCP Server",
            },
        )
        choices: List[Any] = (data or {}).get("choices") or []
        content = ((choices[0] if choices else {}).get("message") or {}).get("content")
        if not content:
            raise AIAgentError("No response from AI agent")
        return content
