"""Completion provider used by llm-completion steps."""

import os
import logging
from typing import Dict, List, Optional, Protocol
import openai

logger = logging.getLogger(__name__)


class CompletionProvider(Protocol):

    async def create_completion(
        self,
        model: str,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float
    ) -> str:
        ...


class OpenAICompletionProvider:
    """Chat completions through the official OpenAI SDK"""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, timeout: float = 60.0):
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.base_url = base_url or os.getenv("OPENAI_BASE_URL")
        self.timeout = timeout
        self._client: Optional[openai.AsyncOpenAI] = None

    @property
    def client(self) -> openai.AsyncOpenAI:
        if self._client is None:
            if not self.api_key:
                raise ValueError("Missing OPENAI_API_KEY environment variable")
            client_kwargs = {"api_key": self.api_key, "timeout": self.timeout}
            if self.base_url:
                client_kwargs["base_url"] = self.base_url
            self._client = openai.AsyncOpenAI(**client_kwargs)
        return self._client

    async def create_completion(
        self,
        model: str,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float
    ) -> str:
        response = await self.client.chat.completions.create(
            model=model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )

        if not response.choices:
            return ""

        usage = getattr(response, "usage", None)
        logger.debug("Completion received", extra={
            "model": model,
            "total_tokens": getattr(usage, "total_tokens", None)
        })
        return response.choices[0].message.content or ""
