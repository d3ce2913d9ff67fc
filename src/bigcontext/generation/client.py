"""OpenAI chat completion client."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import openai
from openai import AsyncOpenAI

from bigcontext.config import DEFAULT_MODEL
from bigcontext.exceptions import ProviderError

logger = logging.getLogger(__name__)


class ChatGenerator(Protocol):
    """Anything that turns a system prompt plus a user payload into text."""

    async def generate(self, system_prompt: str, user_content: str) -> str: ...


class OpenAIChatGenerator:
    """Chat generator using the OpenAI SDK's AsyncOpenAI client.

    Retries and rate limiting are left to the SDK. OpenAI exceptions are
    converted to ``ProviderError``.

    Example:
        async with OpenAIChatGenerator(api_key="sk-...", model="gpt-5-nano") as generator:
            text = await generator.generate("Keep lines about cats.", chunk_text)
    """

    PROVIDER_NAME = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        *,
        timeout: float = 300.0,
        service_tier: str | None = "flex",
        client: AsyncOpenAI | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("API key is required")
        if not model:
            raise ValueError("Model is required")

        self.model = model
        self.service_tier = service_tier
        self._client = client if client is not None else AsyncOpenAI(api_key=api_key, timeout=timeout)
        logger.debug(f"Initialized OpenAI generator with model {model}")

    async def generate(self, system_prompt: str, user_content: str) -> str:
        """Return the first choice's content, or an empty string if there is none.

        Raises:
            ProviderError: For any API or transport error.
        """
        params: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
        }
        if self.service_tier:
            params["service_tier"] = self.service_tier

        try:
            response = await self._client.chat.completions.create(**params)
        except openai.APIStatusError as e:
            raise ProviderError(self.PROVIDER_NAME, str(e), e.status_code) from e
        except openai.APIError as e:
            raise ProviderError(self.PROVIDER_NAME, str(e)) from e

        if response.choices and response.choices[0].message.content:
            return response.choices[0].message.content
        return ""

    async def close(self) -> None:
        await self._client.close()
        logger.debug("OpenAI generator closed")

    async def __aenter__(self) -> "OpenAIChatGenerator":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
