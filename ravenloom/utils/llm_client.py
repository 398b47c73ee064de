# -*- coding: utf-8 -*-
"""
Async chat client for Together.ai, shared by entity and fact extraction.

Talks to Together's OpenAI-compatible endpoint through AsyncOpenAI with the
system/user message pair every extraction prompt uses, and returns the raw
completion text. Callers own parsing and error policy.
"""
# Standard library
import logging
import os
from typing import Optional

# Third-party
from openai import AsyncOpenAI

# Config imports (direct)
from config.extraction_config import TOGETHER_BASE_URL, EXTRACTION_CONFIG

logger = logging.getLogger(__name__)


class LLMClient:
    """
    Example:
        client = LLMClient()
        text = await client.complete(SYSTEM_PROMPT, "Fugly is our mascot.")
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = EXTRACTION_CONFIG['model_name'],
        base_url: str = TOGETHER_BASE_URL,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Args:
            api_key: Together.ai API key (or from TOGETHER_API_KEY env var)
            model: Default model for completions
            base_url: OpenAI-compatible endpoint
            client: Preconfigured client (tests inject a mock)
        """
        if client is None:
            api_key = api_key or os.getenv("TOGETHER_API_KEY")
            if not api_key:
                raise ValueError(
                    "Together.ai API key required. "
                    "Set TOGETHER_API_KEY environment variable or pass api_key parameter."
                )
            client = AsyncOpenAI(api_key=api_key, base_url=base_url)

        self.client = client
        self.model = model

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
        max_tokens: int = EXTRACTION_CONFIG['max_tokens'],
        temperature: float = EXTRACTION_CONFIG['temperature'],
    ) -> str:
        """
        Run one chat completion.

        Returns:
            Completion text ('' when the model returns no content)

        Raises:
            Whatever the client raises (network, auth, rate limit)
        """
        response = await self.client.chat.completions.create(
            model=model or self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        content = response.choices[0].message.content
        logger.debug(f"Completion: {len(content or '')} chars from {model or self.model}")
        return content or ''
