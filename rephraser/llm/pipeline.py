#!/usr/bin/env python3
# Rephrase Pipeline (wraps a text into the rephrase conversation)
from typing import AsyncGenerator, List, Optional
from loguru import logger

from rephraser.classes import ChatMessage, RequestOptions
from rephraser.llm import LLMClient


SYSTEM_PROMPT = (
    "You are a helpful assistant that rephrases text. Maintain the original "
    "meaning while improving clarity and professionalism."
)
USER_PROMPT = "Please rephrase the following text: {text}"


class RephrasePipeline:
    """Pipeline: Turns user text into a two-message rephrase conversation"""

    def __init__(self, *args, llm_client: Optional[LLMClient] = None, **kwargs):
        self.llm_client = llm_client or LLMClient(*args, **kwargs)

    @staticmethod
    def build_messages(text: str) -> List[ChatMessage]:
        return [
            ChatMessage(role="system", content=SYSTEM_PROMPT),
            ChatMessage(role="user", content=USER_PROMPT.format(text=text)),
        ]

    async def run(self, text: str, options: Optional[RequestOptions] = None) -> str:
        result = await self.llm_client.complete(self.build_messages(text), options)
        # Token usage is only reported in the logs
        logger.debug(f"Rephrase completed - model={result.model} usage={result.usage}")
        return result.content

    async def run_stream(
        self, text: str, options: Optional[RequestOptions] = None
    ) -> AsyncGenerator[str, None]:
        stream = self.llm_client.stream_completion(self.build_messages(text), options)
        try:
            async for token in stream:
                yield token
        finally:
            await stream.aclose()
