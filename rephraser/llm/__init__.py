#!/usr/bin/env python3
# LLM Client (Wrapper for the OpenAI Chat Completions API)
from typing import Any, AsyncGenerator, Dict, List, Optional, Union

import httpx
from loguru import logger

from rephraser.classes import (
    ChatMessage,
    CompletionResult,
    ParseError,
    RequestOptions,
    TransportError,
    UpstreamError,
)
from rephraser.handlers import iter_stream_content

DEFAULT_MODEL = "gpt-3.5-turbo"
DEFAULT_BASE_URL = "https://api.openai.com/v1"

MessageLike = Union[ChatMessage, Dict[str, str]]


class LLMClient:
    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.url = f"{self.base_url}/chat/completions"
        self.headers = {"Content-Type": "application/json"}
        # Without a key the request still goes out and is rejected upstream
        if api_key:
            self.headers["Authorization"] = f"Bearer {api_key}"
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        # Completions run until the service answers; no timeout is applied
        return httpx.AsyncClient(transport=self._transport, timeout=None)

    def build_payload(
        self,
        messages: List[MessageLike],
        options: Optional[RequestOptions] = None,
        stream: bool = False,
    ) -> Dict[str, Any]:
        """Builds the JSON body of a chat completion request."""
        options = options or RequestOptions()
        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": [
                ChatMessage.model_validate(msg).model_dump() for msg in messages
            ],
            "temperature": options.temperature,
            "top_p": options.top_p,
            "frequency_penalty": options.frequency_penalty,
            "presence_penalty": options.presence_penalty,
        }
        if options.max_tokens is not None:
            payload["max_tokens"] = options.max_tokens
        if stream:
            payload["stream"] = True
        return payload

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            message = response.json().get("error", {}).get("message")
        except (ValueError, AttributeError):
            message = None
        return message or "API request failed"

    async def generate_response(
        self, messages: List[MessageLike], options: Optional[RequestOptions] = None
    ) -> Dict[str, Any]:
        """
        Sends a non-streaming completion request and returns the decoded body.
        Raises UpstreamError, TransportError or ParseError.
        """
        payload = self.build_payload(messages, options)
        logger.debug(f"POST {self.url} (model={self.model})")
        try:
            async with self._client() as client:
                response = await client.post(
                    self.url, headers=self.headers, json=payload
                )
        except httpx.HTTPError as e:
            raise TransportError(f"GPT API request failed: {e}") from e

        if response.is_error:
            raise UpstreamError(
                self._error_message(response), status_code=response.status_code
            )
        try:
            return response.json()
        except ValueError as e:
            raise ParseError(
                "GPT API returned a non-JSON body", status_code=response.status_code
            ) from e

    async def complete(
        self, messages: List[MessageLike], options: Optional[RequestOptions] = None
    ) -> CompletionResult:
        data = await self.generate_response(messages, options)
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ParseError(f"Unexpected completion response shape: {e!r}") from e
        if not isinstance(content, str):
            raise ParseError("Completion response carries no text content")
        # Metadata is informational only and never fails the call
        usage = data.get("usage")
        if not isinstance(usage, dict):
            usage = {}
        model = data.get("model")
        return CompletionResult(
            content=content,
            model=model if isinstance(model, str) else None,
            usage={
                k: v
                for k, v in usage.items()
                if isinstance(v, int) and not isinstance(v, bool)
            },
        )

    async def chat_completion(
        self, messages: List[MessageLike], options: Optional[RequestOptions] = None
    ) -> str:
        result = await self.complete(messages, options)
        return result.content

    async def simple_completion(
        self, prompt: str, options: Optional[RequestOptions] = None
    ) -> str:
        messages = [ChatMessage(role="user", content=prompt)]
        return await self.chat_completion(messages, options)

    async def chat_with_system(
        self,
        system_prompt: str,
        user_prompt: str,
        options: Optional[RequestOptions] = None,
    ) -> str:
        messages = [
            ChatMessage(role="system", content=system_prompt),
            ChatMessage(role="user", content=user_prompt),
        ]
        return await self.chat_completion(messages, options)

    async def rephrase(
        self,
        text: str,
        style: str = "professional",
        options: Optional[RequestOptions] = None,
    ) -> str:
        system_prompt = (
            f"You are a skilled writer that rephrases text in a {style} style "
            "while maintaining the original meaning."
        )
        user_prompt = f"Please rephrase the following text: {text}"
        return await self.chat_with_system(system_prompt, user_prompt, options)

    async def stream_completion(
        self, messages: List[MessageLike], options: Optional[RequestOptions] = None
    ) -> AsyncGenerator[str, None]:
        """
        Streams the completion as text fragments. The sequence ends on the
        `[DONE]` frame or when the body is exhausted; closing the generator
        early closes the underlying response.
        """
        payload = self.build_payload(messages, options, stream=True)
        logger.debug(f"POST {self.url} (model={self.model}, stream)")
        try:
            async with self._client() as client:
                async with client.stream(
                    "POST", self.url, headers=self.headers, json=payload
                ) as response:
                    if response.is_error:
                        await response.aread()
                        raise UpstreamError(
                            self._error_message(response),
                            status_code=response.status_code,
                        )
                    async for token in iter_stream_content(response.aiter_lines()):
                        yield token
        except httpx.HTTPError as e:
            raise TransportError(f"Stream request failed: {e}") from e
