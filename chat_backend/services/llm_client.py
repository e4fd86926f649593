"""Client for an OpenAI-compatible chat completions backend

Streams completions over Server-Sent Events with httpx and turns each chunk
into a ChatChunk. Every transport or protocol problem is raised as
UpstreamFailure so callers have one error to handle.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from chat_backend.core.errors import UpstreamFailure

logger = logging.getLogger(__name__)


@dataclass
class ToolCallDelta:
    """A fragment of a tool call; fragments sharing an index belong together"""
    index: int
    id: Optional[str] = None
    name: Optional[str] = None
    arguments: str = ""


@dataclass
class ChatChunk:
    text: str = ""
    tool_calls: List[ToolCallDelta] = field(default_factory=list)
    finish_reason: Optional[str] = None


class ModelClient:
    """Talks to ``{base_url}/chat/completions``"""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def stream_chat(
        self,
        model: str,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> AsyncIterator[ChatChunk]:
        """Stream one completion, yielding parsed chunks as they arrive

        Raises:
            UpstreamFailure: Connection error, non-2xx status, or an error
                object in the stream
        """
        request_payload: Dict[str, Any] = {
            "model": model,
            "messages": messages,
            "stream": True,
        }
        if tools:
            request_payload["tools"] = tools
            request_payload["tool_choice"] = "auto"

        logger.debug("Streaming completion from %s (model=%s, messages=%d, tools=%d)",
                     self.base_url, model, len(messages), len(tools or []))

        try:
            async with self._client() as client:
                async with client.stream("POST", "/chat/completions", json=request_payload) as stream_response:
                    if stream_response.status_code >= 400:
                        body = (await stream_response.aread()).decode("utf-8", errors="replace")
                        raise UpstreamFailure(
                            f"Model backend returned {stream_response.status_code}: {body[:200]}"
                        )

                    async for line in stream_response.aiter_lines():
                        if not line.startswith("data: "):
                            continue
                        data = line[6:]
                        if data.strip() == "[DONE]":
                            break
                        try:
                            chunk = json.loads(data)
                        except json.JSONDecodeError:
                            logger.warning("Skipping undecodable stream line: %r", data[:100])
                            continue
                        if not isinstance(chunk, dict):
                            raise UpstreamFailure(f"Malformed stream chunk: {data[:100]}")
                        if "error" in chunk:
                            raise UpstreamFailure(f"Model backend error: {chunk['error']}")
                        yield parse_chunk(chunk)
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"Model backend request failed: {e}") from e

    async def complete(self, model: str, messages: List[Dict[str, Any]]) -> str:
        """Run one non-streaming completion and return its text"""
        try:
            async with self._client() as client:
                response = await client.post(
                    "/chat/completions",
                    json={"model": model, "messages": messages},
                )
                response.raise_for_status()
                result = response.json()
        except httpx.HTTPError as e:
            raise UpstreamFailure(f"Model backend request failed: {e}") from e
        except ValueError as e:
            raise UpstreamFailure(f"Model backend returned invalid JSON: {e}") from e

        try:
            return result["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError) as e:
            raise UpstreamFailure(f"Unexpected completion payload: {e}") from e


def parse_chunk(chunk: Dict[str, Any]) -> ChatChunk:
    """Turn one decoded stream chunk into a ChatChunk

    Raises:
        UpstreamFailure: The chunk does not have the chat-completions shape
    """
    try:
        return _parse_chunk(chunk)
    except (TypeError, AttributeError, ValueError) as e:
        raise UpstreamFailure(f"Malformed stream chunk: {e}") from e


def _parse_chunk(chunk: Dict[str, Any]) -> ChatChunk:
    choices = chunk.get("choices") or []
    if not choices:
        # usage-only chunks
        return ChatChunk()

    choice = choices[0]
    delta = choice.get("delta") or {}

    tool_calls = []
    for tool_call in delta.get("tool_calls") or []:
        function = tool_call.get("function") or {}
        arguments = function.get("arguments") or ""
        if not isinstance(arguments, str):
            raise TypeError(f"tool call arguments must be a string, got {type(arguments).__name__}")
        tool_calls.append(ToolCallDelta(
            index=int(tool_call.get("index") or 0),
            id=tool_call.get("id"),
            name=function.get("name"),
            arguments=arguments,
        ))

    text = delta.get("content") or ""
    if not isinstance(text, str):
        raise TypeError(f"content must be a string, got {type(text).__name__}")

    return ChatChunk(
        text=text,
        tool_calls=tool_calls,
        finish_reason=choice.get("finish_reason"),
    )
