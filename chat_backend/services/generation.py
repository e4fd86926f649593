"""Streaming generation engine

Drives the model backend for one turn. Each step streams one completion;
text is relayed as it arrives and any tool calls the model makes are
validated, executed and fed back before the next step. The step budget
bounds tool-call chains so a turn always terminates.

A successful turn ends with exactly one FinishEvent carrying every message
generated during the turn. A backend failure or a rejected tool call ends it
with an ErrorEvent instead.
"""

import asyncio
import logging
import re
from typing import AsyncIterator, Dict, List, Mapping, Optional, Sequence
from uuid import uuid4

from chat_backend.core.errors import ToolCallRejected, UpstreamFailure
from chat_backend.schemas.stream import (
    ErrorEvent,
    FinishEvent,
    ResponseMessage,
    TextDeltaEvent,
    TextPart,
    ToolCallEvent,
    ToolCallPart,
    ToolResultEvent,
    ToolResultPart,
)
from chat_backend.services.llm_client import ModelClient, ToolCallDelta
from chat_backend.services.messages import response_to_model_messages
from chat_backend.services.tools import (
    ALL_TOOLS,
    ToolDescriptor,
    execute_tool,
    get_active_tools,
    get_enabled_tools,
    validate_tool_call,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_STEPS = 5

_WORD = re.compile(r"\s*\S+\s+")


class WordChunker:
    """Re-chunks streamed text so each delta ends on a word boundary"""

    def __init__(self):
        self._buffer = ""

    def push(self, text: str) -> List[str]:
        self._buffer += text
        chunks = []
        match = _WORD.match(self._buffer)
        while match:
            chunks.append(match.group())
            self._buffer = self._buffer[match.end():]
            match = _WORD.match(self._buffer)
        return chunks

    def flush(self) -> str:
        rest, self._buffer = self._buffer, ""
        return rest


class _PendingToolCall:
    """Tool call assembled from streamed fragments"""

    def __init__(self):
        self.id: Optional[str] = None
        self.name: Optional[str] = None
        self.arguments = ""

    def add(self, delta: ToolCallDelta):
        if delta.id:
            self.id = delta.id
        if delta.name:
            self.name = delta.name
        self.arguments += delta.arguments


class GenerationEngine:
    """Produces the stream events for one generation turn"""

    def __init__(
        self,
        client: ModelClient,
        tools: Mapping[str, ToolDescriptor] = ALL_TOOLS,
        max_steps: int = DEFAULT_MAX_STEPS,
        chunk_delay: float = 0.0,
    ):
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self.client = client
        self.tools = tools
        self.max_steps = max_steps
        self.chunk_delay = chunk_delay

    async def stream(
        self,
        *,
        model: str,
        system: str,
        messages: Sequence[dict],
        active_tools: Optional[Sequence[str]] = None,
        message_id: Optional[str] = None,
    ) -> AsyncIterator:
        """Run one turn and yield its events

        Args:
            model: Backend model identifier
            system: System prompt
            messages: Prior history in backend message format
            active_tools: Names of the tools the model may call
            message_id: Id for the first assistant message of the turn
        """
        tools = get_active_tools(active_tools, self.tools)
        tool_definitions = get_enabled_tools(tools)

        history = [{"role": "system", "content": system}, *messages]
        generated: List[ResponseMessage] = []
        finish_reason = "stop"

        for step in range(1, self.max_steps + 1):
            logger.info("Generation step %d/%d (model=%s, messages=%d)",
                        step, self.max_steps, model, len(history))

            chunker = WordChunker()
            text = ""
            pending: Dict[int, _PendingToolCall] = {}
            step_finish_reason = None

            try:
                async for chunk in self.client.stream_chat(model, history, tool_definitions):
                    if chunk.text:
                        text += chunk.text
                        for piece in chunker.push(chunk.text):
                            yield TextDeltaEvent(delta=piece)
                            await self._pause()
                    for delta in chunk.tool_calls:
                        pending.setdefault(delta.index, _PendingToolCall()).add(delta)
                    if chunk.finish_reason:
                        step_finish_reason = chunk.finish_reason
            except UpstreamFailure as e:
                logger.error("Model backend failed during step %d: %s", step, e.detail)
                yield ErrorEvent(error=e.detail)
                return

            rest = chunker.flush()
            if rest:
                yield TextDeltaEvent(delta=rest)

            # Validate every call of the step before running any of them
            calls = []
            try:
                for index in sorted(pending):
                    call = pending[index]
                    arguments = validate_tool_call(call.name, call.arguments, tools)
                    calls.append((call.id or f"call_{uuid4().hex}", tools[call.name], arguments))
            except ToolCallRejected as e:
                logger.warning("Rejected tool call during step %d: %s", step, e.detail)
                yield ErrorEvent(error=e.detail)
                return

            parts = []
            if text:
                parts.append(TextPart(text=text))
            for call_id, tool, arguments in calls:
                parts.append(ToolCallPart(
                    tool_call_id=call_id,
                    tool_name=tool.name,
                    args=arguments.model_dump(),
                ))

            if parts:
                assistant_id = str(uuid4())
                if message_id and not any(m.role == "assistant" for m in generated):
                    assistant_id = message_id
                assistant_message = ResponseMessage(id=assistant_id, role="assistant", content=parts)
                generated.append(assistant_message)
                history.extend(response_to_model_messages(assistant_message))

            if not calls:
                finish_reason = step_finish_reason or "stop"
                break

            results = []
            for call_id, tool, arguments in calls:
                yield ToolCallEvent(tool_call_id=call_id, tool_name=tool.name, args=arguments.model_dump())
                try:
                    result = await execute_tool(tool, arguments)
                except Exception as e:
                    logger.exception("Tool %s failed", tool.name)
                    yield ErrorEvent(error=f"Tool {tool.name} failed: {e}")
                    return
                yield ToolResultEvent(tool_call_id=call_id, tool_name=tool.name, result=result)
                results.append(ToolResultPart(tool_call_id=call_id, tool_name=tool.name, result=result))

            tool_message = ResponseMessage(role="tool", content=results)
            generated.append(tool_message)
            history.extend(response_to_model_messages(tool_message))
            finish_reason = "tool-calls"
        else:
            logger.info("Step budget of %d exhausted", self.max_steps)

        yield FinishEvent(finish_reason=finish_reason, messages=generated)

    async def _pause(self):
        if self.chunk_delay > 0:
            await asyncio.sleep(self.chunk_delay)
