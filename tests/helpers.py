"""Shared test helpers and stub classes.

Import from here instead of duplicating these classes in individual test files.
"""

import json
from typing import Any, Dict, List, Optional

from chat_backend.core.errors import PersistenceFailure, UpstreamFailure
from chat_backend.schemas.stream import parse_sse_event
from chat_backend.services.llm_client import ChatChunk, ToolCallDelta

USER_A = "user-a"
USER_B = "user-b"


def text_chunks(text: str, size: int = 4, finish_reason: Optional[str] = "stop") -> List[ChatChunk]:
    """Split ``text`` into backend chunks, the last one carrying the finish reason"""
    chunks = [ChatChunk(text=text[i:i + size]) for i in range(0, len(text), size)]
    chunks.append(ChatChunk(finish_reason=finish_reason))
    return chunks


def tool_call_chunks(name: str, args: Optional[dict] = None, call_id: str = "call_1", index: int = 0) -> List[ChatChunk]:
    """A tool call streamed in two fragments, as OpenAI-compatible backends do"""
    arguments = json.dumps(args or {})
    middle = len(arguments) // 2
    return [
        ChatChunk(tool_calls=[ToolCallDelta(index=index, id=call_id, name=name, arguments=arguments[:middle])]),
        ChatChunk(tool_calls=[ToolCallDelta(index=index, arguments=arguments[middle:])]),
    ]


class FakeModelClient:
    """Scripted stand-in for ModelClient

    ``steps`` holds one entry per stream_chat call: a list of chunks, or an
    exception to raise once the previous chunks were yielded. ``calls`` keeps
    what each call received; ``timeline`` (when given) gets a marker appended
    on every call so tests can check ordering against other collaborators.
    """

    def __init__(self, steps=None, title: str = "Wallet questions", timeline: Optional[list] = None):
        self.steps = list(steps or [])
        self.title = title
        self.timeline = timeline
        self.calls: List[Dict[str, Any]] = []
        self.complete_calls: List[Dict[str, Any]] = []

    async def stream_chat(self, model, messages, tools=None):
        self.calls.append({"model": model, "messages": list(messages), "tools": tools})
        if self.timeline is not None:
            self.timeline.append("model.stream_chat")
        step = self.steps.pop(0) if self.steps else text_chunks("")
        if isinstance(step, Exception):
            raise step
        for chunk in step:
            if isinstance(chunk, Exception):
                raise chunk
            yield chunk

    async def complete(self, model, messages):
        self.complete_calls.append({"model": model, "messages": list(messages)})
        if self.timeline is not None:
            self.timeline.append("model.complete")
        if isinstance(self.title, Exception):
            raise self.title
        return self.title


class RecordingStore:
    """Wraps a ChatStore, recording calls into a shared timeline"""

    def __init__(self, store, timeline: list, fail_on_save_call: Optional[int] = None):
        self._store = store
        self.timeline = timeline
        self.fail_on_save_call = fail_on_save_call
        self.save_calls = 0

    def get_chat_by_id(self, chat_id):
        self.timeline.append("store.get_chat_by_id")
        return self._store.get_chat_by_id(chat_id)

    def save_chat(self, chat_id, user_id, title):
        self.timeline.append("store.save_chat")
        return self._store.save_chat(chat_id, user_id, title)

    def save_messages(self, chat_id, messages):
        self.save_calls += 1
        self.timeline.append("store.save_messages")
        if self.fail_on_save_call == self.save_calls:
            raise PersistenceFailure("disk full")
        return self._store.save_messages(chat_id, messages)

    def delete_chat_by_id(self, chat_id):
        self.timeline.append("store.delete_chat_by_id")
        return self._store.delete_chat_by_id(chat_id)

    def get_messages_by_chat_id(self, chat_id):
        return self._store.get_messages_by_chat_id(chat_id)

    def get_chats_by_user_id(self, user_id):
        return self._store.get_chats_by_user_id(user_id)


def parse_events(body: str) -> list:
    """Decode every ``data:`` line of an SSE response body"""
    return [
        parse_sse_event(line)
        for line in body.splitlines()
        if line.startswith("data: ")
    ]


async def collect(stream) -> list:
    return [event async for event in stream]


def upstream_failure(message: str = "connection reset") -> UpstreamFailure:
    return UpstreamFailure(f"Model backend request failed: {message}")
