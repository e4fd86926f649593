"""Conversions between client messages, generated messages and backend messages

The model backend speaks the chat-completions message format. Client history
arrives as UI messages (text plus tool invocations), and generated messages
use text / tool-call / tool-result parts. Both are flattened here.
"""

import json
from typing import Any, Dict, List, Optional, Sequence

from chat_backend.schemas.chat import UIMessage
from chat_backend.schemas.stream import ResponseMessage, TextPart, ToolCallPart, ToolResultPart


def get_most_recent_user_message(messages: Sequence[UIMessage]) -> Optional[UIMessage]:
    for message in reversed(messages):
        if message.role == "user":
            return message
    return None


def get_message_text(message: UIMessage) -> str:
    """Plain text of a UI message, joining text parts when content is a list"""
    if isinstance(message.content, str):
        return message.content
    return "".join(
        part.get("text", "") for part in message.content
        if part.get("type") == "text"
    )


def ui_to_model_messages(messages: Sequence[UIMessage]) -> List[Dict[str, Any]]:
    """Convert client history into backend messages

    Tool invocations that already carry a result become an assistant tool call
    followed by its tool message. Invocations still waiting on a result are
    dropped so the backend never sees a dangling call.
    """
    model_messages: List[Dict[str, Any]] = []

    for message in messages:
        if message.role in ("system", "user"):
            model_messages.append({"role": message.role, "content": message.content})

        elif message.role == "assistant":
            completed = [
                invocation for invocation in (message.tool_invocations or [])
                if invocation.state == "result"
            ]
            text = get_message_text(message)

            if not completed:
                model_messages.append({"role": "assistant", "content": text})
                continue

            model_messages.append({
                "role": "assistant",
                "content": text or None,
                "tool_calls": [
                    _tool_call_dict(invocation.tool_call_id, invocation.tool_name, invocation.args)
                    for invocation in completed
                ],
            })
            for invocation in completed:
                model_messages.append(_tool_result_dict(invocation.tool_call_id, invocation.result))

        # 'data' and stray 'tool' entries carry nothing the backend can use

    return model_messages


def response_to_model_messages(message: ResponseMessage) -> List[Dict[str, Any]]:
    """Convert one generated message into backend messages for the next step"""
    if isinstance(message.content, str):
        return [{"role": message.role, "content": message.content}]

    if message.role == "tool":
        return [
            _tool_result_dict(part.tool_call_id, part.result)
            for part in message.content
            if isinstance(part, ToolResultPart)
        ]

    text = "".join(part.text for part in message.content if isinstance(part, TextPart))
    tool_calls = [
        _tool_call_dict(part.tool_call_id, part.tool_name, part.args)
        for part in message.content
        if isinstance(part, ToolCallPart)
    ]
    model_message: Dict[str, Any] = {"role": "assistant", "content": text or None}
    if tool_calls:
        model_message["tool_calls"] = tool_calls
    else:
        model_message["content"] = text
    return [model_message]


def _tool_call_dict(tool_call_id: str, tool_name: str, args: dict) -> Dict[str, Any]:
    return {
        "id": tool_call_id,
        "type": "function",
        "function": {"name": tool_name, "arguments": json.dumps(args or {})},
    }


def _tool_result_dict(tool_call_id: str, result: Any) -> Dict[str, Any]:
    return {
        "role": "tool",
        "tool_call_id": tool_call_id,
        "content": result if isinstance(result, str) else json.dumps(result),
    }
