"""Remove incomplete tool-call artifacts from generated messages before storage"""

from typing import List, Sequence

from chat_backend.schemas.stream import ResponseMessage, TextPart, ToolCallPart, ToolResultPart


def sanitize_response_messages(messages: Sequence[ResponseMessage]) -> List[ResponseMessage]:
    """Drop tool calls that never got a result, and anything left empty

    Assistant messages lose tool-call parts without a matching tool result and
    empty text parts. Messages whose content ends up empty are removed.
    Everything else, including order, is kept. Applying this twice gives the
    same result as applying it once.
    """
    tool_result_ids = set()
    for message in messages:
        if message.role == "tool" and not isinstance(message.content, str):
            for part in message.content:
                if isinstance(part, ToolResultPart):
                    tool_result_ids.add(part.tool_call_id)

    sanitized = []
    for message in messages:
        if message.role == "assistant" and not isinstance(message.content, str):
            content = [
                part for part in message.content
                if _keep_part(part, tool_result_ids)
            ]
            message = message.model_copy(update={"content": content})

        if len(message.content) > 0:
            sanitized.append(message)

    return sanitized


def _keep_part(part, tool_result_ids) -> bool:
    if isinstance(part, ToolCallPart):
        return part.tool_call_id in tool_result_ids
    if isinstance(part, TextPart):
        return len(part.text) > 0
    return True
