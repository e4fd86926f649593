"""Tests for converting client and generated messages into backend messages."""

import json

from chat_backend.schemas.chat import ChatRequest, UIMessage
from chat_backend.schemas.stream import ResponseMessage, TextPart, ToolCallPart, ToolResultPart
from chat_backend.services.messages import (
    get_message_text,
    get_most_recent_user_message,
    response_to_model_messages,
    ui_to_model_messages,
)


def ui(role, content="", **kwargs):
    return UIMessage(id=f"{role}-{len(content)}", role=role, content=content, **kwargs)


class TestMostRecentUserMessage:
    def test_picks_last_user_message(self):
        messages = [ui("user", "first"), ui("assistant", "reply"), ui("user", "second"), ui("assistant", "x")]
        assert get_most_recent_user_message(messages).content == "second"

    def test_none_without_user_message(self):
        assert get_most_recent_user_message([ui("assistant", "hello")]) is None
        assert get_most_recent_user_message([]) is None


class TestMessageText:
    def test_joins_text_parts(self):
        message = ui("user", [{"type": "text", "text": "Hi "}, {"type": "image", "url": "x"}, {"type": "text", "text": "there"}])
        assert get_message_text(message) == "Hi there"


class TestUIToModelMessages:
    def test_plain_history(self):
        messages = [ui("user", "Hi"), ui("assistant", "Hello"), ui("data", "ignored")]

        assert ui_to_model_messages(messages) == [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello"},
        ]

    def test_completed_invocation_becomes_call_and_result(self):
        request = ChatRequest.model_validate({
            "id": "chat-1",
            "modelId": "gpt-4o-mini",
            "messages": [
                {"id": "u1", "role": "user", "content": "Wallet?"},
                {
                    "id": "a1",
                    "role": "assistant",
                    "content": "",
                    "toolInvocations": [
                        {"state": "result", "toolCallId": "call_1", "toolName": "getWalletAddress",
                         "args": {}, "result": {"content": "none"}},
                        {"state": "call", "toolCallId": "call_2", "toolName": "createEvmWallet", "args": {}},
                    ],
                },
            ],
        })

        converted = ui_to_model_messages(request.messages)

        assert converted[1] == {
            "role": "assistant",
            "content": None,
            "tool_calls": [{
                "id": "call_1",
                "type": "function",
                "function": {"name": "getWalletAddress", "arguments": "{}"},
            }],
        }
        assert converted[2] == {"role": "tool", "tool_call_id": "call_1", "content": json.dumps({"content": "none"})}
        assert len(converted) == 3


class TestResponseToModelMessages:
    def test_assistant_with_call(self):
        message = ResponseMessage(role="assistant", content=[
            TextPart(text="Checking"),
            ToolCallPart(tool_call_id="call_1", tool_name="getWalletAddress", args={}),
        ])

        [converted] = response_to_model_messages(message)

        assert converted["content"] == "Checking"
        assert converted["tool_calls"][0]["id"] == "call_1"

    def test_text_only_assistant(self):
        message = ResponseMessage(role="assistant", content=[TextPart(text="Done")])
        assert response_to_model_messages(message) == [{"role": "assistant", "content": "Done"}]

    def test_tool_message(self):
        message = ResponseMessage(role="tool", content=[
            ToolResultPart(tool_call_id="call_1", tool_name="getWalletAddress", result="plain"),
        ])
        assert response_to_model_messages(message) == [
            {"role": "tool", "tool_call_id": "call_1", "content": "plain"},
        ]
