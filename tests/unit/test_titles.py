"""Tests for chat title generation."""

import pytest
from chat_backend.services.prompts import TITLE_PROMPT
from chat_backend.services.titles import TITLE_MAX_LENGTH, generate_title_from_user_message, truncate_title

from helpers import FakeModelClient, upstream_failure


class TestTruncateTitle:
    def test_short_text_unchanged(self):
        assert truncate_title("Wallet setup") == "Wallet setup"

    def test_whitespace_collapsed(self):
        assert truncate_title("  Wallet\n\nsetup  ") == "Wallet setup"

    def test_empty_text_gets_default(self):
        assert truncate_title("   ") == "New Chat"

    def test_long_text_cut_with_ellipsis(self):
        title = truncate_title("word " * 40)

        assert len(title) <= TITLE_MAX_LENGTH
        assert title.endswith("...")


class TestGenerateTitle:
    @pytest.mark.asyncio
    async def test_uses_model_answer(self):
        client = FakeModelClient(title='"Wallet: address lookup"\n')

        title = await generate_title_from_user_message(client, "gpt-4o-mini", "What's my wallet address?")

        assert title == "Wallet address lookup"
        sent = client.complete_calls[0]
        assert sent["model"] == "gpt-4o-mini"
        assert sent["messages"][0] == {"role": "system", "content": TITLE_PROMPT}
        assert sent["messages"][1] == {"role": "user", "content": "What's my wallet address?"}

    @pytest.mark.asyncio
    async def test_failure_falls_back_to_message(self):
        client = FakeModelClient(title=upstream_failure())

        title = await generate_title_from_user_message(client, "gpt-4o-mini", "What's my wallet address?")

        assert title == "What's my wallet address?"
        assert len(client.complete_calls) == 1

    @pytest.mark.asyncio
    async def test_blank_answer_falls_back_to_message(self):
        client = FakeModelClient(title="   ")

        title = await generate_title_from_user_message(client, "gpt-4o-mini", "Create a wallet")

        assert title == "Create a wallet"
