"""Tests for stool photo classification."""

import base64
import json

import pytest
from fakes import USER_ID, ScriptedCompletionClient, text_reply

from gutcheck.clients.openrouter import LLMStatusError
from gutcheck.services.entries import InMemoryEntryRepository
from gutcheck.services.stool_analysis import (
    NOT_STOOL_INSIGHT,
    StoolAnalysisError,
    StoolImageAnalyzer,
    parse_analysis,
)

IMAGE = b"\xff\xd8\xff\xe0fake-jpeg"

TYPE_4_REPLY = json.dumps(
    {
        "isPoop": True,
        "bristol_type": 4,
        "color": "Brown",
        "texture": "Normal",
        "hydration_level": "Well Hydrated",
        "ai_insight": "Keep up your current fiber and water intake.",
    }
)


class TestParseAnalysis:
    """Tests for turning the model reply into a classification."""

    def test_valid_reply(self):
        result = parse_analysis(TYPE_4_REPLY)

        assert result.is_poop is True
        assert result.bristol_type == 4
        assert result.color == "Brown"
        assert result.hydration_level == "Well Hydrated"

    def test_json_wrapped_in_prose(self):
        result = parse_analysis(f"Here is the analysis:\n```json\n{TYPE_4_REPLY}\n```")

        assert result.bristol_type == 4

    def test_not_stool(self):
        result = parse_analysis('{"isPoop": false}')

        assert result.is_poop is False
        assert result.bristol_type is None
        assert result.color is None
        assert result.ai_insight == NOT_STOOL_INSIGHT

    @pytest.mark.parametrize("bristol_type", [0, 9, -1])
    def test_out_of_range_type_reset_to_four(self, bristol_type):
        reply = json.dumps({"isPoop": True, "bristol_type": bristol_type, "color": "Brown"})

        assert parse_analysis(reply).bristol_type == 4

    def test_no_json(self):
        with pytest.raises(StoolAnalysisError):
            parse_analysis("I cannot analyze this image.")

    def test_broken_json(self):
        with pytest.raises(StoolAnalysisError):
            parse_analysis('{"isPoop": true, "bristol_type": }')


class TestStoolImageAnalyzer:
    """Tests for the vision request and entry logging."""

    @pytest.mark.asyncio
    async def test_request_shape(self):
        client = ScriptedCompletionClient(text_reply(TYPE_4_REPLY))
        analyzer = StoolImageAnalyzer(client, model="vision-model")

        await analyzer.analyze(IMAGE, "png")

        request = client.requests[0]
        assert request["model"] == "vision-model"
        assert request["temperature"] == 0.3
        assert request["max_tokens"] == 500
        content = request["messages"][0]["content"]
        assert content[0]["image_url"]["url"] == "data:image/png;base64," + base64.b64encode(IMAGE).decode()
        assert "Bristol Stool Scale" in content[1]["text"]

    @pytest.mark.asyncio
    async def test_stores_entry_for_user(self):
        entries = InMemoryEntryRepository()
        analyzer = StoolImageAnalyzer(ScriptedCompletionClient(text_reply(TYPE_4_REPLY)), entries)

        result = await analyzer.analyze(IMAGE, user_id=USER_ID)

        assert len(entries.entries) == 1
        stored = entries.entries[0]
        assert stored.user_id == USER_ID
        assert stored.bristol_type == 4
        assert stored.ai_insight == "Keep up your current fiber and water intake."
        assert result.entry_id == stored.id

    @pytest.mark.asyncio
    async def test_no_entry_without_user(self):
        entries = InMemoryEntryRepository()
        analyzer = StoolImageAnalyzer(ScriptedCompletionClient(text_reply(TYPE_4_REPLY)), entries)

        result = await analyzer.analyze(IMAGE)

        assert entries.entries == []
        assert result.entry_id is None

    @pytest.mark.asyncio
    async def test_no_entry_for_non_stool(self):
        entries = InMemoryEntryRepository()
        analyzer = StoolImageAnalyzer(ScriptedCompletionClient(text_reply('{"isPoop": false}')), entries)

        result = await analyzer.analyze(IMAGE, user_id=USER_ID)

        assert result.is_poop is False
        assert entries.entries == []

    @pytest.mark.asyncio
    async def test_empty_reply(self):
        analyzer = StoolImageAnalyzer(ScriptedCompletionClient(text_reply(None)))

        with pytest.raises(StoolAnalysisError, match="No response"):
            await analyzer.analyze(IMAGE)

    @pytest.mark.asyncio
    async def test_model_failure_propagates(self):
        analyzer = StoolImageAnalyzer(ScriptedCompletionClient(LLMStatusError(500, "boom")))

        with pytest.raises(LLMStatusError):
            await analyzer.analyze(IMAGE)
