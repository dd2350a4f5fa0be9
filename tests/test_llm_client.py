"""Tests for response parsing utilities and AgentSDKClient."""

import json
import os

import pytest
from unittest.mock import patch, AsyncMock

from claude_agent_sdk import ResultMessage, AssistantMessage, TextBlock


def _make_result_message(result_text: str, is_error: bool = False) -> ResultMessage:
    """Helper to create a ResultMessage with required fields."""
    return ResultMessage(
        subtype="error" if is_error else "success",
        duration_ms=100,
        duration_api_ms=80,
        is_error=is_error,
        num_turns=1,
        session_id="test-session",
        total_cost_usd=0.001,
        usage={"input_tokens": 10, "output_tokens": 20},
        result=result_text,
        structured_output=None,
    )


def _make_assistant_message(text: str) -> AssistantMessage:
    """Helper to create an AssistantMessage with a text block."""
    return AssistantMessage(
        content=[TextBlock(text=text)],
        model="claude-haiku-4-5",
        parent_tool_use_id=None,
        error=None,
    )


class TestExtractJson:
    def test_json_fence(self):
        from tools.llm_client import extract_json
        text = 'Here you go:\n```json\n{"a": 1}\n```\nDone.'
        assert extract_json(text) == '{"a": 1}'

    def test_plain_fence(self):
        from tools.llm_client import extract_json
        assert extract_json('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_brace_span(self):
        from tools.llm_client import extract_json
        assert extract_json('prefix {"a": {"b": 2}} suffix') == '{"a": {"b": 2}}'

    def test_no_json_returns_trimmed_text(self):
        from tools.llm_client import extract_json
        assert extract_json("  nothing here  ") == "nothing here"


class TestParseJsonResponse:
    def test_direct_json(self):
        from tools.llm_client import parse_json_response
        assert parse_json_response('{"key": "value", "num": 42}') == {"key": "value", "num": 42}

    def test_trailing_comma_repaired(self):
        from tools.llm_client import parse_json_response
        assert parse_json_response('{"a": [1, 2,], "b": 3,}') == {"a": [1, 2], "b": 3}

    def test_bare_keys_repaired(self):
        from tools.llm_client import parse_json_response
        assert parse_json_response('{title: "x", count: 2}') == {"title": "x", "count": 2}

    def test_raw_newline_inside_string(self):
        from tools.llm_client import parse_json_response
        assert parse_json_response('{"text": "line one\nline two"}')["text"] == "line one\nline two"

    def test_list_uses_first_dict(self):
        from tools.llm_client import parse_json_response
        assert parse_json_response('```json\n[{"a": 1}, {"b": 2}]\n```') == {"a": 1}

    def test_unparseable_raises_value_error(self):
        from tools.llm_client import parse_json_response
        with pytest.raises(ValueError):
            parse_json_response("not valid json at all")


class TestParseYearResponse:
    def test_valid_response(self):
        from tools.llm_client import parse_year_response
        from models.enums import Importance, Season, ImprintType
        text = json.dumps({
            "events": [{
                "season": "Autumn",
                "title": "The duel",
                "summary": "A fight at the gate.",
                "importance": "Turning Point",
                "tags": ["duel"],
                "relatedCharacters": ["rival"],
            }],
            "yearEndStatus": "conflict",
            "memories": [{
                "eventIndex": 0,
                "content": "I lost my first duel",
                "imprints": [
                    {"type": "emotion", "content": "shame", "intensity": 150},
                    {"type": "telepathy", "content": "dropped"},
                ],
            }],
        })
        response = parse_year_response(text)
        event = response.events[0]
        assert event.season == Season.AUTUMN
        assert event.importance == Importance.TURNING_POINT
        assert event.related_characters == ["rival"]
        imprints = response.memories[0].imprints
        assert len(imprints) == 1
        assert imprints[0].type == ImprintType.EMOTION
        assert imprints[0].intensity == 100

    def test_unknown_enum_values_fall_back(self):
        from tools.llm_client import parse_year_response
        from models.enums import Importance, Season
        response = parse_year_response('{"events": [{"season": "monsoon", "importance": "epic"}]}')
        assert response.events[0].season == Season.SPRING
        assert response.events[0].importance == Importance.MINOR

    def test_garbage_uses_fallback(self):
        from tools.llm_client import parse_year_response
        response = parse_year_response("I cannot answer that.")
        assert len(response.events) == 1
        assert response.events[0].title == "Uneventful days"
        assert response.memories == []

    def test_missing_events_uses_fallback(self):
        from tools.llm_client import parse_year_response
        response = parse_year_response('{"memories": []}')
        assert response.events[0].title == "Uneventful days"

    def test_structural_mismatch_uses_fallback(self):
        from tools.llm_client import parse_year_response
        response = parse_year_response('{"events": "a string"}')
        assert response.events[0].title == "Uneventful days"

    def test_empty_author_direction_is_none(self):
        from tools.llm_client import parse_year_response
        response = parse_year_response('{"events": [], "authorDirection": {}}')
        assert response.author_direction is None


class TestParseBatchedResponse:
    def test_each_character_parsed(self):
        from tools.llm_client import parse_batched_response
        text = json.dumps({"characters": {
            "a": {"events": [{"title": "A1"}]},
            "b": {"events": [{"title": "B1"}, {"title": "B2"}]},
        }})
        results = parse_batched_response(text, ["a", "b"])
        assert results["a"].events[0].title == "A1"
        assert len(results["b"].events) == 2

    def test_missing_character_gets_fallback(self):
        from tools.llm_client import parse_batched_response
        text = json.dumps({"characters": {"a": {"events": [{"title": "A1"}]}}})
        results = parse_batched_response(text, ["a", "b"])
        assert results["a"].events[0].title == "A1"
        assert results["b"].events[0].title == "Uneventful days"

    def test_malformed_entry_only_costs_that_character(self):
        from tools.llm_client import parse_batched_response
        text = json.dumps({"characters": {
            "a": {"events": "broken"},
            "b": {"events": [{"title": "B1"}]},
        }})
        results = parse_batched_response(text, ["a", "b"])
        assert results["a"].events[0].title == "Uneventful days"
        assert results["b"].events[0].title == "B1"

    def test_unwrapped_single_character(self):
        from tools.llm_client import parse_batched_response
        results = parse_batched_response('{"events": [{"title": "Solo"}]}', ["a"])
        assert results["a"].events[0].title == "Solo"

    def test_unparseable_falls_back_for_everyone(self):
        from tools.llm_client import parse_batched_response
        results = parse_batched_response("nope", ["a", "b"])
        assert set(results) == {"a", "b"}
        assert all(r.events[0].title == "Uneventful days" for r in results.values())


class TestClassifyError:
    def test_rate_limit(self):
        from tools.agent_sdk_client import classify_error
        from config.exceptions import GenerationRateLimitError
        assert classify_error("HTTP 429 Too Many Requests") is GenerationRateLimitError

    def test_overloaded(self):
        from tools.agent_sdk_client import classify_error
        from config.exceptions import GenerationOverloadedError
        assert classify_error("API overloaded, try later") is GenerationOverloadedError

    def test_timeout(self):
        from tools.agent_sdk_client import classify_error
        from config.exceptions import GenerationTimeoutError
        assert classify_error("Request timed out") is GenerationTimeoutError

    def test_other(self):
        from tools.agent_sdk_client import classify_error
        from config.exceptions import GenerationError
        assert classify_error("boom") is GenerationError


class TestAgentSDKClient:
    @pytest.mark.asyncio
    async def test_chat_returns_result_text(self, settings):
        mock_message = _make_result_message("Hello")

        async def mock_query(*args, **kwargs):
            yield mock_message

        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            client = AgentSDKClient(settings)
            result = await client.chat("system prompt", "user prompt")
            assert result == "Hello"
            assert client.total_calls == 1
            assert client.total_cost_usd == pytest.approx(0.001)

    @pytest.mark.asyncio
    async def test_chat_falls_back_to_assistant_text(self, settings):
        async def mock_query(*args, **kwargs):
            yield _make_assistant_message("streamed text")
            yield _make_result_message("")

        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            client = AgentSDKClient(settings)
            assert await client.chat("system", "user") == "streamed text"

    @pytest.mark.asyncio
    async def test_chat_error_result_is_classified(self, settings):
        from config.exceptions import GenerationRateLimitError

        async def mock_query(*args, **kwargs):
            yield _make_result_message("rate limit exceeded", is_error=True)

        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            client = AgentSDKClient(settings)
            with pytest.raises(GenerationRateLimitError):
                await client.chat("system", "user")

    @pytest.mark.asyncio
    async def test_chat_wraps_exceptions(self, settings):
        from config.exceptions import GenerationError

        async def mock_query(*args, **kwargs):
            raise RuntimeError("Connection failed")
            yield  # Make it an async generator

        with patch("tools.agent_sdk_client.query", mock_query):
            from tools.agent_sdk_client import AgentSDKClient
            client = AgentSDKClient(settings)
            with pytest.raises(GenerationError, match="Connection failed"):
                await client.chat("system", "user")

    def test_model_for_kind(self, settings):
        from tools.agent_sdk_client import AgentSDKClient
        from models.enums import GenerationKind
        client = AgentSDKClient(settings)
        assert client.model_for(GenerationKind.SIMULATION) == settings.llm_model_simulation
        assert client.model_for(GenerationKind.STRUCTURE) == settings.llm_model_structure
        assert client.model_for(GenerationKind.DETAIL) == settings.llm_model_detail

    @pytest.mark.asyncio
    async def test_generate_retries_rate_limit_with_linear_backoff(self, tmp_path):
        from config.settings import Settings
        from config.exceptions import GenerationRateLimitError
        from tools.agent_sdk_client import AgentSDKClient
        settings = Settings(
            data_dir=tmp_path / "data", log_dir=tmp_path / "logs",
            rate_limit_backoff_seconds=10, generation_max_retries=3,
        )
        client = AgentSDKClient(settings)
        chat = AsyncMock(side_effect=[GenerationRateLimitError(), GenerationRateLimitError(), "ok"])
        sleep = AsyncMock()
        with patch.object(client, "chat", chat), patch("tools.agent_sdk_client.asyncio.sleep", sleep):
            assert await client.generate("system", "user") == "ok"
        assert chat.await_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [10, 20]

    @pytest.mark.asyncio
    async def test_generate_retries_overload(self, settings):
        from config.exceptions import GenerationOverloadedError
        from tools.agent_sdk_client import AgentSDKClient
        client = AgentSDKClient(settings)
        chat = AsyncMock(side_effect=[GenerationOverloadedError("overloaded"), "ok"])
        with patch.object(client, "chat", chat), patch("tools.agent_sdk_client.asyncio.sleep", AsyncMock()):
            assert await client.generate("system", "user") == "ok"

    @pytest.mark.asyncio
    async def test_generate_gives_up_after_max_attempts(self, settings):
        from config.exceptions import GenerationRateLimitError
        from tools.agent_sdk_client import AgentSDKClient
        client = AgentSDKClient(settings)
        chat = AsyncMock(side_effect=GenerationRateLimitError())
        with patch.object(client, "chat", chat), patch("tools.agent_sdk_client.asyncio.sleep", AsyncMock()):
            with pytest.raises(GenerationRateLimitError):
                await client.generate("system", "user")
        assert chat.await_count == settings.generation_max_retries

    @pytest.mark.asyncio
    async def test_generate_does_not_retry_other_errors(self, settings):
        from config.exceptions import GenerationTimeoutError
        from tools.agent_sdk_client import AgentSDKClient
        client = AgentSDKClient(settings)
        chat = AsyncMock(side_effect=GenerationTimeoutError("timed out"))
        with patch.object(client, "chat", chat):
            with pytest.raises(GenerationTimeoutError):
                await client.generate("system", "user")
        assert chat.await_count == 1

    @pytest.mark.asyncio
    async def test_generate_json_raises_parse_error(self, settings):
        from config.exceptions import ResponseParseError
        from tools.agent_sdk_client import AgentSDKClient
        client = AgentSDKClient(settings)
        with patch.object(client, "chat", AsyncMock(return_value="no json here")):
            with pytest.raises(ResponseParseError) as exc_info:
                await client.generate_json("system", "user")
        assert exc_info.value.raw_response == "no json here"

    def test_ensure_credentials_with_api_key(self, tmp_path):
        from config.settings import Settings
        from tools.agent_sdk_client import AgentSDKClient
        settings = Settings(data_dir=tmp_path / "data", log_dir=tmp_path / "logs", anthropic_api_key="sk-test")
        AgentSDKClient(settings).ensure_credentials()

    def test_ensure_credentials_missing(self, settings):
        from config.exceptions import MissingCredentialsError
        from tools.agent_sdk_client import AgentSDKClient
        client = AgentSDKClient(settings)
        client.settings.anthropic_api_key = None
        env = {k: v for k, v in os.environ.items() if k != "ANTHROPIC_API_KEY"}
        with patch.dict(os.environ, env, clear=True), \
                patch("tools.agent_sdk_client.shutil.which", return_value=None):
            with pytest.raises(MissingCredentialsError):
                client.ensure_credentials()

    def test_usage_summary_counts_kinds(self, settings):
        from tools.agent_sdk_client import AgentSDKClient
        client = AgentSDKClient(settings)
        summary = client.get_usage_summary()
        assert summary["total_calls"] == 0
        assert summary["calls_by_kind"] == {"simulation": 0, "structure": 0, "detail": 0}
