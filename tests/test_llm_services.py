"""Tests for AI providers and prompt templates."""

import json

import httpx
import pytest

from reader_reports.domain.errors import AIUnavailableError
from reader_reports.infrastructure.llm.prompts import PROMPT_REGISTRY, WEEKLY_ANALYSIS_PROMPT, PromptTemplate
from reader_reports.infrastructure.llm.services import LlamaLLMService, MockLLMService

REAL_ASYNC_CLIENT = httpx.AsyncClient


def route_ollama(monkeypatch, handler):
    def client_factory(**kwargs):
        return REAL_ASYNC_CLIENT(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", client_factory)


class TestLlamaLLMService:
    @pytest.mark.asyncio
    async def test_chat_request(self, monkeypatch):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": {"role": "assistant", "content": '{"summary": "ok"}'}})

        route_ollama(monkeypatch, handler)
        text = await LlamaLLMService(base_url="http://ollama:11434/", model="llama3").complete("Привет")

        assert text == '{"summary": "ok"}'
        assert seen["url"] == "http://ollama:11434/api/chat"
        assert seen["body"]["format"] == "json"
        assert seen["body"]["stream"] is False
        assert seen["body"]["messages"] == [{"role": "user", "content": "Привет"}]

    @pytest.mark.asyncio
    async def test_http_error_is_unavailable(self, monkeypatch):
        route_ollama(monkeypatch, lambda request: httpx.Response(503, text="loading model"))
        with pytest.raises(AIUnavailableError) as exc_info:
            await LlamaLLMService().complete("prompt")
        assert exc_info.value.details == {"provider": "ollama"}

    @pytest.mark.asyncio
    async def test_non_json_body_is_unavailable(self, monkeypatch):
        route_ollama(monkeypatch, lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(AIUnavailableError):
            await LlamaLLMService().complete("prompt")


class TestMockLLMService:
    @pytest.mark.asyncio
    async def test_deterministic_json(self):
        service = MockLLMService()
        first = await service.complete("одна и та же подсказка")
        second = await service.complete("одна и та же подсказка")
        assert first == second
        assert json.loads(first)["dominantThemes"] == ["саморазвитие", "мудрость"]


class TestPrompts:
    def test_weekly_prompt_renders_single_user_message(self):
        messages = WEEKLY_ANALYSIS_PROMPT.render(
            user_name="Мария",
            test_results="{}",
            quotes_text='"Цитата"',
            previous_analysis="нет",
        )
        assert [m["role"] for m in messages] == ["user"]
        assert "Мария" in messages[0]["content"]
        assert '"summary"' in messages[0]["content"]

    def test_system_message_is_prepended(self):
        template = PromptTemplate(name="t", user="Вопрос: {q}", system="Роль: {role}")
        assert template.render_flat(q="?", role="психолог") == "Роль: психолог\n\nВопрос: ?"

    def test_registry(self):
        assert PROMPT_REGISTRY["weekly_analysis"] is WEEKLY_ANALYSIS_PROMPT
