"""AI providers for the weekly analysis.

Every provider exposes ``complete(prompt)`` and raises
:class:`AIUnavailableError` when the backend cannot answer.  Recovery is the
caller's job: the analysis service falls back to a deterministic analysis.
"""

import hashlib
import json
import logging

from reader_reports.domain.errors import AIUnavailableError
from reader_reports.domain.repositories import ILLMService

logger = logging.getLogger(__name__)

ANALYSIS_TEMPERATURE = 0.4
ANALYSIS_MAX_TOKENS = 1500


# ---------------------------------------------------------------------------
# Offline provider
# ---------------------------------------------------------------------------
class MockLLMService(ILLMService):
    """Canned analysis JSON; the tone is picked from a hash of the prompt."""

    _TONES = ("размышляющий", "вдохновленный", "задумчивый", "позитивный")

    async def complete(self, prompt: str) -> str:
        logger.debug("Mock analysis for prompt of %d chars", len(prompt))
        seed = int(hashlib.md5(prompt.encode()).hexdigest(), 16)
        payload = {
            "summary": "Неделя поиска опоры и внутренней ясности",
            "dominantThemes": ["саморазвитие", "мудрость"],
            "emotionalTone": self._TONES[seed % len(self._TONES)],
            "insights": (
                "Ваши цитаты на этой неделе складываются в историю о поиске себя. "
                "Вы обращаетесь к словам, которые помогают замедлиться и услышать "
                "собственные желания."
            ),
            "personalGrowth": "Вы всё чаще возвращаетесь к теме внутренней опоры.",
        }
        return json.dumps(payload, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Ollama
# ---------------------------------------------------------------------------
class LlamaLLMService(ILLMService):
    """Self-hosted model behind an Ollama server.

    Requests go to ``POST {base_url}/api/chat`` without streaming and with
    ``format: "json"`` so the model is steered towards a bare JSON object.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3",
        timeout: float = 120.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout

    async def complete(self, prompt: str) -> str:
        import httpx

        logger.info("Requesting weekly analysis from Ollama %s (model=%s)", self.base_url, self.model)
        body = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "stream": False,
            "format": "json",
            "options": {"temperature": ANALYSIS_TEMPERATURE},
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(f"{self.base_url}/api/chat", json=body)
                response.raise_for_status()
                message = response.json().get("message") or {}
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Ollama request failed: %s", exc)
            raise AIUnavailableError("ollama", exc) from exc
        return message.get("content") or ""


# ---------------------------------------------------------------------------
# OpenAI
# ---------------------------------------------------------------------------
class OpenAILLMService(ILLMService):
    """Hosted model through the ``openai`` SDK (install the ``openai`` extra)."""

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", timeout: float = 60.0):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout

    async def complete(self, prompt: str) -> str:
        logger.info("Requesting weekly analysis from OpenAI (model=%s)", self.model)
        try:
            import openai

            client = openai.AsyncOpenAI(api_key=self.api_key, timeout=self.timeout)
            completion = await client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=ANALYSIS_TEMPERATURE,
                max_tokens=ANALYSIS_MAX_TOKENS,
                response_format={"type": "json_object"},
            )
        except Exception as exc:
            logger.warning("OpenAI request failed: %s", exc)
            raise AIUnavailableError("openai", exc) from exc
        return completion.choices[0].message.content or ""
