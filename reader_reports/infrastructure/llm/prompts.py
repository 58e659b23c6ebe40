"""Prompt templates for the weekly quote analysis.

The analysis prompt is written in Russian and asks the model for a bare JSON
object; ``services/response_parser.py`` is its counterpart on the way back.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class PromptTemplate:
    """Named prompt with ``str.format`` placeholders.

    Templates without ``system`` render to a single user message, which is
    what the weekly analysis sends::

        WEEKLY_ANALYSIS_PROMPT.render_flat(user_name="Мария", ...)
    """

    name: str
    user: str
    system: str = ""
    description: str = ""
    version: str = "1.0"
    tags: tuple[str, ...] = field(default_factory=tuple)

    def render(self, **kwargs: Any) -> list[dict[str, str]]:
        """Chat messages with placeholders filled."""
        messages = []
        if self.system:
            messages.append({"role": "system", "content": self.system.format(**kwargs)})
        messages.append({"role": "user", "content": self.user.format(**kwargs)})
        return messages

    def render_flat(self, **kwargs: Any) -> str:
        """The prompt as one string, system part first."""
        return "\n\n".join(m["content"] for m in self.render(**kwargs))


WEEKLY_ANALYSIS_PROMPT = PromptTemplate(
    name="weekly_analysis",
    description="Psychological analysis of a user's quotes for one ISO week.",
    version="2.0",
    tags=("weekly_report", "analysis"),
    user=(
        "Ты психолог Анна Бусел. Проанализируй цитаты пользователя за неделю "
        "и дай психологический анализ.\n\n"
        "Имя пользователя: {user_name}\n"
        "Результаты теста: {test_results}\n\n"
        "Цитаты за неделю:\n{quotes_text}\n\n"
        "Анализ прошлой недели (для сравнения, может отсутствовать):\n"
        "{previous_analysis}\n\n"
        "Напиши анализ в стиле Анны Бусел:\n"
        "- Тон: теплый, профессиональный, обращение на \"Вы\"\n"
        "- Глубокий психологический анализ\n"
        "- Связь с результатами первоначального теста\n"
        "- Выводы о текущем состоянии и интересах\n\n"
        "Верни ТОЛЬКО JSON-объект без markdown и пояснений:\n"
        "{{\n"
        '  "summary": "Краткий анализ недели одним предложением",\n'
        '  "dominantThemes": ["тема1", "тема2"],\n'
        '  "emotionalTone": "позитивный/нейтральный/задумчивый/вдохновляющий/'
        'меланхоличный/энергичный",\n'
        '  "insights": "Подробный психологический анализ от Анны",\n'
        '  "personalGrowth": "Что изменилось по сравнению с прошлой неделей"\n'
        "}}"
    ),
)

# Templates by name
PROMPT_REGISTRY: dict[str, PromptTemplate] = {
    tpl.name: tpl
    for tpl in [
        WEEKLY_ANALYSIS_PROMPT,
    ]
}
