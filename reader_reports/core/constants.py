"""Static lookup tables shared by the report pipeline.

All tables are immutable: tuples and ``MappingProxyType`` views built once at
import time.
"""

from types import MappingProxyType

from reader_reports.domain.entities import CatalogEntry

# The 14 website categories. Secondary-theme mining never returns these.
CANONICAL_CATEGORIES = (
    "КРИЗИСЫ",
    "Я — ЖЕНЩИНА",
    "ЛЮБОВЬ",
    "ОТНОШЕНИЯ",
    "ДЕНЬГИ",
    "ОДИНОЧЕСТВО",
    "СМЕРТЬ",
    "СЕМЕЙНЫЕ ОТНОШЕНИЯ",
    "СМЫСЛ ЖИЗНИ",
    "СЧАСТЬЕ",
    "ВРЕМЯ И ПРИВЫЧКИ",
    "ДОБРО И ЗЛО",
    "ОБЩЕСТВО",
    "ПОИСК СЕБЯ",
)

UNIVERSAL_CATEGORY = "ПОИСК СЕБЯ"
UNCATEGORIZED = "Другое"

# Fallback analysis: theme -> keyword stems matched inside lower-cased quote text.
THEME_KEYWORDS = MappingProxyType({
    "любовь": ("любов", "сердц", "чувств", "романтик"),
    "мудрость": ("мудр", "знани", "опыт", "поняти"),
    "саморазвитие": ("развит", "рост", "цель", "успех", "достиж"),
    "семья": ("семь", "мам", "мать", "дети", "детств"),
    "счастье": ("счаст", "радост", "блаженств"),
    "смысл жизни": ("смысл", "судьб", "бытие"),
    "время": ("время", "момент", "вечност", "привычк"),
    "творчество": ("творч", "искусств", "вдохнов"),
    "одиночество": ("одиноч", "уединен", "тишин"),
    "отношения": ("отношен", "дружб", "общени"),
})

DEFAULT_THEME = "саморазвитие"
MAX_FALLBACK_THEMES = 3

ALLOWED_TONES = (
    "позитивный",
    "нейтральный",
    "задумчивый",
    "вдохновляющий",
    "меланхоличный",
    "энергичный",
    "размышляющий",
    "вдохновленный",
)

DEFAULT_TONE = "размышляющий"

TONE_SYNONYMS = MappingProxyType({
    "рефлексивный": "размышляющий",
    "вдохновенный": "вдохновляющий",
    "вдохновленый": "вдохновленный",
    "positive": "позитивный",
    "neutral": "нейтральный",
    "thoughtful": "задумчивый",
    "inspiring": "вдохновляющий",
    "melancholic": "меланхоличный",
    "energetic": "энергичный",
    "reflective": "размышляющий",
    "inspired": "вдохновленный",
})

# Appended to a catalog entry's reasoning, keyed by normalised tone.
TONE_CLAUSES = MappingProxyType({
    "вдохновленный": " и поддержит ваше творческое настроение",
    "вдохновляющий": " и поддержит ваше творческое настроение",
    "задумчивый": " и поможет глубже осмыслить ваши размышления",
    "размышляющий": " и поможет глубже осмыслить ваши размышления",
    "меланхоличный": " и подарит тепло и поддержку",
    "энергичный": " и направит вашу энергию в нужное русло",
    "позитивный": " и сохранит ваш светлый настрой",
})

# Used when the catalog collaborator is missing or fails.
# Each row: (theme keyword stems, recommendation).
FALLBACK_BOOKS = (
    (
        ("любов", "отношен", "сердц", "чувств"),
        CatalogEntry(
            title="Искусство любить",
            author="Эрих Фромм",
            description="О построении здоровых отношений с собой и миром",
            book_slug="art_of_loving",
            reasoning="Ваши цитаты показывают интерес к теме любви и отношений",
            price="$8",
        ),
    ),
    (
        ("мудр", "философ", "смысл", "творч"),
        CatalogEntry(
            title="Письма к молодому поэту",
            author="Райнер Мария Рильке",
            description="О творчестве, самопознании и поиске своего пути",
            book_slug="letters_to_young_poet",
            reasoning="Судя по вашим цитатам, вас привлекает философский взгляд на жизнь",
            price="$8",
        ),
    ),
    (
        ("саморазвит", "самопознан", "рост", "развит"),
        CatalogEntry(
            title="Курс «Быть собой»",
            description="О самопринятии и аутентичности",
            book_slug="be_yourself_course",
            reasoning="Ваш выбор цитат говорит о стремлении к личностному росту",
            price="$12",
        ),
    ),
    (
        ("семь", "мам", "дет", "материнств"),
        CatalogEntry(
            title="Курс «Мудрая мама»",
            description="Как сохранить себя в материнстве и воспитать счастливых детей",
            book_slug="wise_mother_course",
            reasoning="Ваши цитаты отражают интерес к семейным ценностям",
            price="$20",
        ),
    ),
    (
        ("счаст", "радост"),
        CatalogEntry(
            title="«Маленький принц» с комментариями",
            author="Антуан де Сент-Экзюпери",
            description="О простых истинах жизни и важности человеческих связей",
            book_slug="little_prince",
            reasoning="Универсальная книга для размышлений о жизни и ценностях",
            price="$6",
        ),
    ),
)

DEFAULT_FALLBACK_BOOK = FALLBACK_BOOKS[-1][1]

RUSSIAN_MONTHS_GENITIVE = (
    "января", "февраля", "марта", "апреля", "мая", "июня",
    "июля", "августа", "сентября", "октября", "ноября", "декабря",
)
