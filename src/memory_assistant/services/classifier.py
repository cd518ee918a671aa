"""Rule-based query intent classification."""

import re

from pydantic import BaseModel, Field

from memory_assistant.domain.models import QueryClassification

_APOSTROPHES = str.maketrans({"’": "'", "‘": "'", "ʼ": "'"})


class PhraseSets(BaseModel):
    """Phrase lists driving the classifier.

    Personal-info phrases match anywhere in the query. The other lists must
    make up the whole query, optionally followed by ``!``, ``.`` or ``?``.
    """

    personal_info: list[str] = Field(
        default_factory=lambda: [
            "qu'est-ce que tu connais sur moi",
            "que sais-tu de moi",
            "quelles sont mes informations",
            "mes dernières mémoires",
            "mes mémoires",
            "que connais-tu de moi",
            "dis-moi ce que tu sais sur moi",
            "quelles informations as-tu sur moi",
            "raconte-moi ce que tu sais",
            "parle-moi de moi",
            "résume mes infos",
            "toutes mes mémoires",
            "liste mes mémoires",
            "mes données",
            "informations personnelles",
            "profil personnel",
            "what do you know about me",
            "what do you remember about me",
            "tell me what you know about me",
            "tell me about myself",
            "list my memories",
            "list all my memories",
            "all my memories",
            "my memories",
            "my personal information",
            "personal profile",
        ]
    )
    greeting: list[str] = Field(
        default_factory=lambda: [
            "bonjour",
            "salut",
            "hello",
            "hi",
            "bonsoir",
            "bonne nuit",
            "coucou",
            "hey",
            "good morning",
            "good evening",
        ]
    )
    smalltalk: list[str] = Field(
        default_factory=lambda: [
            "comment ça va",
            "ça va",
            "comment allez-vous",
            "comment tu vas",
            "how are you",
            "how are you doing",
            "how's it going",
        ]
    )
    general_meta: list[str] = Field(
        default_factory=lambda: [
            "qui es-tu",
            "qu'est-ce que tu fais",
            "que peux-tu faire",
            "aide",
            "help",
            "who are you",
            "what can you do",
            "what do you do",
        ]
    )


def _alternation(phrases: list[str]) -> str:
    # Longest first so "how are you doing" wins over "how are you"
    ordered = sorted({p.lower().translate(_APOSTROPHES) for p in phrases}, key=len, reverse=True)
    return "|".join(re.escape(p) for p in ordered)


def _anchored(phrases: list[str]) -> re.Pattern[str]:
    return re.compile(rf"^({_alternation(phrases)})\s*[!.?]*$")


class QueryClassifier:
    """Decides whether a query needs retrieval, and how broad it should be.

    Personal-info detection is evaluated first and wins: a query that asks
    about the user is never treated as small talk, whatever else it contains.
    """

    def __init__(self, phrases: PhraseSets | None = None):
        self.phrases = phrases or PhraseSets()
        self._personal = re.compile(f"({_alternation(self.phrases.personal_info)})")
        self._greeting = _anchored(self.phrases.greeting)
        self._smalltalk = _anchored(self.phrases.smalltalk)
        self._meta = _anchored(self.phrases.general_meta)

    @staticmethod
    def normalize(query: str) -> str:
        return query.strip().lower().translate(_APOSTROPHES)

    def classify(self, query: str) -> QueryClassification:
        text = self.normalize(query)
        is_personal = bool(self._personal.search(text))
        return QueryClassification(
            is_personal_info=is_personal,
            is_simple_greeting=bool(self._greeting.match(text)),
            is_simple_smalltalk=bool(self._smalltalk.match(text)),
            is_general_meta=bool(self._meta.match(text)),
        )
