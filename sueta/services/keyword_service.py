"""Turn a chat message into a lexical search query.

Bot-name mentions are removed (whole words here, unlike the addressing classifier),
punctuation is collapsed, and short words and stop words are dropped. A message with a
single surviving keyword falls back to its cleaned text so the query is not too narrow.
"""

import re
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Tuple

from sueta.config import DEFAULT_BOT_NAME_VARIANTS

# Pronouns, prepositions, conjunctions, interrogatives and forms of "быть"
STOP_WORDS = frozenset(
    {
        "что", "как", "где", "когда", "почему", "кто", "какой", "какая", "какое", "какие",
        "это", "тот", "тех", "том", "той",
        "мне", "меня", "мной", "тебе", "тебя", "его", "её", "них", "ним", "нам",
        "для", "про", "без", "при", "над", "под", "через", "между", "перед", "после",
        "или", "ну", "да", "нет", "не",
        "был", "была", "было", "были", "буду", "будет", "будем", "есть", "быть",
    }
)

_NON_WORD_RE = re.compile(r"[\W_]+")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class KeywordConfig:
    name_variants: Tuple[str, ...] = tuple(DEFAULT_BOT_NAME_VARIANTS)
    stop_words: FrozenSet[str] = field(default=STOP_WORDS)
    min_token_length: int = 3
    min_keywords: int = 2

    @classmethod
    def from_variants(cls, name_variants: Iterable[str]) -> "KeywordConfig":
        return cls(name_variants=tuple(name_variants))


class KeywordExtractor:
    def __init__(self, config: KeywordConfig = KeywordConfig()):
        self.config = config
        variants = sorted({v.strip() for v in config.name_variants if v.strip()}, key=len, reverse=True)
        self._mention_re = (
            re.compile(r"\b(?:" + "|".join(re.escape(v) for v in variants) + r")\b", re.IGNORECASE)
            if variants
            else None
        )

    def remove_bot_mentions(self, text: str) -> str:
        if self._mention_re is None:
            return text
        return self._mention_re.sub(" ", text)

    @staticmethod
    def clean(text: str) -> str:
        """Keep letters and digits only, separated by single spaces."""
        return _WHITESPACE_RE.sub(" ", _NON_WORD_RE.sub(" ", text)).strip()

    def extract_keywords(self, text: str) -> str:
        if not text:
            return ""

        cleaned = self.clean(self.remove_bot_mentions(text))
        keywords = [
            token
            for token in cleaned.lower().split()
            if len(token) >= self.config.min_token_length and token not in self.config.stop_words
        ]

        if not keywords:
            return ""
        if len(keywords) < self.config.min_keywords:
            return cleaned.lower()
        return " ".join(keywords)
