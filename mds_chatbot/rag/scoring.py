from __future__ import annotations

"""Keyword relevance rules and the weighted scorer that combines them.

Each rule inspects a lowercased query/chunk pair and returns an unweighted
partial score. ``KeywordScorer`` multiplies each partial by its weight and sums
them. Boost-only rules (the domain vocabulary) contribute only when the query
itself already matched the chunk, so a chunk never ranks on topical words
alone.
"""

import re
import string
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Protocol

DEFAULT_DOMAIN_TERMS: tuple[str, ...] = (
    "academy",
    "school",
    "education",
    "student",
    "course",
    "program",
    "admission",
)

MIN_TOKEN_LENGTH = 3

_WORD_RE = re.compile(r"\w+")


@dataclass(frozen=True)
class ScoringInput:
    """Normalized query and chunk text shared by all rules."""
    phrase: str
    tokens: tuple[str, ...]
    content: str


class ScoringRule(Protocol):
    name: str

    def score(self, item: ScoringInput) -> float:
        ...


def normalize_phrase(query: str) -> str:
    """Lowercase, collapse whitespace and strip surrounding punctuation."""
    collapsed = " ".join(query.lower().split())
    return collapsed.strip(string.punctuation + " ")


def tokenize_query(query: str) -> tuple[str, ...]:
    """Return lowercase query words longer than two characters."""
    return tuple(
        token for token in _WORD_RE.findall(query.lower()) if len(token) >= MIN_TOKEN_LENGTH
    )


@lru_cache(maxsize=512)
def _word_pattern(word: str) -> re.Pattern[str]:
    return re.compile(rf"\b{re.escape(word)}\b")


@dataclass(frozen=True)
class PhraseMatchRule:
    """1 when the chunk contains the whole query verbatim."""
    name: str = "phrase_match"

    def score(self, item: ScoringInput) -> float:
        if item.phrase and item.phrase in item.content:
            return 1.0
        return 0.0


@dataclass(frozen=True)
class TermFrequencyRule:
    """Whole-word occurrences of every significant query token."""
    name: str = "term_frequency"

    def score(self, item: ScoringInput) -> float:
        return float(
            sum(len(_word_pattern(token).findall(item.content)) for token in item.tokens)
        )


@dataclass(frozen=True)
class DomainVocabularyRule:
    """Number of distinct domain terms present in the chunk."""
    terms: tuple[str, ...] = DEFAULT_DOMAIN_TERMS
    name: str = "domain_vocabulary"

    def score(self, item: ScoringInput) -> float:
        return float(sum(1 for term in self.terms if term in item.content))


@dataclass(frozen=True)
class WeightedRule:
    rule: ScoringRule
    weight: float
    boost_only: bool = False


@dataclass(frozen=True)
class KeywordScorer:
    """Sum of weighted rule scores for a query against chunk text."""
    rules: tuple[WeightedRule, ...] = field(default_factory=tuple)

    @classmethod
    def default(
        cls,
        phrase_weight: float = 10.0,
        term_weight: float = 2.0,
        domain_weight: float = 1.0,
        domain_terms: tuple[str, ...] = DEFAULT_DOMAIN_TERMS,
    ) -> "KeywordScorer":
        return cls(
            rules=(
                WeightedRule(PhraseMatchRule(), phrase_weight),
                WeightedRule(TermFrequencyRule(), term_weight),
                WeightedRule(
                    DomainVocabularyRule(terms=tuple(term.lower() for term in domain_terms)),
                    domain_weight,
                    boost_only=True,
                ),
            )
        )

    def prepare(self, query: str) -> tuple[str, tuple[str, ...]]:
        return normalize_phrase(query), tokenize_query(query)

    def score(self, query: str, content: str) -> float:
        """Score one chunk; queries with no significant token score 0."""
        phrase, tokens = self.prepare(query)
        return self.score_prepared(phrase, tokens, content)

    def score_prepared(self, phrase: str, tokens: tuple[str, ...], content: str) -> float:
        return sum(self._contributions(phrase, tokens, content).values())

    def explain(self, query: str, content: str) -> dict[str, float]:
        """Return the weighted contribution of each rule; the values sum to the score."""
        phrase, tokens = self.prepare(query)
        return self._contributions(phrase, tokens, content)

    def _contributions(
        self, phrase: str, tokens: tuple[str, ...], content: str
    ) -> dict[str, float]:
        contributions = {weighted.rule.name: 0.0 for weighted in self.rules}
        if not tokens:
            return contributions
        item = ScoringInput(phrase=phrase, tokens=tokens, content=content.lower())
        boosts: dict[str, float] = {}
        for weighted in self.rules:
            partial = weighted.rule.score(item) * weighted.weight
            if weighted.boost_only:
                boosts[weighted.rule.name] = boosts.get(weighted.rule.name, 0.0) + partial
            else:
                contributions[weighted.rule.name] += partial
        # Boosts count only once the query itself matched.
        if sum(contributions.values()) > 0:
            for name, partial in boosts.items():
                contributions[name] += partial
        return contributions
