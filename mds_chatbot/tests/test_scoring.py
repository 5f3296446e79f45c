from __future__ import annotations

import pytest

from mds_chatbot.rag.scoring import (
    DomainVocabularyRule,
    KeywordScorer,
    PhraseMatchRule,
    ScoringInput,
    TermFrequencyRule,
    WeightedRule,
    normalize_phrase,
    tokenize_query,
)


def test_tokenize_drops_short_tokens() -> None:
    tokens = tokenize_query("What is the fee for an IT course?")
    assert tokens == ("what", "the", "fee", "for", "course")


def test_normalize_phrase_strips_punctuation_and_case() -> None:
    assert normalize_phrase("  Tuition   FEES? ") == "tuition fees"


def test_term_frequency_uses_whole_words() -> None:
    item = ScoringInput(phrase="art", tokens=("art",), content="art classes start in the art room")
    assert TermFrequencyRule().score(item) == 2.0


def test_phrase_rule_requires_contiguous_query() -> None:
    rule = PhraseMatchRule()
    tokens = ("tuition", "fees")
    assert rule.score(ScoringInput("tuition fees", tokens, "tuition fees are due")) == 1.0
    assert rule.score(ScoringInput("tuition fees", tokens, "fees and tuition are due")) == 0.0


def test_domain_rule_counts_distinct_terms() -> None:
    rule = DomainVocabularyRule(terms=("school", "student"))
    item = ScoringInput("x", ("xyz",), "school school student")
    assert rule.score(item) == 2.0


def test_default_weights() -> None:
    scorer = KeywordScorer.default()
    # phrase 10 + two token hits at 2 each
    assert scorer.score("tuition fees", "Tuition fees are due.") == 14.0
    assert scorer.score("tuition fees", "Tuition is due. Other fees apply.") == 4.0


def test_contiguous_phrase_beats_scattered_words() -> None:
    scorer = KeywordScorer.default()
    contiguous = scorer.score("tuition fees", "Pay tuition fees today")
    scattered = scorer.score("tuition fees", "Pay fees and tuition today")
    assert contiguous > scattered > 0


def test_domain_terms_only_boost_matching_chunks() -> None:
    scorer = KeywordScorer.default()
    content = "Our school offers a science program for every student."
    assert scorer.score("xyz nonsense query", content) == 0.0
    # phrase 10 + one token hit + school, program and student
    assert scorer.score("science", content) == 10.0 + 2.0 + 3.0


def test_stopword_only_query_scores_zero() -> None:
    scorer = KeywordScorer.default()
    assert scorer.score("is it a an", "is it a an school") == 0.0


def test_custom_rule_list() -> None:
    scorer = KeywordScorer(rules=(WeightedRule(TermFrequencyRule(), 5.0),))
    assert scorer.score("bus", "The bus leaves. The bus returns.") == 10.0


def test_explain_reports_each_rule() -> None:
    breakdown = KeywordScorer.default().explain("admission", "Admission at the academy.")
    assert breakdown == {
        "phrase_match": 10.0,
        "term_frequency": 2.0,
        "domain_vocabulary": 2.0,
    }


def test_explain_is_zero_when_query_does_not_match() -> None:
    scorer = KeywordScorer.default()
    content = "The academy welcomes every student to the school."
    assert set(scorer.explain("xyz nonsense query", content).values()) == {0.0}
    assert set(scorer.explain("at", "at the academy").values()) == {0.0}


@pytest.mark.parametrize(
    "query",
    ["admission", "tuition fees", "xyz", "is it", "school program student"],
)
def test_explain_sums_to_score(query: str) -> None:
    scorer = KeywordScorer.default()
    content = "Admission to the school program: tuition fees are listed for each student."
    assert sum(scorer.explain(query, content).values()) == scorer.score(query, content)
