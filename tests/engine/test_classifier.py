from __future__ import annotations

import pytest

from news_aggregator.config import Category, ClassifierSettings
from news_aggregator.engine.classifier import KeywordClassifier, keyword_weight
from news_aggregator.engine.records import make_item_id
from news_aggregator.errors import ValidationError


@pytest.mark.parametrize(
    ("keyword", "expected"),
    [
        ("GPT", 1.0),
        ("GitHub", 1.0),
        ("Copilot", 2.0),
        ("automation", 2.0),
        ("fine-tuning", 3.0),
        ("Large Language Model", 3.0),
    ],
)
def test_keyword_weight(keyword: str, expected: float) -> None:
    assert keyword_weight(keyword) == expected


def test_best_scoring_category_wins() -> None:
    classifier = KeywordClassifier()

    assert classifier.classify("GPT model", Category.AI_DATA_ANALYSIS) is Category.AI_MODELS
    result = classifier.analyze("GitHub Copilot", "code completion")
    assert result.category is Category.AI_IDE
    # GitHub Copilot (3) + Copilot (2) + code (1) + code completion (3)
    assert result.confidence == 1.0
    assert set(result.matched_keywords) == {"GitHub Copilot", "Copilot", "code", "code completion"}


def test_matching_is_case_insensitive() -> None:
    classifier = KeywordClassifier()
    upper = classifier.analyze_text("CHATBOT CONVERSATION")
    lower = classifier.analyze_text("chatbot conversation")
    assert upper == lower
    assert upper.category is Category.AI_ASSISTANT


def test_ties_keep_earlier_category() -> None:
    classifier = KeywordClassifier()
    # "chat" and "shell" both weigh 1.0; the assistant category precedes the CLI one
    assert classifier.classify("chat shell", Category.AI_NOCODE) is Category.AI_ASSISTANT
    assert classifier.classify("shell chat", Category.AI_NOCODE) is Category.AI_ASSISTANT


def test_no_match_falls_back_to_supplied_default() -> None:
    classifier = KeywordClassifier()
    result = classifier.analyze("Weather forecast for tomorrow", "Sunny with light winds")
    assert result.confidence == 0.0
    assert result.matched_keywords == ()
    text = "Weather forecast for tomorrow Sunny with light winds"
    assert classifier.classify(text, Category.AI_AGENT) is Category.AI_AGENT


def test_confidence_is_length_normalised() -> None:
    classifier = KeywordClassifier(ClassifierSettings(confidence_threshold=0.25))
    text = "GPT " + "x" * 496

    result = classifier.analyze_text(text)
    assert result.category is Category.AI_MODELS
    assert result.confidence == pytest.approx(0.2)
    assert classifier.classify(text, Category.AI_SEARCH) is Category.AI_SEARCH

    classifier.confidence_threshold = 0.2
    assert classifier.classify(text, Category.AI_SEARCH) is Category.AI_MODELS


def test_classification_is_deterministic(make_record) -> None:
    classifier = KeywordClassifier()
    record = make_record(title="OpenAI announces GPT-5", description="A new large language model")
    first = classifier.analyze(record.title, record.description)
    second = classifier.analyze(record.title, record.description)
    assert first == second


@pytest.mark.parametrize("threshold", [1.5, -0.1, "0.5", True])
def test_invalid_threshold_rejected(threshold) -> None:
    classifier = KeywordClassifier()
    with pytest.raises(ValidationError):
        classifier.confidence_threshold = threshold
    assert classifier.confidence_threshold == 0.1


def test_validation_error_is_value_error() -> None:
    classifier = KeywordClassifier()
    with pytest.raises(ValueError):
        classifier.default_category = "Not a category"


def test_default_category_accepts_label() -> None:
    classifier = KeywordClassifier()
    classifier.default_category = "AIデータ分析"
    assert classifier.default_category is Category.AI_DATA_ANALYSIS


def test_scoring_failure_returns_global_default(monkeypatch) -> None:
    classifier = KeywordClassifier(ClassifierSettings(default_category=Category.AI_NOCODE))

    def explode(_text):
        raise RuntimeError("scoring broke")

    monkeypatch.setattr(classifier, "_scores", explode)
    assert classifier.classify("GPT model", Category.AI_IDE) is Category.AI_NOCODE


def test_classify_batch_builds_items_and_counts(make_record) -> None:
    classifier = KeywordClassifier()
    records = [
        make_record(title="GPT model", description="", link="https://example.com/1"),
        make_record(title="GitHub Copilot", description="code completion", link="https://example.com/2"),
        make_record(link="https://example.com/3", default_category=Category.AI_AGENT),
    ]

    items = classifier.classify_batch(records)

    assert [item.category for item in items] == [Category.AI_MODELS, Category.AI_IDE, Category.AI_AGENT]
    for record, item in zip(records, items):
        assert item.id == make_item_id(record.link, record.published_at)
        assert item.title == record.title
        assert item.source_name == record.source_name
        assert item.ingested_at.tzinfo is not None
    assert classifier.classification_stats() == {
        Category.AI_MODELS: 1,
        Category.AI_IDE: 1,
        Category.AI_AGENT: 1,
    }

    report = classifier.accuracy_report()
    assert report.total_classifications == 3
    classifier.reset_stats()
    assert classifier.classification_stats() == {}


def test_validate_classification(make_record) -> None:
    classifier = KeywordClassifier()
    record = make_record(title="GitHub Copilot", description="code completion")

    check = classifier.validate_classification(record, Category.AI_IDE)
    assert check.is_correct
    assert check.analysis.startswith("Correct classification")

    miss = classifier.validate_classification(record, Category.AI_SEARCH)
    assert not miss.is_correct
    assert miss.actual_category is Category.AI_IDE


def test_introspection_helpers() -> None:
    classifier = KeywordClassifier()
    assert classifier.available_categories() == list(Category)
    assert "Copilot" in classifier.keywords_for(Category.AI_IDE)
