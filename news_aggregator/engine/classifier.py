"""Keyword-scoring classifier assigning news items to AI categories."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from threading import Lock
from typing import Iterable, Mapping, Sequence

import structlog

from ..config import Category, ClassifierSettings
from ..errors import ValidationError
from .records import NewsItem, RawRecord, make_item_id, utcnow

KEYWORDS: dict[Category, tuple[str, ...]] = {
    Category.AI_MODELS: (
        "GPT", "ChatGPT", "LLM", "Large Language Model", "大規模言語モデル",
        "BERT", "Transformer", "OpenAI", "Claude", "Gemini", "Llama",
        "モデル", "model", "学習", "training", "fine-tuning", "ファインチューニング",
        "neural network", "ニューラルネットワーク", "deep learning", "ディープラーニング",
        "machine learning", "機械学習", "AI model", "AIモデル",
    ),
    Category.AI_ASSISTANT: (
        "ChatGPT", "Siri", "Alexa", "Google Assistant", "Cortana",
        "アシスタント", "assistant", "チャットボット", "chatbot", "bot",
        "対話", "conversation", "chat", "チャット", "会話",
        "virtual assistant", "バーチャルアシスタント", "AI助手", "AI秘書",
    ),
    Category.AI_AGENT: (
        "agent", "エージェント", "autonomous", "自律", "automation", "自動化",
        "workflow", "ワークフロー", "task automation", "タスク自動化",
        "intelligent agent", "インテリジェントエージェント", "AI agent", "AIエージェント",
        "multi-agent", "マルチエージェント", "agent system", "エージェントシステム",
    ),
    Category.AI_IDE: (
        "IDE", "editor", "エディタ", "code", "コード", "programming", "プログラミング",
        "development", "開発", "coding", "コーディング", "GitHub Copilot", "Copilot",
        "code completion", "コード補完", "code generation", "コード生成",
        "VS Code", "Visual Studio", "IntelliJ", "development environment", "開発環境",
    ),
    Category.AI_CLI: (
        "CLI", "command line", "コマンドライン", "terminal", "ターミナル",
        "shell", "シェル", "command", "コマンド", "bash", "zsh",
        "CLI tool", "CLIツール", "command line tool", "コマンドラインツール",
        "terminal AI", "ターミナルAI",
    ),
    Category.AI_SEARCH: (
        "search", "検索", "knowledge base", "ナレッジベース", "knowledge",
        "information retrieval", "情報検索", "semantic search", "セマンティック検索",
        "vector search", "ベクトル検索", "RAG", "retrieval", "検索拡張生成",
        "database", "データベース", "index", "インデックス", "Elasticsearch",
    ),
    Category.AI_INTEGRATION: (
        "integration", "統合", "SaaS", "API", "webhook", "Zapier", "Make",
        "workflow automation", "ワークフロー自動化", "business process", "ビジネスプロセス",
        "enterprise", "エンタープライズ", "platform", "プラットフォーム",
        "connector", "コネクタ", "middleware", "ミドルウェア",
    ),
    Category.AI_MULTIMODAL: (
        "multimodal", "マルチモーダル", "voice", "音声", "speech", "スピーチ",
        "image", "画像", "video", "動画", "vision", "ビジョン", "audio", "オーディオ",
        "text-to-speech", "speech-to-text", "音声認識", "音声合成",
        "computer vision", "コンピュータビジョン", "OCR", "image recognition", "画像認識",
    ),
    Category.AI_NOCODE: (
        "no-code", "ノーコード", "low-code", "ローコード", "drag and drop", "ドラッグアンドドロップ",
        "visual programming", "ビジュアルプログラミング", "builder", "ビルダー",
        "template", "テンプレート", "workflow builder", "ワークフロービルダー",
        "automation platform", "自動化プラットフォーム",
    ),
    Category.AI_DATA_ANALYSIS: (
        "data analysis", "データ分析", "analytics", "アナリティクス", "visualization", "可視化",
        "dashboard", "ダッシュボード", "report", "レポート", "insight", "インサイト",
        "business intelligence", "BI", "data science", "データサイエンス",
        "statistics", "統計", "metrics", "メトリクス", "KPI", "data mining", "データマイニング",
    ),
}


def keyword_weight(keyword: str) -> float:
    """Longer keywords are more specific and count for more."""

    if len(keyword) > 10:
        return 3.0
    if len(keyword) > 6:
        return 2.0
    return 1.0


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    category: Category
    confidence: float
    matched_keywords: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class ClassificationCheck:
    """Outcome of comparing a classification with an expected category."""

    is_correct: bool
    actual_category: Category
    expected_category: Category
    confidence: float
    matched_keywords: tuple[str, ...]
    analysis: str


@dataclass(slots=True)
class AccuracyReport:
    total_classifications: int = 0
    category_distribution: dict[Category, int] = field(default_factory=dict)
    most_common_category: Category | None = None
    least_common_category: Category | None = None


class KeywordClassifier:
    """Score text against per-category keyword lists.

    The category with the highest weighted keyword count wins. When the
    length-normalised confidence falls below ``confidence_threshold`` the
    caller-supplied default (normally the source's category) is used instead.
    Scoring failures never propagate: ``default_category`` is returned.
    """

    def __init__(
        self,
        settings: ClassifierSettings | None = None,
        keywords: Mapping[Category, Sequence[str]] | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        settings = settings or ClassifierSettings()
        self.logger = logger or structlog.get_logger("news_aggregator.classifier")
        self._keywords: dict[Category, tuple[str, ...]] = {
            category: tuple(words) for category, words in (keywords or KEYWORDS).items()
        }
        self._default_category = settings.default_category
        self._threshold = settings.confidence_threshold
        self._stats: Counter[Category] = Counter()
        self._stats_lock = Lock()

    # ------------------------------------------------------------------
    # Mutable configuration
    # ------------------------------------------------------------------
    @property
    def default_category(self) -> Category:
        return self._default_category

    @default_category.setter
    def default_category(self, category: Category) -> None:
        if not isinstance(category, Category):
            try:
                category = Category(category)
            except ValueError as exc:
                raise ValidationError(f"Unknown category: {category!r}") from exc
        self._default_category = category

    @property
    def confidence_threshold(self) -> float:
        return self._threshold

    @confidence_threshold.setter
    def confidence_threshold(self, threshold: float) -> None:
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            raise ValidationError("Confidence threshold must be a number")
        if not 0.0 <= threshold <= 1.0:
            raise ValidationError("Confidence threshold must be between 0.0 and 1.0")
        self._threshold = float(threshold)

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------
    def analyze_text(self, text: str) -> ClassificationResult:
        combined = text.lower()
        best_category = self._default_category
        best_score = 0.0
        for category, score in self._scores(combined).items():
            if score > best_score:
                best_category, best_score = category, score
        matched = self._matched_keywords(combined, best_category) if best_score > 0 else ()
        confidence = min(best_score / max(len(combined) / 100, 1), 1.0)
        return ClassificationResult(best_category, confidence, matched)

    def analyze(self, title: str, description: str) -> ClassificationResult:
        return self.analyze_text(f"{title} {description}")

    def classify(self, text: str, default_category: Category) -> Category:
        try:
            result = self.analyze_text(text)
        except Exception as exc:  # noqa: BLE001
            self.logger.error("classification_failed", text=text[:80], error=str(exc))
            return self._default_category
        if result.confidence < self._threshold:
            self.logger.debug(
                "low_confidence_fallback",
                text=text[:80],
                confidence=round(result.confidence, 2),
                category=default_category.value,
            )
            return default_category
        self.logger.debug(
            "classified",
            text=text[:80],
            category=result.category.value,
            confidence=round(result.confidence, 2),
            keywords=list(result.matched_keywords),
        )
        return result.category

    def classify_record(self, record: RawRecord) -> NewsItem:
        category = self.classify(record.text, record.default_category)
        return NewsItem(
            id=make_item_id(record.link, record.published_at),
            title=record.title,
            description=record.description,
            link=record.link,
            published_at=record.published_at,
            source_name=record.source_name,
            category=category,
            content=record.content,
            ingested_at=utcnow(),
        )

    def classify_batch(self, records: Iterable[RawRecord]) -> list[NewsItem]:
        items: list[NewsItem] = []
        for record in records:
            item = self.classify_record(record)
            with self._stats_lock:
                self._stats[item.category] += 1
            items.append(item)
        return items

    def _scores(self, text: str) -> dict[Category, float]:
        scores: dict[Category, float] = {}
        for category, keywords in self._keywords.items():
            score = 0.0
            for keyword in keywords:
                occurrences = text.count(keyword.lower())
                if occurrences:
                    score += occurrences * keyword_weight(keyword)
            scores[category] = score
        return scores

    def _matched_keywords(self, text: str, category: Category) -> tuple[str, ...]:
        return tuple(kw for kw in self._keywords.get(category, ()) if kw.lower() in text)

    # ------------------------------------------------------------------
    # Introspection and reporting
    # ------------------------------------------------------------------
    def available_categories(self) -> list[Category]:
        return list(Category)

    def keywords_for(self, category: Category) -> list[str]:
        return list(self._keywords.get(category, ()))

    def classification_stats(self) -> dict[Category, int]:
        with self._stats_lock:
            return dict(self._stats)

    def reset_stats(self) -> None:
        with self._stats_lock:
            self._stats.clear()

    def accuracy_report(self) -> AccuracyReport:
        stats = self.classification_stats()
        report = AccuracyReport(
            total_classifications=sum(stats.values()),
            category_distribution=stats,
        )
        counted = [(category, count) for category, count in stats.items() if count > 0]
        if counted:
            report.most_common_category = max(counted, key=lambda pair: pair[1])[0]
            report.least_common_category = min(counted, key=lambda pair: pair[1])[0]
        return report

    def validate_classification(self, record: RawRecord, expected: Category) -> ClassificationCheck:
        result = self.analyze(record.title, record.description)
        actual = result.category if result.confidence >= self._threshold else record.default_category
        if actual is expected:
            analysis = f"Correct classification with {result.confidence:.2f} confidence"
        else:
            analysis = (
                f"Incorrect classification: expected {expected.value}, got {actual.value} "
                f"(confidence: {result.confidence:.2f})"
            )
        return ClassificationCheck(
            is_correct=actual is expected,
            actual_category=actual,
            expected_category=expected,
            confidence=result.confidence,
            matched_keywords=result.matched_keywords,
            analysis=analysis,
        )


__all__ = [
    "AccuracyReport",
    "ClassificationCheck",
    "ClassificationResult",
    "KEYWORDS",
    "KeywordClassifier",
    "keyword_weight",
]
