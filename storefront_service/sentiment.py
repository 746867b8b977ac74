"""
sentiment.py — Keyword-Based Review Sentiment

Review comments are classified as positive, negative or neutral. The
classifier is pluggable: anything with a `classify(text) -> Sentiment`
method can be handed to the ledger, so the keyword lists can be swapped
without touching the aggregation in `ledger.py`.
"""

from enum import Enum
from typing import Iterable, Protocol

from .models import SentimentTally

POSITIVE_KEYWORDS = (
    "great", "excellent", "good", "amazing", "perfect",
    "wonderful", "love", "fantastic", "awesome",
)
NEGATIVE_KEYWORDS = (
    "bad", "poor", "disappointing", "broken", "terrible",
    "awful", "horrible", "hate", "waste",
)


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class SentimentClassifier(Protocol):
    def classify(self, text: str) -> Sentiment:
        ...


class KeywordSentimentClassifier:
    """
    Classifies text by case-insensitive substring matches against two keyword sets.

    A text that matches only positive keywords is positive, only negative
    keywords is negative. Matching both sets, or neither, yields neutral.
    """

    def __init__(self, positive: Iterable[str] = POSITIVE_KEYWORDS, negative: Iterable[str] = NEGATIVE_KEYWORDS):
        self.positive = tuple(k.lower() for k in positive)
        self.negative = tuple(k.lower() for k in negative)

    def classify(self, text: str) -> Sentiment:
        lowered = (text or "").lower()
        has_positive = any(keyword in lowered for keyword in self.positive)
        has_negative = any(keyword in lowered for keyword in self.negative)

        if has_positive and not has_negative:
            return Sentiment.POSITIVE
        if has_negative and not has_positive:
            return Sentiment.NEGATIVE
        return Sentiment.NEUTRAL


def tally(comments: Iterable[str], classifier: SentimentClassifier) -> SentimentTally:
    """Counts the comments per sentiment class."""
    counts = {s.value: 0 for s in Sentiment}
    for comment in comments:
        counts[classifier.classify(comment).value] += 1
    return SentimentTally(**counts)
