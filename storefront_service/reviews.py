"""
reviews.py — Review Log and Rating Aggregation

Reviews are an append-only log kept in the `reviews` collection of the store.
The ledger only reads them, to annotate catalog entries with an average
rating and to feed the sentiment tally.
"""

import threading
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from .logging_config import get_logger
from .models import Review, ReviewCreate, parse
from .store import REVIEWS, Store

log = get_logger(__name__)


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a `Z` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def average_rating(product_id: int, reviews: Iterable[Review]) -> float:
    """
    Returns the mean rating of a product's reviews, rounded to 2 decimals.

    A product without reviews has an average rating of exactly 0.
    """
    ratings = [r.rating for r in reviews if r.productId == product_id]
    if not ratings:
        return 0.0
    return round(sum(ratings) / len(ratings), 2)


class ReviewLog:
    """Append-only review log backed by a `Store`."""

    def __init__(self, store: Store):
        self.store = store
        self._lock = threading.Lock()

    def list_reviews(self, product_id: Optional[int] = None) -> List[Review]:
        reviews = [Review.model_validate(r) for r in self.store.load(REVIEWS)]
        if product_id is None:
            return reviews
        return [r for r in reviews if r.productId == product_id]

    def add_review(self, fields) -> Review:
        """
        Creates a review and appends it to the log.

        Args:
            fields (ReviewCreate | dict): `productId`, `rating` (1-5) and a non-blank `comment`.

        Returns:
            Review: The stored review with its generated id and timestamp.

        Raises:
            InvalidInput: If a required field is missing or invalid.
            PersistenceFailure: If the review log cannot be read or written.
        """
        data = parse(ReviewCreate, fields)
        review = Review(
            id=str(uuid.uuid4()),
            productId=data.productId,
            rating=data.rating,
            comment=data.comment,
            timestamp=utc_timestamp(),
        )
        with self._lock:
            records = self.store.load(REVIEWS)
            records.append(review.model_dump())
            self.store.save(REVIEWS, records)

        log.info(f"[Product: {review.productId}] Review {review.id} stored (rating {review.rating}).")
        return review
