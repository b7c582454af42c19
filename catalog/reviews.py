"""
Review aggregation helpers.

``num_reviews`` and ``rating`` on a book are derived fields: they are always
recomputed from the full review list, never adjusted incrementally.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import CurrentUser


def summarize_reviews(reviews: Iterable[Dict[str, Any]]) -> Tuple[int, float]:
    """
    Compute the derived review fields for a book.

    Args:
        reviews: Review documents, each with a numeric ``rating``

    Returns:
        Tuple of (number of reviews, arithmetic mean rating). The mean is 0
        when there are no reviews and is not rounded.
    """
    ratings = [review["rating"] for review in reviews]
    if not ratings:
        return 0, 0
    return len(ratings), sum(ratings) / len(ratings)


def find_review_by(reviews: List[Dict[str, Any]], user_id: str) -> Optional[Dict[str, Any]]:
    """Return the review written by ``user_id``, if any."""
    for review in reviews:
        if str(review.get("user")) == str(user_id):
            return review
    return None


def build_review(user: CurrentUser, rating: int, comment: str) -> Dict[str, Any]:
    """Build the review document stored on the book."""
    return {
        "name": user.name,
        "rating": int(rating),
        "comment": comment,
        "user": user.id,
        "created_at": datetime.utcnow(),
    }
