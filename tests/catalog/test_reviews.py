"""
Unit tests for review aggregation helpers.
"""

import pytest

from catalog.reviews import build_review, find_review_by, summarize_reviews


class TestSummarizeReviews:
    """Test cases for summarize_reviews."""

    def test_no_reviews(self):
        """An unreviewed book has zero count and zero rating."""
        assert summarize_reviews([]) == (0, 0)

    def test_mean_is_not_rounded(self):
        """The mean keeps full floating point precision."""
        count, rating = summarize_reviews([{"rating": 5}, {"rating": 4}, {"rating": 4}])

        assert count == 3
        assert rating == pytest.approx(13 / 3)

    def test_single_review(self):
        count, rating = summarize_reviews([{"rating": 2}])

        assert count == 1
        assert rating == 2


class TestFindReviewBy:
    """Test cases for find_review_by."""

    def test_finds_matching_user(self):
        reviews = [{"user": "a", "rating": 3}, {"user": "b", "rating": 5}]

        assert find_review_by(reviews, "b")["rating"] == 5

    def test_missing_user(self):
        assert find_review_by([{"user": "a", "rating": 3}], "z") is None


def test_build_review_captures_reviewer(reader):
    """The review stores the reviewer's name and id."""
    review = build_review(reader, 4, "Great read")

    assert review["name"] == "Jane Reader"
    assert review["user"] == reader.id
    assert review["rating"] == 4
    assert review["comment"] == "Great read"
    assert review["created_at"] is not None
