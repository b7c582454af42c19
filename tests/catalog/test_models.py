"""
Unit tests for catalog Pydantic models.
Tests data validation and edge cases.
"""

import pytest
from pydantic import ValidationError

from catalog.models import Book, BookCreate, BookUpdate, CategorySummary, ReviewCreate


class TestBook:
    """Test cases for Book model."""

    def test_resolved_category(self, book_document):
        """A populated category is parsed into a summary."""
        book = Book(**dict(book_document, category={"id": "c1", "name": "Sci-Fi", "description": None}))

        assert isinstance(book.category, CategorySummary)
        assert book.category.name == "Sci-Fi"

    def test_unresolved_category(self, book_document):
        """A missing category is allowed."""
        book = Book(**book_document)

        assert book.category is None
        assert book.reviews == []

    def test_raw_category_id_rejected(self, book_document):
        """Categories must be resolved before a Book is built."""
        with pytest.raises(ValidationError):
            Book(**dict(book_document, category="665f1c2e8b3e4a0087654321"))

    def test_rating_above_five_rejected(self, book_document):
        with pytest.raises(ValidationError):
            Book(**dict(book_document, rating=5.5))


class TestBookCreate:
    """Test cases for BookCreate model."""

    def test_everything_optional(self):
        payload = BookCreate()

        assert payload.category is None
        assert payload.price is None

    def test_negative_price_rejected(self):
        with pytest.raises(ValidationError):
            BookCreate(price=-1)


class TestBookUpdate:
    """Test cases for BookUpdate model."""

    def test_falsy_values_are_not_supplied(self):
        """Zero and empty values do not replace stored fields."""
        payload = BookUpdate(count_in_stock=0, price=0, description="", name="New name")

        assert payload.supplied_fields() == {"name": "New name"}

    def test_truthy_values_are_supplied(self):
        payload = BookUpdate(count_in_stock=7, price=12.5, category="c1")

        assert payload.supplied_fields() == {"count_in_stock": 7, "price": 12.5, "category": "c1"}


class TestReviewCreate:
    """Test cases for ReviewCreate model."""

    @pytest.mark.parametrize("rating", [0, 6])
    def test_rating_out_of_range(self, rating):
        with pytest.raises(ValidationError):
            ReviewCreate(rating=rating, comment="x")

    def test_comment_is_trimmed(self):
        review = ReviewCreate(rating=5, comment="  loved it  ")

        assert review.comment == "loved it"
