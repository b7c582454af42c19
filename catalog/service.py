"""
Catalog service layer.

Implements book listing and search, lookup, create/update/delete, review
submission and category operations on top of ``CatalogDatabase``.
"""

import math
import re
from typing import Any, Dict, List, Optional

import structlog
from pymongo import DESCENDING

from .database import CatalogDatabase
from .errors import (
    CatalogValidationError, ConflictError, DuplicateReviewError,
    NotAuthorizedError, NotFoundError
)
from .models import (
    BOOK_DEFAULTS, PAGE_SIZE, TOP_RATED_LIMIT,
    Book, BookCreate, BookPage, BookUpdate, Category, CategoryCreate,
    CategorySummary, CurrentUser, ReviewCreate
)
from .reviews import build_review, find_review_by, summarize_reviews

logger = structlog.get_logger(__name__)

# Attempts for the compare-and-set review write before giving up
REVIEW_WRITE_ATTEMPTS = 3


def parse_page_number(value: Any) -> int:
    """
    Normalise a requested page number.

    Missing, empty or non-numeric values become 1, as do values below 1.
    """
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 1
    return max(page, 1)


def keyword_filter(keyword: Optional[str]) -> Dict[str, Any]:
    """Case-insensitive substring match on the book name."""
    if not keyword:
        return {}
    return {"name": {"$regex": re.escape(keyword), "$options": "i"}}


def reviews_unchanged(stored_reviews: Optional[List[Dict[str, Any]]]) -> Dict[str, Any]:
    """Filter matching a book whose review list is still the one that was read."""
    if not stored_reviews:
        # $size never matches a missing field
        return {"reviews": {"$in": [None, []]}}
    return {"reviews": {"$size": len(stored_reviews)}}


class CatalogService:
    """Stateless catalog operations."""

    def __init__(self, database: CatalogDatabase):
        self.database = database

    async def _populate_categories(self, documents: List[Dict[str, Any]]) -> List[Book]:
        """Resolve each document's category id into a CategorySummary."""
        category_ids = {doc["category"] for doc in documents if doc.get("category")}
        categories = await self.database.get_categories_by_ids(category_ids) if category_ids else {}

        books = []
        for doc in documents:
            category = categories.get(doc.get("category"))
            summary = None
            if category:
                summary = CategorySummary(
                    id=category["id"],
                    name=category["name"],
                    description=category.get("description")
                )
            books.append(Book(**dict(doc, category=summary)))
        return books

    async def _get_book_document(self, book_id: str) -> Dict[str, Any]:
        document = await self.database.get_book_by_id(book_id)
        if document is None:
            raise NotFoundError("Book not found")
        return document

    async def _require_category(self, category_id: str) -> Dict[str, Any]:
        category = await self.database.get_category_by_id(category_id)
        if category is None:
            raise CatalogValidationError("Category not found")
        return category

    async def list_books(self, keyword: Optional[str] = None, page: Any = 1) -> BookPage:
        """
        List books matching an optional keyword, one page at a time.

        Args:
            keyword: Substring to look for in book names, case-insensitive
            page: Requested page number (normalised with parse_page_number)

        Returns:
            BookPage with at most PAGE_SIZE books
        """
        page = parse_page_number(page)
        filter_query = keyword_filter(keyword)

        total = await self.database.count_books(filter_query)
        total_pages = math.ceil(total / PAGE_SIZE)

        # Pages past the end are empty; their skip may not fit in an int64
        books = []
        if page <= max(total_pages, 1):
            documents = await self.database.find_books(
                filter_query,
                skip=PAGE_SIZE * (page - 1),
                limit=PAGE_SIZE
            )
            books = await self._populate_categories(documents)

        logger.debug("Listed books", keyword=keyword, page=page, total=total)

        return BookPage(
            books=books,
            total=total,
            page=page,
            per_page=PAGE_SIZE,
            total_pages=total_pages,
            has_next=page < total_pages,
            has_prev=page > 1
        )

    async def get_book(self, book_id: str) -> Book:
        """Fetch one book with its category resolved."""
        document = await self._get_book_document(book_id)
        books = await self._populate_categories([document])
        return books[0]

    async def create_book(self, payload: BookCreate, user: Optional[CurrentUser]) -> Book:
        """
        Create a book owned by ``user``.

        Missing optional fields fall back to BOOK_DEFAULTS.

        Raises:
            NotAuthorizedError: If no user is acting
            CatalogValidationError: If the category is missing or unknown
        """
        if user is None:
            raise NotAuthorizedError("Not authorized, no token")
        if not payload.category:
            raise CatalogValidationError("Category is required")

        await self._require_category(payload.category)

        book_data = {
            field: getattr(payload, field) or default
            for field, default in BOOK_DEFAULTS.items()
        }
        book_data.update(
            category=payload.category,
            user=user.id,
            reviews=[],
            num_reviews=0,
            rating=0,
        )

        document = await self.database.insert_book(book_data)
        logger.info("Book created", book_id=document["id"], name=document["name"], user=user.id)

        books = await self._populate_categories([document])
        return books[0]

    async def update_book(self, book_id: str, payload: BookUpdate) -> Book:
        """
        Replace the supplied fields of a book.

        Zero and empty values count as not supplied and leave the stored
        value unchanged.
        """
        document = await self._get_book_document(book_id)
        changes = payload.supplied_fields()

        if "category" in changes and changes["category"] != document.get("category"):
            await self._require_category(changes["category"])

        if changes:
            document = await self.database.update_book(book_id, changes)
            if document is None:
                raise NotFoundError("Book not found")
            logger.info("Book updated", book_id=book_id, fields=sorted(changes))

        books = await self._populate_categories([document])
        return books[0]

    async def delete_book(self, book_id: str, user: Optional[CurrentUser]) -> Dict[str, str]:
        """
        Hard-delete a book.

        Existence is checked before privilege, so a missing book is reported
        as NotFoundError even to non-admins.
        """
        await self._get_book_document(book_id)

        if user is None or not user.is_admin:
            raise NotAuthorizedError("Not authorized to delete this book")

        await self.database.delete_book(book_id)
        logger.info("Book deleted", book_id=book_id, user=user.id)
        return {"message": "Book removed"}

    async def add_review(self, book_id: str, user: CurrentUser, payload: ReviewCreate) -> Dict[str, str]:
        """
        Append a review and recompute num_reviews and rating.

        The write only succeeds if the stored review list has not grown since
        it was read; otherwise the read-check-write is repeated.

        Raises:
            NotFoundError: If the book does not exist
            DuplicateReviewError: If ``user`` already reviewed the book
            ConflictError: If concurrent writes kept winning
        """
        for attempt in range(1, REVIEW_WRITE_ATTEMPTS + 1):
            document = await self._get_book_document(book_id)
            stored_reviews = document.get("reviews")
            reviews = list(stored_reviews or [])

            if find_review_by(reviews, user.id):
                raise DuplicateReviewError()

            reviews.append(build_review(user, payload.rating, payload.comment))
            num_reviews, rating = summarize_reviews(reviews)

            updated = await self.database.update_book(
                book_id,
                {"reviews": reviews, "num_reviews": num_reviews, "rating": rating},
                expected=reviews_unchanged(stored_reviews)
            )
            if updated is not None:
                logger.info("Review added", book_id=book_id, user=user.id, rating=payload.rating)
                return {"message": "Review added"}

            logger.warning("Review write lost a race, retrying", book_id=book_id, attempt=attempt)

        raise ConflictError("Book was modified concurrently, please retry")

    async def top_rated_books(self, limit: int = TOP_RATED_LIMIT) -> List[Book]:
        """Return the highest rated books, best first."""
        documents = await self.database.find_books({}, limit=limit, sort=[("rating", DESCENDING)])
        return await self._populate_categories(documents)

    async def books_by_category(self, category_id: str) -> List[Book]:
        """Return every book in a category, unpaginated."""
        try:
            documents = await self.database.find_books({"category": category_id})
        except Exception as e:
            logger.error("Failed to fetch books by category", category_id=category_id, error=str(e))
            raise
        return await self._populate_categories(documents)

    async def list_categories(self) -> List[Category]:
        """List all categories."""
        documents = await self.database.list_categories()
        return [Category(**doc) for doc in documents]

    async def get_category(self, category_id: str) -> Category:
        """Fetch one category."""
        document = await self.database.get_category_by_id(category_id)
        if document is None:
            raise NotFoundError("Category not found")
        return Category(**document)

    async def create_category(self, payload: CategoryCreate) -> Category:
        """Create a category with a unique name."""
        document = await self.database.insert_category(payload.dict())
        if document is None:
            raise CatalogValidationError("Category already exists")
        logger.info("Category created", category_id=document["id"], name=document["name"])
        return Category(**document)
