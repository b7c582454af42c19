"""
Pytest configuration and shared fixtures.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from catalog.database import CatalogDatabase, to_object_id
from catalog.models import CurrentUser
from catalog.service import CatalogService


class InMemoryCatalogDatabase:
    """
    Dict-backed stand-in for CatalogDatabase.

    Supports the filter shapes the catalog service issues: match-all,
    case-insensitive ``$regex`` on a field, ``$size`` and ``$in`` guards and
    plain equality.
    """

    def __init__(self):
        self.books: Dict[str, Dict[str, Any]] = {}
        self.categories: Dict[str, Dict[str, Any]] = {}
        self.users: Dict[str, Dict[str, Any]] = {}

    @staticmethod
    def _matches(document: Dict[str, Any], filter_query: Dict[str, Any]) -> bool:
        for field, condition in filter_query.items():
            value = document.get(field)
            if isinstance(condition, dict) and "$regex" in condition:
                flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                if value is None or not re.search(condition["$regex"], value, flags):
                    return False
            elif isinstance(condition, dict) and "$size" in condition:
                if not isinstance(value, list) or len(value) != condition["$size"]:
                    return False
            elif isinstance(condition, dict) and "$in" in condition:
                if value not in condition["$in"]:
                    return False
            elif value != condition:
                return False
        return True

    def add_category(self, name: str, description: Optional[str] = None) -> Dict[str, Any]:
        category_id = str(ObjectId())
        self.categories[category_id] = {
            "id": category_id,
            "name": name,
            "description": description,
            "created_at": datetime.utcnow(),
        }
        return dict(self.categories[category_id])

    async def count_books(self, filter_query):
        return len([doc for doc in self.books.values() if self._matches(doc, filter_query)])

    async def find_books(self, filter_query, skip=0, limit=0, sort=None):
        documents = [dict(doc) for doc in self.books.values() if self._matches(doc, filter_query)]
        for field, direction in reversed(sort or []):
            documents.sort(key=lambda doc: doc.get(field), reverse=direction < 0)
        documents = documents[skip:]
        if limit:
            documents = documents[:limit]
        return documents

    async def get_book_by_id(self, book_id):
        if to_object_id(book_id) is None or book_id not in self.books:
            return None
        return dict(self.books[book_id])

    async def insert_book(self, book_data):
        book_id = str(ObjectId())
        now = datetime.utcnow()
        self.books[book_id] = dict(book_data, id=book_id, created_at=now, updated_at=now)
        return dict(self.books[book_id])

    async def update_book(self, book_id, update_data, expected=None):
        document = self.books.get(book_id)
        if document is None or not self._matches(document, expected or {}):
            return None
        document.update(update_data, updated_at=datetime.utcnow())
        return dict(document)

    async def delete_book(self, book_id):
        return self.books.pop(book_id, None) is not None

    async def get_category_by_id(self, category_id):
        category = self.categories.get(category_id)
        return dict(category) if category else None

    async def get_categories_by_ids(self, category_ids):
        return {cid: dict(self.categories[cid]) for cid in category_ids if cid in self.categories}

    async def list_categories(self):
        return sorted((dict(c) for c in self.categories.values()), key=lambda c: c["name"])

    async def insert_category(self, category_data):
        if any(c["name"] == category_data["name"] for c in self.categories.values()):
            return None
        return self.add_category(category_data["name"], category_data.get("description"))

    async def get_user_by_api_key(self, api_key):
        for user in self.users.values():
            if user["api_key"] == api_key:
                return dict(user)
        return None

    async def insert_user(self, user_data):
        user_id = str(ObjectId())
        self.users[user_id] = dict(user_data, id=user_id)
        return dict(self.users[user_id])

    async def list_users(self):
        return [dict(user) for user in self.users.values()]

    async def count_users(self):
        return len(self.users)

    async def health_check(self):
        return {"status": "healthy", "books_count": len(self.books), "categories_count": len(self.categories)}


@pytest.fixture
def memory_db():
    """Create an empty in-memory catalog database."""
    return InMemoryCatalogDatabase()


@pytest.fixture
def catalog_service(memory_db):
    """Create a catalog service over the in-memory database."""
    return CatalogService(memory_db)


@pytest.fixture
def sci_fi_category(memory_db):
    """Seed a category."""
    return memory_db.add_category("Sci-Fi", "Science fiction")


@pytest.fixture
def mock_catalog_db():
    """Create a mock catalog database for testing."""
    database = AsyncMock(spec=CatalogDatabase)
    database.get_categories_by_ids.return_value = {}
    return database


@pytest.fixture
def admin_user():
    """Administrator acting on the catalog."""
    return CurrentUser(id=str(ObjectId()), name="Admin User", email="admin@example.com", is_admin=True)


@pytest.fixture
def reader():
    """Regular authenticated user."""
    return CurrentUser(id=str(ObjectId()), name="Jane Reader", email="jane@example.com")


@pytest.fixture
def other_reader():
    """A second regular user."""
    return CurrentUser(id=str(ObjectId()), name="John Reader", email="john@example.com")


def make_book_document(**overrides) -> Dict[str, Any]:
    """Build a stored book document with sensible values."""
    document = {
        "id": str(ObjectId()),
        "name": "Dune",
        "price": 9.99,
        "author": "Frank Herbert",
        "genre": "Science Fiction",
        "description": "Desert planet",
        "image": "/images/sample.jpg",
        "count_in_stock": 3,
        "category": None,
        "user": None,
        "reviews": [],
        "num_reviews": 0,
        "rating": 0,
    }
    document.update(overrides)
    return document


@pytest.fixture
def make_book():
    """Factory for stored book documents."""
    return make_book_document


@pytest.fixture
def book_document():
    """Create a sample stored book document."""
    return make_book_document()


@pytest.fixture
def seeded_books(memory_db, sci_fi_category) -> List[Dict[str, Any]]:
    """Seed 25 books in the Sci-Fi category."""
    books = []
    for index in range(25):
        book_id = str(ObjectId())
        memory_db.books[book_id] = make_book_document(
            id=book_id,
            name=f"Volume {index:02d}",
            category=sci_fi_category["id"],
        )
        books.append(memory_db.books[book_id])
    return books
