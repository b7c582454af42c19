"""
MongoDB database utilities for async operations.
Handles connection, indexing, and CRUD operations for books, categories and users.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import ConnectionFailure, DuplicateKeyError

logger = structlog.get_logger(__name__)


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Convert a string id to ObjectId, returning None when it is malformed."""
    if isinstance(value, ObjectId):
        return value
    # ObjectId(None) would generate a fresh id
    if value is None:
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def serialize_document(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Replace MongoDB's ``_id`` with a string ``id``."""
    if document is None:
        return None
    document = dict(document)
    document["id"] = str(document.pop("_id"))
    return document


class CatalogDatabase:
    """
    Async MongoDB manager for catalog data.

    All lookups by id treat malformed ids as missing records, so callers only
    ever see ``None`` for "no such document".
    """

    def __init__(
        self,
        connection_url: str,
        database_name: str,
        books_collection: str = "books",
        categories_collection: str = "categories",
        users_collection: str = "users",
        server_selection_timeout_ms: int = 5000
    ):
        """
        Initialize the catalog database manager.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            books_collection: Collection holding book documents
            categories_collection: Collection holding category documents
            users_collection: Collection holding API users
            server_selection_timeout_ms: Driver server selection timeout
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.books_collection_name = books_collection
        self.categories_collection_name = categories_collection
        self.users_collection_name = users_collection
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.books: Optional[AsyncIOMotorCollection] = None
        self.categories: Optional[AsyncIOMotorCollection] = None
        self.users: Optional[AsyncIOMotorCollection] = None

    def bind(self, database: AsyncIOMotorDatabase) -> None:
        """Attach collections from an already opened database."""
        self.database = database
        self.books = database[self.books_collection_name]
        self.categories = database[self.categories_collection_name]
        self.users = database[self.users_collection_name]

    async def connect(self) -> None:
        """Establish connection to MongoDB and ensure indexes exist."""
        try:
            self.client = AsyncIOMotorClient(
                self.connection_url,
                serverSelectionTimeoutMS=self.server_selection_timeout_ms
            )
            self.bind(self.client[self.database_name])

            await self.client.admin.command('ping')
            logger.info("Successfully connected to MongoDB", database=self.database_name)

            await self._create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """Create indexes for the catalog's query patterns."""
        try:
            # Keyword search and category lookups
            await self.books.create_index("name")
            await self.books.create_index("category")

            # Top rated listing
            await self.books.create_index([("rating", DESCENDING)])

            await self.categories.create_index("name", unique=True)
            await self.users.create_index("api_key", unique=True)

            logger.info("Successfully created MongoDB indexes")

        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    # Books

    async def count_books(self, filter_query: Dict[str, Any]) -> int:
        """Count books matching a filter."""
        try:
            return await self.books.count_documents(filter_query)
        except Exception as e:
            logger.error("Failed to count books", error=str(e))
            raise

    async def find_books(
        self,
        filter_query: Dict[str, Any],
        skip: int = 0,
        limit: int = 0,
        sort: Optional[List[Tuple[str, int]]] = None
    ) -> List[Dict[str, Any]]:
        """
        Find books matching a filter.

        Args:
            filter_query: MongoDB filter document
            skip: Number of documents to skip
            limit: Maximum number of documents (0 for no limit)
            sort: Optional list of (field, direction) pairs

        Returns:
            List of book documents with string ``id``
        """
        try:
            cursor = self.books.find(filter_query)
            if sort:
                cursor = cursor.sort(sort)
            if skip:
                cursor = cursor.skip(skip)
            if limit:
                cursor = cursor.limit(limit)
            documents = await cursor.to_list(length=None)
            return [serialize_document(doc) for doc in documents]

        except Exception as e:
            logger.error("Failed to find books", error=str(e))
            raise

    async def get_book_by_id(self, book_id: str) -> Optional[Dict[str, Any]]:
        """
        Get a book by id.

        Args:
            book_id: String form of the book's ObjectId

        Returns:
            Book document or None if not found or the id is malformed
        """
        object_id = to_object_id(book_id)
        if object_id is None:
            return None
        try:
            return serialize_document(await self.books.find_one({"_id": object_id}))
        except Exception as e:
            logger.error("Failed to get book by ID", book_id=book_id, error=str(e))
            raise

    async def insert_book(self, book_data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a book and return the stored document."""
        try:
            now = datetime.utcnow()
            document = dict(book_data, created_at=now, updated_at=now)
            result = await self.books.insert_one(document)
            document["_id"] = result.inserted_id
            logger.debug("Successfully inserted book", book_id=str(result.inserted_id))
            return serialize_document(document)

        except Exception as e:
            logger.error("Failed to insert book", book_name=book_data.get("name"), error=str(e))
            raise

    async def update_book(
        self,
        book_id: str,
        update_data: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """
        Set fields on a book.

        Args:
            book_id: Book identifier
            update_data: Fields to set
            expected: Extra filter conditions the stored document must satisfy

        Returns:
            The updated document, or None if no document matched
        """
        object_id = to_object_id(book_id)
        if object_id is None:
            return None
        try:
            filter_query = {"_id": object_id}
            if expected:
                filter_query.update(expected)

            document = await self.books.find_one_and_update(
                filter_query,
                {"$set": dict(update_data, updated_at=datetime.utcnow())},
                return_document=ReturnDocument.AFTER
            )
            if document is None:
                logger.warning("Book not matched for update", book_id=book_id)
            return serialize_document(document)

        except Exception as e:
            logger.error("Failed to update book", book_id=book_id, error=str(e))
            raise

    async def delete_book(self, book_id: str) -> bool:
        """
        Delete a book by id.

        Returns:
            bool: True if deleted, False if not found
        """
        object_id = to_object_id(book_id)
        if object_id is None:
            return False
        try:
            result = await self.books.delete_one({"_id": object_id})
            if result.deleted_count > 0:
                logger.debug("Successfully deleted book", book_id=book_id)
                return True
            logger.warning("Book not found for deletion", book_id=book_id)
            return False

        except Exception as e:
            logger.error("Failed to delete book", book_id=book_id, error=str(e))
            raise

    # Categories

    async def get_category_by_id(self, category_id: str) -> Optional[Dict[str, Any]]:
        """Get a category by id, None if missing or malformed."""
        object_id = to_object_id(category_id)
        if object_id is None:
            return None
        try:
            return serialize_document(await self.categories.find_one({"_id": object_id}))
        except Exception as e:
            logger.error("Failed to get category by ID", category_id=category_id, error=str(e))
            raise

    async def get_categories_by_ids(self, category_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """
        Fetch several categories at once.

        Returns:
            Mapping of category id to category document; unknown ids are absent
        """
        object_ids = [oid for oid in (to_object_id(cid) for cid in set(category_ids)) if oid]
        if not object_ids:
            return {}
        try:
            cursor = self.categories.find({"_id": {"$in": object_ids}})
            documents = await cursor.to_list(length=None)
            return {doc["id"]: doc for doc in map(serialize_document, documents)}
        except Exception as e:
            logger.error("Failed to get categories", error=str(e))
            raise

    async def list_categories(self) -> List[Dict[str, Any]]:
        """List all categories ordered by name."""
        try:
            cursor = self.categories.find({}).sort("name", 1)
            documents = await cursor.to_list(length=None)
            return [serialize_document(doc) for doc in documents]
        except Exception as e:
            logger.error("Failed to list categories", error=str(e))
            raise

    async def insert_category(self, category_data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """
        Insert a category.

        Returns:
            The stored document, or None if a category with that name exists
        """
        try:
            document = dict(category_data, created_at=datetime.utcnow())
            result = await self.categories.insert_one(document)
            document["_id"] = result.inserted_id
            logger.debug("Successfully inserted category", category_id=str(result.inserted_id))
            return serialize_document(document)
        except DuplicateKeyError:
            logger.warning("Category already exists", name=category_data.get("name"))
            return None
        except Exception as e:
            logger.error("Failed to insert category", name=category_data.get("name"), error=str(e))
            raise

    # Users

    async def get_user_by_api_key(self, api_key: str) -> Optional[Dict[str, Any]]:
        """Look up an API user by key."""
        try:
            return serialize_document(await self.users.find_one({"api_key": api_key}))
        except Exception as e:
            logger.error("Failed to get user by API key", error=str(e))
            raise

    async def insert_user(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert an API user and return the stored document."""
        try:
            document = dict(user_data, created_at=datetime.utcnow())
            result = await self.users.insert_one(document)
            document["_id"] = result.inserted_id
            logger.info("API user created", name=user_data.get("name"), is_admin=user_data.get("is_admin"))
            return serialize_document(document)
        except Exception as e:
            logger.error("Failed to insert user", name=user_data.get("name"), error=str(e))
            raise

    async def list_users(self) -> List[Dict[str, Any]]:
        """List all API users."""
        try:
            documents = await self.users.find({}).to_list(length=None)
            return [serialize_document(doc) for doc in documents]
        except Exception as e:
            logger.error("Failed to list users", error=str(e))
            raise

    async def count_users(self) -> int:
        """Count API users."""
        try:
            return await self.users.count_documents({})
        except Exception as e:
            logger.error("Failed to count users", error=str(e))
            raise

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            books_count = await self.books.count_documents({})
            categories_count = await self.categories.count_documents({})

            return {
                "status": "healthy",
                "books_count": books_count,
                "categories_count": categories_count
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
