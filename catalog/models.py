"""
Pydantic models for catalog data validation and serialization.
Implements the Book, Review and Category schemas plus request payloads.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, validator


PAGE_SIZE = 10
TOP_RATED_LIMIT = 4

BOOK_DEFAULTS: Dict[str, Any] = {
    "name": "No name",
    "price": 0,
    "author": "No author",
    "genre": "Unknown",
    "description": "No description",
    "image": "/images/sample.jpg",
    "count_in_stock": 0,
}


class CurrentUser(BaseModel):
    """Authenticated user acting on the catalog."""
    id: str = Field(..., description="User identifier")
    name: str = Field(..., description="Display name")
    email: Optional[str] = Field(None, description="Contact email")
    is_admin: bool = Field(default=False, description="Administrator privilege")


class Review(BaseModel):
    """A single review embedded in a book."""
    name: str = Field(..., description="Reviewer display name")
    rating: int = Field(..., ge=1, le=5, description="Rating (1-5)")
    comment: str = Field(default="", description="Review text")
    user: str = Field(..., description="Reviewer identifier")
    created_at: Optional[datetime] = Field(None, description="When the review was written")

    class Config:
        json_encoders = {
            datetime: lambda v: v.isoformat()
        }


class CategorySummary(BaseModel):
    """Category fields projected into book responses."""
    id: str = Field(..., description="Category identifier")
    name: str = Field(..., description="Category name")
    description: Optional[str] = Field(None, description="Category description")


class Category(CategorySummary):
    """Category record."""
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")

    class Config:
        json_encoders = {
            datetime: lambda v: v.isoformat()
        }


class Book(BaseModel):
    """
    Book record as returned by the catalog.

    ``category`` holds the resolved summary, or None when the stored id does
    not name an existing category.
    """
    id: str = Field(..., description="Unique book identifier")
    name: str = Field(..., description="Book title")
    price: float = Field(..., ge=0, description="Price")
    author: str = Field(..., description="Author")
    genre: str = Field(..., description="Genre")
    description: str = Field(..., description="Book description")
    image: str = Field(..., description="Cover image path or URL")
    count_in_stock: int = Field(..., ge=0, description="Units in stock")
    category: Optional[CategorySummary] = Field(None, description="Book category")
    user: Optional[str] = Field(None, description="Identifier of the creating user")
    reviews: List[Review] = Field(default_factory=list, description="Reviews, oldest first")
    num_reviews: int = Field(default=0, ge=0, description="Number of reviews")
    rating: float = Field(default=0, ge=0, le=5, description="Mean review rating")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    class Config:
        json_encoders = {
            datetime: lambda v: v.isoformat()
        }
        json_schema_extra = {
            "example": {
                "id": "665f1c2e8b3e4a0012345678",
                "name": "Dune",
                "price": 9.99,
                "author": "Frank Herbert",
                "genre": "Science Fiction",
                "description": "Set on the desert planet Arrakis...",
                "image": "/images/sample.jpg",
                "count_in_stock": 12,
                "category": {
                    "id": "665f1c2e8b3e4a0087654321",
                    "name": "Sci-Fi",
                    "description": "Science fiction"
                },
                "reviews": [],
                "num_reviews": 0,
                "rating": 0
            }
        }


class BookCreate(BaseModel):
    """Payload for creating a book. Missing fields fall back to BOOK_DEFAULTS."""
    name: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    author: Optional[str] = None
    genre: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    count_in_stock: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None


class BookUpdate(BaseModel):
    """
    Payload for updating a book.

    Only truthy values are applied; zero and empty values leave the stored
    field unchanged.
    """
    name: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    author: Optional[str] = None
    genre: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    count_in_stock: Optional[int] = Field(None, ge=0)
    category: Optional[str] = None

    def supplied_fields(self) -> Dict[str, Any]:
        """Return the fields that will replace stored values."""
        return {key: value for key, value in self.dict().items() if value}


class ReviewCreate(BaseModel):
    """Payload for submitting a review."""
    rating: int = Field(..., ge=1, le=5, description="Rating (1-5)")
    comment: str = Field(default="", description="Review text")

    @validator('comment')
    def strip_comment(cls, v):
        """Trim surrounding whitespace."""
        return v.strip()


class CategoryCreate(BaseModel):
    """Payload for creating a category."""
    name: str = Field(..., min_length=1, description="Category name")
    description: Optional[str] = Field(None, description="Category description")


class BookPage(BaseModel):
    """One page of a book listing."""
    books: List[Book] = Field(..., description="Books on this page")
    total: int = Field(..., description="Total number of matching books")
    page: int = Field(..., description="Current page number")
    per_page: int = Field(..., description="Number of books per page")
    total_pages: int = Field(..., description="Total number of pages")
    has_next: bool = Field(..., description="Whether there is a next page")
    has_prev: bool = Field(..., description="Whether there is a previous page")
