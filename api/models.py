"""
API response schemas for the FastAPI application.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from catalog.models import Book


class BookListResponse(BaseModel):
    """Response model for book list with pagination."""
    books: List[Book] = Field(..., description="List of books")
    total: int = Field(..., description="Total number of matching books")
    page: int = Field(..., description="Current page number")
    per_page: int = Field(..., description="Number of books per page")
    total_pages: int = Field(..., description="Total number of pages")
    has_next: bool = Field(..., description="Whether there is a next page")
    has_prev: bool = Field(..., description="Whether there is a previous page")


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    message: str = Field(..., description="Human-readable result")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
