"""
Book catalog domain for the Bookstore API.

This package provides:
- Pydantic models for books, reviews and categories
- The MongoDB data-access layer
- Catalog business logic (listing, search, mutation, reviews)
"""
