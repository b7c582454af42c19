"""
FastAPI RESTful API for the Bookstore catalog.

This module provides a REST API for:
- Book catalog browsing, keyword search and pagination
- Book reviews with rating aggregation
- Category management
- API key-based authentication with administrator privileges
"""
