"""
Shared handles to the database and catalog service.

Set by the application lifespan; route handlers receive them through the
``get_database`` and ``get_catalog_service`` dependencies.
"""

from typing import Optional

from fastapi import HTTPException, status

from catalog.database import CatalogDatabase
from catalog.service import CatalogService

database: Optional[CatalogDatabase] = None
catalog_service: Optional[CatalogService] = None


def get_database() -> CatalogDatabase:
    """Return the connected database."""
    if database is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database service not available"
        )
    return database


def get_catalog_service() -> CatalogService:
    """Return the catalog service."""
    if catalog_service is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Database service not available"
        )
    return catalog_service
