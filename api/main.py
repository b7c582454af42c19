"""
FastAPI main application for the Bookstore API.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from api import dependencies
from api.auth import get_current_user, initialize_default_admin, require_admin
from api.config import config as api_config
from api.dependencies import get_catalog_service
from api.models import BookListResponse, ErrorResponse, HealthResponse, MessageResponse
from catalog.database import CatalogDatabase
from catalog.errors import CatalogError
from catalog.models import Book, BookCreate, BookUpdate, Category, CategoryCreate, CurrentUser, ReviewCreate
from catalog.service import CatalogService
from utilities.config import config
from utilities.logger import setup_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )
    logger.info("Starting Bookstore API")

    database = CatalogDatabase(
        connection_url=config.mongodb_url,
        database_name=config.mongodb_database,
        books_collection=config.books_collection,
        categories_collection=config.categories_collection,
        users_collection=config.users_collection,
        server_selection_timeout_ms=config.server_selection_timeout_ms
    )
    try:
        await database.connect()
        await initialize_default_admin(database, api_config)
    except Exception as e:
        logger.error("Failed to connect to database", error=str(e))
        raise

    Path(api_config.uploads_dir).mkdir(parents=True, exist_ok=True)
    dependencies.database = database
    dependencies.catalog_service = CatalogService(database)

    yield

    logger.info("Shutting down Bookstore API")
    dependencies.catalog_service = None
    dependencies.database = None
    await database.disconnect()


app = FastAPI(
    title=api_config.api_title,
    description="""
    REST API for an online bookstore catalog.

    ## Features

    * **Books**: Browse with keyword search and pagination, top rated listing
    * **Reviews**: One review per user per book, with live rating average
    * **Categories**: Books reference a category, resolved in responses
    * **Authentication**: API key bearer tokens; catalog changes need an admin key

    ```
    Authorization: Bearer your_api_key_here
    ```
    """,
    version=api_config.api_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=api_config.cors_origins,
    allow_credentials=api_config.cors_allow_credentials,
    allow_methods=api_config.cors_allow_methods,
    allow_headers=api_config.cors_allow_headers,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log one line per request."""
    started = time.perf_counter()
    # Unhandled errors surface here before the 500 handler runs
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        logger.info(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2)
        )


# Exception handlers
@app.exception_handler(CatalogError)
async def catalog_exception_handler(request: Request, exc: CatalogError):
    """Map catalog errors to their HTTP status."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.message,
            status_code=exc.status_code
        ).dict()
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=str(exc.detail),
            status_code=exc.status_code
        ).dict(),
        headers=exc.headers
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc) if api_config.debug else None,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        ).dict()
    )


@app.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root():
    """Liveness text."""
    return "API is running..."


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Health check endpoint."""
    db_status = "unavailable"
    if dependencies.database:
        health_info = await dependencies.database.health_check()
        db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.utcnow(),
        version=api_config.api_version,
        database_status=db_status
    )


router = APIRouter()


# Books endpoints
@router.get("/books", response_model=BookListResponse, tags=["Books"])
async def get_books(
    keyword: Optional[str] = None,
    page_number: Optional[str] = Query(None, alias="pageNumber"),
    service: CatalogService = Depends(get_catalog_service)
):
    """
    Get books, ten per page.

    - **keyword**: Case-insensitive substring of the book name
    - **pageNumber**: Page number (starts from 1)
    """
    result = await service.list_books(keyword=keyword, page=page_number)
    return BookListResponse(**result.dict())


@router.get("/books/top", response_model=List[Book], tags=["Books"])
async def get_top_books(service: CatalogService = Depends(get_catalog_service)):
    """Get the four highest rated books."""
    return await service.top_rated_books()


@router.get("/books/{book_id}", response_model=Book, tags=["Books"])
async def get_book(book_id: str, service: CatalogService = Depends(get_catalog_service)):
    """Get a single book with its category."""
    return await service.get_book(book_id)


@router.post("/books", response_model=Book, status_code=status.HTTP_201_CREATED, tags=["Books"])
async def create_book(
    payload: BookCreate,
    user: CurrentUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service)
):
    """Create a book. Requires an admin key."""
    return await service.create_book(payload, user)


@router.put("/books/{book_id}", response_model=Book, tags=["Books"])
async def update_book(
    book_id: str,
    payload: BookUpdate,
    user: CurrentUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service)
):
    """Update the supplied fields of a book. Requires an admin key."""
    return await service.update_book(book_id, payload)


@router.delete("/books/{book_id}", response_model=MessageResponse, tags=["Books"])
async def delete_book(
    book_id: str,
    user: CurrentUser = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service)
):
    """Delete a book. Only administrators may delete."""
    return await service.delete_book(book_id, user)


@router.post(
    "/books/{book_id}/reviews",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Reviews"]
)
async def create_book_review(
    book_id: str,
    payload: ReviewCreate,
    user: CurrentUser = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service)
):
    """Review a book. Each user may review a book once."""
    return await service.add_review(book_id, user, payload)


# Categories endpoints
@router.get("/categories", response_model=List[Category], tags=["Categories"])
async def get_categories(service: CatalogService = Depends(get_catalog_service)):
    """List categories."""
    return await service.list_categories()


@router.post("/categories", response_model=Category, status_code=status.HTTP_201_CREATED, tags=["Categories"])
async def create_category(
    payload: CategoryCreate,
    user: CurrentUser = Depends(require_admin),
    service: CatalogService = Depends(get_catalog_service)
):
    """Create a category. Requires an admin key."""
    return await service.create_category(payload)


@router.get("/categories/{category_id}", response_model=Category, tags=["Categories"])
async def get_category(category_id: str, service: CatalogService = Depends(get_catalog_service)):
    """Get a single category."""
    return await service.get_category(category_id)


@router.get("/categories/{category_id}/books", response_model=List[Book], tags=["Categories"])
async def get_books_by_category(category_id: str, service: CatalogService = Depends(get_catalog_service)):
    """List every book in a category."""
    return await service.books_by_category(category_id)


app.include_router(router, prefix=api_config.api_prefix)

app.mount("/uploads", StaticFiles(directory=api_config.uploads_dir, check_dir=False), name="uploads")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=api_config.host,
        port=api_config.port,
        reload=api_config.debug,
        log_level="info"
    )
