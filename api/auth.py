"""
Authentication for the FastAPI API.

Requests authenticate with ``Authorization: Bearer <api key>``. Keys belong to
users stored in MongoDB; a user may carry administrator privilege.
"""

import secrets
from typing import Any, Dict, Optional

import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.dependencies import get_database
from catalog.database import CatalogDatabase
from catalog.models import CurrentUser

logger = structlog.get_logger(__name__)

# Security scheme; missing headers are handled below so public routes can share it
security = HTTPBearer(auto_error=False)


def generate_api_key() -> str:
    """Generate a new API key."""
    return f"bk_{secrets.token_urlsafe(32)}"


def mask_api_key(api_key: str) -> str:
    """Shorten a key for logging."""
    return api_key[:10] + "..."


async def create_api_user(
    database: CatalogDatabase,
    name: str,
    email: str,
    is_admin: bool = False,
    api_key: Optional[str] = None
) -> Dict[str, Any]:
    """
    Create a user that authenticates with an API key.

    Args:
        database: Connected catalog database
        name: Display name used on reviews
        email: Contact email
        is_admin: Grant catalog management privilege
        api_key: Key to assign (generated when omitted)

    Returns:
        Stored user document including the API key
    """
    return await database.insert_user({
        "name": name,
        "email": email,
        "is_admin": is_admin,
        "api_key": api_key or generate_api_key(),
    })


def _to_current_user(user_doc: Dict[str, Any]) -> CurrentUser:
    return CurrentUser(
        id=user_doc["id"],
        name=user_doc["name"],
        email=user_doc.get("email"),
        is_admin=user_doc.get("is_admin", False)
    )


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    database: CatalogDatabase = Depends(get_database)
) -> Optional[CurrentUser]:
    """Resolve the acting user, or None for anonymous requests."""
    if credentials is None:
        return None

    user_doc = await database.get_user_by_api_key(credentials.credentials)
    if user_doc is None:
        logger.warning("Invalid API key attempted", api_key=mask_api_key(credentials.credentials))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, token failed",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _to_current_user(user_doc)


async def get_current_user(
    user: Optional[CurrentUser] = Depends(get_optional_user)
) -> CurrentUser:
    """
    Require an authenticated user.

    Raises:
        HTTPException: 401 if no valid API key was presented
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized, no token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Require an authenticated administrator."""
    if not user.is_admin:
        logger.warning("Admin privilege required", user=user.id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized as an admin",
        )
    return user


async def initialize_default_admin(database: CatalogDatabase, api_config) -> Optional[Dict[str, Any]]:
    """Create the configured administrator if no users exist yet."""
    try:
        if await database.count_users():
            logger.info("API users already exist, skipping default admin creation")
            return None

        if not api_config.admin_api_key:
            logger.warning("No users and no ADMIN_API_KEY configured; catalog management is disabled")
            return None

        admin = await create_api_user(
            database,
            name=api_config.admin_name,
            email=api_config.admin_email,
            is_admin=True,
            api_key=api_config.admin_api_key
        )
        logger.info("Default admin created", user=admin["id"], api_key=mask_api_key(admin["api_key"]))
        return admin

    except Exception as e:
        logger.error("Failed to initialize default admin", error=str(e))
        raise
