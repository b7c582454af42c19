#!/usr/bin/env python3
"""
API User Management Utility

This script provides utilities to manage API users:
- Create a user (optionally an administrator) and print its API key
- List users
"""

import asyncio
import sys

from api.auth import create_api_user, mask_api_key
from catalog.database import CatalogDatabase
from utilities.config import config
from utilities.logger import setup_logging


def build_database() -> CatalogDatabase:
    return CatalogDatabase(
        connection_url=config.mongodb_url,
        database_name=config.mongodb_database,
        books_collection=config.books_collection,
        categories_collection=config.categories_collection,
        users_collection=config.users_collection,
        server_selection_timeout_ms=config.server_selection_timeout_ms
    )


async def create_user(name: str, email: str, is_admin: bool) -> None:
    """Create a user and print the generated key."""
    database = build_database()
    try:
        await database.connect()
        user = await create_api_user(database, name=name, email=email, is_admin=is_admin)

        print("✅ USER CREATED:")
        print(f"   ID: {user['id']}")
        print(f"   Name: {user['name']}")
        print(f"   Email: {user['email']}")
        print(f"   Admin: {user['is_admin']}")
        print(f"   API Key: {user['api_key']}")
        print()
        print("ℹ️  Store the API key now; it is only shown in full once.")

    except Exception as e:
        print(f"❌ Error creating user: {e}")
        sys.exit(1)
    finally:
        await database.disconnect()


async def list_users() -> None:
    """List all API users."""
    print("\n" + "=" * 80)
    print("📋 ALL USERS")
    print("=" * 80)

    database = build_database()
    try:
        await database.connect()
        users = await database.list_users()

        if not users:
            print("❌ No users found in database")
            return

        print(f"✅ Found {len(users)} users:")
        print()
        for i, user in enumerate(users, 1):
            role = "admin" if user.get("is_admin") else "user"
            print(f"{i:3d}. {user['name']} <{user.get('email')}> [{role}]")
            print(f"     ID: {user['id']}")
            print(f"     Key: {mask_api_key(user['api_key'])}")
            print()

    except Exception as e:
        print(f"❌ Error listing users: {e}")
        sys.exit(1)
    finally:
        await database.disconnect()


def print_usage():
    print("Usage: python manage_users.py [create|list] [name email] [--admin]")
    print()
    print("Commands:")
    print("  create   - Create a user and print its API key")
    print("  list     - List all users")
    print()
    print("Examples:")
    print("  python manage_users.py create 'Jane Doe' jane@example.com")
    print("  python manage_users.py create 'Shop Admin' admin@example.com --admin")
    print("  python manage_users.py list")


async def main():
    """Main function."""
    if len(sys.argv) < 2:
        print_usage()
        sys.exit(1)

    command = sys.argv[1].lower()

    setup_logging(
        log_level=config.log_level,
        log_format=config.log_format,
        log_file=config.get_log_file_path(),
        debug=config.debug
    )

    if command == "create":
        args = [arg for arg in sys.argv[2:] if arg != "--admin"]
        if len(args) < 2:
            print("❌ Error: name and email required for create command")
            print("Usage: python manage_users.py create <name> <email> [--admin]")
            sys.exit(1)
        await create_user(args[0], args[1], is_admin="--admin" in sys.argv[2:])
    elif command == "list":
        await list_users()
    else:
        print(f"❌ Unknown command: {command}")
        print("Available commands: create, list")
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())
