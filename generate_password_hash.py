#!/usr/bin/env python3
"""
Admin Password Tool
Generates the bcrypt ADMIN_PASSWORD_HASH for your .env file, checks a password
against an existing hash, or creates a user record in the database.
"""
import argparse
import asyncio
import getpass
import sys

from app.utils.auth import hash_password, verify_password


def prompt_new_password() -> str:
    """Ask for a password twice. Returns an empty string on mismatch or empty input."""
    password = getpass.getpass("Enter admin password: ")
    if not password:
        print("\n❌ Error: Password cannot be empty")
        return ""

    password_confirm = getpass.getpass("Confirm password: ")
    if password != password_confirm:
        print("\n❌ Error: Passwords do not match")
        return ""

    return password


async def create_user_record(username: str, password: str) -> str:
    from app.database import AsyncSessionLocal, init_db
    from app.services.users import create_user, get_user_by_username

    await init_db()
    async with AsyncSessionLocal() as db:
        if await get_user_by_username(db, username):
            raise ValueError(f"User '{username}' already exists")
        user = await create_user(db, username, password)
        await db.commit()
        return user.id


def main() -> int:
    parser = argparse.ArgumentParser(description="Admin password utilities")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--check", metavar="HASH", help="test a password against an existing bcrypt hash")
    group.add_argument("--create-user", metavar="USERNAME", help="store a user with a hashed password")
    args = parser.parse_args()

    print("=" * 60)
    print("Admin Password Tool")
    print("=" * 60)
    print()

    if args.check:
        password = getpass.getpass("Enter password to test: ")
        if verify_password(password, args.check):
            print("\n✅ Password matches!")
            return 0
        print("\n❌ Password does not match.")
        return 1

    password = prompt_new_password()
    if not password:
        return 1

    if args.create_user:
        try:
            user_id = asyncio.run(create_user_record(args.create_user, password))
        except ValueError as e:
            print(f"\n❌ Error: {str(e)}")
            return 1
        print(f"\n✅ Created user '{args.create_user}' ({user_id})")
        return 0

    print("\n⏳ Generating hash (this may take a moment)...")
    hashed = hash_password(password)
    print("\n✅ Success! Copy this line to your .env file:\n")
    print(f"ADMIN_PASSWORD_HASH={hashed}")
    print()
    print("⚠️  Keep this hash secret and never commit it to version control!")
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
