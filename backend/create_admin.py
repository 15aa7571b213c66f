#!/usr/bin/env python3
"""
Create an admin account.

Prompts for anything not given on the command line. The new admin gets the
default permissions of its level.

Usage:
    uv run python create_admin.py
    uv run python create_admin.py --name "Ops" --email ops@example.com --level 3

Environment Variables:
    ADMIN_PASSWORD: Password for the new admin (skips the prompt)
"""

import argparse
import asyncio
import os
import sys

from pydantic import TypeAdapter, EmailStr
from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.prompt import Prompt

from shared.config import get_settings
from shared.database import get_supabase_client
from shared.logging import configure_logging
from modules.auth.models import UserCreate, normalize_email
from modules.auth.permissions import AdminLevel, UserRole, parse_admin_level
from modules.auth.passwords import validate_password_policy
from modules.auth.repository import UserRepository
from modules.auth.exceptions import DuplicateIdentityError, InvalidAdminLevelError
from modules.admins.service import AdminService

console = Console()

_email_adapter = TypeAdapter(EmailStr)


def _prompt_email(initial: str | None) -> str:
    email = initial
    while True:
        if email is None:
            email = Prompt.ask("Admin email")
        try:
            return normalize_email(_email_adapter.validate_python(email.strip()))
        except PydanticValidationError:
            console.print("[red]Invalid email format.[/red]")
            email = None


def _prompt_password(initial: str | None) -> str:
    password = initial
    while True:
        if password is None:
            password = Prompt.ask("Admin password", password=True)
            confirm = Prompt.ask("Confirm password", password=True)
            if password != confirm:
                console.print("[red]Passwords do not match.[/red]")
                password = None
                continue
        try:
            return validate_password_policy(password)
        except ValueError as e:
            console.print(f"[red]{e}.[/red]")
            password = None


async def create_admin(name: str, email: str, password: str, level: AdminLevel) -> None:
    settings = get_settings()
    users = UserRepository(get_supabase_client(), bcrypt_rounds=settings.bcrypt_rounds)
    admins = AdminService(users)

    if await users.find_by_email(email):
        console.print(f"[red]Error:[/red] a user with email {email} already exists.")
        sys.exit(1)

    try:
        admin = await users.create(
            UserCreate(
                name=name,
                email=email,
                password=password,
                role=UserRole.ADMIN,
                admin_level=level,
            )
        )
    except DuplicateIdentityError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        sys.exit(1)

    admin = await admins.initialize_admin_permissions(admin)

    console.print("[green]Admin user created.[/green]")
    console.print(f"  ID:          {admin.id}")
    console.print(f"  Name:        {admin.name}")
    console.print(f"  Email:       {admin.email}")
    console.print(f"  Level:       {admin.admin_level.name}")
    console.print(f"  Permissions: {len(admin.permissions)}")


def main():
    parser = argparse.ArgumentParser(
        description="Create an admin account",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--name", help="Display name")
    parser.add_argument("--email", help="Login email")
    parser.add_argument(
        "--level",
        default=str(int(AdminLevel.SUPER_ADMIN)),
        help="Admin level: 1 moderator, 2 admin, 3 super admin (default 3)",
    )
    args = parser.parse_args()

    configure_logging(get_settings().log_level)

    try:
        level = parse_admin_level(args.level)
    except InvalidAdminLevelError as e:
        console.print(f"[red]Error:[/red] {e.message}: {args.level}")
        sys.exit(1)

    name = (args.name or "").strip()
    while not name:
        name = Prompt.ask("Admin name").strip()

    email = _prompt_email(args.email)
    password = _prompt_password(os.environ.get("ADMIN_PASSWORD"))

    asyncio.run(create_admin(name, email, password, level))


if __name__ == "__main__":
    main()
