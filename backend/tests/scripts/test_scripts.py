"""Tests for the operational scripts (create_admin, prune_tokens, run_migrations)."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import create_admin
import prune_tokens
import run_migrations
from modules.auth.permissions import AdminLevel, UserRole, default_permissions

from fakes import InMemoryUserRepository, make_user


class TestCreateAdmin:
    @pytest.mark.asyncio
    async def test_creates_admin_with_default_permissions(self):
        repo = InMemoryUserRepository()
        with patch("create_admin.get_supabase_client"), \
             patch("create_admin.UserRepository", return_value=repo):
            await create_admin.create_admin(
                "Ops", "ops@example.com", "Secret#123", AdminLevel.MODERATOR
            )

        admin = await repo.find_by_email("ops@example.com")
        assert admin.role == UserRole.ADMIN
        assert admin.admin_level == AdminLevel.MODERATOR
        assert admin.permissions == default_permissions(AdminLevel.MODERATOR)
        assert repo.match_password(admin, "Secret#123")

    @pytest.mark.asyncio
    async def test_refuses_existing_email(self):
        repo = InMemoryUserRepository()
        repo.add(make_user(email="ops@example.com"))
        with patch("create_admin.get_supabase_client"), \
             patch("create_admin.UserRepository", return_value=repo):
            with pytest.raises(SystemExit):
                await create_admin.create_admin(
                    "Ops", "ops@example.com", "Secret#123", AdminLevel.SUPER_ADMIN
                )

    def test_prompt_password_rejects_weak_env_password(self):
        """A weak ADMIN_PASSWORD falls through to the interactive prompt."""
        with patch("create_admin.Prompt.ask", side_effect=["Str0ng!Pass", "Str0ng!Pass"]):
            assert create_admin._prompt_password("weak") == "Str0ng!Pass"

    def test_prompt_email_normalizes(self):
        assert create_admin._prompt_email(" Ops@Example.com ") == "ops@example.com"


class TestPruneTokens:
    @pytest.mark.asyncio
    async def test_prune(self):
        ledger = MagicMock()
        ledger.prune_expired = AsyncMock(return_value=3)
        with patch("prune_tokens.get_supabase_client"), \
             patch("prune_tokens.RefreshTokenRepository", return_value=ledger):
            assert await prune_tokens.prune() == 3


class TestMigrations:
    def test_migrations_are_ordered(self):
        names = [p.name for p in sorted(run_migrations.MIGRATIONS_DIR.glob("*.sql"))]
        assert names == ["001_users.sql", "002_refresh_tokens.sql"]

    def test_pending_skips_applied(self):
        first = run_migrations.MIGRATIONS_DIR / "001_users.sql"
        conn = MagicMock()
        cursor = conn.cursor.return_value.__enter__.return_value
        cursor.fetchall.return_value = [
            ("001_users.sql", run_migrations.checksum_of(first), None),
        ]

        pending = run_migrations.get_pending_migrations(conn)

        assert [name for name, _, _ in pending] == ["002_refresh_tokens.sql"]

    def test_dry_run_executes_nothing(self):
        conn = MagicMock()
        sql_file = run_migrations.MIGRATIONS_DIR / "002_refresh_tokens.sql"
        run_migrations.run_migration(conn, sql_file.name, sql_file, "abc", dry_run=True)
        conn.cursor.assert_not_called()
        conn.commit.assert_not_called()
