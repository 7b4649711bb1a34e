from __future__ import annotations

from pathlib import Path

import pytest
from alembic.config import Config

from alembic import command
from apps.credential_admin.main import build_credential_service, build_parser, run_command
from digest_credentials.domain.auth.algorithm import AlgorithmDescriptor


def _upgrade_head(tmp_path: Path) -> str:
    db_path = tmp_path / "cli.db"
    alembic_config = Config("alembic.ini")
    alembic_config.set_main_option("sqlalchemy.url", f"sqlite+pysqlite:///{db_path}")
    command.upgrade(alembic_config, "head")
    return f"sqlite+aiosqlite:///{db_path}"


def test_parser_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


@pytest.mark.asyncio
async def test_register_passwd_and_status_commands(tmp_path: Path) -> None:
    async_url = _upgrade_head(tmp_path)
    parser = build_parser()
    old_service = build_credential_service(
        async_url,
        preferred_algorithm=AlgorithmDescriptor("MD5", salted=True),
    )
    new_service = build_credential_service(
        async_url,
        preferred_algorithm=AlgorithmDescriptor("SHA-512", salted=True),
    )

    registered = await run_command(
        parser.parse_args(["register", "alice"]),
        service=old_service,
        read_password=lambda _prompt: "hunter2",
    )
    stale = await run_command(parser.parse_args(["status", "alice"]), service=new_service)
    changed = await run_command(
        parser.parse_args(["passwd", "alice"]),
        service=new_service,
        read_password=lambda _prompt: "correct horse",
    )
    current = await run_command(parser.parse_args(["status", "alice"]), service=new_service)

    assert registered == "registered alice algorithm=MD5/salted"
    assert stale == "alice pending_migration"
    assert changed == "password changed for alice algorithm=SHA-512/salted"
    assert current == "alice up_to_date"


@pytest.mark.asyncio
async def test_register_without_password_never_prompts(tmp_path: Path) -> None:
    async_url = _upgrade_head(tmp_path)
    service = build_credential_service(
        async_url,
        preferred_algorithm=AlgorithmDescriptor("SHA-512", salted=True),
    )

    def _fail_prompt(_prompt: str) -> str:
        raise AssertionError("password prompt should not be used")

    line = await run_command(
        build_parser().parse_args(["register", "bob", "--no-password"]),
        service=service,
        read_password=_fail_prompt,
    )

    assert line == "registered bob algorithm=SHA-512/salted"


@pytest.mark.asyncio
async def test_status_command_reports_normalized_identity(tmp_path: Path) -> None:
    async_url = _upgrade_head(tmp_path)
    service = build_credential_service(
        async_url,
        preferred_algorithm=AlgorithmDescriptor("SHA-512", salted=True),
    )
    await service.register(identity="alice", password="hunter2")

    line = await run_command(build_parser().parse_args(["status", " alice "]), service=service)

    assert line == "alice up_to_date"
