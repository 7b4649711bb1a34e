from __future__ import annotations

from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic.config import Config

from alembic import command
from digest_credentials.application.ports.credential_repository_port import (
    CredentialAlreadyExistsError,
    CredentialRecord,
)
from digest_credentials.application.services.credential_service import (
    AuthOutcome,
    CredentialService,
)
from digest_credentials.domain.auth.algorithm import AlgorithmDescriptor
from digest_credentials.domain.auth.credential_status import CredentialStatus
from digest_credentials.domain.auth.digest import digest_password
from digest_credentials.infrastructure.db.credential_repository import (
    SqlAlchemyCredentialRepository,
)
from digest_credentials.infrastructure.db.session import create_session_factory


def _upgrade_head(tmp_path: Path, filename: str) -> tuple[str, str]:
    db_path = tmp_path / filename
    sync_url = f"sqlite+pysqlite:///{db_path}"
    async_url = f"sqlite+aiosqlite:///{db_path}"

    alembic_config = Config("alembic.ini")
    alembic_config.set_main_option("sqlalchemy.url", sync_url)
    command.upgrade(alembic_config, "head")

    return sync_url, async_url


def test_initial_migration_creates_credentials_table(tmp_path: Path) -> None:
    sync_url, _ = _upgrade_head(tmp_path, "schema.db")

    inspector = sa.inspect(sa.create_engine(sync_url))
    columns = {column["name"]: column for column in inspector.get_columns("credentials")}

    assert set(columns) == {
        "identity",
        "password_hash",
        "hash_algorithm",
        "created_at",
        "updated_at",
    }
    assert columns["password_hash"]["nullable"] is True
    assert columns["hash_algorithm"]["nullable"] is False


@pytest.mark.asyncio
async def test_repository_round_trips_credential_rows(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "round_trip.db")
    repo = SqlAlchemyCredentialRepository(create_session_factory(async_url))
    record = CredentialRecord(
        identity="alice",
        password_hash="u23i+geJLzSw4fYt+I8zhA==",
        hash_algorithm="MD5/salted",
    )

    created = await repo.create_credential(record)
    loaded = await repo.get_by_identity(identity="alice")

    assert created == record
    assert loaded == record
    assert await repo.get_by_identity(identity="bob") is None


@pytest.mark.asyncio
async def test_repository_keeps_missing_password_as_null(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "no_password.db")
    repo = SqlAlchemyCredentialRepository(create_session_factory(async_url))

    await repo.create_credential(
        CredentialRecord(identity="alice", password_hash=None, hash_algorithm="SHA-512/salted")
    )

    with sa.create_engine(sync_url).connect() as connection:
        stored = connection.execute(
            sa.text("SELECT password_hash FROM credentials WHERE identity = 'alice'")
        ).scalar_one()
    assert stored is None


@pytest.mark.asyncio
async def test_repository_rejects_duplicate_identity(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "duplicate.db")
    repo = SqlAlchemyCredentialRepository(create_session_factory(async_url))
    record = CredentialRecord(identity="alice", password_hash=None, hash_algorithm="MD5/plain")
    await repo.create_credential(record)

    with pytest.raises(CredentialAlreadyExistsError):
        await repo.create_credential(record)


@pytest.mark.asyncio
async def test_update_password_hash_replaces_digest_and_algorithm_together(
    tmp_path: Path,
) -> None:
    _, async_url = _upgrade_head(tmp_path, "update.db")
    repo = SqlAlchemyCredentialRepository(create_session_factory(async_url))
    await repo.create_credential(
        CredentialRecord(identity="alice", password_hash="old=", hash_algorithm="MD5/salted")
    )

    updated = await repo.update_password_hash(
        identity="alice",
        password_hash="new=",
        hash_algorithm="SHA-512/salted",
    )

    expected = CredentialRecord(
        identity="alice",
        password_hash="new=",
        hash_algorithm="SHA-512/salted",
    )
    assert updated == expected
    assert await repo.get_by_identity(identity="alice") == expected
    assert (
        await repo.update_password_hash(
            identity="bob",
            password_hash="x=",
            hash_algorithm="MD5/plain",
        )
        is None
    )


@pytest.mark.asyncio
async def test_service_migrates_stale_credential_on_password_change(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "migration.db")
    md5_salted = AlgorithmDescriptor("MD5", salted=True)
    sha512_salted = AlgorithmDescriptor("SHA-512", salted=True)
    with sa.create_engine(sync_url).begin() as connection:
        connection.execute(
            sa.text(
                "INSERT INTO credentials (identity, password_hash, hash_algorithm) "
                "VALUES (:identity, :password_hash, :hash_algorithm)"
            ),
            {
                "identity": "alice",
                "password_hash": digest_password("hunter2", md5_salted, "alice"),
                "hash_algorithm": md5_salted.as_string(),
            },
        )

    service = CredentialService(
        credentials=SqlAlchemyCredentialRepository(create_session_factory(async_url)),
        preferred_algorithm=sha512_salted,
    )

    stale_login = await service.authenticate(identity="alice", password="hunter2")
    assert stale_login.outcome is AuthOutcome.SUCCESS
    assert stale_login.status is CredentialStatus.PENDING_MIGRATION

    await service.change_password(identity="alice", new_password="correct horse")

    assert await service.migration_status(identity="alice") is CredentialStatus.UP_TO_DATE
    new_login = await service.authenticate(identity="alice", password="correct horse")
    old_login = await service.authenticate(identity="alice", password="hunter2")
    assert new_login.outcome is AuthOutcome.SUCCESS
    assert old_login.outcome is AuthOutcome.INVALID_CREDENTIALS
    with sa.create_engine(sync_url).connect() as connection:
        stored_algorithm = connection.execute(
            sa.text("SELECT hash_algorithm FROM credentials WHERE identity = 'alice'")
        ).scalar_one()
    assert stored_algorithm == "SHA-512/salted"
