"""SQLAlchemy adapter for credential persistence."""

from __future__ import annotations

from typing import cast

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from digest_credentials.application.ports.credential_repository_port import (
    CredentialAlreadyExistsError,
    CredentialRecord,
    CredentialRepositoryPort,
)
from digest_credentials.infrastructure.db.metadata import credentials


class SqlAlchemyCredentialRepository(CredentialRepositoryPort):
    """Credential repository backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def get_by_identity(self, *, identity: str) -> CredentialRecord | None:
        """Return the stored credential for one identity or None."""

        statement = sa.select(
            credentials.c.identity,
            credentials.c.password_hash,
            credentials.c.hash_algorithm,
        ).where(credentials.c.identity == identity).limit(1)

        async with self._session_factory() as session:
            result = await session.execute(statement)

        row = result.mappings().first()
        if row is None:
            return None
        return _to_credential_record(row)

    async def create_credential(self, record: CredentialRecord) -> CredentialRecord:
        """Insert one credential row and return it."""

        statement = sa.insert(credentials).values(
            identity=record.identity,
            password_hash=record.password_hash,
            hash_algorithm=record.hash_algorithm,
        )

        async with self._session_factory() as session:
            try:
                await session.execute(statement)
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise CredentialAlreadyExistsError(identity=record.identity) from exc

        return record

    async def update_password_hash(
        self,
        *,
        identity: str,
        password_hash: str,
        hash_algorithm: str,
    ) -> CredentialRecord | None:
        """Replace digest and algorithm in one statement."""

        statement = (
            sa.update(credentials)
            .where(credentials.c.identity == identity)
            .values(
                password_hash=password_hash,
                hash_algorithm=hash_algorithm,
                updated_at=sa.func.current_timestamp(),
            )
            .returning(
                credentials.c.identity,
                credentials.c.password_hash,
                credentials.c.hash_algorithm,
            )
        )

        async with self._session_factory() as session:
            result = await session.execute(statement)
            row = result.mappings().first()
            await session.commit()

        if row is None:
            return None
        return _to_credential_record(row)


def _to_credential_record(row: sa.RowMapping) -> CredentialRecord:
    return CredentialRecord(
        identity=cast(str, row["identity"]),
        password_hash=cast(str | None, row["password_hash"]),
        hash_algorithm=cast(str, row["hash_algorithm"]),
    )
