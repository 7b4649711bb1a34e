"""Port for credential persistence used by credential services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class CredentialAlreadyExistsError(ValueError):
    """Raised when a credential is created for an identity that already has one."""

    def __init__(self, *, identity: str) -> None:
        super().__init__(f"credential already exists: {identity}")
        self.identity = identity


@dataclass(frozen=True)
class CredentialRecord:
    """Credential persistence model.

    `hash_algorithm` holds the `NAME/mode` text of the algorithm that
    produced `password_hash`.
    """

    identity: str
    password_hash: str | None
    hash_algorithm: str


class CredentialRepositoryPort(Protocol):
    """Credential repository contract."""

    async def get_by_identity(self, *, identity: str) -> CredentialRecord | None:
        """Return the stored credential for one identity or None."""

    async def create_credential(self, record: CredentialRecord) -> CredentialRecord:
        """Insert one credential row and return it."""

    async def update_password_hash(
        self,
        *,
        identity: str,
        password_hash: str,
        hash_algorithm: str,
    ) -> CredentialRecord | None:
        """Replace digest and algorithm together; None when identity is unknown."""
