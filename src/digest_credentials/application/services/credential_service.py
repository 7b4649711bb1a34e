"""Application service for credential registration, login and password changes."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from digest_credentials.application.ports.credential_repository_port import (
    CredentialRecord,
    CredentialRepositoryPort,
)
from digest_credentials.domain.auth.algorithm import AlgorithmDescriptor, parse_algorithm
from digest_credentials.domain.auth.credential import Credential
from digest_credentials.domain.auth.credential_status import CredentialStatus
from digest_credentials.domain.auth.credentials import normalize_identity, require_new_password
from digest_credentials.domain.auth.digest import CredentialDigestError

logger = logging.getLogger(__name__)


class CredentialNotFoundError(LookupError):
    """Raised when a target credential cannot be found."""

    def __init__(self, *, identity: str) -> None:
        super().__init__(f"credential not found: {identity}")
        self.identity = identity


class AuthOutcome(StrEnum):
    """Supported authentication outcomes."""

    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    NO_PASSWORD_SET = "no_password_set"


@dataclass(frozen=True)
class AuthResult:
    """Authentication result model."""

    outcome: AuthOutcome
    status: CredentialStatus | None = None


class CredentialService:
    """Verify and update stored credentials, migrating algorithms lazily."""

    def __init__(
        self,
        *,
        credentials: CredentialRepositoryPort,
        preferred_algorithm: AlgorithmDescriptor,
    ) -> None:
        self._credentials = credentials
        self._preferred_algorithm = preferred_algorithm

    async def register(self, *, identity: str, password: str | None = None) -> CredentialRecord:
        """Create one credential, optionally with an initial password."""

        normalized_identity = normalize_identity(identity=identity)
        credential = Credential.fresh(
            normalized_identity,
            self._preferred_algorithm,
            self._preferred_algorithm,
        )
        if password is not None:
            self._run_digest(
                credential.change_password,
                require_new_password(password=password),
                identity=normalized_identity,
            )

        record = await self._credentials.create_credential(_to_record(credential))
        logger.info(
            "credential registered identity=%s algorithm=%s has_password=%s",
            normalized_identity,
            record.hash_algorithm,
            credential.has_password,
        )
        return record

    async def authenticate(self, *, identity: str, password: str) -> AuthResult:
        """Check one login attempt; unknown identities are invalid credentials."""

        normalized_identity = normalize_identity(identity=identity)
        record = await self._credentials.get_by_identity(identity=normalized_identity)
        if record is None:
            logger.info("login failed identity=%s reason=unknown_identity", normalized_identity)
            return AuthResult(outcome=AuthOutcome.INVALID_CREDENTIALS)

        credential = self._load(record)
        if not credential.has_password:
            logger.info("login failed identity=%s reason=no_password_set", normalized_identity)
            return AuthResult(outcome=AuthOutcome.NO_PASSWORD_SET, status=credential.status)

        if not self._run_digest(credential.verify, password, identity=normalized_identity):
            logger.info(
                "login failed identity=%s reason=invalid_credentials",
                normalized_identity,
            )
            return AuthResult(outcome=AuthOutcome.INVALID_CREDENTIALS, status=credential.status)

        logger.info(
            "login succeeded identity=%s status=%s",
            normalized_identity,
            credential.status.value,
        )
        return AuthResult(outcome=AuthOutcome.SUCCESS, status=credential.status)

    async def change_password(self, *, identity: str, new_password: str) -> CredentialRecord:
        """Re-hash a new password under the preferred algorithm and persist it."""

        normalized_identity = normalize_identity(identity=identity)
        record = await self._require_existing(identity=normalized_identity)
        credential = self._load(record)
        previous_algorithm = credential.verify_algorithm

        self._run_digest(
            credential.change_password,
            require_new_password(password=new_password),
            identity=normalized_identity,
        )
        stored_digest, verify_algorithm = credential.digest_snapshot()
        if stored_digest is None:  # pragma: no cover - change_password always stores a digest.
            raise RuntimeError("password change left no stored digest")

        updated = await self._credentials.update_password_hash(
            identity=normalized_identity,
            password_hash=stored_digest,
            hash_algorithm=verify_algorithm.as_string(),
        )
        if updated is None:
            raise CredentialNotFoundError(identity=normalized_identity)

        if previous_algorithm != verify_algorithm:
            logger.info(
                "credential migrated identity=%s from=%s to=%s",
                normalized_identity,
                previous_algorithm.as_string(),
                verify_algorithm.as_string(),
            )
        logger.info("password changed identity=%s", normalized_identity)
        return updated

    async def migration_status(self, *, identity: str) -> CredentialStatus:
        """Return whether one credential still waits for algorithm migration."""

        normalized_identity = normalize_identity(identity=identity)
        record = await self._require_existing(identity=normalized_identity)
        return self._load(record).status

    async def _require_existing(self, *, identity: str) -> CredentialRecord:
        record = await self._credentials.get_by_identity(identity=identity)
        if record is None:
            raise CredentialNotFoundError(identity=identity)
        return record

    def _load(self, record: CredentialRecord) -> Credential:
        """Rebuild a domain credential from its persisted record."""

        try:
            verify_algorithm = parse_algorithm(record.hash_algorithm)
        except ValueError:
            logger.exception(
                "stored algorithm is invalid identity=%s algorithm=%s",
                record.identity,
                record.hash_algorithm,
            )
            raise
        return Credential(
            record.identity,
            verify_algorithm,
            self._preferred_algorithm,
            stored_digest=record.password_hash,
        )

    def _run_digest(
        self,
        operation: Callable[[str], bool],
        password: str,
        *,
        identity: str,
    ) -> bool:
        """Run one digest-backed credential operation, logging fatal failures."""

        try:
            return operation(password)
        except CredentialDigestError:
            logger.exception("credential digest failed identity=%s", identity)
            raise


def _to_record(credential: Credential) -> CredentialRecord:
    return CredentialRecord(
        identity=credential.identity,
        password_hash=credential.stored_digest,
        hash_algorithm=credential.verify_algorithm.as_string(),
    )
