"""Algorithm migration states for stored credentials."""

from __future__ import annotations

from enum import StrEnum

from digest_credentials.domain.auth.algorithm import AlgorithmDescriptor


class CredentialStatus(StrEnum):
    """Whether a stored digest already uses the preferred algorithm."""

    UP_TO_DATE = "up_to_date"
    PENDING_MIGRATION = "pending_migration"


def resolve_credential_status(
    verify_algorithm: AlgorithmDescriptor,
    preferred_algorithm: AlgorithmDescriptor,
) -> CredentialStatus:
    """Return the migration state for one verify/preferred algorithm pair."""

    if verify_algorithm == preferred_algorithm:
        return CredentialStatus.UP_TO_DATE
    return CredentialStatus.PENDING_MIGRATION
