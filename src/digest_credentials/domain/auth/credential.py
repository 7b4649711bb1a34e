"""Credential holder verifying passwords against a stored salted digest."""

from __future__ import annotations

import hmac
import threading
from dataclasses import dataclass

from digest_credentials.domain.auth.algorithm import AlgorithmDescriptor
from digest_credentials.domain.auth.credential_status import (
    CredentialStatus,
    resolve_credential_status,
)
from digest_credentials.domain.auth.digest import digest_password


@dataclass(frozen=True)
class _DigestState:
    """Stored digest paired with the algorithm that produced it."""

    stored_digest: str | None
    verify_algorithm: AlgorithmDescriptor


class Credential:
    """Stored password digest for one identity, with lazy algorithm migration.

    A credential verifies login attempts with the algorithm that produced its
    stored digest and switches to the preferred algorithm only when the
    password is changed. Stored digest and verify algorithm are always
    replaced together, so concurrent readers never see a digest paired with
    the wrong algorithm.
    """

    def __init__(
        self,
        identity: str,
        verify_algorithm: AlgorithmDescriptor,
        preferred_algorithm: AlgorithmDescriptor,
        *,
        stored_digest: str | None = None,
    ) -> None:
        self._identity = identity
        self._preferred_algorithm = preferred_algorithm
        self._state = _DigestState(stored_digest=stored_digest, verify_algorithm=verify_algorithm)
        self._lock = threading.Lock()

    @classmethod
    def fresh(
        cls,
        identity: str,
        verify_algorithm: AlgorithmDescriptor,
        preferred_algorithm: AlgorithmDescriptor,
    ) -> Credential:
        """Build a credential that has no password yet."""

        return cls(identity, verify_algorithm, preferred_algorithm)

    @classmethod
    def from_storage(
        cls,
        identity: str,
        stored_digest: str,
        verify_algorithm: AlgorithmDescriptor,
        preferred_algorithm: AlgorithmDescriptor,
    ) -> Credential:
        """Rebuild a credential from a persisted digest and its algorithm."""

        return cls(identity, verify_algorithm, preferred_algorithm, stored_digest=stored_digest)

    @property
    def identity(self) -> str:
        return self._identity

    @property
    def stored_digest(self) -> str | None:
        return self._state.stored_digest

    @property
    def verify_algorithm(self) -> AlgorithmDescriptor:
        return self._state.verify_algorithm

    @property
    def preferred_algorithm(self) -> AlgorithmDescriptor:
        return self._preferred_algorithm

    def digest_snapshot(self) -> tuple[str | None, AlgorithmDescriptor]:
        """Return stored digest and verify algorithm as read together."""

        state = self._state
        return state.stored_digest, state.verify_algorithm

    @property
    def has_password(self) -> bool:
        return self._state.stored_digest is not None

    @property
    def status(self) -> CredentialStatus:
        return resolve_credential_status(self._state.verify_algorithm, self._preferred_algorithm)

    def verify(self, password: str) -> bool:
        """Return whether `password` matches the stored digest.

        A credential without a stored digest never matches. Digest failures
        (unsupported algorithm) propagate instead of returning False.
        """

        state = self._state
        if state.stored_digest is None:
            return False

        candidate = digest_password(password, state.verify_algorithm, self._identity)
        return hmac.compare_digest(
            candidate.encode("utf-8"),
            state.stored_digest.encode("utf-8"),
        )

    def change_password(self, new_password: str) -> bool:
        """Re-hash `new_password` under the preferred algorithm and store it.

        State is left untouched when the digest cannot be computed.
        """

        new_digest = digest_password(new_password, self._preferred_algorithm, self._identity)
        with self._lock:
            self._state = _DigestState(
                stored_digest=new_digest,
                verify_algorithm=self._preferred_algorithm,
            )
        return True

    def __repr__(self) -> str:
        state = self._state
        return (
            f"Credential(identity={self._identity!r}, "
            f"verify_algorithm={state.verify_algorithm.as_string()!r}, "
            f"preferred_algorithm={self._preferred_algorithm.as_string()!r}, "
            f"has_password={state.stored_digest is not None})"
        )
