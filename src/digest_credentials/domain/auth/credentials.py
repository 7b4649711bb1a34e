"""Shared normalization helpers for credential inputs."""

from __future__ import annotations


def normalize_identity(*, identity: str) -> str:
    """Normalize one identity and reject blank values."""

    normalized = identity.strip()
    if not normalized:
        raise ValueError("identity cannot be blank")
    return normalized


def require_new_password(*, password: str) -> str:
    """Reject empty new passwords; the value is returned unchanged."""

    if not password:
        raise ValueError("password cannot be blank")
    return password
