"""Digest algorithm descriptors and their persisted textual form."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

_STANDARD_DIGEST_NAMES: Final = (
    "MD5",
    "SHA-1",
    "SHA-224",
    "SHA-256",
    "SHA-384",
    "SHA-512",
    "SHA3-224",
    "SHA3-256",
    "SHA3-384",
    "SHA3-512",
)

# Spelling-insensitive key -> standard name; `SHA` is the historical SHA-1 alias.
_DIGEST_NAME_ALIASES: Final[dict[str, str]] = {
    **{name.replace("-", ""): name for name in _STANDARD_DIGEST_NAMES},
    "SHA": "SHA-1",
}


class InvalidAlgorithmSpecError(ValueError):
    """Raised when an algorithm spec string cannot be parsed."""


def canonical_digest_name(name: str) -> str:
    """Return the standard spelling of a digest name; unknown names are only stripped.

    `SHA-512`, `sha512` and `sha_512` all become `SHA-512`.
    """

    stripped = name.strip()
    key = stripped.upper().replace("-", "").replace("_", "")
    return _DIGEST_NAME_ALIASES.get(key, stripped)


class HashingMode(StrEnum):
    """Supported salting/encoding traits of one digest algorithm."""

    PLAIN = "plain"
    SALTED = "salted"
    LEGACY = "legacy"
    LEGACY_SALTED = "legacy_salted"

    @classmethod
    def parse(cls, raw: str) -> HashingMode:
        """Parse one mode token, case-insensitive, accepting `-` as separator."""

        token = raw.strip().lower().replace("-", "_")
        try:
            return cls(token)
        except ValueError as exc:
            raise InvalidAlgorithmSpecError(f"unknown hashing mode: {raw!r}") from exc

    @property
    def salted(self) -> bool:
        return self in (HashingMode.SALTED, HashingMode.LEGACY_SALTED)

    @property
    def legacy(self) -> bool:
        return self in (HashingMode.LEGACY, HashingMode.LEGACY_SALTED)


@dataclass(frozen=True)
class AlgorithmDescriptor:
    """Immutable description of how a password digest is produced."""

    name: str
    salted: bool = False
    legacy_encoding: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", canonical_digest_name(self.name))

    @property
    def mode(self) -> HashingMode:
        if self.legacy_encoding:
            return HashingMode.LEGACY_SALTED if self.salted else HashingMode.LEGACY
        return HashingMode.SALTED if self.salted else HashingMode.PLAIN

    def as_string(self) -> str:
        """Return the canonical `NAME/mode` form recorded beside stored digests."""

        return f"{self.name}/{self.mode.value}"

    @classmethod
    def from_mode(cls, name: str, mode: HashingMode) -> AlgorithmDescriptor:
        return cls(name=name, salted=mode.salted, legacy_encoding=mode.legacy)


def parse_algorithm(raw: str, *, default_mode: str = HashingMode.PLAIN) -> AlgorithmDescriptor:
    """Parse `NAME[/MODE]` into a descriptor.

    Digest availability is not checked here; an unknown digest name is only
    reported when a digest is actually computed.
    """

    name, separator, mode_token = raw.strip().partition("/")
    name = name.strip()
    if not name:
        raise InvalidAlgorithmSpecError("algorithm name cannot be blank")

    mode = HashingMode.parse(mode_token if separator else default_mode)
    return AlgorithmDescriptor.from_mode(name, mode)
