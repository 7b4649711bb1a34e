"""Password digest procedure shared by verification and password changes."""

from __future__ import annotations

import base64
import binascii
import hashlib
from typing import Final

from digest_credentials.domain.auth.algorithm import AlgorithmDescriptor, canonical_digest_name

# One byte per character; unmappable characters become `?`.
_TEXT_ENCODING: Final = "iso-8859-1"

_HASHLIB_NAMES: Final[dict[str, str]] = {
    "MD5": "md5",
    "SHA-1": "sha1",
    "SHA-224": "sha224",
    "SHA-256": "sha256",
    "SHA-384": "sha384",
    "SHA-512": "sha512",
    "SHA3-224": "sha3_224",
    "SHA3-256": "sha3_256",
    "SHA3-384": "sha3_384",
    "SHA3-512": "sha3_512",
}


class CredentialDigestError(RuntimeError):
    """Base class for fatal failures while computing a password digest."""


class UnsupportedAlgorithmError(CredentialDigestError):
    """Raised when a digest algorithm is not available to this runtime."""

    def __init__(self, *, algorithm_name: str) -> None:
        super().__init__(f"unsupported digest algorithm: {algorithm_name}")
        self.algorithm_name = algorithm_name


class DigestEncodingError(CredentialDigestError):
    """Raised when digest bytes cannot be rendered as text."""


def resolve_digest_name(name: str) -> str:
    """Map a standard digest identifier to the matching `hashlib` name."""

    canonical = canonical_digest_name(name)
    resolved = _HASHLIB_NAMES.get(canonical, canonical.lower())
    if resolved not in hashlib.algorithms_available:
        raise UnsupportedAlgorithmError(algorithm_name=name)
    return resolved


def apply_salt(password: str, algorithm: AlgorithmDescriptor, salt: str) -> str:
    """Prefix the salt to the password when the algorithm is salted."""

    if algorithm.salted:
        return salt + password
    return password


def digest_password(password: str, algorithm: AlgorithmDescriptor, identity: str) -> str:
    """Return the base64 digest of `password` for storage or comparison.

    `algorithm.legacy_encoding` does not change the output.
    """

    digest_name = resolve_digest_name(algorithm.name)
    try:
        hasher = hashlib.new(digest_name)
    except ValueError as exc:
        raise UnsupportedAlgorithmError(algorithm_name=algorithm.name) from exc

    salted_password = apply_salt(password, algorithm, identity)
    hasher.update(salted_password.encode(_TEXT_ENCODING, errors="replace"))
    try:
        raw_digest = hasher.digest()
    except TypeError as exc:
        # shake_* digests need an explicit length and are not usable here.
        raise UnsupportedAlgorithmError(algorithm_name=algorithm.name) from exc

    try:
        return base64.standard_b64encode(raw_digest).decode(_TEXT_ENCODING)
    except (binascii.Error, UnicodeError) as exc:
        raise DigestEncodingError(f"cannot encode {digest_name} digest") from exc
