"""SHA-1 verification against Maven ``.sha1`` sidecar files."""

from __future__ import annotations

import binascii
import hashlib
from typing import Final

from .exceptions import ChecksumInvalidError

SIDECAR_EXTENSION: Final[str] = "sha1"
_DIGEST_SIZE: Final[int] = 20


def sha1_digest(data: bytes) -> bytes:
    return hashlib.sha1(data).digest()


def decode_checksum(sidecar: bytes) -> bytes:
    """Decode the hex digest held in a sidecar file.

    Some repositories publish ``<hex>  <filename>``; only the first token is the
    digest.
    """
    tokens = sidecar.split()
    if not tokens:
        raise ChecksumInvalidError("checksum sidecar is empty")
    try:
        digest = binascii.unhexlify(tokens[0])
    except (binascii.Error, ValueError) as e:
        raise ChecksumInvalidError(f"checksum sidecar is not hex encoded: {e}") from e
    if len(digest) != _DIGEST_SIZE:
        raise ChecksumInvalidError(
            f"checksum sidecar holds {len(digest)} bytes, expected {_DIGEST_SIZE}"
        )
    return digest


def validate_checksum(data: bytes, expected: bytes) -> bool:
    """True when ``data`` hashes to ``expected`` (a raw 20-byte digest)."""
    return sha1_digest(data) == expected


__all__ = ["SIDECAR_EXTENSION", "sha1_digest", "decode_checksum", "validate_checksum"]
