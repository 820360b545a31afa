"""Content identifiers for Cairn objects."""

import hashlib
from pathlib import Path
from typing import BinaryIO

CHUNK_SIZE = 8192
DIGEST_LENGTH = 40


def digest(data: bytes | str | BinaryIO) -> str:
    """Return the SHA-1 hex digest of *data*.

    Args:
        data: Raw bytes, text (hashed as UTF-8) or a binary stream. Streams
            are consumed in fixed-size chunks.

    Returns:
        40-character lowercase hex digest
    """
    sha = hashlib.sha1()

    if isinstance(data, str):
        sha.update(data.encode("utf-8"))
    elif isinstance(data, (bytes, bytearray, memoryview)):
        sha.update(data)
    else:
        for chunk in iter(lambda: data.read(CHUNK_SIZE), b""):
            sha.update(chunk)

    return sha.hexdigest()


def digest_file(path: Path) -> str:
    """Hash a file on disk without loading it into memory."""
    with open(path, "rb") as f:
        return digest(f)


def new_digest():
    """Incremental hasher producing the same ids as :func:`digest`."""
    return hashlib.sha1()
