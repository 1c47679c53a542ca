"""
    Copyright (c) 2025 Bc. Dominik Sabota, VUT FIT Brno

    ptisoverify - streaming SHA-256 / MD5 digests over files and devices

    This program is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License.
    See <https://www.gnu.org/licenses/> for details.
"""

import hashlib
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Union

from .errors import SourceTruncatedError

HASH_BLOCK_SIZE = 4 * 1024 * 1024  # 4 MB chunks for memory-efficient hashing
ALGORITHMS      = ("sha256", "md5")

ProgressCallback = Callable[[int], None]


def new_digest(algorithm: str = "sha256"):
    """
    Create a running hash object.

    MD5 is requested with usedforsecurity=False: it is an integrity check here,
    and hosts with a FIPS crypto policy refuse plain hashlib.md5().
    """
    if algorithm == "md5":
        return hashlib.md5(usedforsecurity=False)
    if algorithm == "sha256":
        return hashlib.sha256()
    raise ValueError(f"Unsupported algorithm: {algorithm}")


def hash_bytes(data: bytes, algorithm: str = "sha256") -> str:
    digest = new_digest(algorithm)
    digest.update(data)
    return digest.hexdigest()


def update_from_source(digest, source: BinaryIO, length: int,
                       block_size: int = HASH_BLOCK_SIZE,
                       progress: Optional[ProgressCallback] = None) -> int:
    """
    Feed exactly `length` bytes from the current position of `source` into `digest`.

    A short read raises SourceTruncatedError – hashing less data than planned
    would silently produce a wrong digest.
    """
    start     = source.tell()
    remaining = length
    while remaining > 0:
        chunk = source.read(min(block_size, remaining))
        if not chunk:
            raise SourceTruncatedError(start, length, length - remaining)
        digest.update(chunk)
        remaining -= len(chunk)
        if progress:
            progress(length - remaining)
    return length


def hash_range(source: BinaryIO, start: int, end: int, algorithm: str = "sha256",
               block_size: int = HASH_BLOCK_SIZE) -> str:
    """Hex digest of bytes [start, end) of a seekable source."""
    if end < start:
        raise ValueError(f"Invalid range [{start}, {end})")
    digest = new_digest(algorithm)
    source.seek(start)
    update_from_source(digest, source, end - start, block_size)
    return digest.hexdigest()


def hash_source(source: BinaryIO, algorithm: str = "sha256",
                block_size: int = HASH_BLOCK_SIZE,
                progress: Optional[ProgressCallback] = None) -> str:
    """Hex digest of everything from the current position to end of data."""
    digest = new_digest(algorithm)
    done   = 0
    while chunk := source.read(block_size):
        digest.update(chunk)
        done += len(chunk)
        if progress:
            progress(done)
    return digest.hexdigest()


def hash_file(path: Union[str, Path], algorithm: str = "sha256",
              block_size: int = HASH_BLOCK_SIZE) -> str:
    with open(path, "rb") as f:
        return hash_source(f, algorithm, block_size)
