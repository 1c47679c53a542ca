"""
    Copyright (c) 2025 Bc. Dominik Sabota, VUT FIT Brno

    ptisoverify - implanted ISO MD5 verification (checkisomd5 compatible)

    implantisomd5 hashes the image with the Application-Use field of the
    Primary Volume Descriptor filled with spaces and optionally without its
    last SKIPSECTORS sectors, then writes "ISO MD5SUM = <hex>" back into that
    field. Verification reproduces the same hash:

        A  [0, 32768)                    read from the source
        B  PVD with field blanked        fed from memory
        C  [34816, length - skip*2048)   read from the source

    This program is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License.
    See <https://www.gnu.org/licenses/> for details.
"""

import re
from dataclasses import dataclass
from typing import BinaryIO, Optional

from .digest import HASH_BLOCK_SIZE, new_digest, update_from_source
from .errors import PVDReadError, SegmentBoundsError

# ISO 9660 layout – bit-exact, shared with implantisomd5 / checkisomd5
PVD_OFFSET     = 32768
PVD_SIZE       = 2048
APP_USE_OFFSET = 883
APP_USE_SIZE   = 512
SECTOR_SIZE    = 2048
FILL_BYTE      = 0x20  # implantisomd5 blanks the field with spaces, not NULs

METHOD_INTERNAL = "ASCII String (checkisomd5 compatible)"

MD5_PATTERN  = re.compile(r"ISO MD5SUM = ([0-9a-fA-F]{32})")
SKIP_PATTERN = re.compile(r"SKIPSECTORS\s*=\s*([0-9]+)")


@dataclass(frozen=True)
class ImplantedSignature:
    stored_hash:  str
    skip_sectors: int = 0


@dataclass(frozen=True)
class HashSegmentPlan:
    """Byte spans read from the source; the neutralized PVD sits between them."""
    pre_pvd_end:    int
    post_pvd_start: int
    hash_end:       int

    @classmethod
    def for_image(cls, total_length: int, skip_sectors: int = 0) -> "HashSegmentPlan":
        hash_end = total_length - skip_sectors * SECTOR_SIZE
        if hash_end <= PVD_OFFSET + PVD_SIZE:
            raise SegmentBoundsError(total_length, skip_sectors, hash_end)
        return cls(pre_pvd_end=PVD_OFFSET, post_pvd_start=PVD_OFFSET + PVD_SIZE,
                   hash_end=hash_end)

    @property
    def post_pvd_length(self) -> int:
        return self.hash_end - self.post_pvd_start


@dataclass(frozen=True)
class VerificationResult:
    method:        str
    stored_hash:   str
    computed_hash: str
    matches:       bool

    def to_dict(self) -> dict:
        return {"method": self.method, "storedHash": self.stored_hash,
                "computedHash": self.computed_hash, "matches": self.matches}


def read_pvd(source: BinaryIO) -> bytes:
    """Read the 2048-byte Primary Volume Descriptor at offset 32768."""
    try:
        source.seek(PVD_OFFSET)
        block = source.read(PVD_SIZE)
    except OSError as exc:
        raise PVDReadError(f"Could not read PVD: {exc}") from exc
    if len(block) != PVD_SIZE:
        raise PVDReadError(f"Could not read PVD: got {len(block)} of {PVD_SIZE} bytes "
                           f"at offset {PVD_OFFSET} – not an ISO 9660 image")
    return block


def application_use(block: bytes) -> bytes:
    return block[APP_USE_OFFSET:APP_USE_OFFSET + APP_USE_SIZE]


def parse_signature(app_use: bytes) -> Optional[ImplantedSignature]:
    """
    Extract "ISO MD5SUM = <32 hex>" and optional "SKIPSECTORS = N".

    The field is free-form text; Latin-1 maps every byte so binary noise never
    breaks decoding. A missing or short hash means no signature (None).
    """
    text = app_use.decode("latin-1")
    m = MD5_PATTERN.search(text)
    if not m:
        return None

    skip = int(s.group(1)) if (s := SKIP_PATTERN.search(text)) else 0
    return ImplantedSignature(stored_hash=m.group(1).lower(), skip_sectors=skip)


def neutralize_pvd(block: bytes) -> bytes:
    """Copy of the PVD with the whole Application-Use field set to spaces."""
    if len(block) != PVD_SIZE:
        raise ValueError(f"PVD block must be {PVD_SIZE} bytes, got {len(block)}")
    neutral = bytearray(block)
    neutral[APP_USE_OFFSET:APP_USE_OFFSET + APP_USE_SIZE] = bytes([FILL_BYTE]) * APP_USE_SIZE
    return bytes(neutral)


def reproduce_md5(source: BinaryIO, neutral_pvd: bytes, plan: HashSegmentPlan,
                  block_size: int = HASH_BLOCK_SIZE) -> str:
    """Hash segments A, B, C in that order into one MD5 instance."""
    digest = new_digest("md5")

    source.seek(0)
    update_from_source(digest, source, plan.pre_pvd_end, block_size)

    digest.update(neutral_pvd)

    # B advanced no source cursor, so C starts with an explicit seek
    source.seek(plan.post_pvd_start)
    update_from_source(digest, source, plan.post_pvd_length, block_size)

    return digest.hexdigest()


def verify_implanted_md5(source: BinaryIO, total_length: int,
                         block_size: int = HASH_BLOCK_SIZE) -> Optional[VerificationResult]:
    """
    Check the MD5 implanted in an ISO image.

    Returns None when the image carries no signature. Raises PVDReadError,
    SegmentBoundsError or SourceTruncatedError when the hash cannot be computed;
    a computed-but-different hash is VerificationResult(matches=False).
    """
    block     = read_pvd(source)
    signature = parse_signature(application_use(block))
    if signature is None:
        return None

    plan = HashSegmentPlan.for_image(total_length, signature.skip_sectors)
    computed = reproduce_md5(source, neutralize_pvd(block), plan, block_size).lower()

    return VerificationResult(
        method=METHOD_INTERNAL,
        stored_hash=signature.stored_hash,
        computed_hash=computed,
        matches=computed == signature.stored_hash.lower(),
    )
