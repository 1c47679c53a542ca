"""
    Copyright (c) 2025 Bc. Dominik Sabota, VUT FIT Brno

    ptisoverify - failure categories of the verification core

    This program is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License.
    See <https://www.gnu.org/licenses/> for details.
"""


class IsoVerifyError(Exception):
    """Base class for every failure the verification core reports."""


class TargetError(IsoVerifyError):
    """Target path is neither an image file, a device nor a mounted medium."""


class SourceTruncatedError(IsoVerifyError, OSError):
    """Source ended before a span that must be hashed completely."""

    def __init__(self, offset: int, expected: int, got: int) -> None:
        self.offset   = offset
        self.expected = expected
        self.got      = got
        super().__init__(f"Unexpected end of data at offset {offset}: "
                         f"expected {expected} bytes, got {got}")


class PVDReadError(IsoVerifyError):
    """Primary Volume Descriptor could not be read – not an ISO 9660 image."""


class DeviceLengthUnavailableError(IsoVerifyError):
    """Device does not support seek-to-end length discovery."""

    def __init__(self, device: str) -> None:
        self.device = device
        super().__init__(
            f"{device} does not support device-level access (likely a virtual/mounted drive). "
            "Implanted MD5 check requires direct access to the ISO file – "
            "run the check against the original image file instead. "
            "Content verification still works with the mounted drive."
        )


class SegmentBoundsError(IsoVerifyError):
    """Hash end offset falls on or before the end of the PVD."""

    def __init__(self, total_length: int, skip_sectors: int, hash_end: int) -> None:
        self.total_length = total_length
        self.skip_sectors = skip_sectors
        self.hash_end     = hash_end
        super().__init__(f"Cannot compute implanted MD5: image of {total_length} bytes with "
                         f"SKIPSECTORS = {skip_sectors} leaves hash end at {hash_end}")


class ExternalToolError(IsoVerifyError):
    """External checkisomd5 is unavailable or could not be run."""
