"""
    Copyright (c) 2025 Bc. Dominik Sabota, VUT FIT Brno

    ptisoverify - verification targets and byte sources

    This program is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License.
    See <https://www.gnu.org/licenses/> for details.
"""

import os
import re
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .errors import DeviceLengthUnavailableError, TargetError

WINDOWS_DRIVE = re.compile(r"^([A-Za-z]):\\?$")


@dataclass(frozen=True)
class FileTarget:
    """Regular image file (.iso)."""
    path: Path

    kind = "file"

    @property
    def label(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class DeviceTarget:
    """Raw optical drive: /dev/sr0 or \\\\.\\E: for a Windows drive letter."""
    path: str
    drive_letter: Optional[str] = None

    kind = "device"

    @property
    def label(self) -> str:
        return f"{self.drive_letter}:" if self.drive_letter else self.path

    @property
    def root(self) -> Optional[Path]:
        """Filesystem root of a drive letter; block devices need a mount lookup."""
        return Path(f"{self.drive_letter}:\\") if self.drive_letter else None


@dataclass(frozen=True)
class MountTarget:
    """Directory where a medium is mounted – content verification only."""
    path: Path

    kind = "mount"

    @property
    def label(self) -> str:
        return str(self.path)


Target = Union[FileTarget, DeviceTarget, MountTarget]


def resolve_target(raw: str, windows: bool = os.name == "nt") -> Target:
    """Classify a user-supplied path once, before any check runs."""
    if windows and (m := WINDOWS_DRIVE.match(raw)):
        letter = m.group(1).upper()
        return DeviceTarget(path=f"\\\\.\\{letter}:", drive_letter=letter)

    try:
        mode = os.stat(raw).st_mode
    except FileNotFoundError:
        raise TargetError(f"Target not found: {raw}") from None
    except OSError as exc:
        raise TargetError(f"Cannot access target {raw}: {exc}") from exc

    if stat.S_ISBLK(mode) or stat.S_ISCHR(mode):
        return DeviceTarget(path=raw)
    if stat.S_ISDIR(mode):
        return MountTarget(path=Path(raw).resolve())
    if stat.S_ISREG(mode):
        return FileTarget(path=Path(raw).resolve())
    raise TargetError(f"Unsupported target type: {raw}")


def open_source(target: Target) -> BinaryIO:
    """Open a read-only byte source. The caller owns and closes the handle."""
    if isinstance(target, MountTarget):
        raise TargetError(f"{target.label} is a directory – whole-image checks need "
                          "an image file or a device")
    return open(target.path, "rb")


def discover_length(source: BinaryIO, device: Optional[str] = None) -> int:
    """
    Total length of a byte source.

    Regular files use filesystem metadata. Devices (device is not None) use
    seek-to-end, since size metadata of raw device handles is unreliable; a
    handle that cannot seek to its end, or reports an empty medium, raises
    DeviceLengthUnavailableError. The read position is restored to 0.
    """
    if device is None:
        return os.fstat(source.fileno()).st_size

    try:
        length = source.seek(0, os.SEEK_END)
        source.seek(0, os.SEEK_SET)
    except OSError as exc:
        raise DeviceLengthUnavailableError(device) from exc
    if length <= 0:
        raise DeviceLengthUnavailableError(device)
    return length


def target_length(source: BinaryIO, target: Target) -> int:
    return discover_length(source, target.label if isinstance(target, DeviceTarget) else None)
