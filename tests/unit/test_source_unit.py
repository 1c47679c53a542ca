"""
Unit tests for source.py: target classification and length discovery.
"""

import io
import os

import pytest

from ptisoverify.errors import DeviceLengthUnavailableError, TargetError
from ptisoverify.source import (
    DeviceTarget, FileTarget, MountTarget, discover_length, open_source,
    resolve_target, target_length,
)


class UnseekableDevice(io.BytesIO):
    """Stands in for a virtual drive handle that refuses seek-to-end."""
    def seek(self, offset, whence=os.SEEK_SET):
        if whence == os.SEEK_END:
            raise OSError(22, "Invalid argument")
        return super().seek(offset, whence)


def test_resolve_file(tmp_path):
    path = tmp_path / "image.iso"
    path.write_bytes(b"x")
    target = resolve_target(str(path))
    assert isinstance(target, FileTarget)
    assert target.label == "image.iso"
    assert target.kind == "file"


def test_resolve_directory(tmp_path):
    target = resolve_target(str(tmp_path))
    assert isinstance(target, MountTarget)
    assert target.path == tmp_path.resolve()


def test_resolve_missing(tmp_path):
    with pytest.raises(TargetError):
        resolve_target(str(tmp_path / "missing.iso"))


@pytest.mark.skipif(not os.path.exists("/dev/null"), reason="needs /dev/null")
def test_resolve_character_device():
    target = resolve_target("/dev/null")
    assert isinstance(target, DeviceTarget)
    assert target.root is None


@pytest.mark.parametrize("raw", ["e:", "E:\\"])
def test_resolve_windows_drive_letter(raw):
    target = resolve_target(raw, windows=True)
    assert target == DeviceTarget(path="\\\\.\\E:", drive_letter="E")
    assert target.label == "E:"
    assert str(target.root).startswith("E:")


def test_drive_letter_pattern_ignored_off_windows(tmp_path):
    with pytest.raises(TargetError):
        resolve_target("E:", windows=False)


def test_open_source_rejects_directory(tmp_path):
    with pytest.raises(TargetError):
        open_source(MountTarget(path=tmp_path))


def test_file_length_from_metadata(tmp_path):
    path = tmp_path / "image.iso"
    path.write_bytes(b"\x00" * 5000)
    target = FileTarget(path=path)
    with open_source(target) as src:
        assert target_length(src, target) == 5000


def test_device_length_by_seek_to_end_restores_position():
    src = io.BytesIO(b"\x00" * 7000)
    assert discover_length(src, device="/dev/sr0") == 7000
    assert src.tell() == 0


def test_device_without_length_discovery():
    with pytest.raises(DeviceLengthUnavailableError) as info:
        discover_length(UnseekableDevice(b"\x00" * 10), device="E:")
    assert "ISO file" in str(info.value)


def test_device_reporting_empty_medium():
    with pytest.raises(DeviceLengthUnavailableError):
        discover_length(io.BytesIO(b""), device="/dev/sr0")
