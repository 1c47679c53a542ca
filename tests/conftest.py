import hashlib
import os

import pytest

PVD_OFFSET     = 32768
PVD_SIZE       = 2048
APP_USE_OFFSET = 883
APP_USE_SIZE   = 512
SECTOR_SIZE    = 2048
MIB            = 1024 * 1024


def image_bytes(size):
    """Deterministic filler with a minimal ISO 9660 PVD header at 32768."""
    data = bytearray((bytes(range(256)) * (size // 256 + 1))[:size])
    if size >= PVD_OFFSET + PVD_SIZE:
        data[PVD_OFFSET:PVD_OFFSET + 6] = b"\x01CD001"
    return data


def implant(data, skip_sectors=0, extra=""):
    """Same procedure as implantisomd5: blank field, hash, write signature."""
    field = slice(PVD_OFFSET + APP_USE_OFFSET, PVD_OFFSET + APP_USE_OFFSET + APP_USE_SIZE)
    data[field] = b" " * APP_USE_SIZE
    end = len(data) - skip_sectors * SECTOR_SIZE
    md5 = hashlib.md5(bytes(data[:end])).hexdigest()
    text = f"ISO MD5SUM = {md5};SKIPSECTORS = {skip_sectors};RHLISOSTATUS=1;{extra}"
    write_app_use(data, text)
    return md5


def write_app_use(data, text):
    raw = text.encode("latin-1") if isinstance(text, str) else text
    raw = raw[:APP_USE_SIZE].ljust(APP_USE_SIZE, b" ")
    start = PVD_OFFSET + APP_USE_OFFSET
    data[start:start + APP_USE_SIZE] = raw


@pytest.fixture
def make_image(tmp_path):
    """Write a synthetic ISO to tmp_path; returns (path, stored md5 or None)."""
    def _make(name="image.iso", size=MIB, skip_sectors=0, app_use=None, implanted=True):
        data = image_bytes(size)
        md5 = None
        if app_use is not None:
            write_app_use(data, app_use)
        elif implanted:
            md5 = implant(data, skip_sectors)
        path = tmp_path / name
        path.write_bytes(bytes(data))
        return path, md5
    return _make


@pytest.fixture
def medium(tmp_path):
    """Mounted-medium directory with files and a SHA256SUMS manifest."""
    root = tmp_path / "medium"
    (root / "images").mkdir(parents=True)
    files = {
        "images/install.img": os.urandom(4096),
        "README.txt":         b"release notes\n",
    }
    lines = []
    for name, content in files.items():
        (root / name).write_bytes(content)
        lines.append(f"{hashlib.sha256(content).hexdigest()}  ./{name}")
    (root / "SHA256SUMS").write_text("# checksums\n" + "\n".join(lines) + "\n")
    return root
