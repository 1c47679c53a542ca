"""
    Copyright (c) 2025 Bc. Dominik Sabota, VUT FIT Brno

    ptisoverify - per-file SHA-256 verification against checksum manifests

    This program is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License.
    See <https://www.gnu.org/licenses/> for details.
"""

import os
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Union

from .digest import hash_file

# "<sha256>  [*./\ prefix]<name>"; ".." is kept so the containment check sees it
MANIFEST_LINE   = re.compile(r"^([a-fA-F0-9]{64})\s+((?:\*|\.?[/\\])*)(.*)$")
HASH_FORMAT     = re.compile(r"^[a-fA-F0-9]{64}$")
MANIFEST_NAMES  = ("sha256sum.txt", "sha256sums")
MANIFEST_SUFFIX = ".sha"


class EntryStatus(str, Enum):
    OK        = "OK"
    MISMATCH  = "MISMATCH"
    MISSING   = "MISSING"
    UNSAFE    = "UNSAFE_PATH"
    ERROR     = "READ_ERROR"


@dataclass(frozen=True)
class ManifestEntry:
    expected_hash: str
    file_name:     str


@dataclass
class EntryResult:
    entry:         ManifestEntry
    status:        EntryStatus
    computed_hash: Optional[str] = None
    error:         Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is EntryStatus.OK


@dataclass
class ManifestReport:
    manifest_path: Path
    results:       List[EntryResult] = field(default_factory=list)
    error:         Optional[str] = None

    @property
    def total_count(self) -> int:
        return len(self.results)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if not r.ok)


@dataclass
class ContentsReport:
    root:      Path
    manifests: List[ManifestReport] = field(default_factory=list)
    warnings:  List[str] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return sum(m.total_count for m in self.manifests)

    @property
    def failed_count(self) -> int:
        return sum(m.failed_count for m in self.manifests) + \
               sum(1 for m in self.manifests if m.error)

    @property
    def verified(self) -> bool:
        return self.total_count > 0 and self.failed_count == 0


# ---------------------------------------------------------------------------
# PARSING
# ---------------------------------------------------------------------------

def is_sha256(value: str) -> bool:
    return bool(HASH_FORMAT.match(value.strip()))


def parse_manifest_line(line: str) -> Optional[ManifestEntry]:
    m = MANIFEST_LINE.match(line)
    if not m:
        return None
    name = m.group(3).strip()
    if not name:
        return None
    return ManifestEntry(expected_hash=m.group(1).lower(), file_name=name)


def parse_manifest(text: str) -> List[ManifestEntry]:
    """Entries of a manifest; comments, headers and blank lines are skipped."""
    return [e for e in map(parse_manifest_line, text.splitlines()) if e]


def find_expected_hash(text: str, file_name: Optional[str] = None) -> Optional[str]:
    """
    Expected SHA-256 for a whole image from a hash file.

    Prefers the line naming `file_name` (any *.iso when None); otherwise the
    first 64-hex hash in the file.
    """
    if file_name:
        specific = re.compile(rf"^([a-fA-F0-9]{{64}})\s+\*?\s*{re.escape(file_name)}")
    else:
        specific = re.compile(r"^([a-fA-F0-9]{64})\s+\*?\s*.*\.iso", re.IGNORECASE)
    generic  = re.compile(r"^([a-fA-F0-9]{64})\s+\*?\s*.*")

    lines = text.splitlines()
    for pattern in (specific, generic):
        for line in lines:
            if m := pattern.match(line):
                return m.group(1).lower()
    return None


# ---------------------------------------------------------------------------
# VERIFICATION
# ---------------------------------------------------------------------------

def resolve_within(base_dir: Union[str, Path], file_name: str) -> Optional[Path]:
    """Path of `file_name` under `base_dir`, or None when it escapes the base."""
    base      = os.path.realpath(base_dir)
    candidate = os.path.realpath(os.path.join(base, file_name.replace("\\", os.sep)))
    try:
        if os.path.commonpath([base, candidate]) != base:
            return None
    except ValueError:
        return None
    return Path(candidate)


def verify_entry(entry: ManifestEntry, base_dir: Union[str, Path]) -> EntryResult:
    path = resolve_within(base_dir, entry.file_name)
    if path is None:
        return EntryResult(entry, EntryStatus.UNSAFE, error="Path escapes manifest directory")
    if not path.is_file():
        return EntryResult(entry, EntryStatus.MISSING, error="File not found on media")

    try:
        computed = hash_file(path).lower()
    except OSError as exc:
        return EntryResult(entry, EntryStatus.ERROR, error=str(exc))

    status = EntryStatus.OK if computed == entry.expected_hash.lower() else EntryStatus.MISMATCH
    return EntryResult(entry, status, computed_hash=computed)


def verify_manifest_text(text: str, base_dir: Union[str, Path],
                         manifest_path: Optional[Path] = None,
                         on_result: Optional[Callable[[EntryResult], None]] = None) -> ManifestReport:
    """Verify every entry; a failed entry never stops the following ones."""
    report = ManifestReport(manifest_path=manifest_path or Path(base_dir))
    for entry in parse_manifest(text):
        result = verify_entry(entry, base_dir)
        report.results.append(result)
        if on_result:
            on_result(result)
    return report


def verify_manifest(manifest_path: Union[str, Path],
                    on_result: Optional[Callable[[EntryResult], None]] = None) -> ManifestReport:
    manifest_path = Path(manifest_path)
    try:
        text = manifest_path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        return ManifestReport(manifest_path=manifest_path, error=str(exc))
    return verify_manifest_text(text, manifest_path.parent, manifest_path, on_result)


def is_manifest_name(name: str) -> bool:
    name = name.lower()
    return name.endswith(MANIFEST_SUFFIX) or name in MANIFEST_NAMES


def find_manifests(root: Union[str, Path], warnings: Optional[List[str]] = None) -> List[Path]:
    """All checksum manifests below `root`; unreadable directories become warnings."""
    def _onerror(exc: OSError) -> None:
        if warnings is not None:
            warnings.append(f"Could not access {exc.filename}: {exc.strerror}")

    found = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=_onerror):
        dirnames.sort()
        found.extend(Path(dirpath) / n for n in sorted(filenames) if is_manifest_name(n))
    return found


def verify_contents(root: Union[str, Path],
                    on_result: Optional[Callable[[EntryResult], None]] = None) -> ContentsReport:
    report = ContentsReport(root=Path(root))
    for manifest_path in find_manifests(root, report.warnings):
        report.manifests.append(verify_manifest(manifest_path, on_result))
    return report
