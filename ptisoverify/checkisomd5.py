"""
    Copyright (c) 2025 Bc. Dominik Sabota, VUT FIT Brno

    ptisoverify - implanted MD5 verifiers: built-in and external checkisomd5

    This program is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License.
    See <https://www.gnu.org/licenses/> for details.
"""

import shutil
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import ExternalToolError
from .isomd5 import VerificationResult, verify_implanted_md5
from .source import DeviceTarget, Target, open_source, target_length

TOOL_NAMES       = ("checkisomd5", "checkisomd5.exe")
TIMEOUT_EXTERNAL = 7200  # 2 hours max, same as full-image hashing
METHOD_EXTERNAL  = "checkisomd5 (external)"


@dataclass(frozen=True)
class Md5Outcome:
    """
    What an MD5 verifier concluded.

    result is None with passed None when the image has no implanted
    signature. The external tool only reports an exit code, so result stays
    None there and its output is kept verbatim.
    """
    method: str
    passed: Optional[bool]
    result: Optional[VerificationResult] = None
    output: str = ""
    returncode: Optional[int] = None

    @property
    def signature_found(self) -> bool:
        return self.passed is not None


class InternalMd5Verifier:
    """Built-in reproduction of the implantisomd5 hash."""

    name = "internal"

    def verify(self, target: Target) -> Md5Outcome:
        with open_source(target) as source:
            length = target_length(source, target)
            result = verify_implanted_md5(source, length)
        if result is None:
            return Md5Outcome(method="internal", passed=None)
        return Md5Outcome(method=result.method, passed=result.matches, result=result)


class ExternalMd5Verifier:
    """Reference checkisomd5 binary; exit code 0 means the implanted MD5 matches."""

    name = "external"

    def __init__(self, executable: str, timeout: int = TIMEOUT_EXTERNAL) -> None:
        self.executable = executable
        self.timeout    = timeout

    @classmethod
    def locate(cls, search_dirs: Optional[Sequence[Path]] = None) -> Optional["ExternalMd5Verifier"]:
        """Find checkisomd5 beside the running program first, then on PATH."""
        if search_dirs is None:
            search_dirs = [Path(sys.argv[0]).resolve().parent]
        for directory in search_dirs:
            for name in TOOL_NAMES:
                candidate = Path(directory) / name
                if candidate.is_file():
                    return cls(str(candidate))
        for name in TOOL_NAMES:
            if found := shutil.which(name):
                return cls(found)
        return None

    def command(self, target: Target) -> List[str]:
        # drive letters go to the tool as typed (E:), not as \\.\E:
        path = target.label if isinstance(target, DeviceTarget) else str(target.path)
        return [self.executable, "--verbose", path]

    def verify(self, target: Target) -> Md5Outcome:
        try:
            proc = subprocess.run(self.command(target), capture_output=True, text=True,
                                  timeout=self.timeout, check=False)
        except subprocess.TimeoutExpired as exc:
            raise ExternalToolError(f"{self.executable} timed out after {self.timeout}s") from exc
        except OSError as exc:
            raise ExternalToolError(f"Could not run {self.executable}: {exc}") from exc

        output = (proc.stdout + proc.stderr).strip()
        return Md5Outcome(method=METHOD_EXTERNAL, passed=proc.returncode == 0,
                          output=output, returncode=proc.returncode)


def select_verifiers(policy: str = "auto",
                     external: Optional[ExternalMd5Verifier] = None) -> list:
    """
    Verifiers to try in order for an --external policy.

      auto  – external when found, internal as fallback
      never – internal only
      only  – external only (fails when missing)
    """
    if policy == "never":
        return [InternalMd5Verifier()]
    if external is None:
        external = ExternalMd5Verifier.locate()
    if policy == "only":
        if external is None:
            raise ExternalToolError("checkisomd5 not found beside the program or on PATH")
        return [external]
    if policy == "auto":
        return ([external] if external else []) + [InternalMd5Verifier()]
    raise ValueError(f"Unknown external policy: {policy}")
