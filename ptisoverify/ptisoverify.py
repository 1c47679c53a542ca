#!/usr/bin/env python3
"""
    Copyright (c) 2025 Bc. Dominik Sabota, VUT FIT Brno

    ptisoverify - ISO image and optical drive integrity verification tool

    This program is free software: you can redistribute it and/or modify
    it under the terms of the GNU General Public License as published by
    the Free Software Foundation, either version 3 of the License.
    See <https://www.gnu.org/licenses/> for details.
"""

import argparse
import sys
import time
import logging
import subprocess
from pathlib import Path
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Any

from ._version import __version__

from ptlibs import ptjsonlib, ptprinthelper
from ptlibs.ptprinthelper import ptprint

from .checkisomd5 import Md5Outcome, select_verifiers
from .digest import hash_source
from .errors import ExternalToolError, IsoVerifyError, TargetError
from .manifest import ContentsReport, EntryResult, EntryStatus, find_expected_hash, is_sha256, verify_contents
from .source import DeviceTarget, FileTarget, MountTarget, open_source, resolve_target

# ---------------------------------------------------------------------------
# CONSTANTS
# ---------------------------------------------------------------------------

SCRIPTNAME          = "ptisoverify"
DEFAULT_OUTPUT_DIR  = "/var/forensics/reports"
DEFAULT_LOG_DIR     = "/var/log/forensics"
FALLBACK_DIR        = "/tmp/forensics"
PROGRESS_INTERVAL   = 1.0   # Report progress every 1 GB
TIMEOUT_FAST        = 30    # lsblk
EXTERNAL_POLICIES   = ("auto", "never", "only")


def _relative(path: Path, root: Path) -> Path:
    try:
        return path.relative_to(root)
    except ValueError:
        return path


# ---------------------------------------------------------------------------
# MAIN CLASS
# ---------------------------------------------------------------------------

class PtIsoVerify:
    """
    ISO image / optical drive integrity verification – ptlibs compliant.

    Independent checks, each recorded as its own result node:
      1. Whole-target SHA-256 against a hash string or hash file
         (informational SHA-256 when no expected value is given)
      2. Implanted MD5 (implantisomd5 / checkisomd5 compatible)
      3. Per-file SHA-256 against every checksum manifest on the medium

    A failing check never suppresses the others; run() folds their outcomes
    into verificationStatus.
    """

    def __init__(self, args: argparse.Namespace) -> None:
        self.ptjsonlib  = ptjsonlib.PtJsonLib()
        self.args       = args
        self.output_dir = Path(args.output_dir)
        self.outcomes:  Dict[str, Optional[bool]] = {}

        self.target = resolve_target(args.target)
        self.logger = self._setup_logger()
        self.ptjsonlib.add_properties({
            "target":             self.target.label,
            "targetType":         self.target.kind,
            "timestamp":          datetime.now(timezone.utc).isoformat(),
            "scriptVersion":      __version__,
            "sha256":             None,
            "expectedSha256":     None,
            "sha256Match":        None,
            "md5Method":          None,
            "md5Stored":          None,
            "md5Computed":        None,
            "md5Match":           None,
            "manifestsFound":     None,
            "filesVerified":      None,
            "filesFailed":        None,
            "verificationStatus": "UNKNOWN",
        })
        self.logger.info(f"ptisoverify {__version__} target={self.target.label} "
                         f"type={self.target.kind}")

    # --- setup --------------------------------------------------------------

    def _setup_logger(self) -> logging.Logger:
        log_dir = Path(getattr(self.args, "log_dir", None) or DEFAULT_LOG_DIR)
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            log_dir = Path(FALLBACK_DIR)
            log_dir.mkdir(parents=True, exist_ok=True)

        # one logger per instance, no handlers shared between tools
        logger = logging.getLogger(f"{SCRIPTNAME}.{id(self)}")
        logger.setLevel(logging.DEBUG)
        logger.propagate = False
        fh = logging.FileHandler(log_dir / f"{SCRIPTNAME}_{datetime.now().strftime('%Y%m%d')}.log")
        fh.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(message)s"))
        logger.addHandler(fh)
        if self.args.verbose and not self.args.json:
            logger.addHandler(logging.StreamHandler())
        return logger

    def close(self) -> None:
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

    # --- helpers ------------------------------------------------------------

    def _add_node(self, node_type: str, success: Optional[bool], **kwargs) -> None:
        """Append a result node to the JSON output."""
        self.ptjsonlib.add_node(self.ptjsonlib.create_node_object(
            node_type,
            properties={"success": success, **kwargs},
        ))

    def _run_command(self, cmd: List[str], timeout: int = TIMEOUT_FAST) -> Dict[str, Any]:
        base = {"success": False, "stdout": "", "stderr": "", "returncode": -1}
        self.logger.debug(f"Executing: {' '.join(cmd)}")
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, check=False)
            base.update({"success": proc.returncode == 0, "stdout": proc.stdout.strip(),
                         "stderr": proc.stderr.strip(), "returncode": proc.returncode})
        except subprocess.TimeoutExpired:
            base["stderr"] = f"Timeout after {timeout}s"; self.logger.error(base["stderr"])
        except OSError as exc:
            base["stderr"] = str(exc); self.logger.error(exc)
        return base

    def _progress(self) -> Callable[[int], None]:
        """Progress printer for long hashing runs, one line per PROGRESS_INTERVAL GB."""
        t0   = time.time()
        last = [0.0]

        def report(done: int) -> None:
            current_gb = done / (1024 ** 3)
            if current_gb - last[0] >= PROGRESS_INTERVAL:
                elapsed = time.time() - t0
                speed   = (done / (1024 ** 2)) / elapsed if elapsed > 0 else 0
                ptprint(f"Progress: {current_gb:.1f} GB | {speed:.0f} MB/s",
                        "INFO", condition=not self.args.quiet)
                last[0] = current_gb
        return report

    def _target_sha256(self) -> str:
        """SHA-256 of the whole image file or drive."""
        what = "drive" if isinstance(self.target, DeviceTarget) else "file"
        ptprint(f"Calculating SHA-256 for {what} '{self.target.label}'"
                f"{' (this can be slow)' if what == 'drive' else ''}...",
                "INFO", condition=not self.args.json)
        t0 = time.time()
        with open_source(self.target) as source:
            digest = hash_source(source, "sha256", progress=self._progress()).lower()
        self.logger.info(f"SHA-256 {digest} in {time.time() - t0:.1f}s")
        self.ptjsonlib.add_properties({"sha256": digest})
        return digest

    # --- checks -------------------------------------------------------------

    def check_sha256_string(self, expected: str, origin: str = "argument") -> bool:
        """Compare the whole-target SHA-256 with an expected value."""
        ptprint("\nVerifying Target Against Provided SHA-256 Hash", "TITLE", condition=not self.args.json)
        expected = expected.strip().lower()

        if not is_sha256(expected):
            ptprint("Invalid SHA-256 hash format. Expected 64 hexadecimal characters.",
                    "ERROR", condition=not self.args.json)
            self._add_node("sha256Verification", False, origin=origin,
                           error="Invalid hash format", expectedHash=expected)
            return False
        if isinstance(self.target, MountTarget):
            ptprint("A mounted directory has no whole-image hash – use the image file or device.",
                    "ERROR", condition=not self.args.json)
            self._add_node("sha256Verification", False, origin=origin,
                           error="Target is a directory")
            return False

        try:
            calculated = self._target_sha256()
        except (OSError, IsoVerifyError) as exc:
            ptprint(f"Error calculating hash: {exc}", "ERROR", condition=not self.args.json)
            self.logger.error(f"SHA-256 failed: {exc}")
            self._add_node("sha256Verification", False, origin=origin, error=str(exc))
            return False

        match = calculated == expected
        ptprint(f"Expected:   {expected}", "INFO", condition=not self.args.json)
        ptprint(f"Calculated: {calculated}", "INFO", condition=not self.args.json)
        ptprint("SUCCESS – hashes match." if match else "FAILURE – hashes DO NOT match.",
                "OK" if match else "ERROR", condition=not self.args.json, colortext=True)

        self.ptjsonlib.add_properties({"expectedSha256": expected, "sha256Match": match})
        self._add_node("sha256Verification", match, origin=origin,
                       expectedHash=expected, calculatedHash=calculated, hashMatch=match)
        return match

    def check_sha256_file(self, hash_file: str) -> bool:
        """Look up the expected SHA-256 in a hash file, then compare."""
        ptprint("\nVerifying Target Against SHA-256 Hash File", "TITLE", condition=not self.args.json)
        try:
            text = Path(hash_file).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            ptprint(f"Error reading hash file: {exc}", "ERROR", condition=not self.args.json)
            self._add_node("sha256Verification", False, origin=hash_file, error=str(exc))
            return False

        name     = self.target.label if isinstance(self.target, FileTarget) else None
        expected = find_expected_hash(text, name)
        if expected is None:
            ptprint(f"Could not find a valid SHA-256 entry in '{hash_file}'.",
                    "ERROR", condition=not self.args.json)
            self._add_node("sha256Verification", False, origin=hash_file,
                           error="No SHA-256 entry in hash file")
            return False

        self.logger.info(f"Expected SHA-256 from {hash_file}: {expected}")
        return self.check_sha256_string(expected, origin=hash_file)

    def show_sha256(self) -> Optional[bool]:
        """Informational SHA-256 when no expected value was given."""
        ptprint("\nSHA-256 Hash (Informational)", "TITLE", condition=not self.args.json)
        if isinstance(self.target, MountTarget):
            ptprint("Skipped – target is a mounted directory.", "INFO", condition=not self.args.json)
            return None
        try:
            digest = self._target_sha256()
        except (OSError, IsoVerifyError) as exc:
            ptprint(f"Error calculating hash: {exc}", "ERROR", condition=not self.args.json)
            self._add_node("sha256Hash", False, error=str(exc))
            return False
        ptprint(f"SHA-256: {digest}", "WARNING", condition=not self.args.json, colortext=True)
        self._add_node("sha256Hash", None, calculatedHash=digest)
        return None

    def check_implanted_md5(self) -> Optional[bool]:
        """Implanted MD5 check; True/False when a signature exists, None when absent."""
        ptprint("\nVerifying Implanted ISO MD5 (checkisomd5 compatible)", "TITLE",
                condition=not self.args.json)
        if isinstance(self.target, MountTarget):
            ptprint("Implanted MD5 needs the image file or the raw drive, not a mounted directory.",
                    "ERROR", condition=not self.args.json)
            self._add_node("implantedMd5", False, error="Target is a directory")
            return False

        try:
            verifiers = select_verifiers(self.args.external)
        except ExternalToolError as exc:
            ptprint(str(exc), "ERROR", condition=not self.args.json)
            self._add_node("implantedMd5", False, error=str(exc))
            return False

        outcome: Optional[Md5Outcome] = None
        last_error = "No MD5 verifier could run"
        for index, verifier in enumerate(verifiers):
            ptprint(f"Using {verifier.name} verifier...", "INFO", condition=not self.args.json)
            try:
                outcome = verifier.verify(self.target)
                break
            except ExternalToolError as exc:
                last_error = str(exc)
                self.logger.warning(last_error)
                if index + 1 < len(verifiers):
                    ptprint(f"{exc} – falling back to internal MD5 verification.",
                            "WARNING", condition=not self.args.json)
                else:
                    ptprint(str(exc), "ERROR", condition=not self.args.json)
            except (OSError, IsoVerifyError) as exc:
                ptprint(f"Error during MD5 check: {exc}", "ERROR", condition=not self.args.json)
                self.logger.error(f"Implanted MD5 failed: {type(exc).__name__}: {exc}")
                self._add_node("implantedMd5", False, error=str(exc), errorType=type(exc).__name__)
                return False

        if outcome is None:
            self._add_node("implantedMd5", False, error=last_error, errorType="ExternalToolError")
            return False
        return self._report_md5(outcome)

    def _report_md5(self, outcome: Md5Outcome) -> Optional[bool]:
        if outcome.output:
            ptprint(outcome.output, "INFO", condition=not self.args.json)

        if not outcome.signature_found:
            ptprint("No 'ISO MD5SUM' signature found – image was not implanted with implantisomd5.",
                    "WARNING", condition=not self.args.json)
            ptprint("SHA-256 and content verification are still valid.", "INFO",
                    condition=not self.args.json)
            self._add_node("implantedMd5", None, signatureFound=False)
            return None

        props = {"md5Method": outcome.method, "md5Match": outcome.passed}
        if r := outcome.result:
            props.update({"md5Stored": r.stored_hash, "md5Computed": r.computed_hash})
            ptprint(f"Verification Method: {r.method}", "INFO", condition=not self.args.json)
            ptprint(f"Stored MD5:          {r.stored_hash}", "INFO", condition=not self.args.json)
            ptprint(f"Calculated MD5:      {r.computed_hash}", "INFO", condition=not self.args.json)
        self.ptjsonlib.add_properties(props)

        if outcome.passed:
            ptprint("SUCCESS: Implanted MD5 is valid.", "OK", condition=not self.args.json, colortext=True)
        else:
            ptprint("FAILURE: Implanted MD5 does not match calculated hash.", "ERROR",
                    condition=not self.args.json, colortext=True)
        self.logger.info(f"Implanted MD5 via {outcome.method}: passed={outcome.passed}")
        self._add_node("implantedMd5", outcome.passed, signatureFound=True,
                       returnCode=outcome.returncode,
                       **(outcome.result.to_dict() if outcome.result else {"method": outcome.method}))
        return outcome.passed

    def _find_mount_point(self, device: str) -> Optional[Path]:
        r = self._run_command(["lsblk", "-n", "-o", "MOUNTPOINT", device])
        if r["success"]:
            for line in r["stdout"].splitlines():
                if line.strip():
                    return Path(line.strip())
        return None

    def _contents_root(self) -> Optional[Path]:
        mount_point = getattr(self.args, "mount_point", None)
        if mount_point:
            return Path(mount_point)
        if isinstance(self.target, MountTarget):
            return self.target.path
        if isinstance(self.target, DeviceTarget):
            return self.target.root or self._find_mount_point(self.target.path)
        return None

    def verify_contents(self) -> Optional[bool]:
        """Verify every file listed in checksum manifests on the mounted medium."""
        ptprint("\nVerifying Contents", "TITLE", condition=not self.args.json)

        root = self._contents_root()
        if root is None:
            if isinstance(self.target, DeviceTarget):
                ptprint(f"{self.target.label} is not mounted – mount it to verify its contents.",
                        "WARNING", condition=not self.args.json)
            else:
                ptprint("For ISO files, mount the image and verify using the mount point.",
                        "INFO", condition=not self.args.json)
                ptprint(f"Example: sudo mount -o loop {self.target.path} /mnt && "
                        f"{SCRIPTNAME} /mnt", "INFO", condition=not self.args.json)
            self._add_node("contentVerification", None, skipped=True, error="No mount point")
            return None
        if not root.is_dir():
            ptprint(f"Mount point not found: {root}", "ERROR", condition=not self.args.json)
            self._add_node("contentVerification", False, mountPoint=str(root),
                           error="Mount point not found")
            return False

        ptprint(f"Searching for checksum files (*.sha, sha256sum.txt, SHA256SUMS) in {root}...",
                "INFO", condition=not self.args.json)
        report = verify_contents(root, on_result=self._print_entry)
        return self._report_contents(report)

    def _print_entry(self, result: EntryResult) -> None:
        name = result.entry.file_name
        if result.status is EntryStatus.OK:
            ptprint(f"Verifying: {name} -> OK", "OK", condition=not self.args.json)
        elif result.status is EntryStatus.UNSAFE:
            ptprint(f"Skipping potentially unsafe path: {name}", "WARNING", condition=not self.args.json)
        elif result.status is EntryStatus.MISSING:
            ptprint(f"File not found on media: {name}", "WARNING", condition=not self.args.json)
        else:
            ptprint(f"Verifying: {name} -> {result.status.value}"
                    f"{': ' + result.error if result.error else ''}",
                    "ERROR", condition=not self.args.json)
        if not result.ok:
            self.logger.warning(f"{result.status.value}: {name} {result.error or ''}".rstrip())

    def _report_contents(self, report: ContentsReport) -> Optional[bool]:
        for warning in report.warnings:
            ptprint(warning, "WARNING", condition=not self.args.json)

        for m in report.manifests:
            rel = _relative(m.manifest_path, report.root)
            if m.error:
                ptprint(f"Could not open checksum file {rel}: {m.error}", "WARNING",
                        condition=not self.args.json)
            self._add_node("manifest", m.error is None and m.failed_count == 0,
                           manifest=str(rel), totalFiles=m.total_count,
                           failedFiles=m.failed_count, error=m.error,
                           failures=[{"file": r.entry.file_name, "status": r.status.value}
                                     for r in m.results if not r.ok])

        self.ptjsonlib.add_properties({"manifestsFound": len(report.manifests),
                                       "filesVerified": report.total_count,
                                       "filesFailed": report.failed_count})

        ptprint(f"Checksum files processed: {len(report.manifests)}", "INFO", condition=not self.args.json)
        ptprint(f"Total files verified: {report.total_count}", "INFO", condition=not self.args.json)

        if not report.manifests:
            ptprint("Could not find any checksum files (*.sha, sha256sum.txt, SHA256SUMS) on the media.",
                    "WARNING", condition=not self.args.json)
            self._add_node("contentVerification", None, mountPoint=str(report.root), manifestsFound=0)
            return None
        if report.failed_count:
            ptprint(f"Failure: {report.failed_count} out of {report.total_count} files failed verification.",
                    "ERROR", condition=not self.args.json, colortext=True)
            self._add_node("contentVerification", False, mountPoint=str(report.root),
                           totalFiles=report.total_count, failedFiles=report.failed_count)
            return False
        if report.total_count == 0:
            ptprint("No files were verified.", "WARNING", condition=not self.args.json)
            self._add_node("contentVerification", None, mountPoint=str(report.root), totalFiles=0)
            return None

        ptprint(f"Success: All {report.total_count} files verified successfully.", "OK",
                condition=not self.args.json, colortext=True)
        self._add_node("contentVerification", True, mountPoint=str(report.root),
                       totalFiles=report.total_count, failedFiles=0)
        return True

    # --- run & save ---------------------------------------------------------

    def determine_final_status(self) -> str:
        """
        FAILED    → any check failed
        VERIFIED  → at least one check passed, none failed
        COMPLETED → only informational results
        """
        values = list(self.outcomes.values())
        if any(v is False for v in values):
            status = "FAILED"
        elif any(v is True for v in values):
            status = "VERIFIED"
        else:
            status = "COMPLETED"
        self.ptjsonlib.add_properties({"verificationStatus": status})
        return status

    def run(self) -> None:
        """Execute every requested check; each runs regardless of the others."""
        ptprint("=" * 70, "TITLE", condition=not self.args.json)
        ptprint(f"ISO VERIFICATION v{__version__} | {self.target.label} ({self.target.kind})",
                "TITLE", condition=not self.args.json)
        ptprint("=" * 70, "TITLE", condition=not self.args.json)

        expected = self.args.sha256 or self.args.sha256_pos
        if self.args.sha_file:
            self.outcomes["sha256File"] = self.check_sha256_file(self.args.sha_file)
        if expected:
            self.outcomes["sha256"] = self.check_sha256_string(expected)
        if not expected and not self.args.sha_file:
            self.outcomes["sha256Info"] = self.show_sha256()
        if self.args.md5:
            self.outcomes["implantedMd5"] = self.check_implanted_md5()
        if not self.args.no_verify:
            self.outcomes["contents"] = self.verify_contents()

        status = self.determine_final_status()
        level  = {"VERIFIED": "OK", "FAILED": "ERROR"}.get(status, "INFO")
        ptprint("\n" + "=" * 70, "TITLE", condition=not self.args.json)
        ptprint(f"Result: {status}", level, condition=not self.args.json)
        ptprint("=" * 70, "TITLE", condition=not self.args.json)
        self.logger.info(f"Finished: {status} {self.outcomes}")

        self.ptjsonlib.set_status("finished")

    def save_report(self) -> Optional[str]:
        """Output JSON report to stdout (--json) or to file."""
        if self.args.json:
            ptprint(self.ptjsonlib.get_result_json(), "", self.args.json)
            return None

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            self.output_dir = Path(FALLBACK_DIR)
            self.output_dir.mkdir(parents=True, exist_ok=True)

        safe    = "".join(c if c.isalnum() or c in "-_." else "_" for c in Path(self.target.label).name)
        outfile = self.output_dir / f"{safe or 'target'}_isoverify_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
        outfile.write_text(self.ptjsonlib.get_result_json(), encoding="utf-8")
        ptprint(f"Report saved: {outfile}", "OK", condition=not self.args.json)
        return str(outfile)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def get_help() -> List[Dict]:
    return [
        {"description": ["ISO image and optical drive integrity verification – ptlibs compliant",
                         "SHA-256, implanted MD5 (checkisomd5 compatible) and manifest checks"]},
        {"usage": ["ptisoverify <target> [sha256-hash] [options]"]},
        {"usage_example": ["ptisoverify image.iso",
                           "ptisoverify image.iso <sha256>",
                           "ptisoverify image.iso --sha-file SHA256SUMS --md5",
                           "ptisoverify /dev/sr0 --md5",
                           "ptisoverify /mnt/cdrom",
                           "ptisoverify image.iso --mount-point /mnt --json"]},
        {"options": [
            ["target",              "",         "ISO file, block device, drive letter (E:) or mount point – REQUIRED"],
            ["sha256-hash",         "",         "Expected SHA-256 of the target (optional)"],
            ["-s", "--sha256",      "<hash>",   "Expected SHA-256 (aliases --sha256sum, --sha)"],
            ["-f", "--sha-file",    "<file>",   "Hash file holding the expected SHA-256"],
            ["-m", "--md5",         "",         "Check implanted ISO MD5"],
            ["--external",          "<policy>", "checkisomd5 use: auto (default), never, only"],
            ["-n", "--no-verify",   "",         "Skip checksum manifest verification"],
            ["--mount-point",       "<dir>",    "Where the image/device is mounted, for content checks"],
            ["-o", "--output-dir",  "<dir>",    f"Report directory (default: {DEFAULT_OUTPUT_DIR})"],
            ["--log-dir",           "<dir>",    f"Log directory (default: {DEFAULT_LOG_DIR})"],
            ["-v", "--verbose",     "",         "Verbose logging"],
            ["-j", "--json",        "",         "JSON output for Penterep platform"],
            ["-q", "--quiet",       "",         "Suppress progress output"],
            ["-h", "--help",        "",         "Show help"],
            ["--version",           "",         "Show version"],
        ]},
        {"verification_process": [
            "1. SHA-256 of the whole image / drive (against a hash or hash file if given)",
            "2. Implanted MD5 stored in the Primary Volume Descriptor (--md5)",
            "3. SHA-256 of every file listed in *.sha, sha256sum.txt, SHA256SUMS on the medium",
        ]},
        {"exit_codes": ["0 – verified / completed", "1 – a check failed", "99 – error"]},
    ]


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("target")
    parser.add_argument("sha256_pos", nargs="?", default=None)
    parser.add_argument("-s", "--sha256", "--sha256sum", "--sha", dest="sha256", default=None)
    parser.add_argument("-f", "--sha-file",   default=None)
    parser.add_argument("-m", "--md5",        action="store_true")
    parser.add_argument("--external",         choices=EXTERNAL_POLICIES, default="auto")
    parser.add_argument("-n", "--no-verify",  action="store_true")
    parser.add_argument("--mount-point",      default=None)
    parser.add_argument("-o", "--output-dir", default=DEFAULT_OUTPUT_DIR)
    parser.add_argument("--log-dir",          default=DEFAULT_LOG_DIR)
    parser.add_argument("-v", "--verbose",    action="store_true")
    parser.add_argument("-q", "--quiet",      action="store_true")
    parser.add_argument("-j", "--json",       action="store_true")
    parser.add_argument("--version", action="version", version=f"{SCRIPTNAME} {__version__}")
    parser.add_argument("--socket-address",   default=None)
    parser.add_argument("--socket-port",      default=None)
    parser.add_argument("--process-ident",    default=None)

    if len(sys.argv) == 1 or {"-h", "--help"} & set(sys.argv):
        ptprinthelper.help_print(get_help(), SCRIPTNAME, __version__)
        sys.exit(0)

    args = parser.parse_args()
    if args.json:
        args.quiet = True
    ptprinthelper.print_banner(SCRIPTNAME, __version__, args.json)
    return args


def _target_error(exc: TargetError, use_json: bool) -> int:
    """Report an unusable target as a JSON error or console message; exit code 99."""
    if use_json:
        error_json = ptjsonlib.PtJsonLib()
        error_json.set_status("error", str(exc))
        ptprint(error_json.get_result_json(), "", use_json)
    else:
        ptprint(f"Error: {exc}", "ERROR", condition=True)
    return 99


def main() -> int:
    try:
        args = parse_args()

        try:
            tool = PtIsoVerify(args)
        except TargetError as exc:
            return _target_error(exc, args.json)

        try:
            tool.run()
            tool.save_report()
        finally:
            tool.close()

        status = tool.ptjsonlib.json_object["results"]["properties"]["verificationStatus"]
        return {"VERIFIED": 0, "COMPLETED": 0, "FAILED": 1}.get(status, 99)

    except KeyboardInterrupt:
        ptprint("Interrupted by user.", "WARNING", condition=True)
        return 130
    except Exception as exc:
        ptprint(f"ERROR: {exc}", "ERROR", condition=True)
        return 99


if __name__ == "__main__":
    sys.exit(main())
