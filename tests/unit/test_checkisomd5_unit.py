"""
Unit tests for checkisomd5.py: verifier selection and the external
checkisomd5 substitute with fallback to the built-in verifier.
"""

import subprocess
import sys

import pytest

from ptisoverify.checkisomd5 import (
    METHOD_EXTERNAL, ExternalMd5Verifier, InternalMd5Verifier, select_verifiers,
)
from ptisoverify.errors import ExternalToolError
from ptisoverify.isomd5 import METHOD_INTERNAL
from ptisoverify.source import DeviceTarget, FileTarget


def fake_tool(tmp_path, exit_code):
    """Executable script named checkisomd5 exiting with `exit_code`."""
    script = tmp_path / "checkisomd5"
    script.write_text(f"#!{sys.executable}\nimport sys\nprint('checked', sys.argv[1:])\nsys.exit({exit_code})\n")
    script.chmod(0o755)
    return script


def test_internal_verifier_passes(make_image):
    path, stored = make_image()
    outcome = InternalMd5Verifier().verify(FileTarget(path=path))
    assert outcome.passed is True
    assert outcome.signature_found
    assert outcome.method == METHOD_INTERNAL
    assert outcome.result.stored_hash == stored


def test_internal_verifier_absent_signature(make_image):
    path, _ = make_image(implanted=False)
    outcome = InternalMd5Verifier().verify(FileTarget(path=path))
    assert outcome.passed is None
    assert not outcome.signature_found


def test_locate_in_search_dir(tmp_path):
    script = fake_tool(tmp_path, 0)
    verifier = ExternalMd5Verifier.locate(search_dirs=[tmp_path])
    assert verifier.executable == str(script)


def test_locate_missing(tmp_path, monkeypatch):
    monkeypatch.setattr("ptisoverify.checkisomd5.shutil.which", lambda name: None)
    assert ExternalMd5Verifier.locate(search_dirs=[tmp_path]) is None


def test_command_line(tmp_path):
    target = FileTarget(path=tmp_path / "a.iso")
    assert ExternalMd5Verifier("checkisomd5").command(target) == [
        "checkisomd5", "--verbose", str(tmp_path / "a.iso"),
    ]


@pytest.mark.parametrize("target, arg", [
    (DeviceTarget(path="\\\\.\\E:", drive_letter="E"), "E:"),
    (DeviceTarget(path="/dev/sr0"), "/dev/sr0"),
])
def test_command_line_for_drives(target, arg):
    assert ExternalMd5Verifier("checkisomd5").command(target)[-1] == arg


@pytest.mark.skipif(sys.platform == "win32", reason="shebang scripts")
@pytest.mark.parametrize("code, passed", [(0, True), (1, False), (2, False)])
def test_external_exit_code(tmp_path, make_image, code, passed):
    path, _ = make_image()
    outcome = ExternalMd5Verifier(str(fake_tool(tmp_path, code))).verify(FileTarget(path=path))
    assert outcome.passed is passed
    assert outcome.returncode == code
    assert outcome.method == METHOD_EXTERNAL
    assert "checked" in outcome.output


def test_external_cannot_run(tmp_path):
    with pytest.raises(ExternalToolError):
        ExternalMd5Verifier(str(tmp_path / "absent")).verify(FileTarget(path=tmp_path / "a.iso"))


def test_external_timeout(tmp_path, monkeypatch):
    def boom(*args, **kwargs):
        raise subprocess.TimeoutExpired(cmd="checkisomd5", timeout=1)
    monkeypatch.setattr("ptisoverify.checkisomd5.subprocess.run", boom)
    with pytest.raises(ExternalToolError):
        ExternalMd5Verifier("checkisomd5", timeout=1).verify(FileTarget(path=tmp_path / "a.iso"))


def test_select_never_is_internal_only():
    verifiers = select_verifiers("never")
    assert [v.name for v in verifiers] == ["internal"]


def test_select_auto_puts_external_first():
    ext = ExternalMd5Verifier("checkisomd5")
    verifiers = select_verifiers("auto", external=ext)
    assert verifiers[0] is ext
    assert verifiers[1].name == "internal"


def test_select_auto_without_external(monkeypatch):
    monkeypatch.setattr(ExternalMd5Verifier, "locate", classmethod(lambda cls, search_dirs=None: None))
    assert [v.name for v in select_verifiers("auto")] == ["internal"]


def test_select_only_requires_external(monkeypatch):
    monkeypatch.setattr(ExternalMd5Verifier, "locate", classmethod(lambda cls, search_dirs=None: None))
    with pytest.raises(ExternalToolError):
        select_verifiers("only")


def test_select_unknown_policy():
    with pytest.raises(ValueError):
        select_verifiers("sometimes", external=ExternalMd5Verifier("x"))
