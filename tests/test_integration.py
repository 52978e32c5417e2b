# =============================================================================
# test_integration.py - Host Toolchain Integration Tests
# =============================================================================
# Assembles generated code with the host C compiler, runs the binary, and
# compares its exit status with the emulator's result.
#
# Skipped unless an x86-64 host with `cc` on PATH is available.
# Run only these with: pytest -m integration
# =============================================================================

import platform
import shutil
import subprocess

import pytest

from minicc import compile_source
from minicc.emulator import exit_status, run_assembly


pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(shutil.which("cc") is None, reason="no host C compiler"),
    pytest.mark.skipif(
        platform.machine().lower() not in ("x86_64", "amd64"),
        reason="requires an x86-64 host",
    ),
]


def build_and_run(source: str, tmp_path) -> int:
    """Compile, assemble, link and run; return the process exit status."""
    asm_path = tmp_path / "prog.s"
    exe_path = tmp_path / "prog"
    asm_path.write_text(compile_source(source))
    subprocess.run(["cc", "-o", str(exe_path), str(asm_path)], check=True)
    return subprocess.run([str(exe_path)]).returncode


class TestHostToolchain:
    """Native execution agrees with the expected values and the emulator."""

    @pytest.mark.parametrize("source,expected", [
        ("0;", 0),
        ("42;", 42),
        ("1+2*3;", 7),
        ("(1+2)*3;", 9),
        ("a=3; b=a+2; a*b;", 15),
        ("a=1; return a+1; a=99;", 2),
        ("1==1; 1!=1;", 0),
        ("5>3;", 1),
        ("3>=5;", 0),
        ("-7/2+10;", 7),
        ("a=b=5; a+b;", 10),
        ("return 0-1;", 255),
    ])
    def test_exit_status(self, source, expected, tmp_path):
        assert build_and_run(source, tmp_path) == expected
        assert exit_status(run_assembly(compile_source(source))) == expected

    def test_all_variables(self, tmp_path):
        letters = [chr(c) for c in range(ord("a"), ord("z") + 1)]
        source = " ".join(f"{name}={i};" for i, name in enumerate(letters, start=1))
        source += " return " + "+".join(letters) + ";"
        assert build_and_run(source, tmp_path) == sum(range(1, 27)) & 0xFF
