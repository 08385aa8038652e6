"""
Pytest configuration and fixtures for numba-iaca tests.
"""
import os
import platform
import stat
import sys
from pathlib import Path

import llvmlite.binding as llvm
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from numba_iaca.target import ensure_native_target  # noqa: E402

IS_X86_64 = platform.machine().lower() in {"x86_64", "amd64"}

x86_only = pytest.mark.skipif(not IS_X86_64, reason="IACA targets need an x86-64 host")
posix_only = pytest.mark.skipif(sys.platform == "win32", reason="stub analyzer is a shell script")


@pytest.fixture(scope="session", autouse=True)
def native_target():
    ensure_native_target()


@pytest.fixture
def parse_ir():
    """Parse textual IR into a module named after the test."""

    def _parse(text: str, name: str = "synthetic") -> llvm.ModuleRef:
        mod = llvm.parse_assembly(text)
        mod.name = name
        mod.verify()
        return mod

    return _parse


@pytest.fixture
def stub_analyzer(tmp_path):
    """Write an executable stand-in for iaca and return its path."""

    def _make(body: str = 'echo "IACA stub $@"', exit_code: int = 0) -> Path:
        script = tmp_path / "iaca-stub"
        script.write_text(f"#!/bin/sh\n{body}\nexit {exit_code}\n", encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


@pytest.fixture
def no_iaca_env(monkeypatch):
    monkeypatch.delenv("IACA_PATH", raising=False)
    return os.environ
