"""Locating and running the IACA executable."""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Union

from . import config
from .errors import AnalyzerFailed, ExecutableNotFound
from .target import ArchLike, resolve_arch


logger = logging.getLogger(__name__)


@dataclass
class AnalyzerResult:
    command: List[str]
    returncode: int
    stdout: str
    stderr: str = ""


def analyzer_path(environ: Optional[Mapping[str, str]] = None) -> str:
    """Return the configured analyzer name, honouring ``IACA_PATH``."""
    env = os.environ if environ is None else environ
    if config.ANALYZER_ENV not in env:
        return config.DEFAULT_ANALYZER
    value = env[config.ANALYZER_ENV]
    if not value.strip():
        raise ExecutableNotFound(f"{config.ANALYZER_ENV} is set but empty")
    return value


def find_analyzer(path: Optional[str] = None) -> str:
    candidate = path if path is not None else analyzer_path()
    resolved = shutil.which(candidate)
    if resolved is None:
        raise ExecutableNotFound(f"analyzer {candidate!r} not found or not executable")
    return resolved


def analyzer_command(executable: str, arch: ArchLike, objfile: Union[str, Path]) -> List[str]:
    return [executable, "-arch", resolve_arch(arch).name, str(objfile)]


def run_analyzer(executable: str, arch: ArchLike, objfile: Union[str, Path]) -> AnalyzerResult:
    """Run the analyzer over *objfile* and wait for it to finish."""
    cmd = analyzer_command(executable, arch, objfile)
    logger.debug("running: %s", " ".join(cmd))
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise ExecutableNotFound(f"cannot execute {executable!r}: {exc}") from exc
    if proc.returncode != 0:
        raise AnalyzerFailed(proc.returncode, (proc.stdout or "") + (proc.stderr or ""))
    return AnalyzerResult(command=cmd, returncode=proc.returncode, stdout=proc.stdout or "", stderr=proc.stderr or "")
