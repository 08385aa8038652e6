"""Object and assembly emission."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import llvmlite.binding as llvm

from .errors import EmissionFailed


logger = logging.getLogger(__name__)


def emit_object(tm: llvm.TargetMachine, module: llvm.ModuleRef, path: Union[str, Path]) -> Path:
    path = Path(path)
    try:
        data = tm.emit_object(module)
    except RuntimeError as exc:
        raise EmissionFailed(f"cannot lower {module.name!r} for {tm.triple}: {exc}") from exc
    if not data:
        raise EmissionFailed(f"object file for {module.name!r} is empty")
    path.write_bytes(data)
    logger.debug("wrote %d bytes to %s", len(data), path)
    return path


def emit_assembly(tm: llvm.TargetMachine, module: llvm.ModuleRef) -> str:
    try:
        return tm.emit_assembly(module)
    except RuntimeError as exc:
        raise EmissionFailed(f"cannot lower {module.name!r} for {tm.triple}: {exc}") from exc
