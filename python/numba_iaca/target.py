"""Architecture tags and target machine construction."""

from __future__ import annotations

import contextlib
import enum
import logging
import threading
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union

import llvmlite.binding as llvm

from .errors import UnsupportedArchitecture


logger = logging.getLogger(__name__)

_INIT_LOCK = threading.Lock()
_NATIVE_READY = False


class Arch(enum.Enum):
    """Microarchitectures understood by IACA, mapped to LLVM CPU names."""

    HSW = "haswell"
    BDW = "broadwell"
    SKL = "skylake"
    SKX = "skx"

    @property
    def cpu(self) -> str:
        return self.value


ArchLike = Union[Arch, str]

SUPPORTED_ARCHS = tuple(arch.name for arch in Arch)


@dataclass(frozen=True)
class TargetConfig:
    triple: str
    cpu: str
    features: str = ""


def resolve_arch(tag: ArchLike) -> Arch:
    if isinstance(tag, Arch):
        return tag
    if isinstance(tag, str):
        try:
            return Arch[tag.strip().upper()]
        except KeyError:
            pass
    raise UnsupportedArchitecture(tag, SUPPORTED_ARCHS)


def cpu_features(tag: ArchLike) -> Tuple[str, str]:
    """Return ``(cpu, features)`` for an architecture tag."""
    arch = resolve_arch(tag)
    return arch.cpu, ""


def ensure_native_target() -> None:
    global _NATIVE_READY
    with _INIT_LOCK:
        if _NATIVE_READY:
            return
        llvm.initialize_native_target()
        llvm.initialize_native_asmprinter()
        llvm.initialize_native_asmparser()
        _NATIVE_READY = True


def target_config(tag: ArchLike, *, triple: Optional[str] = None) -> TargetConfig:
    cpu, features = cpu_features(tag)
    return TargetConfig(triple=triple or llvm.get_default_triple(), cpu=cpu, features=features)


@contextlib.contextmanager
def target_machine(config: TargetConfig, *, opt: int = 2) -> Iterator[llvm.TargetMachine]:
    """Yield a target machine for *config*, disposing it when the block exits."""
    ensure_native_target()
    target = llvm.Target.from_triple(config.triple)
    tm = target.create_target_machine(
        cpu=config.cpu,
        features=config.features,
        opt=opt,
        reloc="default",
        codemodel="default",
    )
    logger.debug("created target machine triple=%s cpu=%s features=%r", config.triple, config.cpu, config.features)
    try:
        yield tm
    finally:
        tm.close()
