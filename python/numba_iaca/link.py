"""Dependency linking and process-unique entry naming."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import llvmlite.binding as llvm

from .entry import DEFAULT_CONVENTION, EntryResolution, NamingConvention
from .errors import LinkConflict
from .extract import close_modules


logger = logging.getLogger(__name__)


class UniqueCounter:
    """Monotonic counter shared by all analyses that use it.

    Starts at zero; :meth:`next` increments and returns the new value under
    a lock.  There is no reset.
    """

    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    @property
    def value(self) -> int:
        with self._lock:
            return self._value

    def next(self) -> int:
        with self._lock:
            self._value += 1
            return self._value


GLOBAL_UNIQUE = UniqueCounter()


@dataclass
class CompiledUnit:
    module: llvm.ModuleRef
    entry: llvm.ValueRef
    resolution: Optional[EntryResolution] = None
    linked: List[str] = field(default_factory=list)

    @property
    def entry_name(self) -> str:
        return self.entry.name


def link_dependencies(module: llvm.ModuleRef, dependencies: Iterable[llvm.ModuleRef]) -> List[str]:
    """Link each dependency into *module*; the dependencies are consumed.

    On a conflict the dependencies not yet linked are closed.
    """
    deps = list(dependencies)
    linked: List[str] = []
    for i, dep in enumerate(deps):
        name = dep.name
        try:
            module.link_in(dep)
        except RuntimeError as exc:
            close_modules(deps[i:])
            raise LinkConflict(f"linking {name!r} into {module.name!r} failed: {exc}") from exc
        logger.debug("linked %s into %s", name, module.name)
        linked.append(name)
    return linked


def rename_entry(
    entry: llvm.ValueRef,
    counter: UniqueCounter = GLOBAL_UNIQUE,
    convention: NamingConvention = DEFAULT_CONVENTION,
) -> str:
    base = convention.strip_suffix(entry.name)
    name = f"{base}_{counter.next()}"
    entry.name = name
    entry.linkage = llvm.Linkage.external
    logger.debug("entry renamed to %s", name)
    return name


def link_unit(
    resolution: EntryResolution,
    dependencies: Iterable[llvm.ModuleRef],
    counter: UniqueCounter = GLOBAL_UNIQUE,
    convention: NamingConvention = DEFAULT_CONVENTION,
) -> CompiledUnit:
    module = resolution.module
    linked = link_dependencies(module, dependencies)
    entry = resolution.entry
    rename_entry(entry, counter, convention)
    return CompiledUnit(module=module, entry=entry, resolution=resolution, linked=linked)
