"""Public entry points tying the pipeline stages together."""

from __future__ import annotations

import logging
import sys
import tempfile
from pathlib import Path
from typing import Any, Optional, Union

from . import config
from .analyzer import analyzer_path, find_analyzer, run_analyzer
from .emit import emit_assembly, emit_object
from .entry import DEFAULT_CONVENTION, NamingConvention, resolve_entry
from .errors import AnalyzerFailed, IACAError
from .extract import close_modules, extract_ir
from .link import GLOBAL_UNIQUE, CompiledUnit, UniqueCounter, link_unit
from .optimize import Optimizer, host_optimize
from .target import ArchLike, target_config, target_machine


logger = logging.getLogger(__name__)


def irgen(
    func: Any,
    signature: Any,
    *,
    counter: UniqueCounter = GLOBAL_UNIQUE,
    convention: NamingConvention = DEFAULT_CONVENTION,
) -> CompiledUnit:
    """Return the linked, uniquely named compiled unit for ``func(signature)``.

    Every module produced along the way is closed if a later stage fails.
    """
    raw = extract_ir(func, signature)
    try:
        resolution = resolve_entry(raw.module, convention)
    except IACAError:
        close_modules(raw.dependencies)
        raise
    try:
        unit = link_unit(resolution, raw.dependencies, counter, convention)
    except IACAError:
        resolution.module.close()
        raise
    logger.debug("%s%s -> %s", raw.qualname, raw.argtypes, unit.entry_name)
    return unit


def build_object(
    func: Any,
    signature: Any,
    arch: ArchLike,
    optimizer: Optimizer,
    objfile: Union[str, Path],
    *,
    counter: UniqueCounter = GLOBAL_UNIQUE,
) -> Path:
    tconf = target_config(arch)
    unit = irgen(func, signature, counter=counter)
    try:
        with target_machine(tconf) as tm:
            optimizer(tm, unit.module)
            return emit_object(tm, unit.module, objfile)
    finally:
        unit.module.close()


def compile_object(
    func: Any,
    signature: Any,
    arch: ArchLike = config.DEFAULT_ARCH,
    optimizer: Optimizer = host_optimize,
    path: Optional[Union[str, Path]] = None,
    *,
    counter: UniqueCounter = GLOBAL_UNIQUE,
) -> bytes:
    """Compile ``func(signature)`` for *arch* and return the object file bytes.

    The object is also kept at *path* when one is given.
    """
    target_config(arch)
    if path is not None:
        return build_object(func, signature, arch, optimizer, path, counter=counter).read_bytes()
    with tempfile.TemporaryDirectory(prefix="numba-iaca-") as workdir:
        objfile = Path(workdir) / config.OBJECT_NAME
        return build_object(func, signature, arch, optimizer, objfile, counter=counter).read_bytes()


def analyze(
    func: Any,
    signature: Any,
    arch: ArchLike = config.DEFAULT_ARCH,
    optimizer: Optimizer = host_optimize,
    *,
    echo: bool = True,
    counter: UniqueCounter = GLOBAL_UNIQUE,
) -> str:
    """Analyze ``func`` specialised for ``signature`` with IACA.

    The function body must contain :func:`iaca_start` / :func:`iaca_end`
    markers.  Supported ``arch`` values are ``HSW``, ``BDW``, ``SKL`` and
    ``SKX``.  The report is printed when *echo* is true and returned.

    Example::

        @njit
        def mysum(a):
            acc = 0.0
            for x in a:
                iaca_start()
                acc += x
            iaca_end()
            return acc

        analyze(mysum, (float64[:],))

    Pass ``optimizer=HostOptimizer(3)`` (or any ``(tm, module)`` callable)
    to change how the module is optimised before emission.
    """
    tconf = target_config(arch)
    requested = analyzer_path()
    with tempfile.TemporaryDirectory(prefix="numba-iaca-") as workdir:
        objfile = Path(workdir) / config.OBJECT_NAME
        build_object(func, signature, arch, optimizer, objfile, counter=counter)
        executable = find_analyzer(requested)
        try:
            result = run_analyzer(executable, arch, objfile)
        except AnalyzerFailed as exc:
            if echo and exc.output:
                sys.stdout.write(exc.output)
            raise
    logger.debug("analysis of %s for %s finished", getattr(func, "__name__", func), tconf.cpu)
    if echo:
        sys.stdout.write(result.stdout)
        if result.stderr:
            sys.stderr.write(result.stderr)
    return result.stdout


def inspect_llvm(
    func: Any,
    signature: Any,
    arch: ArchLike = config.DEFAULT_ARCH,
    optimizer: Optional[Optimizer] = host_optimize,
) -> str:
    """Return the IR that would be handed to the code generator."""
    tconf = target_config(arch)
    unit = irgen(func, signature)
    try:
        if optimizer is not None:
            with target_machine(tconf) as tm:
                optimizer(tm, unit.module)
        return str(unit.module)
    finally:
        unit.module.close()


def inspect_native(
    func: Any,
    signature: Any,
    arch: ArchLike = config.DEFAULT_ARCH,
    optimizer: Optimizer = host_optimize,
) -> str:
    """Return the target assembly for ``func(signature)``."""
    tconf = target_config(arch)
    unit = irgen(func, signature)
    try:
        with target_machine(tconf) as tm:
            optimizer(tm, unit.module)
            return emit_assembly(tm, unit.module)
    finally:
        unit.module.close()
