"""Raw IR extraction from Numba.

Numba lowers a function into several ``llvmlite.ir`` modules (the function
body plus its calling-convention wrappers) and hands each one to the owning
code library through ``add_ir_module`` before running its own optimiser.  A
:class:`ModuleCollector` hooked into that call sees every module the compile
produces, including the ones for helper functions compiled as a side effect.
"""

from __future__ import annotations

import contextlib
import functools
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, List, Optional, Sequence, Tuple

import llvmlite.binding as llvm
import numba
from numba.core import cgutils, sigutils, types
from numba.core import errors as numba_errors
from numba.core.codegen import CPUCodeLibrary
from numba.core.compiler_lock import global_compiler_lock
from numba.core.dispatcher import Dispatcher

from .errors import IRGenerationFailed, NoApplicableMethod, NotSpecializable
from .target import ensure_native_target


logger = logging.getLogger(__name__)


@dataclass
class CapturedModule:
    owner: Any
    name: str
    text: str


@dataclass
class ModuleCollector:
    """Accumulates IR modules emitted while a compile is in flight."""

    modules: List[CapturedModule] = field(default_factory=list)

    def on_module(self, module: Any, owner: Any = None) -> None:
        text = cgutils.normalize_ir_text(str(module))
        name = getattr(module, "name", "") or ""
        self.modules.append(CapturedModule(owner=owner, name=name, text=text))
        logger.debug("captured IR module %s (%d bytes)", name, len(text))

    def partition(self, main_owner: Any) -> Tuple[List[CapturedModule], List[CapturedModule]]:
        main: List[CapturedModule] = []
        deps: List[CapturedModule] = []
        for captured in self.modules:
            (main if captured.owner is main_owner else deps).append(captured)
        return main, deps


@dataclass
class RawIR:
    module: llvm.ModuleRef
    dependencies: List[llvm.ModuleRef]
    qualname: str = ""
    argtypes: Tuple[types.Type, ...] = ()


@contextlib.contextmanager
def capture_modules(collector: ModuleCollector) -> Iterator[ModuleCollector]:
    """Route every ``CPUCodeLibrary.add_ir_module`` call through *collector*.

    Must be entered while holding Numba's global compiler lock.
    """
    # Relies on numba.core.codegen.CPUCodeLibrary.add_ir_module, a Numba
    # internal whose (library, ir_module) signature is not a public API.
    original = CPUCodeLibrary.add_ir_module

    @functools.wraps(original)
    def add_ir_module(library, ir_module):
        collector.on_module(ir_module, owner=library)
        return original(library, ir_module)

    CPUCodeLibrary.add_ir_module = add_ir_module
    try:
        yield collector
    finally:
        CPUCodeLibrary.add_ir_module = original


def as_dispatcher(func: Any) -> Dispatcher:
    if isinstance(func, Dispatcher):
        if getattr(func, "_compiler", None) is None:
            raise NotSpecializable(f"{func!r} has no compiler attached")
        return func
    if inspect.isbuiltin(func):
        raise NotSpecializable(f"{func!r} is a builtin, not a jittable function")
    if inspect.isfunction(func):
        return numba.njit(func)
    raise NotSpecializable(f"{func!r} is not a function")


def normalize_argtypes(signature: Any) -> Tuple[Tuple[types.Type, ...], Optional[types.Type]]:
    if isinstance(signature, types.Type):
        signature = (signature,)
    elif isinstance(signature, list):
        signature = tuple(signature)
    try:
        args, return_type = sigutils.normalize_signature(signature)
    except (TypeError, NameError, SyntaxError) as exc:
        raise NoApplicableMethod(f"invalid signature {signature!r}: {exc}") from exc
    return tuple(args), return_type


def close_modules(modules: Iterable[llvm.ModuleRef]) -> None:
    for mod in modules:
        mod.close()


def _parse_captured(captured: Sequence[CapturedModule]) -> List[llvm.ModuleRef]:
    parsed: List[llvm.ModuleRef] = []
    for item in captured:
        try:
            mod = llvm.parse_assembly(item.text)
        except RuntimeError as exc:
            close_modules(parsed)
            raise IRGenerationFailed(f"cannot parse IR module {item.name!r}: {exc}") from exc
        if item.name:
            mod.name = item.name
        parsed.append(mod)
    return parsed


def extract_ir(func: Any, signature: Any) -> RawIR:
    """Compile *func* for *signature* and return its unoptimised IR."""
    ensure_native_target()
    dispatcher = as_dispatcher(func)
    compiler = dispatcher._compiler
    args, return_type = normalize_argtypes(signature)
    qualname = getattr(dispatcher.py_func, "__qualname__", repr(dispatcher))
    try:
        _, args = compiler.fold_argument_types(args, {})
    except (TypeError, numba_errors.TypingError) as exc:
        raise NoApplicableMethod(f"{qualname} does not accept {args}: {exc}") from exc
    args = tuple(args)

    collector = ModuleCollector()
    with global_compiler_lock:
        with capture_modules(collector):
            try:
                cres = compiler.compile(args, return_type)
            except numba_errors.TypingError as exc:
                raise NoApplicableMethod(f"no implementation of {qualname} for {args}") from exc
            except numba_errors.NumbaError as exc:
                raise IRGenerationFailed(f"compiling {qualname}{args} failed: {exc}") from exc

    main, deps = collector.partition(cres.library)
    if not main:
        raise IRGenerationFailed(f"the compiler emitted no IR for {qualname}{args}")
    logger.debug("%s%s: %d main module(s), %d dependency module(s)", qualname, args, len(main), len(deps))

    modules = _parse_captured(main)
    module = modules[0]
    for i, extra in enumerate(modules[1:], start=1):
        try:
            module.link_in(extra)
        except RuntimeError as exc:
            close_modules([module] + modules[i + 1:])
            raise IRGenerationFailed(f"cannot assemble raw module for {qualname}: {exc}") from exc
    try:
        dependencies = _parse_captured(deps)
    except IRGenerationFailed:
        module.close()
        raise
    return RawIR(module=module, dependencies=dependencies, qualname=qualname, argtypes=args)
