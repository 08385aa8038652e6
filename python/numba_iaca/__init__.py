"""
numba_iaca - Intel IACA analysis for Numba-compiled functions.

Given a jitted function and an argument signature the package recovers the
function's own LLVM IR from the JIT, links in the helpers it calls, optimises
and emits an object file for the chosen microarchitecture, then runs IACA
over the region between the ``iaca_start()`` / ``iaca_end()`` markers.

    target.py    -> architecture tags, target machines
    markers.py   -> iaca_start / iaca_end intrinsics
    extract.py   -> raw IR capture from the Numba compiler
    entry.py     -> entry point resolution, wrapper removal
    link.py      -> dependency linking, unique entry naming
    optimize.py  -> default optimisation pipeline
    emit.py      -> object / assembly emission
    analyzer.py  -> IACA executable lookup and invocation
    pipeline.py  -> analyze() and the inspection helpers
"""

from .errors import (  # noqa: F401
    AmbiguousWrapper,
    AnalyzerFailed,
    EmissionFailed,
    ExecutableNotFound,
    IACAError,
    IRGenerationFailed,
    LinkConflict,
    NoApplicableMethod,
    NotSpecializable,
    NoWrapperFound,
    UnparsableName,
    UnsupportedArchitecture,
)
from .config import get_optlevel, set_optlevel  # noqa: F401
from .target import Arch, TargetConfig, cpu_features, resolve_arch, target_config, target_machine  # noqa: F401
from .markers import END_MARKER, START_MARKER, iaca_end, iaca_start  # noqa: F401
from .entry import DEFAULT_CONVENTION, EntryResolution, NamingConvention, resolve_entry  # noqa: F401
from .link import GLOBAL_UNIQUE, CompiledUnit, UniqueCounter  # noqa: F401
from .optimize import HostOptimizer, host_optimize  # noqa: F401
from .pipeline import analyze, compile_object, inspect_llvm, inspect_native, irgen  # noqa: F401

__all__ = [
    "analyze",
    "compile_object",
    "inspect_llvm",
    "inspect_native",
    "irgen",
    "iaca_start",
    "iaca_end",
    "START_MARKER",
    "END_MARKER",
    "Arch",
    "TargetConfig",
    "cpu_features",
    "resolve_arch",
    "target_config",
    "target_machine",
    "NamingConvention",
    "DEFAULT_CONVENTION",
    "EntryResolution",
    "resolve_entry",
    "UniqueCounter",
    "GLOBAL_UNIQUE",
    "CompiledUnit",
    "HostOptimizer",
    "host_optimize",
    "get_optlevel",
    "set_optlevel",
    "IACAError",
    "UnsupportedArchitecture",
    "NotSpecializable",
    "NoApplicableMethod",
    "IRGenerationFailed",
    "NoWrapperFound",
    "AmbiguousWrapper",
    "UnparsableName",
    "LinkConflict",
    "EmissionFailed",
    "ExecutableNotFound",
    "AnalyzerFailed",
]

__version__ = "0.1.0"
