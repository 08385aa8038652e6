"""Command line front-end.

Usage:
  iaca-analyze examples/kernels.py:mysum "(float64[:],)" --arch SKL
  iaca-analyze mypkg.kernels:mysum "(float64[:],)" --emit-object mysum.o
"""

from __future__ import annotations

import argparse
import importlib
import importlib.util
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from . import config
from .errors import IACAError
from .optimize import HostOptimizer
from .pipeline import analyze, compile_object, inspect_llvm, inspect_native
from .target import SUPPORTED_ARCHS


def load_target(target: str) -> Any:
    """Resolve ``module:attr`` or ``path/to/file.py:attr`` to an object."""
    location, sep, attr = target.rpartition(":")
    if not sep or not location or not attr:
        raise ValueError(f"expected MODULE:FUNCTION, got {target!r}")
    if location.endswith(".py") or Path(location).exists():
        path = Path(location).resolve()
        mod_spec = importlib.util.spec_from_file_location(path.stem, path)
        if mod_spec is None or mod_spec.loader is None:
            raise ValueError(f"cannot load {path}")
        module = importlib.util.module_from_spec(mod_spec)
        mod_spec.loader.exec_module(module)
    else:
        module = importlib.import_module(location)
    obj: Any = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise ValueError(f"{location} has no attribute {attr!r}") from exc
    return obj


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="iaca-analyze", description="Run IACA over a Numba-compiled function")
    ap.add_argument("target", help="MODULE:FUNCTION or FILE.py:FUNCTION")
    ap.add_argument("signature", help='argument types, e.g. "(float64[:], int64)"')
    ap.add_argument("--arch", default=config.DEFAULT_ARCH, help=f"one of {', '.join(SUPPORTED_ARCHS)}")
    ap.add_argument("-O", "--opt-level", dest="opt_level", type=int, choices=range(0, 4), default=None)
    ap.add_argument("--emit-object", metavar="PATH", help="write the object file instead of running IACA")
    ap.add_argument("--emit-llvm", action="store_true", help="print the optimised LLVM IR")
    ap.add_argument("--emit-asm", action="store_true", help="print the target assembly")
    ap.add_argument("--log-level", default="WARNING")
    ap.add_argument("-v", "--verbose", action="store_true", help="shorthand for --log-level DEBUG")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    level = logging.DEBUG if args.verbose else getattr(logging, str(args.log_level).upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        func = load_target(args.target)
    except (ValueError, ImportError, OSError) as exc:
        print(f"iaca-analyze: {exc}", file=sys.stderr)
        return 2

    optimizer = HostOptimizer(args.opt_level)
    try:
        if args.emit_llvm:
            print(inspect_llvm(func, args.signature, args.arch, optimizer))
        elif args.emit_asm:
            print(inspect_native(func, args.signature, args.arch, optimizer))
        elif args.emit_object:
            data = compile_object(func, args.signature, args.arch, optimizer, path=args.emit_object)
            print(f"Wrote {args.emit_object} ({len(data)} bytes)")
        else:
            analyze(func, args.signature, args.arch, optimizer)
    except IACAError as exc:
        print(f"iaca-analyze: {type(exc).__name__}: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
