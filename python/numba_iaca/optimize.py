"""Optimisation of the linked module."""

from __future__ import annotations

import logging
from typing import Callable, Optional

import llvmlite.binding as llvm

from . import config


logger = logging.getLogger(__name__)

Optimizer = Callable[[llvm.TargetMachine, llvm.ModuleRef], None]


def prepare_module(tm: llvm.TargetMachine, module: llvm.ModuleRef) -> None:
    module.triple = tm.triple
    module.data_layout = str(tm.target_data)


class HostOptimizer:
    """Run LLVM's default pipeline for a speed level over a module in place.

    ``level`` of ``None`` uses :func:`numba_iaca.config.get_optlevel` at call
    time.  Pass failures propagate to the caller.
    """

    def __init__(self, level: Optional[int] = None) -> None:
        self.level = level

    def effective_level(self) -> int:
        return config.get_optlevel() if self.level is None else int(self.level)

    def __call__(self, tm: llvm.TargetMachine, module: llvm.ModuleRef) -> None:
        level = self.effective_level()
        prepare_module(tm, module)
        logger.debug("optimising %s at O%d", module.name, level)
        pto = llvm.create_pipeline_tuning_options(speed_level=level)
        pb = llvm.create_pass_builder(tm, pto)
        try:
            mpm = pb.getModulePassManager()
            try:
                mpm.run(module, pb)
            finally:
                mpm.close()
        finally:
            pb.close()

    def __repr__(self) -> str:
        return f"HostOptimizer(level={self.level!r})"


host_optimize = HostOptimizer()
