"""Process-wide settings for numba-iaca.

The optimisation level mirrors Numba's own ``NUMBA_OPT`` setting unless
``NUMBA_IACA_OPT`` is given.  Call :func:`set_optlevel` to change it for the
rest of the process.
"""

from __future__ import annotations

import os
from typing import Mapping, Optional

from numba.core import config as numba_config

ANALYZER_ENV = "IACA_PATH"
DEFAULT_ANALYZER = "iaca"
OPTLEVEL_ENV = "NUMBA_IACA_OPT"
DEFAULT_ARCH = "SKL"
OBJECT_NAME = "a.out"

MIN_OPTLEVEL = 0
MAX_OPTLEVEL = 3


def _clamp_optlevel(value: int) -> int:
    return max(MIN_OPTLEVEL, min(MAX_OPTLEVEL, int(value)))


def _initial_optlevel(environ: Optional[Mapping[str, str]] = None) -> int:
    env = os.environ if environ is None else environ
    raw = env.get(OPTLEVEL_ENV)
    if raw is None or raw.strip() == "":
        return _clamp_optlevel(numba_config.OPT)
    try:
        value = int(raw, 10)
    except ValueError as exc:
        raise ValueError(f"{OPTLEVEL_ENV} must be an integer value") from exc
    return _clamp_optlevel(value)


OPTLEVEL = _initial_optlevel()


def get_optlevel() -> int:
    return OPTLEVEL


def set_optlevel(level: int) -> int:
    """Set the default optimisation level and return the previous one."""
    global OPTLEVEL
    if int(level) != _clamp_optlevel(level):
        raise ValueError(f"optimisation level must be within {MIN_OPTLEVEL}..{MAX_OPTLEVEL}")
    prev = OPTLEVEL
    OPTLEVEL = int(level)
    return prev
