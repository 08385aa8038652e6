#!/usr/bin/env python3
"""iaca-analyze.py -- run IACA over a Numba-compiled function.

Usage:
  python3 iaca-analyze.py kernels.py:mysum "(float64[:],)" --arch SKL
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from numba_iaca.cli import main  # noqa: E402

if __name__ == "__main__":
    sys.exit(main())
