"""IACA region markers usable inside ``@njit`` functions.

Each marker loads a magic number into ``ebx`` and follows it with the
``fs addr32 nop`` sequence IACA scans for.  The inline asm is volatile and
clobbers memory and ``ebx`` so the optimiser neither drops nor moves it.
"""

from __future__ import annotations

from llvmlite import ir
from numba import types
from numba.extending import intrinsic

from .target import ensure_native_target

START_CODE = 111
END_CODE = 222

MARKER_CLOBBERS = "~{memory},~{ebx}"
_MARKER_NOP = b"\x64\x67\x90"


def _marker_bytes(code: int) -> bytes:
    # movl $code, %ebx
    return b"\xbb" + code.to_bytes(4, "little") + _MARKER_NOP


START_MARKER = _marker_bytes(START_CODE)
END_MARKER = _marker_bytes(END_CODE)


def marker_asm(code: int) -> str:
    return f"movl $${code}, %ebx\n.byte 0x64, 0x67, 0x90"


def _emit_marker(builder: ir.IRBuilder, code: int) -> None:
    # inline asm needs the native asm parser once the JIT finalizes the module
    ensure_native_target()
    fnty = ir.FunctionType(ir.VoidType(), [])
    builder.asm(fnty, marker_asm(code), MARKER_CLOBBERS, [], side_effect=True)


@intrinsic
def iaca_start(typingctx):
    """Insert the IACA start marker at this position."""

    def codegen(context, builder, signature, args):
        _emit_marker(builder, START_CODE)
        return context.get_dummy_value()

    return types.void(), codegen


@intrinsic
def iaca_end(typingctx):
    """Insert the IACA end marker at this position."""

    def codegen(context, builder, signature, args):
        _emit_marker(builder, END_CODE)
        return context.get_dummy_value()

    return types.void(), codegen
