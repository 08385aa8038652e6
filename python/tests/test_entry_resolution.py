import logging

import pytest

from numba_iaca.entry import (
    DEFAULT_CONVENTION,
    NamingConvention,
    definitions,
    resolve_entry,
    strip_definitions,
)
from numba_iaca.errors import AmbiguousWrapper, IRGenerationFailed, NoWrapperFound, UnparsableName

ENTRY = "_ZN8__main__6kernelB2v7E5int64"
TAG = ENTRY[len("_ZN"):]
WRAPPER = "_ZN7cpython" + TAG

WRAPPED_IR = f"""
define i64 @{ENTRY}(i64 %x) {{
entry:
  %y = add i64 %x, 1
  ret i64 %y
}}

define i64 @{WRAPPER}(i64 %x) {{
entry:
  %r = call i64 @{ENTRY}(i64 %x)
  ret i64 %r
}}

define i64 @cfunc.{ENTRY}(i64 %x) {{
entry:
  %r = call i64 @{ENTRY}(i64 %x)
  ret i64 %r
}}

declare i64 @external_helper(i64)
"""

SUFFIXED = NamingConvention(
    wrapper_prefix="wrap_",
    wrapper_pattern=r"^wrap_(?P<tag>.+)_[-\d]+$",
    entry_template=r"^impl_{tag}_[-\d]+$",
    auxiliary_templates=(),
)


def _names(module):
    return [fn.name for fn in definitions(module)]


def test_resolves_entry_and_removes_wrappers(parse_ir):
    resolution = resolve_entry(parse_ir(WRAPPED_IR))
    assert resolution.tag == TAG
    assert resolution.wrapper_name == WRAPPER
    assert resolution.entry.name == ENTRY
    assert resolution.candidates == [ENTRY]
    assert not resolution.ambiguous
    assert _names(resolution.module) == [ENTRY]
    resolution.module.verify()


def test_declarations_survive_wrapper_removal(parse_ir):
    resolution = resolve_entry(parse_ir(WRAPPED_IR))
    fn = resolution.module.get_function("external_helper")
    assert fn.is_declaration


def test_suffixed_convention_picks_matching_tag(parse_ir):
    module = parse_ir(
        """
define void @impl_mysum_41() {
  ret void
}

define void @impl_other_42() {
  ret void
}

define void @wrap_mysum_43() {
  call void @impl_mysum_41()
  ret void
}
"""
    )
    resolution = resolve_entry(module, SUFFIXED)
    assert resolution.tag == "mysum"
    assert resolution.entry.name == "impl_mysum_41"
    assert sorted(_names(resolution.module)) == ["impl_mysum_41", "impl_other_42"]


def test_negative_suffix_is_accepted(parse_ir):
    module = parse_ir(
        """
define void @impl_k_-5() {
  ret void
}

define void @wrap_k_-6() {
  ret void
}
"""
    )
    assert resolve_entry(module, SUFFIXED).entry.name == "impl_k_-5"


def test_unparsable_wrapper_name(parse_ir):
    module = parse_ir(
        """
define void @_ZN7cpython.odd() {
  ret void
}
"""
    )
    with pytest.raises(UnparsableName) as excinfo:
        resolve_entry(module)
    assert excinfo.value.name == "_ZN7cpython.odd"
    assert module.closed


def test_unparsable_without_numeric_suffix(parse_ir):
    module = parse_ir(
        """
define void @wrap_kernel() {
  ret void
}
"""
    )
    with pytest.raises(UnparsableName, match="wrap_kernel"):
        resolve_entry(module, SUFFIXED)


def test_missing_wrapper(parse_ir):
    module = parse_ir(
        """
define void @lonely() {
  ret void
}
"""
    )
    with pytest.raises(NoWrapperFound, match="lonely"):
        resolve_entry(module)
    assert module.closed


def test_declared_wrapper_is_not_a_definition(parse_ir):
    module = parse_ir(
        f"""
declare void @{WRAPPER}()

define void @{ENTRY}() {{
  ret void
}}
"""
    )
    with pytest.raises(NoWrapperFound):
        resolve_entry(module)


def test_two_wrappers_are_rejected(parse_ir):
    module = parse_ir(
        """
define void @_ZN7cpython1aE() {
  ret void
}

define void @_ZN7cpython1bE() {
  ret void
}
"""
    )
    with pytest.raises(AmbiguousWrapper, match="_ZN7cpython1aE"):
        resolve_entry(module)


def test_multiple_candidates_warn_and_pick_first(parse_ir, caplog):
    module = parse_ir(
        """
define void @impl_k_1() {
  ret void
}

define void @impl_k_2() {
  ret void
}

define void @wrap_k_3() {
  ret void
}
"""
    )
    with caplog.at_level(logging.WARNING, logger="numba_iaca.entry"):
        resolution = resolve_entry(module, SUFFIXED)
    assert resolution.ambiguous
    assert resolution.candidates == ["impl_k_1", "impl_k_2"]
    assert resolution.entry.name == "impl_k_1"
    assert any("expected one entry for tag k" in rec.getMessage() for rec in caplog.records)


def test_zero_candidates_fall_back_to_first_definition(parse_ir, caplog):
    module = parse_ir(
        """
define void @impl_other_1() {
  ret void
}

define void @wrap_k_3() {
  ret void
}
"""
    )
    with caplog.at_level(logging.WARNING, logger="numba_iaca.entry"):
        resolution = resolve_entry(module, SUFFIXED)
    assert resolution.ambiguous
    assert resolution.candidates == []
    assert resolution.entry.name == "impl_other_1"
    assert caplog.records


def test_nothing_left_after_wrapper_removal(parse_ir):
    module = parse_ir(
        """
define void @wrap_k_3() {
  ret void
}
"""
    )
    with pytest.raises(IRGenerationFailed):
        resolve_entry(module, SUFFIXED)


def test_strip_definitions_handles_quoted_names():
    text = '\n'.join(
        [
            "; Function Attrs: nounwind",
            'define void @"odd name"() #0 {',
            "  ret void",
            "}",
            "",
            "define void @keep() {",
            "  ret void",
            "}",
        ]
    )
    out = strip_definitions(text, ["odd name"])
    assert "odd name" not in out
    assert "Function Attrs" not in out
    assert "define void @keep()" in out


def test_default_convention_strips_numeric_suffix():
    assert DEFAULT_CONVENTION.strip_suffix("_ZN3fooE_12") == "_ZN3fooE"
    assert DEFAULT_CONVENTION.strip_suffix("_ZN3fooE") == "_ZN3fooE"


def test_default_convention_follows_numba_mangling():
    assert DEFAULT_CONVENTION.is_wrapper(WRAPPER)
    assert DEFAULT_CONVENTION.parse_tag(WRAPPER) == TAG
    assert DEFAULT_CONVENTION.entry_regex(TAG).match(ENTRY)
    assert DEFAULT_CONVENTION.auxiliary_names(TAG) == [f"cfunc.{ENTRY}"]
