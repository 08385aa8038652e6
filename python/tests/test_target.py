import pytest

from conftest import x86_only
from numba_iaca.emit import emit_object
from numba_iaca.errors import UnsupportedArchitecture
from numba_iaca.target import SUPPORTED_ARCHS, Arch, cpu_features, resolve_arch, target_config, target_machine

TRIVIAL_IR = """
define i32 @seven() {
entry:
  ret i32 7
}
"""


def test_supported_tags():
    assert SUPPORTED_ARCHS == ("HSW", "BDW", "SKL", "SKX")


@pytest.mark.parametrize("tag", SUPPORTED_ARCHS)
def test_cpu_strings_are_not_empty(tag):
    cpu, features = cpu_features(tag)
    assert cpu
    assert features == ""


def test_tags_are_case_insensitive():
    assert resolve_arch("skl") is Arch.SKL
    assert resolve_arch(Arch.HSW) is Arch.HSW
    assert cpu_features("skx") == ("skx", "")


@pytest.mark.parametrize("tag", ["P4", "", None, 3, "skylake"])
def test_unsupported_tags(tag):
    with pytest.raises(UnsupportedArchitecture) as excinfo:
        resolve_arch(tag)
    assert excinfo.value.tag == tag
    assert "SKL" in str(excinfo.value)


def test_target_config_is_fresh_per_call():
    a = target_config("BDW")
    b = target_config("BDW")
    assert a == b
    assert a is not b
    assert a.cpu == "broadwell"
    assert a.triple


def test_target_machine_closed_on_error():
    captured = []
    with pytest.raises(ZeroDivisionError):
        with target_machine(target_config("SKL")) as tm:
            captured.append(tm)
            1 / 0
    assert captured[0].closed


@x86_only
@pytest.mark.parametrize("tag", SUPPORTED_ARCHS)
def test_trivial_object_for_each_arch(tag, parse_ir, tmp_path):
    module = parse_ir(TRIVIAL_IR)
    with target_machine(target_config(tag)) as tm:
        path = emit_object(tm, module, tmp_path / "seven.o")
    assert path.stat().st_size > 0
