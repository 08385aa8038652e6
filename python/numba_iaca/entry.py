"""Entry point resolution for JIT-produced modules.

The raw module of a compiled instance carries the native body plus the
wrappers the JIT generates to call it from Python or C.  Only the naming
scheme ties them together: for a body mangled as ``_ZN<rest>`` the CPython
wrapper is ``_ZN7cpython<rest>`` and the C wrapper is ``cfunc._ZN<rest>``.
Everything that depends on that scheme lives in :class:`NamingConvention` so
a mangling change touches one place.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

import llvmlite.binding as llvm

from .errors import AmbiguousWrapper, IACAError, IRGenerationFailed, NoWrapperFound, UnparsableName


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NamingConvention:
    wrapper_prefix: str = "_ZN7cpython"
    wrapper_pattern: str = r"^_ZN7cpython(?P<tag>[\w$]+)$"
    # formatted with the escaped tag
    entry_template: str = r"^_ZN{tag}$"
    # formatted with the raw tag
    auxiliary_templates: Tuple[str, ...] = ("cfunc._ZN{tag}",)
    suffix_pattern: str = r"_\d+$"

    def is_wrapper(self, name: str) -> bool:
        return name.startswith(self.wrapper_prefix)

    def parse_tag(self, wrapper_name: str) -> str:
        match = re.match(self.wrapper_pattern, wrapper_name)
        if match is None:
            raise UnparsableName(wrapper_name)
        groups = match.groupdict()
        tag = groups.get("tag") if groups else match.group(1)
        if not tag:
            raise UnparsableName(wrapper_name)
        return tag

    def entry_regex(self, tag: str) -> "re.Pattern[str]":
        return re.compile(self.entry_template.format(tag=re.escape(tag)))

    def auxiliary_names(self, tag: str) -> List[str]:
        return [template.format(tag=tag) for template in self.auxiliary_templates]

    def strip_suffix(self, name: str) -> str:
        return re.sub(self.suffix_pattern, "", name)


DEFAULT_CONVENTION = NamingConvention()


@dataclass
class EntryResolution:
    module: llvm.ModuleRef
    entry: llvm.ValueRef
    tag: str
    wrapper_name: str
    definitions: List[str] = field(default_factory=list)
    candidates: List[str] = field(default_factory=list)

    @property
    def ambiguous(self) -> bool:
        return len(self.candidates) != 1

    @property
    def entry_name(self) -> str:
        return self.entry.name


def definitions(module: llvm.ModuleRef) -> List[llvm.ValueRef]:
    return [fn for fn in module.functions if not fn.is_declaration]


def _define_line_re(name: str) -> "re.Pattern[str]":
    escaped = re.escape(name)
    return re.compile(rf'^define\b[^@]*@(?:{escaped}|"{escaped}")\(')


def strip_definitions(text: str, names: Iterable[str]) -> str:
    """Drop the ``define`` blocks for *names* from textual IR."""
    headers = [_define_line_re(name) for name in names]
    if not headers:
        return text
    lines = text.splitlines()
    out: List[str] = []
    skipping = False
    for line in lines:
        if skipping:
            if line.rstrip() == "}":
                skipping = False
            continue
        if line.startswith("define") and any(h.match(line) for h in headers):
            if out and out[-1].startswith("; Function Attrs:"):
                out.pop()
            skipping = True
            continue
        out.append(line)
    return "\n".join(out) + "\n"


def remove_functions(module: llvm.ModuleRef, names: Iterable[str]) -> llvm.ModuleRef:
    """Return a module equal to *module* without the named definitions.

    llvmlite cannot erase a function in place, so the module is re-parsed
    from its IR text.  The input module is closed.
    """
    names = list(names)
    if not names:
        return module
    text = strip_definitions(str(module), names)
    try:
        stripped = llvm.parse_assembly(text)
    except RuntimeError as exc:
        raise IRGenerationFailed(f"cannot remove {', '.join(names)}: {exc}") from exc
    stripped.name = module.name
    module.close()
    return stripped


def find_wrapper(defs: Iterable[llvm.ValueRef], convention: NamingConvention = DEFAULT_CONVENTION) -> llvm.ValueRef:
    defs = list(defs)
    wrappers = [fn for fn in defs if convention.is_wrapper(fn.name)]
    if not wrappers:
        names = ", ".join(fn.name for fn in defs) or "<none>"
        raise NoWrapperFound(f"no definition starts with {convention.wrapper_prefix!r} (definitions: {names})")
    if len(wrappers) > 1:
        names = ", ".join(fn.name for fn in wrappers)
        raise AmbiguousWrapper(f"multiple {convention.wrapper_prefix!r} definitions: {names}")
    return wrappers[0]


def resolve_entry(
    module: llvm.ModuleRef,
    convention: NamingConvention = DEFAULT_CONVENTION,
) -> EntryResolution:
    """Locate the single entry definition of *module* and drop its wrappers.

    When the entry pattern matches zero or several definitions the first
    candidate is used and a warning is logged; ``EntryResolution.ambiguous``
    reports the condition to callers.  *module* is consumed: on failure it
    is closed.
    """
    try:
        return _resolve(module, convention)
    except IACAError:
        module.close()
        raise


def _resolve(module: llvm.ModuleRef, convention: NamingConvention) -> EntryResolution:
    defs = definitions(module)
    def_names = [fn.name for fn in defs]
    logger.debug("definitions in %s: %s", module.name, def_names)

    wrapper = find_wrapper(defs, convention)
    wrapper_name = wrapper.name
    tag = convention.parse_tag(wrapper_name)

    doomed = [wrapper_name]
    doomed.extend(name for name in convention.auxiliary_names(tag) if name in def_names and name != wrapper_name)
    module = remove_functions(module, doomed)

    remaining = definitions(module)
    pattern = convention.entry_regex(tag)
    candidates = [fn.name for fn in remaining if pattern.search(fn.name)]
    if len(candidates) != 1:
        logger.warning(
            "expected one entry for tag %s, found %d (candidates=%s, definitions=%s)",
            tag,
            len(candidates),
            candidates,
            def_names,
        )
    chosen: Optional[str] = candidates[0] if candidates else None
    if chosen is None:
        if not remaining:
            module.close()
            raise IRGenerationFailed(f"no definitions left after removing {wrapper_name}")
        chosen = remaining[0].name

    return EntryResolution(
        module=module,
        entry=module.get_function(chosen),
        tag=tag,
        wrapper_name=wrapper_name,
        definitions=def_names,
        candidates=candidates,
    )
