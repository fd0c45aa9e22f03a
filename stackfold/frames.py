from __future__ import annotations

import re
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from .options import Options
    from .record import RawFrame


class FrameOrigin(Enum):
    REGULAR = "regular"
    KERNEL = "kernel"
    JIT = "jit"


FrameClassifier = Callable[[Optional[str]], FrameOrigin]


KERNEL_SUFFIX = "_[k]"
JIT_SUFFIX = "_[j]"
UNKNOWN_LABEL = "[unknown]"

_JIT_MAP_RE = re.compile(r"/tmp/perf-\d+\.map$")
_OFFSET_RE = re.compile(r"\+0x[0-9a-fA-F]+$")
_GO_METHOD_RE = re.compile(r"\.\(.*\)\.")
_ARGS_RE = re.compile(r"\(.*")


def default_classifier(module: Optional[str]) -> FrameOrigin:
    """
    Linux perf naming: "[kernel.kallsyms]", "[nf_conntrack]" or ".../vmlinux"
    are kernel space, "/tmp/perf-<pid>.map" is a JIT symbol map.
    """
    if not module or "unknown" in module:
        return FrameOrigin.REGULAR
    if module.startswith("[") or module.endswith("vmlinux"):
        return FrameOrigin.KERNEL
    if _JIT_MAP_RE.search(module):
        return FrameOrigin.JIT
    return FrameOrigin.REGULAR


def tidy_symbol(raw: str) -> str:
    sym = _OFFSET_RE.sub("", raw.strip())
    # ';' is the folded separator
    sym = sym.replace(";", ":")
    if not _GO_METHOD_RE.search(sym):
        # everything from the first "(" on is the argument list
        sym = _ARGS_RE.sub("", sym)
    return sym.strip() or raw.strip().replace(";", ":")
    """
    "cpu_startup_entry+0x800047c022ec" -> "cpu_startup_entry"
    "std::vector<int>::push_back(int const&)" -> "std::vector<int>::push_back"
    "std::function<void (int)>::operator()(int) const" -> "std::function<void"
    "main.(*Server).Serve" -> "main.(*Server).Serve"
    """


def tidy_java_symbol(sym: str) -> str:
    # "Lorg/mozilla/javascript/MemberBox:.init" -> "org/mozilla/javascript/MemberBox:.init"
    if sym.startswith("L") and "/" in sym:
        return sym[1:]
    return sym


def _module_basename(module: str) -> str:
    return module.rstrip("/").rsplit("/", 1)[-1]


def _annotate(label: str, suffix: str) -> str:
    return label if label.endswith(suffix) else label + suffix


def normalize_frame(frame: RawFrame, options: Options, comm: Optional[str] = None) -> str:
    """
    Map a raw frame to its display label.

    Symbols are used as-is (after tidying) and may get a kernel/JIT suffix.
    Unresolved frames become "[unknown]", or "[unknown <addr>]" with
    ``include_addrs``; with ``module_fallback`` a known module replaces
    "unknown" in that label.
    """
    if frame.symbol is None:
        name = "unknown"
        if options.module_fallback and frame.module:
            name = _module_basename(frame.module)
        if options.include_addrs and frame.address is not None:
            return f"[{name} <{frame.address:x}>]"
        return f"[{name}]"

    label = frame.symbol
    if options.tidy_symbols:
        label = tidy_symbol(label)
    if options.tidy_java and comm == "java":
        label = tidy_java_symbol(label)

    if options.annotate_kernel or options.annotate_jit:
        origin = options.frame_classifier(frame.module)
        if origin is FrameOrigin.KERNEL and options.annotate_kernel:
            label = _annotate(label, KERNEL_SUFFIX)
        elif origin is FrameOrigin.JIT and options.annotate_jit:
            label = _annotate(label, JIT_SUFFIX)
    return label


def is_process_pseudo_frame(frame: RawFrame) -> bool:
    # perf sometimes prints the process name as "(comm)" in the symbol slot
    return frame.symbol is not None and frame.symbol.startswith("(")

