from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from .frames import FrameClassifier, default_classifier


class ConfigError(ValueError):
    """Raised for option combinations that cannot be run."""


def default_nthreads() -> int:
    """Worker count derived from the logical CPU count (at least 1)."""
    return max(1, os.cpu_count() or 1)


@dataclass
class Options:
    """Configuration for folding perf script output."""

    include_addrs: bool = False    # "[unknown <addr>]" for unresolved frames
    include_pid: bool = False      # process label gets "-<pid>"
    include_tid: bool = False      # process label gets "/<tid>"
    annotate_kernel: bool = False  # kernel frames get "_[k]"
    annotate_jit: bool = False     # jit frames get "_[j]"
    event_filter: Optional[str] = None  # None: first event seen wins
    nthreads: int = 1
    skip_after: Optional[str] = None
    tidy_symbols: bool = True
    tidy_java: bool = True
    module_fallback: bool = False
    frame_classifier: FrameClassifier = field(
        default=default_classifier, repr=False
    )

    def validate(self) -> None:
        if isinstance(self.nthreads, bool) or not isinstance(self.nthreads, int):
            raise ConfigError(f"nthreads must be an integer, got {self.nthreads!r}")
        if self.nthreads < 1:
            raise ConfigError(f"nthreads must be >= 1, got {self.nthreads}")
        if not callable(self.frame_classifier):
            raise ConfigError("frame_classifier must be callable")
        if self.event_filter is not None and not self.event_filter.strip():
            raise ConfigError("event_filter must not be empty")
        if self.skip_after is not None and not self.skip_after:
            raise ConfigError("skip_after must not be empty")
