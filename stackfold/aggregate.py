from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, fields
from typing import Iterable, Optional, Sequence

SEPARATOR = ";"
MAX_WARNINGS = 10

# folded stack key -> sample count
SampleCounter = Counter


def process_label(
    comm: str,
    pid: Optional[int],
    tid: Optional[int],
    *,
    include_pid: bool = False,
    include_tid: bool = False,
) -> str:
    label = comm.replace(" ", "_")
    if include_pid:
        label += "-" + ("?" if pid is None else str(pid))
    if include_tid:
        label += "/" + ("?" if tid is None else str(tid))
    return label


def fold_key(process: str, frames: Sequence[str]) -> str:
    """Root-first frames under the process label, e.g. "app;main;work"."""
    return SEPARATOR.join([process, *frames])


def record_sample(counter: SampleCounter, process: str, frames: Sequence[str]) -> str:
    key = fold_key(process, frames)
    counter[key] += 1
    return key


def merge_counters(counters: Iterable[SampleCounter]) -> SampleCounter:
    """Sum per-worker counters; the inputs are consumed and cleared."""
    merged: SampleCounter = Counter()
    for c in counters:
        for key, count in c.items():
            merged[key] += count
        c.clear()
    return merged


@dataclass
class FoldStats:
    records: int = 0            # headers parsed
    kept: int = 0               # records counted in the output
    filtered: int = 0           # records with another event name
    malformed_records: int = 0
    malformed_frames: int = 0
    warnings: int = 0

    def warn(self, log: logging.Logger, msg: str, *args: object) -> None:
        # past MAX_WARNINGS per worker, keep the rest at debug level
        self.warnings += 1
        if self.warnings <= MAX_WARNINGS:
            log.warning(msg, *args)
            if self.warnings == MAX_WARNINGS:
                log.warning("further parse warnings are logged at debug level")
        else:
            log.debug(msg, *args)

    def merge(self, other: FoldStats) -> None:
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))
