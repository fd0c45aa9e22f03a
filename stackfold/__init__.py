"""Fold profiler sample traces into flame graph input."""

from .aggregate import FoldStats, SampleCounter, fold_key, merge_counters, process_label
from .collapse import Collapse, guess_folder, registry
from .frames import FrameOrigin, default_classifier, normalize_frame
from .options import ConfigError, Options, default_nthreads
from .perf import PerfFolder
from .record import RawFrame, RawRecord, parse_block
from .splitter import iter_block_ranges, partition
from .trim import skip_after
from .writer import write_folded

__version__ = "0.1.0"

__all__ = [
    "Collapse",
    "ConfigError",
    "FoldStats",
    "FrameOrigin",
    "Options",
    "PerfFolder",
    "RawFrame",
    "RawRecord",
    "SampleCounter",
    "default_classifier",
    "default_nthreads",
    "fold_key",
    "guess_folder",
    "iter_block_ranges",
    "merge_counters",
    "normalize_frame",
    "parse_block",
    "partition",
    "process_label",
    "registry",
    "skip_after",
    "write_folded",
]
