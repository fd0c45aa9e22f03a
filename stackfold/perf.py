from __future__ import annotations

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import IO, List, Optional, Sequence

from .aggregate import FoldStats, SampleCounter, merge_counters, process_label, record_sample
from .collapse import Collapse, register
from .frames import is_process_pseudo_frame, normalize_frame
from .options import Options
from .record import ParseError, parse_block, parse_frame, parse_header
from .splitter import ByteRange, block_lines, iter_block_ranges, iter_blocks, partition
from .trim import skip_after
from .writer import write_folded

logger = logging.getLogger(__name__)


class _RangeFolder:
    """
    Folds one block-aligned byte range into its own counter.

    Each instance resolves an unset event filter on its own: the first event
    seen inside its range wins, and only samples of that event are counted.
    """

    def __init__(self, options: Options):
        self.options = options
        self.event_filter: Optional[str] = options.event_filter
        self.counter: SampleCounter = Counter()
        self.stats = FoldStats()

    def run(self, data: bytes, rng: ByteRange) -> "_RangeFolder":
        start, end = rng
        for block in iter_block_ranges(data, start, end):
            self.on_block(block_lines(data, block))
        logger.debug(
            "range %d-%d: %d records, %d kept, %d filtered",
            start, end, self.stats.records, self.stats.kept, self.stats.filtered,
        )
        return self

    def on_block(self, lines: Sequence[str]) -> None:
        record = parse_block(lines, self.stats)
        if record is None:
            return
        self.stats.records += 1

        if self.event_filter is None:
            self.event_filter = record.event
            logger.info("filtering on event %r (first seen)", record.event)
        elif record.event != self.event_filter:
            self.stats.filtered += 1
            return

        opts = self.options
        # perf lists the leaf first
        frames = [
            normalize_frame(f, opts, record.comm)
            for f in reversed(record.frames)
            if not is_process_pseudo_frame(f)
        ]
        frames = skip_after(frames, opts.skip_after)
        label = process_label(
            record.comm,
            record.pid,
            record.tid,
            include_pid=opts.include_pid,
            include_tid=opts.include_tid,
        )
        record_sample(self.counter, label, frames)
        self.stats.kept += 1


@register
class PerfFolder(Collapse):
    """Folds `perf script` output."""

    name = "perf"

    def __init__(self, options: Optional[Options] = None):
        self.options = Options() if options is None else options
        self.stats = FoldStats()

    def fold(self, data: bytes) -> SampleCounter:
        """
        Fold a whole trace held in memory.

        The input is cut into up to ``options.nthreads`` ranges, each folded by
        its own worker; the pool lives only for this call. Counters are
        merged in range order once every worker has finished.
        """
        self.options.validate()
        self.stats = FoldStats()
        ranges = partition(data, self.options.nthreads)
        if not ranges:
            return Counter()

        logger.info("folding %d bytes in %d range(s)", len(data), len(ranges))
        if len(ranges) == 1:
            workers = [_RangeFolder(self.options).run(data, ranges[0])]
        else:
            with ThreadPoolExecutor(
                max_workers=len(ranges), thread_name_prefix="stackfold"
            ) as pool:
                futures = [
                    pool.submit(_RangeFolder(self.options).run, data, rng)
                    for rng in ranges
                ]
            # the pool has joined; result() re-raises a worker's exception
            workers = [f.result() for f in futures]

        for w in workers:
            self.stats.merge(w.stats)
        merged = merge_counters(w.counter for w in workers)
        logger.info(
            "%d records, %d kept, %d filtered, %d malformed records, %d malformed frames",
            self.stats.records,
            self.stats.kept,
            self.stats.filtered,
            self.stats.malformed_records,
            self.stats.malformed_frames,
        )
        return merged

    def collapse(self, reader: IO, writer: IO[str]) -> None:
        self.options.validate()
        data = reader.read()
        if isinstance(data, str):
            data = data.encode("utf-8")
        write_folded(self.fold(data), writer)

    def is_applicable(self, sample: str) -> Optional[bool]:
        data = sample.encode("utf-8", errors="replace")
        blocks: List[List[str]] = list(iter_blocks(data))
        # the last block may be cut short
        if len(blocks) > 1:
            blocks = blocks[:-1]
        if not blocks:
            return None
        for lines in blocks:
            try:
                parse_header(lines[0])
                for line in lines[1:]:
                    parse_frame(line)
            except ParseError:
                return False
        return True
