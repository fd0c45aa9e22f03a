"""Pytest fixtures for stackfold tests.

Provides sample `perf script` traces:
- a captured trace with a metadata header and kernel/JIT frames
- a generator for larger traces used by the parallel tests
"""

import random

import pytest

from stackfold import Options, PerfFolder


PERF_HEADER = """\
# ========
# captured on    : Fri Oct 16 10:00:00 2026
# cmdline : /usr/bin/perf record -F 99 -g -a
# ========
#
"""

SAMPLE_TRACE = PERF_HEADER + """\
app 1234/1235 [000] 100.000001:     250000 cycles:u:
\t    7f0000001000 leaf (/usr/bin/app)
\t    7f0000002000 main (/usr/bin/app)
\t    7f0000003000 __libc_start_main (/usr/lib/libc.so.6)

app 1234/1235 [000] 100.000101:     250000 cycles:u:
\t    7f0000001000 leaf (/usr/bin/app)
\t    7f0000002000 main (/usr/bin/app)
\t    7f0000003000 __libc_start_main (/usr/lib/libc.so.6)

java 4000/4001 [001] 100.000201:     250000 cycles:u:
\tffffffff8168e0ec irq_return ([kernel.kallsyms])
\t    7f1000000100 Lorg/example/Worker;::run (/tmp/perf-4000.map)
\t    7f1000000200 [unknown] ([unknown])

"""


def fold_text(text, **kwargs):
    """Fold a trace given as text and return the merged counter."""
    return PerfFolder(Options(**kwargs)).fold(text.encode("utf-8"))


def make_record(comm, frames, event="cycles", pid=100, tid=101, ts=1.0):
    """Build one record block; ``frames`` are (symbol, module) pairs, leaf first."""
    lines = [f"{comm} {pid}/{tid} [000] {ts:.6f}: 1 {event}:"]
    for i, (sym, mod) in enumerate(frames):
        lines.append(f"\t{0x400000 + i * 16:x} {sym} ({mod})")
    return "\n".join(lines) + "\n\n"


@pytest.fixture
def sample_trace():
    return SAMPLE_TRACE


@pytest.fixture
def large_trace():
    """A few thousand single-event records over a small set of stacks."""
    rng = random.Random(1234)
    symbols = ["main", "parse", "lex", "eval", "alloc", "free", "hash", "write"]
    parts = [PERF_HEADER]
    for n in range(3000):
        depth = rng.randint(0, 6)
        frames = [(rng.choice(symbols), "/usr/bin/app") for _ in range(depth)]
        comm = rng.choice(["app", "worker thread"])
        parts.append(make_record(comm, frames, pid=rng.choice([10, 11]), tid=12, ts=n / 1000.0))
    return "".join(parts)
