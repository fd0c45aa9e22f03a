from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .aggregate import FoldStats

logger = logging.getLogger(__name__)

"""
perf script -F comm,pid,tid,cpu,time,event,ip,sym,dso,trace:

java 12688/12764 [002] 6544038.708352:   10309278 cycles:uppp:
        ffffffff8168e0ec irq_return ([kernel.kallsyms])
                   7da0b _int_malloc (/usr/lib64/libc-2.17.so)
                   8010b [unknown] ([unknown])
"""

_HEADER_RE = re.compile(
    r"^(?P<comm>\S.*?)\s+"
    r"(?:(?P<pid>\d+)/)?(?P<tid>\d+)\s+"
    r"(?:\[(?P<cpu>\d+)\]\s+)?"
    r"(?:(?P<time>\d+\.\d+):\s+)?"
    r"(?:(?P<period>\d+)\s+)?"
    r"(?P<event>(?![\d.]+:)\S+):"
    r"(?:\s+(?P<rest>.*))?$"
)

_FRAME_RE = re.compile(r"^(?P<addr>[0-9a-fA-F]+)(?:\s+(?P<rest>.*))?$")

UNKNOWN = "[unknown]"


class ParseError(ValueError):
    """A header or frame line that does not follow the perf script grammar."""


@dataclass(frozen=True)
class RawFrame:
    address: Optional[int]
    symbol: Optional[str] = None   # None when perf printed "[unknown]"
    module: Optional[str] = None   # dso, None when absent or "[unknown]"


@dataclass
class RawRecord:
    comm: str
    event: str
    pid: Optional[int] = None
    tid: Optional[int] = None
    cpu: Optional[int] = None
    timestamp: Optional[float] = None
    period: Optional[int] = None
    frames: List[RawFrame] = field(default_factory=list)   # leaf first


def _opt_int(s: Optional[str]) -> Optional[int]:
    return None if s is None else int(s)


def _opt_float(s: Optional[str]) -> Optional[float]:
    return None if s is None else float(s)


def parse_header(line: str) -> RawRecord:
    # comm is right-padded when perf prints no callchains
    m = _HEADER_RE.match(line.strip())
    if m is None:
        raise ParseError(f"bad record header: {line!r}")
    return RawRecord(
        comm=m.group("comm"),
        event=m.group("event"),
        pid=_opt_int(m.group("pid")),
        tid=_opt_int(m.group("tid")),
        cpu=_opt_int(m.group("cpu")),
        timestamp=_opt_float(m.group("time")),
        period=_opt_int(m.group("period")),
    )
    """
    input : "V8 WorkerThread 24636/25607 [000] 94564.109216: 100 cycles:"
    output: RawRecord(comm='V8 WorkerThread', event='cycles', pid=24636, tid=25607,
                      cpu=0, timestamp=94564.109216, period=100, frames=[])
    """


def _split_module(rest: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Split "<symbol> (<module>)" on the balanced group that closes the line.
    The module may itself hold parentheses, e.g. "(/usr/lib/libfoo.so (deleted))".
    """
    if not rest.endswith(")"):
        return rest, None
    depth = 0
    for i in range(len(rest) - 1, -1, -1):
        c = rest[i]
        if c == ")":
            depth += 1
        elif c == "(":
            depth -= 1
            if depth == 0:
                break
    else:
        return rest, None
    if i == 0:
        return None, rest[1:-1]
    # "foo(int)" is an argument list, not a module
    if not rest[i - 1].isspace():
        return rest, None
    return rest[:i].rstrip(), rest[i + 1:-1]


def parse_frame(line: str) -> RawFrame:
    s = line.strip()
    m = _FRAME_RE.match(s)
    if m is None:
        raise ParseError(f"bad stack frame: {line!r}")
    addr = int(m.group("addr"), 16)
    rest = (m.group("rest") or "").strip()

    sym, mod = _split_module(rest)

    if not sym or sym == UNKNOWN:
        sym = None
    if not mod or mod == UNKNOWN:
        mod = None
    return RawFrame(address=addr, symbol=sym, module=mod)


def parse_block(lines: Sequence[str], stats: Optional[FoldStats] = None) -> Optional[RawRecord]:
    """
    Parse one record block: a header line and its indented frame lines.

    A bad header drops the whole block (returns None); a bad frame line only
    drops that frame. Both are reported through ``stats`` (or the module
    logger), neither raises.
    """
    if not lines:
        return None
    try:
        record = parse_header(lines[0])
    except ParseError as e:
        if stats is None:
            logger.warning("skipping record: %s", e)
        else:
            stats.malformed_records += 1
            stats.warn(logger, "skipping record: %s", e)
        return None

    for line in lines[1:]:
        try:
            record.frames.append(parse_frame(line))
        except ParseError as e:
            if stats is None:
                logger.warning("skipping frame: %s", e)
            else:
                stats.malformed_frames += 1
                stats.warn(logger, "skipping frame: %s", e)
    return record
