from __future__ import annotations

import re
from typing import Iterator, List, Optional, Tuple

METADATA_PREFIX = b"#"
_INDENT = (ord(" "), ord("\t"))

# "<padded comm> <pid/tid> [<cpu>] <secs>.<frac>:", as printed without callchains
_PADDED_HEADER_RE = re.compile(rb"^\s+\S.*?\s(?:\d+/)?\d+\s+(?:\[\d+\]\s+)?\d+\.\d+:")

ByteRange = Tuple[int, int]


def _line_end(data: bytes, pos: int, end: int) -> int:
    nl = data.find(b"\n", pos, end)
    return end if nl == -1 else nl + 1


def _is_separator(line: bytes) -> bool:
    return not line.strip() or line.startswith(METADATA_PREFIX)


def _is_header(line: bytes) -> bool:
    return line[0] not in _INDENT or _PADDED_HEADER_RE.match(line) is not None


def iter_block_ranges(data: bytes, start: int = 0, end: Optional[int] = None) -> Iterator[ByteRange]:
    """
    Yield the byte range of every record block in ``data[start:end]``.

    A block starts at the first line after a blank line, a metadata ("#")
    line or ``start``, whatever its indentation, and runs until the next
    blank or metadata line, the next header line, or ``end``. Indented lines
    with no header before them form a block of their own, which the record
    parser then rejects.
    """
    end = len(data) if end is None else end
    pos = start
    block_start: Optional[int] = None
    while pos < end:
        nxt = _line_end(data, pos, end)
        line = data[pos:nxt]
        if _is_separator(line):
            if block_start is not None:
                yield block_start, pos
                block_start = None
        elif block_start is None:
            block_start = pos
        elif _is_header(line):
            yield block_start, pos
            block_start = pos
        pos = nxt
    if block_start is not None:
        yield block_start, end


def block_lines(data: bytes, rng: ByteRange) -> List[str]:
    start, end = rng
    text = data[start:end].decode("utf-8", errors="replace")
    return [line for line in text.splitlines() if line.strip()]


def iter_blocks(data: bytes, start: int = 0, end: Optional[int] = None) -> Iterator[List[str]]:
    for rng in iter_block_ranges(data, start, end):
        yield block_lines(data, rng)


def _next_boundary(data: bytes, pos: int, end: int) -> int:
    # start of the first block at or after pos
    if pos > 0 and data[pos - 1:pos] != b"\n":
        pos = _line_end(data, pos, end)
    prev_separates = True
    if pos > 0:
        prev_start = data.rfind(b"\n", 0, pos - 1) + 1
        prev_separates = _is_separator(data[prev_start:pos])
    while pos < end:
        nxt = _line_end(data, pos, end)
        line = data[pos:nxt]
        separates = _is_separator(line)
        if not separates and (prev_separates or _is_header(line)):
            break
        prev_separates = separates
        pos = nxt
    return pos


def partition(data: bytes, n: int, start: int = 0, end: Optional[int] = None) -> List[ByteRange]:
    """
    Cut ``data[start:end]`` into at most ``n`` contiguous ranges of roughly
    equal size. Cuts only fall on line starts outside a block, so no block
    is ever split between two ranges.
    """
    end = len(data) if end is None else end
    if end <= start:
        return []
    if n <= 1:
        return [(start, end)]

    step = (end - start) / n
    bounds = [start]
    for i in range(1, n):
        target = max(start + int(i * step), bounds[-1])
        b = _next_boundary(data, target, end)
        if bounds[-1] < b < end:
            bounds.append(b)
    bounds.append(end)
    return list(zip(bounds[:-1], bounds[1:]))