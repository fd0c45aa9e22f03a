from __future__ import annotations

from typing import IO, Mapping


def format_line(key: str, count: int) -> str:
    return f"{key} {count}"


def write_folded(counter: Mapping[str, int], out: IO[str]) -> int:
    """
    Write one "<stack> <count>" line per key, sorted by key.
    Returns the number of lines written.
    """
    n = 0
    for key in sorted(counter):
        out.write(format_line(key, counter[key]) + "\n")
        n += 1
    return n
