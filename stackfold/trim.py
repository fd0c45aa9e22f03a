from __future__ import annotations

from typing import List, Optional, Sequence


def skip_after(frames: Sequence[str], marker: Optional[str]) -> List[str]:
    """
    Drop every caller above ``marker``.

    ``frames`` is root first. The first frame equal to ``marker`` (searching
    from the root) becomes the new root; without a match, or without a
    marker, the stack is returned unchanged.
    """
    if marker is None:
        return list(frames)
    for i, label in enumerate(frames):
        if label == marker:
            return list(frames[i:])
    return list(frames)
    """
    input : ["root", "foo", "leaf"], "foo"
    output : ["foo", "leaf"]
    """
