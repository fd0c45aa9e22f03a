from __future__ import annotations

import logging
import os
import sys
from abc import ABC, abstractmethod
from typing import IO, Dict, Optional, Type, Union

from .options import Options

logger = logging.getLogger(__name__)

# format name -> folder class
registry: Dict[str, Type["Collapse"]] = {}


def register(cls: Type["Collapse"]) -> Type["Collapse"]:
    registry[cls.name] = cls
    return cls


class Collapse(ABC):
    """Turns one kind of profiler text output into folded stacks."""

    name: str = ""

    @abstractmethod
    def collapse(self, reader: IO, writer: IO[str]) -> None:
        """Read the whole trace from ``reader`` and write folded lines to ``writer``."""

    @abstractmethod
    def is_applicable(self, sample: str) -> Optional[bool]:
        """
        True if ``sample`` (the head of a trace) looks like this format,
        False if it clearly is not, None if there is not enough to tell.
        """

    def collapse_file(self, path: Optional[Union[str, os.PathLike]], writer: Optional[IO[str]] = None) -> None:
        # None or "-" reads stdin
        out = sys.stdout if writer is None else writer
        if path is None or str(path) == "-":
            logger.debug("reading trace from stdin")
            self.collapse(getattr(sys.stdin, "buffer", sys.stdin), out)
        else:
            with open(path, "rb") as f:
                self.collapse(f, out)
        out.flush()


def guess_folder(sample: str, options: Optional[Options] = None) -> Optional[Collapse]:
    for name, cls in registry.items():
        folder = cls(options)  # type: ignore[call-arg]
        if folder.is_applicable(sample):
            logger.info("input looks like %s output", name)
            return folder
    return None
