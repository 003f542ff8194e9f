from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, TextIO


@dataclass
class ConversionLog:
    """
    Buffered diagnostics for one conversion. Library code records here and
    never prints; the CLI decides whether to echo and where to flush.
    """

    destination: Path | None = None
    echo: TextIO | None = None

    def __post_init__(self) -> None:
        self._lines: List[str] = []

    def record(self, message: str) -> None:
        self._lines.append(message)
        if self.echo is not None:
            print(f"[i] {message}", file=self.echo)

    @property
    def lines(self) -> List[str]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def flush(self) -> None:
        if self.destination is None or not self._lines:
            return
        self.destination.parent.mkdir(parents=True, exist_ok=True)
        text = "\n".join(self._lines) + "\n"
        self.destination.write_text(text, encoding="utf-8")


def report(prefix: str, message: str, stream: TextIO | None = None) -> None:
    """``[+]`` / ``[i]`` go to stdout, ``[!]`` to stderr unless a stream is given."""

    if stream is None:
        stream = sys.stderr if prefix == "!" else sys.stdout
    print(f"[{prefix}] {message}", file=stream)
