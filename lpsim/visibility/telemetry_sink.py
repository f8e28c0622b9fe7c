"""Destinations for telemetry lines.

Each record becomes exactly one ``<iteration>,<price>,<balance0>,<balance1>``
line with no header row.
"""

from __future__ import annotations

import abc
import pathlib
import sys
from typing import Iterable, List, Optional, TextIO

from lpsim.common.models import SimulationRecord


class TelemetrySink(abc.ABC):
    @abc.abstractmethod
    def emit(self, record: SimulationRecord) -> None:
        raise NotImplementedError

    def close(self) -> None:
        """Release resources; the default sink holds none."""


class MemorySink(TelemetrySink):
    """Keeps records and rendered lines in memory."""

    def __init__(self) -> None:
        self.records: List[SimulationRecord] = []

    def emit(self, record: SimulationRecord) -> None:
        self.records.append(record)

    @property
    def lines(self) -> List[str]:
        return [r.line() for r in self.records]


class StreamSink(TelemetrySink):
    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream or sys.stdout

    def emit(self, record: SimulationRecord) -> None:
        self.stream.write(record.line())
        self.stream.write("\n")
        self.stream.flush()


class FileSink(TelemetrySink):
    """Writes one run's lines to a file, creating parent directories on first use.

    The first record truncates the file so it holds a single run;
    ``append=True`` keeps earlier contents.
    """

    def __init__(self, path: str = "logs/telemetry.csv", append: bool = False) -> None:
        self.path = pathlib.Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._truncate = not append

    def emit(self, record: SimulationRecord) -> None:
        mode = "w" if self._truncate else "a"
        self._truncate = False
        with self.path.open(mode, encoding="utf-8") as fh:
            fh.write(record.line())
            fh.write("\n")

    def load(self) -> List[str]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as fh:
            return [line.rstrip("\n") for line in fh if line.strip()]


class FanoutSink(TelemetrySink):
    """Forwards every record to each wrapped sink in order."""

    def __init__(self, sinks: Iterable[TelemetrySink]) -> None:
        self.sinks = list(sinks)

    def emit(self, record: SimulationRecord) -> None:
        for sink in self.sinks:
            sink.emit(record)

    def close(self) -> None:
        for sink in self.sinks:
            sink.close()


__all__ = ["TelemetrySink", "MemorySink", "StreamSink", "FileSink", "FanoutSink"]
