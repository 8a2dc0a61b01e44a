"""
Sample sinks.

The persistence / visualization layer is an external consumer; sinks are
the hand-off point. Every sink receives the samples of one device poll at
a time, so a slow device never holds back another device's samples.
"""
from __future__ import annotations

import asyncio
import logging
from collections import deque
from pathlib import Path
from typing import Protocol, Sequence

from bwcollector.core.config import Settings
from bwcollector.core.models import Sample

logger = logging.getLogger(__name__)


class SampleSink(Protocol):
    """Anything that accepts reconciled samples."""

    async def emit(self, samples: Sequence[Sample]) -> None:
        ...


class LoggingSink:
    """Log each sample at INFO level."""

    async def emit(self, samples: Sequence[Sample]) -> None:
        for s in samples:
            logger.info(
                "sample %s (%s) vendor=%s delta=%d octets over %.3fs%s",
                s.key, s.if_name, s.vendor, s.delta_octets, s.interval_seconds,
                " [reset]" if s.reset else "",
            )


class JsonLinesSink:
    """Append samples to a file, one JSON document per line."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    def _write(self, lines: list[str]) -> None:
        with open(self._path, "a", encoding="utf-8") as f:
            f.writelines(lines)

    async def emit(self, samples: Sequence[Sample]) -> None:
        if not samples:
            return
        lines = [s.model_dump_json() + "\n" for s in samples]
        async with self._lock:
            await asyncio.to_thread(self._write, lines)


class MemorySink:
    """Keep the most recent samples in memory (bounded)."""

    def __init__(self, maxlen: int | None = 10_000) -> None:
        self.samples: deque[Sample] = deque(maxlen=maxlen)

    async def emit(self, samples: Sequence[Sample]) -> None:
        self.samples.extend(samples)

    def clear(self) -> None:
        self.samples.clear()


def build_sink(settings: Settings) -> SampleSink:
    """Create the sink selected by SAMPLE_SINK."""
    kind = settings.sample_sink.strip().lower()
    if kind == "jsonl":
        logger.info("Writing samples to %s", settings.sample_output_path)
        return JsonLinesSink(settings.sample_output_path)
    if kind != "log":
        logger.warning("Unknown SAMPLE_SINK '%s', falling back to log", kind)
    return LoggingSink()
