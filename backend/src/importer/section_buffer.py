"""
User Data Importer - Section Buffering
Holds streamed V1 sections until they can be imported in dependency order.
"""

import json
import logging
import os
from typing import Any, Callable, Dict, Iterator, List, Optional, TextIO

logger = logging.getLogger(__name__)


class SectionBuffer:
    """
    Appends records of one section to ``stream_<section>.ndjson`` in the
    scratch directory, one JSON document per line, and replays them later.

    The file is created on the first append, so a section that never
    appears in the document leaves nothing behind.
    """

    def __init__(self, directory: str, section: str):
        self.directory = directory
        self.section = section
        self.path = os.path.join(directory, f"stream_{section}.ndjson")
        self.count = 0
        self._fh: Optional[TextIO] = None

    def append(self, record: Any) -> None:
        if self._fh is None:
            self._fh = open(self.path, 'a', encoding='utf-8')
        self._fh.write(json.dumps(record))
        self._fh.write('\n')
        self.count += 1

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def replay(self) -> Iterator[Any]:
        """Yield staged records in the order they were appended."""
        self.close()
        if not os.path.exists(self.path):
            return
        with open(self.path, 'r', encoding='utf-8') as fh:
            for line in fh:
                line = line.strip()
                if not line:
                    continue
                yield json.loads(line)

    def replay_batches(self, batch_size: int) -> Iterator[List[Any]]:
        """Yield staged records in lists of at most batch_size."""
        batch = []
        for record in self.replay():
            batch.append(record)
            if len(batch) >= batch_size:
                yield batch
                batch = []
        if batch:
            yield batch


class RecordBatcher:
    """
    In-memory batch that hands its records to ``flush_callback`` every time
    it reaches ``batch_size`` and once more on ``flush()``.
    """

    def __init__(self, batch_size: int, flush_callback: Callable[[List[Any]], None]):
        self.batch_size = batch_size
        self.flush_callback = flush_callback
        self.records: List[Any] = []
        self.flushed_batches = 0

    def add(self, record: Any) -> None:
        self.records.append(record)
        if len(self.records) >= self.batch_size:
            self.flush()

    def flush(self) -> None:
        if not self.records:
            return
        batch = self.records
        self.records = []
        self.flushed_batches += 1
        self.flush_callback(batch)


def close_all(buffers: Dict[str, SectionBuffer]) -> None:
    for buffer in buffers.values():
        buffer.close()
