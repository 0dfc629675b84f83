"""
User Data Importer - Streaming Document Parser
Single forward pass over the legacy data.json document.

The document is a JSON object whose top-level keys are sections. Large
sections (places, visits, points) are delivered element by element so the
whole array is never held in memory; every other section is materialized
and delivered whole.
"""

import logging
from typing import Any, BinaryIO, Iterable, Iterator, Protocol, Tuple

import ijson
from ijson.common import ObjectBuilder

from importer.exceptions import DocumentParseError

logger = logging.getLogger(__name__)

STREAMED_SECTIONS = ('places', 'visits', 'points')

Event = Tuple[str, Any]


class SectionHandler(Protocol):
    """Receives parsed sections in document order."""

    def handle_section(self, key: str, value: Any) -> None:
        """Called once for a fully materialized non-streamed section."""
        ...

    def handle_stream_value(self, section: str, value: Any) -> None:
        """Called for each element of a streamed section's array."""
        ...

    def finish_stream(self, section: str) -> None:
        """Called after the last element of a streamed section."""
        ...


def _checked_events(fh: BinaryIO) -> Iterator[Event]:
    """ijson basic events with parse failures raised as DocumentParseError."""
    try:
        for event, value in ijson.basic_parse(fh, use_float=True):
            yield event, value
    except ijson.JSONError as e:
        raise DocumentParseError(f"Invalid JSON format in data file: {e}") from e
    except UnicodeDecodeError as e:
        raise DocumentParseError(f"Invalid JSON format in data file: {e}") from e


class StreamingDocumentParser:
    """
    Walks ijson events and drives a SectionHandler.

    Example:
        >>> with open(path, 'rb') as fh:
        ...     StreamingDocumentParser(handler).parse(fh)
    """

    def __init__(self, handler: SectionHandler, streamed_sections: Iterable[str] = STREAMED_SECTIONS):
        self.handler = handler
        self.streamed_sections = frozenset(streamed_sections)

    def parse(self, fh: BinaryIO) -> None:
        """
        Parse a whole document from a binary file object.

        Raises:
            DocumentParseError: If the document is malformed or its root is not an object
        """
        events = _checked_events(fh)

        first = next(events, None)
        if first is None:
            raise DocumentParseError("Invalid JSON format in data file: empty document")
        if first[0] != 'start_map':
            raise DocumentParseError("Invalid JSON format in data file: root must be an object")

        for event, value in events:
            if event == 'end_map':
                break

            # At depth 1 the only other event is a section key
            key = value
            event, value = next(events)

            if key in self.streamed_sections and event == 'start_array':
                count = self._stream_array(key, events)
                self.handler.finish_stream(key)
                logger.debug(f"Streamed {count} {key} from data file")
            else:
                self.handler.handle_section(key, self._build_value(event, value, events))

        # Drain so trailing garbage after the root object is reported
        for _ in events:
            pass

    def _stream_array(self, section: str, events: Iterator[Event]) -> int:
        count = 0
        for event, value in events:
            if event == 'end_array':
                break
            self.handler.handle_stream_value(section, self._build_value(event, value, events))
            count += 1
        return count

    @staticmethod
    def _build_value(event: str, value: Any, events: Iterator[Event]) -> Any:
        """Materialize the value starting at (event, value)."""
        if event not in ('start_map', 'start_array'):
            return value

        builder = ObjectBuilder()
        builder.event(event, value)
        depth = 1
        for event, value in events:
            builder.event(event, value)
            if event in ('start_map', 'start_array'):
                depth += 1
            elif event in ('end_map', 'end_array'):
                depth -= 1
                if depth == 0:
                    break
        return builder.value
