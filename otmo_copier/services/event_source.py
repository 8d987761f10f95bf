"""OTMO event feed reader.

The feed is a newline-delimited JSON file that only ever grows. Offsets are
line numbers, so a reader can resume from any persisted cursor and re-reading
the same path yields the same events. Each yielded line also carries the byte
position just past it; passing that back as ``byte_offset`` lets the next read
seek straight to the resume point instead of rescanning the file.
"""

import json
import logging
from pathlib import Path
from typing import Iterator, NamedTuple

import pydantic

from otmo_copier.errors import ValidationError
from otmo_copier.schemas.events import SourceTradeEvent

logger = logging.getLogger(__name__)


class FeedLine(NamedTuple):
    offset: int  # line number
    item: SourceTradeEvent | ValidationError
    end: int  # byte position after this line


class JsonlEventSource:
    def __init__(self, path: str | Path):
        self.path = Path(path)

    @property
    def name(self) -> str:
        return f"jsonl:{self.path.name}"

    def read(self, start: int = 0, limit: int | None = None, byte_offset: int = 0) -> Iterator[FeedLine]:
        """Lazily yield feed lines from line ``start`` onward.

        ``byte_offset``, when non-zero, must be the byte position where line
        ``start`` begins; without it the file is scanned from the top.
        Unparseable lines (bad encoding, bad JSON, bad fields) are yielded as
        ValidationError values rather than raised, so one bad record does not
        stall the cursor. Blank lines are skipped but still consume an offset.
        A final line without a trailing newline is treated as not yet written.
        A missing file yields nothing.
        """
        if not self.path.exists():
            logger.debug(f"Event source {self.path} does not exist yet")
            return

        with self.path.open("rb") as fh:
            if byte_offset:
                fh.seek(byte_offset)
            offset = start if byte_offset else 0
            position = byte_offset
            yielded = 0
            for line in fh:
                if limit is not None and yielded >= limit:
                    return
                if not line.endswith(b"\n"):
                    # Writer is mid-append; pick the line up on the next poll
                    return
                line_offset = offset
                offset += 1
                position += len(line)
                if line_offset < start:
                    continue
                raw = line.strip()
                if not raw:
                    continue
                yielded += 1
                yield FeedLine(line_offset, _parse_line(raw, line_offset), position)


def _parse_line(raw: bytes, offset: int) -> SourceTradeEvent | ValidationError:
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        return ValidationError(f"line {offset}: not valid UTF-8 ({e.reason} at byte {e.start})")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        return ValidationError(f"line {offset}: invalid JSON ({e.msg})")
    if not isinstance(payload, dict):
        return ValidationError(f"line {offset}: expected an object, got {type(payload).__name__}")
    try:
        return SourceTradeEvent.model_validate(payload)
    except pydantic.ValidationError as e:
        return ValidationError(f"line {offset}: {e.error_count()} invalid field(s)", raw=payload)
