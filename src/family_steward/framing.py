"""Inbound frame accumulation and outbound frame encoding.

Hosts send either ``Content-Length: <n>\\r\\n\\r\\n<json>`` frames or bare
``<json>`` lines.  The parser is fed one line at a time and reports, for
each line, zero or more tagged results.  A JSON document that does not yet
decode is assumed to be incomplete and stays buffered; the next line
usually completes it.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any

CONTENT_LENGTH = re.compile(r"Content-Length:\s*(\d+)", re.IGNORECASE)
MAX_BUFFER_CHARS = 1024 * 1024

_decoder = json.JSONDecoder()


@dataclass(frozen=True)
class Incomplete:
    """More input is needed before a message can be decoded."""


@dataclass(frozen=True)
class Complete:
    """One decoded protocol message."""

    message: dict[str, Any]


@dataclass(frozen=True)
class Invalid:
    """Buffered input that was discarded without producing a message."""

    reason: str


FrameResult = Incomplete | Complete | Invalid


class FrameParser:
    """Accumulates lines and extracts complete JSON messages."""

    def __init__(self) -> None:
        self._buffer = ""
        self._stalled = False

    @property
    def buffered(self) -> str:
        return self._buffer

    def feed(self, line: str) -> list[FrameResult]:
        line = line.rstrip("\r\n")
        if not line.strip():
            return []

        results: list[FrameResult] = []
        if self._stalled and _starts_message(line):
            results.append(Invalid(f"unparsable fragment: {self._buffer[:80]!r}"))
            self._reset()

        self._buffer += line
        results.extend(self._drain())

        if self._buffer and len(self._buffer) > MAX_BUFFER_CHARS:
            results.append(Invalid(f"frame exceeds {MAX_BUFFER_CHARS} characters"))
            self._reset()
        return results

    def _drain(self) -> list[FrameResult]:
        results: list[FrameResult] = []
        while self._buffer.strip():
            start = self._payload_start()
            if start is None:
                results.append(Incomplete())
                break
            if start < 0:
                results.append(Invalid(f"unframed data: {self._buffer[:80]!r}"))
                self._reset()
                break

            try:
                message, end = _decoder.raw_decode(self._buffer, start)
            except json.JSONDecodeError:
                self._stalled = True
                results.append(Incomplete())
                break

            self._buffer = self._buffer[end:]
            self._stalled = False
            results.append(Complete(message))

        if not self._buffer.strip():
            self._reset()
        return results

    def _payload_start(self) -> int | None:
        """Index of the payload's opening brace.

        None while a header waits for its payload, -1 for unframed data.
        The header value only marks a frame; it does not bound the payload.
        """
        stripped = self._buffer.lstrip()
        if stripped.startswith("{"):
            return len(self._buffer) - len(stripped)
        header = CONTENT_LENGTH.search(self._buffer)
        if header is None:
            return -1
        start = self._buffer.find("{", header.end())
        return None if start == -1 else start

    def _reset(self) -> None:
        self._buffer = ""
        self._stalled = False


def _starts_message(line: str) -> bool:
    return line.startswith("{") or CONTENT_LENGTH.match(line) is not None


def encode_frame(payload: str) -> bytes:
    """Wrap a serialized JSON message in a Content-Length frame."""
    body = payload.encode()
    return b"Content-Length: %d\r\n\r\n" % len(body) + body
