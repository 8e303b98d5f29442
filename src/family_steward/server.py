"""Stdio transport: read frames, dispatch them, write framed responses.

Requests are answered one at a time in arrival order, except for deferred
tool calls (the external analysis run), which are answered from a
background task while the loop keeps reading.  Hosts must therefore match
responses by id, not by position in the stream.
"""

from __future__ import annotations

import logging
import sys
from typing import Protocol

import anyio
from anyio.abc import TaskGroup

from family_steward.dispatcher import Dispatcher
from family_steward.framing import Complete, FrameParser, Invalid, encode_frame
from family_steward.protocol import (
    SERVER_ERROR,
    Request,
    error_response,
    parse_request,
    serialize,
)

log = logging.getLogger(__name__)


class LineReader(Protocol):
    async def readline(self) -> bytes: ...


class FrameWriter(Protocol):
    async def write(self, data: bytes) -> object: ...

    async def flush(self) -> None: ...


class StdioServer:
    def __init__(
        self, dispatcher: Dispatcher, reader: LineReader, writer: FrameWriter
    ) -> None:
        self.dispatcher = dispatcher
        self.reader = reader
        self.writer = writer
        self.parser = FrameParser()
        self._write_lock = anyio.Lock()

    async def serve(self) -> None:
        """Run until the inbound stream closes and in-flight requests settle."""
        async with anyio.create_task_group() as tg:
            while True:
                line = await self.reader.readline()
                if not line:
                    log.info("Input stream closed")
                    break
                for result in self.parser.feed(line.decode("utf-8", errors="replace")):
                    if isinstance(result, Invalid):
                        log.warning("Discarded input: %s", result.reason)
                    elif isinstance(result, Complete):
                        await self._accept(result.message, tg)

    async def _accept(self, message: dict, tg: TaskGroup) -> None:
        request = parse_request(message)
        if request is None:
            return
        if self.dispatcher.is_deferred(request):
            tg.start_soon(self._respond, request)
        else:
            await self._respond(request)

    async def _respond(self, request: Request) -> None:
        response = await self.dispatcher.handle(request)
        try:
            payload = serialize(response)
        except ValueError:
            log.exception("Could not encode the response to %r", request.id)
            payload = serialize(
                error_response(request.id, SERVER_ERROR, "Response could not be encoded")
            )
        frame = encode_frame(payload)
        async with self._write_lock:
            await self.writer.write(frame)
            await self.writer.flush()


async def serve_stdio(dispatcher: Dispatcher) -> None:  # pragma: no cover
    stdin = anyio.wrap_file(sys.stdin.buffer)
    stdout = anyio.wrap_file(sys.stdout.buffer)
    log.info("Family steward bridge started")
    await StdioServer(dispatcher, stdin, stdout).serve()
