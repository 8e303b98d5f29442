"""In-memory test doubles: no subprocesses, no real stdio, full control."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import anyio

from family_steward.executor import CommandExecutor, RunningProcess


class _ScriptedStderr:
    def __init__(self, data: bytes, chunk_size: int) -> None:
        self._chunks = [data[i : i + chunk_size] for i in range(0, len(data), chunk_size)]
        self.reads = 0

    async def read(self, _n: int) -> bytes:
        self.reads += 1
        return self._chunks.pop(0) if self._chunks else b""


class _HangingStderr:
    def __init__(self, killed: anyio.Event) -> None:
        self._killed = killed

    async def read(self, _n: int) -> bytes:
        await self._killed.wait()
        return b""


class ScriptedProcess:
    """Quacks like asyncio.subprocess.Process for RunningProcess."""

    def __init__(self, returncode: int, stderr: bytes, hang: bool, chunk_size: int) -> None:
        self.pid = 4242
        self.returncode: int | None = None
        self.killed = anyio.Event()
        self._exit_code = returncode
        self.stderr: Any = (
            _HangingStderr(self.killed) if hang else _ScriptedStderr(stderr, chunk_size)
        )

    async def wait(self) -> int:
        if isinstance(self.stderr, _HangingStderr):
            await self.killed.wait()
            self.returncode = -9
        else:
            self.returncode = self._exit_code
        return self.returncode

    def terminate(self) -> None:
        self.kill()

    def kill(self) -> None:
        self.killed.set()


@dataclass
class ScriptedExecutor(CommandExecutor):
    """Pretends to run the analysis program.

    On start it writes ``output`` (a dict is serialized as JSON, a string is
    written verbatim) to the command's last argument, the output path.
    """

    returncode: int = 0
    stderr: bytes = b""
    output: dict[str, Any] | str | None = None
    hang: bool = False
    chunk_size: int = 1024
    error: OSError | None = None
    starts: list[tuple[list[str], Path]] = field(default_factory=list)
    processes: list[ScriptedProcess] = field(default_factory=list)

    async def start(self, command: list[str], *, cwd: Path) -> RunningProcess:
        self.starts.append((command, cwd))
        if self.error is not None:
            raise self.error
        if self.output is not None:
            text = self.output if isinstance(self.output, str) else json.dumps(self.output)
            Path(command[-1]).write_text(text)
        process = ScriptedProcess(self.returncode, self.stderr, self.hang, self.chunk_size)
        self.processes.append(process)
        return RunningProcess(process)  # type: ignore[arg-type]


class MemoryReader:
    """Feeds prepared lines to the server, then either EOF or waits."""

    def __init__(self, lines: list[bytes] | None = None) -> None:
        self._send, self._receive = anyio.create_memory_object_stream[bytes](100)
        for line in lines or []:
            self.push(line)

    def push(self, line: bytes) -> None:
        self._send.send_nowait(line)

    def close(self) -> None:
        self._send.close()

    async def readline(self) -> bytes:
        try:
            return await self._receive.receive()
        except anyio.EndOfStream:
            return b""


class MemoryWriter:
    """Collects written frames and decodes them back into messages."""

    def __init__(self) -> None:
        self.data = b""
        self.flushes = 0
        self.written = anyio.Event()

    async def write(self, data: bytes) -> int:
        self.data += data
        self.written.set()
        return len(data)

    async def flush(self) -> None:
        self.flushes += 1

    def messages(self) -> list[dict[str, Any]]:
        found = []
        rest = self.data
        while rest:
            header, _, rest = rest.partition(b"\r\n\r\n")
            length = int(header.split(b":", 1)[1])
            found.append(json.loads(rest[:length]))
            rest = rest[length:]
        return found
