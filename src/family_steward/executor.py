"""CommandExecutor ABC and the local subprocess implementation."""

import asyncio
import contextlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

STDERR_CAPTURE_BYTES = 64 * 1024
_READ_CHUNK = 65_536


@dataclass
class CompletedProcess:
    """Result of a finished subprocess.  stdout is never captured."""

    returncode: int
    stderr: bytes


class RunningProcess:
    """Wrapper around an asyncio subprocess, providing a clean interface."""

    def __init__(self, process: asyncio.subprocess.Process) -> None:
        self._process = process

    @property
    def pid(self) -> int | None:
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        return self._process.returncode

    async def wait(self, stderr_limit: int = STDERR_CAPTURE_BYTES) -> CompletedProcess:
        """Wait for exit, keeping at most ``stderr_limit`` bytes of stderr.

        The rest of stderr is still read so the child never blocks on a
        full pipe.
        """
        captured = bytearray()
        if self._process.stderr is not None:
            while chunk := await self._process.stderr.read(_READ_CHUNK):
                room = stderr_limit - len(captured)
                if room > 0:
                    captured.extend(chunk[:room])
        await self._process.wait()
        return CompletedProcess(
            returncode=self._process.returncode or 0,
            stderr=bytes(captured),
        )

    async def wait_for_exit(self) -> int:
        await self._process.wait()
        return self._process.returncode or 0

    def terminate(self) -> None:
        with contextlib.suppress(ProcessLookupError):
            self._process.terminate()

    def kill(self) -> None:
        with contextlib.suppress(ProcessLookupError):
            self._process.kill()


class CommandExecutor(ABC):
    """Abstract base for launching external programs."""

    @abstractmethod
    async def start(self, command: list[str], *, cwd: Path) -> RunningProcess: ...


class LocalExecutor(CommandExecutor):
    """Runs a program directly from an argument vector, never through a shell."""

    async def start(self, command: list[str], *, cwd: Path) -> RunningProcess:
        log.info("Starting %s in %s", command[0], cwd)
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.PIPE,
        )
        return RunningProcess(process)
