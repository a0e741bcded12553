"""Subprocess-based command executor for the code assistant."""

from __future__ import annotations

import asyncio
import os
import sys
import time
from pathlib import Path

from codechat.config.schema import DEFAULT_COMMAND_TIMEOUT, DEFAULT_OUTPUT_LIMIT
from codechat.errors import CommandFailed, CommandTimeout
from codechat.logging import get_logger
from codechat.terminal.result import CommandResult

log = get_logger("terminal")

_READ_CHUNK = 64 * 1024


def shell_argv(command: str, platform: str | None = None) -> list[str]:
    """Build the argument vector that runs a raw command string.

    The command is passed as a single argument to the shell, never spliced
    into a larger command line.
    """
    platform = platform or sys.platform
    if platform == "win32":
        return ["powershell.exe", "-NoProfile", "-NonInteractive", "-Command", command]
    return ["/bin/sh", "-c", command]


async def _read_capped(stream: asyncio.StreamReader | None, limit: int) -> tuple[bytes, bool]:
    """Read a stream to EOF, keeping at most limit bytes.

    Bytes past the limit are read and discarded so the child never blocks
    on a full pipe.
    """
    if stream is None:
        return b"", False
    kept = bytearray()
    truncated = False
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            break
        room = limit - len(kept)
        if room > 0:
            kept.extend(chunk[:room])
        if len(chunk) > room:
            truncated = True
    return bytes(kept), truncated


async def _kill(process: asyncio.subprocess.Process) -> None:
    try:
        process.kill()
    except ProcessLookupError:
        pass  # Process already gone
    await process.wait()


class CommandExecutor:
    """Execute shell commands in the workspace using asyncio subprocess.

    Commands run one at a time; the caller awaits each to completion.
    """

    def __init__(
        self,
        cwd: str | os.PathLike[str] = ".",
        *,
        timeout: float | None = DEFAULT_COMMAND_TIMEOUT,
        output_limit: int = DEFAULT_OUTPUT_LIMIT,
    ) -> None:
        """Initialize the executor.

        Args:
            cwd: Working directory for every command (the workspace root).
            timeout: Seconds to wait before killing the command. None waits forever.
            output_limit: Maximum bytes captured per stream.
        """
        self._cwd = Path(cwd)
        self._timeout = timeout
        self._output_limit = output_limit

    @property
    def cwd(self) -> Path:
        return self._cwd

    @property
    def timeout(self) -> float | None:
        return self._timeout

    @property
    def output_limit(self) -> int:
        return self._output_limit

    async def execute(self, command: str) -> CommandResult:
        """Run one command to completion.

        Args:
            command: Raw command string handed to the platform shell.

        Returns:
            CommandResult for a zero exit status. Output beyond the cap is
            dropped and flagged with truncated=True.

        Raises:
            CommandFailed: Non-zero exit, or the shell could not be launched.
            CommandTimeout: The command outlived the configured timeout.
        """
        start_time = time.perf_counter()
        argv = shell_argv(command)
        log.debug("exec %r in %s", command, self._cwd)

        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self._cwd),
            )
        except FileNotFoundError as e:
            raise CommandFailed(command, f"Command not found: {argv[0]}", exit_code=127) from e
        except PermissionError as e:
            raise CommandFailed(command, f"Permission denied: {argv[0]}", exit_code=126) from e
        except OSError as e:
            raise CommandFailed(command, f"OS error: {e}", exit_code=1) from e

        gathered = asyncio.gather(
            _read_capped(process.stdout, self._output_limit),
            _read_capped(process.stderr, self._output_limit),
            process.wait(),
        )
        try:
            if self._timeout is not None:
                (out, out_cut), (err, err_cut), exit_code = await asyncio.wait_for(
                    gathered, timeout=self._timeout
                )
            else:
                (out, out_cut), (err, err_cut), exit_code = await gathered
        except asyncio.TimeoutError:
            await _kill(process)
            log.warning("timeout after %ss: %r", self._timeout, command)
            raise CommandTimeout(
                command,
                f"Command timed out after {self._timeout}s",
                timeout=self._timeout or 0.0,
            ) from None
        except asyncio.CancelledError:
            await _kill(process)
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        stdout = out.decode("utf-8", errors="replace")
        stderr = err.decode("utf-8", errors="replace")
        truncated = out_cut or err_cut
        if truncated:
            log.info("output truncated to %d bytes: %r", self._output_limit, command)

        if exit_code != 0:
            log.debug("exit %s: %r", exit_code, command)
            raise CommandFailed(
                command,
                stderr.strip() or f"Command exited with status {exit_code}",
                exit_code=exit_code,
                stdout=stdout,
            )

        return CommandResult(
            command=command,
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
            truncated=truncated,
            duration_ms=duration_ms,
        )
