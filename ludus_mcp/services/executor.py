"""Subprocess execution for the Ludus CLI."""

import asyncio
import logging
import os
import signal
import sys
import time
from collections.abc import Mapping
from pathlib import Path
from typing import Final

from ludus_mcp.models import Command, ErrorKind, ExecutionOutcome

logger = logging.getLogger(__name__)

TIMEOUT_EXIT_CODE: Final = 124
SPAWN_FAILURE_EXIT_CODE: Final = 127

_POSIX = sys.platform != "win32"


def _decode(data: bytes | None) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


async def _terminate(process: asyncio.subprocess.Process) -> None:
    """Kill the process and its descendants, then reap it."""
    if process.returncode is None:
        try:
            if _POSIX:
                # Child was started in its own session, so pgid == pid
                os.killpg(process.pid, signal.SIGKILL)
            else:
                process.kill()
        except ProcessLookupError:
            pass
        except OSError as e:
            logger.warning("Could not kill pid %d: %s", process.pid, e)
    await process.wait()


class ProcessExecutor:
    """Runs Ludus CLI commands as argument vectors, never through a shell.

    The executor is stateless between calls; concurrent ``run`` calls share
    only the read-only binary name, environment and working directory.

    Example:
        >>> executor = ProcessExecutor("ludus", env={"LUDUS_JSON": "true"})
        >>> outcome = await executor.run(Command("range", ("list",)), 30)
    """

    def __init__(
        self,
        binary: str = "ludus",
        env: Mapping[str, str] | None = None,
        cwd: Path | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            binary: Executable name (resolved on PATH) or configured path.
            env: Variables layered over the server's own environment.
            cwd: Working directory for the child process.
        """
        self.binary = binary
        self.env = dict(env or {})
        self.cwd = cwd

    def _environment(self, extra: Mapping[str, str] | None) -> dict[str, str]:
        environment = dict(os.environ)
        environment.update(self.env)
        if extra:
            environment.update(extra)
        return environment

    async def run(
        self,
        command: Command,
        timeout: float,
        extra_env: Mapping[str, str] | None = None,
    ) -> ExecutionOutcome:
        """Run a command and capture its output.

        Args:
            command: Command to run.
            timeout: Seconds to wait before killing the process.
            extra_env: Server-side variables for this call only (for example
                the admin endpoint URL). Never caller-supplied.

        Returns:
            ExecutionOutcome. Timeouts and spawn failures produce synthetic
            outcomes with ``error_kind`` set rather than raising.

        Raises:
            asyncio.CancelledError: If the caller is cancelled. The process
                group is killed before the cancellation propagates.
        """
        display = command.display(self.binary)
        logger.debug(
            "Running %s (timeout=%ss)",
            display,
            timeout,
            extra={"context": {"cwd": str(self.cwd) if self.cwd else None}},
        )
        start = time.perf_counter()

        try:
            process = await asyncio.create_subprocess_exec(
                self.binary,
                *command.argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self._environment(extra_env),
                cwd=self.cwd,
                start_new_session=_POSIX,
            )
        except (OSError, ValueError) as e:
            logger.error("Failed to start %s: %s", display, e)
            return ExecutionOutcome(
                exit_code=SPAWN_FAILURE_EXIT_CODE,
                stdout="",
                stderr=f"Failed to start '{self.binary}': {e}",
                duration_ms=_elapsed_ms(start),
                error_kind=ErrorKind.EXECUTION_FAILURE,
            )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
        except TimeoutError:
            await _terminate(process)
            duration_ms = _elapsed_ms(start)
            logger.warning(
                "Timed out after %dms, killed %s (pid=%d)",
                duration_ms,
                display,
                process.pid,
            )
            return ExecutionOutcome(
                exit_code=TIMEOUT_EXIT_CODE,
                stdout="",
                stderr=f"Command timed out after {timeout}s: {display}",
                duration_ms=duration_ms,
                error_kind=ErrorKind.TIMEOUT,
            )
        except asyncio.CancelledError:
            await asyncio.shield(_terminate(process))
            logger.info("Cancelled, killed %s (pid=%d)", display, process.pid)
            raise

        outcome = ExecutionOutcome(
            exit_code=process.returncode if process.returncode is not None else -1,
            stdout=_decode(stdout),
            stderr=_decode(stderr),
            duration_ms=_elapsed_ms(start),
        )
        logger.debug(
            "Finished %s -> exit %d [%dms]",
            display,
            outcome.exit_code,
            outcome.duration_ms,
        )
        return outcome
