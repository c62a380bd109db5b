"""Command execution data models."""

import shlex
from dataclasses import dataclass

from ludus_mcp.models.result import ErrorKind


@dataclass(frozen=True)
class Command:
    """A Ludus CLI invocation as an argument vector.

    ``name`` and each element of ``arguments`` are passed to the process as
    separate argv entries. ``acting_user`` becomes a trailing ``--user``
    pair.
    """

    name: str
    arguments: tuple[str, ...] = ()
    acting_user: str | None = None

    @property
    def argv(self) -> tuple[str, ...]:
        """Arguments following the binary, in execution order."""
        tokens = (self.name, *self.arguments)
        if self.acting_user:
            tokens += ("--user", self.acting_user)
        return tokens

    def display(self, binary: str = "ludus") -> str:
        """Human-readable command line for logs. Never executed."""
        return shlex.join((binary, *self.argv))


@dataclass(frozen=True)
class ExecutionOutcome:
    """Raw result of running one Ludus CLI process."""

    exit_code: int
    stdout: str
    stderr: str
    duration_ms: int
    # Set only for outcomes synthesized by the executor (timeout, spawn error)
    error_kind: ErrorKind | None = None

    @property
    def combined_output(self) -> str:
        return self.stdout + self.stderr
