"""
Child-process execution for cargo_3ds.

Each tool invocation is described by a :class:`Command` (program, flat
argument vector, environment overrides) so callers can inspect the exact
vector before anything is spawned. A :class:`CommandRunner` executes it.
"""

import os
import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence

from cargo_3ds.errors import ToolNotFoundError


@dataclass
class Command:
    """A single tool invocation."""

    program: str
    arguments: list[str] = field(default_factory=list)

    # Variables set on top of the inherited environment
    env: dict[str, str] = field(default_factory=dict)

    def arg(self, value: str) -> "Command":
        self.arguments.append(str(value))
        return self

    def args(self, values: Sequence[str]) -> "Command":
        self.arguments.extend(str(value) for value in values)
        return self

    def setenv(self, key: str, value: str) -> "Command":
        self.env[key] = value
        return self

    @property
    def argv(self) -> list[str]:
        return [self.program, *self.arguments]

    def __str__(self) -> str:
        return " ".join(shlex.quote(part) for part in self.argv)


@dataclass
class CommandResult:
    """Outcome of an executed command."""

    command: Command
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


def exit_code_for(returncode: Optional[int]) -> int:
    """
    Map a child's return code to the exit code cargo-3ds should use.

    subprocess reports a signal-terminated child as a negative return
    code; such children have no exit code of their own, so 1 is used.
    """
    if returncode is None or returncode < 0:
        return 1
    return returncode


class CommandRunner(ABC):
    """Abstract command runner interface."""

    @abstractmethod
    def run(self, command: Command) -> CommandResult:
        """Run a command with inherited stdin/stdout/stderr and wait for it."""
        ...

    @abstractmethod
    def capture(self, command: Command) -> CommandResult:
        """Run a command and capture its output as text."""
        ...


class SubprocessCommandRunner(CommandRunner):
    """Command runner that executes commands via :mod:`subprocess`."""

    @staticmethod
    def _merge_environment(env: dict[str, str]) -> Optional[dict[str, str]]:
        if not env:
            return None
        return {**os.environ, **env}

    def run(self, command: Command) -> CommandResult:
        try:
            process = subprocess.run(
                command.argv,
                env=self._merge_environment(command.env),
                check=False,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(
                f"Could not find `{command.program}` on PATH",
                hint="Make sure devkitPro and the Rust toolchain are installed",
            ) from e
        return CommandResult(command=command, returncode=process.returncode)

    def capture(self, command: Command) -> CommandResult:
        try:
            process = subprocess.run(
                command.argv,
                env=self._merge_environment(command.env),
                capture_output=True,
                text=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(
                f"Could not find `{command.program}` on PATH"
            ) from e
        return CommandResult(
            command=command,
            returncode=process.returncode,
            stdout=process.stdout,
            stderr=process.stderr,
        )
