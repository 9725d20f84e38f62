"""
Build orchestration for cargo_3ds.

Runs the three build stages in order:

  A. ``cargo build`` for armv6k-nintendo-3ds, producing the ELF
  B. ``smdhtool --create``, producing the SMDH metadata
  C. ``3dsxtool``, packing the ELF and SMDH (and ./romfs) into a 3DSX

The first stage that exits unsuccessfully stops the pipeline.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

from cargo_3ds.core.command import (
    Command,
    CommandResult,
    CommandRunner,
    exit_code_for,
)
from cargo_3ds.core.project import CTRConfig
from cargo_3ds.errors import StageError

TARGET = "armv6k-nintendo-3ds"

# -z muldefs: the SDK defines symbols that also exist in the Rust std objects
LINK_ARGS = [
    "-Clink-arg=-specs=3dsx.specs",
    "-Clink-arg=-z",
    "-Clink-arg=muldefs",
    "-Clink-arg=-D__3DS__",
]

LINK_FLAGS = " ".join(LINK_ARGS)

ROMFS_DIR = "romfs"


class OptLevel(Enum):
    """Cargo profile, named after its directory under target/<triple>/."""

    DEBUG = "debug"
    RELEASE = "release"

    @classmethod
    def from_args(cls, args: Sequence[str]) -> "OptLevel":
        return cls.RELEASE if "--release" in args else cls.DEBUG

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Artifacts:
    """Canonical paths of the files produced for one build."""

    opt_level: OptLevel
    name: str

    @property
    def directory(self) -> str:
        return f"./target/{TARGET}/{self.opt_level}"

    def path(self, extension: str) -> str:
        return f"{self.directory}/{self.name}.{extension}"

    @property
    def elf(self) -> str:
        return self.path("elf")

    @property
    def smdh(self) -> str:
        return self.path("smdh")

    @property
    def dsx(self) -> str:
        return self.path("3dsx")


def merge_rustflags(existing: Optional[str]) -> str:
    """Append the 3DS linker arguments to an existing RUSTFLAGS value."""
    if existing:
        return f"{existing} {LINK_FLAGS}"
    return LINK_FLAGS


def has_romfs(cwd: Path) -> bool:
    romfs = cwd / ROMFS_DIR
    return romfs.is_dir() and os.access(romfs, os.R_OK)


def check_result(stage: str, result: CommandResult) -> None:
    """Raise StageError carrying the child's exit code if it failed."""
    if not result.success:
        raise StageError(stage, exit_code_for(result.returncode))


@dataclass
class BuildResult:
    """Result of a completed build."""

    artifacts: Artifacts
    commands: list[Command] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"BuildResult({self.artifacts.name} -> {self.artifacts.dsx})"


class Builder:
    """Build a 3DSX from the cargo project in the working directory."""

    def __init__(
        self,
        runner: CommandRunner,
        config: CTRConfig,
        cargo_args: Sequence[str] = (),
        cwd: Optional[Path] = None,
    ):
        """
        Initialize builder.

        Args:
            runner: Runner that spawns the external tools.
            config: Probed project metadata.
            cargo_args: User arguments passed through to ``cargo build``.
            cwd: Project directory probed for romfs/ (default: current directory).
        """
        self.runner = runner
        self.config = config
        self.cargo_args = list(cargo_args)
        self.cwd = cwd if cwd is not None else Path.cwd()
        self.opt_level = OptLevel.from_args(self.cargo_args)
        self.artifacts = Artifacts(self.opt_level, config.name)

    def elf_command(self) -> Command:
        cargo = os.environ.get("CARGO") or "cargo"
        command = Command(cargo, ["build", "-Z", "unstable-options", "-Z", "build-std"])
        command.args(["--target", TARGET]).args(self.cargo_args)
        return command.setenv("RUSTFLAGS", merge_rustflags(os.environ.get("RUSTFLAGS")))

    def smdh_command(self) -> Command:
        return Command(
            "smdhtool",
            [
                "--create",
                self.config.name,
                self.config.description,
                self.config.author,
                self.config.icon,
                self.artifacts.smdh,
            ],
        )

    def dsx_command(self) -> Command:
        command = Command(
            "3dsxtool",
            [self.artifacts.elf, self.artifacts.dsx, f"--smdh={self.artifacts.smdh}"],
        )
        if has_romfs(self.cwd):
            command.arg(f"--romfs=./{ROMFS_DIR}")
        return command

    def build(self) -> BuildResult:
        """
        Run stages A, B and C.

        Each command is constructed just before it is spawned so that it
        sees the filesystem as left by the previous stage.

        Returns:
            BuildResult with the artifact paths and the commands run.

        Raises:
            StageError: If any stage exits unsuccessfully.
        """
        result = BuildResult(artifacts=self.artifacts)
        for stage, factory in (
            ("cargo build", self.elf_command),
            ("smdhtool", self.smdh_command),
            ("3dsxtool", self.dsx_command),
        ):
            command = factory()
            result.commands.append(command)
            check_result(stage, self.runner.run(command))
        return result
