"""
Toolchain gate for cargo_3ds.

Queries rustc for its verbose version metadata (``rustc -vV``) and checks
that it is a nightly (or dev) compiler recent enough to build the standard
library for armv6k-nintendo-3ds.
"""

import os
import re
from dataclasses import dataclass
from enum import IntEnum
from functools import total_ordering
from typing import Optional

from cargo_3ds.core.command import Command, CommandRunner
from cargo_3ds.errors import ParseError, ToolchainError


class Channel(IntEnum):
    """Release channel, ordered from loosest to strictest."""

    DEV = 0
    NIGHTLY = 1
    BETA = 2
    STABLE = 3

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True, order=True)
class CommitDate:
    """Compiler commit date, compared on (year, month, day)."""

    year: int
    month: int
    day: int

    PATTERN = re.compile(r"([0-9]{4})-([0-9]{2})-([0-9]{2})")

    @classmethod
    def parse(cls, text: str) -> "CommitDate":
        """
        Parse a ``YYYY-MM-DD`` date.

        Raises:
            ParseError: If the text is not exactly in that form.
        """
        match = cls.PATTERN.fullmatch(text)
        if not match:
            raise ParseError(f"Invalid commit date: '{text}' (expected YYYY-MM-DD)")
        year, month, day = (int(part) for part in match.groups())
        return cls(year, month, day)

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


@total_ordering
@dataclass(frozen=True)
class Version:
    """
    Semantic version, ordered by semver precedence.

    A version with a pre-release tag sorts before the same version without
    one, so ``1.56.0-nightly < 1.56.0``. Pre-release identifiers compare
    numerically when numeric and lexically otherwise, numeric first.
    """

    major: int
    minor: int
    patch: int
    pre: str = ""

    PATTERN = re.compile(r"([0-9]+)\.([0-9]+)\.([0-9]+)(?:-([0-9A-Za-z.-]+))?")

    @classmethod
    def parse(cls, text: str) -> "Version":
        match = cls.PATTERN.match(text.strip())
        if not match:
            raise ParseError(f"Invalid rustc version: '{text}'")
        major, minor, patch, pre = match.groups()
        return cls(int(major), int(minor), int(patch), pre or "")

    def _precedence(self) -> tuple:
        identifiers = tuple(
            (0, int(part), "") if part.isdigit() else (1, 0, part)
            for part in self.pre.split(".")
        ) if self.pre else ()
        return (self.major, self.minor, self.patch, not self.pre, identifiers)

    def __lt__(self, other: "Version") -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._precedence() < other._precedence()

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        return f"{base}-{self.pre}" if self.pre else base


@dataclass
class RustcVersion:
    """Version metadata reported by ``rustc -vV``."""

    semver: Version
    channel: Channel
    commit_date: Optional[CommitDate] = None


MINIMUM_RUSTC_VERSION = Version(1, 56, 0)
MINIMUM_COMMIT_DATE = CommitDate(2021, 10, 1)


def _channel_for(version: Version) -> Channel:
    if version.pre.startswith("nightly"):
        return Channel.NIGHTLY
    if version.pre.startswith("beta"):
        return Channel.BETA
    if version.pre.startswith("dev"):
        return Channel.DEV
    return Channel.STABLE


def parse_version_meta(text: str) -> RustcVersion:
    """
    Parse the output of ``rustc -vV``.

    Args:
        text: Full stdout of the command.

    Returns:
        RustcVersion with semver, channel and optional commit date.

    Raises:
        ParseError: If the release line is missing or malformed.
    """
    fields: dict[str, str] = {}
    for line in text.splitlines():
        key, sep, value = line.partition(":")
        if sep:
            fields[key.strip()] = value.strip()

    release = fields.get("release")
    if not release:
        raise ParseError("Could not find the release line in `rustc -vV` output")

    semver = Version.parse(release)

    commit_date = None
    raw_date = fields.get("commit-date")
    if raw_date and raw_date != "unknown":
        commit_date = CommitDate.parse(raw_date)

    return RustcVersion(
        semver=semver,
        channel=_channel_for(semver),
        commit_date=commit_date,
    )


def version_meta(runner: CommandRunner) -> RustcVersion:
    """Ask rustc (``$RUSTC`` or ``rustc``) for its version metadata."""
    rustc = os.environ.get("RUSTC") or "rustc"
    command = Command(rustc, ["-vV"])
    result = runner.capture(command)
    if not result.success:
        raise ToolchainError(
            f"`{command}` failed with exit code {result.returncode}",
            hint="Make sure a Rust toolchain is installed, e.g. with rustup",
        )
    return parse_version_meta(result.stdout)


def check_rust_version(meta: RustcVersion) -> None:
    """
    Check the compiler against the channel and age requirements.

    Raises:
        ToolchainError: If the compiler is not nightly, or is older than
            the minimum version or commit date.
    """
    if meta.channel > Channel.NIGHTLY:
        raise ToolchainError(
            "cargo-3ds requires a nightly rustc version.",
            hint="Please run `rustup override set nightly` to use nightly "
            "in the current directory.",
        )

    old_version = meta.semver < MINIMUM_RUSTC_VERSION
    old_commit = (
        meta.commit_date is not None and meta.commit_date < MINIMUM_COMMIT_DATE
    )

    if old_version or old_commit:
        raise ToolchainError(
            f"cargo-3ds requires rustc nightly version >= {MINIMUM_COMMIT_DATE}",
            hint="Please run `rustup update nightly` to upgrade your nightly version",
        )
