"""
Custom exceptions for cargo_3ds.

Every error carries the process exit code it maps to and an optional
remediation hint shown on the line after the message.
"""

from typing import Optional


class Cargo3DSError(Exception):
    """Base exception for cargo_3ds errors."""

    exit_code: int = 1

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.hint = hint


class ParseError(Cargo3DSError):
    """Error parsing tool output."""

    pass


class ValidationError(Cargo3DSError):
    """Invalid command-line input (missing or unknown verb)."""

    pass


class ToolchainError(Cargo3DSError):
    """The installed rustc does not meet the channel or age requirements."""

    pass


class EnvironmentMissingError(Cargo3DSError):
    """A required environment variable is not set."""

    pass


class MetadataError(Cargo3DSError):
    """Project metadata could not be obtained from cargo."""

    pass


class ToolNotFoundError(Cargo3DSError):
    """An external tool could not be found on PATH."""

    pass


class StageError(Cargo3DSError):
    """A spawned tool exited unsuccessfully."""

    def __init__(self, stage: str, exit_code: int):
        super().__init__(f"{stage} failed with exit code {exit_code}")
        self.stage = stage
        self.exit_code = exit_code
