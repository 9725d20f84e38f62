"""
Core modules for cargo_3ds.
"""

from cargo_3ds.core.builder import Builder
from cargo_3ds.core.command import SubprocessCommandRunner
from cargo_3ds.core.project import get_metadata
from cargo_3ds.core.uploader import Uploader
from cargo_3ds.core.version import check_rust_version, version_meta

__all__ = [
    "Builder",
    "SubprocessCommandRunner",
    "Uploader",
    "check_rust_version",
    "get_metadata",
    "version_meta",
]
