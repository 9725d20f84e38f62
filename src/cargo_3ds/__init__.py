"""
cargo_3ds - Build Rust homebrew for the Nintendo 3DS.

This package provides the ``cargo 3ds`` subcommand, which:
- Checks that the installed rustc is a recent enough nightly
- Cross-compiles the project for armv6k-nintendo-3ds
- Packs the SMDH metadata and 3DSX executable with devkitPro's tools
- Optionally uploads the result to a 3DS with 3dslink
"""

from cargo_3ds.core.builder import Builder
from cargo_3ds.core.uploader import Uploader
from cargo_3ds.errors import Cargo3DSError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "Builder",
    "Uploader",
    "Cargo3DSError",
]
