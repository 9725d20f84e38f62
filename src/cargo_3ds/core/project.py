"""
Project probe for cargo_3ds.

Reads the root package from ``cargo metadata`` and resolves the icon used
for the SMDH, producing the CTRConfig consumed by the build pipeline.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from cargo_3ds.core.command import Command, CommandRunner
from cargo_3ds.errors import EnvironmentMissingError, MetadataError

DEFAULT_DESCRIPTION = "Homebrew Application"

ICON_FILE = "icon.png"


@dataclass
class CTRConfig:
    """Application metadata written into the SMDH."""

    name: str
    author: str
    description: str
    icon: str

    def validate(self) -> list[str]:
        """
        Validate the configuration.

        Returns:
            List of validation error messages (empty if valid).
        """
        errors = []
        if not self.name:
            errors.append("Package name must not be empty")
        if not self.author:
            errors.append(
                f"Package '{self.name}' must list at least one author in Cargo.toml"
            )
        return errors


def default_icon() -> str:
    """Path of the icon shipped with libctru, under ``$DEVKITPRO``."""
    devkitpro = os.environ.get("DEVKITPRO")
    if not devkitpro:
        raise EnvironmentMissingError(
            "DEVKITPRO is not set and no icon.png was found",
            hint="Install devkitPro and export DEVKITPRO, or add an icon.png "
            "to the project directory",
        )
    return f"{devkitpro}/libctru/default_icon.png"


def resolve_icon(cwd: Optional[Path] = None) -> str:
    """Use ``./icon.png`` when present, otherwise the libctru default."""
    base = cwd if cwd is not None else Path.cwd()
    if (base / ICON_FILE).is_file():
        return f"./{ICON_FILE}"
    return default_icon()


def find_root_package(metadata: dict[str, Any]) -> dict[str, Any]:
    """
    Locate the root package in ``cargo metadata`` output.

    The resolve graph names the root package id; without it (``--no-deps``
    output), the package whose manifest sits at the workspace root is used.

    Raises:
        MetadataError: If the workspace has no root package.
    """
    packages = metadata.get("packages") or []

    resolve = metadata.get("resolve")
    if resolve is not None:
        root_id = resolve.get("root")
        for package in packages:
            if root_id is not None and package.get("id") == root_id:
                return package
    else:
        workspace_root = metadata.get("workspace_root")
        if workspace_root:
            manifest = Path(workspace_root) / "Cargo.toml"
            for package in packages:
                if Path(package.get("manifest_path", "")) == manifest:
                    return package

    raise MetadataError("No root crate found")


def config_from_package(package: dict[str, Any], icon: str) -> CTRConfig:
    """Build a CTRConfig from a single ``cargo metadata`` package entry."""
    authors = package.get("authors") or []
    config = CTRConfig(
        name=package.get("name") or "",
        author=authors[0] if authors else "",
        description=package.get("description") or DEFAULT_DESCRIPTION,
        icon=icon,
    )

    errors = config.validate()
    if errors:
        raise MetadataError(errors[0])
    return config


def load_metadata(runner: CommandRunner) -> dict[str, Any]:
    """Run ``cargo metadata`` (``$CARGO`` or ``cargo``) and decode its JSON."""
    cargo = os.environ.get("CARGO") or "cargo"
    command = Command(cargo, ["metadata", "--format-version", "1"])
    result = runner.capture(command)
    if not result.success:
        message = result.stderr.strip().splitlines()
        detail = f": {message[-1]}" if message else ""
        raise MetadataError(
            f"Failed to get cargo metadata (`{command}` exited {result.returncode}){detail}"
        )

    try:
        data = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise MetadataError(f"Failed to parse cargo metadata: {e}") from e

    if not isinstance(data, dict):
        raise MetadataError("Failed to parse cargo metadata: expected a JSON object")
    return data


def get_metadata(runner: CommandRunner, cwd: Optional[Path] = None) -> CTRConfig:
    """
    Probe the project for the metadata written into the SMDH.

    Args:
        runner: Runner used to invoke ``cargo metadata``.
        cwd: Directory searched for icon.png (default: current directory).

    Returns:
        Fully populated CTRConfig.

    Raises:
        MetadataError: If cargo fails or there is no usable root package.
        EnvironmentMissingError: If DEVKITPRO is needed but not set.
    """
    package = find_root_package(load_metadata(runner))
    return config_from_package(package, resolve_icon(cwd))
