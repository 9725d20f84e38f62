"""Pytest configuration and fixtures for cargo_3ds tests."""

import json
from pathlib import Path
from typing import Optional

import pytest

from cargo_3ds import cli
from cargo_3ds.core.command import Command, CommandResult, CommandRunner

RUSTC_NIGHTLY_OUTPUT = """\
rustc 1.58.0-nightly (b426445c6 2021-11-24)
binary: rustc
commit-hash: b426445c60ff0d9e1e4d2d1ac1d3f0ae5ad1a6a0
commit-date: 2021-11-24
host: x86_64-unknown-linux-gnu
release: 1.58.0-nightly
LLVM version: 13.0.0
"""


def _rustc_output(release: str, commit_date: Optional[str] = "2021-11-24") -> str:
    return "\n".join(
        [
            f"rustc {release}",
            "binary: rustc",
            "commit-hash: b426445c60ff0d9e1e4d2d1ac1d3f0ae5ad1a6a0",
            f"commit-date: {commit_date or 'unknown'}",
            "host: x86_64-unknown-linux-gnu",
            f"release: {release}",
            "LLVM version: 13.0.0",
            "",
        ]
    )


def _metadata_output(
    name: str = "hello",
    authors: Optional[list[str]] = None,
    description: Optional[str] = "A 3DS hello world",
    workspace_root: str = "/work/hello",
) -> str:
    package_id = f"{name} 0.1.0 (path+file://{workspace_root})"
    package = {
        "name": name,
        "version": "0.1.0",
        "id": package_id,
        "authors": ["Jane Doe <jane@example.com>"] if authors is None else authors,
        "description": description,
        "manifest_path": f"{workspace_root}/Cargo.toml",
        "dependencies": [],
        "targets": [],
        "features": {},
    }
    return json.dumps(
        {
            "packages": [package],
            "workspace_members": [package_id],
            "resolve": {"nodes": [], "root": package_id},
            "target_directory": f"{workspace_root}/target",
            "version": 1,
            "workspace_root": workspace_root,
            "metadata": None,
        }
    )


class FakeRunner(CommandRunner):
    """Records commands instead of spawning them.

    ``returncodes`` maps a program name to the exit code its run() or
    capture() reports; ``outputs`` maps a program name to captured stdout.
    With ``write_outputs`` the files each build stage would produce are
    created relative to the current directory.
    """

    def __init__(
        self,
        outputs: Optional[dict[str, str]] = None,
        returncodes: Optional[dict[str, int]] = None,
        package_name: str = "hello",
        write_outputs: bool = True,
    ):
        if outputs is None:
            outputs = {"rustc": RUSTC_NIGHTLY_OUTPUT, "cargo": _metadata_output()}
        self.outputs = outputs
        self.returncodes = returncodes or {}
        self.package_name = package_name
        self.write_outputs = write_outputs
        self.commands: list[Command] = []
        self.captured: list[Command] = []

    @property
    def programs(self) -> list[str]:
        return [command.program for command in self.commands]

    def run(self, command: Command) -> CommandResult:
        self.commands.append(command)
        returncode = self.returncodes.get(command.program, 0)
        if returncode == 0 and self.write_outputs:
            self._write_outputs(command)
        return CommandResult(command=command, returncode=returncode)

    def capture(self, command: Command) -> CommandResult:
        self.captured.append(command)
        return CommandResult(
            command=command,
            returncode=self.returncodes.get(command.program, 0),
            stdout=self.outputs.get(command.program, ""),
        )

    def _write_outputs(self, command: Command) -> None:
        if command.program == "cargo":
            profile = "release" if "--release" in command.arguments else "debug"
            outputs = [
                f"./target/armv6k-nintendo-3ds/{profile}/{self.package_name}.elf"
            ]
        elif command.program == "smdhtool":
            outputs = [command.arguments[-1]]
        elif command.program == "3dsxtool":
            outputs = [command.arguments[1]]
        else:
            return
        for output in outputs:
            path = Path(output)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"")


@pytest.fixture
def make_rustc_output():
    """Factory for ``rustc -vV`` output."""
    return _rustc_output


@pytest.fixture
def make_metadata():
    """Factory for ``cargo metadata`` JSON output."""
    return _metadata_output


@pytest.fixture
def clean_env(monkeypatch):
    """Environment with no toolchain overrides and a known DEVKITPRO."""
    for var in ("RUSTFLAGS", "RUSTC", "CARGO"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("DEVKITPRO", "/opt/devkitpro")


@pytest.fixture
def project_dir(tmp_path: Path, monkeypatch, clean_env) -> Path:
    """Empty project directory set as the current working directory."""
    project = tmp_path / "hello"
    project.mkdir()
    monkeypatch.chdir(project)
    return project


@pytest.fixture
def make_runner():
    """Factory for FakeRunner; probes default to a nightly rustc and a 'hello' crate."""
    return FakeRunner


@pytest.fixture
def fake_runner() -> FakeRunner:
    """FakeRunner answering probes with a nightly rustc and a 'hello' crate."""
    return FakeRunner()


@pytest.fixture
def cli_runner(fake_runner: FakeRunner, monkeypatch) -> FakeRunner:
    """Install fake_runner as the runner used by cli.main()."""
    monkeypatch.setattr(cli, "_make_runner", lambda: fake_runner)
    return fake_runner
