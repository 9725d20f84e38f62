"""
Device upload for cargo_3ds.

Hands the built 3DSX to ``3dslink``, which discovers a 3DS running the
homebrew launcher on the local network and sends it the executable.
"""

from cargo_3ds.core.builder import Artifacts, check_result
from cargo_3ds.core.command import Command, CommandRunner


class Uploader:
    """Upload a built 3DSX to a device."""

    def __init__(self, runner: CommandRunner, artifacts: Artifacts):
        self.runner = runner
        self.artifacts = artifacts

    def link_command(self) -> Command:
        return Command("3dslink", [self.artifacts.dsx])

    def upload(self) -> Command:
        """
        Run 3dslink with inherited streams.

        Returns:
            The command that was run.

        Raises:
            StageError: If 3dslink exits unsuccessfully.
        """
        command = self.link_command()
        check_result("3dslink", self.runner.run(command))
        return command
