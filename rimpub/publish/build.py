"""Optional ``dotnet build`` run before a project is published."""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..exceptions import BuildError
from ..platform_services import PlatformServices, get_platform_services

logger = logging.getLogger(__name__)

SOLUTION_EXTENSIONS = (".sln", ".slnx")
BUILD_CONFIGURATION = "Release"


@dataclass
class BuildResult:
    """Outcome of a successful build."""

    descriptor: Path
    """Solution file that was built"""

    command: list[str]
    """Command line that was executed"""

    stdout: str
    """Decoded standard output of the build"""


def find_solution(working_dir: Path) -> Optional[Path]:
    """Find a solution file directly inside ``working_dir``.

    Args:
        working_dir: Directory to scan (not recursive)

    Returns:
        The first solution file in name order, or None
    """
    try:
        candidates = sorted(
            entry
            for entry in working_dir.iterdir()
            if entry.suffix.lower() in SOLUTION_EXTENSIONS and entry.is_file()
        )
    except OSError as e:
        raise BuildError(f"Failed to scan {working_dir} for solution files: {e}") from e

    if not candidates:
        return None
    if len(candidates) > 1:
        logger.warning(
            f"Found {len(candidates)} solution files, building {candidates[0].name}"
        )
    return candidates[0]


class BuildTrigger:
    """Builds the project's solution, if it has one, before publishing."""

    def __init__(
        self,
        executable: str = "dotnet",
        platform: Optional[PlatformServices] = None,
    ):
        """Initialize build trigger.

        Args:
            executable: Build tool to invoke
            platform: Platform services used to decode the build output
        """
        self.executable = executable
        self.platform = platform or get_platform_services()

    def build_command(self, descriptor: Path) -> list[str]:
        return [
            self.executable,
            "build",
            str(descriptor),
            "--configuration",
            BUILD_CONFIGURATION,
        ]

    def maybe_build(self, working_dir: Path) -> Optional[BuildResult]:
        """Build the solution in ``working_dir`` if there is one.

        Blocks until the build process exits.

        Args:
            working_dir: Project directory

        Returns:
            BuildResult, or None when there is nothing to build

        Raises:
            BuildError: If the build cannot be started or fails
        """
        descriptor = find_solution(working_dir)
        if descriptor is None:
            logger.debug(f"No solution file in {working_dir}, skipping build")
            return None

        command = self.build_command(descriptor)
        logger.info(f"Building {descriptor.name}")
        logger.debug(f"Running build command: {' '.join(command)}")
        try:
            completed = subprocess.run(
                command,
                cwd=descriptor.parent,
                check=False,
                capture_output=True,
            )
        except OSError as e:
            raise BuildError(
                f"Failed to run {self.executable}: {e}", descriptor=descriptor
            ) from e

        stdout = self.platform.decode_output(completed.stdout)
        if completed.returncode != 0:
            stderr = self.platform.decode_output(completed.stderr)
            raise BuildError(
                f"Build of {descriptor.name} failed "
                f"with exit code {completed.returncode}",
                descriptor=descriptor,
                returncode=completed.returncode,
                detail=(stderr or stdout).strip(),
            )

        logger.debug(f"Build output:\n{stdout}")
        return BuildResult(descriptor=descriptor, command=command, stdout=stdout)
