"""Publish engine: build, prepare the destination, mirror the project."""

import logging
import shutil
from pathlib import Path
from typing import Callable, Optional

from ..config import GlobalConfig
from ..exceptions import ConfigError, FilesystemError
from ..output import OutputFormatter
from ..project import load_project_config
from .build import BuildTrigger
from .ignore import IgnoreMatcher
from .mirror import DirectoryMirror, EntryFilter
from .plan import PublishOutcome, PublishPlan, PublishRequest, PublishResult

logger = logging.getLogger(__name__)

ConfirmCallback = Callable[[str], bool]
MatcherFactory = Callable[[Path], EntryFilter]


def deletion_prompt(target: Path) -> str:
    """Question asked before an existing published copy is deleted."""
    return (
        f"Target directory '{target}' already exists. "
        "Do you want to delete it and continue?"
    )


class PublishEngine:
    """Publishes a project directory into the mods directory.

    The steps run strictly in order and each depends on the previous one:
    resolve config, build, compute the destination, clear it (after
    confirmation), recreate it, mirror the project.
    """

    def __init__(
        self,
        config: GlobalConfig,
        confirm: Optional[ConfirmCallback] = None,
        output: Optional[OutputFormatter] = None,
        build_trigger: Optional[BuildTrigger] = None,
        mirror: Optional[DirectoryMirror] = None,
        matcher_factory: MatcherFactory = IgnoreMatcher,
    ):
        """Initialize publish engine.

        Args:
            config: Global configuration store
            confirm: Asks the operator a yes/no question; None declines
            output: Output formatter for status messages
            build_trigger: Runs the pre-publish build
            mirror: Copies the project tree
            matcher_factory: Builds the ignore matcher for a source root
        """
        self.config = config
        self.confirm = confirm
        self.output = output or OutputFormatter(quiet=True)
        self.build_trigger = build_trigger or BuildTrigger()
        self.mirror = mirror or DirectoryMirror()
        self.matcher_factory = matcher_factory

    def publish(self, request: PublishRequest) -> PublishResult:
        """Publish the project described by ``request``.

        Args:
            request: Working directory and optional target override

        Returns:
            PublishResult with the outcome and mirror statistics

        Raises:
            ConfigError: If the project name or destination cannot be resolved
            BuildError: If the pre-publish build fails
            FilesystemError: If the destination cannot be prepared
        """
        settings = self.config.snapshot()
        working_dir = request.working_dir.absolute()
        self.output.info(f"Working directory: {working_dir}")

        project = load_project_config(working_dir)
        self.output.info(f"Working project: {project.name}")
        logger.debug("Publish state: config resolved")

        build = self.build_trigger.maybe_build(working_dir)
        if build is not None:
            self.output.info(f"Built {build.descriptor.name}")
        logger.debug("Publish state: built")

        target_base = request.target_dir_override or settings.mods_path
        if target_base is None:
            raise ConfigError("Cannot determine target directory from config or args")
        plan = PublishPlan(
            source_root=working_dir,
            destination_root=Path(target_base) / project.name,
            project_name=project.name,
        )
        self.output.info(f"Target directory: {plan.destination_root}")
        self._check_overlap(plan)

        if plan.destination_root.exists() or plan.destination_root.is_symlink():
            if not settings.skip_confirmation and not self._confirm_deletion(
                plan.destination_root
            ):
                self.output.info("Operation cancelled by user")
                return PublishResult(outcome=PublishOutcome.CANCELLED, plan=plan)
            self._clear_destination(plan.destination_root)

        try:
            plan.destination_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(
                f"Failed to create target directory {plan.destination_root}: {e}",
                path=plan.destination_root,
            ) from e
        logger.debug("Publish state: destination prepared")

        matcher = self.matcher_factory(working_dir)
        mirror_result = self.mirror.mirror(
            working_dir, plan.destination_root, matcher
        )
        logger.debug("Publish state: mirrored")

        if mirror_result.ok:
            outcome = PublishOutcome.SUCCESS
        else:
            outcome = PublishOutcome.COMPLETED_WITH_ERRORS
        return PublishResult(outcome=outcome, plan=plan, mirror=mirror_result)

    @staticmethod
    def _check_overlap(plan: PublishPlan) -> None:
        """Refuse a destination that is the project or one of its parents.

        Clearing such a destination would delete the project being published.

        Raises:
            FilesystemError: If the source lies inside the destination
        """
        source = plan.source_root.resolve()
        destination = plan.destination_root.resolve()
        if source == destination or destination in source.parents:
            raise FilesystemError(
                f"Target directory {plan.destination_root} contains the "
                f"project directory {plan.source_root}",
                path=plan.destination_root,
            )

    def _confirm_deletion(self, target: Path) -> bool:
        if self.confirm is None:
            logger.debug("No confirmation callback, declining deletion")
            return False
        return self.confirm(deletion_prompt(target))

    def _clear_destination(self, target: Path) -> None:
        self.output.info(f"Clearing existing target directory: {target}")
        try:
            if target.is_dir() and not target.is_symlink():
                shutil.rmtree(target)
            else:
                target.unlink()
        except OSError as e:
            raise FilesystemError(
                f"Failed to remove existing target directory {target}: {e}",
                path=target,
            ) from e
