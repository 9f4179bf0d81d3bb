"""Request, plan and result types of a publish run."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .mirror import MirrorResult


class PublishOutcome(str, Enum):
    """Terminal states of a publish run."""

    SUCCESS = "success"
    """Every entry was published"""

    COMPLETED_WITH_ERRORS = "completed_with_errors"
    """Published, but some entries failed to copy"""

    CANCELLED = "cancelled"
    """The operator declined replacing the existing copy"""


@dataclass
class PublishRequest:
    """What the caller asked to publish."""

    target_dir_override: Optional[Path] = None
    """Destination base overriding the configured mods path"""

    working_dir: Path = field(default_factory=Path.cwd)
    """Project directory to publish"""

    def __post_init__(self) -> None:
        # Accept strings, as given on the command line
        if self.target_dir_override:
            self.target_dir_override = Path(self.target_dir_override).expanduser()
        else:
            self.target_dir_override = None
        self.working_dir = Path(self.working_dir)


@dataclass(frozen=True)
class PublishPlan:
    """Resolved source and destination of a publish run."""

    source_root: Path
    destination_root: Path
    project_name: str


@dataclass
class PublishResult:
    """Outcome of ``PublishEngine.publish``."""

    outcome: PublishOutcome
    plan: PublishPlan
    mirror: Optional[MirrorResult] = None

    @property
    def cancelled(self) -> bool:
        return self.outcome == PublishOutcome.CANCELLED
