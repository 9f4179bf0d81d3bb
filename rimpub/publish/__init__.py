"""Publish pipeline: ignore rules, directory mirror, build and engine."""

from .build import BuildResult, BuildTrigger, find_solution
from .engine import PublishEngine, deletion_prompt
from .ignore import (
    DEFAULT_DENYLIST,
    GITIGNORE_FILE_NAME,
    PUBLISH_IGNORE_FILE_NAME,
    IgnoreMatcher,
    IgnoreRule,
    load_ignore_file,
)
from .mirror import DirectoryMirror, MirrorError, MirrorResult
from .plan import PublishOutcome, PublishPlan, PublishRequest, PublishResult

__all__ = [
    "PublishEngine",
    "PublishRequest",
    "PublishPlan",
    "PublishResult",
    "PublishOutcome",
    "BuildTrigger",
    "BuildResult",
    "find_solution",
    "DirectoryMirror",
    "MirrorResult",
    "MirrorError",
    "IgnoreMatcher",
    "IgnoreRule",
    "DEFAULT_DENYLIST",
    "GITIGNORE_FILE_NAME",
    "PUBLISH_IGNORE_FILE_NAME",
    "load_ignore_file",
    "deletion_prompt",
]
