"""Runtime wiring for storyAgent."""

from .app import SessionLocks, StoryApplication, TurnRequest, TurnResult, UsageReport, build_application

__all__ = [
    "SessionLocks",
    "StoryApplication",
    "TurnRequest",
    "TurnResult",
    "UsageReport",
    "build_application",
]
