"""Top-level package exports for storyAgent."""

from .runtime.app import StoryApplication, TurnRequest, TurnResult, build_application

__all__ = ["StoryApplication", "TurnRequest", "TurnResult", "build_application"]
