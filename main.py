"""Simple CLI for playing a story turn by turn."""

from __future__ import annotations

import argparse
import asyncio
import uuid
from typing import Dict, List, Optional

from storyAgent.config import get_settings
from storyAgent.context import ContextUsage
from storyAgent.narrative import Character, NarrativeConfig, ParsedOk, Story
from storyAgent.runtime import TurnRequest, TurnResult, build_application
from storyAgent.utils import StoryAgentError, get_logger, log_error

COMMANDS = {
    "/quit, /exit": "End the story",
    "/reset": "Start the story over",
    "/status": "Show context usage",
    "/help": "Show this list",
}


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play an interactive story with an LLM narrator.")
    parser.add_argument("--title", default="Pride and Prejudice")
    parser.add_argument("--author", default="Jane Austen")
    parser.add_argument("--character", default="Eleanor")
    parser.add_argument("--traits", default="curious,witty", help="Comma-separated personality traits")
    parser.add_argument("--creativity", type=int, choices=[1, 2, 3], default=2)
    return parser.parse_args(argv)


def _progress_line(usage: ContextUsage) -> str:
    filled = min(20, int(usage.percentage / 5))
    bar = "#" * filled + "-" * (20 - filled)
    line = f"[{bar}] {usage.percentage:.1f}% of {usage.max_tokens:,} tokens"
    if usage.compression_occurred:
        line += " (story so far was summarized)"
    return line


def _apply_updates(config: NarrativeConfig, result: TurnResult) -> None:
    """Fold the narrator's memory/relationship/world updates into the config."""
    response = result.response
    if not isinstance(response, ParsedOk):
        return

    config.memories.extend(response.memory_updates)

    by_name = {r.character_name: r for r in config.relationships}
    for update in response.relationship_updates:
        by_name[update.character_name] = update
    config.relationships = list(by_name.values())

    world = response.world_state_updates.model_dump(exclude_defaults=True)
    if world:
        config.world_state = config.world_state.model_copy(update=world)


def _print_turn(result: TurnResult) -> None:
    print(f"\nNarrator> {result.narrative}\n")
    for i, action in enumerate(result.response.actions, 1):
        print(f"  {i}. {action.text}")
    print(f"\n{_progress_line(result.context_usage)}")


async def async_main(argv: Optional[List[str]] = None) -> None:
    args = _parse_args(argv)
    observability = get_settings().observability
    logger = get_logger(observability.log_dir, observability.log_level)

    def new_config() -> NarrativeConfig:
        return NarrativeConfig(
            story=Story(title=args.title, author=args.author),
            character=Character(name=args.character, personality_traits=[t.strip() for t in args.traits.split(",") if t.strip()]),
            creativity_level=args.creativity,
        )

    try:
        app = build_application()
    except StoryAgentError as e:
        print(e.user_message)
        return

    session_id = str(uuid.uuid4())
    config = new_config()
    history: List[Dict[str, str]] = []
    last_result: Optional[TurnResult] = None

    print(f"You are {args.character} in {args.title} by {args.author}.")
    print("Type what you do or say. Commands: " + ", ".join(COMMANDS))
    logger.info(f"New story session {session_id}")

    while True:
        try:
            loop = asyncio.get_event_loop()
            player_input = await loop.run_in_executor(None, lambda: input("You> ").strip())
        except (KeyboardInterrupt, EOFError):
            print("\nFarewell!")
            break

        if not player_input:
            continue

        command = player_input.lower()
        if command in {"/quit", "/exit"}:
            print("The story pauses here.")
            logger.info("Session ended by /quit command")
            break
        if command == "/help":
            for name, description in COMMANDS.items():
                print(f"  {name:<14} {description}")
            continue
        if command == "/reset":
            session_id = str(uuid.uuid4())
            config = new_config()
            history = []
            last_result = None
            print("The story begins anew.")
            continue
        if command == "/status":
            if last_result is None:
                print("No turns played yet.")
            else:
                print(_progress_line(last_result.context_usage))
                print(f"  Tokens until compression: {last_result.context_usage.tokens_until_compression:,}")
                print(f"  Cost of last turn: ${last_result.usage.costs['totalCost']:.6f}")
            continue

        # A numbered choice picks one of the suggested actions
        if last_result is not None and player_input.isdigit():
            index = int(player_input) - 1
            actions = last_result.response.actions
            if 0 <= index < len(actions):
                player_input = actions[index].text

        try:
            result = await app.continue_conversation(TurnRequest(
                session_id=session_id,
                config=config,
                history=history,
                player_input=player_input,
            ))
        except StoryAgentError as e:
            log_error(logger, e, context="continue_conversation")
            print(e.user_message)
            continue

        history = result.history
        last_result = result
        _apply_updates(config, result)
        _print_turn(result)


def main() -> None:
    """Synchronous entry point for the CLI."""
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
