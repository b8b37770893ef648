"""Logging utilities for storyAgent."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

LOGGER_NAME = "storyagent"


def setup_logging(level: int = logging.INFO, log_dir: str = "logs") -> logging.Logger:
    """Setup logging configuration for storyAgent.

    Module loggers (``storyAgent.*``) and node loggers (``storyagent.*``)
    both end up in the session log file.

    Args:
        level: Logging level for the file handler (default: INFO)
        log_dir: Directory for the timestamped session log

    Returns:
        Configured logger instance
    """
    logs_dir = Path(log_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"storyagent_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    # File handler (detailed logs)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))

    # Console handler (user-friendly)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    logger = logging.getLogger(LOGGER_NAME)
    for name in (LOGGER_NAME, "storyAgent"):
        target = logging.getLogger(name)
        target.setLevel(logging.DEBUG)  # Capture all child logs
        target.propagate = False
        target.handlers = [file_handler, console_handler]

    logger.info("=" * 80)
    logger.info("storyAgent session started")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 80)

    return logger


def _preview(text: str, limit: int = 100) -> str:
    return f"{text[:limit]}{'...' if len(text) > limit else ''}"


def log_context_analysis(logger: logging.Logger, status: Any) -> None:
    """Log the threshold monitor's view of the next turn.

    Args:
        logger: Logger instance
        status: ContextStatus produced by the threshold monitor
    """
    logger.info(
        "Context analysis: "
        f"current={status.current_tokens:,} pending={status.pending_tokens:,} "
        f"projected={status.projected_tokens:,}/{status.max_tokens:,} "
        f"({status.usage_ratio:.1%}) compression_needed={status.needs_compression}"
    )


def log_compression(logger: logging.Logger, stats: Any) -> None:
    """Log a compression outcome.

    Args:
        logger: Logger instance
        stats: CompressionStats from the compressor
    """
    if stats.error:
        logger.warning(f"Compression skipped: {stats.error}")
        return
    logger.info(
        f"Compression: {stats.original_count} → {stats.compressed_count} messages, "
        f"~{stats.tokens_before:,} → ~{stats.tokens_after:,} tokens "
        f"({stats.compression_ratio}% of middle removed)"
    )


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Log error with context.

    Args:
        logger: Logger instance
        error: Exception instance
        context: Additional context about where the error occurred
    """
    logger.error(f"Error occurred: {type(error).__name__}: {str(error)}")
    if context:
        logger.error(f"  Context: {context}")
    logger.exception("Full traceback:", exc_info=error)


def log_player_input(logger: logging.Logger, content: str) -> None:
    logger.info(f"Player input: {_preview(content)}")


def log_narrator_response(logger: logging.Logger, content: str) -> None:
    logger.info(f"Narrator response: {_preview(content)}")


def log_prompt(logger: logging.Logger, phase: str, prompt: str, max_length: int = 500) -> None:
    """Log system prompt being used (truncated to max_length).

    Args:
        logger: Logger instance
        phase: Phase name (narrate/summarization)
        prompt: System prompt content
        max_length: Characters of the prompt to keep
    """
    logger.debug(f"System prompt for {phase} ({len(prompt)} chars):")
    logger.debug(_preview(prompt, max_length))


def log_routing_decision(logger: logging.Logger, from_node: str, decision: str, reason: str = "") -> None:
    """Log routing decision.

    Args:
        logger: Logger instance
        from_node: Source node making the decision
        decision: Routing destination
        reason: Reason for the routing decision
    """
    logger.info(f"Routing decision from {from_node}: → {decision}")
    if reason:
        logger.info(f"  → Reason: {reason}")


def log_node_entry(logger: logging.Logger, node_name: str, state: Dict[str, Any]) -> None:
    """Log node entry with current state.

    Args:
        logger: Logger instance
        node_name: Name of the node being entered
        state: Current turn state dictionary
    """
    logger.info(f"{'#' * 20} ENTERING NODE: {node_name} {'#' * 20}")
    logger.info(f"  - session_id: {state.get('session_id') or 'N/A'}")
    logger.info(f"  - transcript: {len(state.get('transcript', []))} turns")
    logger.info(f"  - needs_compression: {state.get('needs_compression', False)}")


def log_node_exit(logger: logging.Logger, node_name: str, updates: Dict[str, Any]) -> None:
    """Log node exit with state updates.

    Args:
        logger: Logger instance
        node_name: Name of the node being exited
        updates: State updates returned by the node
    """
    logger.info(f"{'#' * 20} EXITING NODE: {node_name} {'#' * 20}")
    for key, value in updates.items():
        if key in ("transcript", "prompt_messages"):
            logger.info(f"  - {key}: {len(value)} messages")
        elif key == "status" and value is not None:
            logger.info(f"  - status: {value.usage_ratio:.1%} of {value.max_tokens:,}")
        else:
            logger.debug(f"  - {key}: {_safe_json(value)}")


def _safe_json(value: Any) -> str:
    try:
        return json.dumps(value, ensure_ascii=False, default=str)[:300]
    except (TypeError, ValueError):
        return repr(value)[:300]


# Singleton logger instance
_global_logger: Optional[logging.Logger] = None


def get_logger(log_dir: str = "logs", level: str = "INFO") -> logging.Logger:
    """Get or create the global logger instance.

    Args:
        log_dir: Directory for the session log file
        level: Level name for the file handler (e.g. "DEBUG")

    Returns:
        Global logger instance
    """
    global _global_logger
    if _global_logger is None:
        _global_logger = setup_logging(level=getattr(logging, level.upper(), logging.INFO), log_dir=log_dir)
    return _global_logger
