"""
Prompt assembler

Builds the final ordered message list for one narrative call:
[system instruction] + transcript + [new player turn]
"""

from __future__ import annotations

from typing import List, Sequence

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage


def assemble_messages(
    system_instruction: str,
    transcript: Sequence[BaseMessage],
    user_input: str,
) -> List[BaseMessage]:
    """
    Assemble the prompt for the completion service

    Transcript turns pass through untouched, including an anchor turn and any
    compressed-context summary. The transcript itself is not modified.
    """
    return [
        SystemMessage(content=system_instruction),
        *transcript,
        HumanMessage(content=user_input),
    ]
