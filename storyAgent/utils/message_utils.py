"""Message formatting utilities.

Turns are langchain messages; the wire format used by callers and the
completion API is a plain ``{"role": ..., "content": ...}`` dict.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Literal

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

Role = Literal["system", "user", "assistant"]

_TYPE_TO_ROLE: Dict[str, Role] = {
    "system": "system",
    "human": "user",
    "ai": "assistant",
}


def _stringify_content(content: Any) -> str:
    """Convert message content to string.

    Handles:
    - None (empty string)
    - List content (multimodal messages)
    - Dict content with "text" field
    - Simple string content
    """
    if content is None:
        return ""
    if isinstance(content, list):
        pieces: list[str] = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                pieces.append(str(item["text"]))
            else:
                pieces.append(str(item))
        return "\n".join(pieces)
    return str(content)


def role_of(message: BaseMessage) -> Role:
    """Return the conversation role of a message.

    Raises:
        ValueError: for message types outside system/user/assistant
    """
    role = _TYPE_TO_ROLE.get(message.type)
    if role is None:
        raise ValueError(f"Unsupported message type in transcript: {message.type}")
    return role


def message_text(message: BaseMessage) -> str:
    return _stringify_content(message.content)


def message_from_dict(data: Dict[str, Any]) -> BaseMessage:
    """Build a message from a ``{role, content}`` dict."""
    role = data.get("role")
    content = _stringify_content(data.get("content"))
    if role == "system":
        return SystemMessage(content=content)
    if role == "user":
        return HumanMessage(content=content)
    if role == "assistant":
        return AIMessage(content=content)
    raise ValueError(f"Unknown role: {role!r}")


def message_to_dict(message: BaseMessage) -> Dict[str, str]:
    return {"role": role_of(message), "content": message_text(message)}


def messages_from_dicts(items: Iterable[Dict[str, Any]]) -> List[BaseMessage]:
    return [message_from_dict(item) for item in items]


def messages_to_dicts(messages: Iterable[BaseMessage]) -> List[Dict[str, str]]:
    return [message_to_dict(m) for m in messages]


__all__ = [
    "Role",
    "role_of",
    "message_text",
    "message_from_dict",
    "message_to_dict",
    "messages_from_dicts",
    "messages_to_dicts",
]
