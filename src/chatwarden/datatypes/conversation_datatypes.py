"""
Conversation data structures.

A conversation is an ordered list of turns keyed by a conversation id. The
number of user turns is tracked separately from the history length because the
overflow limit counts only what the human side sent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class Role(Enum):
    """Author of a turn."""

    USER = "user"
    ASSISTANT = "assistant"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class Turn:
    """One message contributed by either side of the conversation."""

    role: Role
    content: str


@dataclass(slots=True)
class ConversationContext:
    """History and counters of a single conversation.

    Attributes:
        conversation_id: Stable key of the conversation.
        history: Turns in insertion order; replayed verbatim into the prompt.
        user_turn_count: Number of USER turns appended since the last reset.
    """

    conversation_id: str
    history: List[Turn] = field(default_factory=list)
    user_turn_count: int = 0

    def is_empty(self) -> bool:
        return not self.history


@dataclass(frozen=True, slots=True)
class ConversationStats:
    """Usage report for one conversation.

    Attributes:
        message_count: User turns since the last reset.
        messages_remaining: User turns left before the context is cleared.
        total_messages: Turns of both roles in the history.
    """

    message_count: int
    messages_remaining: int
    total_messages: int


@dataclass(frozen=True, slots=True)
class ConversationReply:
    """Outcome of one ``!ai`` turn.

    Attributes:
        text: Text to send back to the user (generated or an error message).
        context_cleared: True when the history was reset before this turn.
        failed: True when generation failed and ``text`` is an error message.
    """

    text: str
    context_cleared: bool = False
    failed: bool = False
