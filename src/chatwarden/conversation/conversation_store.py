"""In-memory conversation store.

Contexts live for the lifetime of the process: created on first use, reset in
place when they overflow, never evicted. Every conversation id has its own
``asyncio.Lock``; callers wrap a whole turn (check, append, generate, append)
in :meth:`ConversationStore.turn` so operations on one id are linearized while
different ids never contend.

Mutating methods are synchronous and therefore atomic on the event loop. Code
that awaits between two accesses must look the context up again by id instead
of keeping a reference, since a reset swaps in a new object.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List

from chatwarden.datatypes.conversation_datatypes import (
    ConversationContext,
    ConversationStats,
    Role,
    Turn,
)
from chatwarden.util.logger import get_logger

logger = get_logger("conversation_store")


class ConversationStore:
    """Mapping from conversation id to :class:`ConversationContext`."""

    def __init__(self) -> None:
        self._contexts: Dict[str, ConversationContext] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @asynccontextmanager
    async def turn(self, conversation_id: str) -> AsyncIterator[None]:
        """Hold the lock of ``conversation_id`` for one full turn."""
        async with self._locks[conversation_id]:
            yield

    def conversation_ids(self) -> List[str]:
        return list(self._contexts)

    def get(self, conversation_id: str) -> ConversationContext:
        """Return the live context for ``conversation_id``, creating it on miss."""
        context = self._contexts.get(conversation_id)
        if context is None:
            context = ConversationContext(conversation_id=conversation_id)
            self._contexts[conversation_id] = context
            logger.debug("[CONVERSATION] Created context for %s", conversation_id)
        return context

    def append_user_turn(self, conversation_id: str, content: str) -> ConversationContext:
        context = self.get(conversation_id)
        context.history.append(Turn(Role.USER, content))
        context.user_turn_count += 1
        return context

    def append_assistant_turn(self, conversation_id: str, content: str) -> ConversationContext:
        context = self.get(conversation_id)
        context.history.append(Turn(Role.ASSISTANT, content))
        return context

    def reset(self, conversation_id: str) -> ConversationContext:
        """Replace the context with an empty one under the same id."""
        context = ConversationContext(conversation_id=conversation_id)
        self._contexts[conversation_id] = context
        logger.info("[CONVERSATION] Context cleared for %s", conversation_id)
        return context

    def stats(self, conversation_id: str, limit: int) -> ConversationStats:
        """Usage report; does not create a context for unknown ids."""
        context = self._contexts.get(conversation_id)
        if context is None:
            return ConversationStats(message_count=0, messages_remaining=limit, total_messages=0)
        return ConversationStats(
            message_count=context.user_turn_count,
            messages_remaining=limit - context.user_turn_count,
            total_messages=len(context.history),
        )
