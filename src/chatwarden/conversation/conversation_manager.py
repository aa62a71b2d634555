"""
Conversation turn orchestration.

One call to :meth:`ConversationManager.handle_user_message` runs a complete
turn inside the conversation's lock:

1. If the history already holds ``limit`` user turns, it is cleared and the
   same input is processed against the empty context. The check runs before
   any generation request, so no call is spent on the turn that triggers the
   reset.
2. The user turn is appended and the whole history is rendered into a prompt.
3. The generation backend is called. On success the assistant turn is
   appended; on failure the user turn stays without an answer and the reply
   carries the matching error message.
"""

from __future__ import annotations

from typing import Dict, Protocol

from chatwarden.conversation.conversation_store import ConversationStore
from chatwarden.conversation.overflow_policy import OverflowPolicy
from chatwarden.conversation.prompt_assembler import PromptAssembler
from chatwarden.datatypes.conversation_datatypes import ConversationReply, ConversationStats
from chatwarden.errors import (
    BackendOther,
    BackendTimeout,
    BackendUnavailable,
    InvariantViolation,
)
from chatwarden.util.logger import get_logger

logger = get_logger("conversation_manager")


DEFAULT_ERROR_MESSAGES: Dict[str, str] = {
    "unavailable": "Error: cannot reach the AI service. Please try again later.",
    "timeout": "Error: the AI service took too long to answer. Please try again later.",
    "other": "Error: something went wrong while processing your message. Please try again.",
}


class GenerationClient(Protocol):
    async def generate(self, prompt: str, model_id: str) -> str: ...


class ConversationManager:
    """Keeps per-conversation history and forwards it to the generation backend.

    Args:
        store: Conversation store shared by every call site.
        overflow_policy: User-turn limit before the history is cleared.
        assembler: Renders the history into the prompt.
        client: Text generation backend.
        model_id: Model requested from the backend.
        error_messages: User-facing texts keyed by ``unavailable``, ``timeout``
            and ``other``.
    """

    def __init__(
        self,
        store: ConversationStore,
        overflow_policy: OverflowPolicy,
        assembler: PromptAssembler,
        client: GenerationClient,
        model_id: str,
        error_messages: Dict[str, str] | None = None,
    ) -> None:
        self.store = store
        self.overflow_policy = overflow_policy
        self.assembler = assembler
        self.client = client
        self.model_id = model_id
        self.error_messages = {**DEFAULT_ERROR_MESSAGES, **(error_messages or {})}

    def _clear_if_overflowing(self, conversation_id: str) -> bool:
        """Reset an overflowing context. Returns True if a reset happened."""
        if not self.overflow_policy.is_overflowing(self.store.get(conversation_id)):
            return False

        logger.info(
            "[CONVERSATION] %s reached %d user turns; clearing context",
            conversation_id,
            self.overflow_policy.limit,
        )
        self.store.reset(conversation_id)

        try:
            self._verify_reset(conversation_id)
        except InvariantViolation as exc:
            logger.critical("[CONVERSATION] %s; forcing another reset", exc, exc_info=True)
            self.store.reset(conversation_id)
        return True

    def _verify_reset(self, conversation_id: str) -> None:
        context = self.store.get(conversation_id)
        if self.overflow_policy.is_overflowing(context) or not context.is_empty():
            raise InvariantViolation(f"context {conversation_id} not empty after reset")

    async def handle_user_message(self, conversation_id: str, text: str) -> ConversationReply:
        """Run one user turn and return the text to send back."""
        async with self.store.turn(conversation_id):
            context_cleared = self._clear_if_overflowing(conversation_id)

            context = self.store.append_user_turn(conversation_id, text)
            prompt = self.assembler.render(context)
            logger.debug(
                "[CONVERSATION] %s: %d turns in prompt",
                conversation_id,
                len(context.history),
            )

            try:
                answer = await self.client.generate(prompt, self.model_id)
            except BackendUnavailable as exc:
                logger.error("[CONVERSATION] Backend unreachable for %s: %s", conversation_id, exc)
                return ConversationReply(self.error_messages["unavailable"], context_cleared, failed=True)
            except BackendTimeout as exc:
                logger.error("[CONVERSATION] Backend timed out for %s: %s", conversation_id, exc)
                return ConversationReply(self.error_messages["timeout"], context_cleared, failed=True)
            except BackendOther as exc:
                logger.error("[CONVERSATION] Generation failed for %s: %s", conversation_id, exc)
                return ConversationReply(self.error_messages["other"], context_cleared, failed=True)

            # Looked up by id again: the context object may have been replaced while awaiting.
            self.store.append_assistant_turn(conversation_id, answer)
            return ConversationReply(answer, context_cleared)

    async def reset(self, conversation_id: str) -> None:
        async with self.store.turn(conversation_id):
            self.store.reset(conversation_id)

    def stats(self, conversation_id: str) -> ConversationStats:
        return self.store.stats(conversation_id, self.overflow_policy.limit)
