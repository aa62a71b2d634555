from chatwarden.datatypes.conversation_datatypes import ConversationContext

DEFAULT_TURN_LIMIT = 60


class OverflowPolicy:
    """Decides when a conversation has used up its user-turn budget.

    Checked before the next user turn is appended, so a limit of 60 allows
    exactly 60 user turns before the history is cleared.
    """

    def __init__(self, limit: int = DEFAULT_TURN_LIMIT) -> None:
        if limit <= 0:
            raise ValueError(f"turn limit must be positive, got {limit}")
        self.limit = limit

    def is_overflowing(self, context: ConversationContext) -> bool:
        return context.user_turn_count >= self.limit
