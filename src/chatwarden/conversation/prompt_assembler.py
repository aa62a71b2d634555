from chatwarden.datatypes.conversation_datatypes import ConversationContext, Role


class PromptAssembler:
    """Renders a conversation history as ``"<Label>: <content>\\n"`` lines.

    Truncation is not done here; the overflow policy bounds the history.
    """

    def __init__(self, user_label: str = "User", assistant_label: str = "Assistant") -> None:
        if user_label == assistant_label:
            raise ValueError("user and assistant labels must differ")
        self.labels = {Role.USER: user_label, Role.ASSISTANT: assistant_label}

    def render(self, context: ConversationContext) -> str:
        return "".join(f"{self.labels[turn.role]}: {turn.content}\n" for turn in context.history)
