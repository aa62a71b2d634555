"""
Per-conversation dialogue context for the ``!ai`` command.

- **conversation_store.py**: In-memory history per conversation id with a
  per-id lock so each turn runs as one critical section.
- **overflow_policy.py**: Decides when a history has hit the user-turn limit.
- **prompt_assembler.py**: Renders a history into a linear prompt.
- **conversation_manager.py**: Runs one full turn: overflow check, reset,
  prompt rendering, generation and history update.
"""
