"""
Plain data structures shared by the moderation and conversation layers.

- **conversation_datatypes.py**: Turns, per-conversation context, stats and
  replies produced by the conversation manager.
- **image_datatypes.py**: Decoded pixel grids, fail-open decode results,
  classifier output and moderation verdicts.
- **message_datatypes.py**: Transport-neutral inbound message events and media
  payloads.
"""
