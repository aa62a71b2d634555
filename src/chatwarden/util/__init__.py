"""
Utility helpers for Chatwarden.

- **logger.py**: Centralized logging with colored console output through
  prompt_toolkit and a per-session log file. Silences chatty third-party
  loggers (transformers, torch, Discord internals).

- **sticker_utils.py**: Re-encodes an image payload into a square WebP sticker
  with pack name and author metadata.
"""
