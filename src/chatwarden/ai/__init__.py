"""
External AI backends used by Chatwarden.

- **generation_client.py**: Ollama HTTP client with lazy model pulls and a
  failure taxonomy (unreachable, timeout, other).
- **ai_lifecycle.py**: Startup and shutdown of the image classifier and the
  generation backend check.
"""
