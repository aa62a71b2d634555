"""
Chatwarden - Chat Moderation and Assistant Bot

Chatwarden watches a chat session, removes explicit images and answers
``!ai`` prompts through a local Ollama backend while keeping a bounded
per-conversation history.

Core Components:

- **Image Moderation**: Decodes inbound images with Pillow, scores them with a
  pretrained NSFW classifier and removes anything above the configured
  threshold. View-once media is always removed.
- **Conversation Context**: Keeps an in-memory history per conversation, resets
  it once the user-turn limit is reached and renders it into a plain prompt.
- **Generation Client**: Talks to the Ollama HTTP API, pulling the model on
  first use and mapping transport failures to user-readable replies.

Usage:
    from chatwarden.main import main
    main()
"""
