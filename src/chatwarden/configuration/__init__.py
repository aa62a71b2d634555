"""
Configuration management for Chatwarden.

- **app_configuration.py**: YAML loader for ``config/app_config.yml`` with a
  shared file lock. Falls back to an empty mapping on missing or malformed
  files so every section helper returns its defaults.

- **settings.py**: Typed accessors for the ``moderation``, ``conversation``,
  ``generation``, ``sticker`` and ``commands`` sections.
"""
