"""
Exception types raised by the Chatwarden core.

Every error the core raises derives from :class:`ChatwardenError` so callers at
the transport boundary can catch the whole family in one place.
"""


class ChatwardenError(Exception):
    """Base class for all Chatwarden errors."""


class DecodeError(ChatwardenError):
    """The payload is not a valid image in a supported encoding."""


class PolicyConfigError(ChatwardenError):
    """The classifier vocabulary does not contain the labels the policy watches."""


class GenerationBackendError(ChatwardenError):
    """Base class for failures of the text generation backend."""


class BackendUnavailable(GenerationBackendError):
    """The backend refused or could not accept the connection."""


class BackendTimeout(GenerationBackendError):
    """The backend did not answer within the configured timeout."""


class BackendOther(GenerationBackendError):
    """Any other backend failure (HTTP error, malformed body, ...)."""


class InvariantViolation(ChatwardenError):
    """Internal state contradicts an invariant the code relies on."""
