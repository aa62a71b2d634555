"""Threshold policy turning classifier output into a moderation verdict."""

from __future__ import annotations

from typing import Iterable, Tuple

from chatwarden.datatypes.image_datatypes import (
    ClassificationResult,
    ModerationAction,
    ModerationVerdict,
)
from chatwarden.errors import PolicyConfigError

DEFAULT_THRESHOLD = 0.60
DEFAULT_WATCHED_LABELS: Tuple[str, ...] = ("Porn", "Hentai")
VIEW_ONCE_REASON = "view-once"


class ModerationPolicy:
    """Remove an image when any watched label is strictly above the threshold.

    Args:
        threshold: Probability a watched label must exceed to trigger removal.
        watched_labels: Labels that gate removal.
    """

    def __init__(
        self,
        threshold: float = DEFAULT_THRESHOLD,
        watched_labels: Iterable[str] = DEFAULT_WATCHED_LABELS,
    ) -> None:
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be within [0, 1], got {threshold}")
        self.threshold = threshold
        self.watched_labels = tuple(watched_labels)
        if not self.watched_labels:
            raise ValueError("at least one watched label is required")

    def decide(self, result: ClassificationResult) -> ModerationVerdict:
        """Return the verdict for ``result``.

        Raises:
            PolicyConfigError: If the result lacks any watched label, which
                means the classifier vocabulary does not match this policy.
        """
        missing = [label for label in self.watched_labels if label not in result.label_probabilities]
        if missing:
            raise PolicyConfigError(
                f"classifier vocabulary {list(result.labels)} is missing watched labels {missing}"
            )

        exceeded = tuple(
            label for label in self.watched_labels if result.probability(label) > self.threshold
        )
        if exceeded:
            return ModerationVerdict(ModerationAction.REMOVE, exceeded)
        return ModerationVerdict(ModerationAction.ALLOW)

    @staticmethod
    def view_once_verdict() -> ModerationVerdict:
        """Verdict for view-once media, removed for how it is sent rather than what it shows."""
        return ModerationVerdict(ModerationAction.REMOVE, (VIEW_ONCE_REASON,))
