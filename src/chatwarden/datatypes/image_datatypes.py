"""
Image moderation data structures.

Decoding produces an explicit ``Decoded | Skipped`` result instead of raising,
so the fail-open branch for unsupported media is visible at the call site.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple, Union

from PIL import Image


@dataclass(slots=True)
class PixelGrid:
    """Decoded RGB pixels of one image.

    Use as a context manager to release the pixel buffer once the image has
    been classified::

        with decoded.pixels as pixels:
            result = await classifier.classify(pixels)

    Attributes:
        image: Pillow image in RGB mode.
        width: Width in pixels.
        height: Height in pixels.
        channels: Number of color channels (always 3).
    """

    image: Image.Image
    width: int
    height: int
    channels: int = 3

    def close(self) -> None:
        self.image.close()

    def __enter__(self) -> PixelGrid:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


@dataclass(frozen=True, slots=True)
class Decoded:
    """Successful decode."""

    pixels: PixelGrid


@dataclass(frozen=True, slots=True)
class Skipped:
    """Payload that could not be decoded and is left unmoderated."""

    reason: str


DecodeResult = Union[Decoded, Skipped]


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """Per-label probabilities from a multi-label classifier.

    Probabilities are independent confidences in [0, 1] and need not sum to 1.
    """

    label_probabilities: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for label, probability in self.label_probabilities.items():
            if not 0.0 <= probability <= 1.0:
                raise ValueError(f"Probability for {label!r} out of range: {probability}")
        object.__setattr__(self, "label_probabilities", MappingProxyType(dict(self.label_probabilities)))

    @property
    def labels(self) -> Tuple[str, ...]:
        return tuple(self.label_probabilities)

    def probability(self, label: str) -> float:
        """Return the probability for ``label``; raises KeyError if absent."""
        return self.label_probabilities[label]

    def format_summary(self) -> str:
        return ", ".join(f"{label}={prob * 100:.1f}%" for label, prob in self.label_probabilities.items())


class ModerationAction(Enum):
    """Final decision for one piece of media."""

    ALLOW = "allow"
    REMOVE = "remove"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class ModerationVerdict:
    """Moderation decision with the labels that caused it.

    Attributes:
        action: ALLOW or REMOVE.
        reasons: Labels that crossed the threshold (or ``"view-once"``).
    """

    action: ModerationAction
    reasons: Tuple[str, ...] = ()

    @property
    def reason(self) -> str:
        return ", ".join(self.reasons)

    @property
    def should_remove(self) -> bool:
        return self.action is ModerationAction.REMOVE


@dataclass(frozen=True, slots=True)
class ModerationOutcome:
    """What the pipeline concluded for one inbound message.

    Exactly one of ``verdict`` and ``skipped_reason`` is set.
    """

    verdict: ModerationVerdict | None = None
    skipped_reason: str | None = None

    @property
    def should_remove(self) -> bool:
        return self.verdict is not None and self.verdict.should_remove
