"""
Pretrained NSFW image classifier.

The Hugging Face model is loaded exactly once at process start and reused for
every message. Loading and inference are blocking, so both run in a worker
thread through ``asyncio.to_thread`` to keep the event loop responsive.

Model label names vary between checkpoints ("porn", "drawings", ...). They are
normalized to the fixed vocabulary in :data:`LABEL_VOCABULARY`; labels outside
it are passed through unchanged so the moderation policy can reject a model
whose vocabulary does not match.
"""

from __future__ import annotations

import asyncio
import gc
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from chatwarden.datatypes.image_datatypes import ClassificationResult, PixelGrid
from chatwarden.util.logger import get_logger

logger = get_logger("image_classifier")


LABEL_VOCABULARY = ("Drawing", "Hentai", "Neutral", "Porn", "Sexy")

_LABEL_ALIASES: Dict[str, str] = {
    "drawing": "Drawing",
    "drawings": "Drawing",
    "hentai": "Hentai",
    "neutral": "Neutral",
    "porn": "Porn",
    "sexy": "Sexy",
}


def normalize_label(raw_label: str) -> str:
    """Map a model label onto :data:`LABEL_VOCABULARY`, or return it unchanged."""
    return _LABEL_ALIASES.get(raw_label.strip().lower(), raw_label)


def to_classification_result(raw_scores: Mapping[str, float]) -> ClassificationResult:
    """Build a :class:`ClassificationResult` from raw ``label -> score`` output."""
    probabilities: Dict[str, float] = {}
    for raw_label, score in raw_scores.items():
        label = normalize_label(raw_label)
        # Guard against tiny float overshoot from the activation.
        probabilities[label] = min(1.0, max(0.0, float(score)))
    return ClassificationResult(label_probabilities=probabilities)


@dataclass
class ClassifierState:
    """
    Load state of the classifier.

    Attributes:
        init_started (bool): Indicates if loading has started.
        available (bool): True once the model can classify.
        init_error (str | None): Last load error message, if any.
    """
    init_started: bool = False
    available: bool = False
    init_error: str | None = None


class ImageClassifier:
    """
    Adapter around a Hugging Face image-classification checkpoint.

    Attributes:
        model_id (str): Hub id or local path of the checkpoint.
        device (str): Torch device the model runs on.
        state (ClassifierState): Tracks load status and errors.
    """

    def __init__(self, model_id: str, device: str = "cpu") -> None:
        self.model_id = model_id
        self.device = device
        self.state = ClassifierState()
        self._model: Any | None = None
        self._processor: Any | None = None
        self._init_lock = asyncio.Lock()

    def _set_init_error(self, msg: str) -> None:
        self.state.available = False
        self.state.init_error = msg

    async def load(self) -> bool:
        """
        Load the checkpoint once; later calls return the cached outcome.

        Returns:
            bool: True if the model is ready for inference.
        """
        async with self._init_lock:
            if self.state.available:
                return True

            if self.state.init_started and self.state.init_error:
                return False

            self.state.init_started = True
            logger.info("[CLASSIFIER] Loading image classifier '%s' on %s…", self.model_id, self.device)
            return await asyncio.to_thread(self._load_sync)

    def _load_sync(self) -> bool:
        try:
            import torch  # noqa: F401
            from transformers import AutoImageProcessor, AutoModelForImageClassification
        except ImportError as exc:
            self._set_init_error(f"classifier libraries not available: {exc}")
            logger.error("[CLASSIFIER] torch/transformers imports failed: %s", exc)
            return False

        try:
            processor = AutoImageProcessor.from_pretrained(self.model_id)
            model = AutoModelForImageClassification.from_pretrained(self.model_id)
            model.to(self.device)
            model.eval()
        except Exception as exc:
            self._set_init_error(f"failed to load {self.model_id}: {exc}")
            logger.error("[CLASSIFIER] Model load failed: %s", exc)
            return False

        self._processor = processor
        self._model = model
        self.state.available = True
        self.state.init_error = None
        labels = ", ".join(normalize_label(label) for label in model.config.id2label.values())
        logger.info("[CLASSIFIER] Model '%s' ready (labels: %s)", self.model_id, labels)
        return True

    async def classify(self, pixels: PixelGrid) -> ClassificationResult:
        """
        Score one decoded image.

        The pixel grid is only read; releasing it stays the caller's job.

        Raises:
            RuntimeError: If the model has not been loaded.
        """
        if self._model is None or self._processor is None:
            raise RuntimeError(self.state.init_error or "image classifier not loaded")
        raw_scores = await asyncio.to_thread(self._classify_sync, pixels)
        return to_classification_result(raw_scores)

    def _classify_sync(self, pixels: PixelGrid) -> Dict[str, float]:
        import torch

        inputs = self._processor(images=pixels.image, return_tensors="pt").to(self.device)
        try:
            with torch.inference_mode():
                logits = self._model(**inputs).logits[0]
                if getattr(self._model.config, "problem_type", None) == "multi_label_classification":
                    probs = torch.sigmoid(logits)
                else:
                    probs = torch.softmax(logits, dim=-1)
                scores = probs.cpu().tolist()
        finally:
            del inputs

        id2label = self._model.config.id2label
        return {id2label[idx]: score for idx, score in enumerate(scores)}

    async def unload(self) -> None:
        """Drop the model and free cached device memory."""
        async with self._init_lock:
            self._model = None
            self._processor = None
            self.state.available = False
            self.state.init_started = False
            self.state.init_error = None

        await asyncio.to_thread(self._cleanup_memory)
        logger.info("[CLASSIFIER] Model unloaded")

    def _cleanup_memory(self) -> None:
        try:
            import torch
            if torch.cuda.is_available():
                torch.cuda.empty_cache()
        except ImportError:
            pass

        gc.collect()
