"""
Image moderation for Chatwarden.

This package turns an inbound image into a moderation verdict:

- **image_decoder.py**: Decodes raw or base64 payloads into RGB pixel grids
  with Pillow. Unsupported or corrupt images come back as ``Skipped`` so the
  pipeline can fail open.

- **image_classifier.py**: Wraps a pretrained Hugging Face image classifier.
  Loaded once at startup, inference runs in a worker thread.

- **moderation_policy.py**: Thresholds the classifier output against the
  watched labels and produces an ALLOW/REMOVE verdict.

- **moderation_pipeline.py**: Chains the steps together and short-circuits
  view-once media to an unconditional removal.
"""
