"""
errors.py — the failure taxonomy of the analysis pipeline.

Every error carries a public message and an HTTP status. The message is
stable per category and is the only thing a client ever sees; diagnostic
detail belongs in the log and in ``__cause__``.
"""
from __future__ import annotations


class PipelineError(Exception):
    """Base class for every failure the pipeline reports to a client."""

    status: int = 500
    message: str = "AI Analysis failed"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


# ── Client input errors (400) ─────────────────────────────────────────────────

class NoInputProvided(PipelineError):
    status = 400
    message = "No image uploaded"


class InsufficientImages(PipelineError):
    status = 400
    message = "Please upload 2 images to compare."


class TooManyImages(PipelineError):
    status = 400
    message = "Too many images uploaded"


class InvalidPayload(PipelineError):
    status = 400
    message = "Invalid request body"


class PayloadTooLarge(PipelineError):
    status = 413
    message = "Upload too large"


# ── Upstream / contract errors (500) ──────────────────────────────────────────

class BackendInvocationFailed(PipelineError):
    status = 500


class MalformedResponse(PipelineError):
    status = 500
