"""
Error taxonomy for the video pipeline.

Vendor failures are raised with their raw detail (for the logs) and turned into
one of a handful of user-facing messages by `user_message` before they reach a
job record or an API response.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for every error the pipeline knows how to report."""


class VendorConfigError(PipelineError):
    """A vendor cannot be used at all, usually because its API key is missing."""

    def __init__(self, vendor: str, detail: Optional[str] = None):
        self.vendor = vendor
        super().__init__(detail or f"{vendor} API key not configured")


class VendorError(PipelineError):
    """A vendor answered with an error (or not at all)."""

    def __init__(self, vendor: str, message: str, status_code: Optional[int] = None,
                 body: Optional[str] = None):
        self.vendor = vendor
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class VendorTransientError(VendorError):
    """5xx, 429 or a transport failure. Worth retrying."""


class VendorRequestError(VendorError):
    """A 4xx response other than 429. Retrying will not help."""


class ValidationError(PipelineError):
    """Request rejected before any network call."""


class StorageError(PipelineError):
    pass


class ClipRenderError(PipelineError):
    """The local clip synthesizer could not produce a video."""


class AllClipsFailedError(PipelineError):
    """Every clip in a batch failed to dispatch or to generate."""


class PollTimeoutError(PipelineError):
    """Polling hit its attempt limit before the vendor reached a terminal state."""


class RenderFailedError(PipelineError):
    """The compositing vendor reported a failed render."""


class PipelineCancelled(PipelineError):
    pass


class StaleJobError(PipelineError):
    """Another writer updated the job record since we last read it."""


class WebhookSignatureError(Exception):
    pass


TIMEOUT_MESSAGE = "Video generation timed out. Please try again."
GENERIC_MESSAGE = "An error occurred, please try again"

# Checked in order against the lower-cased error text.
_MESSAGE_PATTERNS = (
    (("timed out", "timeout"), "Request timed out, please try again"),
    (("unauthorized", "401", "invalid api key"), "Authentication failed, please log in"),
    (("rate limit", "429"), "Too many requests right now, please try again in a few minutes"),
    (("storage", "upload"), "Failed to upload images"),
    (("not configured",), "Video service is not configured, please contact support"),
    (("api",), "Service temporarily unavailable"),
)


def classify_vendor_failure(vendor: str, first_error: str) -> str:
    """Summarise the first per-item failure of an all-failed batch."""
    text = first_error.lower()
    if "401" in text or "unauthorized" in text:
        return f"Invalid {vendor} API key. Please check your configuration."
    if "403" in text:
        return f"{vendor} API access forbidden. Please check your account status."
    if "429" in text:
        return f"{vendor} API rate limit exceeded. Please try again later."
    return f"All {vendor} generations failed. First error: {first_error}"


def user_message(error) -> str:
    """Map an exception (or raw error text) to a message safe to show a user."""
    if isinstance(error, ValidationError):
        return str(error)
    if isinstance(error, PollTimeoutError):
        return TIMEOUT_MESSAGE
    if isinstance(error, VendorConfigError):
        return "Video service is not configured, please contact support"
    if isinstance(error, AllClipsFailedError):
        return "All video clips failed to generate, please try again"
    if isinstance(error, RenderFailedError):
        return "Video stitching failed, please try again"
    if isinstance(error, StorageError):
        return "Failed to upload images"

    text = str(error).lower()
    for needles, message in _MESSAGE_PATTERNS:
        if any(needle in text for needle in needles):
            return message
    return GENERIC_MESSAGE
