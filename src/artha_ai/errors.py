class ArthaError(Exception):
    """Base error for the market data query service."""


class EmptyUpstreamResponse(ArthaError):
    """The model returned no text at all."""


class UnparseablePayload(ArthaError):
    """No JSON object could be recovered from the model's text."""

    def __init__(self, message: str, raw_text: str = "") -> None:
        super().__init__(message)
        self.raw_text = raw_text


class UpstreamFailure(ArthaError):
    """The model endpoint rejected or failed the request.

    Args:
        message: Error description
        status: HTTP-like status code reported by the SDK, if any
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class UpstreamTransientFailure(UpstreamFailure):
    """Rate limited (429) or server-side (5xx) failure; worth retrying."""


class UpstreamPermanentFailure(UpstreamFailure):
    """Any other upstream failure."""
