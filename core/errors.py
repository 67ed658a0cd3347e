"""Exceptions raised by the generation loop."""


class ArtifactsError(Exception):
    """Base class for all errors raised by this package."""


class GenerationError(ArtifactsError):
    """The generation endpoint failed: bad status, network error or aborted stream."""


class StreamProtocolError(ArtifactsError):
    """The stream broke the fragment / cleaned-code ordering contract."""


class PreviewUnavailable(ArtifactsError):
    """The preview document could not be read."""
