"""Exception types raised by the thumbnail pipeline."""


class ThumbnailError(Exception):
    """Base class for every error raised by live_thumbs."""


class ManifestError(ThumbnailError):
    """The manifest is missing a structural element needed to find a segment."""


class NotLiveError(ThumbnailError):
    """The loaded stream is not live content."""


class NotLoadedError(ThumbnailError):
    """An operation needs a loaded stream but none has been loaded."""


class NotFoundError(ThumbnailError):
    """The platform could not resolve the stream id."""


class ValidationError(ThumbnailError):
    """Bad configuration, rejected before any cycle runs."""


class NetworkError(ThumbnailError):
    """A fetch returned a non-success response or could not be made."""


class DecodeError(ThumbnailError):
    """Media could not be decoded into a raster image."""


class EncodeError(ThumbnailError):
    """The composited frame could not be encoded."""


class UnsupportedContentError(ThumbnailError):
    """An overlay carries a content type the compositor cannot draw."""


class TypeMismatchError(ThumbnailError, TypeError):
    """A value has the wrong type, e.g. dynamic overlay text that is not a string."""


class ExpressionError(ThumbnailError):
    """A dynamic text expression is malformed or references something not allowed."""


class UploadFailure(ThumbnailError):
    """Publishing the thumbnail failed. Logged by the pipeline, never raised from a cycle."""


class AuthError(ThumbnailError):
    """Credentials are missing or were rejected."""
