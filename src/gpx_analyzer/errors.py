"""Error types raised while analyzing GPX tracks."""


class GpxAnalysisError(ValueError):
    """Base error for track files that cannot be analyzed."""


class ParseError(GpxAnalysisError):
    """Raised when the input is not a well-formed GPX document."""


class EmptyTrackError(GpxAnalysisError):
    """Raised when the input contains no usable track points."""
