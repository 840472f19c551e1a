# gpxtools/errors

"""
gpxtools.errors

Central exception hierarchy for gpxtools.

Rationale:
  - Modules raise specific, meaningful errors.
  - Callers can catch GpxToolsError (broad) or specific subclasses (narrow).
"""


class GpxToolsError(RuntimeError):
    """Base class for all gpxtools runtime errors."""


# ---- Track / metric errors ---------------------

class TrackError(GpxToolsError):
    """Errors computing metrics over a track."""

class EmptyTrackError(TrackError):
    """A length/time/speed metric was requested on a track with no points."""

class ZeroDurationError(TrackError):
    """Average speed was requested on a track whose elapsed time is zero."""


# ---- GPX format errors -------------------------

class FormatError(GpxToolsError):
    """Errors decoding or encoding GPX content."""

class InvalidGpxError(FormatError):
    """GPX file could not be parsed or did not contain expected data structures."""

class TimestampParseError(FormatError):
    """A single <time> value could not be parsed (recoverable per point)."""


MalformedInputError = InvalidGpxError


# ---- File errors -------------------------------

class GpxIOError(GpxToolsError):
    """A GPX file could not be opened, created or written."""


FileIOError = GpxIOError


# ---- Configuration errors ----------------------

class ConfigError(GpxToolsError):
    """Configuration file or environment override could not be interpreted."""
