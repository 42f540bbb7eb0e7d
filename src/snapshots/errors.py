class SnapshotError(Exception):
    """Base class for snapshot pipeline failures."""


class InvalidArgument(SnapshotError, ValueError):
    """Raised for an unknown source, resolution, pathogen or location."""


class UnsupportedVintage(SnapshotError):
    """Raised when a backend cannot serve the requested as-of date."""


class UpstreamUnavailable(SnapshotError):
    """Raised when a remote fetch cannot be completed."""
