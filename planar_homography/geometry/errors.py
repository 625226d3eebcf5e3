"""
Exceptions raised by homography estimation and projection.

All failures derive from :class:`HomographyError`, itself a ``ValueError``,
so callers can catch a single type when they only care whether a result
exists.
"""


class HomographyError(ValueError):
    """Base class for homography estimation failures."""


class InsufficientCorrespondences(HomographyError):
    """Fewer than four point pairs were supplied."""


class DegenerateGeometry(HomographyError):
    """The correspondences do not determine a unique, invertible homography."""
