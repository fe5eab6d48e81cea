"""
Failure categories raised by the stitching engine.

Degenerate overlap situations (zero comparison width, a crop that eats the
whole image, images shorter than the confirmation block) are not errors: the
detector reports them as an overlap of 0.
"""


class StitchError(Exception):
    """Base class for every stitching failure."""


class DecodeError(StitchError, ValueError):
    """An input could not be interpreted as a raster image."""


class EmptyInputError(StitchError, ValueError):
    """No images were supplied."""


class AllocationError(StitchError, MemoryError):
    """The output canvas could not be sized or allocated."""


class InvalidOverlapError(StitchError, ValueError):
    """An overlap table does not fit the image sequence it describes."""


class StitchCancelledError(StitchError):
    """The caller cancelled the stitch before it completed."""
