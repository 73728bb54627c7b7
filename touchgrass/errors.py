"""
Exceptions raised by the touch grass game.
"""


class TouchGrassError(RuntimeError):
    """Base class for recoverable game failures."""


class DetectorError(TouchGrassError):
    """Hand detector could not be created or failed during estimation."""


class ClassifierError(TouchGrassError):
    """Grass classifier call failed or returned nothing usable."""
