"""Exception types raised by inlayCAD.

Malformed drawings never raise; they produce empty or partial results
and a log line.  These exceptions are reserved for callers that break
an API contract, or that explicitly ask for strict behavior.
"""


class InlayError(Exception):
    """Base class for inlayCAD errors."""


class UnsupportedFormatError(InlayError, ValueError):
    """Unknown shape format, or content of the wrong type for a format."""


class UnstitchableError(InlayError, ValueError):
    """A loop could not be closed within tolerance while stitching strictly."""

    def __init__(self, loop_index: int, gap: float):
        super().__init__(
            f'loop {loop_index} does not close: endpoint gap {gap:.4f} mm')
        self.loop_index = loop_index
        self.gap = gap


__all__ = ['InlayError', 'UnsupportedFormatError', 'UnstitchableError']
