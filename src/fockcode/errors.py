"""
The `fockcode.errors` module includes the exceptions raised while parsing and manipulating Fock states.
"""


class FockStateError(Exception):
    """Base class for all errors raised by `fockcode`."""


class ParseError(FockStateError, ValueError):
    """Raised when a textual Fock state or annotation does not follow the grammar."""


class InvalidOperand(FockStateError, ValueError):
    """Raised when an operation reads the photons of an undefined state."""


class InvalidModeIndex(FockStateError, IndexError):
    """Raised when a mode index lies outside of $[0, m)$."""


class SliceMismatch(FockStateError, ValueError):
    """Raised when a replacement state does not span the number of modes of the targeted range."""


class AnnotationCountError(FockStateError, ValueError):
    """Raised when a mode is given more annotations than it holds photons."""
