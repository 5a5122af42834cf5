"""
Exceptions raised by the decoder engine.

Both concrete errors derive from ValueError so that code written against
plain NumPy-style shape checks keeps catching them.

Classes:
    TinyDecoderError: Base class for all package errors
    DimensionMismatchError: Operand shapes are incompatible
    ConfigurationError: A model configuration value makes no sense
"""

from typing import Tuple


class TinyDecoderError(ValueError):
    """Base class for errors raised by tinydecoder."""


class DimensionMismatchError(TinyDecoderError):
    """
    Raised when matrix shapes do not conform to the operation consuming them.

    Attributes:
        operation: Name of the operation that rejected its inputs
        shapes: Shapes of the offending operands, in argument order
    """

    def __init__(self, operation: str, message: str, *shapes: Tuple[int, ...]):
        self.operation = operation
        self.shapes = shapes
        super().__init__(f"{operation}: {message}")


class ConfigurationError(TinyDecoderError):
    """Raised when a DecoderConfig field has a nonsensical value."""
