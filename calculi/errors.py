"""
Exceptions raised by the numeral calculator.

All of them derive from NumeralError, itself a ValueError, so callers can
catch the whole family at once:

    try:
        result = subtract("I", "II")
    except NumeralError as e:
        print(f"Error: {e}")
"""

from typing import Optional


class NumeralError(ValueError):
    """Base class for every calculator error."""


class InvalidNumeralError(NumeralError):
    """An operand is not a usable numeral."""


class InvalidSymbolError(InvalidNumeralError):
    """A character outside I, V, X, L, C, D, M appeared in a numeral."""

    def __init__(self, symbol: str, position: Optional[int] = None):
        self.symbol = symbol
        self.position = position
        if position is None:
            message = f"Invalid Roman numeral symbol: {symbol!r}"
        else:
            message = f"Invalid Roman numeral symbol {symbol!r} at position {position}"
        super().__init__(message)


class NumeralTooLargeError(NumeralError):
    """The combined additive length of two operands exceeds the configured maximum."""

    def __init__(self, length: int, limit: int):
        self.length = length
        self.limit = limit
        super().__init__(
            f"Combined additive length {length} exceeds maximum numeral length {limit}"
        )


class UnderflowError(NumeralError):
    """
    A subtraction would produce zero or a negative quantity.

    Neither has a Roman numeral, so the calculator refuses rather than
    returning an empty string.
    """
