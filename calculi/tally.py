"""
Symbol tallies: how many of each Roman symbol a numeral holds.

A Tally is what a Roman would lay out on a counting board, one column per
symbol. Adding numerals merges columns; subtracting them may leave a column
negative until borrowing settles it.
"""

from typing import Dict, Iterable, List, Tuple, Union

from .errors import InvalidSymbolError, UnderflowError
from .symbols import Symbol

SymbolKey = Union[Symbol, str]


def _symbol(key: SymbolKey) -> Symbol:
    if isinstance(key, Symbol):
        return key
    return Symbol.from_char(key)


class Tally:
    """
    Dict-like count of each symbol, indexed by Symbol or by character.

    Examples:
        tally = Tally.of("XVII")
        tally[Symbol.I]    # => 2
        tally["X"]         # => 1
        tally.total()      # => 4
        tally.to_numeral() # => "XVII"
        dict(tally.items())[Symbol.V]  # => 1
    """

    __slots__ = ('_counts',)

    def __init__(self, counts: Iterable[int] = ()):
        """Initialize from counts listed from I up to M (missing counts are 0)."""
        counts = list(counts)
        if len(counts) > len(Symbol):
            raise ValueError(f"Tally takes at most {len(Symbol)} counts, got {len(counts)}")
        self._counts: List[int] = counts + [0] * (len(Symbol) - len(counts))

    @classmethod
    def of(cls, numeral: str) -> 'Tally':
        """
        Count the symbols of an additive numeral in one pass.

        Raises:
            InvalidSymbolError: If a character is not a Roman symbol
        """
        counts = [0] * len(Symbol)
        for position, char in enumerate(numeral):
            try:
                counts[Symbol.from_char(char)] += 1
            except InvalidSymbolError:
                raise InvalidSymbolError(char, position) from None
        return cls(counts)

    def __getitem__(self, key: SymbolKey) -> int:
        return self._counts[_symbol(key)]

    def __setitem__(self, key: SymbolKey, value: int) -> None:
        self._counts[_symbol(key)] = value

    def get(self, key: SymbolKey, default=0) -> int:
        """Get a count, returning default for an unknown character."""
        try:
            return self[key]
        except InvalidSymbolError:
            return default

    def __iter__(self):
        """Iterate over symbols from I up to M."""
        return iter(Symbol)

    def __len__(self) -> int:
        return len(Symbol)

    def keys(self):
        """Return the symbols from I up to M."""
        return list(Symbol)

    def values(self) -> List[int]:
        """Return the counts from I up to M."""
        return self._counts.copy()

    def items(self) -> List[Tuple[Symbol, int]]:
        """Return (symbol, count) pairs from I up to M."""
        return list(zip(Symbol, self._counts))

    def __add__(self, other: 'Tally') -> 'Tally':
        if not isinstance(other, Tally):
            return NotImplemented
        return Tally(a + b for a, b in zip(self._counts, other._counts))

    def __sub__(self, other: 'Tally') -> 'Tally':
        if not isinstance(other, Tally):
            return NotImplemented
        return Tally(a - b for a, b in zip(self._counts, other._counts))

    def __eq__(self, other):
        if isinstance(other, Tally):
            return self._counts == other._counts
        return False

    def __repr__(self) -> str:
        body = ", ".join(f"{symbol.char}={count}" for symbol, count in self.items() if count)
        return f"Tally({body})"

    def copy(self) -> 'Tally':
        return Tally(self._counts)

    def total(self) -> int:
        """Number of symbols on the board (the additive numeral's length)."""
        return sum(self._counts)

    def is_negative(self) -> bool:
        """True if any column is below zero."""
        return any(count < 0 for count in self._counts)

    def negative_symbols(self) -> List[Symbol]:
        """Symbols whose column is below zero."""
        return [symbol for symbol, count in self.items() if count < 0]

    def to_numeral(self) -> str:
        """
        Write the tally out additively, from M down to I.

        Raises:
            UnderflowError: If any column is negative
        """
        if self.is_negative():
            owed = ", ".join(s.char for s in self.negative_symbols())
            raise UnderflowError(f"Tally still owes symbols: {owed}")
        return "".join(symbol.char * self._counts[symbol] for symbol in reversed(Symbol))

    def to_dict(self) -> Dict[str, int]:
        """Convert to a plain dictionary keyed by character."""
        return {symbol.char: count for symbol, count in self.items()}
