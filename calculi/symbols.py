"""
Symbol table: the static domain model of Roman numerals.

Holds the seven symbols, the 21 subtractive digraphs with their additive
expansions, the bundling (carry) table, and the exchange-rate matrix used
when borrowing. Everything here is built once at import time and shared
read-only through a NumeralSystem.
"""

from enum import IntEnum
from itertools import combinations
from typing import NamedTuple, Tuple

from .engine import RuleSet
from .errors import InvalidSymbolError

# Largest combined additive length the adder accepts. With M as the largest
# symbol this caps representable sums at MAX_NUMERAL_LENGTH * 1000.
MAX_NUMERAL_LENGTH = 5000


class Symbol(IntEnum):
    """The seven Roman symbols, ordered by value."""

    I = 0
    V = 1
    X = 2
    L = 3
    C = 4
    D = 5
    M = 6

    @property
    def char(self) -> str:
        return self.name

    @property
    def worth(self) -> int:
        """Decimal value of the symbol."""
        return _WORTH[self]

    @classmethod
    def from_char(cls, char: str) -> 'Symbol':
        """Look up a symbol by its character."""
        try:
            return _BY_CHAR[char]
        except KeyError:
            raise InvalidSymbolError(char) from None


_WORTH = {
    Symbol.I: 1,
    Symbol.V: 5,
    Symbol.X: 10,
    Symbol.L: 50,
    Symbol.C: 100,
    Symbol.D: 500,
    Symbol.M: 1000,
}
_BY_CHAR = {symbol.char: symbol for symbol in Symbol}

SYMBOL_CHARS = "".join(symbol.char for symbol in Symbol)


# ============================================================
# Digraphs
# ============================================================

def canonical_expansion(low: Symbol, high: Symbol) -> str:
    """
    Write the value of the digraph low+high additively.

    The difference high - low is spelled greedily with the symbols below
    high, so I/X/C appear at most four times and V/L/D at most once.

    Examples:
        canonical_expansion(Symbol.I, Symbol.V)  # => "IIII"
        canonical_expansion(Symbol.I, Symbol.L)  # => "XXXXVIIII"
        canonical_expansion(Symbol.D, Symbol.M)  # => "D"
    """
    remainder = high.worth - low.worth
    parts = []
    for symbol in reversed(Symbol):
        if symbol >= high:
            continue
        count, remainder = divmod(remainder, symbol.worth)
        parts.append(symbol.char * count)
    return "".join(parts)


class Digraph(NamedTuple):
    """A subtractive pair such as IV: low written before high."""

    low: Symbol
    high: Symbol

    @property
    def short(self) -> str:
        return self.low.char + self.high.char

    @property
    def expansion(self) -> str:
        return canonical_expansion(self.low, self.high)

    def __str__(self) -> str:
        return self.short


# IV, IX, IL, IC, ID, IM, VX, VL, ..., CM, DM
DIGRAPHS: Tuple[Digraph, ...] = tuple(
    Digraph(low, high) for low, high in combinations(Symbol, 2)
)

# Short forms the contractor must never reintroduce. Each expands to a single
# symbol, so contracting it would lengthen a bundled numeral.
NON_CONTRACTING_DIGRAPHS = ("VX", "LC", "DM")


def _build_expansions() -> RuleSet:
    expansions = RuleSet(name="normalize")
    for digraph in DIGRAPHS:
        expansions.add_rule(
            digraph.short, digraph.expansion,
            name=digraph.short.lower(),
            description=f"{digraph.short} is {digraph.high.char} less {digraph.low.char}",
        )
    return expansions


# ============================================================
# Bundling
# ============================================================

# Every rule carries into the symbol directly above its run, so the carry
# lands beside that symbol's own run and a sorted numeral stays sorted.
# A ten-for-one rule (ten I make an X) would drop its X behind any V.
BUNDLING_RULES = '''
[ones]
@five-ones "Five I make a V": IIIII => V
@two-fives "Two V make an X": VV => X

[tens]
@five-tens "Five X make an L": XXXXX => L
@two-fifties "Two L make a C": LL => C

[hundreds]
@five-hundreds "Five C make a D": CCCCC => D
@two-five-hundreds "Two D make an M": DD => M
'''


# ============================================================
# Exchange rates
# ============================================================

# EXCHANGE_RATES[high][low]: units of low that one high converts to.
EXCHANGE_RATES: Tuple[Tuple[int, ...], ...] = tuple(
    tuple(high.worth // low.worth if high >= low else 0 for low in Symbol)
    for high in Symbol
)


def exchange_rate(high: Symbol, low: Symbol) -> int:
    """Return how many low one high is worth (0 when high < low)."""
    return EXCHANGE_RATES[high][low]


EXPANSIONS = _build_expansions().freeze()
CONTRACTIONS = EXPANSIONS.inverted(skip=NON_CONTRACTING_DIGRAPHS, name="contract").freeze()
BUNDLING = RuleSet.from_dsl(BUNDLING_RULES, name="bundle").freeze()
MINIMAL = BUNDLING >> CONTRACTIONS


# ============================================================
# Numeral System
# ============================================================

class NumeralSystem:
    """
    Read-only configuration shared by every calculator stage.

    Bundles the rule tables, the exchange-rate matrix, and the length limit.
    The tables are frozen RuleSets; minimal is bundling >> contractions.
    Pass one explicitly to use a different limit; the default is
    DEFAULT_SYSTEM.

    Examples:
        system = NumeralSystem(max_length=100)
        add("C", "C", system=system)
        DEFAULT_SYSTEM.with_max_length(10)
    """

    __slots__ = ('max_length', 'digraphs', 'expansions', 'contractions',
                 'bundling', 'minimal', 'exchange_rates')

    def __init__(self, max_length: int = MAX_NUMERAL_LENGTH):
        if max_length <= 0:
            raise ValueError(f"max_length must be positive, got {max_length}")
        init = object.__setattr__
        init(self, 'max_length', max_length)
        init(self, 'digraphs', DIGRAPHS)
        init(self, 'expansions', EXPANSIONS)
        init(self, 'contractions', CONTRACTIONS)
        init(self, 'bundling', BUNDLING)
        init(self, 'minimal', MINIMAL)
        init(self, 'exchange_rates', EXCHANGE_RATES)

    def __setattr__(self, name, value):
        raise AttributeError(f"NumeralSystem is read-only (cannot set {name!r})")

    def with_max_length(self, max_length: int) -> 'NumeralSystem':
        """Return a system identical to this one but with a new length limit."""
        return NumeralSystem(max_length=max_length)

    def tables(self):
        """Return the rule tables by name."""
        return {
            "normalize": self.expansions,
            "bundle": self.bundling,
            "contract": self.contractions,
        }

    def __repr__(self) -> str:
        return f"NumeralSystem(max_length={self.max_length})"

    def __eq__(self, other):
        if isinstance(other, NumeralSystem):
            return self.max_length == other.max_length
        return False

    def __hash__(self):
        return hash(self.max_length)


DEFAULT_SYSTEM = NumeralSystem()
