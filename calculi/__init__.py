"""
CALCULI - Counting-board Arithmetic on Latin Characters Using Literal Inscriptions

Roman numeral addition and subtraction carried out purely by rewriting
symbols, the way it was done with pebbles on a counting board. Numerals are
never converted to integers.

Quick Start:
    from calculi import add, subtract

    add("XIV", "IX")        # => "XXIII"
    subtract("ID", "XLV")   # => "CDLIV"

How it works:
    IV + II
      normalize  IIII, II         subtractive forms written out
      merge      IIIIII           symbols gathered, largest first
      bundle     VI               five I make a V, two V make an X, ...
      contract   VI               IIII back to IV, VIIII to IX, ...

Errors:
    InvalidSymbolError     - a character other than I V X L C D M
    NumeralTooLargeError   - operands longer than the configured maximum
    UnderflowError         - a subtraction reaching zero or below

Rule tables (.rules files):
    [ones]
    @five-ones "Five I make a V": IIIII => V
    @two-fives: VV => X
"""

__version__ = "0.1.0"
__author__ = "spinoza"

# Substring rewriting
from .rewriter import (
    replace_all,
    replace_all_rules,
    NumeralType,
    RuleType,
)

# Rule tables and DSL
from .engine import (
    RuleSet,
    SequencedRuleSet,
    RuleMetadata,
    RewriteStep,
    RewriteTrace,
    parse_rule_line,
    load_rules_from_dsl,
    load_rules_from_file,
    load_rules_from_json,
)

# Errors
from .errors import (
    NumeralError,
    InvalidNumeralError,
    InvalidSymbolError,
    NumeralTooLargeError,
    UnderflowError,
)

# Symbol table
from .symbols import (
    Symbol,
    Digraph,
    DIGRAPHS,
    EXCHANGE_RATES,
    MAX_NUMERAL_LENGTH,
    NumeralSystem,
    DEFAULT_SYSTEM,
    canonical_expansion,
)

from .tally import Tally

# Arithmetic
from .arithmetic import (
    add,
    subtract,
    normalize,
    to_additive,
    tally,
    add_additive,
    bundle,
    contract,
    borrow,
    CalculationTrace,
    Phase,
)

# Public API
__all__ = [
    # Version
    "__version__",
    # Operations
    "add",
    "subtract",
    "normalize",
    # Stages
    "to_additive",
    "tally",
    "add_additive",
    "bundle",
    "contract",
    "borrow",
    # Traces
    "CalculationTrace",
    "Phase",
    # Symbol table
    "Symbol",
    "Digraph",
    "DIGRAPHS",
    "EXCHANGE_RATES",
    "MAX_NUMERAL_LENGTH",
    "NumeralSystem",
    "DEFAULT_SYSTEM",
    "canonical_expansion",
    "Tally",
    # Rewriting
    "replace_all",
    "replace_all_rules",
    "NumeralType",
    "RuleType",
    # Rule tables
    "RuleSet",
    "SequencedRuleSet",
    "RuleMetadata",
    "RewriteStep",
    "RewriteTrace",
    "parse_rule_line",
    "load_rules_from_dsl",
    "load_rules_from_file",
    "load_rules_from_json",
    # Errors
    "NumeralError",
    "InvalidNumeralError",
    "InvalidSymbolError",
    "NumeralTooLargeError",
    "UnderflowError",
]
