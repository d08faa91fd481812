"""
Roman numeral arithmetic by symbol rewriting.

Addition and subtraction are carried out the way they would be on a counting
board, without ever turning a numeral into an integer:

    add:       expand both operands -> merge symbols -> bundle -> contract
    subtract:  expand both operands -> tally and difference -> borrow
               -> bundle -> contract

Every stage takes a numeral string and returns a new one. The rule tables
come from a NumeralSystem, DEFAULT_SYSTEM unless one is passed in.

Example:
    from calculi import add, subtract

    add("XIV", "IX")        # => "XXIII"
    subtract("ID", "XLV")   # => "CDLIV"

    result, trace = add("VII", "VIII", trace=True)
    print(trace.format("phases"))
"""

from typing import Dict, List, Optional, Tuple

from .engine import RewriteTrace, RuleSet
from .errors import InvalidNumeralError, InvalidSymbolError, NumeralTooLargeError, UnderflowError
from .symbols import DEFAULT_SYSTEM, NumeralSystem, Symbol, SYMBOL_CHARS
from .tally import Tally


# ============================================================
# Calculation Traces
# ============================================================

class Phase:
    """One stage of a calculation: its input, output and the rules that fired."""

    def __init__(self, name: str, before: str, after: str,
                 rewrites: Optional[RewriteTrace] = None):
        self.name = name
        self.before = before
        self.after = after
        self.rewrites = rewrites if rewrites is not None else RewriteTrace(before)

    def __repr__(self) -> str:
        return f"{self.name}: {self.before} -> {self.after}"

    def to_dict(self) -> Dict:
        return {
            "phase": self.name,
            "before": self.before,
            "after": self.after,
            "rules": self.rewrites.rules_applied(),
        }


class CalculationTrace:
    """
    The phases an addition or subtraction went through.

    Formats:
        - format("verbose"): every phase with the rules it fired (default)
        - format("phases"): one line per phase
        - to_dict(): JSON-serializable dictionary
    """

    def __init__(self, operation: str, operands: Tuple[str, str]):
        self.operation = operation
        self.operands = operands
        self.phases: List[Phase] = []
        self.result: Optional[str] = None

    def add_phase(self, phase: Phase):
        self.phases.append(phase)

    def phase(self, name: str) -> Optional[Phase]:
        """Get the first phase with the given name."""
        for phase in self.phases:
            if phase.name == name:
                return phase
        return None

    def format(self, style: str = "verbose") -> str:
        if style == "phases":
            return "\n".join(repr(phase) for phase in self.phases)
        return repr(self)

    def __repr__(self) -> str:
        symbol = "+" if self.operation == "add" else "-"
        lines = [f"{self.operands[0]} {symbol} {self.operands[1]}"]
        for i, phase in enumerate(self.phases, 1):
            lines.append(f"  {i}. {phase}")
            if phase.rewrites:
                lines.append(f"     {phase.rewrites.format('rules')}")
        lines.append(f"Result: {self.result}")
        return "\n".join(lines)

    def __len__(self) -> int:
        return len(self.phases)

    def __iter__(self):
        return iter(self.phases)

    def to_dict(self) -> Dict:
        return {
            "operation": self.operation,
            "operands": list(self.operands),
            "phases": [phase.to_dict() for phase in self.phases],
            "result": self.result,
        }


def _rewrite(table: RuleSet, text: str, calc: Optional[CalculationTrace],
             phase: str) -> str:
    """Apply a table, recording a phase when tracing."""
    if calc is None:
        return table(text)
    result, rewrites = table.apply(text, trace=True)
    calc.add_phase(Phase(phase, text, result, rewrites))
    return result


# ============================================================
# Stages
# ============================================================

def validate(numeral: str) -> str:
    """
    Check that a numeral is non-empty and made only of Roman symbols.

    Raises:
        InvalidNumeralError: If the numeral is empty
        InvalidSymbolError: If a character is not I, V, X, L, C, D or M
    """
    if not numeral:
        raise InvalidNumeralError("Empty numeral")
    for position, char in enumerate(numeral):
        if char not in SYMBOL_CHARS:
            raise InvalidSymbolError(char, position)
    return numeral


def to_additive(numeral: str, system: NumeralSystem = DEFAULT_SYSTEM) -> str:
    """
    Rewrite a numeral without subtractive forms.

    The 21 digraph rules run from IV to DM. Lower digraphs go first because
    the expansions of higher ones contain lower digraphs' letters side by
    side (IL expands to XXXXVIIII), which must not be expanded again.

    Examples:
        to_additive("IV")      # => "IIII"
        to_additive("MCMXCIX") # => "MDCCCCLXXXXVIIII"
    """
    return system.expansions(validate(numeral))


def tally(numeral: str) -> Tally:
    """Count each symbol in an additive numeral."""
    return Tally.of(numeral)


def add_additive(augend: str, addend: str, system: NumeralSystem = DEFAULT_SYSTEM) -> str:
    """
    Merge two additive numerals into one, symbols sorted from M down to I.

    The output is pure repetition, ready for bundling.

    Raises:
        NumeralTooLargeError: If the combined length exceeds system.max_length
    """
    length = len(augend) + len(addend)
    if length > system.max_length:
        raise NumeralTooLargeError(length, system.max_length)
    return (tally(augend) + tally(addend)).to_numeral()


def bundle(numeral: str, system: NumeralSystem = DEFAULT_SYSTEM) -> str:
    """
    Carry runs of a symbol into the next larger symbols.

    Rules run from I upwards so a V freshly made from five I can still pair
    with another V in the same pass. Each rule carries into the next symbol
    up, so a numeral sorted by value stays sorted and one pass suffices.

    Examples:
        bundle("VIIIII")     # => "X"
        bundle("XXXXXVIIII") # => "LVIIII"
    """
    return system.bundling(numeral)


def contract(numeral: str, system: NumeralSystem = DEFAULT_SYSTEM) -> str:
    """
    Reintroduce subtractive forms into a bundled additive numeral.

    Runs the expansion table backwards, DM down to IV, leaving out VX, LC
    and DM.

    Examples:
        contract("VIIII")           # => "IX"
        contract("MDCCCCLXXXXVIIII") # => "MCMXCIX"
    """
    return system.contractions(numeral)


def borrow(difference: Tally, system: NumeralSystem = DEFAULT_SYSTEM) -> Tally:
    """
    Settle negative columns by changing larger symbols into smaller ones.

    Columns are settled from M down to I. A short column borrows from the
    smallest larger symbol still on the board; one lender converts to
    exchange_rates[lender][symbol] of the short symbol in a single step
    (an M becomes a thousand I directly). A short column with no lender
    above it passes its debt down to the next smaller symbol, so
    100 - 49 settles as L + X - V - I would on a counting board.

    Returns:
        A new Tally with no negative column

    Raises:
        UnderflowError: If the debt reaches I with nothing left to borrow from
    """
    resolved = difference.copy()
    for symbol in reversed(Symbol):
        while resolved[symbol] < 0:
            lender = next((s for s in Symbol if s > symbol and resolved[s] > 0), None)
            if lender is None:
                if symbol == Symbol.I:
                    raise UnderflowError("Nothing left to borrow: result would be negative")
                lower = Symbol(symbol - 1)
                resolved[lower] += resolved[symbol] * system.exchange_rates[symbol][lower]
                resolved[symbol] = 0
                break
            rate = system.exchange_rates[lender][symbol]
            # Change as many lenders as the deficit needs, at most all of them.
            needed = -(resolved[symbol] // rate)
            taken = min(needed, resolved[lender])
            resolved[lender] -= taken
            resolved[symbol] += taken * rate
    return resolved


def _minimal(numeral: str, system: NumeralSystem, calc: Optional[CalculationTrace]) -> str:
    if calc is None:
        return system.minimal(numeral)
    bundled = _rewrite(system.bundling, numeral, calc, "bundle")
    return _rewrite(system.contractions, bundled, calc, "contract")


# ============================================================
# Public operations
# ============================================================

def add(augend: str, addend: str, system: NumeralSystem = DEFAULT_SYSTEM,
        trace: bool = False):
    """
    Add two Roman numerals.

    Args:
        augend: First numeral (e.g. "XIV")
        addend: Second numeral (e.g. "IX")
        system: Rule tables and limits to use
        trace: If True, return (result, CalculationTrace)

    Returns:
        The sum in minimal form

    Raises:
        InvalidSymbolError: If an operand holds a non-Roman character
        NumeralTooLargeError: If the expanded operands are too long together

    Examples:
        add("IV", "II")      # => "VI"
        add("M", "CMXCIX")   # => "MCMXCIX"
    """
    calc = CalculationTrace("add", (augend, addend)) if trace else None

    summand_i = _rewrite(system.expansions, validate(augend), calc, "normalize augend")
    summand_ii = _rewrite(system.expansions, validate(addend), calc, "normalize addend")

    merged = add_additive(summand_i, summand_ii, system)
    if calc is not None:
        calc.add_phase(Phase("merge", f"{summand_i} + {summand_ii}", merged))

    result = _minimal(merged, system, calc)
    if calc is not None:
        calc.result = result
        return result, calc
    return result


def subtract(minuend: str, subtrahend: str, system: NumeralSystem = DEFAULT_SYSTEM,
             trace: bool = False):
    """
    Subtract one Roman numeral from another.

    Args:
        minuend: Numeral to subtract from
        subtrahend: Numeral to take away
        system: Rule tables and limits to use
        trace: If True, return (result, CalculationTrace)

    Returns:
        The difference in minimal form

    Raises:
        InvalidSymbolError: If an operand holds a non-Roman character
        UnderflowError: If minuend is not larger than subtrahend

    Examples:
        subtract("X", "I")      # => "IX"
        subtract("ID", "XLV")   # => "CDLIV"
    """
    calc = CalculationTrace("subtract", (minuend, subtrahend)) if trace else None

    additive_minuend = _rewrite(system.expansions, validate(minuend), calc,
                                "normalize minuend")
    additive_subtrahend = _rewrite(system.expansions, validate(subtrahend), calc,
                                   "normalize subtrahend")

    difference = tally(additive_minuend) - tally(additive_subtrahend)
    if calc is not None:
        calc.add_phase(Phase("difference",
                             f"{additive_minuend} - {additive_subtrahend}",
                             repr(difference)))

    resolved = borrow(difference, system).to_numeral()
    if calc is not None:
        calc.add_phase(Phase("borrow", repr(difference), resolved))
    if not resolved:
        raise UnderflowError(f"{minuend} - {subtrahend} is zero, which has no numeral")

    result = _minimal(resolved, system, calc)
    if calc is not None:
        calc.result = result
        return result, calc
    return result


def normalize(numeral: str, system: NumeralSystem = DEFAULT_SYSTEM) -> str:
    """
    Rewrite any numeral in minimal form.

    Examples:
        normalize("IIII")  # => "IV"
        normalize("VV")    # => "X"
        normalize("IM")    # => "CMXCIX"
    """
    additive = tally(to_additive(numeral, system)).to_numeral()
    return system.minimal(additive)
