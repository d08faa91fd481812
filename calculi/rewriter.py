"""
Core substring rewriter for numeral transformation.

CALCULI - Counting-board Arithmetic on Latin Characters Using Literal Inscriptions

Every stage of the calculator is a sequence of find/replace-all passes over a
numeral string. This module provides those two primitives; rule tables and
tracing live in the engine module.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

# Type aliases
NumeralType = str
RuleType = Tuple[str, str]  # (pattern, replacement)
RuleTableType = Sequence[RuleType]


# ============================================================
# Single-rule rewriting
# ============================================================

def replace_all(text: str, pattern: str, replacement: str) -> str:
    """
    Replace every non-overlapping occurrence of pattern in text.

    Matches are found left to right against the original text. Scanning
    resumes right after each matched span, so characters produced by a
    replacement are never scanned again in the same pass.

    Args:
        text: The string to rewrite
        pattern: The substring to look for
        replacement: The substring written in its place

    Returns:
        A new string. An empty pattern leaves the text unchanged.

    Examples:
        replace_all("IIIIIII", "IIIII", "V")  # => "VII"
        replace_all("VVV", "VV", "X")         # => "XV"
        replace_all("IV", "", "X")            # => "IV"
    """
    if not pattern:
        return text
    return text.replace(pattern, replacement)


# ============================================================
# Table-driven rewriting
# ============================================================

def rule_indices(length: int, start: int = 0, stop: Optional[int] = None) -> range:
    """
    Return the rule indices visited for a start/stop pair.

    Iteration covers start up to but excluding stop. When stop is smaller
    than start the walk runs backwards; stop=None walks forward to the end
    of the table.

    Examples:
        list(rule_indices(5))        # => [0, 1, 2, 3, 4]
        list(rule_indices(5, 4, -1)) # => [4, 3, 2, 1, 0]
        list(rule_indices(5, 1, 3))  # => [1, 2]
    """
    if stop is None:
        stop = length
    direction = -1 if stop < start else 1
    return range(start, stop, direction)


def replace_all_rules(
    text: str,
    rules: RuleTableType,
    start: int = 0,
    stop: Optional[int] = None,
    skip: Iterable[str] = (),
) -> str:
    """
    Apply a range of (pattern, replacement) rules in sequence.

    Each rule's replace_all runs to completion on the output of the previous
    rule; this is sequential rewriting, not one simultaneous pass.

    Args:
        text: The string to rewrite
        rules: Table of (pattern, replacement) pairs
        start: First rule index to apply
        stop: Index to stop before (may be less than start to walk backwards)
        skip: Replacement values whose rules must not be applied

    Returns:
        The rewritten string
    """
    skipped = frozenset(skip)
    for i in rule_indices(len(rules), start, stop):
        pattern, replacement = rules[i]
        if replacement in skipped:
            continue
        text = replace_all(text, pattern, replacement)
    return text


def applied_rules(
    text: str,
    rules: RuleTableType,
    skip: Iterable[str] = (),
) -> List[Tuple[int, str, str]]:
    """
    Apply rules forward, recording each one that changed the text.

    Returns:
        List of (rule_index, before, after) for every rule that fired
    """
    skipped = frozenset(skip)
    fired = []
    for i, (pattern, replacement) in enumerate(rules):
        if replacement in skipped:
            continue
        rewritten = replace_all(text, pattern, replacement)
        if rewritten != text:
            fired.append((i, text, rewritten))
            text = rewritten
    return fired
