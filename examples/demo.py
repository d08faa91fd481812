#!/usr/bin/env python3
"""
CALCULI Feature Demonstration

This script walks through the stages of Roman numeral arithmetic.
"""

from calculi import (
    add, subtract, normalize,
    to_additive, add_additive, bundle, contract, borrow, tally,
    RuleSet, DEFAULT_SYSTEM, DIGRAPHS,
    NumeralError,
)


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def demo_basic_usage():
    """Demonstrate add and subtract."""
    section("Basic Usage")

    sums = [("I", "I"), ("IV", "II"), ("VII", "VIII"), ("M", "CMXCIX")]
    for a, b in sums:
        print(f"  {a} + {b} = {add(a, b)}")

    differences = [("X", "I"), ("ID", "XLV"), ("M", "I"), ("C", "XLIX")]
    for a, b in differences:
        print(f"  {a} - {b} = {subtract(a, b)}")


def demo_stages():
    """Run each stage of an addition by hand."""
    section("Stages of an Addition")

    augend, addend = "XLIX", "XLVI"
    a, b = to_additive(augend), to_additive(addend)
    print(f"  additive:  {augend} -> {a},  {addend} -> {b}")

    merged = add_additive(a, b)
    print(f"  merged:    {merged}")

    bundled = bundle(merged)
    print(f"  bundled:   {bundled}")
    print(f"  minimal:   {contract(bundled)}")


def demo_borrowing():
    """Show a tally difference and how it settles."""
    section("Borrowing")

    difference = tally(to_additive("C")) - tally(to_additive("XLIX"))
    print(f"  C - XLIX as a tally: {difference}")
    resolved = borrow(difference)
    print(f"  after borrowing:     {resolved}")
    print(f"  written out:         {resolved.to_numeral()}")


def demo_tracing():
    """Demonstrate calculation traces."""
    section("Tracing")

    result, calc = subtract("MCM", "XC", trace=True)
    print(calc.format())

    print("\n  One line per phase:")
    for line in calc.format("phases").splitlines():
        print(f"    {line}")


def demo_tables():
    """Inspect the rule tables."""
    section("Rule Tables")

    print(f"  {len(DIGRAPHS)} digraphs: {' '.join(d.short for d in DIGRAPHS)}")
    for table in DEFAULT_SYSTEM.tables().values():
        print(f"  {table!r}")

    print("\n  Bundling rules:")
    for line in DEFAULT_SYSTEM.bundling.list_rules():
        print(f"    {line}")


def demo_custom_tables():
    """Build a table from DSL and chain tables together."""
    section("Custom Tables")

    tidy = RuleSet.from_dsl('''
        @double-v "Two V make an X": VV => X
        @double-l "Two L make a C": LL => C
    ''', name="tidy")
    print(f"  {tidy!r}")
    print(f"  LLVV => {tidy('LLVV')}")

    pipeline = DEFAULT_SYSTEM.expansions >> DEFAULT_SYSTEM.contractions
    print(f"  {pipeline!r}: XLIV => {pipeline('XLIV')}")


def demo_normalize():
    """Rewrite sloppy numerals in minimal form."""
    section("Normalization")

    for numeral in ["IIII", "VV", "IM", "XXXXXXXXXXXX", "IVIV"]:
        print(f"  {numeral} => {normalize(numeral)}")


def demo_errors():
    """Show the errors the calculator raises."""
    section("Errors")

    attempts = [
        (subtract, "I", "II"),
        (subtract, "X", "X"),
        (add, "X", "Q"),
        (add, "M" * 3000, "M" * 2001),
    ]
    for operation, a, b in attempts:
        try:
            operation(a, b)
        except NumeralError as e:
            shown = (a if len(a) < 10 else f"M*{len(a)}", b if len(b) < 10 else f"M*{len(b)}")
            print(f"  {operation.__name__}{shown}: {type(e).__name__}: {e}")


def main():
    """Run all demonstrations."""
    print("CALCULI - Roman arithmetic on the counting board")
    print("Feature Demonstration")

    demo_basic_usage()
    demo_stages()
    demo_borrowing()
    demo_tracing()
    demo_tables()
    demo_custom_tables()
    demo_normalize()
    demo_errors()

    print("\n" + "="*60)
    print(" Demo complete!")
    print("="*60)


if __name__ == "__main__":
    main()
