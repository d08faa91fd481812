"""Tests for Roman numeral arithmetic."""

import pytest
from calculi import (
    add, subtract, normalize, to_additive, add_additive, bundle, contract, borrow,
    tally, Tally, Symbol, NumeralSystem, DEFAULT_SYSTEM, DIGRAPHS,
    CalculationTrace, replace_all_rules,
    NumeralError, InvalidNumeralError, InvalidSymbolError,
    NumeralTooLargeError, UnderflowError,
)
from calculi.symbols import NON_CONTRACTING_DIGRAPHS


def roman(n):
    """Minimal numeral for n, used only to generate test cases."""
    table = [(1000, "M"), (900, "CM"), (500, "D"), (400, "CD"), (100, "C"),
             (90, "XC"), (50, "L"), (40, "XL"), (10, "X"), (9, "IX"),
             (5, "V"), (4, "IV"), (1, "I")]
    parts = []
    for value, numeral in table:
        count, n = divmod(n, value)
        parts.append(numeral * count)
    return "".join(parts)


MINIMAL_NUMERALS = [roman(n) for n in range(1, 4000)]


class TestToAdditive:
    """Tests for the additive normalizer."""

    @pytest.mark.parametrize("numeral,expected", [
        ("IV", "IIII"),
        ("IX", "VIIII"),
        ("XIV", "XIIII"),
        ("XLIX", "XXXXVIIII"),
        ("XCIX", "LXXXXVIIII"),
        ("CDXLIV", "CCCCXXXXIIII"),
        ("MCMXCIX", "MDCCCCLXXXXVIIII"),
        ("MMXXVI", "MMXXVI"),
    ])
    def test_expands_subtractive_forms(self, numeral, expected):
        """Subtractive forms are written out."""
        assert to_additive(numeral) == expected

    def test_nonstandard_digraphs(self):
        """Every digraph expands, including ones minimal form never uses."""
        assert to_additive("IL") == "XXXXVIIII"
        assert to_additive("IM") == "DCCCCLXXXXVIIII"
        assert to_additive("VX") == "V"
        assert to_additive("DM") == "D"

    def test_fixed_point(self):
        """The result contains no digraphs."""
        for numeral in ["MCMXCIX", "CDXLIV", "IM", "XLIX", "VL"]:
            additive = to_additive(numeral)
            assert all(d.short not in additive for d in DIGRAPHS)

    def test_invalid_symbol(self):
        """Foreign characters are rejected with their position."""
        with pytest.raises(InvalidSymbolError) as exc_info:
            to_additive("XIZ")
        assert exc_info.value.symbol == "Z"
        assert exc_info.value.position == 2

    def test_lowercase_rejected(self):
        """The core is case-sensitive."""
        with pytest.raises(InvalidSymbolError):
            to_additive("xiv")

    def test_empty_rejected(self):
        """Empty numerals are not numerals."""
        with pytest.raises(InvalidNumeralError):
            to_additive("")


class TestAddAdditive:
    """Tests for merging additive numerals."""

    def test_sorted_output(self):
        """Merged symbols come out from M down to I."""
        assert add_additive("XVI", "MCI") == "MCXVII"

    def test_length_preserved(self):
        """Output length equals combined input length."""
        assert len(add_additive("XXXXVIIII", "CCCCL")) == 14

    def test_at_limit(self):
        """Exactly max_length is allowed."""
        system = NumeralSystem(max_length=4)
        assert add_additive("II", "II", system) == "IIII"

    def test_over_limit(self):
        """Above max_length raises NumeralTooLargeError."""
        system = NumeralSystem(max_length=4)
        with pytest.raises(NumeralTooLargeError) as exc_info:
            add_additive("III", "II", system)
        assert exc_info.value.length == 5
        assert exc_info.value.limit == 4


class TestBundle:
    """Tests for carry propagation."""

    @pytest.mark.parametrize("numeral,expected", [
        ("IIIII", "V"),
        ("VIIIII", "X"),
        ("IIIIIIIIII", "X"),
        ("XXXXX", "L"),
        ("LL", "C"),
        ("CCCCC", "D"),
        ("DD", "M"),
        ("VVIIIII", "XV"),
        ("IIII", "IIII"),
        ("MMMMMM", "MMMMMM"),
    ])
    def test_bundles(self, numeral, expected):
        """Runs carry into larger symbols."""
        assert bundle(numeral) == expected

    @pytest.mark.parametrize("numeral,expected", [
        ("V" + "I" * 15, "XX"),
        ("L" + "X" * 15, "CC"),
        ("D" + "C" * 15, "MM"),
        ("XV" + "I" * 11, "XXVI"),
    ])
    def test_carry_lands_beside_its_run(self, numeral, expected):
        """A carry joins an existing run of the same symbol."""
        assert bundle(numeral) == expected

    def test_stays_sorted(self):
        """Sorted input gives sorted output."""
        order = "MDCLXVI"
        for numeral in ["V" + "I" * 15, "L" + "X" * 23 + "V" + "I" * 9, "D" + "C" * 17 + "L"]:
            result = bundle(numeral)
            assert list(result) == sorted(result, key=order.index)

    def test_cascade(self):
        """Carries cascade all the way up in one pass."""
        assert bundle("D" + "C" * 4 + "L" + "X" * 4 + "V" + "I" * 5) == "M"
        assert bundle("I" * 999) == "DCCCCLXXXXVIIII"

    def test_idempotent(self):
        """Bundling a bundled numeral changes nothing."""
        for numeral in ["I" * 37, "VVIIIIIIII", "C" * 23 + "X" * 17 + "I" * 9]:
            once = bundle(numeral)
            assert bundle(once) == once

    def test_postcondition(self):
        """No more than four I/X/C and one V/L/D in a row."""
        result = bundle("C" * 19 + "X" * 19 + "I" * 19)
        for symbol in "IXC":
            assert symbol * 5 not in result
        for symbol in "VLD":
            assert symbol * 2 not in result


class TestContract:
    """Tests for the subtractive contractor."""

    @pytest.mark.parametrize("numeral,expected", [
        ("IIII", "IV"),
        ("VIIII", "IX"),
        ("XXXX", "XL"),
        ("LXXXX", "XC"),
        ("CCCC", "CD"),
        ("DCCCC", "CM"),
        ("MDCCCCLXXXXVIIII", "MCMXCIX"),
        ("CCCCLIIII", "CDLIV"),
        ("XXXXVIIII", "XLIX"),
        ("V", "V"),
        ("L", "L"),
        ("D", "D"),
    ])
    def test_contracts(self, numeral, expected):
        """Additive runs become subtractive forms."""
        assert contract(numeral) == expected

    def test_matches_backward_walk(self):
        """Contracting equals walking the expansion table backwards."""
        rules = [(d.expansion, d.short) for d in DIGRAPHS]
        for numeral in ["MDCCCCLXXXXVIIII", "CCCCXXXXIIII", "LXXXXV"]:
            walked = replace_all_rules(numeral, rules, start=len(rules) - 1, stop=-1,
                                       skip=NON_CONTRACTING_DIGRAPHS)
            assert contract(numeral) == walked

    def test_round_trip(self):
        """Every minimal numeral survives expand, bundle, contract."""
        for numeral in MINIMAL_NUMERALS:
            assert contract(bundle(to_additive(numeral))) == numeral


class TestBorrow:
    """Tests for borrow resolution."""

    def test_no_borrow_needed(self):
        """Non-negative tallies pass through."""
        t = tally("XVI")
        assert borrow(t) == t

    def test_borrow_from_next(self):
        """A short column borrows from the smallest larger symbol."""
        resolved = borrow(tally("XV") - tally("I"))
        assert resolved == tally("XIIII")

    def test_borrow_skips_empty_columns(self):
        """Empty columns are skipped; the rate converts in one step."""
        resolved = borrow(tally("M") - tally("I"))
        assert resolved[Symbol.I] == 999
        assert resolved[Symbol.M] == 0

    def test_borrow_several_lenders(self):
        """Large deficits take several lenders."""
        resolved = borrow(tally("XXX") - tally("I" * 12))
        assert resolved == tally("X" + "I" * 8)

    def test_borrow_cascades_upwards(self):
        """Higher columns settle after lower ones borrowed from them."""
        resolved = borrow(tally("C") - tally("XXXXVIIII"))
        assert not resolved.is_negative()
        assert bundle(resolved.to_numeral()) == "LI"

    def test_debt_passed_down(self):
        """A short column with no lender passes its debt to smaller symbols."""
        resolved = borrow(tally("IIIIII") - tally("V"))
        assert resolved == tally("I")

    def test_underflow(self):
        """No lender means the result would be negative."""
        with pytest.raises(UnderflowError):
            borrow(tally("I") - tally("II"))

    def test_original_untouched(self):
        """borrow returns a new tally."""
        diff = tally("X") - tally("I")
        borrow(diff)
        assert diff[Symbol.I] == -1


class TestAdd:
    """Tests for addition."""

    @pytest.mark.parametrize("augend,addend,expected", [
        ("I", "I", "II"),
        ("III", "II", "V"),
        ("IV", "II", "VI"),
        ("VII", "VIII", "XV"),
        ("M", "CCCC", "MCD"),
        ("M", "CMXCIX", "MCMXCIX"),
        ("XIV", "IX", "XXIII"),
        ("XLIX", "I", "L"),
        ("CMXCIX", "I", "M"),
        ("MMMCMXCIX", "I", "MMMM"),
        ("IX", "VL", "LIV"),
        ("D", "CM", "MCD"),
        ("VIIIIIIIIII", "I", "XVI"),
        ("LXXXXXXXXXX", "X", "CLX"),
    ])
    def test_scenarios(self, augend, addend, expected):
        """Known sums."""
        assert add(augend, addend) == expected

    def test_commutative(self):
        """add(a, b) == add(b, a)."""
        for a in MINIMAL_NUMERALS[::97]:
            for b in MINIMAL_NUMERALS[::131]:
                assert add(a, b) == add(b, a)

    def test_matches_integer_sum(self):
        """Sums agree with ordinary arithmetic."""
        for n in range(1, 400, 13):
            for m in range(1, 400, 17):
                assert add(roman(n), roman(m)) == roman(n + m)

    def test_too_large(self):
        """Operands over the limit raise instead of truncating."""
        with pytest.raises(NumeralTooLargeError):
            add("M" * 3000, "M" * 2001)

    def test_too_large_counts_additive_length(self):
        """The limit applies to the expanded operands."""
        system = NumeralSystem(max_length=5)
        # IV expands to four symbols
        with pytest.raises(NumeralTooLargeError):
            add("IV", "II", system=system)
        assert add("IV", "I", system=system) == "V"

    def test_invalid_operand(self):
        """Invalid operands raise a NumeralError."""
        with pytest.raises(InvalidSymbolError):
            add("X", "Q")
        with pytest.raises(NumeralError):
            add("", "I")


class TestSubtract:
    """Tests for subtraction."""

    @pytest.mark.parametrize("minuend,subtrahend,expected", [
        ("II", "I", "I"),
        ("X", "I", "IX"),
        ("ID", "XLV", "CDLIV"),
        ("M", "D", "D"),
        ("M", "I", "CMXCIX"),
        ("MCMXCIX", "CMXCIX", "M"),
        ("C", "XLIX", "LI"),
        ("XXIII", "IX", "XIV"),
        ("MMMM", "I", "MMMCMXCIX"),
    ])
    def test_scenarios(self, minuend, subtrahend, expected):
        """Known differences."""
        assert subtract(minuend, subtrahend) == expected

    def test_matches_integer_difference(self):
        """Differences agree with ordinary arithmetic."""
        for n in range(2, 1200, 37):
            for m in range(1, n, 29):
                assert subtract(roman(n), roman(m)) == roman(n - m)

    def test_inverse_of_add(self):
        """add(subtract(a, b), b) == a."""
        for n in range(2, 3999, 173):
            for m in range(1, n, 211):
                a, b = roman(n), roman(m)
                assert add(subtract(a, b), b) == a

    def test_underflow_negative(self):
        """A smaller minuend raises UnderflowError."""
        with pytest.raises(UnderflowError):
            subtract("I", "II")
        with pytest.raises(UnderflowError):
            subtract("XC", "C")

    def test_underflow_zero(self):
        """Equal operands give zero, which has no numeral."""
        with pytest.raises(UnderflowError):
            subtract("X", "X")
        with pytest.raises(UnderflowError):
            subtract("IV", "IIII")

    def test_underflow_is_numeral_error(self):
        """UnderflowError belongs to the NumeralError family."""
        with pytest.raises(NumeralError):
            subtract("I", "V")
        with pytest.raises(ValueError):
            subtract("I", "V")

    def test_invalid_operand(self):
        """Invalid operands raise before any arithmetic."""
        with pytest.raises(InvalidSymbolError):
            subtract("X1", "I")


class TestNormalize:
    """Tests for minimal-form normalization."""

    @pytest.mark.parametrize("numeral,expected", [
        ("IIII", "IV"),
        ("VV", "X"),
        ("IM", "CMXCIX"),
        ("IIIIIIIIIIIIIIIIIIII", "XX"),
        ("VL", "XLV"),
        ("MCMXCIX", "MCMXCIX"),
        ("IVIV", "VIII"),
        ("V" + "I" * 15, "XX"),
        ("VVIIIIIIIIIII", "XXI"),
        ("L" + "X" * 15 + "V" + "I" * 10, "CCXV"),
    ])
    def test_normalize(self, numeral, expected):
        """Numerals come back in minimal form."""
        assert normalize(numeral) == expected

    def test_minimal_is_fixed_point(self):
        """Minimal numerals are unchanged."""
        for numeral in MINIMAL_NUMERALS[::7]:
            assert normalize(numeral) == numeral


class TestCalculationTrace:
    """Tests for traced calculations."""

    def test_add_trace(self):
        """Tracing add records each phase."""
        result, calc = add("VII", "VIII", trace=True)
        assert result == "XV"
        assert isinstance(calc, CalculationTrace)
        assert calc.result == "XV"
        assert [p.name for p in calc] == [
            "normalize augend", "normalize addend", "merge", "bundle", "contract",
        ]
        assert calc.phase("merge").after == "VVIIIII"
        assert calc.phase("bundle").rewrites.rules_applied() == ["five-ones", "two-fives"]

    def test_subtract_trace(self):
        """Tracing subtract records difference and borrow."""
        result, calc = subtract("X", "I", trace=True)
        assert result == "IX"
        assert [p.name for p in calc] == [
            "normalize minuend", "normalize subtrahend", "difference", "borrow",
            "bundle", "contract",
        ]
        assert calc.phase("borrow").after == "IIIIIIIII"
        assert calc.phase("contract").rewrites.rules_applied() == ["ix"]

    def test_trace_formats(self):
        """Trace renders and serializes."""
        _, calc = add("IV", "II", trace=True)
        verbose = calc.format()
        assert verbose.startswith("IV + II")
        assert "Result: VI" in verbose
        assert "iv" in verbose
        assert "merge: IIII + II -> IIIIII" in calc.format("phases")
        data = calc.to_dict()
        assert data["operation"] == "add"
        assert data["operands"] == ["IV", "II"]
        assert data["result"] == "VI"
        assert len(calc) == len(data["phases"])

    def test_trace_does_not_change_result(self):
        """Results agree with and without tracing."""
        for a, b in [("MCM", "XC"), ("ID", "XLV"), ("C", "I")]:
            assert subtract(a, b, trace=True)[0] == subtract(a, b)
            assert add(a, b, trace=True)[0] == add(a, b)

    def test_system_is_injected(self):
        """A custom system's limit applies to traced calls too."""
        with pytest.raises(NumeralTooLargeError):
            add("III", "III", system=DEFAULT_SYSTEM.with_max_length(5), trace=True)
