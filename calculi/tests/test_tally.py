"""Tests for symbol tallies."""

import pytest
from calculi import Tally, Symbol, tally, InvalidSymbolError, UnderflowError


class TestTallyCounting:
    """Tests for counting symbols."""

    def test_of_counts_each_symbol(self):
        """Tally.of counts every symbol."""
        t = Tally.of("MDCCCCLXXXXVIIII")
        assert t[Symbol.M] == 1
        assert t[Symbol.D] == 1
        assert t[Symbol.C] == 4
        assert t[Symbol.L] == 1
        assert t[Symbol.X] == 4
        assert t[Symbol.V] == 1
        assert t[Symbol.I] == 4

    def test_character_keys(self):
        """Counts can be read by character."""
        t = tally("XXVI")
        assert t["X"] == 2
        assert t["V"] == 1
        assert t["M"] == 0

    def test_order_does_not_matter(self):
        """Tallies ignore symbol order."""
        assert tally("IXVX") == tally("XXVI")

    def test_empty(self):
        """An empty numeral tallies to zero."""
        assert tally("").total() == 0

    def test_invalid_symbol(self):
        """Foreign characters raise with their position."""
        with pytest.raises(InvalidSymbolError) as exc_info:
            tally("XXAV")
        assert exc_info.value.symbol == "A"
        assert exc_info.value.position == 2

    def test_total_is_length(self):
        """total() equals the numeral's length."""
        assert tally("MMXXIIII").total() == 8


class TestTallyArithmetic:
    """Tests for combining tallies."""

    def test_add(self):
        """Tallies add column by column."""
        assert (tally("XVI") + tally("VII")) == tally("XVVIII")

    def test_subtract_may_go_negative(self):
        """Subtraction leaves negative columns."""
        diff = tally("X") - tally("I")
        assert diff[Symbol.X] == 1
        assert diff[Symbol.I] == -1
        assert diff.is_negative()
        assert diff.negative_symbols() == [Symbol.I]

    def test_add_other_type(self):
        """Adding a non-tally is unsupported."""
        with pytest.raises(TypeError):
            tally("X") + 1

    def test_setitem_and_copy(self):
        """copy() is independent of the original."""
        t = tally("XX")
        c = t.copy()
        c["X"] = 0
        c[Symbol.I] = 3
        assert t["X"] == 2
        assert c.to_numeral() == "III"


class TestTallyOutput:
    """Tests for writing tallies back out."""

    def test_to_numeral_descending(self):
        """Symbols are written from M down to I."""
        assert tally("IVXLCDM").to_numeral() == "MDCLXVI"

    def test_to_numeral_repeats(self):
        """Counts become repetitions."""
        assert Tally([3, 0, 2]).to_numeral() == "XXIII"

    def test_to_numeral_negative(self):
        """Negative columns cannot be written."""
        with pytest.raises(UnderflowError):
            (tally("I") - tally("II")).to_numeral()

    def test_to_dict_and_items(self):
        """Plain views of the counts."""
        t = tally("XVV")
        assert t.to_dict() == {"I": 0, "V": 2, "X": 1, "L": 0, "C": 0, "D": 0, "M": 0}
        assert t.items()[1] == (Symbol.V, 2)
        assert t.values() == [0, 2, 1, 0, 0, 0, 0]
        assert t.keys() == list(Symbol)
        assert list(t) == list(Symbol)
        assert len(t) == 7

    def test_get_default(self):
        """get() returns default for non-symbols."""
        assert tally("X").get("Q", default=-1) == -1
        assert tally("X").get("X") == 1

    def test_repr(self):
        """repr lists non-zero columns."""
        assert repr(tally("XVV")) == "Tally(V=2, X=1)"

    def test_too_many_counts(self):
        """More than seven counts is an error."""
        with pytest.raises(ValueError):
            Tally([0] * 8)
