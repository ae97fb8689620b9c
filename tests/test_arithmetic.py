"""Tests for balanced-ternary arithmetic."""

import itertools
import random
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from btern.arithmetic import add, add_trits, add_with_carry, negate, subtract
from btern.ternary import TRYTE_MAX, WORD_MAX, ZERO_WORD, Trit, Tryte, word_from_int

MODULUS = 3 ** 27


def wrap(n: int) -> int:
    """Reduce an integer into the balanced Word range modulo 3**27."""
    return (n + WORD_MAX) % MODULUS - WORD_MAX


_rng = random.Random(3)
SAMPLES = [0, 1, -1, WORD_MAX, -WORD_MAX] + [_rng.randint(-WORD_MAX, WORD_MAX) for _ in range(25)]
PAIRS = [(_rng.choice(SAMPLES), _rng.choice(SAMPLES)) for _ in range(30)]
TRIPLES = [tuple(_rng.choice(SAMPLES) for _ in range(3)) for _ in range(20)]


class TestTritAdder:
    """Test the trit full adder."""

    def test_all_combinations(self):
        """Digit plus three times carry equals the trit sum."""
        for a, b, c in itertools.product(Trit, repeat=3):
            digit, carry = add_trits(a, b, c)
            assert int(digit) + 3 * int(carry) == int(a) + int(b) + int(c)

    def test_extremes(self):
        """Saturated inputs carry out."""
        assert add_trits(Trit.P, Trit.P, Trit.P) == (Trit.Z, Trit.P)
        assert add_trits(Trit.N, Trit.N, Trit.N) == (Trit.Z, Trit.N)
        assert add_trits(Trit.P, Trit.P) == (Trit.N, Trit.P)


class TestAdd:
    """Test Word addition."""

    def test_small_values(self):
        """Small sums match integer addition."""
        assert add(word_from_int(9), word_from_int(6)).to_int() == 15
        assert add(word_from_int(-20), word_from_int(7)).to_int() == -13

    @pytest.mark.parametrize("a,b", PAIRS)
    def test_matches_modular_sum(self, a, b):
        """Word sum equals the integer sum reduced modulo 3**27."""
        assert add(word_from_int(a), word_from_int(b)).to_int() == wrap(a + b)

    @pytest.mark.parametrize("a,b", PAIRS)
    def test_commutative(self, a, b):
        """add(a, b) == add(b, a)."""
        wa, wb = word_from_int(a), word_from_int(b)
        assert add(wa, wb) == add(wb, wa)

    @pytest.mark.parametrize("a,b,c", TRIPLES)
    def test_associative(self, a, b, c):
        """Grouping does not change the wrapped sum."""
        wa, wb, wc = word_from_int(a), word_from_int(b), word_from_int(c)
        assert add(add(wa, wb), wc) == add(wa, add(wb, wc))

    def test_zero_identity(self):
        """Adding the zero Word is a no-op."""
        w = word_from_int(-987654321)
        assert add(w, ZERO_WORD) == w


class TestOverflow:
    """Overflow wraps silently modulo 3**27."""

    def test_max_plus_one_wraps_to_min(self):
        """MAX + 1 wraps to -MAX with a positive carry."""
        result, carry = add_with_carry(word_from_int(WORD_MAX), word_from_int(1))
        assert result.to_int() == -WORD_MAX
        assert carry is Trit.P

    def test_min_minus_one_wraps_to_max(self):
        """-MAX - 1 wraps to MAX with a negative carry."""
        result, carry = add_with_carry(word_from_int(-WORD_MAX), word_from_int(-1))
        assert result.to_int() == WORD_MAX
        assert carry is Trit.N

    def test_no_carry_in_range(self):
        """In-range sums have a zero carry."""
        _, carry = add_with_carry(word_from_int(WORD_MAX - 1), word_from_int(1))
        assert carry is Trit.Z

    def test_add_never_raises(self):
        """Overflow never raises."""
        big = word_from_int(WORD_MAX)
        assert add(big, big).to_int() == wrap(2 * WORD_MAX)

    def test_subtract_wraps(self):
        """Subtraction wraps the same way."""
        assert subtract(word_from_int(-WORD_MAX), word_from_int(1)).to_int() == WORD_MAX


class TestNegate:
    """Negation flips every trit."""

    @pytest.mark.parametrize("value", SAMPLES)
    def test_value(self, value):
        """Negation matches integer negation."""
        assert negate(word_from_int(value)).to_int() == -value

    @pytest.mark.parametrize("value", SAMPLES)
    def test_involution(self, value):
        """Negating twice gives the original Word."""
        w = word_from_int(value)
        assert negate(negate(w)) == w

    @pytest.mark.parametrize("value", SAMPLES)
    def test_additive_inverse(self, value):
        """A Word plus its negation is zero."""
        w = word_from_int(value)
        assert add(w, negate(w)) == ZERO_WORD

    def test_minimum_has_no_edge_case(self):
        """The range is symmetric, so -MAX negates cleanly."""
        assert negate(word_from_int(-WORD_MAX)).to_int() == WORD_MAX


class TestSubtract:
    """Test subtraction."""

    @pytest.mark.parametrize("a,b", PAIRS)
    def test_matches_modular_difference(self, a, b):
        """Word difference equals the wrapped integer difference."""
        assert subtract(word_from_int(a), word_from_int(b)).to_int() == wrap(a - b)

    def test_equals_add_negate(self):
        a, b = word_from_int(100), word_from_int(-250)
        assert subtract(a, b) == add(a, negate(b))


class TestOtherWidths:
    """Arithmetic works on any same-width pair."""

    def test_tryte_wraps(self):
        """Trytes wrap modulo 3**9."""
        assert add(Tryte.from_int(TRYTE_MAX), Tryte.from_int(1)) == Tryte.from_int(-TRYTE_MAX)

    def test_mixed_widths_rejected(self):
        """Mixing a Tryte and a Word raises TypeError."""
        with pytest.raises(TypeError):
            add(Tryte.from_int(1), word_from_int(1))
