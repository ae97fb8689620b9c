"""Balanced-ternary arithmetic over fixed-width trit vectors.

Addition is a ripple-carry chain of trit full adders, least-significant
trit first. Results wrap silently modulo ``3**WIDTH``: the carry out of
the top trit is dropped, exactly as a fixed-width register would drop it.

Negation flips every trit. The representable range is symmetric about
zero, so negation needs no correction step and has no edge case.
"""

from typing import Tuple, TypeVar

from .ternary import Trit, TritVector

V = TypeVar("V", bound=TritVector)


def add_trits(a: Trit, b: Trit, carry_in: Trit = Trit.Z) -> Tuple[Trit, Trit]:
    """Full adder for three trits.

    The raw sum lies in [-3, 3]; the result satisfies
    ``digit + 3 * carry_out == a + b + carry_in``.

    Returns:
        Tuple of (digit, carry_out)
    """
    total = int(a) + int(b) + int(carry_in)
    if total >= 2:
        carry = 1
    elif total <= -2:
        carry = -1
    else:
        carry = 0
    return Trit(total - 3 * carry), Trit(carry)


def _check_widths(a: TritVector, b: TritVector) -> None:
    if type(a) is not type(b):
        raise TypeError(
            f"Cannot combine {type(a).__name__} and {type(b).__name__}; widths must match"
        )


def add_with_carry(a: V, b: V) -> Tuple[V, Trit]:
    """Add two same-width values and also return the final carry.

    The carry is non-zero exactly when ``int(a) + int(b)`` is outside the
    representable range, i.e. when :func:`add` wrapped.

    Returns:
        Tuple of (wrapped sum, carry out of the top trit)
    """
    _check_widths(a, b)
    digits = []
    carry = Trit.Z
    for ta, tb in zip(a.trits, b.trits):
        digit, carry = add_trits(ta, tb, carry)
        digits.append(digit)
    return type(a)(digits), carry


def add(a: V, b: V) -> V:
    """Add two same-width values, wrapping modulo 3**WIDTH."""
    result, _ = add_with_carry(a, b)
    return result


def negate(a: V) -> V:
    """Flip every trit (+1 <-> -1, 0 stays 0)."""
    return type(a)([-t for t in a.trits])


def subtract(a: V, b: V) -> V:
    """``a - b`` computed as ``add(a, negate(b))``."""
    return add(a, negate(b))
