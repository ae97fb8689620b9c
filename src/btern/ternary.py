"""Balanced-ternary value types: Trit, Tryte and Word.

Every container stores its digits least-significant first, so trit ``i``
carries weight ``3**i``. A container of ``n`` trits represents the signed
integers in ``[-(3**n - 1) // 2, (3**n - 1) // 2]`` and the mapping between
trit sequences and integers in that range is a bijection.

Types:
    Trit:  one digit, -1 (N), 0 (Z) or +1 (P)
    Tryte: 9 trits, range +/-9841
    Word:  27 trits (3 Trytes), range +/-3,812,798,742
"""

from enum import IntEnum
from functools import total_ordering
from typing import Iterable, List, Sequence, Tuple

from .errors import OutOfRange


TRYTE_WIDTH = 9
WORD_WIDTH = 27
TRYTES_PER_WORD = WORD_WIDTH // TRYTE_WIDTH


def max_value(width: int) -> int:
    """Largest integer representable in ``width`` balanced trits."""
    return (3 ** width - 1) // 2


TRYTE_MAX = max_value(TRYTE_WIDTH)  # 9841
WORD_MAX = max_value(WORD_WIDTH)    # 3812798742


class Trit(IntEnum):
    """Single balanced-ternary digit."""

    N = -1
    Z = 0
    P = 1

    def __neg__(self) -> "Trit":
        return Trit(-int(self))

    def __str__(self) -> str:
        return _SYMBOLS[self]

    @classmethod
    def from_int(cls, value: int) -> "Trit":
        """Convert -1, 0 or 1 into a Trit.

        Raises:
            OutOfRange: For any other value
        """
        if value not in (-1, 0, 1):
            raise OutOfRange(f"Invalid trit value: {value}; must be -1, 0 or 1", value=value, width=1)
        return cls(value)

    def to_bct(self) -> int:
        """2-bit Binary Coded Ternary form: N=0b00, Z=0b01, P=0b10."""
        return int(self) + 1

    @classmethod
    def from_bct(cls, bits: int) -> "Trit":
        """Inverse of :meth:`to_bct`. Only the low two bits are examined.

        Raises:
            ValueError: For the unused pattern 0b11
        """
        bits &= 0b11
        if bits == 0b11:
            raise ValueError("Invalid BCT value 0b11; must be 00, 01 or 10")
        return cls(bits - 1)


_SYMBOLS = {Trit.N: "-", Trit.Z: "0", Trit.P: "+"}


def trit_value(t: Trit) -> int:
    """Signed integer value of a trit."""
    return int(t)


def trits_to_int(trits: Iterable[int]) -> int:
    """Interpret a least-significant-first trit sequence as an integer."""
    value = 0
    power = 1
    for t in trits:
        value += int(t) * power
        power *= 3
    return value


def int_to_trits(value: int, width: int) -> List[Trit]:
    """Convert an integer to exactly ``width`` balanced trits, LSB first.

    Raises:
        OutOfRange: If ``|value|`` exceeds ``max_value(width)``
    """
    limit = max_value(width)
    if value < -limit or value > limit:
        raise OutOfRange(
            f"Value {value} does not fit in {width} trits (range +/-{limit})",
            value=value,
            width=width,
        )
    trits = []
    for _ in range(width):
        # Python's % is non-negative; a remainder of 2 becomes digit -1 with a carry
        rem = value % 3
        digit = -1 if rem == 2 else rem
        trits.append(Trit(digit))
        value = (value - digit) // 3
    return trits


@total_ordering
class TritVector:
    """Fixed-width sequence of trits with an integer interpretation.

    Subclasses set ``WIDTH``. Instances are immutable, hashable, and
    compare by integer value against instances of the same class.
    """

    WIDTH = 0
    __slots__ = ("_trits", "_value")

    def __init__(self, trits: Sequence[int] = ()):
        """Build from a trit sequence (LSB first); empty means zero.

        Raises:
            ValueError: If the sequence length is not WIDTH
            OutOfRange: If an element is not -1, 0 or 1
        """
        if not trits:
            trits = (Trit.Z,) * self.WIDTH
        if len(trits) != self.WIDTH:
            raise ValueError(f"{type(self).__name__} needs exactly {self.WIDTH} trits, got {len(trits)}")
        self._trits: Tuple[Trit, ...] = tuple(Trit.from_int(int(t)) for t in trits)
        self._value = trits_to_int(self._trits)

    @classmethod
    def from_int(cls, value: int):
        """Convert a signed integer.

        Raises:
            OutOfRange: If the value is outside +/-max_value(WIDTH)
        """
        return cls(int_to_trits(value, cls.WIDTH))

    @classmethod
    def max_value(cls) -> int:
        return max_value(cls.WIDTH)

    @property
    def trits(self) -> Tuple[Trit, ...]:
        return self._trits

    def to_int(self) -> int:
        return self._value

    def is_zero(self) -> bool:
        return self._value == 0

    def __int__(self) -> int:
        return self._value

    def __len__(self) -> int:
        return self.WIDTH

    def __iter__(self):
        return iter(self._trits)

    def __getitem__(self, item):
        return self._trits[item]

    def __eq__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._value == other._value

    def __lt__(self, other) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._value < other._value

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._value))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._value})"

    def __str__(self) -> str:
        """Trit string, most-significant trit first (e.g. ``+0-`` for 8)."""
        return "".join(str(t) for t in reversed(self._trits))


class Tryte(TritVector):
    """9-trit balanced-ternary value."""

    WIDTH = TRYTE_WIDTH
    __slots__ = ()


class Word(TritVector):
    """27-trit balanced-ternary value: register and instruction width."""

    WIDTH = WORD_WIDTH
    __slots__ = ()

    def trytes(self) -> Tuple[Tryte, Tryte, Tryte]:
        """Split into (low, middle, high) Trytes."""
        t = self._trits
        return (
            Tryte(t[0:TRYTE_WIDTH]),
            Tryte(t[TRYTE_WIDTH:2 * TRYTE_WIDTH]),
            Tryte(t[2 * TRYTE_WIDTH:]),
        )

    @classmethod
    def from_trytes(cls, trytes: Sequence[Tryte]) -> "Word":
        """Concatenate three Trytes, lowest first."""
        if len(trytes) != TRYTES_PER_WORD:
            raise ValueError(f"Word needs exactly {TRYTES_PER_WORD} trytes, got {len(trytes)}")
        trits: List[Trit] = []
        for tryte in trytes:
            trits.extend(tryte.trits)
        return cls(trits)


ZERO_WORD = Word()


def tryte_from_int(n: int) -> Tryte:
    return Tryte.from_int(n)


def int_from_tryte(t: Tryte) -> int:
    return t.to_int()


def word_from_int(n: int) -> Word:
    return Word.from_int(n)


def int_from_word(w: Word) -> int:
    return w.to_int()
