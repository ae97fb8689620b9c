"""Program file formats for encoded Word streams.

Formats:
    words: one Word per record, its integer value as an 8-byte
           big-endian signed integer (``.tw``)
    trits: 27 bytes per Word, one signed byte (-1, 0, 1) per trit,
           least-significant trit first (``.bin``)

Both carry the same trit sequence; the codec does not depend on which
one a program was stored in.
"""

import struct
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .ternary import WORD_WIDTH, Word

WORD_RECORD = "words"
TRIT_STREAM = "trits"
FORMATS = (WORD_RECORD, TRIT_STREAM)

FORMAT_SUFFIXES = {
    ".tw": WORD_RECORD,
    ".bin": TRIT_STREAM,
}

_RECORD = struct.Struct(">q")


def words_to_records(words: Sequence[Word]) -> bytes:
    return b"".join(_RECORD.pack(w.to_int()) for w in words)


def records_to_words(data: bytes) -> List[Word]:
    """Parse word records.

    Raises:
        ValueError: If the length is not a multiple of the record size
        OutOfRange: If a record holds a value outside the Word range
    """
    if len(data) % _RECORD.size:
        raise ValueError(
            f"Program size {len(data)} bytes is not a multiple of {_RECORD.size}-byte word records"
        )
    return [Word.from_int(value) for (value,) in _RECORD.iter_unpack(data)]


def words_to_trit_bytes(words: Sequence[Word]) -> bytes:
    trits = [int(t) for w in words for t in w.trits]
    return struct.pack(f"{len(trits)}b", *trits)


def trit_bytes_to_words(data: bytes) -> List[Word]:
    """Parse a trit stream.

    Raises:
        ValueError: If the length is not a multiple of 27 bytes, or a byte
            is not -1, 0 or 1
    """
    if len(data) % WORD_WIDTH:
        raise ValueError(
            f"Program size {len(data)} bytes is not a multiple of {WORD_WIDTH} trits (1 Word)"
        )
    trits = struct.unpack(f"{len(data)}b", data)
    for offset, value in enumerate(trits):
        if value not in (-1, 0, 1):
            raise ValueError(f"Invalid trit value {value} at byte {offset}")
    return [Word(trits[i:i + WORD_WIDTH]) for i in range(0, len(trits), WORD_WIDTH)]


def detect_format(path: Union[str, Path]) -> str:
    """Format name for a file suffix.

    Raises:
        ValueError: If the suffix is not recognised
    """
    suffix = Path(path).suffix.lower()
    if suffix not in FORMAT_SUFFIXES:
        known = ", ".join(sorted(FORMAT_SUFFIXES))
        raise ValueError(f"Cannot infer program format from {suffix!r}; expected one of {known}")
    return FORMAT_SUFFIXES[suffix]


def _check_format(fmt: str) -> str:
    if fmt not in FORMATS:
        raise ValueError(f"Unknown program format {fmt!r}; expected one of {', '.join(FORMATS)}")
    return fmt


def save_program(path: Union[str, Path], words: Sequence[Word], fmt: Optional[str] = None) -> Path:
    """Write a Word stream to ``path``; format inferred from the suffix if not given."""
    path = Path(path)
    fmt = _check_format(fmt or detect_format(path))
    data = words_to_records(words) if fmt == WORD_RECORD else words_to_trit_bytes(words)
    path.write_bytes(data)
    return path


def load_program_file(path: Union[str, Path], fmt: Optional[str] = None) -> List[Word]:
    """Read a Word stream from ``path``; format inferred from the suffix if not given."""
    path = Path(path)
    fmt = _check_format(fmt or detect_format(path))
    data = path.read_bytes()
    if fmt == WORD_RECORD:
        return records_to_words(data)
    return trit_bytes_to_words(data)
