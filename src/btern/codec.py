"""Instruction codec: packs and unpacks the five fields of a 27-trit Word.

Layout (trit positions, least-significant first):

    [ 0..11]  imm     12 trits, signed, +/-265720
    [12..14]  rs2      3 trits
    [15..17]  rs1      3 trits
    [18..20]  rd       3 trits
    [21..26]  opcode   6 trits, signed, +/-364

Register fields hold a raw signed value in [-13, 13]; the register index
is ``raw + 13``, covering R0..R26.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import List, NamedTuple, Union

from .errors import DecodeError, FieldOverflow, OutOfRange, UnknownMnemonic
from .ternary import Trit, Word, int_to_trits, max_value, trits_to_int


NUM_REGISTERS = 27
REGISTER_BIAS = 13


class Field(NamedTuple):
    name: str
    offset: int
    width: int

    @property
    def limit(self) -> int:
        return max_value(self.width)


IMM_FIELD = Field("imm", 0, 12)
RS2_FIELD = Field("rs2", 12, 3)
RS1_FIELD = Field("rs1", 15, 3)
RD_FIELD = Field("rd", 18, 3)
OPCODE_FIELD = Field("opcode", 21, 6)

# Ordered from trit 0 upwards
FIELDS = (IMM_FIELD, RS2_FIELD, RS1_FIELD, RD_FIELD, OPCODE_FIELD)
REGISTER_FIELDS = (RD_FIELD, RS1_FIELD, RS2_FIELD)

IMM_MAX = IMM_FIELD.limit


class Opcode(IntEnum):
    """Defined instruction opcodes and their 6-trit field values."""

    NOP = 0
    ADD = 1     # Rd = Rs1 + Rs2
    ADDI = 2    # Rd = Rs1 + Imm
    SUB = 3     # Rd = Rs1 - Rs2
    SUBI = 4    # Rd = Rs1 - Imm
    LDW = 5     # Rd = Mem[Rs1 + Imm]
    STW = 6     # Mem[Rs1 + Imm] = Rs2
    JMP = 7     # PC = Rs1 + Imm
    CALL = 8    # push PC + 1; PC = Rs1 + Imm
    RET = 9     # PC = pop
    BRZ = 10    # if Rs1 == 0: PC = Rs2 + Imm
    HALT = 63

    @classmethod
    def coerce(cls, value: Union["Opcode", int, str]) -> "Opcode":
        """Accept an Opcode, its integer value or its mnemonic (any case).

        Raises:
            UnknownMnemonic: If nothing matches
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise UnknownMnemonic(value) from None
        try:
            return cls(value)
        except ValueError:
            raise UnknownMnemonic(str(value)) from None


def register_index(raw: int) -> int:
    """Map a raw 3-trit field value to a register index."""
    return raw + REGISTER_BIAS


def register_field(index: int) -> int:
    """Map a register index to its raw 3-trit field value."""
    return index - REGISTER_BIAS


def _signed(value: int) -> str:
    return f"+{value}" if value >= 0 else str(value)


@dataclass(frozen=True)
class Instruction:
    """Decoded view of one instruction Word.

    Attributes:
        opcode: Operation to perform
        rd: Destination register index (0-26)
        rs1: First source / base register index (0-26)
        rs2: Second source register index (0-26)
        imm: Signed immediate or offset
    """
    opcode: Opcode
    rd: int = 0
    rs1: int = 0
    rs2: int = 0
    imm: int = 0

    def __post_init__(self):
        object.__setattr__(self, "opcode", Opcode.coerce(self.opcode))

    @property
    def mnemonic(self) -> str:
        return self.opcode.name

    def __str__(self) -> str:
        """Human-readable form, e.g. ``ADDI R3, R0, 9`` or ``LDW R2, [R1+5]``."""
        op = self.opcode
        if op in (Opcode.ADD, Opcode.SUB):
            return f"{op.name} R{self.rd}, R{self.rs1}, R{self.rs2}"
        if op in (Opcode.ADDI, Opcode.SUBI):
            return f"{op.name} R{self.rd}, R{self.rs1}, {self.imm}"
        if op == Opcode.LDW:
            return f"LDW R{self.rd}, [R{self.rs1}{_signed(self.imm)}]"
        if op == Opcode.STW:
            return f"STW [R{self.rs1}{_signed(self.imm)}], R{self.rs2}"
        if op in (Opcode.JMP, Opcode.CALL):
            if self.rs1 == 0:
                return f"{op.name} {self.imm}"
            return f"{op.name} [R{self.rs1}{_signed(self.imm)}]"
        if op == Opcode.BRZ:
            if self.rs2 == 0:
                return f"BRZ R{self.rs1}, {self.imm}"
            return f"BRZ R{self.rs1}, [R{self.rs2}{_signed(self.imm)}]"
        return op.name


def _field_value(trits, field: Field) -> int:
    return trits_to_int(trits[field.offset:field.offset + field.width])


def decode(word: Word) -> Instruction:
    """Unpack a Word into an Instruction.

    Raises:
        DecodeError: If the opcode field is not a defined opcode, or a
            register field yields an index outside [0, 26]
    """
    trits = word.trits
    op_value = _field_value(trits, OPCODE_FIELD)
    try:
        opcode = Opcode(op_value)
    except ValueError:
        raise DecodeError(f"Undefined opcode {op_value} in word {word}", raw=word) from None

    regs = {}
    for field in REGISTER_FIELDS:
        index = register_index(_field_value(trits, field))
        if not 0 <= index < NUM_REGISTERS:
            raise DecodeError(f"Register field {field.name} decoded to invalid index {index}", raw=word)
        regs[field.name] = index

    return Instruction(opcode=opcode, imm=_field_value(trits, IMM_FIELD), **regs)


def _field_trits(field: Field, value: int) -> List[Trit]:
    try:
        return int_to_trits(value, field.width)
    except OutOfRange:
        raise FieldOverflow(
            f"Field {field.name} value {value} out of range for {field.width} trits",
            field=field.name,
            value=value,
            width=field.width,
        ) from None


def encode(instr: Instruction) -> Word:
    """Pack an Instruction into a Word.

    Raises:
        FieldOverflow: If a register index is outside [0, 26] or the
            immediate is outside +/-265720
    """
    values = {
        IMM_FIELD.name: instr.imm,
        OPCODE_FIELD.name: int(instr.opcode),
    }
    for field in REGISTER_FIELDS:
        index = getattr(instr, field.name)
        if not 0 <= index < NUM_REGISTERS:
            raise FieldOverflow(
                f"Register index {field.name}={index} outside R0..R{NUM_REGISTERS - 1}",
                field=field.name,
                value=index,
                width=field.width,
            )
        values[field.name] = register_field(index)

    trits: List[Trit] = []
    for field in FIELDS:
        trits.extend(_field_trits(field, values[field.name]))
    return Word(trits)
