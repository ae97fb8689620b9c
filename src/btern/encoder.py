"""Assembler back end: resolved instructions to a Word stream.

Input comes from an upstream assembler that has already resolved labels
and symbols, either as :class:`Instruction` objects or as
``(mnemonic, rd, rs1, rs2, imm)`` tuples.
"""

from typing import Iterable, List, Optional, Sequence, Tuple, Union

from .codec import Instruction, Opcode, encode
from .errors import FieldOverflow, UnknownMnemonic
from .ternary import Word


ResolvedTuple = Tuple[Union[str, int, Opcode], int, int, int, int]


def instruction_from_tuple(item: Sequence, index: Optional[int] = None) -> Instruction:
    """Build an Instruction from a ``(mnemonic, rd, rs1, rs2, imm)`` tuple.

    Trailing operands may be omitted and default to 0, so ``("HALT",)``
    is accepted.

    Raises:
        UnknownMnemonic: If the mnemonic is not a defined opcode
        ValueError: If the tuple has more than five elements
    """
    if not 1 <= len(item) <= 5:
        raise ValueError(f"Resolved instruction needs 1 to 5 elements, got {len(item)}")
    mnemonic, *operands = item
    operands = list(operands) + [0] * (4 - len(operands))
    try:
        opcode = Opcode.coerce(mnemonic)
    except UnknownMnemonic:
        raise UnknownMnemonic(str(mnemonic), index=index) from None
    rd, rs1, rs2, imm = (int(v) for v in operands)
    return Instruction(opcode, rd=rd, rs1=rs1, rs2=rs2, imm=imm)


def encode_program(instructions: Iterable[Instruction]) -> List[Word]:
    """Encode instructions in order.

    Raises:
        FieldOverflow: On the first out-of-range field; ``index`` holds the
            position of the offending instruction
    """
    words = []
    for index, instr in enumerate(instructions):
        try:
            words.append(encode(instr))
        except FieldOverflow as exc:
            raise FieldOverflow(
                f"Instruction {index} ({instr.mnemonic}): {exc}",
                field=exc.field,
                value=exc.value,
                width=exc.width,
                index=index,
            ) from exc
    return words


def assemble_resolved(items: Iterable[ResolvedTuple]) -> List[Word]:
    """Encode a sequence of resolved tuples into a Word stream."""
    instructions = [instruction_from_tuple(item, index=i) for i, item in enumerate(items)]
    return encode_program(instructions)
