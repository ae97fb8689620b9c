"""Tests for the resolved-instruction encoder."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from btern.codec import Instruction, Opcode, decode, encode
from btern.encoder import assemble_resolved, encode_program, instruction_from_tuple
from btern.errors import FieldOverflow, UnknownMnemonic


class TestInstructionFromTuple:
    """Test conversion of resolved tuples."""

    def test_full_tuple(self):
        """A five-element tuple maps field by field."""
        instr = instruction_from_tuple(("ADDI", 3, 0, 0, 9))
        assert instr == Instruction(Opcode.ADDI, rd=3, rs1=0, rs2=0, imm=9)

    def test_short_tuple_padded(self):
        """Missing trailing operands default to 0."""
        assert instruction_from_tuple(("HALT",)) == Instruction(Opcode.HALT)
        assert instruction_from_tuple(("ADD", 3, 1, 2)) == Instruction(Opcode.ADD, rd=3, rs1=1, rs2=2)

    def test_lowercase_mnemonic(self):
        assert instruction_from_tuple(("ret",)).opcode is Opcode.RET

    def test_numeric_strings(self):
        """Table cells may arrive as strings or floats."""
        instr = instruction_from_tuple(["SUBI", "1", 1.0, 0, "-4"])
        assert instr == Instruction(Opcode.SUBI, rd=1, rs1=1, imm=-4)

    @pytest.mark.parametrize("item", [(), ("ADD", 1, 2, 3, 4, 5)])
    def test_bad_length(self, item):
        """Empty or over-long tuples raise ValueError."""
        with pytest.raises(ValueError):
            instruction_from_tuple(item)

    def test_unknown_mnemonic_carries_index(self):
        """UnknownMnemonic records the tuple position."""
        with pytest.raises(UnknownMnemonic) as exc_info:
            instruction_from_tuple(("MUL", 1, 2, 3, 0), index=7)
        assert exc_info.value.index == 7
        assert exc_info.value.mnemonic == "MUL"


class TestEncodeProgram:
    """Test encoding instruction sequences."""

    def test_order_preserved(self):
        """Words come out in instruction order."""
        instructions = [
            Instruction(Opcode.ADDI, rd=3, imm=9),
            Instruction(Opcode.ADDI, rd=3, rs1=3, imm=6),
            Instruction(Opcode.HALT),
        ]
        words = encode_program(instructions)
        assert words == [encode(i) for i in instructions]
        assert [decode(w) for w in words] == instructions

    def test_empty_program(self):
        assert encode_program([]) == []

    def test_first_bad_instruction_reported(self):
        """The first overflowing instruction is reported by index."""
        instructions = [
            Instruction(Opcode.ADDI, rd=1, imm=1),
            Instruction(Opcode.ADDI, rd=2, imm=2),
            Instruction(Opcode.ADDI, rd=3, imm=300000),
            Instruction(Opcode.ADD, rd=40),
        ]
        with pytest.raises(FieldOverflow) as exc_info:
            encode_program(instructions)
        exc = exc_info.value
        assert exc.index == 2
        assert exc.field == "imm"
        assert exc.value == 300000
        assert "Instruction 2 (ADDI)" in str(exc)

    def test_generator_input(self):
        words = encode_program(Instruction(Opcode.NOP) for _ in range(3))
        assert len(words) == 3


class TestAssembleResolved:
    """Test the tuple front end."""

    def test_assemble(self):
        """Tuples encode to decodable Words."""
        words = assemble_resolved([("ADDI", 1, 0, 0, 5), ("HALT",)])
        assert [decode(w).mnemonic for w in words] == ["ADDI", "HALT"]

    def test_unknown_mnemonic_index(self):
        """Unknown mnemonics report their index."""
        with pytest.raises(UnknownMnemonic) as exc_info:
            assemble_resolved([("NOP",), ("HALT",), ("JUMP", 0, 0, 0, 1)])
        assert exc_info.value.index == 2

    def test_overflow_index(self):
        """Field overflows report their index."""
        with pytest.raises(FieldOverflow) as exc_info:
            assemble_resolved([("NOP",), ("ADD", 27, 0, 0, 0)])
        assert exc_info.value.index == 1
        assert exc_info.value.field == "rd"
