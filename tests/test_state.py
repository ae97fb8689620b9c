"""Tests for CPUState and its components."""

import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from btern.errors import MemoryFault, StackFault
from btern.state import (
    DEFAULT_MEMORY_SIZE,
    CallStack,
    CPUState,
    CPUStatus,
    Fault,
    Memory,
    RegisterFile,
    create_initial_state,
    load_program,
)
from btern.ternary import ZERO_WORD, word_from_int


class TestCPUStateCreation:
    """Test CPUState initialization and defaults."""

    def test_default_state(self):
        """Default state has zeroed registers and is running."""
        state = CPUState()
        assert state.pc == 0
        assert state.cycle_count == 0
        assert state.halted is False
        assert state.status is CPUStatus.RUNNING
        assert state.fault is None
        assert len(state.memory) == DEFAULT_MEMORY_SIZE
        assert all(v == 0 for v in state.dump_registers().values())

    def test_create_initial_state(self):
        """create_initial_state loads program into memory at the base."""
        program = [word_from_int(7), word_from_int(-7)]
        state = create_initial_state(program, base=4, memory_size=16, stack_size=3)
        assert state.memory.words(4, 6) == program
        assert state.pc == 4
        assert state.memory.capacity == 16
        assert state.call_stack.capacity == 3

    def test_program_too_large(self):
        """A program larger than memory raises MemoryFault."""
        with pytest.raises(MemoryFault):
            create_initial_state([ZERO_WORD] * 5, memory_size=4)


class TestRegisterFile:
    """Test the register file."""

    def test_r0_reads_zero_after_write(self):
        """R0 stays zero after a write."""
        regs = RegisterFile()
        regs.write(0, word_from_int(99))
        assert regs.read(0) == ZERO_WORD

    def test_write_and_read(self):
        """Registers are addressable by index or name."""
        regs = RegisterFile()
        regs[5] = word_from_int(-12)
        assert regs["R5"] == word_from_int(-12)
        assert regs["r5"] == word_from_int(-12)

    def test_has_27_registers(self):
        regs = RegisterFile()
        assert len(regs) == 27
        assert list(regs.dump()) == [f"R{i}" for i in range(27)]

    @pytest.mark.parametrize("reg", [27, -1, "R27", "X1", "R"])
    def test_invalid_register(self, reg):
        """Unknown registers raise KeyError."""
        with pytest.raises(KeyError):
            RegisterFile().read(reg)


class TestMemory:
    """Test Word-addressed memory."""

    def test_starts_zeroed(self):
        assert all(w == ZERO_WORD for w in Memory(9).words())

    def test_read_write(self):
        mem = Memory(9)
        mem.write(8, word_from_int(3))
        assert mem.read(8) == word_from_int(3)

    @pytest.mark.parametrize("address", [-1, 9, 1000])
    def test_out_of_bounds(self, address):
        """Out-of-bounds access raises MemoryFault and writes nothing."""
        mem = Memory(9)
        with pytest.raises(MemoryFault) as exc_info:
            mem.read(address)
        assert exc_info.value.address == address
        with pytest.raises(MemoryFault):
            mem.write(address, word_from_int(1))
        assert all(w == ZERO_WORD for w in mem.words())

    def test_load_is_all_or_nothing(self):
        """A load that does not fit writes nothing."""
        mem = Memory(4)
        with pytest.raises(MemoryFault):
            mem.load([word_from_int(1)] * 3, base=2)
        assert all(w == ZERO_WORD for w in mem.words())

    def test_invalid_capacity(self):
        """Memory capacity must be positive."""
        with pytest.raises(ValueError):
            Memory(0)


class TestCallStack:
    """Test the bounded return-address stack."""

    def test_lifo(self):
        """Return addresses pop in reverse order."""
        stack = CallStack(4)
        stack.push(1)
        stack.push(2)
        assert stack.frames() == [1, 2]
        assert stack.pop() == 2
        assert stack.pop() == 1

    def test_overflow(self):
        """Pushing onto a full stack raises StackFault."""
        stack = CallStack(2)
        stack.push(1)
        stack.push(2)
        with pytest.raises(StackFault):
            stack.push(3)
        assert len(stack) == 2

    def test_underflow(self):
        """Popping an empty stack raises StackFault."""
        with pytest.raises(StackFault):
            CallStack().pop()


class TestCPUStateValidation:
    """Test state validation."""

    def test_valid_state(self):
        """Valid state passes validation."""
        assert CPUState().validate() is True

    def test_negative_pc(self):
        """Negative PC fails validation."""
        state = CPUState()
        state.pc = -1
        assert state.validate() is False

    def test_fault_on_running_state(self):
        """A fault may only be recorded on a halted CPU."""
        state = CPUState()
        state.fault = Fault("StackFault", 0, None, "boom")
        assert state.validate() is False
        state.halt()
        assert state.validate() is True


class TestCPUStateRegisters:
    """Test register access through the state."""

    def test_set_register_from_int(self):
        """Integers are converted to Words."""
        state = CPUState()
        state.set_register("R3", 15)
        assert state.get_register(3).to_int() == 15

    def test_set_r0_ignored(self):
        """Writes to R0 are ignored."""
        state = CPUState()
        state.set_register(0, 5)
        assert state.get_register("R0").is_zero()

    def test_out_of_range_value(self):
        """Values outside the Word range are rejected."""
        with pytest.raises(ValueError):
            CPUState().set_register(1, 3 ** 27)


class TestSnapshot:
    """Test detached state snapshots."""

    def test_snapshot_contents(self):
        """Snapshot holds registers, PC and status."""
        state = CPUState()
        state.set_register(2, -4)
        snap = state.snapshot()
        assert snap["registers"]["R2"] == -4
        assert snap["pc"] == 0
        assert snap["status"] == "running"
        assert snap["halted"] is False
        assert snap["call_stack"] == []

    def test_snapshot_is_detached(self):
        """Later mutation does not change a snapshot."""
        state = CPUState()
        snap = state.snapshot()
        state.set_register(1, 10)
        state.call_stack.push(3)
        state.pc = 8
        assert snap["registers"]["R1"] == 0
        assert snap["call_stack"] == []
        assert snap["pc"] == 0


class TestLoadProgram:
    """The loader resets control state but keeps registers."""

    def test_reset(self):
        """Loading resets PC, status, fault and stack but keeps registers."""
        state = create_initial_state([ZERO_WORD], memory_size=8)
        state.set_register(4, 11)
        state.call_stack.push(2)
        state.halt(Fault("MemoryFault", 3, None, "bad"))

        load_program(state, [word_from_int(1)], base=5)
        assert state.pc == 5
        assert state.status is CPUStatus.RUNNING
        assert state.fault is None
        assert len(state.call_stack) == 0
        assert state.get_register(4).to_int() == 11

    def test_fault_string(self):
        """Fault renders kind, PC and raw Word."""
        fault = Fault("DecodeError", 4, word_from_int(1), "Undefined opcode")
        text = str(fault)
        assert text.startswith("DecodeError at PC=4")
        assert "raw=1" in text
