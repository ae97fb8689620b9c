"""CPURegistry: Verified execution primitives for the btern ISA.

Each Opcode maps to exactly one primitive. A primitive takes the CPU
state and the decoded instruction, applies the instruction's effect and
leaves the program counter pointing at the next instruction to execute.

Registry Keys:
    NOP:  No operation
    ADD:  Rd = Rs1 + Rs2
    ADDI: Rd = Rs1 + Imm
    SUB:  Rd = Rs1 - Rs2
    SUBI: Rd = Rs1 - Imm
    LDW:  Rd = Mem[Rs1 + Imm]
    STW:  Mem[Rs1 + Imm] = Rs2
    JMP:  PC = Rs1 + Imm
    CALL: push PC + 1; PC = Rs1 + Imm
    RET:  PC = pop
    BRZ:  if Rs1 == 0: PC = Rs2 + Imm, else PC + 1
    HALT: Stop execution

The registry refuses to freeze unless every Opcode has a primitive, so
adding an opcode without a handler fails at construction.
"""

from typing import Callable, Dict, Optional

from .arithmetic import add, subtract
from .codec import Instruction, Opcode
from .state import CPUState
from .ternary import word_from_int


Primitive = Callable[[CPUState, Instruction], None]


class CPURegistry:
    """Verified registry of CPU primitives.

    The registry is frozen after initialization to ensure
    no runtime modifications can occur.

    Attributes:
        _primitives: Dictionary mapping opcodes to handler functions
        _frozen: Whether the registry is locked against modifications
    """

    def __init__(self):
        """Initialize registry with all CPU primitives."""
        self._primitives: Dict[Opcode, Primitive] = {}
        self._frozen = False
        self._register_all_primitives()
        self.freeze()

    def _register_all_primitives(self) -> None:
        # Arithmetic
        self.register(Opcode.ADD, self._op_add)
        self.register(Opcode.ADDI, self._op_addi)
        self.register(Opcode.SUB, self._op_sub)
        self.register(Opcode.SUBI, self._op_subi)

        # Memory
        self.register(Opcode.LDW, self._op_ldw)
        self.register(Opcode.STW, self._op_stw)

        # Control flow
        self.register(Opcode.JMP, self._op_jmp)
        self.register(Opcode.CALL, self._op_call)
        self.register(Opcode.RET, self._op_ret)
        self.register(Opcode.BRZ, self._op_brz)

        # Special
        self.register(Opcode.NOP, self._op_nop)
        self.register(Opcode.HALT, self._op_halt)

    def register(self, opcode: Opcode, handler: Primitive) -> None:
        """Register a primitive operation.

        Raises:
            RuntimeError: If registry is frozen
            ValueError: If opcode already registered
        """
        if self._frozen:
            raise RuntimeError("Cannot register primitives: registry is frozen")
        if opcode in self._primitives:
            raise ValueError(f"Primitive already registered: {opcode.name}")
        self._primitives[opcode] = handler

    def freeze(self) -> None:
        """Freeze the registry to prevent further modifications.

        Raises:
            RuntimeError: If some Opcode has no primitive
        """
        missing = [op.name for op in Opcode if op not in self._primitives]
        if missing:
            raise RuntimeError(f"Registry incomplete, no primitive for: {', '.join(missing)}")
        self._frozen = True

    def is_frozen(self) -> bool:
        return self._frozen

    def get_valid_keys(self) -> set:
        return set(self._primitives.keys())

    def execute(self, state: CPUState, instr: Instruction) -> CPUState:
        """Execute the primitive for ``instr`` against ``state``.

        Machine faults raised by a primitive propagate to the caller with
        the state unchanged by the faulting instruction.

        Raises:
            KeyError: If opcode not in registry
        """
        if instr.opcode not in self._primitives:
            raise KeyError(f"Unknown opcode: {instr.opcode}")

        self._primitives[instr.opcode](state, instr)
        state.cycle_count += 1
        return state

    # =========================================================================
    # Arithmetic Primitives
    # =========================================================================

    def _op_add(self, state: CPUState, instr: Instruction) -> None:
        regs = state.registers
        regs.write(instr.rd, add(regs.read(instr.rs1), regs.read(instr.rs2)))
        state.pc += 1

    def _op_addi(self, state: CPUState, instr: Instruction) -> None:
        regs = state.registers
        regs.write(instr.rd, add(regs.read(instr.rs1), word_from_int(instr.imm)))
        state.pc += 1

    def _op_sub(self, state: CPUState, instr: Instruction) -> None:
        regs = state.registers
        regs.write(instr.rd, subtract(regs.read(instr.rs1), regs.read(instr.rs2)))
        state.pc += 1

    def _op_subi(self, state: CPUState, instr: Instruction) -> None:
        regs = state.registers
        regs.write(instr.rd, subtract(regs.read(instr.rs1), word_from_int(instr.imm)))
        state.pc += 1

    # =========================================================================
    # Memory Primitives
    # =========================================================================

    def _op_ldw(self, state: CPUState, instr: Instruction) -> None:
        """LDW Rd, [Rs1+Imm]. MemoryFault leaves Rd untouched."""
        address = self._effective_address(state, instr.rs1, instr.imm)
        state.registers.write(instr.rd, state.memory.read(address))
        state.pc += 1

    def _op_stw(self, state: CPUState, instr: Instruction) -> None:
        """STW [Rs1+Imm], Rs2. MemoryFault leaves memory untouched."""
        address = self._effective_address(state, instr.rs1, instr.imm)
        state.memory.write(address, state.registers.read(instr.rs2))
        state.pc += 1

    # =========================================================================
    # Control Flow Primitives
    # =========================================================================

    def _op_jmp(self, state: CPUState, instr: Instruction) -> None:
        state.pc = self._effective_address(state, instr.rs1, instr.imm)

    def _op_call(self, state: CPUState, instr: Instruction) -> None:
        """CALL: push the return address, then jump. StackFault if the stack is full."""
        target = self._effective_address(state, instr.rs1, instr.imm)
        state.call_stack.push(state.pc + 1)
        state.pc = target

    def _op_ret(self, state: CPUState, instr: Instruction) -> None:
        state.pc = state.call_stack.pop()

    def _op_brz(self, state: CPUState, instr: Instruction) -> None:
        """BRZ Rs1, [Rs2+Imm]: branch when Rs1 holds the zero Word."""
        if state.registers.read(instr.rs1).is_zero():
            state.pc = self._effective_address(state, instr.rs2, instr.imm)
        else:
            state.pc += 1

    # =========================================================================
    # Special Primitives
    # =========================================================================

    def _op_nop(self, state: CPUState, instr: Instruction) -> None:
        state.pc += 1

    def _op_halt(self, state: CPUState, instr: Instruction) -> None:
        # PC stays on the HALT instruction
        state.halt()

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @staticmethod
    def _effective_address(state: CPUState, base_reg: int, imm: int) -> int:
        """Base register plus immediate, computed in Word arithmetic."""
        return add(state.registers.read(base_reg), word_from_int(imm)).to_int()


# Singleton registry instance
_registry: Optional[CPURegistry] = None


def get_registry() -> CPURegistry:
    """Get the shared frozen CPURegistry instance."""
    global _registry
    if _registry is None:
        _registry = CPURegistry()
    return _registry
