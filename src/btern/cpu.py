"""Fetch-decode-execute engine and the TernaryCPU orchestrator.

Pipeline per cycle:
    MEMORY[PC] -> FETCH -> DECODE (codec) -> REGISTRY -> EXECUTE -> STATE

``step`` and ``run`` operate on an explicit CPUState. Any machine fault
(bad fetch address, undefined opcode, bad load/store address, call stack
overflow or underflow) halts the CPU and is recorded on ``state.fault``;
it is never raised out of ``step``/``run``.

TernaryCPU wraps one state together with an execution trace and a
cycle safety limit, for the CLI, the demo and tests.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .codec import Instruction, decode
from .encoder import encode_program
from .errors import MachineFault, MemoryFault, OutOfRange
from .registry import CPURegistry, get_registry
from .state import (
    DEFAULT_MEMORY_SIZE,
    DEFAULT_STACK_SIZE,
    CPUState,
    Fault,
    create_initial_state,
)
from .ternary import Word

logger = logging.getLogger(__name__)

DEFAULT_MAX_CYCLES = 100_000


def _fetch(state: CPUState) -> Word:
    pc = state.pc
    if not state.memory.in_bounds(pc):
        raise MemoryFault(f"Fetch at PC={pc} outside memory [0, {state.memory.capacity})", address=pc)
    return state.memory.read(pc)


def _cycle(
    state: CPUState, registry: CPURegistry
) -> Tuple[Optional[Word], Optional[Instruction], Optional[Fault]]:
    """Run one FDE iteration, converting machine faults into a halt.

    Returns:
        Tuple of (raw word fetched, decoded instruction, fault); the first
        two are None when the cycle failed before reaching them
    """
    pc = state.pc
    raw = None
    instr = None
    try:
        raw = _fetch(state)
        instr = decode(raw)
        registry.execute(state, instr)
    except (MachineFault, OutOfRange) as exc:
        fault = Fault.from_exception(exc, pc, raw)
        state.halt(fault)
        logger.warning("CPU halted by %s", fault)
        return raw, instr, fault

    logger.debug("cycle=%d pc=%d %s", state.cycle_count, pc, instr)
    if state.halted:
        logger.info("HALT at PC=%d after %d cycles", pc, state.cycle_count)
    return raw, instr, None


def step(state: CPUState, registry: Optional[CPURegistry] = None) -> CPUState:
    """Execute exactly one fetch-decode-execute iteration.

    Returns:
        The same state object, mutated

    Raises:
        RuntimeError: If the CPU is already halted
    """
    if state.halted:
        raise RuntimeError("CPU is halted")
    _cycle(state, registry or get_registry())
    return state


def run(
    state: CPUState,
    max_cycles: Optional[int] = None,
    registry: Optional[CPURegistry] = None,
) -> CPUState:
    """Step until HALTED (clean HALT or fault).

    Args:
        state: CPU state to drive
        max_cycles: Optional cap on ``state.cycle_count``; None runs unbounded
        registry: Primitive registry (shared default if None)

    Returns:
        Final state; inspect ``state.fault`` to tell HALT from a fault

    Raises:
        RuntimeError: If ``max_cycles`` is reached before the CPU halts
    """
    registry = registry or get_registry()
    while not state.halted:
        if max_cycles is not None and state.cycle_count >= max_cycles:
            raise RuntimeError(f"Max cycles ({max_cycles}) exceeded")
        _cycle(state, registry)
    return state


@dataclass
class ExecutionTraceEntry:
    """Single entry in the execution trace.

    Attributes:
        cycle: Cycle count after the step
        pc: Address the instruction was fetched from
        raw: Raw instruction Word (None if the fetch faulted)
        instruction: Decoded instruction (None if fetch or decode faulted)
        pre_state: State snapshot before execution
        post_state: State snapshot after execution
        error: Fault description if the step faulted
    """
    cycle: int
    pc: int
    raw: Optional[Word]
    instruction: Optional[Instruction]
    pre_state: dict
    post_state: dict
    error: Optional[str] = None


class TernaryCPU:
    """btern CPU simulator with execution trace.

    Attributes:
        registry: CPURegistry with verified primitives
        state: Current CPU state (None until a program is loaded)
        trace: List of execution trace entries
        max_cycles: Maximum cycles before run() gives up (safety limit)
        memory_size: Memory capacity in Words for loaded programs
        stack_size: Call stack capacity for loaded programs
    """

    def __init__(
        self,
        memory_size: int = DEFAULT_MEMORY_SIZE,
        stack_size: int = DEFAULT_STACK_SIZE,
        max_cycles: int = DEFAULT_MAX_CYCLES,
    ):
        self.registry = get_registry()
        self.state: Optional[CPUState] = None
        self.trace: List[ExecutionTraceEntry] = []
        self.max_cycles = max_cycles
        self.memory_size = memory_size
        self.stack_size = stack_size

    def load_program(self, words: Sequence[Word], base: int = 0) -> None:
        """Load an encoded Word stream into a fresh machine.

        Raises:
            MemoryFault: If the program does not fit in memory
        """
        self.state = create_initial_state(
            words, base=base, memory_size=self.memory_size, stack_size=self.stack_size
        )
        self.trace = []
        logger.info("Loaded %d words at base %d", len(words), base)

    def load_instructions(self, instructions: Sequence[Instruction], base: int = 0) -> None:
        """Encode and load a resolved instruction list.

        Raises:
            FieldOverflow: If an instruction cannot be encoded
        """
        self.load_program(encode_program(instructions), base=base)

    def _require_state(self) -> CPUState:
        if self.state is None:
            raise RuntimeError("No program loaded")
        return self.state

    def step(self) -> ExecutionTraceEntry:
        """Execute a single instruction cycle.

        Returns:
            ExecutionTraceEntry with full cycle information

        Raises:
            RuntimeError: If no program loaded, CPU halted or max cycles reached
        """
        return self._step(self.max_cycles)

    def _step(self, limit: int) -> ExecutionTraceEntry:
        state = self._require_state()
        if state.halted:
            raise RuntimeError("CPU is halted")
        if state.cycle_count >= limit:
            raise RuntimeError(f"Max cycles ({limit}) exceeded")

        pc = state.pc
        pre_state = state.snapshot()
        raw, instr, fault = _cycle(state, self.registry)

        entry = ExecutionTraceEntry(
            cycle=state.cycle_count,
            pc=pc,
            raw=raw,
            instruction=instr,
            pre_state=pre_state,
            post_state=state.snapshot(),
            error=str(fault) if fault else None,
        )
        self.trace.append(entry)
        return entry

    def run(self, max_cycles: Optional[int] = None) -> List[ExecutionTraceEntry]:
        """Run the CPU until HALT, a fault, or max cycles.

        Args:
            max_cycles: Override maximum cycles (uses instance default if None)

        Returns:
            Complete execution trace

        Raises:
            RuntimeError: If max cycles exceeded (safety limit)
        """
        state = self._require_state()
        limit = max_cycles if max_cycles is not None else self.max_cycles

        while not state.halted and state.cycle_count < limit:
            self._step(limit)

        if not state.halted:
            raise RuntimeError(f"Max cycles ({limit}) exceeded")

        return self.trace

    def get_register(self, reg) -> int:
        """Integer value of a register ("R3", "r3" or 3)."""
        return self._require_state().get_register(reg).to_int()

    def get_register_word(self, reg) -> Word:
        return self._require_state().get_register(reg)

    def read_memory(self, address: int) -> int:
        """Integer value of the Word at ``address``.

        Raises:
            MemoryFault: If the address is out of bounds
        """
        return self._require_state().memory.read(address).to_int()

    def dump_registers(self) -> Dict[str, int]:
        return self._require_state().dump_registers()

    def get_pc(self) -> int:
        return self._require_state().pc

    def get_cycle_count(self) -> int:
        if self.state is None:
            return 0
        return self.state.cycle_count

    def get_fault(self) -> Optional[Fault]:
        if self.state is None:
            return None
        return self.state.fault

    def get_trace(self) -> List[ExecutionTraceEntry]:
        return self.trace

    def is_halted(self) -> bool:
        if self.state is None:
            return True
        return self.state.halted

    def print_trace(self) -> None:
        """Print execution trace in human-readable format."""
        print("=" * 70)
        print("BTERN EXECUTION TRACE")
        print("=" * 70)

        for entry in self.trace:
            status = "OK" if not entry.error else f"FAULT: {entry.error}"
            print(f"\n[Cycle {entry.cycle}] PC={entry.pc} {status}")
            if entry.raw is not None:
                print(f"  Word:        {entry.raw} ({entry.raw.to_int()})")
            if entry.instruction is not None:
                print(f"  Instruction: {entry.instruction}")

            pre_regs = entry.pre_state["registers"]
            post_regs = entry.post_state["registers"]
            changes = [
                f"{reg}: {pre_regs[reg]} -> {post_regs[reg]}"
                for reg in pre_regs
                if pre_regs[reg] != post_regs[reg]
            ]
            if changes:
                print(f"  Changes: {', '.join(changes)}")

            if entry.post_state["pc"] != entry.pc + 1:
                print(f"  PC: {entry.pc} -> {entry.post_state['pc']}")

        print("\n" + "=" * 70)
        print("FINAL STATE")
        print("=" * 70)
        if self.state:
            nonzero = {k: v for k, v in self.dump_registers().items() if v != 0}
            print(f"  Registers: {nonzero}")
            print(f"  PC: {self.get_pc()}")
            print(f"  Call stack: {self.state.call_stack.frames()}")
            print(f"  Cycles: {self.get_cycle_count()}")
            print(f"  Halted: {self.is_halted()}")
            if self.state.fault:
                print(f"  Fault: {self.state.fault}")

    def get_summary(self) -> Dict:
        """Execution statistics and final state."""
        fault = self.get_fault()
        return {
            "cycles": self.get_cycle_count(),
            "halted": self.is_halted(),
            "registers": self.dump_registers() if self.state else {},
            "pc": self.get_pc() if self.state else 0,
            "call_depth": len(self.state.call_stack) if self.state else 0,
            "trace_length": len(self.trace),
            "fault": str(fault) if fault else None,
            "errors": [e.error for e in self.trace if e.error],
        }
