"""CPUState: machine state for the btern CPU.

State Components:
    - Registers: R0-R26, 27-trit Words; R0 reads as zero, writes to it are discarded
    - PC: Program counter (Word address into memory)
    - Memory: Word-addressed store of fixed capacity
    - Call stack: Dedicated bounded stack of return addresses
    - Status: RUNNING or HALTED (terminal)
    - Cycle count: Total executed cycles
    - Fault: Record of the fault that halted the run, if any

One CPUState is created per simulation run and is owned exclusively by
the caller driving ``step``/``run``. It is mutated in place by the FDE
loop; ``snapshot`` gives a detached copy for tracing.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union

from .codec import NUM_REGISTERS
from .errors import MachineFault, MemoryFault, StackFault
from .ternary import Word, ZERO_WORD


DEFAULT_MEMORY_SIZE = 3 ** 9   # 19683 Words
DEFAULT_STACK_SIZE = 243


class CPUStatus(str, Enum):
    RUNNING = "running"
    HALTED = "halted"


class RegisterFile:
    """27 general-purpose Word registers with a hardwired zero in R0."""

    def __init__(self):
        self._regs: List[Word] = [ZERO_WORD] * NUM_REGISTERS

    @staticmethod
    def _index(reg: Union[int, str]) -> int:
        """Accept 3, "R3" or "r3"."""
        if isinstance(reg, str):
            name = reg.strip().upper()
            if not name.startswith("R") or not name[1:].isdigit():
                raise KeyError(f"Invalid register: {reg}")
            reg = int(name[1:])
        if not 0 <= reg < NUM_REGISTERS:
            raise KeyError(f"Invalid register: R{reg}")
        return reg

    def read(self, reg: Union[int, str]) -> Word:
        index = self._index(reg)
        if index == 0:
            return ZERO_WORD
        return self._regs[index]

    def write(self, reg: Union[int, str], value: Word) -> None:
        index = self._index(reg)
        if index == 0:
            return
        self._regs[index] = value

    def __getitem__(self, reg: Union[int, str]) -> Word:
        return self.read(reg)

    def __setitem__(self, reg: Union[int, str], value: Word) -> None:
        self.write(reg, value)

    def __len__(self) -> int:
        return NUM_REGISTERS

    def dump(self) -> Dict[str, int]:
        """Register name to integer value, R0..R26."""
        return {f"R{i}": self.read(i).to_int() for i in range(NUM_REGISTERS)}


class Memory:
    """Word-addressed memory with a fixed capacity."""

    def __init__(self, capacity: int = DEFAULT_MEMORY_SIZE):
        if capacity <= 0:
            raise ValueError(f"Memory capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._words: List[Word] = [ZERO_WORD] * capacity

    def __len__(self) -> int:
        return self.capacity

    def in_bounds(self, address: int) -> bool:
        return 0 <= address < self.capacity

    def _check(self, address: int, access: str) -> None:
        if not self.in_bounds(address):
            raise MemoryFault(
                f"{access} at address {address} outside memory [0, {self.capacity})",
                address=address,
            )

    def read(self, address: int) -> Word:
        """Raises MemoryFault if the address is out of bounds."""
        self._check(address, "Read")
        return self._words[address]

    def write(self, address: int, value: Word) -> None:
        """Raises MemoryFault if the address is out of bounds; nothing is written then."""
        self._check(address, "Write")
        self._words[address] = value

    def load(self, words: Sequence[Word], base: int = 0) -> None:
        """Copy a Word stream into contiguous memory starting at ``base``.

        Raises:
            MemoryFault: If any part of the stream falls outside memory;
                memory is left untouched in that case
        """
        end = base + len(words)
        if base < 0 or end > self.capacity:
            raise MemoryFault(
                f"Program of {len(words)} words at base {base} does not fit in {self.capacity} words",
                address=end - 1 if base >= 0 else base,
            )
        self._words[base:end] = list(words)

    def words(self, start: int = 0, stop: Optional[int] = None) -> List[Word]:
        return self._words[start:stop]


class CallStack:
    """Bounded stack of return addresses for CALL/RET."""

    def __init__(self, capacity: int = DEFAULT_STACK_SIZE):
        if capacity <= 0:
            raise ValueError(f"Call stack capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._frames: List[int] = []

    def __len__(self) -> int:
        return len(self._frames)

    def push(self, address: int) -> None:
        if len(self._frames) >= self.capacity:
            raise StackFault(f"Call stack overflow (capacity {self.capacity})")
        self._frames.append(address)

    def pop(self) -> int:
        if not self._frames:
            raise StackFault("Return with empty call stack")
        return self._frames.pop()

    def clear(self) -> None:
        self._frames.clear()

    def frames(self) -> List[int]:
        return list(self._frames)


@dataclass
class Fault:
    """Record of the fault that halted a run.

    Attributes:
        kind: Fault class name (DecodeError, MemoryFault, StackFault, ...)
        pc: Program counter of the faulting instruction
        raw: Raw instruction Word, if it was fetched
        message: Human-readable description
    """
    kind: str
    pc: int
    raw: Optional[Word]
    message: str

    @classmethod
    def from_exception(cls, exc: Exception, pc: int, raw: Optional[Word] = None) -> "Fault":
        if isinstance(exc, MachineFault):
            if exc.pc is None:
                exc.pc = pc
            if exc.raw is None:
                exc.raw = raw
        return cls(kind=type(exc).__name__, pc=pc, raw=raw, message=str(exc))

    def __str__(self) -> str:
        raw = f" raw={self.raw.to_int()} [{self.raw}]" if self.raw is not None else ""
        return f"{self.kind} at PC={self.pc}{raw}: {self.message}"


@dataclass
class CPUState:
    """Complete state of one CPU for one simulation run.

    Attributes:
        registers: General-purpose register file (R0-R26)
        memory: Word-addressed memory
        call_stack: Return addresses pushed by CALL
        pc: Program counter (memory address of the next instruction)
        status: RUNNING or HALTED
        cycle_count: Number of execution cycles completed
        fault: Fault that halted the run, None for a clean HALT
    """
    registers: RegisterFile = field(default_factory=RegisterFile)
    memory: Memory = field(default_factory=Memory)
    call_stack: CallStack = field(default_factory=CallStack)
    pc: int = 0
    status: CPUStatus = CPUStatus.RUNNING
    cycle_count: int = 0
    fault: Optional[Fault] = None

    @property
    def halted(self) -> bool:
        return self.status == CPUStatus.HALTED

    def halt(self, fault: Optional[Fault] = None) -> None:
        self.status = CPUStatus.HALTED
        if fault is not None:
            self.fault = fault

    def snapshot(self) -> dict:
        """Detached copy of the state for tracing.

        Memory is excluded for efficiency.
        """
        return {
            "registers": self.registers.dump(),
            "pc": self.pc,
            "call_stack": self.call_stack.frames(),
            "status": self.status.value,
            "halted": self.halted,
            "cycle_count": self.cycle_count,
        }

    def validate(self) -> bool:
        """Check state integrity.

        Checks:
            - R0 reads as zero
            - PC is non-negative
            - Call stack depth within capacity
            - Cycle count non-negative
            - A fault is only recorded on a halted CPU
        """
        if not self.registers.read(0).is_zero():
            return False
        if self.pc < 0:
            return False
        if len(self.call_stack) > self.call_stack.capacity:
            return False
        if self.cycle_count < 0:
            return False
        if self.fault is not None and not self.halted:
            return False
        return True

    def get_register(self, reg: Union[int, str]) -> Word:
        """Read a register by index or name ("R3", case insensitive).

        Raises:
            KeyError: If the register doesn't exist
        """
        return self.registers.read(reg)

    def set_register(self, reg: Union[int, str], value: Union[Word, int]) -> None:
        """Write a register; integers are converted to Words. Writes to R0 are ignored."""
        if not isinstance(value, Word):
            value = Word.from_int(value)
        self.registers.write(reg, value)

    def dump_registers(self) -> Dict[str, int]:
        return self.registers.dump()

    def __str__(self) -> str:
        regs = " ".join(f"{k}={v}" for k, v in self.dump_registers().items() if v != 0)
        status = "HALTED" if self.halted else ""
        return f"[Cycle {self.cycle_count}] PC={self.pc} {regs} {status}".rstrip()


def load_program(state: CPUState, words: Sequence[Word], base: int = 0) -> CPUState:
    """Program loader: place ``words`` at ``base`` and reset control state.

    Sets PC to ``base``, empties the call stack, clears any fault and
    puts the CPU in RUNNING. Registers and the rest of memory are kept.

    Raises:
        MemoryFault: If the program does not fit; state is unchanged
    """
    state.memory.load(words, base)
    state.pc = base
    state.call_stack.clear()
    state.status = CPUStatus.RUNNING
    state.fault = None
    return state


def create_initial_state(
    program: Sequence[Word] = (),
    base: int = 0,
    memory_size: int = DEFAULT_MEMORY_SIZE,
    stack_size: int = DEFAULT_STACK_SIZE,
) -> CPUState:
    """Create a fresh CPU state with a program loaded.

    Args:
        program: Encoded Word stream
        base: Load address, also the initial PC
        memory_size: Memory capacity in Words
        stack_size: Call stack capacity

    Returns:
        CPUState in RUNNING with zeroed registers
    """
    state = CPUState(memory=Memory(memory_size), call_stack=CallStack(stack_size))
    return load_program(state, program, base)
