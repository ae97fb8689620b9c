"""btern: Balanced-Ternary Reference Virtual Machine.

This package defines and executes an instruction set architecture built on
balanced ternary arithmetic (digits -1, 0, +1) instead of binary.

Pipeline:
    resolved instructions -> ENCODER -> Word stream -> MEMORY
    MEMORY[PC] -> FETCH -> DECODE -> REGISTRY -> EXECUTE -> STATE

Modules:
    ternary: Trit, Tryte (9 trits) and Word (27 trits) value types
    arithmetic: Ripple-carry addition, negation, subtraction
    codec: Opcode set and the 5-field instruction encoding
    encoder: Resolved instruction tuples to Word streams
    state: Register file, memory, call stack and CPUState
    registry: Verified execution primitives, one per opcode
    cpu: step/run FDE engine and the TernaryCPU orchestrator
    program_io: Program file formats
    programs: Bundled example programs
"""

__version__ = "0.1.0"
__author__ = "btern Project"

from .errors import (
    DecodeError,
    FieldOverflow,
    MachineFault,
    MemoryFault,
    OutOfRange,
    StackFault,
    TernaryError,
    UnknownMnemonic,
)
from .ternary import (
    Trit,
    Tryte,
    Word,
    ZERO_WORD,
    int_from_tryte,
    int_from_word,
    trit_value,
    tryte_from_int,
    word_from_int,
)
from .arithmetic import add, negate, subtract
from .codec import Instruction, Opcode, decode, encode
from .encoder import assemble_resolved, encode_program, instruction_from_tuple
from .state import CPUState, CPUStatus, Fault, create_initial_state, load_program
from .registry import CPURegistry
from .cpu import TernaryCPU, run, step

__all__ = [
    "TernaryError",
    "OutOfRange",
    "FieldOverflow",
    "UnknownMnemonic",
    "MachineFault",
    "DecodeError",
    "MemoryFault",
    "StackFault",
    "Trit",
    "Tryte",
    "Word",
    "ZERO_WORD",
    "trit_value",
    "tryte_from_int",
    "int_from_tryte",
    "word_from_int",
    "int_from_word",
    "add",
    "negate",
    "subtract",
    "Opcode",
    "Instruction",
    "decode",
    "encode",
    "encode_program",
    "instruction_from_tuple",
    "assemble_resolved",
    "CPUState",
    "CPUStatus",
    "Fault",
    "create_initial_state",
    "load_program",
    "CPURegistry",
    "TernaryCPU",
    "step",
    "run",
]
