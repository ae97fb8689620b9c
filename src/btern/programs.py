"""Bundled example programs in resolved-instruction form.

Each program is a list of ``(mnemonic, rd, rs1, rs2, imm)`` tuples with
jump targets already resolved to absolute Word addresses (load base 0).
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from .codec import Instruction
from .encoder import assemble_resolved, instruction_from_tuple
from .ternary import Word


@dataclass(frozen=True)
class ExampleProgram:
    """A named program with the register values it should halt with."""
    name: str
    description: str
    source: Tuple[tuple, ...]
    expected: Dict[str, int] = field(default_factory=dict)

    def instructions(self) -> List[Instruction]:
        return [instruction_from_tuple(item, index=i) for i, item in enumerate(self.source)]

    def words(self) -> List[Word]:
        return assemble_resolved(self.source)


EXAMPLES: Dict[str, ExampleProgram] = {}


def _example(name: str, description: str, source: List[tuple], **expected: int) -> None:
    EXAMPLES[name] = ExampleProgram(name, description, tuple(source), expected)


_example(
    "accumulate",
    "Accumulate two immediates into R3 (R3 = 15)",
    [
        ("ADDI", 3, 0, 0, 9),    # R3 = 9
        ("ADDI", 3, 3, 0, 6),    # R3 += 6
        ("HALT",),
    ],
    R3=15,
)

_example(
    "add",
    "Add two registers (R3 = 5 + 10)",
    [
        ("ADDI", 1, 0, 0, 5),
        ("ADDI", 2, 0, 0, 10),
        ("ADD", 3, 1, 2, 0),
        ("HALT",),
    ],
    R1=5, R2=10, R3=15,
)

_example(
    "sum_1_to_10",
    "Sum of 1..10 by counting down (R2 = 55)",
    [
        ("ADDI", 1, 0, 0, 10),   # 0: counter = 10
        ("ADDI", 2, 0, 0, 0),    # 1: sum = 0
        ("BRZ", 0, 1, 0, 6),     # 2: loop: if counter == 0 goto done
        ("ADD", 2, 2, 1, 0),     # 3: sum += counter
        ("SUBI", 1, 1, 0, 1),    # 4: counter--
        ("JMP", 0, 0, 0, 2),     # 5: goto loop
        ("HALT",),               # 6: done
    ],
    R1=0, R2=55,
)

_example(
    "multiply",
    "7 * 6 by repeated addition (R3 = 42)",
    [
        ("ADDI", 1, 0, 0, 7),    # 0: multiplicand
        ("ADDI", 2, 0, 0, 6),    # 1: multiplier (countdown)
        ("BRZ", 0, 2, 0, 6),     # 2: loop: if multiplier == 0 goto done
        ("ADD", 3, 3, 1, 0),     # 3: result += multiplicand
        ("SUBI", 2, 2, 0, 1),    # 4: multiplier--
        ("JMP", 0, 0, 0, 2),     # 5: goto loop
        ("HALT",),               # 6: done
    ],
    R3=42,
)

_example(
    "fibonacci",
    "Ten Fibonacci steps (R1 = F(10) = 55, R2 = F(11) = 89)",
    [
        ("ADDI", 1, 0, 0, 0),    # 0: prev = 0
        ("ADDI", 2, 0, 0, 1),    # 1: cur = 1
        ("ADDI", 3, 0, 0, 10),   # 2: N iterations
        ("BRZ", 0, 3, 0, 9),     # 3: loop: if N == 0 goto done
        ("ADD", 4, 1, 2, 0),     # 4: tmp = prev + cur
        ("ADD", 1, 2, 0, 0),     # 5: prev = cur
        ("ADD", 2, 4, 0, 0),     # 6: cur = tmp
        ("SUBI", 3, 3, 0, 1),    # 7: N--
        ("JMP", 0, 0, 0, 3),     # 8: goto loop
        ("HALT",),               # 9: done
    ],
    R1=55, R2=89,
)

_example(
    "memory",
    "Store 42 at R1+5 and load it back (R2 = 42)",
    [
        ("ADDI", 1, 0, 0, 100),  # base address
        ("ADDI", 4, 0, 0, 42),
        ("STW", 0, 1, 4, 5),     # Mem[105] = R4
        ("LDW", 2, 1, 0, 5),     # R2 = Mem[105]
        ("HALT",),
    ],
    R2=42,
)

_example(
    "call_ret",
    "Call a doubling subroutine and return (R1 = 42, R5 = 1)",
    [
        ("ADDI", 1, 0, 0, 21),   # 0
        ("CALL", 0, 0, 0, 4),    # 1: call double
        ("ADDI", 5, 0, 0, 1),    # 2: reached after RET
        ("HALT",),               # 3
        ("ADD", 1, 1, 1, 0),     # 4: double: R1 += R1
        ("RET",),                # 5
    ],
    R1=42, R5=1,
)

_example(
    "negative",
    "Balanced ternary needs no sign bit (R1 = -7, R2 = 7, R3 = 0)",
    [
        ("SUBI", 1, 0, 0, 7),    # R1 = 0 - 7
        ("SUB", 2, 0, 1, 0),     # R2 = 0 - R1
        ("ADD", 3, 1, 2, 0),     # R3 = R1 + R2
        ("HALT",),
    ],
    R1=-7, R2=7, R3=0,
)


def example_names() -> List[str]:
    return list(EXAMPLES)


def get_example(name: str) -> ExampleProgram:
    """Raises KeyError for an unknown example name."""
    try:
        return EXAMPLES[name]
    except KeyError:
        raise KeyError(f"Unknown example {name!r}; choose from {', '.join(EXAMPLES)}") from None
